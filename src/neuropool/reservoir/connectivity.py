"""
Connectivity Generator - input → pool and pool → pool synapse sets.

Input connections:
==================
For every input field → pool rule, analog and spiking targets are chosen
independently. Targets of one kind are filtered by their role scope,
shuffled, and the first ``round(pool_size × density)`` of them (at most all
eligible) get one input synapse each. Input weights keep their sampled sign
for analog targets and are made non-negative for spiking targets.

Neuron → neuron connections:
============================
A connection budget (``total``) is split over the four role pairs by the
normalized EE/EI/IE/II ratios. For one role pair with ``count`` synapses:

1. Sources are filtered by role, shuffled and optionally capped.
2. Targets are filtered by role. A neuron never targets itself unless
   self-connections are allowed.
3. Per-source counts are planned tightly: every source gets
   ``count // n_sources`` and ``count % n_sources`` random sources one more,
   capped by the number of physically available targets. No source
   deviates from the mean by more than one connection.
4. Each source picks its targets one by one without repetition: uniformly,
   or (within a pool, with a nonzero ``avg_distance``) the target whose
   distance is closest to a gaussian draw around ``avg_distance``.

A role pair with no eligible sources or targets is skipped (logged, not an
error). Weights are sampled as magnitudes and signed by the source role:
excitatory sources +|w|, inhibitory sources -|w|.

Delays:
=======
After a bank is complete, delays are either linear in the normalized
source-target distance over the bank's distance span, or uniform random,
both in [0, max_delay].

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional

import numpy as np

from neuropool.components.synapses.bank import SynapseBankBuilder
from neuropool.components.synapses.dynamics import sample_stp_parameters
from neuropool.config.activation_config import ActivationKind
from neuropool.config.neuron_config import NeuronRole, SignalingRestriction
from neuropool.config.pool_config import RoleRatios
from neuropool.config.random_value import RandomValueConfig
from neuropool.config.reservoir_config import (
    DelayMethod,
    DynamicsConfig,
    InputConnectionConfig,
    PoolConnectionConfig,
    TargetScope,
)
from neuropool.reservoir.topology import PoolLayout, Topology
from neuropool.utils.rng import RandomSource

logger = logging.getLogger(__name__)


def scope_allows(scope: TargetScope, role: NeuronRole) -> bool:
    """Whether an input connection with ``scope`` may target a ``role`` neuron."""
    if scope == TargetScope.ALL:
        return True
    if scope == TargetScope.EXCITATORY:
        return role == NeuronRole.EXCITATORY
    return role == NeuronRole.INHIBITORY


def role_sign(role: NeuronRole) -> float:
    """Sign of every weight leaving a neuron with ``role``."""
    return -1.0 if role == NeuronRole.INHIBITORY else 1.0


def euclidean(a, b) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))


# =============================================================================
# INPUT CONNECTIONS
# =============================================================================


def connect_inputs(
    topology: Topology,
    rule: InputConnectionConfig,
    builder: SynapseBankBuilder,
    rng: RandomSource,
) -> int:
    """Connect one input field to one pool.

    Returns:
        Number of input synapses created
    """
    pool = topology.pool(rule.pool)
    origin = pool.config.origin
    created = 0

    for kind, density, scope in (
        (ActivationKind.ANALOG, rule.analog_density, rule.analog_scope),
        (ActivationKind.SPIKING, rule.spiking_density, rule.spiking_scope),
    ):
        if density <= 0:
            continue
        targets = [
            i
            for i in topology.neurons_of(pool, kind=kind)
            if scope_allows(scope, topology.neurons[i].role)
        ]
        if not targets:
            logger.debug(
                f"Input {rule.input_field} → '{pool.name}': no {kind.value} targets in scope "
                f"{scope.value}, skipped"
            )
            continue
        rng.shuffle(targets)
        count = min(int(round(pool.size * density)), len(targets))
        for target in targets[:count]:
            weight = rule.weight.sample(rng)
            if kind == ActivationKind.SPIKING:
                weight = abs(weight)
            distance = euclidean(topology.neurons[target].placement.coordinates, origin)
            stp = sample_stp_parameters(rule.dynamics, rng) if rule.dynamics.enabled else None
            if builder.add(rule.input_field, target, weight, distance, stp):
                created += 1

    return created


def adjust_analog_input_strength(builder: SynapseBankBuilder, topology: Topology) -> None:
    """Divide the input weights of analog neurons by their number of inputs.

    Keeps the summed input of an analog neuron in the range of a single
    input no matter how many fields reach it.
    """
    fan_in = Counter(builder.targets)
    for i, target in enumerate(builder.targets):
        count = fan_in[target]
        if count > 1 and topology.neurons[target].kind == ActivationKind.ANALOG:
            builder.weights[i] /= count


# =============================================================================
# NEURON → NEURON CONNECTIONS
# =============================================================================


def plan_connection_counts(
    count: int,
    num_sources: int,
    max_per_source: int,
    rng: RandomSource,
) -> List[int]:
    """Per-source connection counts averaging ``count / num_sources``.

    Every source gets ``count // num_sources`` connections and a random
    subset of ``count % num_sources`` sources one more. Counts are capped at
    ``max_per_source``, so the planned total never exceeds
    ``num_sources × max_per_source``.
    """
    if num_sources <= 0 or max_per_source <= 0 or count <= 0:
        return [0] * max(num_sources, 0)
    base, remainder = divmod(count, num_sources)
    plan = [base] * num_sources
    for i in rng.sample_indices(num_sources, remainder):
        plan[int(i)] += 1
    return [min(n, max_per_source) for n in plan]


def _can_carry_stp(topology: Topology, source: int, target: int) -> bool:
    source_spec = topology.neurons[source]
    return (
        topology.neurons[target].kind == ActivationKind.SPIKING
        and source_spec.restriction != SignalingRestriction.ANALOG_ONLY
    )


def connect_role_pair(
    topology: Topology,
    builder: SynapseBankBuilder,
    sources: List[int],
    targets: List[int],
    count: int,
    exclude_self: bool,
    weight: RandomValueConfig,
    dynamics: DynamicsConfig,
    rng: RandomSource,
    avg_distance: float = 0.0,
) -> int:
    """Create up to ``count`` synapses from ``sources`` to ``targets``.

    ``sources`` must already be shuffled and capped.

    Returns:
        Number of synapses created
    """
    max_physical = len(targets) - (1 if exclude_self else 0)
    if not sources or max_physical <= 0 or count <= 0:
        return 0

    plan = plan_connection_counts(count, len(sources), max_physical, rng)
    coordinates = np.array(
        [topology.neurons[i].placement.coordinates for i in range(topology.num_neurons)],
        dtype=np.float64,
    ).reshape(-1, 3)

    created = 0
    for source, planned in zip(sources, plan):
        if planned == 0:
            continue
        sign = role_sign(topology.neurons[source].role)
        candidates = [t for t in targets if not (exclude_self and t == source)]
        distances = np.linalg.norm(coordinates[candidates] - coordinates[source], axis=1)

        made = 0
        while made < planned and candidates:
            if avg_distance > 0:
                wanted = rng.gaussian(avg_distance, 1.0)
                k = int(np.argmin(np.abs(distances - wanted)))
            else:
                k = rng.integers(0, len(candidates))
            target = candidates.pop(k)
            distance = float(distances[k])
            distances = np.delete(distances, k)
            if builder.contains(source, target):
                continue

            stp = None
            if dynamics.enabled and _can_carry_stp(topology, source, target):
                stp = sample_stp_parameters(dynamics, rng)
            if builder.add(source, target, abs(weight.sample(rng)) * sign, distance, stp):
                made += 1
        created += made

    return created


def _role_sources(
    topology: Topology,
    pool: PoolLayout,
    role: NeuronRole,
    limit: Optional[int],
    rng: RandomSource,
) -> List[int]:
    sources = topology.neurons_of(pool, role=role)
    rng.shuffle(sources)
    if limit is not None:
        sources = sources[:limit]
    return sources


def connect_pool_internal(
    topology: Topology,
    pool: PoolLayout,
    builder: SynapseBankBuilder,
    dynamics: DynamicsConfig,
    rng: RandomSource,
) -> int:
    """Wire a pool to itself according to its interconnection config.

    Returns:
        Number of synapses created
    """
    cfg = pool.config.interconnection
    total = int(round(pool.size * pool.size * cfg.density))
    created = 0
    for (source_role, target_role), ratio in cfg.ratios.normalized().items():
        count = int(round(ratio * total))
        sources = _role_sources(topology, pool, source_role, cfg.max_source_neurons, rng)
        targets = topology.neurons_of(pool, role=target_role)
        if count > 0 and (not sources or not targets):
            logger.debug(
                f"Pool '{pool.name}' {source_role.value}→{target_role.value}: "
                f"{count} synapses requested but one side is empty, skipped"
            )
            continue
        created += connect_role_pair(
            topology,
            builder,
            sources,
            targets,
            count,
            exclude_self=source_role == target_role and not cfg.allow_self_connection,
            weight=cfg.weight,
            dynamics=dynamics,
            rng=rng,
            avg_distance=cfg.avg_distance,
        )
    return created


def connect_pools(
    topology: Topology,
    rule: PoolConnectionConfig,
    builder: SynapseBankBuilder,
    dynamics: DynamicsConfig,
    rng: RandomSource,
) -> int:
    """Wire one pool to another according to ``rule``.

    Raises:
        ConfigurationError: If either pool does not exist

    Returns:
        Number of synapses created
    """
    source_pool = topology.pool(rule.source_pool)
    target_pool = topology.pool(rule.target_pool)
    same_pool = source_pool.pool_id == target_pool.pool_id
    # A pool wired to itself keeps its distance bias
    avg_distance = source_pool.config.interconnection.avg_distance if same_pool else 0.0

    total_sources = int(round(source_pool.size * rule.source_density))
    per_source = target_pool.size * rule.target_density
    total = int(round(total_sources * per_source))

    created = 0
    ratios: RoleRatios = rule.ratios
    for (source_role, target_role), ratio in ratios.normalized().items():
        count = int(round(ratio * total))
        if count == 0:
            continue
        limit = max(1, int(round(count / per_source)))
        sources = _role_sources(topology, source_pool, source_role, limit, rng)
        targets = topology.neurons_of(target_pool, role=target_role)
        if not sources or not targets:
            logger.debug(
                f"'{source_pool.name}'→'{target_pool.name}' "
                f"{source_role.value}→{target_role.value}: one side is empty, skipped"
            )
            continue
        created += connect_role_pair(
            topology,
            builder,
            sources,
            targets,
            count,
            exclude_self=same_pool and source_role == target_role and not rule.allow_self_connection,
            weight=rule.weight,
            dynamics=dynamics,
            rng=rng,
            avg_distance=avg_distance,
        )
    return created


# =============================================================================
# DELAYS
# =============================================================================


def assign_delays(
    builder: SynapseBankBuilder,
    max_delay: int,
    method: DelayMethod,
    rng: RandomSource,
) -> None:
    """Set the delay of every synapse collected by ``builder``."""
    if max_delay <= 0 or len(builder) == 0:
        return

    if method == DelayMethod.DISTANCE:
        distances = np.asarray(builder.distances, dtype=np.float64)
        low = float(distances.min())
        span = float(distances.max()) - low
        for i, distance in enumerate(distances):
            relative = (distance - low) / span if span > 0 else 0.0
            builder.delays[i] = int(round(max_delay * relative))
    else:
        for i in range(len(builder)):
            builder.delays[i] = rng.integers(0, max_delay + 1)


__all__ = [
    "scope_allows",
    "role_sign",
    "connect_inputs",
    "adjust_analog_input_strength",
    "plan_connection_counts",
    "connect_role_pair",
    "connect_pool_internal",
    "connect_pools",
    "assign_delays",
]
