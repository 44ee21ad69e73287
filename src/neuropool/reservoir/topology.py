"""
Topology Builder - neurons, groups and 3D placement of every pool.

For each pool, in configuration order:

1. Split the pool size across its neuron groups by relative share
   (``group_counts``), correcting rounding drift so the counts sum to the
   pool size exactly and each stays within ±1 of its exact share.
2. Create one neuron spec per count: role, activation, sampled bias.
3. Give a ``retainment.density`` fraction of every analog group a sampled
   retainment strength (capped below 1).
4. Flag a ``readout_density`` fraction of the pool as predictor neurons.
5. Shuffle all specs, then lay them on the x/y/z grid in nested-loop order,
   so spatial position is independent of generation order.

Predictor neurons are listed in reservoir flat-index order, which is the
order ``copy_predictors_to`` writes them.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from neuropool.components.neurons.population import NeuronPlacement, NeuronSpec
from neuropool.config.activation_config import ActivationKind
from neuropool.config.neuron_config import NeuronGroupConfig, NeuronRole
from neuropool.config.pool_config import PoolConfig
from neuropool.config.reservoir_config import ReservoirConfig
from neuropool.constants import MAX_RETAINMENT_RATE
from neuropool.errors import ConfigurationError
from neuropool.utils.rng import RandomSource

logger = logging.getLogger(__name__)


@dataclass
class GroupLayout:
    """A neuron group as realized in the reservoir."""

    name: str
    group_id: int
    pool_id: int
    config: NeuronGroupConfig
    indices: List[int] = field(default_factory=list)
    """Reservoir flat indices of the group's neurons, ascending."""


@dataclass
class PoolLayout:
    """A pool as realized in the reservoir: a contiguous flat index range."""

    name: str
    pool_id: int
    config: PoolConfig
    start: int
    stop: int
    groups: List[GroupLayout] = field(default_factory=list)

    @property
    def size(self) -> int:
        return self.stop - self.start

    @property
    def indices(self) -> range:
        return range(self.start, self.stop)


@dataclass
class Topology:
    """Output of the topology builder."""

    neurons: List[NeuronSpec]
    pools: List[PoolLayout]
    predictor_indices: List[int]

    @property
    def num_neurons(self) -> int:
        return len(self.neurons)

    @property
    def groups(self) -> List[GroupLayout]:
        return [group for pool in self.pools for group in pool.groups]

    def pool(self, name: str) -> PoolLayout:
        """Pool layout by name.

        Raises:
            ConfigurationError: If no such pool exists
        """
        for layout in self.pools:
            if layout.name == name:
                return layout
        raise ConfigurationError(f"Pool '{name}' does not exist")

    def neurons_of(
        self,
        pool: PoolLayout,
        role: Optional[NeuronRole] = None,
        kind: Optional[ActivationKind] = None,
    ) -> List[int]:
        """Flat indices of a pool's neurons, optionally filtered by role and kind."""
        return [
            i
            for i in pool.indices
            if (role is None or self.neurons[i].role == role)
            and (kind is None or self.neurons[i].kind == kind)
        ]


def group_counts(shares: Sequence[float], size: int) -> List[int]:
    """Split ``size`` into integer counts proportional to ``shares``.

    Counts start at ``round(size × share / total_share)``. While their sum
    differs from ``size`` one unit is moved: from the group whose rounding
    overshoots most when the sum is too large, or to the group that
    undershoots most when it is too small. Ties go to the largest group when
    decrementing and the smallest when incrementing. Every step shrinks the
    drift by one, so the loop terminates.

    Raises:
        ConfigurationError: If shares are empty or non-positive, or a count
            would become negative
    """
    if not shares:
        raise ConfigurationError("Cannot split a pool without neuron groups")
    if any(share <= 0 for share in shares):
        raise ConfigurationError(f"Relative shares must be positive, got {list(shares)}")
    if size < 0:
        raise ConfigurationError(f"Pool size must be >= 0, got {size}")

    total_share = float(sum(shares))
    exact = [size * share / total_share for share in shares]
    counts = [int(round(value)) for value in exact]

    drift = sum(counts) - size
    while drift != 0:
        if drift > 0:
            # Most over-allocated first, then the largest count
            idx = max(range(len(counts)), key=lambda i: (counts[i] - exact[i], counts[i]))
            counts[idx] -= 1
            if counts[idx] < 0:
                raise ConfigurationError(
                    f"Neuron group ratios {list(shares)} cannot be reconciled with size {size}"
                )
            drift -= 1
        else:
            # Most under-allocated first, then the smallest count
            idx = max(range(len(counts)), key=lambda i: (exact[i] - counts[i], -counts[i]))
            counts[idx] += 1
            drift += 1
        logger.debug(f"Group count correction: {counts} (drift {drift})")

    return counts


def _group_specs(
    group: NeuronGroupConfig,
    count: int,
    augmented_states: bool,
    rng: RandomSource,
) -> List[Tuple[int, NeuronSpec]]:
    specs = [
        NeuronSpec(
            role=group.role,
            activation=group.activation,
            bias=group.bias.sample(rng),
            retainment=0.0,
            firing_threshold=group.firing_threshold if group.kind == ActivationKind.ANALOG else 0.0,
            restriction=group.effective_restriction,
            augmented=augmented_states and group.augmented_states,
        )
        for _ in range(count)
    ]

    retainment = group.retainment
    if group.kind == ActivationKind.ANALOG and retainment is not None and retainment.density > 0:
        order = list(range(count))
        rng.shuffle(order)
        for i in order[: int(round(count * retainment.density))]:
            specs[i].retainment = min(retainment.strength.sample(rng), MAX_RETAINMENT_RATE)

    return specs


def build_pool(
    pool: PoolConfig,
    pool_id: int,
    first_group_id: int,
    flat_offset: int,
    augmented_states: bool,
    rng: RandomSource,
) -> Tuple[PoolLayout, List[NeuronSpec]]:
    """Create and place the neurons of one pool.

    Args:
        pool: Pool configuration
        pool_id: Index of the pool in the reservoir
        first_group_id: Reservoir-wide id of the pool's first group
        flat_offset: Reservoir flat index of the pool's first neuron
        augmented_states: Instance-level secondary predictor switch
        rng: Random source

    Returns:
        (layout, specs) with specs in placement order
    """
    size = pool.size
    counts = group_counts([g.relative_share for g in pool.groups], size)

    layout = PoolLayout(
        name=pool.name, pool_id=pool_id, config=pool, start=flat_offset, stop=flat_offset + size
    )
    tagged: List[Tuple[int, NeuronSpec]] = []
    for local_id, (group, count) in enumerate(zip(pool.groups, counts)):
        layout.groups.append(
            GroupLayout(
                name=group.name,
                group_id=first_group_id + local_id,
                pool_id=pool_id,
                config=group,
            )
        )
        tagged.extend(
            (local_id, spec) for spec in _group_specs(group, count, augmented_states, rng)
        )

    # Readout-eligible neurons
    order = list(range(size))
    rng.shuffle(order)
    for i in order[: int(round(size * pool.readout_density))]:
        tagged[i][1].is_predictor = True

    # Position on the grid is independent of generation order
    rng.shuffle(tagged)

    dim_x, dim_y, dim_z = (int(d) for d in pool.dimensions)
    origin_x, origin_y, origin_z = (int(c) for c in pool.origin)
    specs: List[NeuronSpec] = []
    pool_flat = 0
    for x in range(dim_x):
        for y in range(dim_y):
            for z in range(dim_z):
                local_id, spec = tagged[pool_flat]
                group_layout = layout.groups[local_id]
                spec.placement = NeuronPlacement(
                    pool_id=pool_id,
                    group_id=group_layout.group_id,
                    pool_flat_index=pool_flat,
                    reservoir_flat_index=flat_offset + pool_flat,
                    coordinates=(origin_x + x, origin_y + y, origin_z + z),
                )
                group_layout.indices.append(flat_offset + pool_flat)
                specs.append(spec)
                pool_flat += 1

    return layout, specs


def build_topology(config: ReservoirConfig, rng: RandomSource) -> Topology:
    """Create and place the neurons of every pool of ``config``."""
    neurons: List[NeuronSpec] = []
    pools: List[PoolLayout] = []
    group_id = 0
    for pool_id, pool in enumerate(config.pools):
        layout, specs = build_pool(
            pool,
            pool_id=pool_id,
            first_group_id=group_id,
            flat_offset=len(neurons),
            augmented_states=config.augmented_states,
            rng=rng,
        )
        pools.append(layout)
        neurons.extend(specs)
        group_id += len(layout.groups)
        logger.debug(
            f"Pool '{pool.name}': {layout.size} neurons in groups "
            f"{[(g.name, len(g.indices)) for g in layout.groups]}"
        )

    predictor_indices = [i for i, spec in enumerate(neurons) if spec.is_predictor]
    return Topology(neurons=neurons, pools=pools, predictor_indices=predictor_indices)


__all__ = [
    "GroupLayout",
    "PoolLayout",
    "Topology",
    "group_counts",
    "build_pool",
    "build_topology",
]
