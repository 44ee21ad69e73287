"""
Spectral Radius Normalizer.

The spectral radius (largest eigenvalue magnitude) of the recurrent weight
matrix controls the memory and stability of the reservoir. This module
estimates it with power iteration and rescales the internal weights so the
radius equals a configured target.

Scopes:
=======
- GLOBAL: all internal synapses (used when analog and spiking targets are
  equal)
- ANALOG / SPIKING: synapses whose target neuron has that activation kind;
  each is normalized separately with its own target

For a scope, the dense N×N matrix W[target, source] is built from the
synapses in scope only (all other entries are zero), its radius |λ| is
estimated, and every in-scope weight is multiplied by target / |λ|.

Estimation:
===========
Plain power iteration converges to |λ| when the dominant eigenvalue is real
and simple. Random sparse reservoirs often have a complex-conjugate
dominant pair, for which the per-step growth ‖W v‖ / ‖v‖ oscillates. The
estimate here is therefore the geometric mean of the per-step growth over
a window of POWER_ITERATION_WINDOW steps, which converges to |λ| in both
cases. The start vector is fixed, and every step is scale-equivariant, so
estimate(c · W) == c · estimate(W).

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Dict, Optional

import torch

from neuropool.components.synapses.bank import SynapseBank
from neuropool.config.reservoir_config import SpectralRadiusConfig
from neuropool.constants import (
    POWER_ITERATION_MAX_STEPS,
    POWER_ITERATION_TOLERANCE,
    POWER_ITERATION_WINDOW,
)
from neuropool.errors import ConfigurationError

logger = logging.getLogger(__name__)

_START_VECTOR_SEED = 20251212


class SpectralScope(Enum):
    """Subset of internal synapses normalized together."""

    GLOBAL = "global"
    ANALOG = "analog"
    SPIKING = "spiking"


def estimate_spectral_radius(
    matrix: torch.Tensor,
    max_steps: int = POWER_ITERATION_MAX_STEPS,
    tolerance: float = POWER_ITERATION_TOLERANCE,
    window: int = POWER_ITERATION_WINDOW,
) -> float:
    """Estimate the largest eigenvalue magnitude of a square matrix.

    Args:
        matrix: Square matrix [n, n]
        max_steps: Upper bound on power iteration steps
        tolerance: Relative change between successive window estimates
            below which iteration stops
        window: Steps per geometric-mean window

    Returns:
        Estimated |λ_max|; 0.0 for a nilpotent (e.g. all-zero) matrix
    """
    if matrix.dim() != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {tuple(matrix.shape)}")
    n = matrix.shape[0]
    if n == 0:
        return 0.0

    generator = torch.Generator(device="cpu").manual_seed(_START_VECTOR_SEED)
    v = torch.rand(n, generator=generator, dtype=torch.float64).to(matrix.device) + 0.5
    work = matrix.to(torch.float64)
    v = v / torch.linalg.vector_norm(v)

    log_growth = []
    previous: Optional[float] = None
    for step in range(max_steps):
        w = work @ v
        norm = float(torch.linalg.vector_norm(w).item())
        if norm == 0.0 or not math.isfinite(norm):
            return 0.0 if norm == 0.0 else float("inf")
        log_growth.append(math.log(norm))
        v = w / norm

        if len(log_growth) >= window and (step + 1) % window == 0:
            estimate = math.exp(sum(log_growth[-window:]) / window)
            if previous is not None and abs(estimate - previous) <= tolerance * estimate:
                return estimate
            previous = estimate

    # No convergence: average over the second half to damp oscillation
    tail = log_growth[len(log_growth) // 2 :]
    return math.exp(sum(tail) / len(tail))


def _scope_mask(bank: SynapseBank, is_spiking: torch.Tensor, scope: SpectralScope) -> torch.Tensor:
    if scope == SpectralScope.GLOBAL:
        return torch.ones(len(bank), dtype=torch.bool, device=bank.weight.device)
    target_spiking = is_spiking[bank.target]
    return target_spiking if scope == SpectralScope.SPIKING else ~target_spiking


def scope_spectral_radius(
    bank: SynapseBank,
    is_spiking: torch.Tensor,
    scope: SpectralScope,
) -> float:
    """Current spectral radius of the scope's weight matrix."""
    mask = _scope_mask(bank, is_spiking, scope)
    return estimate_spectral_radius(bank.weight_matrix(bank.num_targets, mask))


def normalize_scope(
    bank: SynapseBank,
    is_spiking: torch.Tensor,
    scope: SpectralScope,
    target: float,
) -> float:
    """Rescale the synapses of one scope to spectral radius ``target``.

    Returns:
        The applied scale factor

    Raises:
        ConfigurationError: If the scope has no synapses or a zero radius
    """
    mask = _scope_mask(bank, is_spiking, scope)
    if not bool(mask.any()):
        raise ConfigurationError(
            f"Spectral radius scope '{scope.value}' has no internal synapses to normalize"
        )

    radius = estimate_spectral_radius(bank.weight_matrix(bank.num_targets, mask))
    if radius == 0.0 or not math.isfinite(radius):
        raise ConfigurationError(
            f"Spectral radius of scope '{scope.value}' is {radius}; no scale factor exists"
        )

    factor = target / radius
    bank.rescale(factor, mask)
    logger.info(
        f"Spectral radius [{scope.value}]: {radius:.6g} → {target:.6g} (scale {factor:.6g})"
    )
    return factor


def normalize_spectral_radius(
    bank: SynapseBank,
    is_spiking: torch.Tensor,
    config: SpectralRadiusConfig,
) -> Dict[SpectralScope, float]:
    """Apply the configured spectral radius targets to the internal bank.

    Equal analog and spiking targets normalize the whole matrix at once.
    Otherwise each activation kind present in the reservoir is normalized
    with its own target; a None target leaves that kind unscaled.

    Returns:
        Applied scale factor per normalized scope
    """
    factors: Dict[SpectralScope, float] = {}
    if not config.enabled:
        return factors

    has_analog = bool((~is_spiking).any())
    has_spiking = bool(is_spiking.any())

    if config.analog is not None and config.analog == config.spiking:
        factors[SpectralScope.GLOBAL] = normalize_scope(
            bank, is_spiking, SpectralScope.GLOBAL, config.analog
        )
        return factors

    if config.analog is not None and has_analog:
        factors[SpectralScope.ANALOG] = normalize_scope(
            bank, is_spiking, SpectralScope.ANALOG, config.analog
        )
    if config.spiking is not None and has_spiking:
        factors[SpectralScope.SPIKING] = normalize_scope(
            bank, is_spiking, SpectralScope.SPIKING, config.spiking
        )
    return factors


__all__ = [
    "SpectralScope",
    "estimate_spectral_radius",
    "scope_spectral_radius",
    "normalize_scope",
    "normalize_spectral_radius",
]
