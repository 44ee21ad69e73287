"""
Tests for spectral radius estimation and normalization.

Author: Neuropool Project
Date: October 2026
"""

import pytest
import torch

from neuropool import ConfigurationError, Reservoir
from neuropool.components.synapses.bank import SynapseBankBuilder
from neuropool.config import SpectralRadiusConfig
from neuropool.reservoir.spectral import (
    SpectralScope,
    estimate_spectral_radius,
    normalize_scope,
    normalize_spectral_radius,
    scope_spectral_radius,
)

DTYPE = torch.float64


def true_radius(matrix):
    return torch.linalg.eigvals(matrix).abs().max().item()


class TestEstimate:
    def test_diagonal(self):
        matrix = torch.diag(torch.tensor([3.0, -1.0, 0.5], dtype=DTYPE))
        assert estimate_spectral_radius(matrix) == pytest.approx(3.0, rel=1e-6)

    def test_positive_matrix_matches_eigenvalues(self):
        matrix = torch.rand(20, 20, dtype=DTYPE)
        assert estimate_spectral_radius(matrix) == pytest.approx(true_radius(matrix), rel=1e-6)

    def test_complex_dominant_pair(self):
        """Rotation-scaling: |λ| = 2 although W v never aligns with v."""
        matrix = torch.tensor([[0.0, -2.0], [2.0, 0.0]], dtype=DTYPE)
        assert estimate_spectral_radius(matrix) == pytest.approx(2.0, rel=1e-6)

    def test_zero_and_nilpotent(self):
        assert estimate_spectral_radius(torch.zeros(4, 4, dtype=DTYPE)) == 0.0
        nilpotent = torch.tensor([[0.0, 1.0], [0.0, 0.0]], dtype=DTYPE)
        assert estimate_spectral_radius(nilpotent) == 0.0

    def test_scale_equivariant(self):
        matrix = torch.randn(15, 15, dtype=DTYPE)
        base = estimate_spectral_radius(matrix)
        assert estimate_spectral_radius(0.25 * matrix) == pytest.approx(0.25 * base, rel=1e-9)

    def test_empty_and_non_square(self):
        assert estimate_spectral_radius(torch.zeros(0, 0, dtype=DTYPE)) == 0.0
        with pytest.raises(ValueError, match="square"):
            estimate_spectral_radius(torch.zeros(2, 3, dtype=DTYPE))


def ring_bank(n, weight=1.0):
    """Directed ring 0 → 1 → ... → n-1 → 0 (spectral radius = |weight|)."""
    builder = SynapseBankBuilder(n)
    for i in range(n):
        builder.add(i, (i + 1) % n, weight)
    return builder.build(torch.zeros(n, dtype=torch.bool), torch.device("cpu"), DTYPE)


class TestNormalizeScope:
    def test_ring_is_rescaled(self):
        bank = ring_bank(5, weight=2.0)
        is_spiking = torch.zeros(5, dtype=torch.bool)
        factor = normalize_scope(bank, is_spiking, SpectralScope.GLOBAL, 0.5)
        assert factor == pytest.approx(0.25, rel=1e-6)
        torch.testing.assert_close(bank.weight, torch.full((5,), 0.5, dtype=DTYPE))

    def test_empty_scope_is_a_configuration_error(self):
        bank = ring_bank(3)
        is_spiking = torch.zeros(3, dtype=torch.bool)
        with pytest.raises(ConfigurationError, match="no internal synapses"):
            normalize_scope(bank, is_spiking, SpectralScope.SPIKING, 1.0)

    def test_zero_radius_is_a_configuration_error(self):
        builder = SynapseBankBuilder(2)
        builder.add(0, 1, 1.0)
        bank = builder.build(torch.zeros(2, dtype=torch.bool), torch.device("cpu"), DTYPE)
        with pytest.raises(ConfigurationError, match="no scale factor"):
            normalize_scope(bank, torch.zeros(2, dtype=torch.bool), SpectralScope.GLOBAL, 1.0)

    def test_disabled_config_changes_nothing(self):
        bank = ring_bank(4, weight=3.0)
        factors = normalize_spectral_radius(bank, torch.zeros(4, dtype=torch.bool), SpectralRadiusConfig())
        assert factors == {}
        assert (bank.weight == 3.0).all()


class TestReservoirNormalization:
    """The re-estimated radius after construction equals the target."""

    def test_analog_target(self, small_config, seed):
        small_config.spectral_radius = SpectralRadiusConfig(analog=0.9)
        reservoir = Reservoir(small_config, rng=seed)
        assert set(reservoir.spectral_scales) == {SpectralScope.ANALOG}
        radius = scope_spectral_radius(
            reservoir.internal_synapses, reservoir.neurons.is_spiking, SpectralScope.ANALOG
        )
        assert radius == pytest.approx(0.9, rel=1e-3)

    def test_separate_targets_per_kind(self, mixed_config, seed):
        reservoir = Reservoir(mixed_config, rng=seed)
        assert set(reservoir.spectral_scales) == {SpectralScope.ANALOG, SpectralScope.SPIKING}
        bank, is_spiking = reservoir.internal_synapses, reservoir.neurons.is_spiking
        assert scope_spectral_radius(bank, is_spiking, SpectralScope.ANALOG) == pytest.approx(
            0.9, rel=1e-3
        )
        assert scope_spectral_radius(bank, is_spiking, SpectralScope.SPIKING) == pytest.approx(
            1.2, rel=1e-3
        )

    def test_equal_targets_normalize_globally(self, mixed_config, seed):
        mixed_config.spectral_radius = SpectralRadiusConfig(analog=1.1, spiking=1.1)
        reservoir = Reservoir(mixed_config, rng=seed)
        assert set(reservoir.spectral_scales) == {SpectralScope.GLOBAL}
        radius = scope_spectral_radius(
            reservoir.internal_synapses, reservoir.neurons.is_spiking, SpectralScope.GLOBAL
        )
        assert radius == pytest.approx(1.1, rel=1e-3)

    def test_absent_kind_is_skipped(self, small_config, seed):
        small_config.spectral_radius = SpectralRadiusConfig(analog=0.8, spiking=1.5)
        reservoir = Reservoir(small_config, rng=seed)
        assert set(reservoir.spectral_scales) == {SpectralScope.ANALOG}

    def test_pool_without_synapses_fails(self, small_config, seed):
        small_config.pools[0].interconnection.density = 0.0
        small_config.spectral_radius = SpectralRadiusConfig(analog=0.9)
        with pytest.raises(ConfigurationError):
            Reservoir(small_config, rng=seed)

    def test_rescaling_keeps_signs(self, small_config, seed):
        unscaled = Reservoir(small_config, rng=seed).internal_synapses.weight
        small_config.spectral_radius = SpectralRadiusConfig(analog=0.5)
        scaled = Reservoir(small_config, rng=seed)
        factor = scaled.spectral_scales[SpectralScope.ANALOG]
        assert factor > 0
        torch.testing.assert_close(scaled.internal_synapses.weight, unscaled * factor)
