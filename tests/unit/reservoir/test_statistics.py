"""
Tests for running statistics and the collected reservoir report.

Author: Neuropool Project
Date: October 2026
"""

import pytest
import torch

from neuropool import Reservoir, ReservoirStat
from neuropool.components.neurons.population import (
    NeuronPlacement,
    NeuronPopulation,
    NeuronSpec,
)
from neuropool.config import (
    DynamicsConfig,
    HealthConfig,
    LeakyIFConfig,
    NeuronRole,
    SignalingRestriction,
    TanhConfig,
)
from neuropool.constants import ANALOG_FIRING_THRESHOLD, FADING_SUM_DECAY
from neuropool.reservoir.statistics import DescriptiveStat, RunningStatistics

DTYPE = torch.float64


def spec(activation, role=NeuronRole.EXCITATORY):
    return NeuronSpec(
        role=role,
        activation=activation,
        bias=0.0,
        retainment=0.0,
        firing_threshold=ANALOG_FIRING_THRESHOLD,
        restriction=SignalingRestriction.NONE,
    )


@pytest.fixture
def population():
    """[always firing LIF, saturating tanh, silent LIF]."""
    specs = [
        spec(LeakyIFConfig(refractory_periods=0)),
        spec(TanhConfig()),
        spec(LeakyIFConfig()),
    ]
    for i, s in enumerate(specs):
        s.placement = NeuronPlacement(0, 0, i, i, (i, 0, 0))
    return NeuronPopulation(specs, torch.device("cpu"), DTYPE)


def run(population, stats, stimulation, cycles):
    for _ in range(cycles):
        population.input_stimuli.copy_(torch.tensor(stimulation, dtype=DTYPE))
        population.recompute(0, population.size)
        stats.update(population, 0, population.size)
        stats.end_cycle()


class TestDescriptiveStat:
    def test_of_values(self):
        stat = DescriptiveStat.of(torch.tensor([1.0, 2.0, 3.0, 4.0]))
        assert stat.count == 4
        assert stat.min == 1.0
        assert stat.max == 4.0
        assert stat.span == 3.0
        assert stat.mean == pytest.approx(2.5)
        assert stat.std == pytest.approx(1.118033988749895)

    def test_of_empty(self):
        stat = DescriptiveStat.of(torch.zeros(0))
        assert stat.count == 0
        assert stat.mean == 0.0

    def test_integer_samples(self):
        assert DescriptiveStat.of(torch.tensor([0, 3])).mean == 1.5


class TestRunningStatistics:
    def test_health_masks(self, population):
        stats = RunningStatistics(population.size, torch.device("cpu"), DTYPE)
        run(population, stats, [2.0, 100.0, 0.0], cycles=10)

        masks = stats.health_masks(population)
        assert masks["constantly_firing"].tolist() == [True, False, False]
        assert masks["saturated"].tolist() == [False, True, False]
        assert masks["silent"].tolist() == [False, False, True]

    def test_no_cycles_means_healthy(self, population):
        stats = RunningStatistics(population.size, torch.device("cpu"), DTYPE)
        masks = stats.health_masks(population)
        assert not any(mask.any() for mask in masks.values())

    def test_means_and_span(self, population):
        stats = RunningStatistics(population.size, torch.device("cpu"), DTYPE)
        run(population, stats, [0.0, 0.5, 0.0], cycles=2)
        run(population, stats, [0.0, 1.5, 0.0], cycles=2)

        assert stats.num_cycles == 4
        assert stats.mean("input_stimuli")[1].item() == pytest.approx(1.0)
        # tanh state follows its stimulation directly when nothing is retained
        low, high = torch.tanh(torch.tensor([0.5, 1.5], dtype=DTYPE)).tolist()
        assert stats.state_min[1].item() == pytest.approx(low)
        assert stats.state_max[1].item() == pytest.approx(high)

    def test_reset(self, population):
        stats = RunningStatistics(population.size, torch.device("cpu"), DTYPE)
        run(population, stats, [2.0, 100.0, 0.0], cycles=3)
        stats.reset()
        assert stats.num_cycles == 0
        assert not stats.spike_count.any()
        assert not stats.input_stimuli_sum.any()

    def test_custom_thresholds(self, population):
        health = HealthConfig(constant_firing_ratio=0.5)
        stats = RunningStatistics(population.size, torch.device("cpu"), DTYPE, health)
        # The default LIF fires every other cycle with one refractory cycle
        run(population, stats, [0.0, 0.0, 2.0], cycles=10)
        assert stats.health_masks(population)["constantly_firing"][2]


class TestCollectStatistics:
    @pytest.fixture
    def reservoir(self, mixed_config, seed, input_sequence):
        reservoir = Reservoir(mixed_config, rng=seed)
        for x in input_sequence:
            reservoir.compute(x)
        return reservoir

    @pytest.fixture
    def report(self, reservoir) -> ReservoirStat:
        return reservoir.collect_statistics()

    def test_shape(self, reservoir, report):
        assert report.num_neurons == reservoir.num_neurons
        assert report.num_predictors == reservoir.num_predictors
        assert report.num_cycles == 20
        assert [pool.name for pool in report.pools] == ["P1", "S1"]
        for pool in report.pools:
            assert [group.name for group in pool.groups] == ["exc", "inh"]
            assert sum(group.num_neurons for group in pool.groups) == pool.num_neurons
        assert sum(pool.num_neurons for pool in report.pools) == report.num_neurons

    def test_bank_reports(self, reservoir, report):
        assert report.input_synapses.name == "input"
        assert report.input_synapses.num_synapses == len(reservoir.input_synapses)
        assert report.internal_synapses.num_synapses == len(reservoir.internal_synapses)
        assert report.internal_synapses.delays.max <= 3
        assert report.input_synapses.delays.max <= 2

    def test_static_synapses_have_unit_efficacy(self, report):
        assert report.internal_synapses.efficacy.min == pytest.approx(1.0)
        assert report.internal_synapses.efficacy.max == pytest.approx(1.0)

    def test_health_fractions_are_fractions(self, report):
        for stat in [report] + report.pools:
            for value in vars(stat.health).values():
                assert 0.0 <= value <= 1.0

    def test_firing_rates(self, report):
        for pool in report.pools:
            assert 0.0 <= pool.firing_rate.min <= pool.firing_rate.max <= 1.0

    def test_spectral_scales(self, report):
        assert set(report.spectral_scales) == {"analog", "spiking"}
        assert all(factor > 0 for factor in report.spectral_scales.values())

    def test_pool_weight_stats(self, reservoir, report):
        analog_pool = report.pools[0]
        in_pool = reservoir.internal_synapses.target < analog_pool.num_neurons
        assert analog_pool.internal_weights.count == int(in_pool.sum())


def test_dynamic_synapses_report_mean_efficacy(mixed_config, seed, input_sequence):
    mixed_config.synapse.dynamics = DynamicsConfig(enabled=True)
    reservoir = Reservoir(mixed_config, rng=seed)
    for x in input_sequence:
        reservoir.compute(x)
    efficacy = reservoir.collect_statistics().internal_synapses.efficacy
    assert efficacy.count == len(reservoir.internal_synapses)
    assert 0.0 < efficacy.min <= efficacy.max


def test_report_after_reset_is_empty(small_config, seed):
    reservoir = Reservoir(small_config, rng=seed)
    reservoir.compute([1.0])
    reservoir.reset()
    report = reservoir.collect_statistics()
    assert report.num_cycles == 0
    assert report.health.silent == 0.0
    assert report.pools[0].activation.mean == 0.0


def test_fading_sum_follows_statistics_reset(small_config, seed):
    reservoir = Reservoir(small_config, rng=seed)
    for x in [1.0, 0.5, -0.5]:
        reservoir.compute([x])
    fading = reservoir.statistics.fading_sum.clone()
    assert fading.abs().sum() > 0
    reported = reservoir.collect_statistics().pools[0].fading_sum

    reservoir.reset(reset_statistics=False)
    torch.testing.assert_close(reservoir.statistics.fading_sum, fading)
    assert reservoir.collect_statistics().pools[0].fading_sum == reported

    reservoir.reset(reset_statistics=True)
    assert not reservoir.statistics.fading_sum.any()


def test_fading_sum_decays(population):
    stats = RunningStatistics(population.size, torch.device("cpu"), DTYPE)
    run(population, stats, [0.0, 0.5, 0.0], cycles=1)
    state = population.activation_state[1].item()
    run(population, stats, [0.0, 0.5, 0.0], cycles=1)
    assert stats.fading_sum[1].item() == pytest.approx(state * (1.0 - FADING_SUM_DECAY) + state)
