"""
Tests for the vectorized activation table.

Analog functions are checked against their closed forms; spiking models
against hand-computed membrane trajectories.

Author: Neuropool Project
Date: October 2026
"""

import pytest
import torch

from neuropool.components.neurons.activation import STIMULI_BOUND, ActivationTable
from neuropool.config import (
    ElliotConfig,
    IzhikevichConfig,
    LeakyIFConfig,
    SigmoidConfig,
    SimpleIFConfig,
    TanhConfig,
)

DEVICE = torch.device("cpu")
DTYPE = torch.float64


def make_table(*configs):
    return ActivationTable(list(configs), DEVICE, DTYPE)


def run(table, stimulation, cycles):
    """Drive every neuron with a constant stimulation; return the spike trains."""
    x = torch.full((table.size,), stimulation, dtype=DTYPE)
    outputs = []
    for _ in range(cycles):
        output, _ = table.compute(x, slice(0, table.size))
        outputs.append(output.clone())
    return torch.stack(outputs)


class TestAnalogFunctions:
    def test_closed_forms(self):
        table = make_table(TanhConfig(steepness=2.0), SigmoidConfig(), ElliotConfig())
        x = torch.tensor([0.3, -1.2, 0.5], dtype=DTYPE)
        output, state = table.compute(x, slice(0, 3))

        expected = torch.stack(
            [
                torch.tanh(torch.tensor(0.6, dtype=DTYPE)),
                torch.sigmoid(torch.tensor(-1.2, dtype=DTYPE)),
                torch.tensor(0.5 / 1.5, dtype=DTYPE),
            ]
        )
        torch.testing.assert_close(output, expected)
        torch.testing.assert_close(state, expected)

    def test_output_ranges(self):
        table = make_table(TanhConfig(), SigmoidConfig(), ElliotConfig())
        low, high = table.output_range(slice(0, 3))
        torch.testing.assert_close(low, torch.tensor([-1.0, 0.0, -1.0], dtype=DTYPE))
        torch.testing.assert_close(high, torch.tensor([1.0, 1.0, 1.0], dtype=DTYPE))

    def test_extreme_stimulation_stays_finite(self):
        table = make_table(TanhConfig(), SigmoidConfig(), ElliotConfig())
        x = torch.tensor([float("inf"), -float("inf"), 10 * STIMULI_BOUND], dtype=DTYPE)
        output, _ = table.compute(x, slice(0, 3))
        assert torch.isfinite(output).all()

    def test_slice_evaluation(self):
        """Only the slice's parameters are used."""
        table = make_table(TanhConfig(steepness=1.0), TanhConfig(steepness=3.0))
        output, _ = table.compute(torch.tensor([0.2], dtype=DTYPE), slice(1, 2))
        torch.testing.assert_close(output, torch.tanh(torch.tensor([0.6], dtype=DTYPE)))


class TestLeakyIF:
    def test_strong_input_fires_every_other_cycle(self):
        """One refractory cycle after every spike."""
        table = make_table(LeakyIFConfig())
        spikes = run(table, 2.0, 6)[:, 0]
        assert spikes.tolist() == [1.0, 0.0, 1.0, 0.0, 1.0, 0.0]

    def test_no_refractory_period_fires_every_cycle(self):
        table = make_table(LeakyIFConfig(refractory_periods=0))
        spikes = run(table, 2.0, 4)[:, 0]
        assert spikes.tolist() == [1.0, 1.0, 1.0, 1.0]

    def test_leaky_integration_reaches_threshold(self):
        """v - rest: 7.5 → 14.25 → 20.325 with retention 0.9 and R·x = 7.5."""
        table = make_table(LeakyIFConfig())
        spikes = run(table, 0.5, 3)[:, 0]
        assert spikes.tolist() == [0.0, 0.0, 1.0]

    def test_state_is_normalized_membrane(self):
        table = make_table(LeakyIFConfig())
        _, state = table.compute(torch.tensor([0.5], dtype=DTYPE), slice(0, 1))
        # (-62.5 - -70) / (-50 - -70)
        assert state.item() == pytest.approx(0.375)

    def test_reset_returns_to_rest(self):
        table = make_table(LeakyIFConfig())
        run(table, 0.5, 2)
        table.reset()
        assert table.membrane.item() == -70.0
        assert not table.in_refractory.any()


class TestSimpleIF:
    def test_membrane_clamped_at_threshold_on_spike(self):
        table = make_table(SimpleIFConfig())
        output, state = table.compute(torch.tensor([2.0], dtype=DTYPE), slice(0, 1))
        assert output.item() == 1.0
        assert table.membrane.item() == 20.0
        assert state.item() == 1.0

    def test_reset_potential_after_spike(self):
        table = make_table(SimpleIFConfig(refractory_periods=0))
        table.compute(torch.tensor([2.0], dtype=DTYPE), slice(0, 1))
        table.compute(torch.tensor([0.0], dtype=DTYPE), slice(0, 1))
        # Reset to 5, then decays toward rest 0 by 5%
        assert table.membrane.item() == pytest.approx(4.75)


class TestIzhikevich:
    def test_rest_is_an_equilibrium(self):
        table = make_table(IzhikevichConfig())
        spikes = run(table, 0.0, 50)
        assert spikes.sum().item() == 0.0
        assert table.membrane.item() == pytest.approx(-70.0)

    def test_driven_neuron_spikes(self):
        table = make_table(IzhikevichConfig())
        spikes = run(table, 1.0, 50)
        assert spikes.sum().item() >= 1.0

    def test_recovery_jumps_after_spike(self):
        table = make_table(IzhikevichConfig(refractory_periods=0))
        x = torch.tensor([1.0], dtype=DTYPE)
        for _ in range(50):
            before = table.recovery.clone()
            output, _ = table.compute(x, slice(0, 1))
            if output.item() == 1.0:
                assert table.recovery.item() > before.item() + 7.0
                break
        else:
            pytest.fail("Izhikevich neuron never fired")


def test_mixed_table_keeps_kinds_apart():
    """Analog neurons are untouched by the spiking update and vice versa."""
    table = make_table(TanhConfig(), LeakyIFConfig(), SigmoidConfig())
    output, state = table.compute(torch.tensor([0.5, 2.0, 0.5], dtype=DTYPE), slice(0, 3))
    assert output[0].item() == pytest.approx(torch.tanh(torch.tensor(0.5)).item())
    assert output[1].item() == 1.0
    assert output[2].item() == pytest.approx(torch.sigmoid(torch.tensor(0.5)).item())
    assert state[1].item() == 1.0
    assert table.membrane[0].item() == 0.0
