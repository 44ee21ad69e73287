"""
Tests for target-sorted synapse banks.

Author: Neuropool Project
Date: October 2026
"""

import pytest
import torch

from neuropool.components.synapses.bank import SynapseBankBuilder
from neuropool.components.synapses.dynamics import STPParameters

DEVICE = torch.device("cpu")
DTYPE = torch.float64


def build(builder, spiking=None):
    if spiking is None:
        spiking = [False] * builder.num_targets
    return builder.build(torch.tensor(spiking, dtype=torch.bool), DEVICE, DTYPE)


class TestBuilder:
    def test_duplicates_are_rejected_not_merged(self):
        builder = SynapseBankBuilder(3)
        assert builder.add(0, 1, 0.5)
        assert not builder.add(0, 1, 0.9)
        assert builder.add(1, 0, 0.9)
        assert len(builder) == 2
        assert builder.weights == [0.5, 0.9]
        assert builder.contains(0, 1)
        assert not builder.contains(1, 2)
        assert builder.sources_of(1) == {0}

    def test_target_out_of_range(self):
        with pytest.raises(IndexError):
            SynapseBankBuilder(2).add(0, 2, 1.0)

    def test_build_sorts_by_target(self):
        builder = SynapseBankBuilder(3)
        builder.add(0, 2, 0.1)
        builder.add(1, 0, 0.2)
        builder.add(2, 2, 0.3)
        builder.add(0, 1, 0.4)
        bank = build(builder)
        assert bank.target.tolist() == [0, 1, 2, 2]
        assert bank.source.tolist() == [1, 0, 0, 2]
        assert bank.row_ptr.tolist() == [0, 1, 2, 4]
        assert bank.synapse_range(2, 3) == slice(2, 4)
        assert bank.num_synapses == 4


class TestPropagate:
    def test_weighted_sum_per_target(self):
        builder = SynapseBankBuilder(2)
        builder.add(0, 0, 0.5)
        builder.add(1, 0, -1.0)
        builder.add(1, 1, 2.0)
        bank = build(builder)
        source = torch.tensor([1.0, 0.25], dtype=DTYPE)
        stimuli = bank.propagate(0, 2, source, source)
        torch.testing.assert_close(stimuli, torch.tensor([0.25, 0.5], dtype=DTYPE))

    def test_target_kind_selects_the_signal(self):
        """Spiking targets read the spiking signal, analog targets the analog one."""
        builder = SynapseBankBuilder(2)
        builder.add(0, 0, 1.0)
        builder.add(0, 1, 1.0)
        bank = build(builder, spiking=[False, True])
        analog = torch.tensor([0.3], dtype=DTYPE)
        spikes = torch.tensor([1.0], dtype=DTYPE)
        stimuli = bank.propagate(0, 2, analog, spikes)
        torch.testing.assert_close(stimuli, torch.tensor([0.3, 1.0], dtype=DTYPE))

    def test_target_without_synapses(self):
        builder = SynapseBankBuilder(3)
        builder.add(0, 0, 1.0)
        bank = build(builder)
        source = torch.ones(1, dtype=DTYPE)
        assert bank.propagate(1, 3, source, source).tolist() == [0.0, 0.0]

    def test_unit_impulse_through_delay_of_three(self):
        """Single source, single target, weight 1, delay 3."""
        builder = SynapseBankBuilder(1)
        builder.add(0, 0, 1.0)
        builder.delays[0] = 3
        bank = build(builder)

        received = []
        for cycle in range(6):
            source = torch.tensor([1.0 if cycle == 0 else 0.0], dtype=DTYPE)
            received.append(bank.propagate(0, 1, source, source).item())
            bank.advance()
        assert received == [0.0, 0.0, 0.0, 1.0, 0.0, 0.0]

    def test_partitions_match_full_range(self):
        builder = SynapseBankBuilder(4)
        for source, target, weight in [(0, 0, 0.1), (3, 0, 0.2), (1, 2, 0.3), (2, 3, 0.4), (0, 3, 0.5)]:
            builder.add(source, target, weight)
        bank = build(builder)
        source = torch.tensor([1.0, 2.0, 3.0, 4.0], dtype=DTYPE)
        full = bank.propagate(0, 4, source, source)
        parts = torch.cat([bank.propagate(0, 1, source, source), bank.propagate(1, 4, source, source)])
        torch.testing.assert_close(parts, full)

    def test_dynamic_bank_needs_spike_history(self):
        builder = SynapseBankBuilder(1)
        builder.add(0, 0, 1.0, stp=STPParameters(True, 0.5, 1.0, 3.0))
        bank = build(builder, spiking=[True])
        assert bank.has_dynamics
        source = torch.ones(1, dtype=DTYPE)
        with pytest.raises(ValueError, match="spike history"):
            bank.propagate(0, 1, source, source)


class TestWeights:
    def make_bank(self):
        builder = SynapseBankBuilder(2)
        builder.add(0, 0, 1.0)
        builder.add(1, 0, -2.0)
        builder.add(0, 1, 3.0)
        return build(builder)

    def test_weight_matrix(self):
        matrix = self.make_bank().weight_matrix(2)
        torch.testing.assert_close(matrix, torch.tensor([[1.0, -2.0], [3.0, 0.0]], dtype=DTYPE))

    def test_masked_rescale(self):
        bank = self.make_bank()
        bank.rescale(0.5, bank.target == 0)
        assert bank.weight.tolist() == [0.5, -1.0, 3.0]
        bank.rescale(2.0)
        assert bank.weight.tolist() == [1.0, -2.0, 6.0]


def test_efficacy_statistics():
    builder = SynapseBankBuilder(1)
    builder.add(0, 0, 1.0)
    bank = build(builder)
    torch.testing.assert_close(bank.mean_efficacy(), torch.ones(1, dtype=DTYPE))
    source = torch.ones(1, dtype=DTYPE)
    for _ in range(3):
        bank.propagate(0, 1, source, source, update_statistics=True)
        bank.advance(update_statistics=True)
    assert bank.efficacy_count.item() == 3
    torch.testing.assert_close(bank.mean_efficacy(), torch.ones(1, dtype=DTYPE))
    bank.reset(reset_statistics=True)
    assert bank.efficacy_count.item() == 0
