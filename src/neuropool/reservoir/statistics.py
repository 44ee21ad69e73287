"""
Reservoir statistics and health fractions.

RunningStatistics accumulates per-neuron sums over the cycles computed with
``update_statistics=True``. ``collect_statistics`` turns them (and the
synapse banks) into a ReservoirStat report with:

- descriptive stats of activation state, stimulation and signals per pool
  and per neuron group
- firing rates and health fractions: silent, saturated and constantly
  firing neurons
- a fading sum of each neuron's activation state (decay
  FADING_SUM_DECAY per cycle)
- weight, delay and mean-efficacy distributions of both synapse banks

Health fractions:
=================
- silent: a neuron that never fired during the collected cycles
- constantly firing: fired on at least ``constant_firing_ratio`` of cycles
- saturated (analog only): analog signal within ``saturation_margin`` of 0
  or 1 on at least ``saturation_ratio`` of cycles

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import torch
import torch.nn as nn

from neuropool.components.neurons.population import NeuronPopulation
from neuropool.components.synapses.bank import SynapseBank
from neuropool.config.reservoir_config import HealthConfig
from neuropool.constants import FADING_SUM_DECAY

_TRACKED = ("activation_state", "input_stimuli", "reservoir_stimuli", "total_stimuli", "analog_signal")


@dataclass
class DescriptiveStat:
    """Summary of a set of samples."""

    count: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    std: float = 0.0

    @property
    def span(self) -> float:
        return self.max - self.min

    @classmethod
    def of(cls, values: torch.Tensor) -> DescriptiveStat:
        values = values.detach().reshape(-1).to(torch.float64)
        if values.numel() == 0:
            return cls()
        return cls(
            count=values.numel(),
            min=float(values.min().item()),
            max=float(values.max().item()),
            mean=float(values.mean().item()),
            std=float(values.std(unbiased=False).item()),
        )


@dataclass
class HealthStat:
    """Fractions of unhealthy neurons in a set."""

    silent: float = 0.0
    saturated: float = 0.0
    constantly_firing: float = 0.0


@dataclass
class NeuronSetStat:
    """Statistics of a set of neurons (a group or a pool)."""

    name: str
    num_neurons: int
    activation: DescriptiveStat
    """Per-neuron mean activation state."""

    activation_span: DescriptiveStat
    """Per-neuron max - min activation state."""

    input_stimuli: DescriptiveStat
    reservoir_stimuli: DescriptiveStat
    total_stimuli: DescriptiveStat
    analog_signal: DescriptiveStat
    firing_rate: DescriptiveStat
    fading_sum: DescriptiveStat
    health: HealthStat


@dataclass
class PoolStat(NeuronSetStat):
    groups: List[NeuronSetStat] = field(default_factory=list)
    input_weights: DescriptiveStat = field(default_factory=DescriptiveStat)
    """Weights of input synapses targeting the pool."""

    internal_weights: DescriptiveStat = field(default_factory=DescriptiveStat)
    """Weights of internal synapses targeting the pool."""


@dataclass
class BankStat:
    """Statistics of a synapse bank."""

    name: str
    num_synapses: int
    weights: DescriptiveStat
    delays: DescriptiveStat
    efficacy: DescriptiveStat
    """Per-synapse mean efficacy over the collected cycles."""


@dataclass
class ReservoirStat:
    """Aggregate report returned by ``Reservoir.collect_statistics``."""

    num_neurons: int
    num_predictors: int
    num_cycles: int
    pools: List[PoolStat]
    input_synapses: BankStat
    internal_synapses: BankStat
    health: HealthStat
    spectral_scales: Dict[str, float] = field(default_factory=dict)


class RunningStatistics(nn.Module):
    """Per-neuron running sums over simulation cycles.

    Args:
        size: Number of neurons
        device: Torch device
        dtype: Floating point dtype
        health: Thresholds for the saturation test
    """

    def __init__(
        self,
        size: int,
        device: torch.device,
        dtype: torch.dtype,
        health: Optional[HealthConfig] = None,
    ):
        super().__init__()
        self.size = size
        self.health = health or HealthConfig()
        for name in _TRACKED:
            self.register_buffer(f"{name}_sum", torch.zeros(size, dtype=dtype, device=device))
        self.register_buffer("state_min", torch.zeros(size, dtype=dtype, device=device))
        self.register_buffer("state_max", torch.zeros(size, dtype=dtype, device=device))
        self.register_buffer("spike_count", torch.zeros(size, dtype=torch.long, device=device))
        self.register_buffer("saturated_count", torch.zeros(size, dtype=torch.long, device=device))
        self.register_buffer("fading_sum", torch.zeros(size, dtype=dtype, device=device))
        self.num_cycles = 0

    def reset(self) -> None:
        for name in _TRACKED:
            getattr(self, f"{name}_sum").zero_()
        self.state_min.zero_()
        self.state_max.zero_()
        self.spike_count.zero_()
        self.saturated_count.zero_()
        self.fading_sum.zero_()
        self.num_cycles = 0

    def update(self, neurons: NeuronPopulation, start: int, stop: int) -> None:
        """Accumulate the just-settled state of neurons [start, stop)."""
        sl = slice(start, stop)
        for name in _TRACKED:
            getattr(self, f"{name}_sum")[sl] += getattr(neurons, name)[sl]

        state = neurons.activation_state[sl]
        if self.num_cycles == 0:
            self.state_min[sl] = state
            self.state_max[sl] = state
        else:
            self.state_min[sl] = torch.minimum(self.state_min[sl], state)
            self.state_max[sl] = torch.maximum(self.state_max[sl], state)

        self.spike_count[sl] += (neurons.spiking_signal[sl] > 0).long()
        signal = neurons.analog_signal[sl]
        margin = self.health.saturation_margin
        saturated = ~neurons.is_spiking[sl] & ((signal <= margin) | (signal >= 1.0 - margin))
        self.saturated_count[sl] += saturated.long()
        self.fading_sum[sl] = self.fading_sum[sl] * (1.0 - FADING_SUM_DECAY) + state

    def end_cycle(self) -> None:
        """Count one completed cycle (call after all partitions updated)."""
        self.num_cycles += 1

    def mean(self, name: str) -> torch.Tensor:
        total = getattr(self, f"{name}_sum")
        return total / max(self.num_cycles, 1)

    def health_masks(self, neurons: NeuronPopulation) -> Dict[str, torch.Tensor]:
        """Boolean per-neuron masks of the three health conditions."""
        cycles = self.num_cycles
        if cycles == 0:
            empty = torch.zeros(self.size, dtype=torch.bool, device=self.spike_count.device)
            return {"silent": empty, "saturated": empty, "constantly_firing": empty}
        rate = self.spike_count.double() / cycles
        saturated_rate = self.saturated_count.double() / cycles
        return {
            "silent": self.spike_count == 0,
            "saturated": ~neurons.is_spiking & (saturated_rate >= self.health.saturation_ratio),
            "constantly_firing": rate >= self.health.constant_firing_ratio,
        }


def _health_of(masks: Dict[str, torch.Tensor], index: torch.Tensor) -> HealthStat:
    if index.numel() == 0:
        return HealthStat()
    return HealthStat(
        silent=float(masks["silent"][index].double().mean().item()),
        saturated=float(masks["saturated"][index].double().mean().item()),
        constantly_firing=float(masks["constantly_firing"][index].double().mean().item()),
    )


def neuron_set_stat(
    name: str,
    index: torch.Tensor,
    stats: RunningStatistics,
    masks: Dict[str, torch.Tensor],
) -> NeuronSetStat:
    """Statistics of the neurons at ``index``."""
    cycles = max(stats.num_cycles, 1)
    return NeuronSetStat(
        name=name,
        num_neurons=index.numel(),
        activation=DescriptiveStat.of(stats.mean("activation_state")[index]),
        activation_span=DescriptiveStat.of((stats.state_max - stats.state_min)[index]),
        input_stimuli=DescriptiveStat.of(stats.mean("input_stimuli")[index]),
        reservoir_stimuli=DescriptiveStat.of(stats.mean("reservoir_stimuli")[index]),
        total_stimuli=DescriptiveStat.of(stats.mean("total_stimuli")[index]),
        analog_signal=DescriptiveStat.of(stats.mean("analog_signal")[index]),
        firing_rate=DescriptiveStat.of(stats.spike_count[index].double() / cycles),
        fading_sum=DescriptiveStat.of(stats.fading_sum[index]),
        health=_health_of(masks, index),
    )


def bank_stat(bank: SynapseBank) -> BankStat:
    return BankStat(
        name=bank.name,
        num_synapses=len(bank),
        weights=DescriptiveStat.of(bank.weight),
        delays=DescriptiveStat.of(bank.delay),
        efficacy=DescriptiveStat.of(bank.mean_efficacy()),
    )


__all__ = [
    "DescriptiveStat",
    "HealthStat",
    "NeuronSetStat",
    "PoolStat",
    "BankStat",
    "ReservoirStat",
    "RunningStatistics",
    "neuron_set_stat",
    "bank_stat",
]
