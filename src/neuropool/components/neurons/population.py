"""
Neuron Population - struct-of-arrays storage of every reservoir neuron.

The reservoir owns its neurons once, in a flat array. Neuron ``i`` is row
``i`` of every tensor below; pools, groups, predictor lists and synapse
banks refer to neurons by that integer index only.

State machine per cycle: Idle → Stimulated (input/reservoir stimuli
accumulated by the synapse banks) → Settled (``recompute``). A neuron never
sees another neuron's new state within the same cycle.

Signals:
- analog_signal: activation state rescaled from the function's output
  range to [0, 1] (analog neurons) or the spike (spiking neurons)
- spiking_signal: 1.0 on a firing event, else 0.0. Analog neurons fire when
  their analog signal rises by more than their firing threshold.
- analog_output / spiking_output: what an analog / spiking target reads
  from this neuron, after the signaling restriction is applied

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import torch
import torch.nn as nn

from neuropool.components.neurons.activation import STIMULI_BOUND, ActivationTable
from neuropool.components.neurons.predictors import PredictorTracker
from neuropool.config.activation_config import ActivationConfig, ActivationKind
from neuropool.config.neuron_config import NeuronRole, SignalingRestriction


@dataclass
class NeuronPlacement:
    """Where a neuron sits. Immutable once the topology is built."""

    pool_id: int
    group_id: int
    """Reservoir-wide neuron group index."""

    pool_flat_index: int
    reservoir_flat_index: int
    coordinates: Tuple[int, int, int]
    """Reservoir coordinates (pool origin + grid cell)."""


@dataclass
class NeuronSpec:
    """Creation parameters of one neuron, produced by the topology builder."""

    role: NeuronRole
    activation: ActivationConfig
    bias: float
    retainment: float
    firing_threshold: float
    restriction: SignalingRestriction
    is_predictor: bool = False
    augmented: bool = False
    placement: Optional[NeuronPlacement] = None

    @property
    def kind(self) -> ActivationKind:
        return self.activation.kind


class NeuronPopulation(nn.Module):
    """All hidden neurons of a reservoir as flat tensors.

    Args:
        specs: Placed neuron specs in reservoir flat-index order
        device: Torch device
        dtype: Floating point dtype
    """

    def __init__(
        self,
        specs: Sequence[NeuronSpec],
        device: torch.device,
        dtype: torch.dtype,
    ):
        super().__init__()
        for i, spec in enumerate(specs):
            if spec.placement is None or spec.placement.reservoir_flat_index != i:
                raise ValueError(f"Neuron spec {i} is not placed at flat index {i}")

        self.size = len(specs)
        self.dtype = dtype

        def as_tensor(values, tensor_dtype):
            return torch.tensor(values, dtype=tensor_dtype, device=device)

        # Static attributes
        self.register_buffer(
            "is_inhibitory",
            as_tensor([s.role == NeuronRole.INHIBITORY for s in specs], torch.bool),
        )
        self.register_buffer(
            "is_spiking",
            as_tensor([s.kind == ActivationKind.SPIKING for s in specs], torch.bool),
        )
        self.register_buffer(
            "analog_only",
            as_tensor([s.restriction == SignalingRestriction.ANALOG_ONLY for s in specs], torch.bool),
        )
        self.register_buffer(
            "spiking_only",
            as_tensor([s.restriction == SignalingRestriction.SPIKING_ONLY for s in specs], torch.bool),
        )
        self.register_buffer("bias", as_tensor([s.bias for s in specs], dtype))
        self.register_buffer("retainment", as_tensor([s.retainment for s in specs], dtype))
        self.register_buffer(
            "firing_threshold", as_tensor([s.firing_threshold for s in specs], dtype)
        )
        self.register_buffer(
            "coordinates",
            as_tensor([list(s.placement.coordinates) for s in specs], torch.long).reshape(-1, 3),
        )
        self.register_buffer("pool_id", as_tensor([s.placement.pool_id for s in specs], torch.long))
        self.register_buffer("group_id", as_tensor([s.placement.group_id for s in specs], torch.long))

        self.activation = ActivationTable([s.activation for s in specs], device, dtype)
        self.predictors = PredictorTracker(self.size, self.is_spiking, device, dtype)

        # Dynamic state
        for name in (
            "activation_state",
            "analog_signal",
            "spiking_signal",
            "analog_output",
            "spiking_output",
            "input_stimuli",
            "reservoir_stimuli",
            "total_stimuli",
        ):
            self.register_buffer(name, torch.zeros(self.size, dtype=dtype, device=device))
        self.register_buffer("spike_leak", torch.zeros(self.size, dtype=torch.long, device=device))
        self.register_buffer(
            "after_first_spike", torch.zeros(self.size, dtype=torch.bool, device=device)
        )

    def __len__(self) -> int:
        return self.size

    def reset(self) -> None:
        """Zero all dynamic state; static attributes are untouched."""
        self.activation_state.zero_()
        self.analog_signal.zero_()
        self.spiking_signal.zero_()
        self.analog_output.zero_()
        self.spiking_output.zero_()
        self.input_stimuli.zero_()
        self.reservoir_stimuli.zero_()
        self.total_stimuli.zero_()
        self.spike_leak.zero_()
        self.after_first_spike.zero_()
        self.activation.reset()
        self.predictors.reset()

    def recompute(self, start: int, stop: int) -> None:
        """Settle neurons [start, stop) from their accumulated stimulation.

        Reads only the slice's own state, so disjoint slices may be
        recomputed concurrently.
        """
        sl = slice(start, stop)
        total = self.input_stimuli[sl] + self.reservoir_stimuli[sl] + self.bias[sl]
        total = total.clamp(-STIMULI_BOUND, STIMULI_BOUND)
        self.total_stimuli[sl] = total

        # Cycles since the last spike, used by short-term plasticity
        fired = self.spiking_signal[sl] > 0
        self.after_first_spike[sl] = self.after_first_spike[sl] | fired
        leak = self.spike_leak[sl]
        self.spike_leak[sl] = torch.where(fired, torch.zeros_like(leak), leak) + 1

        output, spiking_state = self.activation.compute(total, sl)
        spiking = self.is_spiking[sl]

        # Analog: leaky integration, then rescale to [0, 1]
        retainment = self.retainment[sl]
        analog_state = retainment * self.activation_state[sl] + (1.0 - retainment) * output
        out_min, out_max = self.activation.output_range(sl)
        analog_signal = (analog_state - out_min) / (out_max - out_min)
        analog_fired = (analog_signal - self.analog_signal[sl]) > self.firing_threshold[sl]

        state = torch.where(spiking, spiking_state, analog_state)
        signal = torch.where(spiking, output, analog_signal)
        spikes = torch.where(spiking, output, analog_fired.to(output.dtype))

        self.activation_state[sl] = state
        self.analog_signal[sl] = signal
        self.spiking_signal[sl] = spikes
        self.analog_output[sl] = torch.where(self.spiking_only[sl], spikes, signal)
        self.spiking_output[sl] = torch.where(self.analog_only[sl], signal, spikes)

        self.predictors.update(sl, state, spikes)


__all__ = [
    "NeuronPlacement",
    "NeuronSpec",
    "NeuronPopulation",
]
