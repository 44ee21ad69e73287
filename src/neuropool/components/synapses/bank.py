"""
Synapse Bank - the directed, weighted, delayed edges into a neuron population.

A reservoir has two banks: input → neuron and neuron → neuron. Both are
stored as struct-of-arrays sorted by target neuron, with CSR row pointers
(``row_ptr[t]:row_ptr[t + 1]`` are the synapses into target ``t``). A
contiguous range of target neurons therefore owns a contiguous range of
synapses, which is what lets the simulation phases run partitions
concurrently without locks.

Banks are assembled by a SynapseBankBuilder during construction. The
builder enforces the bank invariant: at most one synapse per ordered
(source, target) pair. A duplicate insertion returns False and leaves the
existing synapse untouched.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

import torch
import torch.nn as nn

from neuropool.components.synapses.delay_buffer import SynapticDelayBuffer
from neuropool.components.synapses.dynamics import (
    STATIC_SYNAPSE,
    STPParameters,
    ShortTermPlasticity,
)


class SynapseBankBuilder:
    """Collects synapses of one bank during construction.

    Args:
        num_targets: Number of target neurons
        name: Bank name used in log messages and statistics
    """

    def __init__(self, num_targets: int, name: str = "bank"):
        self.num_targets = num_targets
        self.name = name
        self.sources: List[int] = []
        self.targets: List[int] = []
        self.weights: List[float] = []
        self.distances: List[float] = []
        self.delays: List[int] = []
        self.stp: List[STPParameters] = []
        self._sources_by_target: Dict[int, Set[int]] = {}

    def __len__(self) -> int:
        return len(self.sources)

    def contains(self, source: int, target: int) -> bool:
        return source in self._sources_by_target.get(target, ())

    def add(
        self,
        source: int,
        target: int,
        weight: float,
        distance: float = 0.0,
        stp: Optional[STPParameters] = None,
    ) -> bool:
        """Insert a synapse unless (source, target) already exists.

        Returns:
            True if inserted, False for a duplicate pair
        """
        if not 0 <= target < self.num_targets:
            raise IndexError(f"Target {target} out of range [0, {self.num_targets})")
        connected = self._sources_by_target.setdefault(target, set())
        if source in connected:
            return False
        connected.add(source)
        self.sources.append(source)
        self.targets.append(target)
        self.weights.append(weight)
        self.distances.append(distance)
        self.delays.append(0)
        self.stp.append(stp if stp is not None else STATIC_SYNAPSE)
        return True

    def sources_of(self, target: int) -> Set[int]:
        return self._sources_by_target.get(target, set())

    def build(
        self,
        target_is_spiking: torch.Tensor,
        device: torch.device,
        dtype: torch.dtype,
    ) -> SynapseBank:
        """Freeze the collected synapses into a target-sorted SynapseBank."""
        # Stable sort keeps insertion order among synapses of the same target
        order = sorted(range(len(self.targets)), key=lambda i: self.targets[i])
        targets = torch.tensor([self.targets[i] for i in order], dtype=torch.long, device=device)
        counts = torch.bincount(targets, minlength=self.num_targets)
        row_ptr = torch.zeros(self.num_targets + 1, dtype=torch.long, device=device)
        row_ptr[1:] = torch.cumsum(counts, dim=0)

        return SynapseBank(
            name=self.name,
            sources=torch.tensor([self.sources[i] for i in order], dtype=torch.long, device=device),
            targets=targets,
            weights=torch.tensor([self.weights[i] for i in order], dtype=dtype, device=device),
            delays=torch.tensor([self.delays[i] for i in order], dtype=torch.long, device=device),
            distances=torch.tensor([self.distances[i] for i in order], dtype=dtype, device=device),
            row_ptr=row_ptr,
            target_is_spiking=target_is_spiking,
            stp=[self.stp[i] for i in order],
        )


class SynapseBank(nn.Module):
    """Target-sorted synapses with delays and optional short-term plasticity.

    Args:
        name: Bank name
        sources: Source index per synapse (neuron or input field index)
        targets: Target neuron index per synapse, non-decreasing
        weights: Signed weight per synapse
        delays: Delay in cycles per synapse
        distances: Source-target Euclidean distance per synapse
        row_ptr: CSR row pointers [num_targets + 1]
        target_is_spiking: Activation kind of every target neuron [num_targets]
        stp: STP parameters per synapse
    """

    def __init__(
        self,
        name: str,
        sources: torch.Tensor,
        targets: torch.Tensor,
        weights: torch.Tensor,
        delays: torch.Tensor,
        distances: torch.Tensor,
        row_ptr: torch.Tensor,
        target_is_spiking: torch.Tensor,
        stp: List[STPParameters],
    ):
        super().__init__()
        self.name = name
        self.num_targets = row_ptr.shape[0] - 1

        self.register_buffer("source", sources)
        self.register_buffer("target", targets)
        self.register_buffer("weight", weights)
        self.register_buffer("delay", delays)
        self.register_buffer("distance", distances)
        self.register_buffer("row_ptr", row_ptr)
        # Which signal each synapse carries: the spiking or the analog output
        self.register_buffer("carries_spikes", target_is_spiking[targets])

        self.delay_buffer = SynapticDelayBuffer(delays, weights.device, weights.dtype)
        self.plasticity = ShortTermPlasticity(stp, weights.device, weights.dtype)

        # Running efficacy statistics per synapse
        self.register_buffer("efficacy_sum", torch.zeros_like(weights))
        self.register_buffer("efficacy_count", torch.zeros((), dtype=torch.long, device=weights.device))

    def __len__(self) -> int:
        return self.source.shape[0]

    @property
    def num_synapses(self) -> int:
        return len(self)

    @property
    def has_dynamics(self) -> bool:
        return self.plasticity.any_applied

    def synapse_range(self, start: int, stop: int) -> slice:
        """Synapse slice targeting neurons [start, stop)."""
        return slice(int(self.row_ptr[start].item()), int(self.row_ptr[stop].item()))

    def reset(self, reset_statistics: bool = True) -> None:
        """Drop in-flight signals and restore STP state."""
        self.delay_buffer.reset()
        self.plasticity.reset()
        if reset_statistics:
            self.efficacy_sum.zero_()
            self.efficacy_count.zero_()

    def propagate(
        self,
        start: int,
        stop: int,
        analog_source: torch.Tensor,
        spiking_source: torch.Tensor,
        after_first_spike: Optional[torch.Tensor] = None,
        spike_leak: Optional[torch.Tensor] = None,
        update_statistics: bool = False,
    ) -> torch.Tensor:
        """Sum the delayed synaptic signals into targets [start, stop).

        Args:
            start: First target neuron
            stop: One past the last target neuron
            analog_source: Signal each source sends to analog targets
            spiking_source: Signal each source sends to spiking targets
            after_first_spike: Per-source first-spike flags (dynamic banks)
            spike_leak: Per-source cycles since last spike (dynamic banks)
            update_statistics: Accumulate per-synapse efficacy

        Returns:
            Stimulation of each target in the slice [stop - start]
        """
        sl = self.synapse_range(start, stop)
        stimuli = torch.zeros(stop - start, dtype=self.weight.dtype, device=self.weight.device)
        if sl.stop == sl.start:
            return stimuli

        sources = self.source[sl]
        signal = torch.where(
            self.carries_spikes[sl], spiking_source[sources], analog_source[sources]
        )
        weighted = signal * self.weight[sl]

        if self.has_dynamics:
            if after_first_spike is None or spike_leak is None:
                raise ValueError(f"Bank '{self.name}' has dynamic synapses and needs spike history")
            efficacy = self.plasticity(
                sl.start, sl.stop, after_first_spike[sources], spike_leak[sources]
            )
            weighted = weighted * efficacy
        else:
            efficacy = None

        if update_statistics:
            self.efficacy_sum[sl] += efficacy if efficacy is not None else 1.0

        delayed = self.delay_buffer.exchange(weighted, sl.start, sl.stop)
        stimuli.index_add_(0, self.target[sl] - start, delayed)
        return stimuli

    def advance(self, update_statistics: bool = False) -> None:
        """Finish a cycle: move the delay ring, count the efficacy sample."""
        self.delay_buffer.advance()
        if update_statistics:
            self.efficacy_count += 1

    def rescale(self, factor: float, mask: Optional[torch.Tensor] = None) -> None:
        """Multiply weights (optionally only where ``mask``) by ``factor``."""
        if mask is None:
            self.weight.mul_(factor)
        else:
            self.weight[mask] *= factor

    def weight_matrix(self, num_sources: int, mask: Optional[torch.Tensor] = None) -> torch.Tensor:
        """Dense [num_targets, num_sources] weight matrix of (masked) synapses."""
        matrix = torch.zeros(
            (self.num_targets, num_sources), dtype=self.weight.dtype, device=self.weight.device
        )
        target, source, weight = self.target, self.source, self.weight
        if mask is not None:
            target, source, weight = target[mask], source[mask], weight[mask]
        matrix[target, source] = weight
        return matrix

    def mean_efficacy(self) -> torch.Tensor:
        """Average efficacy per synapse since the last statistics reset."""
        count = int(self.efficacy_count.item())
        if count == 0:
            return torch.ones_like(self.weight)
        return self.efficacy_sum / count


__all__ = [
    "SynapseBankBuilder",
    "SynapseBank",
]
