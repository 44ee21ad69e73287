"""
Reservoir - construction and discrete-time simulation of a neuron reservoir.

Lifecycle:
==========
1. Topology builder creates and places the neurons of every pool
2. Connectivity generator fills the input and internal synapse banks
3. Delays are assigned, then the internal weights are optionally rescaled
   to the configured spectral radius (once, at construction)
4. ``reset`` / ``compute`` are called repeatedly for the life of the object

Simulation cycle:
=================
``compute(input_vector)`` stores the input vector as the input-node signals
and runs ``cycles_per_input`` cycles of two strictly ordered phases over
contiguous neuron partitions:

- phase 1: every neuron sums the delayed signals of its inbound input and
  internal synapses into ``input_stimuli`` and ``reservoir_stimuli``
- phase 2: every neuron settles its new state from its stimulation, bias
  and previous state

The barrier between the phases means no neuron observes another neuron's
new state within a cycle. Partitions only write their own neuron slice and
their own synapse slice, so the trajectory does not depend on the number
of workers.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Sequence, Union

import numpy as np
import torch
import torch.nn as nn

from neuropool.components.neurons.population import NeuronPopulation
from neuropool.components.synapses.bank import SynapseBank, SynapseBankBuilder
from neuropool.config.reservoir_config import ReservoirConfig
from neuropool.errors import ComponentError
from neuropool.reservoir.connectivity import (
    adjust_analog_input_strength,
    assign_delays,
    connect_inputs,
    connect_pool_internal,
    connect_pools,
)
from neuropool.reservoir.spectral import SpectralScope, normalize_spectral_radius
from neuropool.reservoir.statistics import (
    DescriptiveStat,
    PoolStat,
    ReservoirStat,
    RunningStatistics,
    bank_stat,
    neuron_set_stat,
)
from neuropool.reservoir.topology import Topology, build_topology
from neuropool.utils.parallel import PartitionExecutor
from neuropool.utils.rng import RandomSource, as_random_source

logger = logging.getLogger(__name__)

InputVector = Union[Sequence[float], np.ndarray, torch.Tensor]


class Reservoir(nn.Module):
    """Pools of analog and spiking neurons wired by two synapse banks.

    Args:
        config: Reservoir configuration, validated and copied on construction
        rng: Random source or seed. Defaults to ``config.seed``.

    Raises:
        ConfigurationError: If the configuration is invalid or cannot be
            realized. No partially built reservoir is returned.

    Example:
        >>> reservoir = Reservoir(config, rng=42)
        >>> features = np.zeros(reservoir.num_predictors)
        >>> for x in inputs:
        ...     reservoir.compute(x)
        ...     reservoir.copy_predictors_to(features)
    """

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def num_neurons(self) -> int:
        return self.neurons.size

    @property
    def num_inputs(self) -> int:
        return self.config.num_inputs

    @property
    def num_predictors(self) -> int:
        """Number of values ``copy_predictors_to`` writes."""
        return self._predictor_gather.numel()

    @property
    def num_cycles(self) -> int:
        """Cycles accumulated by the running statistics."""
        return self.statistics.num_cycles

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    def __init__(
        self,
        config: ReservoirConfig,
        rng: Union[RandomSource, int, None] = None,
    ):
        super().__init__()
        config.validate()
        # Private snapshot: later edits to the caller's config do not reach this reservoir
        config = copy.deepcopy(config)
        self.config = config
        device = config.get_torch_device()
        dtype = config.get_torch_dtype()
        rng = as_random_source(rng if rng is not None else config.seed)

        # Neurons
        self.topology: Topology = build_topology(config, rng)
        self.neurons = NeuronPopulation(self.topology.neurons, device, dtype)
        size = self.neurons.size

        # Synapses
        input_builder = SynapseBankBuilder(size, name="input")
        for rule in config.input_connections:
            connect_inputs(self.topology, rule, input_builder, rng)

        internal_builder = SynapseBankBuilder(size, name="internal")
        dynamics = config.synapse.dynamics
        for pool in self.topology.pools:
            connect_pool_internal(self.topology, pool, internal_builder, dynamics, rng)
        for rule in config.pool_connections:
            connect_pools(self.topology, rule, internal_builder, dynamics, rng)

        assign_delays(
            input_builder, config.synapse.max_input_delay, config.synapse.delay_method, rng
        )
        assign_delays(
            internal_builder, config.synapse.max_internal_delay, config.synapse.delay_method, rng
        )
        if config.adjust_analog_input_strength:
            adjust_analog_input_strength(input_builder, self.topology)

        self.input_synapses: SynapseBank = input_builder.build(self.neurons.is_spiking, device, dtype)
        self.internal_synapses: SynapseBank = internal_builder.build(
            self.neurons.is_spiking, device, dtype
        )

        self.spectral_scales: Dict[SpectralScope, float] = normalize_spectral_radius(
            self.internal_synapses, self.neurons.is_spiking, config.spectral_radius
        )

        # Predictor layout: primary (and secondary) value per predictor neuron
        gather: List[int] = []
        for i in self.topology.predictor_indices:
            gather.append(2 * i)
            if self.topology.neurons[i].augmented:
                gather.append(2 * i + 1)
        self.register_buffer(
            "_predictor_gather", torch.tensor(gather, dtype=torch.long, device=device)
        )

        self.register_buffer(
            "input_signal", torch.zeros(config.num_inputs, dtype=dtype, device=device)
        )
        # Firing history of the input fields, read by dynamic input synapses
        self.register_buffer(
            "input_fired", torch.zeros(config.num_inputs, dtype=torch.bool, device=device)
        )
        self.register_buffer(
            "input_after_first_spike",
            torch.zeros(config.num_inputs, dtype=torch.bool, device=device),
        )
        self.register_buffer(
            "input_spike_leak", torch.zeros(config.num_inputs, dtype=torch.long, device=device)
        )
        self.statistics = RunningStatistics(size, device, dtype, config.health)
        self.executor = PartitionExecutor(size, config.num_workers)
        self._update_statistics = False

        self.reset(reset_statistics=True)
        logger.info(
            f"Reservoir: {size} neurons in {len(self.topology.pools)} pools, "
            f"{len(self.input_synapses)} input / {len(self.internal_synapses)} internal synapses, "
            f"{self.num_predictors} predictors"
        )

    # =========================================================================
    # SIMULATION
    # =========================================================================

    def reset(self, reset_statistics: bool = True) -> None:
        """Zero neuron state, input firing history, in-flight signals and STP state.

        Args:
            reset_statistics: Also clear the running statistics
        """
        self.input_signal.zero_()
        self.input_fired.zero_()
        self.input_after_first_spike.zero_()
        self.input_spike_leak.zero_()
        self.neurons.reset()
        self.input_synapses.reset(reset_statistics)
        self.internal_synapses.reset(reset_statistics)
        if reset_statistics:
            self.statistics.reset()

    @torch.no_grad()
    def compute(self, input_vector: InputVector, update_statistics: bool = True) -> None:
        """Advance the reservoir by ``cycles_per_input`` cycles on one input.

        Args:
            input_vector: One value per input field
            update_statistics: Accumulate running and efficacy statistics

        Raises:
            ValueError: If ``input_vector`` does not have ``num_inputs`` values.
                The reservoir state is left untouched.
        """
        values = torch.as_tensor(
            input_vector, dtype=self.input_signal.dtype, device=self.input_signal.device
        ).reshape(-1)
        if values.numel() != self.num_inputs:
            raise ValueError(
                f"Expected an input vector of {self.num_inputs} values, got {values.numel()}"
            )

        self.input_signal.copy_(values)
        self._update_statistics = update_statistics
        for _ in range(self.config.cycles_per_input):
            self._advance_input_history()
            self.executor.run(self._stimulate)
            self.input_synapses.advance(update_statistics)
            self.internal_synapses.advance(update_statistics)
            self.executor.run(self._settle)
            if update_statistics:
                self.statistics.end_cycle()

    def _advance_input_history(self) -> None:
        """An input field fires on every cycle its value is nonzero."""
        fired = self.input_fired
        self.input_after_first_spike |= fired
        self.input_spike_leak.copy_(
            torch.where(fired, torch.zeros_like(self.input_spike_leak), self.input_spike_leak) + 1
        )
        self.input_fired.copy_(self.input_signal != 0)

    def _stimulate(self, start: int, stop: int) -> None:
        neurons = self.neurons
        neurons.input_stimuli[start:stop] = self.input_synapses.propagate(
            start,
            stop,
            self.input_signal,
            self.input_signal,
            after_first_spike=self.input_after_first_spike,
            spike_leak=self.input_spike_leak,
            update_statistics=self._update_statistics,
        )
        neurons.reservoir_stimuli[start:stop] = self.internal_synapses.propagate(
            start,
            stop,
            neurons.analog_output,
            neurons.spiking_output,
            after_first_spike=neurons.after_first_spike,
            spike_leak=neurons.spike_leak,
            update_statistics=self._update_statistics,
        )

    def _settle(self, start: int, stop: int) -> None:
        self.neurons.recompute(start, stop)
        if self._update_statistics:
            self.statistics.update(self.neurons, start, stop)

    # =========================================================================
    # PREDICTORS
    # =========================================================================

    def predictors(self) -> torch.Tensor:
        """Current predictor values in ``copy_predictors_to`` order."""
        tracker = self.neurons.predictors
        interleaved = torch.stack((tracker.primary, tracker.secondary), dim=1).reshape(-1)
        return interleaved[self._predictor_gather]

    def copy_predictors_to(self, buffer: Any, offset: int = 0) -> int:
        """Write the predictor values into ``buffer`` starting at ``offset``.

        Predictor neurons are visited in flat-index order. Each contributes
        its primary value, followed by its secondary value when augmented
        states are enabled for its group.

        Args:
            buffer: Writable numpy array, torch tensor or list
            offset: First position to write

        Returns:
            Number of values written

        Raises:
            ComponentError: If the buffer cannot hold the values at ``offset``
        """
        values = self.predictors()
        count = values.numel()
        if offset < 0 or offset + count > len(buffer):
            raise ComponentError(
                "Reservoir",
                f"buffer of length {len(buffer)} cannot hold {count} predictors at offset {offset}",
            )

        if isinstance(buffer, torch.Tensor):
            buffer[offset : offset + count] = values.to(device=buffer.device, dtype=buffer.dtype)
        elif isinstance(buffer, np.ndarray):
            buffer[offset : offset + count] = values.cpu().numpy()
        else:
            buffer[offset : offset + count] = values.tolist()
        return count

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def collect_statistics(self) -> ReservoirStat:
        """Aggregate report over the cycles computed since the last reset."""
        neurons = self.neurons
        device = neurons.bias.device
        masks = self.statistics.health_masks(neurons)

        input_target = self.input_synapses.target
        internal_target = self.internal_synapses.target

        pools: List[PoolStat] = []
        for pool in self.topology.pools:
            index = torch.arange(pool.start, pool.stop, dtype=torch.long, device=device)
            base = neuron_set_stat(pool.name, index, self.statistics, masks)
            in_pool_input = (input_target >= pool.start) & (input_target < pool.stop)
            in_pool_internal = (internal_target >= pool.start) & (internal_target < pool.stop)
            groups = [
                neuron_set_stat(
                    group.name,
                    torch.tensor(group.indices, dtype=torch.long, device=device),
                    self.statistics,
                    masks,
                )
                for group in pool.groups
            ]
            pools.append(
                PoolStat(
                    **vars(base),
                    groups=groups,
                    input_weights=DescriptiveStat.of(self.input_synapses.weight[in_pool_input]),
                    internal_weights=DescriptiveStat.of(
                        self.internal_synapses.weight[in_pool_internal]
                    ),
                )
            )

        everyone = torch.arange(self.num_neurons, dtype=torch.long, device=device)
        overall = neuron_set_stat("reservoir", everyone, self.statistics, masks)
        return ReservoirStat(
            num_neurons=self.num_neurons,
            num_predictors=self.num_predictors,
            num_cycles=self.statistics.num_cycles,
            pools=pools,
            input_synapses=bank_stat(self.input_synapses),
            internal_synapses=bank_stat(self.internal_synapses),
            health=overall.health,
            spectral_scales={scope.value: factor for scope, factor in self.spectral_scales.items()},
        )

    def close(self) -> None:
        """Stop the worker threads. The reservoir keeps working single-threaded."""
        self.executor.shutdown()

    def __enter__(self) -> Reservoir:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


__all__ = [
    "Reservoir",
]
