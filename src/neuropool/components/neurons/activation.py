"""
Vectorized activation functions for a mixed neuron population.

All neurons of the reservoir, whatever their activation function, live in
one flat index space. ActivationTable keeps one parameter tensor per
parameter name (see ``PARAMETER_NAMES``) and one activation-type tag per
neuron, and evaluates every activation type over a contiguous slice with
boolean masks. There is no per-neuron object and no class hierarchy:
dispatch is by the stored type tag.

Analog functions are stateless. Spiking functions keep per-neuron membrane
state (potential, Izhikevich recovery variable, refractory counters).

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from typing import Callable, Dict, Sequence, Tuple

import torch
import torch.nn as nn

from neuropool.config.activation_config import (
    PARAMETER_NAMES,
    SPIKING_TYPES,
    ActivationConfig,
    ActivationType,
)

STIMULI_BOUND = 1e12
"""Stimulation is clamped to ±STIMULI_BOUND to keep every update finite."""


def _tanh(x: torch.Tensor, steepness: torch.Tensor) -> torch.Tensor:
    return torch.tanh(steepness * x)


def _sigmoid(x: torch.Tensor, steepness: torch.Tensor) -> torch.Tensor:
    return torch.sigmoid(steepness * x)


def _elliot(x: torch.Tensor, steepness: torch.Tensor) -> torch.Tensor:
    sx = steepness * x
    return sx / (1.0 + sx.abs())


ANALOG_FUNCTIONS: Dict[ActivationType, Callable[[torch.Tensor, torch.Tensor], torch.Tensor]] = {
    ActivationType.TANH: _tanh,
    ActivationType.SIGMOID: _sigmoid,
    ActivationType.ELLIOT: _elliot,
}


class ActivationTable(nn.Module):
    """Per-neuron activation parameters and spiking membrane state.

    Args:
        configs: Activation config of every neuron, in flat index order
        device: Torch device
        dtype: Floating point dtype of parameters and state
    """

    def __init__(
        self,
        configs: Sequence[ActivationConfig],
        device: torch.device,
        dtype: torch.dtype,
    ):
        super().__init__()
        self.size = len(configs)

        types = [int(cfg.activation_type) for cfg in configs]
        self.register_buffer("types", torch.tensor(types, dtype=torch.long, device=device))
        self.register_buffer(
            "is_spiking",
            torch.tensor(
                [cfg.activation_type in SPIKING_TYPES for cfg in configs],
                dtype=torch.bool,
                device=device,
            ),
        )

        # One column per parameter name; neurons of other types hold 0
        columns = [cfg.parameters() for cfg in configs]
        for name in PARAMETER_NAMES:
            values = [params.get(name, 0.0) for params in columns]
            self.register_buffer(
                f"p_{name}", torch.tensor(values, dtype=dtype, device=device)
            )
        self.max_sub_steps = int(self.p_sub_steps.max().item()) if self.size else 0

        # Membrane state (meaningful for spiking neurons only)
        self.register_buffer("membrane", torch.zeros(self.size, dtype=dtype, device=device))
        self.register_buffer("recovery", torch.zeros(self.size, dtype=dtype, device=device))
        self.register_buffer(
            "refractory_count", torch.zeros(self.size, dtype=torch.long, device=device)
        )
        self.register_buffer(
            "in_refractory", torch.zeros(self.size, dtype=torch.bool, device=device)
        )
        self.reset()

    def param(self, name: str, sl: slice) -> torch.Tensor:
        """Parameter column ``name`` restricted to ``sl``."""
        return getattr(self, f"p_{name}")[sl]

    def reset(self) -> None:
        """Put every membrane at rest and clear refractory state."""
        self.membrane.copy_(self.p_rest)
        self.recovery.copy_(self.p_recovery_sensitivity * self.p_rest)
        self.refractory_count.zero_()
        self.in_refractory.zero_()

    def output_range(self, sl: slice) -> Tuple[torch.Tensor, torch.Tensor]:
        """(min, max) of the function output for neurons in ``sl``."""
        return self.p_out_min[sl], self.p_out_max[sl]

    def compute(self, x: torch.Tensor, sl: slice) -> Tuple[torch.Tensor, torch.Tensor]:
        """Evaluate the activation of neurons in ``sl``.

        Args:
            x: Total stimulation of the slice [stop - start]
            sl: Contiguous neuron slice

        Returns:
            (output, state): for analog neurons both are the function value;
            for spiking neurons output is the spike (0/1) and state is the
            membrane potential rescaled from [rest, threshold] to [0, 1].
        """
        x = x.clamp(-STIMULI_BOUND, STIMULI_BOUND)
        types = self.types[sl]
        output = torch.zeros_like(x)

        for act_type, fn in ANALOG_FUNCTIONS.items():
            mask = types == act_type
            if mask.any():
                output[mask] = fn(x[mask], self.param("steepness", sl)[mask])

        spiking = self.is_spiking[sl]
        if not spiking.any():
            return output, output.clone()

        spikes, state = self._compute_spiking(x, sl, types, spiking)
        output = torch.where(spiking, spikes, output)
        state = torch.where(spiking, state, output)
        return output, state

    def _compute_spiking(
        self,
        x: torch.Tensor,
        sl: slice,
        types: torch.Tensor,
        spiking: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        rest = self.param("rest", sl)
        threshold = self.param("threshold", sl)
        v = self.membrane[sl].clone()
        u = self.recovery[sl].clone()
        count = self.refractory_count[sl].clone()
        refractory = self.in_refractory[sl].clone()

        # Membrane that crossed threshold last cycle is reset now
        fired_before = spiking & (v >= threshold)
        v = torch.where(fired_before, self.param("reset", sl), v)
        count = torch.where(fired_before, torch.zeros_like(count), count)
        refractory = refractory | fired_before

        # Refractory neurons ignore their stimulation
        count = torch.where(refractory, count + 1, count)
        released = refractory & (count > self.param("refractory", sl).long())
        count = torch.where(released, torch.zeros_like(count), count)
        refractory = refractory & ~released
        x = torch.where(refractory, torch.zeros_like(x), x)

        # Linear integrate-and-fire models
        linear = (types == ActivationType.LEAKY_IF) | (types == ActivationType.SIMPLE_IF)
        v_linear = rest + (v - rest) * self.param("retention", sl) + self.param("resistance", sl) * x
        v = torch.where(linear, v_linear, v)

        # Izhikevich model, Euler sub-steps until threshold
        izhikevich = types == ActivationType.IZHIKEVICH
        if izhikevich.any():
            v, u = self._integrate_izhikevich(v, u, x, sl, izhikevich, threshold)

        spikes = spiking & (v >= threshold)
        simple = spikes & (types == ActivationType.SIMPLE_IF)
        v = torch.where(simple, threshold, v)
        u = torch.where(spikes & izhikevich, u + self.param("recovery_reset", sl), u)

        self.membrane[sl] = v
        self.recovery[sl] = u
        self.refractory_count[sl] = count
        self.in_refractory[sl] = refractory

        span = torch.where(spiking, threshold - rest, torch.ones_like(rest))
        state = ((v - rest) / span).clamp(0.0, 1.0)
        return spikes.to(x.dtype), state

    def _integrate_izhikevich(
        self,
        v: torch.Tensor,
        u: torch.Tensor,
        x: torch.Tensor,
        sl: slice,
        mask: torch.Tensor,
        threshold: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        a = self.param("recovery_scale", sl)
        b = self.param("recovery_sensitivity", sl)
        current = self.param("input_scale", sl) * x
        sub_steps = self.param("sub_steps", sl)
        h = torch.where(mask, 1.0 / sub_steps.clamp(min=1.0), torch.zeros_like(sub_steps))

        for step in range(self.max_sub_steps):
            active = mask & (step < sub_steps) & (v < threshold)
            if not active.any():
                break
            dv = 0.04 * v * v + 5.0 * v + 140.0 - u + current
            du = a * (b * v - u)
            v = torch.where(active, v + h * dv, v)
            u = torch.where(active, u + h * du, u)
        return v, u


__all__ = [
    "ActivationTable",
    "ANALOG_FUNCTIONS",
    "STIMULI_BOUND",
]
