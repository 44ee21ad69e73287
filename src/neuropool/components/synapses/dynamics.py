"""
Short-Term Plasticity (STP) - facilitation/depression of internal synapses.

Short-term plasticity modulates the effective weight of a synapse on fast
timescales based on the recent firing of its source neuron. Each dynamic
synapse tracks two variables:

1. FACILITATION f: relaxes toward the synapse's resting efficacy,
   faster after long silences of the source
2. DEPRESSION d: resources available for release, recovering toward 1

Each cycle, once the source has fired at least once, with ``leak`` the
number of cycles since the source's last spike:

    tmp = f · exp(-leak / τ_f);  f ← tmp + f_rest · (1 - tmp)
    tmp = exp(-leak / τ_d);      d ← d · (1 - f) · tmp + 1 - tmp
    efficacy = f · d

Before the first spike the efficacy stays at its reset value f_rest · 1.

Heterogeneity:
    Individual synapses of the same kind differ in their STP parameters.
    Every dynamic synapse draws its own resting efficacy, τ_f and τ_d from a
    gaussian around the nominal value (std = sqrt(value / 2)), restricted to
    [0.75, 1.25] × value.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import torch
import torch.nn as nn

from neuropool.config.reservoir_config import DynamicsConfig
from neuropool.constants import STP_JITTER_HIGH, STP_JITTER_LOW
from neuropool.utils.rng import RandomSource


@dataclass
class STPParameters:
    """Per-synapse STP parameters. ``applied=False`` means a static synapse."""

    applied: bool = False
    resting_efficacy: float = 0.0
    tau_facilitation: float = 0.0
    tau_depression: float = 0.0


STATIC_SYNAPSE = STPParameters()


def sample_stp_parameters(config: DynamicsConfig, rng: RandomSource) -> STPParameters:
    """Jitter the nominal STP parameters for one synapse."""

    def jitter(value: float) -> float:
        return rng.filtered_gaussian(
            value,
            math.sqrt(value / 2.0),
            value * STP_JITTER_LOW,
            value * STP_JITTER_HIGH,
        )

    return STPParameters(
        applied=True,
        resting_efficacy=jitter(config.resting_efficacy),
        tau_facilitation=jitter(config.tau_facilitation),
        tau_depression=jitter(config.tau_depression),
    )


class ShortTermPlasticity(nn.Module):
    """Facilitation/depression state of every synapse in a bank.

    Static synapses always have efficacy 1.

    Args:
        parameters: STP parameters per synapse, in bank order
        device: Torch device
        dtype: Floating point dtype
    """

    def __init__(
        self,
        parameters: Sequence[STPParameters],
        device: torch.device,
        dtype: torch.dtype,
    ):
        super().__init__()
        self.size = len(parameters)

        self.register_buffer(
            "applied", torch.tensor([p.applied for p in parameters], dtype=torch.bool, device=device)
        )
        self.register_buffer(
            "resting_efficacy",
            torch.tensor([p.resting_efficacy for p in parameters], dtype=dtype, device=device),
        )
        # Static synapses get tau = 1 so the masked-out math stays finite
        self.register_buffer(
            "tau_facilitation",
            torch.tensor(
                [p.tau_facilitation if p.applied else 1.0 for p in parameters],
                dtype=dtype,
                device=device,
            ),
        )
        self.register_buffer(
            "tau_depression",
            torch.tensor(
                [p.tau_depression if p.applied else 1.0 for p in parameters],
                dtype=dtype,
                device=device,
            ),
        )
        self.register_buffer("facilitation", torch.ones(self.size, dtype=dtype, device=device))
        self.register_buffer("depression", torch.ones(self.size, dtype=dtype, device=device))
        self.any_applied = bool(self.applied.any().item()) if self.size else False
        self.reset()

    def reset(self) -> None:
        """Facilitation back to resting efficacy, depression back to 1."""
        self.facilitation.copy_(
            torch.where(self.applied, self.resting_efficacy, torch.ones_like(self.resting_efficacy))
        )
        self.depression.fill_(1.0)

    def forward(
        self,
        start: int,
        stop: int,
        after_first_spike: torch.Tensor,
        spike_leak: torch.Tensor,
    ) -> torch.Tensor:
        """Advance STP of synapses [start, stop) by one cycle.

        Args:
            start: First synapse index
            stop: One past the last synapse index
            after_first_spike: Whether each synapse's source has ever fired
            spike_leak: Cycles since each synapse's source last fired

        Returns:
            Efficacy of each synapse in the slice [stop - start]
        """
        sl = slice(start, stop)
        applied = self.applied[sl]
        update = applied & after_first_spike
        leak = spike_leak.to(self.facilitation.dtype)

        facilitation = self.facilitation[sl]
        depression = self.depression[sl]

        tmp = facilitation * torch.exp(-leak / self.tau_facilitation[sl])
        new_facilitation = tmp + self.resting_efficacy[sl] * (1.0 - tmp)
        tmp = torch.exp(-leak / self.tau_depression[sl])
        new_depression = depression * (1.0 - new_facilitation) * tmp + 1.0 - tmp

        facilitation = torch.where(update, new_facilitation, facilitation)
        depression = torch.where(update, new_depression, depression)
        self.facilitation[sl] = facilitation
        self.depression[sl] = depression

        return torch.where(applied, facilitation * depression, torch.ones_like(facilitation))


__all__ = [
    "STPParameters",
    "STATIC_SYNAPSE",
    "ShortTermPlasticity",
    "sample_stp_parameters",
]
