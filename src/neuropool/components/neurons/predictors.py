"""
Per-neuron predictor tracking.

A predictor is a scalar feature derived from a neuron's state and handed to
the external readout layer. Every neuron has a primary predictor (its
activation state) and a secondary, "augmented" predictor:

- analog neurons: the squared activation state
- spiking neurons: the recent firing rate, an exponentially weighted
  average over the last PREDICTOR_HISTORY_LENGTH cycles (most recent cycle
  weighted highest)

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import torch
import torch.nn as nn

from neuropool.constants import PREDICTOR_HISTORY_LENGTH


class PredictorTracker(nn.Module):
    """Firing history and predictor values of a neuron population.

    Args:
        size: Number of neurons
        is_spiking: Activation kind mask [size]
        device: Torch device
        dtype: Floating point dtype
        history_length: Firing history window in cycles
    """

    def __init__(
        self,
        size: int,
        is_spiking: torch.Tensor,
        device: torch.device,
        dtype: torch.dtype,
        history_length: int = PREDICTOR_HISTORY_LENGTH,
    ):
        if history_length <= 0:
            raise ValueError(f"history_length must be > 0, got {history_length}")

        super().__init__()
        self.size = size
        self.history_length = history_length

        self.register_buffer("is_spiking", is_spiking.clone())
        # Weight exp(-i) for the spike i cycles ago, normalized to sum to 1
        weights = torch.exp(-torch.arange(history_length, dtype=dtype, device=device))
        self.register_buffer("history_weights", weights / weights.sum())

        self.register_buffer(
            "history", torch.zeros((size, history_length), dtype=dtype, device=device)
        )
        self.register_buffer("primary", torch.zeros(size, dtype=dtype, device=device))
        self.register_buffer("secondary", torch.zeros(size, dtype=dtype, device=device))

    def reset(self) -> None:
        self.history.zero_()
        self.primary.zero_()
        self.secondary.zero_()

    def update(self, sl: slice, state: torch.Tensor, spikes: torch.Tensor) -> None:
        """Record one cycle of the neurons in ``sl``.

        Args:
            sl: Contiguous neuron slice
            state: New activation state of the slice
            spikes: Firing events (0/1) of the slice
        """
        history = torch.roll(self.history[sl], shifts=1, dims=1)
        history[:, 0] = spikes
        self.history[sl] = history

        firing_rate = history @ self.history_weights
        self.primary[sl] = state
        self.secondary[sl] = torch.where(self.is_spiking[sl], firing_rate, state * state)


__all__ = [
    "PredictorTracker",
]
