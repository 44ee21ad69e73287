"""
Synaptic Delay Buffer - per-synapse conduction delays on a ring buffer.

Every synapse of a bank owns one column of a [max_delay + 1, num_synapses]
ring. Each cycle the synapse writes its weighted signal at the current
position and reads the value written ``delay`` cycles ago:

    cycle:     0    1    2    3    4
    written:   s0   s1   s2   s3   s4
    delay=3:   0    0    0    s0   s1

A zero-initialized ring makes a freshly reset synapse deliver nothing for
its first ``delay`` cycles, exactly as a signal "still on the road".

Memory: O(max_delay × num_synapses)
Exchange: O(slice) per call, gathered with advanced indexing

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import torch
import torch.nn as nn


class SynapticDelayBuffer(nn.Module):
    """Ring buffer with heterogeneous per-synapse delays.

    ``exchange`` may be called concurrently for disjoint synapse slices;
    ``advance`` must be called once per cycle after all slices exchanged.

    Args:
        delays: Per-synapse delays in cycles [num_synapses] (integers >= 0)
        device: Torch device
        dtype: Data type of the buffered signals
    """

    def __init__(
        self,
        delays: torch.Tensor,
        device: torch.device,
        dtype: torch.dtype,
    ):
        if delays.dim() != 1:
            raise ValueError(f"delays must be 1-D, got shape {tuple(delays.shape)}")
        if delays.numel() > 0 and int(delays.min().item()) < 0:
            raise ValueError(f"All delays must be >= 0, got min={delays.min().item()}")

        super().__init__()
        self.size = delays.shape[0]
        self.register_buffer("delays", delays.long().to(device))
        self.max_delay = int(self.delays.max().item()) if self.size else 0

        # Buffer: [max_delay + 1, size]
        self.register_buffer(
            "buffer",
            torch.zeros((self.max_delay + 1, self.size), dtype=dtype, device=device),
        )
        self.register_buffer(
            "columns", torch.arange(self.size, dtype=torch.long, device=device)
        )

        # Current write position
        self.ptr = 0

    @property
    def depth(self) -> int:
        return self.max_delay + 1

    def exchange(self, values: torch.Tensor, start: int, stop: int) -> torch.Tensor:
        """Write ``values`` for synapses [start, stop) and read their delayed signals.

        Args:
            values: Signals entering the synapses this cycle [stop - start]
            start: First synapse index
            stop: One past the last synapse index

        Returns:
            Signals leaving the synapses this cycle [stop - start]
        """
        if values.shape[0] != stop - start:
            raise ValueError(
                f"Signal vector size mismatch: expected {stop - start}, got {values.shape[0]}"
            )
        if self.max_delay == 0:
            return values

        self.buffer[self.ptr, start:stop] = values
        read_rows = (self.ptr - self.delays[start:stop]) % self.depth
        return self.buffer[read_rows, self.columns[start:stop]]

    def advance(self) -> None:
        """Advance to the next cycle."""
        self.ptr = (self.ptr + 1) % self.depth

    def reset(self) -> None:
        """Drop every in-flight signal."""
        self.buffer.zero_()
        self.ptr = 0


__all__ = [
    "SynapticDelayBuffer",
]
