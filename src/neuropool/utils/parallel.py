"""
Partitioned parallel-for over contiguous neuron index ranges.

Simulation cycles run as two barrier-separated phases. Within a phase the
neuron index space [0, N) is split into contiguous partitions, and every
partition is handed to a worker thread. Workers write only their own slice
of the state tensors (and the synapse slice that targets it), so no locks
are needed.

Architecture:
=============

    ┌──────────────────────────────────────────────┐
    │               CALLER (Reservoir)             │
    │  • run(phase_1) ── barrier ── run(phase_2)   │
    └──────────────────────────────────────────────┘
                │            │            │
                ▼            ▼            ▼
         ┌───────────┐ ┌───────────┐ ┌───────────┐
         │ [0, n1)   │ │ [n1, n2)  │ │ [n2, N)   │
         │ (thread)  │ │ (thread)  │ │ (thread)  │
         └───────────┘ └───────────┘ └───────────┘

Torch kernels release the GIL, so threads give real parallelism for the
vectorized per-partition work. With ``num_workers=1`` everything runs
inline on the calling thread.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


def split_range(size: int, num_partitions: int) -> List[Tuple[int, int]]:
    """Split [0, size) into at most ``num_partitions`` contiguous ranges.

    Sizes differ by at most one; earlier partitions get the extra element.
    """
    if size < 0:
        raise ValueError(f"size must be >= 0, got {size}")
    if num_partitions <= 0:
        raise ValueError(f"num_partitions must be > 0, got {num_partitions}")

    num_partitions = max(1, min(num_partitions, size))
    base, extra = divmod(size, num_partitions)
    ranges = []
    start = 0
    for i in range(num_partitions):
        stop = start + base + (1 if i < extra else 0)
        ranges.append((start, stop))
        start = stop
    return ranges


class PartitionExecutor:
    """Runs a phase function over contiguous index partitions.

    ``run(fn)`` calls ``fn(start, stop)`` once per partition and returns only
    after every call has finished, which is the barrier between phases. An
    exception raised by any partition propagates to the caller.

    Args:
        size: Length of the index space (number of neurons)
        num_workers: Worker threads; also the number of partitions
    """

    def __init__(self, size: int, num_workers: int = 1):
        if num_workers <= 0:
            raise ValueError(f"num_workers must be > 0, got {num_workers}")

        self.size = size
        self.num_workers = num_workers
        self.partitions = split_range(size, num_workers)
        self._pool: Optional[ThreadPoolExecutor] = None
        if len(self.partitions) > 1:
            self._pool = ThreadPoolExecutor(
                max_workers=len(self.partitions),
                thread_name_prefix="neuropool",
            )
        logger.debug(
            f"PartitionExecutor: {size} items in {len(self.partitions)} partitions"
        )

    @property
    def parallel(self) -> bool:
        """Whether phases are dispatched to worker threads."""
        return self._pool is not None

    def run(self, fn: Callable[[int, int], None]) -> None:
        """Apply ``fn`` to every partition and wait for all of them."""
        if self._pool is None:
            for start, stop in self.partitions:
                fn(start, stop)
            return

        futures = [self._pool.submit(fn, start, stop) for start, stop in self.partitions]
        for future in futures:
            future.result()

    def shutdown(self) -> None:
        """Stop the worker threads. Further ``run`` calls execute inline."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self) -> "PartitionExecutor":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()


__all__ = [
    "PartitionExecutor",
    "split_range",
]
