"""
Seeded random source threaded through reservoir construction.

Every stochastic decision of the reservoir (group shuffles, target
selection, weight and delay sampling, STP parameter jitter) draws from one
explicitly passed RandomSource. Nothing reads global random state, so two
reservoirs built from the same seed and configuration are identical even
when they are built concurrently.

Usage:
======
    rng = RandomSource(seed=42)
    weight = rng.uniform(0.0, 1.0)
    rng.shuffle(candidates)

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from typing import Any, MutableSequence, Optional, Union

import numpy as np


class RandomSource:
    """Explicit, seedable pseudo-random source.

    Wraps ``numpy.random.Generator`` and adds the bounded/filtered Gaussian
    draws used by the generators.

    Args:
        seed: Seed for the underlying PCG64 generator. None = OS entropy.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.generator = np.random.default_rng(seed)

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed})"

    # =========================================================================
    # Scalar draws
    # =========================================================================

    def uniform(self, low: float = 0.0, high: float = 1.0) -> float:
        """Uniform double in [low, high)."""
        if low == high:
            return float(low)
        return float(self.generator.uniform(low, high))

    def gaussian(self, mean: float = 0.0, std: float = 1.0) -> float:
        """Normally distributed double."""
        return float(self.generator.normal(mean, std))

    def bounded_gaussian(self, low: float = -1.0, high: float = 1.0) -> float:
        """Gaussian double centred in [low, high], rejected until inside.

        The standard deviation is a sixth of the interval so nearly all draws
        are accepted on the first attempt.
        """
        if low > high:
            raise ValueError(f"low ({low}) must be <= high ({high})")
        if low == high:
            return float(low)
        mean = low + (high - low) / 2.0
        std = (high - low) / 6.0
        while True:
            value = self.gaussian(mean, std)
            if low <= value <= high:
                return value

    def filtered_gaussian(self, mean: float, std: float, low: float, high: float) -> float:
        """Gaussian draw around ``mean`` rejected until it falls in [low, high]."""
        if low > high:
            raise ValueError(f"low ({low}) must be <= high ({high})")
        if std <= 0.0 or low == high:
            return float(min(max(mean, low), high))
        while True:
            value = self.gaussian(mean, std)
            if low <= value <= high:
                return value

    def sign(self) -> float:
        """Random +1.0 or -1.0 with equal probability."""
        return 1.0 if self.generator.random() >= 0.5 else -1.0

    def integers(self, low: int, high: int) -> int:
        """Random integer in [low, high)."""
        if high <= low:
            raise ValueError(f"Empty integer range [{low}, {high})")
        return int(self.generator.integers(low, high))

    # =========================================================================
    # Collections
    # =========================================================================

    def shuffle(self, items: MutableSequence[Any]) -> None:
        """Shuffle a list or 1-D array in place."""
        self.generator.shuffle(items)

    def sample_indices(self, population: int, count: int) -> np.ndarray:
        """``count`` distinct indices drawn uniformly from range(population)."""
        if count > population:
            raise ValueError(f"Cannot draw {count} distinct indices from {population}")
        return self.generator.choice(population, size=count, replace=False)


def as_random_source(rng: Union[RandomSource, int, None]) -> RandomSource:
    """Coerce a seed or None into a RandomSource, passing sources through."""
    if isinstance(rng, RandomSource):
        return rng
    if rng is None or isinstance(rng, (int, np.integer)):
        return RandomSource(None if rng is None else int(rng))
    raise TypeError(f"Expected RandomSource, int or None, got {type(rng).__name__}")


__all__ = [
    "RandomSource",
    "as_random_source",
]
