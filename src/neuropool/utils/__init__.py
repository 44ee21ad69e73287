"""Utility helpers: seeded random source and partitioned execution."""

from neuropool.utils.parallel import PartitionExecutor, split_range
from neuropool.utils.rng import RandomSource, as_random_source

__all__ = [
    "PartitionExecutor",
    "RandomSource",
    "as_random_source",
    "split_range",
]
