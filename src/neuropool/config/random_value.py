"""
Random value distributions used by neuron and synapse generation.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from neuropool.errors import ConfigurationError
from neuropool.utils.rng import RandomSource


class DistributionType(Enum):
    """Shape of a RandomValueConfig distribution."""

    UNIFORM = "uniform"
    GAUSSIAN = "gaussian"  # Bounded gaussian centred in [min, max]


@dataclass
class RandomValueConfig:
    """A random scalar drawn from [min, max], optionally with random sign.

    Used for biases, weights and retainment strengths. ``min == max`` is a
    constant and consumes no randomness (unless ``random_sign`` is set).
    """

    min: float = 0.0
    """Lower bound of the magnitude."""

    max: float = 1.0
    """Upper bound of the magnitude."""

    random_sign: bool = False
    """Flip the sign of each draw with probability 0.5."""

    distribution: DistributionType = DistributionType.UNIFORM
    """UNIFORM or bounded GAUSSIAN."""

    @classmethod
    def constant(cls, value: float) -> RandomValueConfig:
        """Distribution that always yields ``value``."""
        return cls(min=value, max=value)

    def validate(self) -> None:
        if self.min > self.max:
            raise ConfigurationError(
                f"RandomValueConfig min ({self.min}) must be <= max ({self.max})"
            )

    def sample(self, rng: RandomSource) -> float:
        """Draw one value."""
        if self.distribution == DistributionType.GAUSSIAN:
            value = rng.bounded_gaussian(self.min, self.max)
        else:
            value = rng.uniform(self.min, self.max)
        if self.random_sign:
            value *= rng.sign()
        return value


__all__ = [
    "DistributionType",
    "RandomValueConfig",
]
