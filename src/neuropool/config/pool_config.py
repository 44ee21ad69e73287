"""
Pool Configurations.

A pool is a rectangular 3D grid of neurons. Each grid cell holds exactly
one neuron; the neuron's parameters come from one of the pool's neuron
groups. The pool also describes how its neurons are wired to each other
(``InterconnectionConfig``).

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from neuropool.config.neuron_config import NeuronGroupConfig, NeuronRole
from neuropool.config.random_value import RandomValueConfig
from neuropool.config.validation import ValidatedConfig
from neuropool.errors import ConfigurationError

RolePair = Tuple[NeuronRole, NeuronRole]
"""(source role, target role)."""


@dataclass
class RoleRatios(ValidatedConfig):
    """Relative shares of the four (source role, target role) connection types.

    The terms are normalized to sum to 1 before being applied to the total
    synapse budget.
    """

    ee: float = 0.3
    """Excitatory → excitatory."""

    ei: float = 0.2
    """Excitatory → inhibitory."""

    ie: float = 0.4
    """Inhibitory → excitatory."""

    ii: float = 0.1
    """Inhibitory → inhibitory."""

    _validation_rules = {
        "ee": ("non_negative", "finite"),
        "ei": ("non_negative", "finite"),
        "ie": ("non_negative", "finite"),
        "ii": ("non_negative", "finite"),
    }

    def validate(self) -> None:
        self.validate_config()
        if self.ee + self.ei + self.ie + self.ii <= 0:
            raise ConfigurationError("At least one role ratio must be positive")

    def normalized(self) -> Dict[RolePair, float]:
        """Ratios keyed by (source role, target role), summing to 1."""
        total = self.ee + self.ei + self.ie + self.ii
        exc, inh = NeuronRole.EXCITATORY, NeuronRole.INHIBITORY
        return {
            (exc, exc): self.ee / total,
            (exc, inh): self.ei / total,
            (inh, exc): self.ie / total,
            (inh, inh): self.ii / total,
        }


@dataclass
class InterconnectionConfig(ValidatedConfig):
    """Wiring of a pool to itself."""

    density: float = 0.1
    """Synapse budget as a fraction of size² possible (source, target) pairs."""

    ratios: RoleRatios = field(default_factory=RoleRatios)
    """Split of the budget across role pairs."""

    avg_distance: float = 0.0
    """Preferred Euclidean source-target distance. 0 = uniform target choice."""

    allow_self_connection: bool = True
    """Whether a neuron may connect to itself."""

    max_source_neurons: Optional[int] = None
    """Cap on the number of source neurons per role pair. None = no cap."""

    weight: RandomValueConfig = field(default_factory=RandomValueConfig)
    """Distribution of synapse weight magnitudes (sign follows the source role)."""

    _validation_rules = {
        "density": ("probability",),
        "avg_distance": ("non_negative", "finite"),
    }

    def validate(self) -> None:
        self.validate_config()
        self.ratios.validate()
        self.weight.validate()
        if self.max_source_neurons is not None and self.max_source_neurons <= 0:
            raise ConfigurationError(
                f"max_source_neurons must be positive, got {self.max_source_neurons}"
            )


@dataclass
class PoolConfig(ValidatedConfig):
    """A rectangular 3D pool of neurons."""

    name: str
    """Pool name, unique within the reservoir."""

    groups: List[NeuronGroupConfig]
    """Neuron groups sharing the pool's cells by relative share."""

    dimensions: Tuple[int, int, int] = (5, 5, 5)
    """Grid size along x, y and z."""

    origin: Tuple[int, int, int] = (0, 0, 0)
    """Reservoir coordinates of the pool's (0, 0, 0) cell."""

    readout_density: float = 1.0
    """Fraction of the pool's neurons exposed as predictors."""

    interconnection: InterconnectionConfig = field(default_factory=InterconnectionConfig)
    """Wiring of the pool to itself."""

    _validation_rules = {
        "name": ("non_empty_string",),
        "readout_density": ("probability",),
    }

    @property
    def size(self) -> int:
        x, y, z = self.dimensions
        return x * y * z

    def validate(self) -> None:
        self.validate_config()
        if len(self.dimensions) != 3 or any(int(d) <= 0 for d in self.dimensions):
            raise ConfigurationError(
                f"Pool '{self.name}': dimensions must be three positive integers, "
                f"got {self.dimensions}"
            )
        if len(self.origin) != 3:
            raise ConfigurationError(
                f"Pool '{self.name}': origin must have three coordinates, got {self.origin}"
            )
        if not self.groups:
            raise ConfigurationError(f"Pool '{self.name}' has no neuron groups")
        names = [g.name for g in self.groups]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Pool '{self.name}' has duplicate group names: {names}")
        for group in self.groups:
            group.validate()
        self.interconnection.validate()


__all__ = [
    "RolePair",
    "RoleRatios",
    "InterconnectionConfig",
    "PoolConfig",
]
