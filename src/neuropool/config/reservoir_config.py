"""
Reservoir Configuration.

The ReservoirConfig is the resolved, immutable value object a Reservoir is
built from. It collects the pools, the input and pool-to-pool connection
rules, the synapse settings (delays, short-term plasticity), the spectral
radius targets and the simulation settings.

Example:
========
    config = ReservoirConfig(
        num_inputs=1,
        pools=[PoolConfig(name="P1", groups=[
            NeuronGroupConfig(name="exc", role=NeuronRole.EXCITATORY, relative_share=4),
            NeuronGroupConfig(name="inh", role=NeuronRole.INHIBITORY, relative_share=1),
        ])],
        input_connections=[InputConnectionConfig(input_field=0, pool="P1", analog_density=0.5)],
        spectral_radius=SpectralRadiusConfig(analog=0.9),
        seed=42,
    )

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from neuropool.config.base import BaseConfig
from neuropool.config.pool_config import PoolConfig, RoleRatios
from neuropool.config.random_value import RandomValueConfig
from neuropool.config.validation import ValidatedConfig
from neuropool.errors import ConfigurationError


class TargetScope(Enum):
    """Which roles an input connection may target."""

    ALL = "all"
    EXCITATORY = "excitatory"
    INHIBITORY = "inhibitory"


class DelayMethod(Enum):
    """How synaptic delays are derived."""

    DISTANCE = "distance"  # Linear in normalized source-target distance
    RANDOM = "random"  # Uniform in [0, max_delay]


# =============================================================================
# SYNAPSE DYNAMICS
# =============================================================================


@dataclass
class DynamicsConfig(ValidatedConfig):
    """Short-term plasticity (facilitation/depression) of a set of synapses.

    Internal synapses: applied only where the target is spiking and the
    source emits spikes. Input synapses: applied to every synapse of the
    input connection, an input field counting as firing on each cycle its
    value is nonzero. Each synapse jitters the nominal values below by a
    filtered gaussian within ±25%.
    """

    enabled: bool = False
    resting_efficacy: float = 0.99
    tau_facilitation: float = 1.0
    tau_depression: float = 3.0

    _validation_rules = {
        "resting_efficacy": ("range(0.0, 1.0)",),
        "tau_facilitation": ("positive", "finite"),
        "tau_depression": ("positive", "finite"),
    }

    def validate(self) -> None:
        self.validate_config()


# =============================================================================
# CONNECTION RULES
# =============================================================================


@dataclass
class InputConnectionConfig(ValidatedConfig):
    """Connection of one input field to one pool.

    Analog and spiking targets are selected independently, each with its own
    density and role scope.
    """

    input_field: int
    """Index of the input field in the input vector."""

    pool: str
    """Name of the target pool."""

    analog_density: float = 1.0
    """Fraction of the pool's size connected among analog targets."""

    spiking_density: float = 1.0
    """Fraction of the pool's size connected among spiking targets."""

    analog_scope: TargetScope = TargetScope.ALL
    spiking_scope: TargetScope = TargetScope.ALL

    weight: RandomValueConfig = field(
        default_factory=lambda: RandomValueConfig(min=0.0, max=1.0, random_sign=True)
    )
    """Input weight distribution. Spiking targets always get |weight|."""

    dynamics: DynamicsConfig = field(default_factory=DynamicsConfig)
    """Short-term plasticity of this connection's synapses (off by default)."""

    _validation_rules = {
        "input_field": ("non_negative_integer",),
        "pool": ("non_empty_string",),
        "analog_density": ("probability",),
        "spiking_density": ("probability",),
    }

    def validate(self) -> None:
        self.validate_config()
        self.weight.validate()
        self.dynamics.validate()


@dataclass
class PoolConnectionConfig(ValidatedConfig):
    """Connection from one pool to another.

    ``round(source_size × source_density)`` source neurons each reach about
    ``target_size × target_density`` targets.
    """

    source_pool: str
    target_pool: str

    source_density: float = 0.1
    """Fraction of the source pool acting as sources."""

    target_density: float = 0.1
    """Fraction of the target pool reached by each source."""

    ratios: RoleRatios = field(default_factory=RoleRatios)

    allow_self_connection: bool = False
    """Only relevant when source and target pool are the same pool."""

    weight: RandomValueConfig = field(default_factory=RandomValueConfig)

    _validation_rules = {
        "source_pool": ("non_empty_string",),
        "target_pool": ("non_empty_string",),
        "source_density": ("probability",),
        "target_density": ("probability",),
    }

    def validate(self) -> None:
        self.validate_config()
        self.ratios.validate()
        self.weight.validate()


# =============================================================================
# SYNAPSES
# =============================================================================


@dataclass
class SynapseConfig(ValidatedConfig):
    """Delays and dynamics shared by all synapses of the reservoir."""

    max_input_delay: int = 0
    """Maximum delay (cycles) of input synapses. 0 = no delay."""

    max_internal_delay: int = 0
    """Maximum delay (cycles) of neuron-to-neuron synapses. 0 = no delay."""

    delay_method: DelayMethod = DelayMethod.DISTANCE

    dynamics: DynamicsConfig = field(default_factory=DynamicsConfig)

    _validation_rules = {
        "max_input_delay": ("non_negative_integer",),
        "max_internal_delay": ("non_negative_integer",),
    }

    def validate(self) -> None:
        self.validate_config()
        self.dynamics.validate()


@dataclass
class SpectralRadiusConfig:
    """Target spectral radius of the internal weights per target activation kind.

    None leaves that scope unscaled. Equal analog and spiking targets
    normalize the whole internal weight matrix at once.
    """

    analog: Optional[float] = None
    spiking: Optional[float] = None

    @property
    def enabled(self) -> bool:
        return self.analog is not None or self.spiking is not None

    def validate(self) -> None:
        for name, value in (("analog", self.analog), ("spiking", self.spiking)):
            if value is not None and value <= 0:
                raise ConfigurationError(f"Spectral radius target '{name}' must be > 0, got {value}")


@dataclass
class HealthConfig:
    """Thresholds of the health fractions reported by collect_statistics.

    Attributes:
        saturation_margin: Analog signal within this margin of 0 or 1 counts
            as saturated for that cycle
        saturation_ratio: Fraction of cycles a neuron must be saturated to
            count as a saturated neuron
        constant_firing_ratio: Fraction of cycles a neuron must fire to count
            as constantly firing
    """

    saturation_margin: float = 0.02
    saturation_ratio: float = 0.9
    constant_firing_ratio: float = 1.0


# =============================================================================
# RESERVOIR
# =============================================================================


@dataclass
class ReservoirConfig(BaseConfig, ValidatedConfig):
    """Complete configuration of a reservoir instance."""

    pools: List[PoolConfig] = field(default_factory=list)
    """Pools in reservoir flat-index order."""

    num_inputs: int = 1
    """Length of the input vector passed to compute()."""

    input_connections: List[InputConnectionConfig] = field(default_factory=list)
    pool_connections: List[PoolConnectionConfig] = field(default_factory=list)
    synapse: SynapseConfig = field(default_factory=SynapseConfig)
    spectral_radius: SpectralRadiusConfig = field(default_factory=SpectralRadiusConfig)

    cycles_per_input: int = 1
    """Simulation cycles computed for every input vector."""

    augmented_states: bool = False
    """Instance-level switch for secondary predictors (groups must opt in too)."""

    adjust_analog_input_strength: bool = False
    """Divide the input weights of analog neurons by their number of inputs."""

    num_workers: int = 1
    """Worker threads used by the simulation phases."""

    health: HealthConfig = field(default_factory=HealthConfig)

    _validation_rules = {
        "num_inputs": ("positive_integer",),
        "cycles_per_input": ("positive_integer",),
        "num_workers": ("positive_integer",),
    }

    def pool_index(self, name: str) -> int:
        """Index of the pool named ``name``.

        Raises:
            ConfigurationError: If no such pool exists
        """
        for i, pool in enumerate(self.pools):
            if pool.name == name:
                return i
        raise ConfigurationError(f"Pool '{name}' does not exist")

    def validate(self) -> None:
        """Validate the whole configuration tree.

        Raises:
            ConfigurationError: On the first inconsistency found
        """
        self.validate_config()
        try:
            self.get_torch_dtype()
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if not self.pools:
            raise ConfigurationError("Reservoir has no pools")
        names = [p.name for p in self.pools]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate pool names: {names}")
        for pool in self.pools:
            pool.validate()
        for conn in self.input_connections:
            conn.validate()
            if conn.input_field >= self.num_inputs:
                raise ConfigurationError(
                    f"Input field {conn.input_field} out of range for {self.num_inputs} inputs"
                )
            self.pool_index(conn.pool)
        for conn in self.pool_connections:
            conn.validate()
            self.pool_index(conn.source_pool)
            self.pool_index(conn.target_pool)
        self.synapse.validate()
        self.spectral_radius.validate()


__all__ = [
    "TargetScope",
    "DelayMethod",
    "InputConnectionConfig",
    "PoolConnectionConfig",
    "DynamicsConfig",
    "SynapseConfig",
    "SpectralRadiusConfig",
    "HealthConfig",
    "ReservoirConfig",
]
