"""
Activation Function Configurations.

Each activation config describes one concrete activation function and
exports its parameters as a flat name → value mapping. The neuron
population stores those values column-wise (one tensor per parameter name),
so that all neurons of all activation types are updated with vectorized
masks instead of per-neuron objects.

Analog activations (continuous state, output rescaled to [0, 1]):
- TANH: tanh(steepness · x), output range (-1, 1)
- SIGMOID: 1 / (1 + exp(-steepness · x)), output range (0, 1)
- ELLIOT: steepness · x / (1 + |steepness · x|), output range (-1, 1)

Spiking activations (binary firing events):
- LEAKY_IF: leaky integrate-and-fire, v ← rest + (v - rest)·retention + R·x
- SIMPLE_IF: integrate-and-fire with resting potential 0 and linear decay
- IZHIKEVICH: two-variable Izhikevich model integrated with Euler sub-steps

All spiking models share threshold → reset → refractory handling: once the
membrane crosses threshold the neuron fires, is reset on the next cycle and
ignores its stimulation for ``refractory_periods`` cycles.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, Dict, Tuple

from neuropool.config.validation import ValidatedConfig
from neuropool.errors import ConfigurationError


class ActivationKind(Enum):
    """Signal semantics of an activation function."""

    ANALOG = "analog"  # Continuous state
    SPIKING = "spiking"  # Binary firing events


class ActivationType(IntEnum):
    """Concrete activation function tag stored per neuron."""

    TANH = 0
    SIGMOID = 1
    ELLIOT = 2
    LEAKY_IF = 3
    SIMPLE_IF = 4
    IZHIKEVICH = 5


SPIKING_TYPES: Tuple[ActivationType, ...] = (
    ActivationType.LEAKY_IF,
    ActivationType.SIMPLE_IF,
    ActivationType.IZHIKEVICH,
)

PARAMETER_NAMES: Tuple[str, ...] = (
    "steepness",
    "out_min",
    "out_max",
    "rest",
    "reset",
    "threshold",
    "refractory",
    "resistance",
    "retention",
    "recovery_scale",
    "recovery_sensitivity",
    "recovery_reset",
    "input_scale",
    "sub_steps",
)
"""Parameter columns of the population's activation table."""


@dataclass
class ActivationConfig(ValidatedConfig):
    """Base class of all activation configs."""

    activation_type: ClassVar[ActivationType]

    @property
    def kind(self) -> ActivationKind:
        if self.activation_type in SPIKING_TYPES:
            return ActivationKind.SPIKING
        return ActivationKind.ANALOG

    @property
    def output_range(self) -> Tuple[float, float]:
        """Range of the function output, used to rescale analog signals."""
        return (0.0, 1.0)

    def parameters(self) -> Dict[str, float]:
        """Parameter columns of this activation (missing names default to 0)."""
        low, high = self.output_range
        return {"out_min": low, "out_max": high}

    def validate(self) -> None:
        self.validate_config()


# =============================================================================
# ANALOG ACTIVATIONS
# =============================================================================


@dataclass
class TanhConfig(ActivationConfig):
    """Hyperbolic tangent."""

    activation_type: ClassVar[ActivationType] = ActivationType.TANH

    steepness: float = 1.0

    _validation_rules = {"steepness": ("positive", "finite")}

    @property
    def output_range(self) -> Tuple[float, float]:
        return (-1.0, 1.0)

    def parameters(self) -> Dict[str, float]:
        params = super().parameters()
        params["steepness"] = self.steepness
        return params


@dataclass
class SigmoidConfig(ActivationConfig):
    """Logistic sigmoid."""

    activation_type: ClassVar[ActivationType] = ActivationType.SIGMOID

    steepness: float = 1.0

    _validation_rules = {"steepness": ("positive", "finite")}

    def parameters(self) -> Dict[str, float]:
        params = super().parameters()
        params["steepness"] = self.steepness
        return params


@dataclass
class ElliotConfig(ActivationConfig):
    """Elliot (softsign) function, a cheap tanh look-alike."""

    activation_type: ClassVar[ActivationType] = ActivationType.ELLIOT

    steepness: float = 1.0

    _validation_rules = {"steepness": ("positive", "finite")}

    @property
    def output_range(self) -> Tuple[float, float]:
        return (-1.0, 1.0)

    def parameters(self) -> Dict[str, float]:
        params = super().parameters()
        params["steepness"] = self.steepness
        return params


# =============================================================================
# SPIKING ACTIVATIONS
# =============================================================================


@dataclass
class SpikingActivationConfig(ActivationConfig):
    """Shared membrane parameters of spiking activations."""

    resting_potential: float = -70.0
    """Membrane potential at rest (mV)."""

    reset_potential: float = -70.0
    """Membrane potential right after a spike (mV)."""

    firing_threshold: float = -50.0
    """Potential at which the neuron fires (mV)."""

    refractory_periods: int = 1
    """Cycles after a spike during which stimulation is ignored."""

    _validation_rules = {
        "resting_potential": ("finite",),
        "reset_potential": ("finite",),
        "firing_threshold": ("finite",),
        "refractory_periods": ("non_negative_integer",),
    }

    def validate(self) -> None:
        super().validate()
        if self.firing_threshold <= self.resting_potential:
            raise ConfigurationError(
                f"{self.__class__.__name__}: firing_threshold ({self.firing_threshold}) "
                f"must be above resting_potential ({self.resting_potential})"
            )

    def parameters(self) -> Dict[str, float]:
        params = super().parameters()
        params.update(
            rest=self.resting_potential,
            reset=self.reset_potential,
            threshold=self.firing_threshold,
            refractory=float(self.refractory_periods),
        )
        return params


@dataclass
class LeakyIFConfig(SpikingActivationConfig):
    """Leaky integrate-and-fire neuron.

    v ← rest + (v - rest) · retention + membrane_resistance · x
    """

    activation_type: ClassVar[ActivationType] = ActivationType.LEAKY_IF

    membrane_resistance: float = 15.0
    """Scales stimulation into membrane potential change."""

    membrane_retention: float = 0.9
    """Fraction of the potential above rest kept per cycle (0-1)."""

    _validation_rules = {
        **SpikingActivationConfig._validation_rules,
        "membrane_resistance": ("positive",),
        "membrane_retention": ("range(0.0, 1.0)",),
    }

    def parameters(self) -> Dict[str, float]:
        params = super().parameters()
        params.update(resistance=self.membrane_resistance, retention=self.membrane_retention)
        return params


@dataclass
class SimpleIFConfig(SpikingActivationConfig):
    """Simple integrate-and-fire neuron resting at 0.

    The membrane is clamped to the threshold on the cycle it fires.
    """

    activation_type: ClassVar[ActivationType] = ActivationType.SIMPLE_IF

    resting_potential: float = 0.0
    reset_potential: float = 5.0
    firing_threshold: float = 20.0

    resistance: float = 15.0
    """Scales stimulation into membrane potential change."""

    decay_rate: float = 0.05
    """Fraction of the potential lost per cycle (0-1)."""

    _validation_rules = {
        **SpikingActivationConfig._validation_rules,
        "resistance": ("positive",),
        "decay_rate": ("probability",),
    }

    def parameters(self) -> Dict[str, float]:
        params = super().parameters()
        params.update(resistance=self.resistance, retention=1.0 - self.decay_rate)
        return params


@dataclass
class IzhikevichConfig(SpikingActivationConfig):
    """Izhikevich two-variable neuron (regular spiking defaults).

    dv/dt = 0.04 v² + 5 v + 140 - u + input_scale · x
    du/dt = a (b v - u);  on spike: v ← reset_potential, u ← u + d
    """

    activation_type: ClassVar[ActivationType] = ActivationType.IZHIKEVICH

    resting_potential: float = -70.0
    reset_potential: float = -65.0
    firing_threshold: float = 30.0

    recovery_time_scale: float = 0.02
    """Parameter a."""

    recovery_sensitivity: float = 0.2
    """Parameter b."""

    recovery_reset: float = 8.0
    """Parameter d, added to the recovery variable after a spike."""

    input_scale: float = 20.0
    """Scales stimulation into input current."""

    sub_steps: int = 2
    """Euler sub-steps per cycle."""

    _validation_rules = {
        **SpikingActivationConfig._validation_rules,
        "recovery_time_scale": ("positive",),
        "recovery_sensitivity": ("finite",),
        "recovery_reset": ("finite",),
        "input_scale": ("positive",),
        "sub_steps": ("positive_integer",),
    }

    def parameters(self) -> Dict[str, float]:
        params = super().parameters()
        params.update(
            recovery_scale=self.recovery_time_scale,
            recovery_sensitivity=self.recovery_sensitivity,
            recovery_reset=self.recovery_reset,
            input_scale=self.input_scale,
            sub_steps=float(self.sub_steps),
        )
        return params


__all__ = [
    "ActivationKind",
    "ActivationType",
    "ActivationConfig",
    "TanhConfig",
    "SigmoidConfig",
    "ElliotConfig",
    "SpikingActivationConfig",
    "LeakyIFConfig",
    "SimpleIFConfig",
    "IzhikevichConfig",
    "PARAMETER_NAMES",
    "SPIKING_TYPES",
]
