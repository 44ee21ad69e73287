"""
Neuron Group Configurations.

A pool is filled with neurons drawn from one or more neuron groups. The
group defines everything a neuron inherits at creation: its role, its
activation function, the distribution of its bias, its analog retainment
and whether it emits the augmented (secondary) predictor.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from neuropool.config.activation_config import ActivationConfig, ActivationKind, TanhConfig
from neuropool.config.random_value import RandomValueConfig
from neuropool.config.validation import ValidatedConfig
from neuropool.constants import ANALOG_FIRING_THRESHOLD, MAX_RETAINMENT_RATE
from neuropool.errors import ConfigurationError


class NeuronRole(Enum):
    """Role of a node in the reservoir."""

    EXCITATORY = "excitatory"
    INHIBITORY = "inhibitory"
    INPUT = "input"  # Input field node, never a pool member


class SignalingRestriction(Enum):
    """Which signal a neuron emits regardless of the target's kind."""

    NONE = "none"  # Analog signal to analog targets, spikes to spiking targets
    ANALOG_ONLY = "analog_only"
    SPIKING_ONLY = "spiking_only"


@dataclass
class RetainmentConfig(ValidatedConfig):
    """Leaky integration of analog neurons.

    A ``density`` fraction of the group's analog neurons gets a retainment
    strength r drawn from ``strength``; their state evolves as
    state ← r · state + (1 - r) · activation(stimuli).
    """

    density: float = 1.0
    """Fraction of the group's neurons that retain state."""

    strength: RandomValueConfig = field(
        default_factory=lambda: RandomValueConfig(min=0.1, max=0.5)
    )
    """Distribution of the retainment strength (must stay below 1)."""

    _validation_rules = {"density": ("probability",)}

    def validate(self) -> None:
        self.validate_config()
        self.strength.validate()
        if self.strength.random_sign:
            raise ConfigurationError("Retainment strength cannot have a random sign")
        if self.strength.min < 0.0:
            raise ConfigurationError(
                f"Retainment strength must be >= 0, got min={self.strength.min}"
            )
        if self.strength.max >= 1.0:
            raise ConfigurationError(
                f"Retainment strength must be < 1 to keep the state bounded, "
                f"got max={self.strength.max} (samples are capped at {MAX_RETAINMENT_RATE})"
            )


@dataclass
class NeuronGroupConfig(ValidatedConfig):
    """One group of neurons inside a pool."""

    name: str
    """Group name, unique within its pool."""

    role: NeuronRole = NeuronRole.EXCITATORY
    """EXCITATORY or INHIBITORY. Decides the sign of outgoing weights."""

    relative_share: float = 1.0
    """Share of the pool taken by this group, relative to the other groups."""

    activation: ActivationConfig = field(default_factory=TanhConfig)
    """Activation function of every neuron in the group."""

    bias: RandomValueConfig = field(default_factory=lambda: RandomValueConfig.constant(0.0))
    """Distribution of the constant bias added to the stimulation each cycle."""

    retainment: Optional[RetainmentConfig] = None
    """Leaky integration (analog groups only). None = no retainment."""

    firing_threshold: float = ANALOG_FIRING_THRESHOLD
    """Increase of the analog signal counted as a firing event (analog only)."""

    signaling_restriction: SignalingRestriction = SignalingRestriction.NONE
    """Analog groups may restrict their output signal; spiking groups always spike."""

    augmented_states: bool = False
    """Emit the secondary predictor (squared state / recent firing rate)."""

    _validation_rules = {
        "name": ("non_empty_string",),
        "relative_share": ("positive", "finite"),
        "firing_threshold": ("range(0.0, 1.0)",),
    }

    @property
    def kind(self) -> ActivationKind:
        return self.activation.kind

    @property
    def effective_restriction(self) -> SignalingRestriction:
        if self.kind == ActivationKind.SPIKING:
            return SignalingRestriction.SPIKING_ONLY
        return self.signaling_restriction

    def validate(self) -> None:
        self.validate_config()
        if self.role == NeuronRole.INPUT:
            raise ConfigurationError(f"Neuron group '{self.name}' cannot have the INPUT role")
        self.activation.validate()
        self.bias.validate()
        if self.retainment is not None:
            if self.kind == ActivationKind.SPIKING:
                raise ConfigurationError(
                    f"Neuron group '{self.name}': retainment applies to analog groups only"
                )
            self.retainment.validate()


__all__ = [
    "NeuronRole",
    "SignalingRestriction",
    "RetainmentConfig",
    "NeuronGroupConfig",
]
