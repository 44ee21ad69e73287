"""
Configuration dataclasses for reservoir construction.

Author: Neuropool Project
Date: October 2026
"""

from neuropool.config.activation_config import (
    ActivationConfig,
    ActivationKind,
    ActivationType,
    ElliotConfig,
    IzhikevichConfig,
    LeakyIFConfig,
    SigmoidConfig,
    SimpleIFConfig,
    SpikingActivationConfig,
    TanhConfig,
)
from neuropool.config.base import BaseConfig
from neuropool.config.neuron_config import (
    NeuronGroupConfig,
    NeuronRole,
    RetainmentConfig,
    SignalingRestriction,
)
from neuropool.config.pool_config import InterconnectionConfig, PoolConfig, RoleRatios
from neuropool.config.random_value import DistributionType, RandomValueConfig
from neuropool.config.reservoir_config import (
    DelayMethod,
    DynamicsConfig,
    HealthConfig,
    InputConnectionConfig,
    PoolConnectionConfig,
    ReservoirConfig,
    SpectralRadiusConfig,
    SynapseConfig,
    TargetScope,
)
from neuropool.config.validation import ValidatedConfig, ValidatorRegistry

__all__ = [
    # Base
    "BaseConfig",
    "ValidatedConfig",
    "ValidatorRegistry",
    # Random values
    "DistributionType",
    "RandomValueConfig",
    # Activations
    "ActivationConfig",
    "ActivationKind",
    "ActivationType",
    "TanhConfig",
    "SigmoidConfig",
    "ElliotConfig",
    "SpikingActivationConfig",
    "LeakyIFConfig",
    "SimpleIFConfig",
    "IzhikevichConfig",
    # Neurons and pools
    "NeuronRole",
    "SignalingRestriction",
    "RetainmentConfig",
    "NeuronGroupConfig",
    "RoleRatios",
    "InterconnectionConfig",
    "PoolConfig",
    # Reservoir
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
