"""
Neuropool: reservoir computing with analog and spiking neuron pools.

A reservoir is a fixed, randomly wired recurrent network of analog and
spiking neurons arranged in 3D pools. Input vectors drive it cycle by
cycle, and the states of its predictor neurons are copied out as features
for an external readout layer.

Quick Start:
============
    from neuropool import NeuronGroupConfig, PoolConfig, Reservoir, ReservoirConfig
    from neuropool.config import InputConnectionConfig, NeuronRole

    config = ReservoirConfig(
        pools=[
            PoolConfig(
                name="P1",
                groups=[
                    NeuronGroupConfig("exc", role=NeuronRole.EXCITATORY, relative_share=4),
                    NeuronGroupConfig("inh", role=NeuronRole.INHIBITORY, relative_share=1),
                ],
            )
        ],
        input_connections=[InputConnectionConfig(input_field=0, pool="P1")],
    )
    reservoir = Reservoir(config, rng=42)
    reservoir.compute([0.5])
    features = [0.0] * reservoir.num_predictors
    reservoir.copy_predictors_to(features)

Author: Neuropool Project
Date: October 2026
"""

from neuropool.config import (
    NeuronGroupConfig,
    PoolConfig,
    ReservoirConfig,
)
from neuropool.errors import (
    ComponentError,
    ConfigurationError,
    ConfigValidationError,
    NeuropoolError,
)
from neuropool.reservoir import Reservoir, ReservoirStat
from neuropool.utils.rng import RandomSource

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Reservoir",
    "ReservoirStat",
    "ReservoirConfig",
    "PoolConfig",
    "NeuronGroupConfig",
    "RandomSource",
    "NeuropoolError",
    "ComponentError",
    "ConfigurationError",
    "ConfigValidationError",
]
