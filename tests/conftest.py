"""Shared test fixtures and configuration."""

import numpy as np
import pytest
import torch

from neuropool.config import (
    InputConnectionConfig,
    InterconnectionConfig,
    LeakyIFConfig,
    NeuronGroupConfig,
    NeuronRole,
    PoolConfig,
    PoolConnectionConfig,
    RandomValueConfig,
    ReservoirConfig,
    RetainmentConfig,
    SigmoidConfig,
    SpectralRadiusConfig,
    SynapseConfig,
    TanhConfig,
)


@pytest.fixture(autouse=True)
def set_random_seed():
    """Ensure reproducible tests by setting all random seeds.

    Reservoirs never read global random state, but tests that draw their own
    tensors should still be deterministic.
    """
    torch.manual_seed(42)
    np.random.seed(42)


@pytest.fixture
def seed():
    """Standard seed for reservoir construction."""
    return 1234


def analog_pool(name="P1", dimensions=(4, 4, 2), origin=(0, 0, 0), density=0.2, **kwargs):
    """Analog pool with a 4:1 excitatory/inhibitory split."""
    return PoolConfig(
        name=name,
        groups=[
            NeuronGroupConfig(
                "exc",
                role=NeuronRole.EXCITATORY,
                relative_share=4.0,
                activation=TanhConfig(),
                bias=RandomValueConfig(min=-0.1, max=0.1),
                retainment=RetainmentConfig(density=0.5),
                augmented_states=True,
            ),
            NeuronGroupConfig(
                "inh",
                role=NeuronRole.INHIBITORY,
                relative_share=1.0,
                activation=SigmoidConfig(),
            ),
        ],
        dimensions=dimensions,
        origin=origin,
        interconnection=InterconnectionConfig(density=density),
        **kwargs,
    )


def spiking_pool(name="S1", dimensions=(3, 3, 3), origin=(10, 0, 0), density=0.2):
    """Leaky integrate-and-fire pool with a 4:1 excitatory/inhibitory split."""
    return PoolConfig(
        name=name,
        groups=[
            NeuronGroupConfig(
                "exc",
                role=NeuronRole.EXCITATORY,
                relative_share=4.0,
                activation=LeakyIFConfig(),
                augmented_states=True,
            ),
            NeuronGroupConfig(
                "inh",
                role=NeuronRole.INHIBITORY,
                relative_share=1.0,
                activation=LeakyIFConfig(),
            ),
        ],
        dimensions=dimensions,
        origin=origin,
        interconnection=InterconnectionConfig(density=density),
    )


@pytest.fixture
def small_config():
    """Single analog pool of 32 neurons driven by one input."""
    return ReservoirConfig(
        pools=[analog_pool()],
        num_inputs=1,
        input_connections=[InputConnectionConfig(input_field=0, pool="P1")],
    )


@pytest.fixture
def mixed_config():
    """Analog and spiking pools, two inputs, delays and spectral scaling."""
    return ReservoirConfig(
        pools=[analog_pool(), spiking_pool()],
        num_inputs=2,
        input_connections=[
            InputConnectionConfig(input_field=0, pool="P1", analog_density=0.5),
            InputConnectionConfig(input_field=1, pool="S1", spiking_density=0.5),
        ],
        pool_connections=[
            PoolConnectionConfig(source_pool="P1", target_pool="S1"),
            PoolConnectionConfig(source_pool="S1", target_pool="P1"),
        ],
        synapse=SynapseConfig(max_input_delay=2, max_internal_delay=3),
        spectral_radius=SpectralRadiusConfig(analog=0.9, spiking=1.2),
        augmented_states=True,
    )


@pytest.fixture
def input_sequence():
    """Deterministic two-field input sequence of 20 steps."""
    t = np.arange(20, dtype=np.float64)
    return np.stack([np.sin(0.3 * t), np.cos(0.7 * t)], axis=1)


@pytest.fixture
def make_analog_pool():
    """Factory for analog pool configs."""
    return analog_pool


@pytest.fixture
def make_spiking_pool():
    """Factory for spiking pool configs."""
    return spiking_pool
