"""Synapse components: banks, delays and short-term plasticity."""

from neuropool.components.synapses.bank import SynapseBank, SynapseBankBuilder
from neuropool.components.synapses.delay_buffer import SynapticDelayBuffer
from neuropool.components.synapses.dynamics import (
    STPParameters,
    ShortTermPlasticity,
    sample_stp_parameters,
)

__all__ = [
    "SynapseBank",
    "SynapseBankBuilder",
    "SynapticDelayBuffer",
    "STPParameters",
    "ShortTermPlasticity",
    "sample_stp_parameters",
]
