"""
Reservoir construction, simulation and statistics.

Author: Neuropool Project
Date: October 2026
"""

from neuropool.reservoir.reservoir import Reservoir
from neuropool.reservoir.spectral import (
    SpectralScope,
    estimate_spectral_radius,
    normalize_spectral_radius,
)
from neuropool.reservoir.statistics import (
    BankStat,
    DescriptiveStat,
    HealthStat,
    NeuronSetStat,
    PoolStat,
    ReservoirStat,
)
from neuropool.reservoir.topology import Topology, build_topology, group_counts

__all__ = [
    "Reservoir",
    # Topology
    "Topology",
    "build_topology",
    "group_counts",
    # Spectral radius
    "SpectralScope",
    "estimate_spectral_radius",
    "normalize_spectral_radius",
    # Statistics
    "BankStat",
    "DescriptiveStat",
    "HealthStat",
    "NeuronSetStat",
    "PoolStat",
    "ReservoirStat",
]
