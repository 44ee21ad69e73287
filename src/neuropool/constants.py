"""
Numeric constants shared across the reservoir.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

# =============================================================================
# NEURON CONSTANTS
# =============================================================================

MAX_RETAINMENT_RATE = 0.99
"""Upper bound of analog retainment (leak) strength; values >= 1 diverge."""

ANALOG_FIRING_THRESHOLD = 0.00125
"""Rescaled analog state above which an analog neuron registers a spike."""

PREDICTOR_HISTORY_LENGTH = 64
"""Number of cycles kept in a neuron's firing history."""

FADING_SUM_DECAY = 0.005
"""Per-cycle decay of the fading sum statistic kept per neuron."""

# =============================================================================
# SYNAPSE CONSTANTS
# =============================================================================

STP_JITTER_LOW = 0.75
"""Lower bound of jittered STP parameters, as fraction of nominal value."""

STP_JITTER_HIGH = 1.25
"""Upper bound of jittered STP parameters, as fraction of nominal value."""

# =============================================================================
# SPECTRAL RADIUS ESTIMATION
# =============================================================================

POWER_ITERATION_MAX_STEPS = 1000
"""Maximum power iteration steps when estimating the dominant eigenvalue."""

POWER_ITERATION_TOLERANCE = 1e-9
"""Relative change of the estimate below which power iteration stops."""

POWER_ITERATION_WINDOW = 64
"""Steps over which the geometric-mean growth rate is measured."""
