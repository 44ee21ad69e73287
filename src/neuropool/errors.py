"""
Custom exception classes for neuropool.

This module provides:
1. Hierarchical exception classes for different error categories
2. Consistent error message formatting across components

Exception Hierarchy:
====================
NeuropoolError (base)
├── ComponentError - Errors raised by a named reservoir component
└── ConfigurationError - Invalid or irreconcilable configuration
    └── ConfigValidationError - A declarative validation rule failed

Usage Examples:
===============
    # Raise component error
    raise ComponentError("SpectralRadius", "scope 'analog' has no synapses")

    # Raise configuration error
    raise ConfigurationError("Pool 'P2' referenced by connection does not exist")

Design Philosophy:
==================
- Construction-time failures are configuration errors: they abort building
  the reservoir so that a malformed reservoir never runs
- Runtime (compute/reset) has no internal failure modes once constructed
- Argument errors of low-level helpers stay plain ValueError

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

# =============================================================================
# Exception Hierarchy
# =============================================================================


class NeuropoolError(Exception):
    """Base exception for all neuropool-specific errors.

    All custom exceptions in neuropool inherit from this class, enabling
    code to catch neuropool errors specifically:

        try:
            reservoir = Reservoir(config, rng=RandomSource(0))
        except NeuropoolError as e:
            logger.error(f"Reservoir construction failed: {e}")
    """


class ComponentError(NeuropoolError):
    """Error in a named reservoir component.

    Args:
        component_name: Name of the component (e.g., "Topology", "Pool 'P1'")
        message: Description of the error
    """

    def __init__(self, component_name: str, message: str):
        super().__init__(f"[{component_name}] {message}")
        self.component_name = component_name


class ConfigurationError(NeuropoolError):
    """Invalid configuration parameters.

    Raised when configuration values are out of valid range, incompatible
    with each other, or cannot be realized (e.g. a degenerate weight matrix
    during spectral radius normalization).

    Example:
        raise ConfigurationError("retainment strength must be < 1, got 1.0")
    """


class ConfigValidationError(ConfigurationError):
    """Raised when a declarative configuration validation rule fails."""


__all__ = [
    "NeuropoolError",
    "ComponentError",
    "ConfigurationError",
    "ConfigValidationError",
]
