"""
Declarative configuration validation.

Configs list their field rules in a ``_validation_rules`` mapping and call
``validate_config()`` from their ``validate()`` method. Rules are looked up
in the ValidatorRegistry by name, or parsed from ``range(min, max)``.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Tuple

from neuropool.errors import ConfigValidationError


# =============================================================================
# DECLARATIVE VALIDATION FRAMEWORK
# =============================================================================


class ValidatorRegistry:
    """Registry of predefined validation rules.

    Usage:
        validator = ValidatorRegistry.get_validator('probability')
        validator(0.5, 'density')  # Passes
        validator(1.5, 'density')  # Raises ConfigValidationError
    """

    _validators: Dict[str, Callable[[Any, str], None]] = {}

    @classmethod
    def register(cls, name: str, validator: Callable[[Any, str], None]) -> None:
        """Register a validation function."""
        cls._validators[name] = validator

    @classmethod
    def get_validator(cls, rule: str) -> Callable[[Any, str], None]:
        """Get validator by name or parse compound rule."""
        if rule.startswith("range("):
            return cls._parse_range_rule(rule)

        if rule in cls._validators:
            return cls._validators[rule]

        raise ValueError(f"Unknown validation rule: {rule}")

    @classmethod
    def _parse_range_rule(cls, rule: str) -> Callable[[Any, str], None]:
        """Parse range(min, max) rules."""
        inner = rule[6:-1]
        parts = [p.strip() for p in inner.split(",")]

        if len(parts) != 2:
            raise ValueError(f"Invalid range rule format: {rule}")

        min_val = float(parts[0])
        max_val = float(parts[1])

        def range_validator(value: Any, name: str) -> None:
            _require_numeric(value, name)
            if not (min_val <= value <= max_val):
                raise ConfigValidationError(
                    f"{name}={value} outside valid range [{min_val}, {max_val}]"
                )

        return range_validator


def _require_numeric(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{name} must be numeric, got {type(value)}")


def _register_builtin_validators() -> None:
    """Register standard validation rules."""

    def positive(value: Any, name: str) -> None:
        """Value must be > 0."""
        _require_numeric(value, name)
        if value <= 0:
            raise ConfigValidationError(f"{name}={value} must be positive")

    def non_negative(value: Any, name: str) -> None:
        """Value must be >= 0."""
        _require_numeric(value, name)
        if value < 0:
            raise ConfigValidationError(f"{name}={value} must be non-negative")

    def finite(value: Any, name: str) -> None:
        """Value must be finite (not inf or nan)."""
        _require_numeric(value, name)
        if not math.isfinite(value):
            raise ConfigValidationError(f"{name}={value} must be finite (not inf/nan)")

    def positive_integer(value: Any, name: str) -> None:
        """Value must be a positive integer."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(f"{name} must be integer, got {type(value)}")
        if value <= 0:
            raise ConfigValidationError(f"{name}={value} must be positive integer")

    def non_negative_integer(value: Any, name: str) -> None:
        """Value must be an integer >= 0."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(f"{name} must be integer, got {type(value)}")
        if value < 0:
            raise ConfigValidationError(f"{name}={value} must be non-negative integer")

    def probability(value: Any, name: str) -> None:
        """Value must be in [0, 1]."""
        _require_numeric(value, name)
        if not (0.0 <= value <= 1.0):
            raise ConfigValidationError(f"{name}={value} must be probability in [0, 1]")

    def non_empty_string(value: Any, name: str) -> None:
        """Value must be a non-empty string."""
        if not isinstance(value, str):
            raise ConfigValidationError(f"{name} must be string, got {type(value)}")
        if not value.strip():
            raise ConfigValidationError(f"{name} must be non-empty string")

    ValidatorRegistry.register("positive", positive)
    ValidatorRegistry.register("non_negative", non_negative)
    ValidatorRegistry.register("finite", finite)
    ValidatorRegistry.register("positive_integer", positive_integer)
    ValidatorRegistry.register("non_negative_integer", non_negative_integer)
    ValidatorRegistry.register("probability", probability)
    ValidatorRegistry.register("non_empty_string", non_empty_string)


_register_builtin_validators()


class ValidatedConfig:
    """Mixin for declarative config validation.

    Usage:
        @dataclass
        class MyConfig(ValidatedConfig):
            density: float = 0.1
            max_delay: int = 0

            _validation_rules = {
                'density': ('probability',),
                'max_delay': ('non_negative_integer',),
            }
    """

    _validation_rules: Dict[str, Tuple[str, ...]] = {}

    def validate_config(self) -> None:
        """Validate configuration based on _validation_rules.

        Raises:
            ConfigValidationError: If any validation fails
        """
        errors: List[str] = []

        for field_name, rules in self._validation_rules.items():
            if not hasattr(self, field_name):
                errors.append(f"Validation rule for non-existent field: {field_name}")
                continue

            value = getattr(self, field_name)

            for rule in rules:
                try:
                    validator = ValidatorRegistry.get_validator(rule)
                    validator(value, field_name)
                except ConfigValidationError as e:
                    errors.append(str(e))

        if errors:
            error_msg = (
                f"{self.__class__.__name__} validation failed:\n" +
                "\n".join(f"  • {e}" for e in errors)
            )
            raise ConfigValidationError(error_msg)


__all__ = [
    "ValidatorRegistry",
    "ValidatedConfig",
    "ConfigValidationError",
]
