"""
Error types and validation helpers.

The aggregation core never recovers from a precondition violation: bad
configuration is rejected before any work starts. Recovery (skipping bad
records, reporting counts) belongs to the ingestion layer.
"""

import math
from typing import Any


class GridAggregateError(Exception):
    """Base class for all gridagg errors."""
    pass


class ConfigurationError(GridAggregateError, ValueError):
    """Raised when an aggregation parameter or rulebook value is invalid."""
    pass


class EmptyInputError(GridAggregateError, ValueError):
    """Raised when an operation needs at least one event and got none."""
    pass


class IngestionError(GridAggregateError):
    """Raised when an input file cannot be read at all."""
    pass


def validate_positive_finite(value: Any, name: str) -> float:
    """
    Ensure ``value`` is a finite number greater than zero.

    Returns:
        The value as a float.

    Raises:
        ConfigurationError: If the value is missing, non-numeric, not finite or <= 0.
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number (got {value!r}).") from None
    if not math.isfinite(v) or v <= 0.0:
        raise ConfigurationError(f"{name} must be positive and finite (got {value}).")
    return v


def validate_non_negative_finite(value: Any, name: str) -> float:
    """Same as validate_positive_finite but zero is allowed."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number (got {value!r}).") from None
    if not math.isfinite(v) or v < 0.0:
        raise ConfigurationError(f"{name} must be non-negative and finite (got {value}).")
    return v


def validate_non_negative_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"{name} must be a non-negative integer (got {value!r}).")
    return value

