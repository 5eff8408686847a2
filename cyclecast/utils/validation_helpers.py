"""Input validation utilities for critical functions."""

import logging
import math
from collections.abc import Iterable
from typing import Any

logger = logging.getLogger(__name__)


def validate_range(value: float, name: str, min_val: float, max_val: float) -> None:
    """
    Validate value is within range [min_val, max_val].

    Args:
        value: The value to validate
        name: Parameter name for error message
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)

    Raises:
        ValueError: If value is outside the range
    """
    if not (min_val <= value <= max_val):
        raise ValueError(f"{name} must be between {min_val} and {max_val}, got {value}")
    logger.debug(f"Validated {name}={value} is in range [{min_val}, {max_val}]")


def validate_positive_int(value: int, name: str, min_val: int = 1) -> None:
    """
    Validate value is a positive integer >= min_val.

    Args:
        value: The value to validate
        name: Parameter name for error message
        min_val: Minimum allowed value (default 1)

    Raises:
        ValueError: If value is not an integer or is less than min_val
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < min_val:
        raise ValueError(f"{name} must be an integer >= {min_val}, got {value}")
    logger.debug(f"Validated {name}={value} is positive integer >= {min_val}")


def validate_enum(value: str, name: str, valid_values: Iterable[str]) -> None:
    """
    Validate value is one of the valid enum values.

    Raises:
        ValueError: If value is not in valid_values
    """
    valid_values = list(valid_values)
    if value not in valid_values:
        raise ValueError(f"{name} must be one of {valid_values}, got '{value}'")
    logger.debug(f"Validated {name}='{value}' is in {valid_values}")


def is_finite_number(value: Any) -> bool:
    """True for int/float values that are not NaN or infinite (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_valid_position(value: Any) -> bool:
    """True for 1-based integer finishing positions."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1
