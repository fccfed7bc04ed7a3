"""Validation helpers for values entered during a calibration session."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")

RawNumber = Union[str, float, int]


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Result container for validation routines.

    Parameters:
        value: Parsed value when valid.
        error: Error message when invalid.
    """

    value: Optional[T]
    error: Optional[str]

    def is_valid(self) -> bool:
        """Return True when the result holds a value and no error."""

        return self.value is not None and self.error is None


def parse_float(raw_value: RawNumber, label: str) -> ValidationResult[float]:
    """Parse a finite float from text or a number.

    Parameters:
        raw_value: Entered text or number.
        label: Label used in error messages.

    Returns:
        ValidationResult with the parsed float or an error message.
    """

    if isinstance(raw_value, str):
        stripped = raw_value.strip()
        if not stripped:
            return ValidationResult(value=None, error=f"{label} is required.")
        raw_value = stripped
    try:
        value = float(raw_value)
    except (TypeError, ValueError):
        return ValidationResult(value=None, error=f"{label} must be a number.")
    if not math.isfinite(value):
        return ValidationResult(value=None, error=f"{label} must be finite.")
    return ValidationResult(value=value, error=None)


def validate_positive_float(raw_value: RawNumber, label: str) -> ValidationResult[float]:
    """Validate a strictly positive float.

    Parameters:
        raw_value: Entered text or number.
        label: Label used in error messages.

    Returns:
        ValidationResult with the value or an error message.
    """

    result = parse_float(raw_value, label)
    if not result.is_valid():
        return result
    if result.value <= 0:
        return ValidationResult(value=None, error=f"{label} must be positive.")
    return result


def clamp_float_to_range(
    raw_value: RawNumber, min_value: float, max_value: float, label: str
) -> ValidationResult[float]:
    """Parse a float and clamp it into ``[min_value, max_value]``.

    Parameters:
        raw_value: Entered text or number.
        min_value: Lower bound.
        max_value: Upper bound.
        label: Label used in error messages.

    Returns:
        ValidationResult with the clamped value or a parse error.
    """

    result = parse_float(raw_value, label)
    if not result.is_valid():
        return result
    return ValidationResult(value=min(max(result.value, min_value), max_value), error=None)


def validate_int_in_range(
    raw_value: RawNumber, min_value: int, max_value: int, label: str
) -> ValidationResult[int]:
    """Validate an integer within a range.

    Parameters:
        raw_value: Entered text or number.
        min_value: Minimum allowed value.
        max_value: Maximum allowed value.
        label: Label used in error messages.

    Returns:
        ValidationResult with the integer or an error message.
    """

    if isinstance(raw_value, str):
        stripped = raw_value.strip()
        if not stripped:
            return ValidationResult(value=None, error=f"{label} is required.")
        raw_value = stripped
    try:
        value = int(raw_value)
    except (TypeError, ValueError, OverflowError):
        return ValidationResult(
            value=None, error=f"{label} must be an integer in [{min_value}, {max_value}]."
        )
    if isinstance(raw_value, float) and raw_value != value:
        return ValidationResult(value=None, error=f"{label} must be an integer.")
    if value < min_value or value > max_value:
        return ValidationResult(
            value=None, error=f"{label} must be in [{min_value}, {max_value}]."
        )
    return ValidationResult(value=value, error=None)
