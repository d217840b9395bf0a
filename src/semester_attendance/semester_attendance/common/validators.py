from __future__ import annotations

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_range(value: int, field_name: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return number
