"""Lightweight validation helpers used by the services and HTTP handlers."""

from enum import Enum
from typing import Any, Iterable

from support_copilot.utils.error_handling import ValidationError


def ensure_present(value: Any, field: str) -> Any:
    """Raise ValidationError if value is falsy or blank."""
    if value is None or (isinstance(value, str) and not value.strip()) or value == []:
        raise ValidationError(f"{field} is required")
    return value


def ensure_choice(value: Any, field: str, choices: Iterable[Any]) -> str:
    """Raise ValidationError unless value is one of the allowed choices (enum classes accepted)."""
    allowed = [c.value if isinstance(c, Enum) else c for c in choices]
    if value not in allowed:
        raise ValidationError(f"Invalid {field}. Must be one of: {', '.join(allowed)}")
    return value
