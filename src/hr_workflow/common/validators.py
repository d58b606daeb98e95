from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_text(value, field_name: str) -> Optional[str]:
    """None passes through; anything else must be a string."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value


def optional_text(value, field_name: str) -> Optional[str]:
    value = require_text(value, field_name)
    return (value or "").strip() or None


def require_non_empty(value: Optional[str], field_name: str) -> str:
    value = require_text(value, field_name)
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def require_choice(value, enum_cls: Type[E], field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")
