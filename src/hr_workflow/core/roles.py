"""Role alias normalization.

Role strings arrive from the user table and from session data in several
spellings. They are collapsed to one canonical ``Role`` here, at the edge,
so nothing downstream compares raw strings.
"""
from __future__ import annotations

from .enums import Role
from .exceptions import ValidationError

_ALIASES = {
    "employee": Role.EMPLOYEE,
    "staff": Role.EMPLOYEE,
    "team leader": Role.TEAM_LEADER,
    "team lead": Role.TEAM_LEADER,
    "team manager": Role.TEAM_MANAGER,
    "manager": Role.TEAM_MANAGER,
    "hr": Role.HR,
    "hr manager": Role.HR,
    "hr bp": Role.HR,
    "hr executive": Role.HR,
    "vp": Role.VP,
    "vice president": Role.VP,
    "senior vp": Role.VP,
    "admin": Role.ADMIN,
    "system administrator": Role.ADMIN,
    "super admin": Role.ADMIN,
}


def normalize_role(value) -> Role:
    if isinstance(value, Role):
        return value
    key = " ".join(str(value or "").split()).lower()
    role = _ALIASES.get(key)
    if role is None:
        raise ValidationError(f"Unknown role: {value!r}")
    return role
