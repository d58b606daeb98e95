from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account that can submit or act on requests.

    Plain data object; the role is already normalized to a canonical ``Role``.
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    email: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Actor:
    """Who is performing a workflow call. Passed explicitly into every service method."""

    user_id: int
    role: Role
