from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for users.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def list_active_by_roles(self, roles: Iterable[Role]) -> Sequence[User]:
        raise NotImplementedError
