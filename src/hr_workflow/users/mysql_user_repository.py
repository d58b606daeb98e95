from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..core.roles import normalize_role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, full_name, username, email, password_hash, role, is_active"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        username=row["username"],
        email=row.get("email"),
        password_hash=row["password_hash"],
        role=normalize_role(row["role"]),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_active_by_roles(self, roles: Iterable[Role]) -> Sequence[User]:
        wanted = {normalize_role(r) for r in roles}
        if not wanted:
            return []
        # Role columns may hold legacy aliases, so filter after normalizing.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE is_active=1 ORDER BY user_id")
            rows = fetchall(cur)
        users = []
        for r in rows:
            try:
                user = _to_user(r)
            except ValidationError:
                continue
            if user.role in wanted:
                users.append(user)
        return users
