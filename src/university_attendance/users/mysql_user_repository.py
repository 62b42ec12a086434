from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, university_id, username, password_hash, role, full_name, profile_id, is_active"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        university_id=int(row["university_id"]),
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        full_name=row["full_name"],
        profile_id=int(row["profile_id"]) if row.get("profile_id") is not None else None,
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _to_user(row) if row else None
