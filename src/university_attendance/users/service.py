from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    university_id: int
    full_name: str
    role: Role
    profile_id: Optional[int]

    def to_session(self) -> dict:
        data = asdict(self)
        data["role"] = self.role.value
        return data

    @classmethod
    def from_session(cls, data: dict) -> "SessionUser":
        return cls(
            user_id=int(data["user_id"]),
            university_id=int(data["university_id"]),
            full_name=data.get("full_name", ""),
            role=Role(data["role"]),
            profile_id=int(data["profile_id"]) if data.get("profile_id") is not None else None,
        )


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        username = require_non_empty(username, "Username")
        user = self._users.get_by_username(username)
        if not user or not user.is_active:
            logger.info("Rejected login for unknown or inactive user %r", username)
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.info("Rejected login for %r: wrong password", username)
            raise AuthenticationError("Invalid username or password")

        return SessionUser(
            user_id=user.user_id,
            university_id=user.university_id,
            full_name=user.full_name,
            role=user.role,
            profile_id=user.profile_id,
        )
