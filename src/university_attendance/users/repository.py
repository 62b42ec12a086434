from __future__ import annotations

from typing import Optional, Protocol

from .model import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError
