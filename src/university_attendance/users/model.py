from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Login account.

    `profile_id` points at the student or faculty row the account belongs to;
    admins have none.
    """

    user_id: int
    university_id: int
    username: str
    password_hash: str
    role: Role
    full_name: str
    profile_id: Optional[int] = None
    is_active: bool = True
