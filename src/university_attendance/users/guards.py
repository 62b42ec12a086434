from __future__ import annotations

from functools import wraps

from flask import g, session

from ..common.http import fail
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .service import SessionUser

SESSION_KEY = "user"


def current_user() -> SessionUser:
    """Only valid inside a view wrapped by `login_required` / `role_required`."""
    return g.current_user


def current_profile_id() -> int:
    """student_id or faculty_id linked to the logged-in account."""
    user = current_user()
    if user.profile_id is None:
        raise AuthorizationError("No profile is linked to this account")
    return user.profile_id


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        data = session.get(SESSION_KEY)
        if not data:
            return fail("Not authorized, please log in", 401)
        g.current_user = SessionUser.from_session(data)
        return view(*args, **kwargs)

    return wrapper


def role_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            data = session.get(SESSION_KEY)
            if not data:
                return fail("Not authorized, please log in", 401)
            if data.get("role") not in allowed:
                return fail("You do not have permission to perform this action", 403)
            g.current_user = SessionUser.from_session(data)
            return view(*args, **kwargs)

        return wrapper

    return decorator
