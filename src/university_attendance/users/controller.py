from __future__ import annotations

import logging

from flask import Flask, session

from ..common.http import api_errors, json_body, ok
from ..container import Container
from .guards import SESSION_KEY, current_user, login_required

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    @api_errors("Login failed")
    def auth_login():
        body = json_body()
        user = container.auth_service.authenticate(body.get("username") or "", body.get("password") or "")
        session.clear()
        session[SESSION_KEY] = user.to_session()
        logger.info("User %s logged in as %s", user.user_id, user.role.value)
        return ok(user.to_session(), "Login successful")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @login_required
    def auth_logout():
        session.clear()
        return ok(None, "Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def auth_me():
        return ok(current_user().to_session(), "Current user")
