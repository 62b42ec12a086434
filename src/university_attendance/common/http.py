"""JSON envelope helpers shared by every controller.

All API responses look like `{"success": bool, "message": str, "data": ...}`.
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import current_app, jsonify, request

from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def ok(data: Any = None, message: str = "OK", status: int = 200):
    return jsonify({"success": True, "message": message, "data": data}), status


def fail(message: str, status: int, *, error: Optional[str] = None):
    body: dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return jsonify(body), status


def api_errors(failure_message: str):
    """Map domain exceptions to HTTP status codes for one route."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except ValidationError as e:
                return fail(str(e), 400)
            except AuthenticationError as e:
                return fail(str(e), 401)
            except AuthorizationError as e:
                return fail(str(e), 403)
            except NotFoundError as e:
                return fail(str(e), 404)
            except Exception as e:
                logger.exception("%s %s failed", request.method, request.path)
                return fail(failure_message, 500, error=str(e) if current_app.debug else None)

        return wrapper

    return decorator


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_arg(*names: str) -> Optional[str]:
    """First non-empty query parameter among `names` (dashboard sends camelCase)."""
    for name in names:
        value = request.args.get(name)
        if value is not None and value.strip() != "":
            return value.strip()
    return None
