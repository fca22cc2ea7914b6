from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import g, jsonify, request

from app.backoffice.constants import Profile
from app.backoffice.errors import error_body
from app.backoffice.security import Principal


def current_principal() -> Principal | None:
    return getattr(g, "current_principal", None)


def _unauthorized():
    return jsonify(error_body(401, "Unauthorized", "Authentication required.", request.path)), 401


def _forbidden():
    return jsonify(error_body(403, "Forbidden", "Access denied", request.path)), 403


def require_auth(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if current_principal() is None:
            return _unauthorized()
        return fn(*args, **kwargs)

    return wrapped


def require_role(role: Profile) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            principal = current_principal()
            # Unauthenticated -> 401, authenticated without the role -> 403.
            if principal is None:
                return _unauthorized()
            if not principal.has_role(role):
                return _forbidden()
            return fn(*args, **kwargs)

        return wrapped

    return decorator
