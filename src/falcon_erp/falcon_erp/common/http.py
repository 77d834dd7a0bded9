from __future__ import annotations

from functools import wraps

from flask import jsonify, session

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    RestoreInProgressError,
    StoreFailure,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (RestoreInProgressError, 409),
    (StoreFailure, 500),
)


def status_for(exc: BaseException) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def error_response(exc: BaseException, *, message: str | None = None):
    status = status_for(exc)
    return jsonify({"success": False, "error": message or str(exc)}), status


def current_user_id() -> str | None:
    return session.get("user_id")


def api_login_required(view):
    """JSON flavour of login_required: 401 instead of a redirect."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(AuthenticationError("Not authenticated"))
        return view(*args, **kwargs)

    return wrapper
