"""JSON envelope, session identity and error translation shared by controllers."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..users.model import Caller

logger = logging.getLogger(__name__)

# Checked in order, so subclasses must come before their parents.
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (ConflictError, 400),
    (InvalidStateError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
)


def status_for(exc: DomainError) -> int:
    for error_cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status
    return 400


def json_ok(data: Any = None, *, message: str | None = None, status: int = 200, count: int | None = None):
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if count is not None:
        body["count"] = count
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def json_error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def request_json() -> dict[str, Any]:
    """Body of the current request as a dict; an empty body counts as ``{}``."""

    if not request.get_data():
        return {}
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def current_caller() -> Caller:
    if "user_id" not in session:
        raise AuthenticationError("Not authenticated")
    try:
        role = Role(session.get("role"))
    except ValueError:
        raise AuthenticationError("Not authenticated")
    return Caller(user_id=int(session["user_id"]), role=role)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Not authenticated", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Not authenticated", 401)
        if session.get("role") != Role.ADMIN.value:
            return json_error("Admin role required", 403)
        return view(*args, **kwargs)

    return wrapper


def json_errors(view):
    """Translate exceptions raised by a view into the JSON error envelope."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            status = status_for(e)
            logger.info("%s %s rejected (%s): %s", request.method, request.path, status, e)
            return json_error(str(e), status)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            return json_error("Internal server error", 500)

    return wrapper
