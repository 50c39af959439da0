from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import g, jsonify, request, session

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SESSION_KEY = "auth"

_STATUS_CODES = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def status_for(exc: Exception) -> int:
    for exc_type, code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return 500


def json_error(exc: Exception):
    """Map an exception raised by a route to ``({"error": ...}, status)``."""
    code = status_for(exc)
    if isinstance(exc, DomainError) and code != 500:
        return jsonify({"error": str(exc)}), code
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({"error": "Internal server error"}), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def auth_guard(auth_service):
    """Build a ``login_required`` decorator that restores the session into ``g.actor``."""

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            claims = session.get(SESSION_KEY)
            if not claims:
                return jsonify({"error": "Unauthorized"}), 401
            try:
                g.actor = auth_service.restore(claims)
            except AuthenticationError as e:
                session.clear()
                return json_error(e)
            return view(*args, **kwargs)

        return wrapper

    return login_required


def current_actor() -> Any:
    return g.actor


def int_list(value, name: str) -> list[int]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{name} must be a list")
    try:
        return [int(v) for v in value]
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must contain ids")
