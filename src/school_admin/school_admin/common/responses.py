from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ProvisioningError,
    ValidationError,
)
from .serialization import to_jsonable
from .validators import require_object

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (ProvisioningError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def status_for(error: DomainError) -> int:
    for error_cls, status in _STATUS_BY_ERROR:
        if isinstance(error, error_cls):
            return status
    return 400


def json_body() -> dict:
    return require_object(request.get_json(silent=True))


def json_response(payload, status: int = 200):
    return jsonify(to_jsonable(payload)), status


def error_response(error: DomainError, **extra):
    body = {"error": str(error) or "Unauthorized"}
    body.update(extra)
    return jsonify(body), status_for(error)


def internal_error(**extra):
    body = {"error": "Internal server error"}
    body.update(extra)
    return jsonify(body), 500


def api_endpoint(context: str):
    """Translate domain errors to JSON bodies; anything else is logged and answered with 500."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except DomainError as e:
                logger.info("%s rejected: %s", context, e)
                return error_response(e)
            except Exception:
                logger.exception("Error in %s", context)
                return internal_error()

        return wrapper

    return decorator
