from __future__ import annotations

import logging
from typing import Any, Optional

from flask import jsonify

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    PersistenceError,
    SubmissionCancelled,
    UploadError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (SubmissionCancelled, 409),
    (UploadError, 502),
    (PersistenceError, 503),
)


def ok(message: str = "", *, data: Any = None, status: int = 200, **extra: Any):
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def fail(message: str, status: int, *, error: Optional[str] = None, **extra: Any):
    body: dict[str, Any] = {"success": False, "message": message}
    if error:
        body["error"] = error
    body.update(extra)
    return jsonify(body), status


def error_response(e: Exception):
    """Translate an exception into the JSON envelope and HTTP status."""
    if isinstance(e, DomainError):
        for cls, status in STATUS_BY_ERROR:
            if isinstance(e, cls):
                extra = {}
                if isinstance(e, PersistenceError) and e.image_url:
                    extra["imageUrl"] = e.image_url
                return fail(str(e), status, error=cls.__name__, **extra)
    logger.exception("Unhandled error while serving request")
    return fail("Server Error", 500)
