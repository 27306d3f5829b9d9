from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid; the user must re-capture."""


class UploadError(DomainError):
    """Raised when the image could not be stored after the retry budget."""

    def __init__(self, message: str, *, attempts: int = 0, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class PersistenceError(DomainError):
    """Raised when the canonical write fails after a successful upload.

    ``image_url`` names the already-stored image so a retry can reuse it.
    """

    def __init__(self, message: str, *, image_url: Optional[str] = None):
        super().__init__(message)
        self.image_url = image_url


class ReplicationError(DomainError):
    """Secondary-store failure. Never leaves the replication module."""


class GeocodeError(DomainError):
    """Provider failure. Converted to the fallback address by the geocoder."""


class AuthenticationError(DomainError):
    """Raised when the bearer token is missing, invalid or expired."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a requested record does not exist."""


class SubmissionCancelled(DomainError):
    """Raised when the owning session tore down a submission before upload."""
