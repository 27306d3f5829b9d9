from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles carried in the bearer token."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class SubmissionState(str, Enum):
    """Client-side lifecycle of one submission attempt."""

    CAPTURED = "CAPTURED"
    UPLOADING = "UPLOADING"
    PERSISTED = "PERSISTED"
    FAILED = "FAILED"


class EntityType(str, Enum):
    """Collections mirrored into the secondary store."""

    ATTENDANCE = "attendance"
