from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..core.enums import SubmissionState


@dataclass(frozen=True)
class Owner:
    owner_id: str
    employee_id: str


@dataclass(frozen=True)
class Credentials:
    """Bearer token handed to every request-issuing call."""

    token: str

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@dataclass(frozen=True)
class LocalAttendance:
    """Row of the on-device attendance table."""

    local_id: int
    owner_id: str
    employee_id: str
    image_path: str
    latitude: Optional[float]
    longitude: Optional[float]
    timestamp_ms: int
    is_synced: bool = False
    canonical_id: Optional[str] = None
    remote_image_url: Optional[str] = None


@dataclass(frozen=True)
class SubmissionResponse:
    success: bool
    message: str
    data: Optional[dict[str, Any]] = None

    @property
    def canonical_id(self) -> Optional[str]:
        if not self.data:
            return None
        value = self.data.get("id")
        return str(value) if value else None


@dataclass(frozen=True)
class SubmissionOutcome:
    state: SubmissionState
    record: LocalAttendance
    canonical_id: Optional[str] = None
    message: str = ""


@dataclass(frozen=True)
class ReconcileResult:
    succeeded: int
    failed: int
    skipped: bool = False
    cancelled: bool = False
