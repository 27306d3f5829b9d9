from __future__ import annotations

import logging
import math
import os
import threading
import time
from typing import Callable, Optional

from ..core.enums import SubmissionState
from ..core.exceptions import DomainError, PersistenceError, SubmissionCancelled, ValidationError
from .api_client import AttendanceApiClient
from .local_store import LocalRecordStore
from .model import Credentials, LocalAttendance, Owner, SubmissionOutcome

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def validate_capture(record: LocalAttendance) -> None:
    """Preconditions for leaving CAPTURED. Failing them needs a re-capture."""
    for name, value in (("latitude", record.latitude), ("longitude", record.longitude)):
        if value is None or not math.isfinite(float(value)):
            raise ValidationError(f"{name} must be a finite number")
    if not record.image_path or not os.path.isfile(record.image_path):
        raise ValidationError("Selfie file not found")
    if os.path.getsize(record.image_path) == 0:
        raise ValidationError("Selfie file is empty")


class AttendanceSubmitter:
    """Client half of the submission state machine.

    CAPTURED -> UPLOADING -> PERSISTED, or FAILED with the local row left
    unsynced for the reconciler.
    """

    def __init__(
        self,
        store: LocalRecordStore,
        api: AttendanceApiClient,
        *,
        clock_ms: Callable[[], int] = _now_ms,
    ):
        self._store = store
        self._api = api
        self._clock_ms = clock_ms

    def capture(
        self,
        owner: Owner,
        *,
        image_path: str,
        latitude: float,
        longitude: float,
        timestamp_ms: Optional[int] = None,
    ) -> LocalAttendance:
        local_id = self._store.insert(
            owner_id=owner.owner_id,
            employee_id=owner.employee_id,
            image_path=image_path,
            latitude=latitude,
            longitude=longitude,
            timestamp_ms=timestamp_ms if timestamp_ms is not None else self._clock_ms(),
        )
        record = self._store.get(owner.owner_id, local_id)
        logger.debug("Captured local attendance %s for %s", local_id, owner.owner_id)
        return record

    def submit(
        self,
        record: LocalAttendance,
        credentials: Credentials,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> SubmissionOutcome:
        """Push one captured record to the server.

        Raises ValidationError (record stays CAPTURED), SubmissionCancelled,
        or UploadError/PersistenceError/AuthenticationError (attempt FAILED).
        """
        if record.is_synced:
            return SubmissionOutcome(SubmissionState.PERSISTED, record, record.canonical_id, "Already synced")

        validate_capture(record)
        if cancel_event is not None and cancel_event.is_set():
            raise SubmissionCancelled("Submission cancelled before upload")

        logger.debug("Local attendance %s -> %s", record.local_id, SubmissionState.UPLOADING.value)
        try:
            response = self._api.submit_attendance(
                credentials,
                image_path=record.image_path,
                latitude=record.latitude,
                longitude=record.longitude,
                timestamp_ms=record.timestamp_ms,
                image_url=record.remote_image_url,
            )
        except PersistenceError as e:
            if e.image_url:
                self._store.remember_image_url(record.local_id, e.image_url)
            raise

        canonical_id = response.canonical_id
        self._store.mark_synced(record.local_id, canonical_id=canonical_id)
        logger.info("Local attendance %s synced as %s", record.local_id, canonical_id)
        return SubmissionOutcome(SubmissionState.PERSISTED, record, canonical_id, response.message)

    def check_in(
        self,
        owner: Owner,
        credentials: Credentials,
        *,
        image_path: str,
        latitude: float,
        longitude: float,
        timestamp_ms: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SubmissionOutcome:
        """Capture then submit once; failures come back as a status, not an exception."""
        record = self.capture(
            owner,
            image_path=image_path,
            latitude=latitude,
            longitude=longitude,
            timestamp_ms=timestamp_ms,
        )
        try:
            return self.submit(record, credentials, cancel_event=cancel_event)
        except (ValidationError, SubmissionCancelled) as e:
            return SubmissionOutcome(SubmissionState.CAPTURED, record, message=str(e))
        except DomainError as e:
            logger.warning("Attendance %s left pending: %s", record.local_id, e)
            return SubmissionOutcome(SubmissionState.FAILED, record, message=str(e))
