from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from ..core.constants import UPLOAD_MAX_ATTEMPTS, UPLOAD_MAX_TOTAL_SECONDS
from ..core.exceptions import SubmissionCancelled, UploadError
from .store import ImageStore

logger = logging.getLogger(__name__)


class ImageUploader:
    """Upload with bounded retry and linear backoff.

    After failed attempt ``n`` the uploader waits ``n`` seconds (1s, 2s, ...)
    before trying again. There is no wait after the final attempt.
    """

    def __init__(
        self,
        store: ImageStore,
        *,
        max_attempts: int = UPLOAD_MAX_ATTEMPTS,
        max_total_seconds: float = UPLOAD_MAX_TOTAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._store = store
        self._max_attempts = int(max_attempts)
        self._max_total_seconds = float(max_total_seconds)
        self._sleep = sleep
        self._clock = clock

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def upload(
        self,
        data: bytes,
        content_type: str,
        *,
        existing_url: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        if existing_url:
            if self._store.owns(existing_url):
                logger.info("Image already stored at %s, skipping upload", existing_url)
                return existing_url
            logger.warning("Ignoring foreign image URL %s", existing_url)

        started = self._clock()
        last_error: Optional[UploadError] = None

        for attempt in range(1, self._max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise SubmissionCancelled("Upload cancelled")
            try:
                url = self._store.put(data, content_type)
                if attempt > 1:
                    logger.info("Image upload succeeded on attempt %d", attempt)
                return url
            except UploadError as e:
                last_error = e
                logger.warning("Image upload attempt %d/%d failed: %s", attempt, self._max_attempts, e)

            if attempt == self._max_attempts:
                break

            delay = float(attempt)
            if self._clock() - started + delay > self._max_total_seconds:
                logger.error("Image upload gave up after %d attempts: time budget exhausted", attempt)
                raise UploadError(
                    "Image upload timed out", attempts=attempt, cause=last_error
                ) from last_error
            self._wait(delay, cancel_event)

        raise UploadError(
            f"Image upload failed after {self._max_attempts} attempts",
            attempts=self._max_attempts,
            cause=last_error,
        ) from last_error

    def _wait(self, delay: float, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is None:
            self._sleep(delay)
            return
        if cancel_event.wait(delay):
            raise SubmissionCancelled("Upload cancelled")
