from __future__ import annotations

import logging
import mimetypes
import os
from typing import Mapping, Optional

import requests

from ..core.exceptions import AuthenticationError, PersistenceError, UploadError, ValidationError
from .model import Credentials, SubmissionResponse

logger = logging.getLogger(__name__)


class AttendanceApiClient:
    """HTTP client for the attendance API.

    Credentials are passed to each call; the client holds no session state
    beyond the connection pool.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30,
        upload_timeout: float = 15 * 60,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._upload_timeout = upload_timeout
        self._session = session or requests.Session()

    def submit_attendance(
        self,
        credentials: Credentials,
        *,
        image_path: str,
        latitude: float,
        longitude: float,
        timestamp_ms: int,
        image_url: Optional[str] = None,
    ) -> SubmissionResponse:
        content_type = mimetypes.guess_type(image_path)[0] or "image/jpeg"
        form = {
            "latitude": str(latitude),
            "longitude": str(longitude),
            "timestamp": str(int(timestamp_ms)),
        }
        if image_url:
            form["imageUrl"] = image_url

        try:
            with open(image_path, "rb") as fh:
                resp = self._session.post(
                    f"{self._base_url}/api/attendance/submit",
                    headers=credentials.headers(),
                    data=form,
                    files={"selfie": (os.path.basename(image_path), fh, content_type)},
                    timeout=(self._timeout, self._upload_timeout),
                )
        except FileNotFoundError:
            raise ValidationError("Selfie file not found")
        except requests.RequestException as e:
            raise UploadError(f"Could not reach server: {e}", cause=e) from e
        except OSError as e:
            raise ValidationError(f"Selfie file is not readable: {e}") from e

        return self._parse(resp)

    @staticmethod
    def _parse(resp: requests.Response) -> SubmissionResponse:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, Mapping):
            body = {}
        message = str(body.get("message") or f"HTTP {resp.status_code}")

        if resp.status_code in (200, 201) and body.get("success"):
            data = body.get("data")
            return SubmissionResponse(success=True, message=message, data=dict(data) if isinstance(data, Mapping) else None)

        logger.warning("Attendance submit rejected (HTTP %s): %s", resp.status_code, message)
        if resp.status_code == 400:
            raise ValidationError(message)
        if resp.status_code in (401, 403):
            raise AuthenticationError(message)
        if resp.status_code == 502:
            raise UploadError(message)
        raise PersistenceError(message, image_url=body.get("imageUrl"))
