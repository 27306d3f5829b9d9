from __future__ import annotations

import hashlib
import io
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from ..core.constants import SELFIE_FOLDER, SELFIE_MAX_EDGE
from ..core.exceptions import UploadError

logger = logging.getLogger(__name__)


class ImageStore(Protocol):
    def put(self, data: bytes, content_type: str) -> str:
        """Store the bytes once and return a stable URL.

        A failed attempt raises UploadError; retrying is the caller's job.
        """

        raise NotImplementedError

    def owns(self, url: str) -> bool:
        """True when ``url`` points at an asset this store produced."""

        raise NotImplementedError


@dataclass(frozen=True)
class CloudinaryCredentials:
    cloud_name: str
    api_key: str
    api_secret: str

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


def content_digest(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


class CloudinaryImageStore(ImageStore):
    """Uploads through the Cloudinary SDK.

    The public id is derived from the content digest, so a retry after a
    partial success overwrites the same asset instead of creating another.
    """

    def __init__(
        self,
        credentials: CloudinaryCredentials,
        *,
        folder: str = SELFIE_FOLDER,
        max_edge: int = SELFIE_MAX_EDGE,
        timeout: float = 120,
        upload: Optional[Callable[..., dict[str, Any]]] = None,
    ):
        self._credentials = credentials
        self._folder = folder
        self._max_edge = int(max_edge)
        self._timeout = timeout
        self._upload = upload or cloudinary.uploader.upload
        if credentials.configured:
            cloudinary.config(
                cloud_name=credentials.cloud_name,
                api_key=credentials.api_key,
                api_secret=credentials.api_secret,
                secure=True,
            )

    def put(self, data: bytes, content_type: str) -> str:
        if not self._credentials.configured:
            raise UploadError("Image storage is not configured")

        public_id = content_digest(data)
        try:
            result = self._upload(
                io.BytesIO(data),
                folder=self._folder,
                public_id=public_id,
                overwrite=True,
                resource_type="image",
                transformation=[{"width": self._max_edge, "height": self._max_edge, "crop": "limit"}],
                timeout=self._timeout,
            )
        except (CloudinaryError, OSError) as e:
            raise UploadError(f"Image upload failed: {e}", cause=e) from e

        url = (result or {}).get("secure_url") or (result or {}).get("url")
        if not url:
            raise UploadError("Image host response carried no URL")
        logger.debug("Stored %s (%d bytes, %s) at %s", public_id, len(data), content_type, url)
        return url

    def owns(self, url: str) -> bool:
        prefix = f"https://res.cloudinary.com/{self._credentials.cloud_name}/"
        return bool(self._credentials.cloud_name) and str(url).startswith(prefix)
