from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from ..common.datetime_utils import derive_day_and_time, from_epoch_millis, now_utc, today_in
from ..common.validators import parse_date_range, require_coordinates, require_epoch_millis
from ..core.constants import DEFAULT_TIMEZONE, GEOCODE_BACKFILL_DELAY_SECONDS
from ..core.enums import EntityType
from ..core.exceptions import AuthorizationError, NotFoundError, PersistenceError, ValidationError
from ..geocoding.geocoder import ReverseGeocoder
from ..images.processing import inspect_image
from ..images.uploader import ImageUploader
from ..users.model import Principal
from .documents import to_document
from .model import AttendanceRecord, AttendanceStats, NewAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class Replicator(Protocol):
    def dispatch(self, entity_type: EntityType, payload: Mapping[str, Any]) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class BackfillResult:
    geocoded: int
    fallback: int

    @property
    def total(self) -> int:
        return self.geocoded + self.fallback


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        uploader: ImageUploader,
        geocoder: ReverseGeocoder,
        replicator: Optional[Replicator] = None,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._uploader = uploader
        self._geocoder = geocoder
        self._replicator = replicator
        self._timezone = timezone
        self._clock = clock

    @property
    def timezone(self) -> str:
        return self._timezone

    def submit(
        self,
        principal: Principal,
        *,
        image: Optional[bytes],
        latitude: Any,
        longitude: Any,
        timestamp: Any,
        existing_image_url: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AttendanceRecord:
        """Validate, upload, geocode, persist, then replicate out of band.

        Raises ValidationError, UploadError or PersistenceError. The secondary
        copy never influences the result.
        """
        lat, lon = require_coordinates(latitude, longitude)
        instant = from_epoch_millis(require_epoch_millis(timestamp))
        if not image:
            raise ValidationError("Selfie image is required")
        info = inspect_image(image)

        image_url = self._uploader.upload(
            image,
            info.content_type,
            existing_url=existing_image_url,
            cancel_event=cancel_event,
        )

        address = self._geocoder.reverse_geocode(lat, lon)

        day, check_in_time = derive_day_and_time(instant, self._timezone)
        new = NewAttendance(
            user_id=principal.user_id,
            employee_id=principal.employee_id,
            employee_name=principal.name,
            image_url=image_url,
            latitude=lat,
            longitude=lon,
            timestamp=instant,
            date=day,
            check_in_time=check_in_time,
            address=address,
        )
        try:
            record = self._attendance.create(new)
        except PersistenceError as e:
            logger.error("Canonical write failed after upload of %s: %s", image_url, e)
            e.image_url = image_url
            raise
        logger.info("Attendance %s saved for %s on %s %s", record.record_id, record.employee_id, day, check_in_time)

        self._replicate(record)
        return record

    def _replicate(self, record: AttendanceRecord) -> None:
        if self._replicator is None:
            return
        try:
            self._replicator.dispatch(EntityType.ATTENDANCE, to_document(record))
        except Exception:
            logger.exception("Could not dispatch replication for %s", record.record_id)

    def list_today(self, principal: Principal, *, now: Optional[datetime] = None) -> Sequence[AttendanceRecord]:
        today = today_in(self._timezone, now=now or self._clock()).strftime("%Y-%m-%d")
        return self._attendance.list_records(user_id=principal.user_id, start_date=today, end_date=today)

    def list_for_user(
        self,
        principal: Principal,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        start, end = parse_date_range(start_date, end_date)
        return self._attendance.list_records(user_id=principal.user_id, start_date=start, end_date=end)

    def stats(self, principal: Principal, *, now: Optional[datetime] = None) -> AttendanceStats:
        today = today_in(self._timezone, now=now or self._clock())
        return AttendanceStats(
            today=self._attendance.count(user_id=principal.user_id, date=today.strftime("%Y-%m-%d")),
            this_month=self._attendance.count(user_id=principal.user_id, month=today.strftime("%Y-%m")),
            total=self._attendance.count(user_id=principal.user_id),
        )

    def delete(self, principal: Principal, record_id: str) -> None:
        record = self._attendance.get_by_id(record_id)
        if record is None:
            raise NotFoundError("Attendance record not found")
        if record.user_id != principal.user_id:
            raise AuthorizationError("Not authorized to delete this record")
        self._attendance.delete(record_id)
        logger.info("Attendance %s deleted by %s", record_id, principal.user_id)

    def backfill_addresses(
        self,
        *,
        delay_seconds: float = GEOCODE_BACKFILL_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> BackfillResult:
        """Re-geocode records whose address is empty or a fallback value.

        Calls are spaced by ``delay_seconds`` to respect provider rate limits.
        """
        records = self._attendance.list_needing_address(fallback=self._geocoder.fallback)
        geocoded = 0
        fallback = 0
        for i, record in enumerate(records):
            address = self._geocoder.reverse_geocode(record.latitude, record.longitude)
            self._attendance.update_address(record.record_id, address)
            if self._geocoder.is_fallback(address):
                fallback += 1
                logger.warning("Geocoding still failing for %s (%s, %s)", record.employee_id, record.latitude, record.longitude)
            else:
                geocoded += 1
            if delay_seconds and i < len(records) - 1:
                sleep(delay_seconds)
        return BackfillResult(geocoded=geocoded, fallback=fallback)

