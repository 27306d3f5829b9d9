from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

import pytest

from field_attendance.attendance.model import AttendanceRecord, NewAttendance
from field_attendance.attendance.service import AttendanceService
from field_attendance.core.constants import ADDRESS_UNAVAILABLE
from field_attendance.core.enums import EntityType
from field_attendance.core.exceptions import (
    AuthorizationError,
    GeocodeError,
    NotFoundError,
    PersistenceError,
    UploadError,
    ValidationError,
)
from field_attendance.geocoding.geocoder import ReverseGeocoder
from field_attendance.images.uploader import ImageUploader
from field_attendance.users.model import Principal

IMAGE_URL = "https://res.cloudinary.com/demo/image/upload/fieldapp/selfies/abc.jpg"


class InMemoryAttendance:
    def __init__(self, fail_create: bool = False):
        self.records: dict[str, AttendanceRecord] = {}
        self.fail_create = fail_create
        self._id = 0

    def create(self, new: NewAttendance) -> AttendanceRecord:
        if self.fail_create:
            raise PersistenceError("write concern failed")
        self._id += 1
        rec = AttendanceRecord(record_id=f"rec-{self._id}", created_at=datetime.now(timezone.utc), **vars(new))
        self.records[rec.record_id] = rec
        return rec

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        return self.records.get(record_id)

    def list_records(self, *, user_id=None, employee_id=None, start_date=None, end_date=None):
        items = [
            r
            for r in self.records.values()
            if (not user_id or r.user_id == user_id)
            and (not employee_id or r.employee_id == employee_id)
            and (not start_date or r.date >= start_date)
            and (not end_date or r.date <= end_date)
        ]
        return sorted(items, key=lambda r: r.timestamp, reverse=True)

    def count(self, *, user_id=None, date=None, month=None) -> int:
        return len(
            [
                r
                for r in self.records.values()
                if (not user_id or r.user_id == user_id)
                and (not date or r.date == date)
                and (not month or r.date.startswith(month))
            ]
        )

    def top_employees(self, *, month, limit):
        counts: dict[str, int] = {}
        for r in self.records.values():
            if r.date.startswith(month):
                counts[r.employee_id] = counts.get(r.employee_id, 0) + 1
        return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]

    def delete(self, record_id: str) -> bool:
        return self.records.pop(record_id, None) is not None

    def update_address(self, record_id: str, address: str) -> bool:
        rec = self.records.get(record_id)
        if rec is None:
            return False
        self.records[record_id] = replace(rec, address=address)
        return True

    def list_needing_address(self, *, fallback: str):
        return [r for r in self.records.values() if not r.address or r.address == fallback]


class FakeStore:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0

    def put(self, data: bytes, content_type: str) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise UploadError("host down")
        return IMAGE_URL

    def owns(self, url: str) -> bool:
        return url.startswith("https://res.cloudinary.com/demo/")


class StaticProvider:
    def __init__(self, result: str = "India Gate, New Delhi, Delhi, India", exc: Exception | None = None):
        self.result = result
        self.exc = exc

    def reverse(self, latitude, longitude):
        if self.exc:
            raise self.exc
        return self.result


class RecordingReplicator:
    def __init__(self, exc: Exception | None = None):
        self.exc = exc
        self.dispatched = []

    def dispatch(self, entity_type, payload):
        self.dispatched.append((entity_type, payload))
        if self.exc:
            raise self.exc


def build_service(*, repo=None, store=None, provider=None, replicator=None, timezone_name="Asia/Kolkata"):
    repo = repo if repo is not None else InMemoryAttendance()
    store = store or FakeStore()
    service = AttendanceService(
        repo,
        ImageUploader(store, sleep=lambda s: None),
        ReverseGeocoder(provider if provider is not None else StaticProvider()),
        replicator,
        timezone=timezone_name,
    )
    return service, repo, store


def test_end_to_end_india_gate_example(employee, jpeg_bytes):
    replicator = RecordingReplicator()
    service, repo, store = build_service(replicator=replicator)

    record = service.submit(employee, image=jpeg_bytes, latitude="28.6129", longitude="77.2295", timestamp="1700000000000")

    assert len(repo.records) == 1
    assert store.calls == 1
    assert record.image_url == IMAGE_URL
    assert record.address == "India Gate, New Delhi, Delhi, India"
    # 2023-11-14T22:13:20Z seen from Asia/Kolkata (+05:30)
    assert record.date == "2023-11-15"
    assert record.check_in_time == "03:43:20"
    assert record.is_synced is True
    assert record.employee_id == "EMP001"
    assert replicator.dispatched[0][0] == EntityType.ATTENDANCE
    assert replicator.dispatched[0][1]["_id"] == record.record_id


def test_day_is_derived_in_configured_timezone(employee, jpeg_bytes):
    service, _, _ = build_service(timezone_name="UTC")

    record = service.submit(employee, image=jpeg_bytes, latitude=28.6129, longitude=77.2295, timestamp=1700000000000)

    assert (record.date, record.check_in_time) == ("2023-11-14", "22:13:20")


def test_geocoder_failure_still_creates_record(employee, jpeg_bytes):
    service, repo, _ = build_service(provider=StaticProvider(exc=GeocodeError("timeout")))

    record = service.submit(employee, image=jpeg_bytes, latitude=10, longitude=20, timestamp=1700000000000)

    assert record.address == ADDRESS_UNAVAILABLE
    assert len(repo.records) == 1


def test_replication_failure_is_invisible(employee, jpeg_bytes):
    replicator = RecordingReplicator(exc=RuntimeError("secondary unreachable"))
    service, repo, _ = build_service(replicator=replicator)

    record = service.submit(employee, image=jpeg_bytes, latitude=10, longitude=20, timestamp=1700000000000)

    assert record.record_id in repo.records
    assert len(replicator.dispatched) == 1


@pytest.mark.parametrize(
    "lat,lon",
    [("abc", "77.2"), (math.nan, 77.2), ("28.6", "inf"), ("", "77.2"), (None, 77.2), (91, 0), (0, 181)],
)
def test_bad_coordinates_fail_validation_before_upload(employee, jpeg_bytes, lat, lon):
    service, repo, store = build_service()

    with pytest.raises(ValidationError):
        service.submit(employee, image=jpeg_bytes, latitude=lat, longitude=lon, timestamp=1700000000000)

    assert store.calls == 0
    assert repo.records == {}


@pytest.mark.parametrize("image", [None, b"", b"not-an-image"])
def test_missing_or_unreadable_image_fails_validation(employee, image):
    service, repo, store = build_service()

    with pytest.raises(ValidationError):
        service.submit(employee, image=image, latitude=1, longitude=2, timestamp=1700000000000)

    assert store.calls == 0


@pytest.mark.parametrize("timestamp", [None, "", "yesterday", "-5", "99999999999999999999"])
def test_bad_timestamp_fails_validation(employee, jpeg_bytes, timestamp):
    service, _, store = build_service()
    with pytest.raises(ValidationError):
        service.submit(employee, image=jpeg_bytes, latitude=1, longitude=2, timestamp=timestamp)
    assert store.calls == 0


def test_exhausted_upload_creates_no_record(employee, jpeg_bytes):
    service, repo, store = build_service(store=FakeStore(failures=10))

    with pytest.raises(UploadError):
        service.submit(employee, image=jpeg_bytes, latitude=1, longitude=2, timestamp=1700000000000)

    assert store.calls == 3
    assert repo.records == {}


def test_persistence_error_reports_uploaded_image(employee, jpeg_bytes):
    replicator = RecordingReplicator()
    service, _, _ = build_service(repo=InMemoryAttendance(fail_create=True), replicator=replicator)

    with pytest.raises(PersistenceError) as exc:
        service.submit(employee, image=jpeg_bytes, latitude=1, longitude=2, timestamp=1700000000000)

    assert exc.value.image_url == IMAGE_URL
    assert replicator.dispatched == []


def test_resubmission_with_known_image_url_skips_upload(employee, jpeg_bytes):
    service, _, store = build_service()

    record = service.submit(
        employee,
        image=jpeg_bytes,
        latitude=1,
        longitude=2,
        timestamp=1700000000000,
        existing_image_url=IMAGE_URL,
    )

    assert record.image_url == IMAGE_URL
    assert store.calls == 0


def test_delete_checks_owner(employee, jpeg_bytes):
    service, repo, _ = build_service()
    record = service.submit(employee, image=jpeg_bytes, latitude=1, longitude=2, timestamp=1700000000000)
    other = Principal(user_id="u-2", employee_id="EMP002", name="B")

    with pytest.raises(AuthorizationError):
        service.delete(other, record.record_id)
    with pytest.raises(NotFoundError):
        service.delete(employee, "missing")

    service.delete(employee, record.record_id)
    assert repo.records == {}


def test_today_and_stats_use_configured_day(employee, jpeg_bytes, fixed_now):
    service, _, _ = build_service()
    # 2023-11-15 03:43:20 IST and 2023-11-01 in IST
    service.submit(employee, image=jpeg_bytes, latitude=1, longitude=2, timestamp=1700000000000)
    service.submit(employee, image=jpeg_bytes, latitude=1, longitude=2, timestamp=1698820000000)

    today = service.list_today(employee, now=fixed_now)
    stats = service.stats(employee, now=fixed_now)

    assert [r.date for r in today] == ["2023-11-15"]
    assert stats.to_api() == {"today": 1, "thisMonth": 2, "total": 2}


def test_list_for_user_validates_range(employee):
    service, _, _ = build_service()
    with pytest.raises(ValidationError):
        service.list_for_user(employee, start_date="2023-11-30", end_date="2023-11-01")
    with pytest.raises(ValidationError):
        service.list_for_user(employee, start_date="30/11/2023")


def test_backfill_addresses_regeocodes_fallbacks(employee, jpeg_bytes):
    repo = InMemoryAttendance()
    failing, _, _ = build_service(repo=repo, provider=StaticProvider(exc=GeocodeError("down")))
    failing.submit(employee, image=jpeg_bytes, latitude=1, longitude=2, timestamp=1700000000000)
    failing.submit(employee, image=jpeg_bytes, latitude=3, longitude=4, timestamp=1700000100000)

    healthy, _, _ = build_service(repo=repo, provider=StaticProvider("MG Road, Bengaluru, Karnataka, India"))
    sleeps = []
    result = healthy.backfill_addresses(delay_seconds=1.2, sleep=sleeps.append)

    assert (result.geocoded, result.fallback) == (2, 0)
    assert sleeps == [1.2]
    assert {r.address for r in repo.records.values()} == {"MG Road, Bengaluru, Karnataka, India"}
