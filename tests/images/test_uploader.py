from __future__ import annotations

import threading

import pytest

from field_attendance.core.exceptions import SubmissionCancelled, UploadError
from field_attendance.images.uploader import ImageUploader


class FlakyStore:
    def __init__(self, failures: int, url: str = "https://res.cloudinary.com/demo/image/upload/selfie.jpg"):
        self.failures = failures
        self.url = url
        self.calls = 0

    def put(self, data: bytes, content_type: str) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise UploadError(f"boom {self.calls}")
        return self.url

    def owns(self, url: str) -> bool:
        return url.startswith("https://res.cloudinary.com/demo/")


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def test_two_failures_then_success_takes_three_attempts():
    store = FlakyStore(failures=2)
    clock = FakeClock()
    uploader = ImageUploader(store, sleep=clock.sleep, clock=clock)

    url = uploader.upload(b"img", "image/jpeg")

    assert url == store.url
    assert store.calls == 3
    assert clock.sleeps == [1.0, 2.0]
    assert clock.now >= 3


def test_always_failing_store_exhausts_exactly_three_attempts():
    store = FlakyStore(failures=99)
    clock = FakeClock()
    uploader = ImageUploader(store, sleep=clock.sleep, clock=clock)

    with pytest.raises(UploadError) as exc:
        uploader.upload(b"img", "image/jpeg")

    assert store.calls == 3
    assert exc.value.attempts == 3
    assert isinstance(exc.value.cause, UploadError)


def test_existing_url_from_own_store_skips_upload():
    store = FlakyStore(failures=0)
    uploader = ImageUploader(store, sleep=lambda s: None)

    url = uploader.upload(b"img", "image/jpeg", existing_url="https://res.cloudinary.com/demo/image/upload/old.jpg")

    assert url.endswith("old.jpg")
    assert store.calls == 0


def test_foreign_existing_url_is_ignored():
    store = FlakyStore(failures=0)
    uploader = ImageUploader(store, sleep=lambda s: None)

    url = uploader.upload(b"img", "image/jpeg", existing_url="https://evil.example/x.jpg")

    assert url == store.url
    assert store.calls == 1


def test_time_budget_stops_retrying_early():
    store = FlakyStore(failures=99)
    clock = FakeClock()
    uploader = ImageUploader(store, max_total_seconds=1.5, sleep=clock.sleep, clock=clock)

    with pytest.raises(UploadError) as exc:
        uploader.upload(b"img", "image/jpeg")

    # waited 1s after the first failure; a further 2s would cross the budget
    assert store.calls == 2
    assert exc.value.attempts == 2


def test_cancel_during_backoff_raises_cancelled():
    cancel = threading.Event()

    class CancelAfterFirstPut(FlakyStore):
        def put(self, data, content_type):
            cancel.set()
            return super().put(data, content_type)

    store = CancelAfterFirstPut(failures=99)
    uploader = ImageUploader(store, sleep=lambda s: None)

    with pytest.raises(SubmissionCancelled):
        uploader.upload(b"img", "image/jpeg", cancel_event=cancel)
    assert store.calls == 1


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        ImageUploader(FlakyStore(0), max_attempts=0)
