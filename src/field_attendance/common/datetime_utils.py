from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def from_epoch_millis(value: int) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def to_epoch_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def derive_day_and_time(instant: datetime, tz_name: str) -> tuple[str, str]:
    """Split an instant into (YYYY-MM-DD, HH:MM:SS) as seen in ``tz_name``."""
    local = instant.astimezone(ZoneInfo(tz_name))
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M:%S")


def day_bounds_millis(day: date, tz_name: str) -> tuple[int, int]:
    """Epoch-millis half-open interval [start, end) covering ``day`` in ``tz_name``."""
    tz = ZoneInfo(tz_name)
    start = datetime(day.year, day.month, day.day, tzinfo=tz)
    end = datetime.fromordinal(day.toordinal() + 1).replace(tzinfo=tz)
    return to_epoch_millis(start), to_epoch_millis(end)


def now_utc() -> datetime:
    """Current time.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def today_in(tz_name: str, *, now: Optional[datetime] = None) -> date:
    return (now or now_utc()).astimezone(ZoneInfo(tz_name)).date()
