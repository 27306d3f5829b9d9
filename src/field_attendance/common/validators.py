from __future__ import annotations

import math
from typing import Any, Optional

from ..core.exceptions import ValidationError
from .datetime_utils import from_epoch_millis, parse_iso_date


def require_finite_float(value: Any, field_name: str) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    return number


def require_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    lat = require_finite_float(latitude, "latitude")
    lon = require_finite_float(longitude, "longitude")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError("latitude out of range")
    if not -180.0 <= lon <= 180.0:
        raise ValidationError("longitude out of range")
    return lat, lon


def require_epoch_millis(value: Any, field_name: str = "timestamp") -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")
    try:
        millis = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be epoch milliseconds")
    if millis <= 0:
        raise ValidationError(f"{field_name} must be positive")
    try:
        from_epoch_millis(millis)
    except (OverflowError, OSError, ValueError):
        raise ValidationError(f"{field_name} is out of range")
    return millis


def parse_date_range(start_date: Optional[str], end_date: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Validate optional inclusive YYYY-MM-DD bounds and return them normalized."""
    try:
        start = parse_iso_date(start_date) if start_date else None
        end = parse_iso_date(end_date) if end_date else None
    except ValueError:
        raise ValidationError("Dates must be YYYY-MM-DD")
    if start and end and start > end:
        raise ValidationError("startDate must not be after endDate")
    return (
        start.strftime("%Y-%m-%d") if start else None,
        end.strftime("%Y-%m-%d") if end else None,
    )
