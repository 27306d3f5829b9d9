from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import to_epoch_millis


@dataclass(frozen=True)
class NewAttendance:
    """Everything the service knows before the canonical write."""

    user_id: str
    employee_id: str
    employee_name: str
    image_url: str
    latitude: float
    longitude: float
    timestamp: datetime
    date: str
    check_in_time: str
    address: str = ""


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: canonical, server-persisted check-in."""

    record_id: str
    user_id: str
    employee_id: str
    employee_name: str
    image_url: str
    latitude: float
    longitude: float
    timestamp: datetime
    date: str
    check_in_time: str
    address: str = ""
    is_synced: bool = True
    created_at: Optional[datetime] = None

    def to_api(self) -> dict[str, Any]:
        return {
            "id": self.record_id,
            "userId": self.user_id,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "imageUrl": self.image_url,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "timestamp": to_epoch_millis(self.timestamp),
            "date": self.date,
            "checkInTime": self.check_in_time,
            "isSynced": self.is_synced,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class AttendanceStats:
    today: int
    this_month: int
    total: int

    def to_api(self) -> dict[str, int]:
        return {"today": self.today, "thisMonth": self.this_month, "total": self.total}
