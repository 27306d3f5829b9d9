from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_utc, today_in
from ..common.validators import parse_date_range
from ..core.constants import DEFAULT_TIMEZONE, TOP_EMPLOYEES_LIMIT

EXPORT_FIELDS = [
    "employeeId",
    "name",
    "date",
    "checkInTime",
    "latitude",
    "longitude",
    "imageUrl",
    "address",
]


@dataclass(frozen=True)
class ExportData:
    rows: list[dict]
    start: Optional[str]
    end: Optional[str]


@dataclass(frozen=True)
class AdminStats:
    total_records: int
    today: int
    this_month: int
    top_employees: list[dict]

    def to_api(self) -> dict:
        return {
            "totalAttendance": self.total_records,
            "todayAttendance": self.today,
            "monthAttendance": self.this_month,
            "topUsers": self.top_employees,
        }


class AttendanceReportService:
    """Read side for admins: listing, export rows and headline counts."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._timezone = timezone
        self._clock = clock

    def list_attendance(
        self,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        start, end = parse_date_range(start_date, end_date)
        return self._attendance.list_records(employee_id=employee_id or None, start_date=start, end_date=end)

    def build_export(
        self,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> ExportData:
        records = self.list_attendance(start_date=start_date, end_date=end_date, employee_id=employee_id)
        rows = [
            {
                "employeeId": r.employee_id,
                "name": r.employee_name or "Unknown User",
                "date": r.date,
                "checkInTime": r.check_in_time,
                "latitude": r.latitude,
                "longitude": r.longitude,
                "imageUrl": r.image_url,
                "address": r.address,
            }
            for r in records
        ]
        return ExportData(rows=rows, start=start_date, end=end_date)

    def stats(self, *, now: Optional[datetime] = None) -> AdminStats:
        today = today_in(self._timezone, now=now or self._clock())
        month = today.strftime("%Y-%m")
        top = self._attendance.top_employees(month=month, limit=TOP_EMPLOYEES_LIMIT)
        return AdminStats(
            total_records=self._attendance.count(),
            today=self._attendance.count(date=today.strftime("%Y-%m-%d")),
            this_month=self._attendance.count(month=month),
            top_employees=[{"employeeId": emp, "count": n} for emp, n in top],
        )
