from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, NewAttendance


class AttendanceRepository(Protocol):
    def create(self, new: NewAttendance) -> AttendanceRecord:
        """Insert one canonical record. Storage failures raise PersistenceError."""

        raise NotImplementedError

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_records(
        self,
        *,
        user_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest first. Dates are inclusive YYYY-MM-DD bounds."""

        raise NotImplementedError

    def count(self, *, user_id: Optional[str] = None, date: Optional[str] = None, month: Optional[str] = None) -> int:
        raise NotImplementedError

    def top_employees(self, *, month: str, limit: int) -> Sequence[tuple[str, int]]:
        raise NotImplementedError

    def delete(self, record_id: str) -> bool:
        raise NotImplementedError

    def update_address(self, record_id: str, address: str) -> bool:
        raise NotImplementedError

    def list_needing_address(self, *, fallback: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
