from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence, Union

from ..common.datetime_utils import day_bounds_millis
from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import ValidationError
from .model import LocalAttendance

SCHEMA = """
CREATE TABLE IF NOT EXISTS attendance (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    employee_id TEXT NOT NULL,
    image_path TEXT NOT NULL,
    latitude REAL,
    longitude REAL,
    timestamp_ms INTEGER NOT NULL,
    is_synced INTEGER NOT NULL DEFAULT 0,
    canonical_id TEXT,
    remote_image_url TEXT
);
CREATE INDEX IF NOT EXISTS idx_attendance_owner_synced ON attendance(owner_id, is_synced);
CREATE UNIQUE INDEX IF NOT EXISTS idx_attendance_capture ON attendance(owner_id, timestamp_ms, image_path);
"""

_COLUMNS = "id, owner_id, employee_id, image_path, latitude, longitude, timestamp_ms, is_synced, canonical_id, remote_image_url"


@contextmanager
def db_cursor(path: str) -> Iterator[tuple[sqlite3.Connection, sqlite3.Cursor]]:
    conn = sqlite3.connect(path, timeout=30)
    conn.row_factory = sqlite3.Row
    try:
        cur = conn.cursor()
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _as_real(value: Any) -> Optional[float]:
    # unparseable coordinates are kept and rejected later by validate_capture
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_float(value: Any) -> Optional[float]:
    # SQLite stores NaN as NULL
    return None if value is None else float(value)


def _to_record(row: sqlite3.Row) -> LocalAttendance:
    return LocalAttendance(
        local_id=int(row["id"]),
        owner_id=str(row["owner_id"]),
        employee_id=str(row["employee_id"]),
        image_path=str(row["image_path"]),
        latitude=_optional_float(row["latitude"]),
        longitude=_optional_float(row["longitude"]),
        timestamp_ms=int(row["timestamp_ms"]),
        is_synced=bool(row["is_synced"]),
        canonical_id=row["canonical_id"],
        remote_image_url=row["remote_image_url"],
    )


class LocalRecordStore:
    """Durable on-device table of attendance captures.

    Every query is scoped to one owner. Reads run concurrently; writes are
    serialized per owner.
    """

    def __init__(self, path: Union[str, Path], *, timezone: str = DEFAULT_TIMEZONE):
        self._path = str(path)
        self._timezone = timezone
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        with db_cursor(self._path) as (conn, _):
            conn.executescript(SCHEMA)

    def _write_lock(self, owner_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = self._locks[owner_id] = threading.Lock()
            return lock

    def _owner_of(self, local_id: int) -> Optional[str]:
        with db_cursor(self._path) as (_, cur):
            cur.execute("SELECT owner_id FROM attendance WHERE id=?", (int(local_id),))
            row = cur.fetchone()
            return str(row["owner_id"]) if row else None

    def insert(
        self,
        *,
        owner_id: str,
        employee_id: str,
        image_path: str,
        latitude: Optional[float],
        longitude: Optional[float],
        timestamp_ms: int,
    ) -> int:
        if not owner_id:
            raise ValidationError("owner_id is required")
        with self._write_lock(owner_id):
            with db_cursor(self._path) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance(owner_id, employee_id, image_path, latitude, longitude, timestamp_ms)
                    VALUES(?,?,?,?,?,?)
                    ON CONFLICT(owner_id, timestamp_ms, image_path) DO NOTHING
                    """,
                    (owner_id, employee_id, str(image_path), _as_real(latitude), _as_real(longitude), int(timestamp_ms)),
                )
                if cur.rowcount == 1:
                    return int(cur.lastrowid)
                # same physical capture inserted twice
                cur.execute(
                    "SELECT id FROM attendance WHERE owner_id=? AND timestamp_ms=? AND image_path=?",
                    (owner_id, int(timestamp_ms), str(image_path)),
                )
                return int(cur.fetchone()["id"])

    def get(self, owner_id: str, local_id: int) -> Optional[LocalAttendance]:
        with db_cursor(self._path) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE owner_id=? AND id=?", (owner_id, int(local_id)))
            row = cur.fetchone()
            return _to_record(row) if row else None

    def list_unsynced(self, owner_id: str) -> Sequence[LocalAttendance]:
        with db_cursor(self._path) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE owner_id=? AND is_synced=0 ORDER BY timestamp_ms, id",
                (owner_id,),
            )
            return [_to_record(r) for r in cur.fetchall()]

    def mark_synced(self, local_id: int, *, canonical_id: Optional[str] = None) -> bool:
        """Flip ``is_synced`` to true. Already-synced rows are left untouched."""
        owner_id = self._owner_of(local_id)
        if owner_id is None:
            return False
        with self._write_lock(owner_id):
            with db_cursor(self._path) as (_, cur):
                cur.execute(
                    "UPDATE attendance SET is_synced=1, canonical_id=COALESCE(?, canonical_id) WHERE id=? AND is_synced=0",
                    (canonical_id, int(local_id)),
                )
                return cur.rowcount == 1

    def remember_image_url(self, local_id: int, url: str) -> None:
        owner_id = self._owner_of(local_id)
        if owner_id is None:
            return
        with self._write_lock(owner_id):
            with db_cursor(self._path) as (_, cur):
                cur.execute("UPDATE attendance SET remote_image_url=? WHERE id=?", (url, int(local_id)))

    def list_for_owner(self, owner_id: str, on_date: Optional[date] = None) -> Sequence[LocalAttendance]:
        sql = f"SELECT {_COLUMNS} FROM attendance WHERE owner_id=?"
        params: list[Any] = [owner_id]
        if on_date is not None:
            start, end = day_bounds_millis(on_date, self._timezone)
            sql += " AND timestamp_ms >= ? AND timestamp_ms < ?"
            params += [start, end]
        sql += " ORDER BY timestamp_ms DESC, id DESC"
        with db_cursor(self._path) as (_, cur):
            cur.execute(sql, params)
            return [_to_record(r) for r in cur.fetchall()]
