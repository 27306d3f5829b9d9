from __future__ import annotations

import re
from typing import Any, Optional, Sequence

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from ..common.datetime_utils import now_utc
from ..core.exceptions import PersistenceError
from ..database.bootstrap import ATTENDANCE_COLLECTION
from ..database.connection import MongoConnection
from .documents import from_document, new_document
from .model import AttendanceRecord, NewAttendance
from .repository import AttendanceRepository


def _object_id(record_id: str) -> Optional[ObjectId]:
    return ObjectId(record_id) if ObjectId.is_valid(record_id) else None


class MongoAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: MongoConnection):
        self._conn = conn

    def _collection(self):
        return self._conn.db()[ATTENDANCE_COLLECTION]

    def create(self, new: NewAttendance) -> AttendanceRecord:
        doc = new_document(new)
        doc["createdAt"] = now_utc()
        try:
            result = self._collection().insert_one(doc)
        except PyMongoError as e:
            raise PersistenceError(f"Could not save attendance: {e}") from e
        doc["_id"] = result.inserted_id
        return from_document(doc)

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        oid = _object_id(record_id)
        if oid is None:
            return None
        doc = self._collection().find_one({"_id": oid})
        return from_document(doc) if doc else None

    def list_records(
        self,
        *,
        user_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        query: dict[str, Any] = {}
        if user_id:
            query["userId"] = user_id
        if employee_id:
            query["employeeId"] = employee_id
        date_range: dict[str, str] = {}
        if start_date:
            date_range["$gte"] = start_date
        if end_date:
            date_range["$lte"] = end_date
        if date_range:
            query["date"] = date_range

        cursor = self._collection().find(query).sort("timestamp", DESCENDING)
        return [from_document(d) for d in cursor]

    def count(self, *, user_id: Optional[str] = None, date: Optional[str] = None, month: Optional[str] = None) -> int:
        query: dict[str, Any] = {}
        if user_id:
            query["userId"] = user_id
        if date:
            query["date"] = date
        elif month:
            query["date"] = {"$regex": f"^{re.escape(month)}"}
        return int(self._collection().count_documents(query))

    def top_employees(self, *, month: str, limit: int) -> Sequence[tuple[str, int]]:
        pipeline = [
            {"$match": {"date": {"$regex": f"^{re.escape(month)}"}}},
            {"$group": {"_id": "$employeeId", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
            {"$limit": int(limit)},
        ]
        return [(str(r["_id"]), int(r["count"])) for r in self._collection().aggregate(pipeline)]

    def delete(self, record_id: str) -> bool:
        oid = _object_id(record_id)
        if oid is None:
            return False
        return self._collection().delete_one({"_id": oid}).deleted_count == 1

    def update_address(self, record_id: str, address: str) -> bool:
        oid = _object_id(record_id)
        if oid is None:
            return False
        result = self._collection().update_one({"_id": oid}, {"$set": {"address": address}})
        return result.matched_count == 1

    def list_needing_address(self, *, fallback: str) -> Sequence[AttendanceRecord]:
        query = {
            "$or": [
                {"address": ""},
                {"address": {"$exists": False}},
                {"address": None},
                {"address": fallback},
                {"address": {"$regex": "^Location:"}},
            ]
        }
        return [from_document(d) for d in self._collection().find(query).sort("timestamp", DESCENDING)]
