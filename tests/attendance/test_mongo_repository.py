from __future__ import annotations

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect

from field_attendance.attendance.model import NewAttendance
from field_attendance.attendance.mongo_attendance_repository import MongoAttendanceRepository
from field_attendance.core.exceptions import PersistenceError


class InsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class FakeCollection:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.inserted = []
        self.queries = []

    def insert_one(self, doc):
        if self.fail:
            raise AutoReconnect("primary stepped down")
        self.inserted.append(doc)
        return InsertResult(ObjectId())

    def find_one(self, query):
        self.queries.append(query)
        return None

    def count_documents(self, query):
        self.queries.append(query)
        return 7


class FakeConnection:
    def __init__(self, collection):
        self.collection = collection

    def db(self):
        return {"attendances": self.collection}


NEW = NewAttendance(
    user_id="u-1",
    employee_id="EMP001",
    employee_name="Asha Verma",
    image_url="https://res.cloudinary.com/demo/a.jpg",
    latitude=28.6129,
    longitude=77.2295,
    timestamp=datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc),
    date="2023-11-15",
    check_in_time="03:43:20",
    address="India Gate, New Delhi, Delhi, India",
)


def test_create_writes_wire_document():
    coll = FakeCollection()
    record = MongoAttendanceRepository(FakeConnection(coll)).create(NEW)

    doc = coll.inserted[0]
    assert doc["employeeId"] == "EMP001"
    assert doc["checkInTime"] == "03:43:20"
    assert doc["isSynced"] is True
    assert "createdAt" in doc
    assert ObjectId.is_valid(record.record_id)
    assert record.to_api()["timestamp"] == 1700000000000


def test_create_failure_is_persistence_error():
    repo = MongoAttendanceRepository(FakeConnection(FakeCollection(fail=True)))

    with pytest.raises(PersistenceError):
        repo.create(NEW)


def test_malformed_id_is_not_found():
    coll = FakeCollection()
    repo = MongoAttendanceRepository(FakeConnection(coll))

    assert repo.get_by_id("not-an-id") is None
    assert repo.delete("not-an-id") is False
    assert coll.queries == []


def test_month_count_is_anchored_prefix():
    coll = FakeCollection()
    repo = MongoAttendanceRepository(FakeConnection(coll))

    assert repo.count(user_id="u-1", month="2023-11") == 7
    assert coll.queries[-1] == {"userId": "u-1", "date": {"$regex": "^2023\\-11"}}
