"""Mapping between AttendanceRecord and its MongoDB document shape.

The same shape is written to the canonical and the secondary store.
"""

from __future__ import annotations

from datetime import timezone
from typing import Any, Mapping

from bson import ObjectId

from .model import AttendanceRecord, NewAttendance


def new_document(new: NewAttendance) -> dict[str, Any]:
    return {
        "userId": new.user_id,
        "employeeId": new.employee_id,
        "employeeName": new.employee_name,
        "imageUrl": new.image_url,
        "latitude": float(new.latitude),
        "longitude": float(new.longitude),
        "address": new.address or "",
        "timestamp": new.timestamp,
        "date": new.date,
        "checkInTime": new.check_in_time,
        "isSynced": True,
    }


def to_document(record: AttendanceRecord) -> dict[str, Any]:
    doc = {
        "_id": ObjectId(record.record_id) if ObjectId.is_valid(record.record_id) else record.record_id,
        "userId": record.user_id,
        "employeeId": record.employee_id,
        "employeeName": record.employee_name,
        "imageUrl": record.image_url,
        "latitude": float(record.latitude),
        "longitude": float(record.longitude),
        "address": record.address or "",
        "timestamp": record.timestamp,
        "date": record.date,
        "checkInTime": record.check_in_time,
        "isSynced": record.is_synced,
    }
    if record.created_at is not None:
        doc["createdAt"] = record.created_at
    return doc


def from_document(doc: Mapping[str, Any]) -> AttendanceRecord:
    timestamp = doc["timestamp"]
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return AttendanceRecord(
        record_id=str(doc["_id"]),
        user_id=str(doc["userId"]),
        employee_id=str(doc["employeeId"]),
        employee_name=str(doc.get("employeeName") or ""),
        image_url=str(doc.get("imageUrl") or ""),
        latitude=float(doc["latitude"]),
        longitude=float(doc["longitude"]),
        timestamp=timestamp,
        date=str(doc["date"]),
        check_in_time=str(doc["checkInTime"]),
        address=str(doc.get("address") or ""),
        is_synced=bool(doc.get("isSynced", True)),
        created_at=doc.get("createdAt"),
    )
