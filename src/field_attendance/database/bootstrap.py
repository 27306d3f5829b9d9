from __future__ import annotations

import logging

from pymongo import ASCENDING, DESCENDING

from .connection import MongoConnection

logger = logging.getLogger(__name__)

ATTENDANCE_COLLECTION = "attendances"
OUTBOX_COLLECTION = "replication_outbox"


def ensure_indexes(conn: MongoConnection) -> list[str]:
    """Create the indexes the attendance queries rely on. Idempotent."""
    db = conn.db()
    created = [
        db[ATTENDANCE_COLLECTION].create_index([("userId", ASCENDING), ("date", DESCENDING)]),
        db[ATTENDANCE_COLLECTION].create_index([("employeeId", ASCENDING), ("date", DESCENDING)]),
        db[OUTBOX_COLLECTION].create_index([("createdAt", ASCENDING)]),
    ]
    logger.info("Indexes ready on %s: %s", conn.name, ", ".join(created))
    return created
