from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from pymongo import ASCENDING

from ..common.datetime_utils import now_utc
from ..core.enums import EntityType
from ..core.exceptions import ReplicationError
from ..database.bootstrap import OUTBOX_COLLECTION
from ..database.connection import MongoConnection
from .sync import Outbox, SecondaryReplicator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrainResult:
    replicated: int
    failed: int


class ReplicationOutbox(Outbox):
    """Durable queue of secondary writes that failed, kept in the primary DB."""

    def __init__(self, conn: MongoConnection):
        self._conn = conn

    def _collection(self):
        return self._conn.db()[OUTBOX_COLLECTION]

    def enqueue(self, entity_type: EntityType, payload: Mapping[str, Any], *, error: str) -> None:
        now = now_utc()
        self._collection().insert_one(
            {
                "entityType": EntityType(entity_type).value,
                "payload": dict(payload),
                "attempts": 0,
                "lastError": error,
                "createdAt": now,
                "updatedAt": now,
            }
        )

    def pending_count(self) -> int:
        return int(self._collection().count_documents({}))

    def drain(self, replicator: SecondaryReplicator, *, limit: int = 500) -> DrainResult:
        replicated = 0
        failed = 0
        coll = self._collection()
        for entry in coll.find({}).sort("createdAt", ASCENDING).limit(int(limit)):
            try:
                replicator.write(EntityType(entry["entityType"]), entry["payload"])
            except ReplicationError as e:
                failed += 1
                coll.update_one(
                    {"_id": entry["_id"]},
                    {"$inc": {"attempts": 1}, "$set": {"lastError": str(e), "updatedAt": now_utc()}},
                )
                continue
            coll.delete_one({"_id": entry["_id"]})
            replicated += 1

        logger.info("Outbox drain: %d replicated, %d still pending", replicated, failed)
        return DrainResult(replicated=replicated, failed=failed)
