from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Mapping, Optional, Protocol

from pymongo.errors import PyMongoError

from ..core.constants import REPLICATION_WORKERS
from ..core.enums import EntityType
from ..core.exceptions import ReplicationError
from ..database.bootstrap import ATTENDANCE_COLLECTION
from ..database.connection import MongoConnection

logger = logging.getLogger(__name__)

COLLECTIONS = {
    EntityType.ATTENDANCE: ATTENDANCE_COLLECTION,
}


class Outbox(Protocol):
    def enqueue(self, entity_type: EntityType, payload: Mapping[str, Any], *, error: str) -> None:
        raise NotImplementedError


class SecondaryReplicator:
    """Best-effort copy of committed documents into the secondary store.

    ``replicate`` never raises and never retries. When an outbox is wired in,
    a failed write is parked there for an operator-triggered drain.
    """

    def __init__(
        self,
        conn: Optional[MongoConnection],
        *,
        outbox: Optional[Outbox] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        max_workers: int = REPLICATION_WORKERS,
    ):
        self._conn = conn
        self._outbox = outbox
        self._executor = executor
        self._max_workers = int(max_workers)
        self._pool_guard = threading.Lock()
        self._closed = False

    @property
    def enabled(self) -> bool:
        return self._conn is not None

    def write(self, entity_type: EntityType, payload: Mapping[str, Any]) -> None:
        """Upsert by ``_id`` when present, insert otherwise. Raises ReplicationError."""
        if self._conn is None:
            raise ReplicationError("Secondary DB not configured")
        collection = self._conn.db()[COLLECTIONS[EntityType(entity_type)]]
        doc = dict(payload)
        try:
            if doc.get("_id") is not None:
                collection.replace_one({"_id": doc["_id"]}, doc, upsert=True)
            else:
                collection.insert_one(doc)
        except PyMongoError as e:
            raise ReplicationError(str(e)) from e

    def replicate(self, entity_type: EntityType, payload: Mapping[str, Any]) -> bool:
        if self._conn is None:
            logger.info("Secondary DB not available, skipping %s sync", EntityType(entity_type).value)
            return False
        try:
            self.write(entity_type, payload)
        except Exception as e:
            logger.error("Sync of %s %s to secondary failed: %s", EntityType(entity_type).value, payload.get("_id"), e)
            self._park(entity_type, payload, str(e))
            return False
        logger.debug("Synced %s %s to secondary DB", EntityType(entity_type).value, payload.get("_id"))
        return True

    def _pool(self) -> ThreadPoolExecutor:
        with self._pool_guard:
            if self._closed:
                raise RuntimeError("replicator is shut down")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="replication")
            return self._executor

    def dispatch(self, entity_type: EntityType, payload: Mapping[str, Any]) -> Optional[Future]:
        """Fire-and-forget ``replicate`` on the worker pool.

        Returns None without starting any thread when replication is disabled.
        """
        if not self.enabled:
            logger.debug("Secondary DB not available, skipping %s sync", EntityType(entity_type).value)
            return None
        try:
            return self._pool().submit(self.replicate, entity_type, dict(payload))
        except RuntimeError as e:
            # executor already shut down
            logger.error("Could not schedule %s sync: %s", EntityType(entity_type).value, e)
            return None

    def shutdown(self, *, wait: bool = True) -> None:
        with self._pool_guard:
            self._closed = True
            executor = self._executor
        if executor is not None:
            executor.shutdown(wait=wait)

    def _park(self, entity_type: EntityType, payload: Mapping[str, Any], error: str) -> None:
        if self._outbox is None:
            return
        try:
            self._outbox.enqueue(entity_type, payload, error=error)
        except Exception as e:
            logger.error("Could not park %s %s in outbox: %s", EntityType(entity_type).value, payload.get("_id"), e)
