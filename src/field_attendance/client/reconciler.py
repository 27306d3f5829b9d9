from __future__ import annotations

import logging
import threading
from typing import Optional

from ..core.exceptions import DomainError, SubmissionCancelled
from .local_store import LocalRecordStore
from .model import Credentials, ReconcileResult
from .submission import AttendanceSubmitter

logger = logging.getLogger(__name__)


class SyncReconciler:
    """Re-submits an owner's pending captures, one at a time.

    At most one pass runs per owner; a concurrent call returns ``skipped``.
    """

    def __init__(self, store: LocalRecordStore, submitter: AttendanceSubmitter):
        self._store = store
        self._submitter = submitter
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, owner_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = self._locks[owner_id] = threading.Lock()
            return lock

    def reconcile(
        self,
        owner_id: str,
        credentials: Credentials,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> ReconcileResult:
        lock = self._lock_for(owner_id)
        if not lock.acquire(blocking=False):
            logger.info("Reconciliation already running for %s", owner_id)
            return ReconcileResult(succeeded=0, failed=0, skipped=True)
        try:
            return self._run(owner_id, credentials, cancel_event)
        finally:
            lock.release()

    def _run(self, owner_id: str, credentials: Credentials, cancel_event: Optional[threading.Event]) -> ReconcileResult:
        pending = self._store.list_unsynced(owner_id)
        if not pending:
            return ReconcileResult(succeeded=0, failed=0)

        succeeded = 0
        failed = 0
        for record in pending:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Reconciliation for %s cancelled after %d records", owner_id, succeeded + failed)
                return ReconcileResult(succeeded=succeeded, failed=failed, cancelled=True)
            try:
                self._submitter.submit(record, credentials, cancel_event=cancel_event)
            except SubmissionCancelled:
                return ReconcileResult(succeeded=succeeded, failed=failed, cancelled=True)
            except DomainError as e:
                failed += 1
                logger.warning("Local attendance %s not synced: %s", record.local_id, e)
                continue
            except Exception:
                failed += 1
                logger.exception("Local attendance %s not synced: unexpected error", record.local_id)
                continue
            succeeded += 1

        logger.info("Reconciled %s: %d synced, %d failed", owner_id, succeeded, failed)
        return ReconcileResult(succeeded=succeeded, failed=failed)
