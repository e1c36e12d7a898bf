# searchsync/application/dispatch.py

import logging
from typing import Any, Callable, Optional

from searchsync.application.registry import ModelRegistry
from searchsync.domain.interfaces import JobQueue, SearchEnginePort, TransactionManager
from searchsync.domain.models import DispatchMode, SearchableRecord, SyncAction, SyncJob


logger = logging.getLogger(__name__)


class SyncDispatcher:
    """
    Decides when an index/remove call for a record lifecycle event runs.

    Evaluated when the hook fires:

        in transaction | queue enabled | action
        ---------------+---------------+-----------------------------------------
        yes            | no            | run after commit, dropped on rollback
        no             | no            | run now
        yes            | yes           | enqueue after commit, dropped on rollback
        no             | yes           | enqueue now

    Jobs are never enqueued before commit: a worker could pick one up before
    the row is visible, or after the transaction rolled it back.

    When the transaction manager cannot be consulted, the call runs
    immediately; indexing never blocks the primary write path.
    """

    def __init__(
        self,
        engine: SearchEnginePort,
        registry: ModelRegistry,
        transactions: Optional[TransactionManager] = None,
        queue: Optional[JobQueue] = None,
        queue_enabled: bool = False,
        queue_name: str = "search",
        queue_connection: Optional[str] = None,
        soft_delete: bool = True,
    ):
        if queue_enabled and queue is None:
            raise ValueError("queue_enabled requires a JobQueue.")
        self._engine = engine
        self._registry = registry
        self._transactions = transactions
        self._queue = queue
        self._queue_enabled = queue_enabled
        self._queue_name = queue_name
        self._queue_connection = queue_connection
        self._soft_delete = soft_delete

    # ── Lifecycle hooks ──────────────────────────────────────────────────────

    def on_created(self, record: SearchableRecord) -> DispatchMode:
        return self.dispatch(record, SyncAction.INDEX)

    def on_updated(self, record: SearchableRecord) -> DispatchMode:
        return self.dispatch(record, SyncAction.INDEX)

    def on_restored(self, record: SearchableRecord) -> DispatchMode:
        return self.dispatch(record, SyncAction.INDEX)

    def on_deleted(self, record: SearchableRecord) -> DispatchMode:
        if record.is_soft_deleted and not self._soft_delete:
            # Soft-deleted records stay searchable; treat as an update.
            return self.dispatch(record, SyncAction.INDEX)
        return self.dispatch(record, SyncAction.REMOVE)

    # ── Dispatch ─────────────────────────────────────────────────────────────

    def dispatch(self, record: SearchableRecord, action: SyncAction) -> DispatchMode:
        if self._queue_enabled:
            job = SyncJob(
                action=action,
                model=self._registry.name_for(record),
                key=record.search_key,
                index=record.index_name,
            )
            deferred = self._after_commit(lambda: self._enqueue(job))
            return DispatchMode.QUEUED_DEFERRED if deferred else DispatchMode.QUEUED_IMMEDIATE

        deferred = self._after_commit(lambda: self._execute(record, action))
        return DispatchMode.DEFERRED if deferred else DispatchMode.IMMEDIATE

    def _after_commit(self, callback: Callable[[], Any]) -> bool:
        """Register ``callback`` for after commit; run it now outside a transaction."""
        deferred = False
        if self._transactions is not None:
            try:
                if self._transactions.in_transaction():
                    self._transactions.after_commit(callback)
                    deferred = True
            except Exception:
                logger.warning(
                    "Transaction context unavailable; dispatching search sync immediately",
                    exc_info=True,
                )

        if not deferred:
            callback()
        return deferred

    def _enqueue(self, job: SyncJob) -> None:
        self._queue.submit(job, self._queue_name, self._queue_connection)
        logger.debug("Queued %s for %s:%s on '%s'", job.action.value, job.model, job.key, self._queue_name)

    def _execute(self, record: SearchableRecord, action: SyncAction) -> None:
        if action is SyncAction.REMOVE:
            self._engine.remove(record)
        else:
            self._engine.sync(record)


class SyncJobHandler:
    """
    Runs queued ``SyncJob``s on a worker.

    The record is re-read by key when the job runs, not serialized at enqueue
    time. An index job whose record is gone completes without doing anything;
    a remove job deletes by key unconditionally, which is idempotent.
    """

    def __init__(self, engine: SearchEnginePort, registry: ModelRegistry):
        self._engine = engine
        self._registry = registry

    def handle(self, job: SyncJob) -> None:
        if job.action is SyncAction.REMOVE:
            self._engine.remove_by_key(job.index, job.key)
            return

        model = self._registry.get(job.model)
        record = model.repository.find(job.key)
        if record is None:
            logger.warning("Skipping index job: %s:%s no longer exists", job.model, job.key)
            return

        self._engine.sync(record)

    def __call__(self, job: SyncJob) -> None:
        self.handle(job)
