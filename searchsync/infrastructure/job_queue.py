# searchsync/infrastructure/job_queue.py

from collections import defaultdict, deque
from typing import Callable, Optional

from searchsync.domain.interfaces import JobQueue
from searchsync.domain.models import SyncJob


class InMemoryJobQueue(JobQueue):
    """Process-local queue. Jobs stay pending until a worker drains them."""

    def __init__(self):
        self._queues: dict[str, deque[SyncJob]] = defaultdict(deque)

    def submit(
        self,
        job: SyncJob,
        queue_name: str,
        connection: Optional[str] = None,
    ) -> None:
        self._queues[queue_name].append(job)

    def pending(self, queue_name: str) -> list[SyncJob]:
        return list(self._queues.get(queue_name, ()))

    def drain(self, queue_name: str, handler: Callable[[SyncJob], None]) -> int:
        """Hand every pending job to ``handler`` in submission order."""
        queue = self._queues.get(queue_name)
        handled = 0
        while queue:
            handler(queue.popleft())
            handled += 1
        return handled
