# searchsync/domain/interfaces.py

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence

from searchsync.domain.models import SearchableRecord, SyncJob


class RecordRepository(ABC):
    """
    Port onto the host's primary data store for one entity type.
    This layer only reads from it; it never persists records.
    """

    @abstractmethod
    def find(self, key: str | int) -> Optional[SearchableRecord]: ...

    @abstractmethod
    def find_many(
        self, key_field: str, keys: Sequence[str | int]
    ) -> Iterable[SearchableRecord]:
        """Fetch every record whose ``key_field`` is in ``keys``, in one query."""
        ...

    @abstractmethod
    def all(self) -> Iterable[SearchableRecord]: ...

    def chunks(self, size: int) -> Optional[Iterator[list[SearchableRecord]]]:
        """
        Optional capability: iterate the store in chunks of ``size``.
        Returns None when the store cannot chunk; callers fall back to ``all()``.
        """
        return None


class TransactionManager(ABC):

    @abstractmethod
    def in_transaction(self) -> bool: ...

    @abstractmethod
    def after_commit(self, callback: Callable[[], Any]) -> None:
        """
        Run ``callback`` once the current transaction commits, or right away
        when no transaction is active. Callbacks of a rolled-back transaction
        never run.
        """
        ...


class JobQueue(ABC):

    @abstractmethod
    def submit(
        self,
        job: SyncJob,
        queue_name: str,
        connection: Optional[str] = None,
    ) -> None: ...


class SearchEnginePort(ABC):
    """The operations every search engine facade (real or null) provides."""

    @abstractmethod
    def index(self, record: SearchableRecord) -> None: ...

    @abstractmethod
    def index_many(self, records: Iterable[SearchableRecord]) -> None: ...

    @abstractmethod
    def remove(self, record: SearchableRecord) -> None: ...

    @abstractmethod
    def remove_many(self, records: Iterable[SearchableRecord]) -> None: ...

    @abstractmethod
    def remove_by_key(self, index_name: str, key: str | int) -> None: ...

    @abstractmethod
    def flush(self, index_name: str) -> None: ...

    @abstractmethod
    def search(self, query: Any) -> dict[str, Any]:
        """
        Run a ``SearchQuery`` and return ``hits``, ``estimatedTotalHits``,
        ``processingTimeMs``, ``facetDistribution`` and ``facetStats``.
        """
        ...

    @abstractmethod
    def update_settings(self, index_name: str, settings: dict[str, Any]) -> None: ...

    @abstractmethod
    def get_index_stats(self, index_name: str) -> dict[str, Any]: ...

    def sync(self, record: SearchableRecord) -> None:
        """Index the record, or remove it when it should not be searchable."""
        if record.is_searchable:
            self.index(record)
        else:
            self.remove(record)
