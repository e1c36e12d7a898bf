# searchsync/infrastructure/null_engine.py

from typing import Any, Iterable

from searchsync.domain.interfaces import SearchEnginePort
from searchsync.domain.models import SearchableRecord


class NullEngine(SearchEnginePort):
    """Engine used when search is disabled: every write is a no-op, every search is empty."""

    def index(self, record: SearchableRecord) -> None:
        pass

    def index_many(self, records: Iterable[SearchableRecord]) -> None:
        pass

    def remove(self, record: SearchableRecord) -> None:
        pass

    def remove_many(self, records: Iterable[SearchableRecord]) -> None:
        pass

    def remove_by_key(self, index_name: str, key: str | int) -> None:
        pass

    def flush(self, index_name: str) -> None:
        pass

    def search(self, query: Any) -> dict[str, Any]:
        return {
            "hits": [],
            "estimatedTotalHits": 0,
            "processingTimeMs": 0,
            "facetDistribution": {},
            "facetStats": {},
        }

    def update_settings(self, index_name: str, settings: dict[str, Any]) -> None:
        pass

    def get_index_stats(self, index_name: str) -> dict[str, Any]:
        return {}
