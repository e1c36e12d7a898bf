# searchsync/application/result.py

import math
from typing import Any, Iterator, Optional

from searchsync.domain.errors import ConfigurationError
from searchsync.domain.interfaces import RecordRepository
from searchsync.domain.models import PRIMARY_KEY, SearchableRecord, to_index_value


class SearchResult:
    """
    Raw engine hits plus hydration back into domain records.

    Hit order is the engine's relevance order and is preserved by
    ``models()``. Hydrated records are not cached: each ``models()`` call
    queries the repository again.
    """

    def __init__(
        self,
        raw_result: dict[str, Any],
        model: SearchableRecord,
        repository: Optional[RecordRepository] = None,
    ):
        self._hits: list[dict[str, Any]] = list(raw_result.get("hits") or [])
        total = raw_result.get("estimatedTotalHits")
        self._estimated_total_hits: int = total if total is not None else len(self._hits)
        self._processing_time_ms: int = raw_result.get("processingTimeMs") or 0
        self._facet_distribution: dict = raw_result.get("facetDistribution") or {}
        self._facet_stats: dict = raw_result.get("facetStats") or {}
        self._model = model
        self._repository = repository
        self._page: Optional[int] = None
        self._per_page: Optional[int] = None

    def all(self) -> list[dict[str, Any]]:
        return list(self._hits)

    def models(self) -> list[SearchableRecord]:
        """
        Records for the hits, in hit order, fetched with one repository query.

        Hits whose record no longer exists (deleted after indexing) are
        skipped, so the output may be shorter than the hit list.
        """
        if not self._hits:
            return []

        key_field = self._model.search_key_field or PRIMARY_KEY
        ids = [hit[PRIMARY_KEY] for hit in self._hits if PRIMARY_KEY in hit]
        if not ids:
            return []

        if self._repository is None:
            raise ConfigurationError(
                f"No repository bound for '{self._model.index_name}'; "
                "cannot hydrate search results."
            )

        by_key = {
            to_index_value(getattr(record, key_field)): record
            for record in self._repository.find_many(key_field, ids)
        }
        return [by_key[key] for key in ids if key in by_key]

    def first(self) -> Optional[SearchableRecord]:
        models = self.models()
        return models[0] if models else None

    @property
    def total(self) -> int:
        return self._estimated_total_hits

    @property
    def processing_time(self) -> int:
        return self._processing_time_ms

    def facets(self, attribute: Optional[str] = None) -> dict:
        if attribute is not None:
            return self._facet_distribution.get(attribute, {})
        return self._facet_distribution

    def facet_stats(self, attribute: Optional[str] = None) -> dict:
        if attribute is not None:
            return self._facet_stats.get(attribute, {})
        return self._facet_stats

    def is_empty(self) -> bool:
        return not self._hits

    def count(self) -> int:
        return len(self._hits)

    def __len__(self) -> int:
        return len(self._hits)

    def __iter__(self) -> Iterator[SearchableRecord]:
        return iter(self.models())

    def with_pagination(self, page: int, per_page: int) -> "SearchResult":
        self._page = page
        self._per_page = per_page
        return self

    def pagination_meta(self) -> dict[str, Any]:
        if self._page is None or self._per_page is None:
            return {}

        total_pages = math.ceil(self._estimated_total_hits / self._per_page)
        return {
            "current_page": self._page,
            "per_page": self._per_page,
            "total": self._estimated_total_hits,
            "total_pages": total_pages,
            "has_more": self._page < total_pages,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.all(),
            "meta": {
                "total": self._estimated_total_hits,
                "processing_time_ms": self._processing_time_ms,
                **self.pagination_meta(),
            },
            "facets": self._facet_distribution or None,
        }
