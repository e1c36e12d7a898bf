# searchsync/infrastructure/meilisearch_engine.py

from typing import Any, Iterable, Optional

from searchsync.domain.interfaces import SearchEnginePort
from searchsync.domain.models import SearchableRecord
from searchsync.infrastructure.batch_indexer import BatchIndexer, resolve_batch_index
from searchsync.infrastructure.index_manager import IndexManager


class MeilisearchEngine(SearchEnginePort):
    """
    Search engine facade over Meilisearch.

    Documents come from the index manager's ``DocumentBuilder``; bulk calls
    go through ``BatchIndexer`` when one is wired, otherwise as one request.
    """

    def __init__(
        self,
        index_manager: IndexManager,
        batch_indexer: Optional[BatchIndexer] = None,
        search_limit: int = 20,
        highlight_pre_tag: str = "<em>",
        highlight_post_tag: str = "</em>",
    ):
        self._index_manager = index_manager
        self._batch_indexer = batch_indexer
        self._search_limit = search_limit
        self._highlight_tags = {
            "highlightPreTag": highlight_pre_tag,
            "highlightPostTag": highlight_post_tag,
        }

    @property
    def index_manager(self) -> IndexManager:
        return self._index_manager

    def index(self, record: SearchableRecord) -> None:
        document = self._index_manager.document_builder.build(record)
        self._index_manager.add_documents(record.index_name, [document])

    def index_many(self, records: Iterable[SearchableRecord]) -> None:
        records = list(records)
        if not records:
            return

        if self._batch_indexer is not None:
            self._batch_indexer.index_many(records)
            return

        index_name = resolve_batch_index(records)
        builder = self._index_manager.document_builder
        self._index_manager.add_documents(
            index_name, [builder.build(record) for record in records]
        )

    def remove(self, record: SearchableRecord) -> None:
        self.remove_by_key(record.index_name, record.search_key)

    def remove_many(self, records: Iterable[SearchableRecord]) -> None:
        records = list(records)
        if not records:
            return

        if self._batch_indexer is not None:
            self._batch_indexer.remove_many(records)
            return

        index_name = resolve_batch_index(records)
        self._index_manager.delete_documents(
            index_name, [record.search_key for record in records]
        )

    def remove_by_key(self, index_name: str, key: str | int) -> None:
        # Deleting an absent document is a successful no-op on the engine side.
        self._index_manager.delete_document(index_name, key)

    def flush(self, index_name: str) -> None:
        self._index_manager.flush(index_name)

    def search(self, query: Any) -> dict[str, Any]:
        record = query.model
        index_name = record.index_name or record.table_name

        params = query.to_search_params()
        text = params.pop("q", "")
        params.setdefault("limit", self._search_limit)
        if "attributesToHighlight" in params:
            for key, tag in self._highlight_tags.items():
                params.setdefault(key, tag)

        result = self._index_manager.search_index(index_name, text, params)
        return {
            "hits": result["hits"],
            "estimatedTotalHits": result["estimatedTotalHits"],
            "processingTimeMs": result["processingTimeMs"],
            "facetDistribution": result.get("facetDistribution") or {},
            "facetStats": result.get("facetStats") or {},
        }

    def update_settings(self, index_name: str, settings: dict[str, Any]) -> None:
        self._index_manager.update_settings(index_name, settings)

    def get_index_stats(self, index_name: str) -> dict[str, Any]:
        return self._index_manager.get_stats(index_name)
