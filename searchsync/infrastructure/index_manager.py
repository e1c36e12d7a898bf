# searchsync/infrastructure/index_manager.py

import copy
import logging
from typing import Any, Optional, Sequence

from meilisearch_python_sdk.index import Index
from meilisearch_python_sdk.models.settings import MeilisearchSettings

from searchsync.domain.errors import IndexNotFoundError
from searchsync.domain.models import (
    NO_SETTINGS,
    PRIMARY_KEY,
    IndexInfo,
    SearchableRecord,
    TaskResult,
)
from searchsync.infrastructure.client import (
    MeilisearchClient,
    as_dict,
    engine_errors,
    to_index_info,
)
from searchsync.infrastructure.document_builder import DocumentBuilder


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500
DEFAULT_TASK_TIMEOUT_MS = 5000

# Compiled (wire) search parameter -> SDK keyword argument.
SEARCH_PARAM_KWARGS = {
    "limit": "limit",
    "offset": "offset",
    "filter": "filter",
    "facets": "facets",
    "sort": "sort",
    "attributesToRetrieve": "attributes_to_retrieve",
    "attributesToHighlight": "attributes_to_highlight",
    "showMatchesPosition": "show_matches_position",
    "highlightPreTag": "highlight_pre_tag",
    "highlightPostTag": "highlight_post_tag",
}


def merge_settings(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Merge two settings mappings into a new one.
    Later values win on key collision; nested mappings merge recursively.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def to_meilisearch_settings(settings: dict[str, Any]) -> MeilisearchSettings:
    """Validate a camelCase settings dict, warning about keys the SDK model drops."""
    known = set()
    for field_name, field in MeilisearchSettings.model_fields.items():
        known.add(field_name)
        known.update(alias for alias in (field.alias, field.validation_alias) if isinstance(alias, str))
    unknown = sorted(key for key in settings if key not in known)
    if unknown:
        logger.warning("Ignoring unknown index settings: %s", ", ".join(unknown))
    return MeilisearchSettings.model_validate(settings)


class IndexManager:
    """
    Sole owner of index lifecycle against Meilisearch.

    Every index is created with ``id`` as its primary key, never left to
    auto-detection: Meilisearch would otherwise pick any field ending in
    ``id`` and documents from entities keyed by ``uuid`` would stop lining up.
    Every write waits for its task to reach a terminal status.
    """

    def __init__(
        self,
        client: MeilisearchClient,
        index_settings: Optional[dict[str, Any]] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        task_timeout_ms: int = DEFAULT_TASK_TIMEOUT_MS,
        document_builder: Optional[DocumentBuilder] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        self._client = client
        self._index_settings = index_settings or {}
        self._batch_size = batch_size
        self._task_timeout_ms = task_timeout_ms
        self._document_builder = document_builder or DocumentBuilder()

    @property
    def client(self) -> MeilisearchClient:
        return self._client

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def document_builder(self) -> DocumentBuilder:
        return self._document_builder

    # ── Index lifecycle ──────────────────────────────────────────────────────

    def create_index(self, name: str, primary_key: str = PRIMARY_KEY) -> TaskResult:
        uid = self._client.prefixed_index_name(name)
        task_uid = self._client.create_index(uid, primary_key)
        result = self.wait_for_task(task_uid)
        logger.info("Created index '%s' (primaryKey=%s)", uid, primary_key)
        return result

    def get_or_create_index(self, name: str) -> Index:
        uid = self._client.prefixed_index_name(name)
        try:
            index = self._client.get_index(uid)
        except IndexNotFoundError:
            self.create_index(name)
            index = self._client.get_index(uid)

        primary_key = index.primary_key
        if primary_key is not None and primary_key != PRIMARY_KEY:
            logger.warning(
                "Index '%s' has unexpected primaryKey '%s' (expected '%s')",
                uid, primary_key, PRIMARY_KEY,
            )
        return index

    def get_index_info(self, name: str) -> IndexInfo:
        """Look an index up without creating it."""
        return to_index_info(self._client.get_index(self._client.prefixed_index_name(name)))

    def update_settings(self, name: str, settings: dict[str, Any]) -> TaskResult:
        index = self.get_or_create_index(name)
        with engine_errors(index.uid):
            task = index.update_settings(to_meilisearch_settings(settings))
        return self.wait_for_task(task.task_uid)

    def delete_index(self, name: str) -> TaskResult:
        uid = self._client.prefixed_index_name(name)
        with engine_errors(uid):
            task = self._client.index(uid).delete()
        return self.wait_for_task(task.task_uid)

    def flush(self, name: str) -> TaskResult:
        """Delete every document of an index, keeping the index and its settings."""
        index = self.get_or_create_index(name)
        return self._delete_all_documents(index)

    def flush_uid(self, uid: str) -> TaskResult:
        """Flush an index addressed by its full (already prefixed) uid."""
        return self._delete_all_documents(self._client.index(uid))

    def _delete_all_documents(self, index: Index) -> TaskResult:
        with engine_errors(index.uid):
            task = index.delete_all_documents()
        result = self.wait_for_task(task.task_uid)
        logger.info("Flushed index '%s'", index.uid)
        return result

    def get_stats(self, name: str, create_missing: bool = True) -> dict[str, Any]:
        if create_missing:
            index = self.get_or_create_index(name)
        else:
            index = self._client.get_index(self._client.prefixed_index_name(name))
        with engine_errors(index.uid):
            return as_dict(index.get_stats())

    def get_all_indexes(self) -> list[IndexInfo]:
        return self._client.get_indexes()

    def wait_for_task(self, task_uid: int, timeout_ms: Optional[int] = None) -> TaskResult:
        return self._client.wait_for_task(task_uid, timeout_ms or self._task_timeout_ms)

    # ── Documents ────────────────────────────────────────────────────────────

    def add_documents(self, name: str, documents: list[dict[str, Any]]) -> TaskResult:
        index = self.get_or_create_index(name)
        with engine_errors(index.uid):
            task = index.add_documents(documents, primary_key=PRIMARY_KEY)
        return self.wait_for_task(task.task_uid)

    def delete_document(self, name: str, key: str | int) -> TaskResult:
        index = self.get_or_create_index(name)
        with engine_errors(index.uid):
            task = index.delete_document(str(key))
        return self.wait_for_task(task.task_uid)

    def delete_documents(self, name: str, keys: Sequence[str | int]) -> TaskResult:
        index = self.get_or_create_index(name)
        with engine_errors(index.uid):
            task = index.delete_documents([str(key) for key in keys])
        return self.wait_for_task(task.task_uid)

    # ── Search ───────────────────────────────────────────────────────────────

    def search_index(
        self,
        name: str,
        query: str = "",
        params: Optional[dict[str, Any]] = None,
        create_missing: bool = True,
    ) -> dict[str, Any]:
        """
        Run one search request and normalize the response.

        With ``create_missing=False`` an absent index raises
        ``IndexNotFoundError`` instead of being created; public read paths
        use that so a search can never create an index.
        """
        if create_missing:
            index = self.get_or_create_index(name)
        else:
            index = self._client.get_prefixed_index(name)

        kwargs = {
            SEARCH_PARAM_KWARGS[key]: value
            for key, value in (params or {}).items()
            if key in SEARCH_PARAM_KWARGS
        }
        with engine_errors(index.uid):
            result = index.search(query, **kwargs)

        hits = list(result.hits or [])
        return {
            "hits": hits,
            "query": query,
            "estimatedTotalHits": (
                result.estimated_total_hits
                if result.estimated_total_hits is not None else len(hits)
            ),
            "processingTimeMs": result.processing_time_ms or 0,
            "facetDistribution": result.facet_distribution or {},
            "facetStats": result.facet_stats or {},
        }

    # ── Settings ─────────────────────────────────────────────────────────────

    def build_settings_for_model(self, record: SearchableRecord) -> dict[str, Any]:
        """
        Settings for a record's index, in increasing precedence:
        configured defaults, then declared filterable/sortable attributes
        (only when non-empty), then the record's custom settings (deep-merged).
        """
        settings = copy.deepcopy(self._index_settings)

        filterable = sorted(record.filterable_fields())
        if filterable:
            settings["filterableAttributes"] = filterable

        sortable = sorted(record.sortable_fields())
        if sortable:
            settings["sortableAttributes"] = sortable

        custom = record.custom_index_settings()
        if custom:
            settings = merge_settings(settings, custom)

        return settings

    def sync_settings_for_model(self, record: SearchableRecord) -> TaskResult:
        settings = self.build_settings_for_model(record)
        if not settings:
            return NO_SETTINGS

        result = self.update_settings(record.index_name, settings)
        logger.info("Synced settings for index '%s'", record.index_name)
        return result
