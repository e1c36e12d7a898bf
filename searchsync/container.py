# searchsync/container.py

"""Dependency wiring for searchsync."""

import importlib
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from searchsync.application.dispatch import SyncDispatcher, SyncJobHandler
from searchsync.application.query import SearchQuery
from searchsync.application.registry import ModelRegistry
from searchsync.config import Settings, get_settings
from searchsync.domain.errors import ConfigurationError
from searchsync.domain.interfaces import JobQueue, SearchEnginePort, TransactionManager
from searchsync.domain.models import SearchableModel
from searchsync.infrastructure.batch_indexer import BatchIndexer
from searchsync.infrastructure.client import MeilisearchClient
from searchsync.infrastructure.index_manager import IndexManager
from searchsync.infrastructure.job_queue import InMemoryJobQueue
from searchsync.infrastructure.meilisearch_engine import MeilisearchEngine
from searchsync.infrastructure.null_engine import NullEngine


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Container:
    """Every collaborator, built once at startup and passed explicitly."""

    settings: Settings
    engine: SearchEnginePort
    index_manager: Optional[IndexManager]
    registry: ModelRegistry
    dispatcher: SyncDispatcher
    job_handler: SyncJobHandler
    queue: Optional[JobQueue]

    def require_index_manager(self) -> IndexManager:
        if self.index_manager is None:
            raise ConfigurationError("Search is disabled (MEILISEARCH_ENABLED=false).")
        return self.index_manager

    def resolve_model(self, name_or_path: str) -> SearchableModel:
        """A registered model name, or a ``package.module:attribute`` import path."""
        if name_or_path in self.registry:
            return self.registry.get(name_or_path)
        return self.registry.register(load_model(name_or_path))

    def search(self, model_name: str, query: str = "") -> SearchQuery:
        model = self.registry.get(model_name)
        return SearchQuery(self.engine, model.prototype, query, repository=model.repository)


def load_model(path: str) -> SearchableModel:
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(
            f"Model path must look like 'package.module:attribute', got '{path}'"
        )
    try:
        module = importlib.import_module(module_name)
        model = getattr(module, attribute)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"Model not found: {path}") from exc

    if not isinstance(model, SearchableModel):
        raise ConfigurationError(f"'{path}' is not a SearchableModel binding")
    return model


def build_container(
    settings: Optional[Settings] = None,
    *,
    client: Optional[MeilisearchClient] = None,
    transactions: Optional[TransactionManager] = None,
    queue: Optional[JobQueue] = None,
    models: Iterable[SearchableModel] = (),
) -> Container:
    """Instantiate the default stack; the null engine when search is disabled."""

    cfg = settings or get_settings()

    registry = ModelRegistry()
    for path in cfg.model_paths:
        registry.register(load_model(path))
    for model in models:
        registry.register(model)

    index_manager: Optional[IndexManager] = None
    if cfg.enabled:
        index_manager = IndexManager(
            client or MeilisearchClient.from_settings(cfg),
            index_settings=cfg.index_settings,
            batch_size=cfg.batch_size,
            task_timeout_ms=cfg.task_timeout_ms,
        )
        engine: SearchEnginePort = MeilisearchEngine(
            index_manager,
            BatchIndexer(index_manager),
            search_limit=cfg.search_limit,
            highlight_pre_tag=cfg.highlight_pre_tag,
            highlight_post_tag=cfg.highlight_post_tag,
        )
    else:
        logger.info("Search disabled; using the null engine")
        engine = NullEngine()

    if cfg.queue_enabled and queue is None:
        logger.info("No job queue supplied; using the in-process queue '%s'", cfg.queue_name)
        queue = InMemoryJobQueue()

    dispatcher = SyncDispatcher(
        engine,
        registry,
        transactions=transactions,
        queue=queue,
        queue_enabled=cfg.queue_enabled,
        queue_name=cfg.queue_name,
        queue_connection=cfg.queue_connection,
        soft_delete=cfg.soft_delete,
    )

    return Container(
        settings=cfg,
        engine=engine,
        index_manager=index_manager,
        registry=registry,
        dispatcher=dispatcher,
        job_handler=SyncJobHandler(engine, registry),
        queue=queue,
    )


__all__ = ["Container", "build_container", "load_model"]
