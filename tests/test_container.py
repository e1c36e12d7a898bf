# tests/test_container.py

import pytest

from searchsync.config import Settings
from searchsync.container import build_container, load_model
from searchsync.domain.errors import ConfigurationError
from searchsync.infrastructure.job_queue import InMemoryJobQueue
from searchsync.infrastructure.meilisearch_engine import MeilisearchEngine
from searchsync.infrastructure.null_engine import NullEngine
from tests.fakes import Post


def test_enabled_container_wires_meilisearch(settings, meili_client, post_model):
    container = build_container(settings, client=meili_client, models=[post_model])

    assert isinstance(container.engine, MeilisearchEngine)
    assert container.index_manager.batch_size == 2
    assert container.require_index_manager() is container.index_manager
    assert "posts" in container.registry


def test_disabled_container_uses_null_engine():
    container = build_container(Settings(_env_file=None, enabled=False))

    assert isinstance(container.engine, NullEngine)
    assert container.index_manager is None
    with pytest.raises(ConfigurationError, match="disabled"):
        container.require_index_manager()


def test_queue_enabled_without_queue_gets_in_memory_queue():
    container = build_container(Settings(_env_file=None, enabled=False, queue_enabled=True))
    assert isinstance(container.queue, InMemoryJobQueue)


def test_search_entry_point(post_model):
    container = build_container(Settings(_env_file=None, enabled=False), models=[post_model])

    result = container.search("posts", "hello").where("status", "published").get()

    assert result.is_empty()


def test_model_paths_are_loaded(post_model, monkeypatch):
    import tests.fakes as fakes

    monkeypatch.setattr(fakes, "POSTS", post_model, raising=False)
    container = build_container(
        Settings(_env_file=None, enabled=False, models="tests.fakes:POSTS")
    )

    assert container.registry.get("posts") is post_model
    assert container.resolve_model("posts") is post_model


@pytest.mark.parametrize("path, message", [
    ("no_colon_here", "package.module:attribute"),
    ("tests.fakes:MISSING", "not found"),
    ("searchsync_missing_module:thing", "not found"),
    ("tests.fakes:Post", "not a SearchableModel"),
])
def test_bad_model_paths(path, message):
    with pytest.raises(ConfigurationError, match=message):
        load_model(path)


def test_resolve_unknown_model_name():
    container = build_container(Settings(_env_file=None, enabled=False))
    with pytest.raises(ConfigurationError):
        container.resolve_model("posts")


def test_registry_lookup_by_record(post_model):
    container = build_container(Settings(_env_file=None, enabled=False), models=[post_model])
    assert container.registry.name_for(Post(uuid="x")) == "posts"
