# tests/test_cli.py

import json
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from searchsync.config import Settings
from searchsync.container import build_container
from searchsync.domain.errors import EngineError, IndexNotFoundError
from searchsync.domain.models import IndexInfo, SearchableModel
from searchsync.infrastructure.index_manager import IndexManager
from searchsync.interface.cli import app
from tests.fakes import InMemoryRepository, Product


runner = CliRunner()


# ── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture
def manager():
    manager = MagicMock(spec=IndexManager)
    manager.client = MagicMock()
    manager.client.prefixed_index_name.side_effect = lambda name: f"test_{name}"
    return manager


@pytest.fixture
def engine():
    return MagicMock()


@pytest.fixture
def product_model():
    repository = InMemoryRepository(
        [Product(id=1), Product(id=2, visible=False), Product(id=3)],
        chunkable=True,
    )
    return SearchableModel(name="products", prototype=Product(), repository=repository)


@pytest.fixture
def container(manager, engine, post_model, product_model):
    settings = Settings(_env_file=None, enabled=False, batch_size=2)
    container = build_container(settings, models=[post_model, product_model])
    container.index_manager = manager
    container.engine = engine
    return container


def invoke(container, *args, **kwargs):
    return runner.invoke(app, list(args), obj=container, **kwargs)


# ── index ────────────────────────────────────────────────────────────────────

def test_index_requires_model(container):
    result = invoke(container, "index")

    assert result.exit_code == 1
    assert "You must provide --model" in result.output


def test_index_unknown_model(container):
    result = invoke(container, "index", "--model", "nope")
    assert result.exit_code == 1


def test_index_all_records(container, engine, posts):
    result = invoke(container, "index", "--model", "posts")

    assert result.exit_code == 0, result.output
    engine.index_many.assert_called_once_with(posts)
    engine.remove_many.assert_called_once_with([])
    assert "Indexing complete" in result.output


def test_index_in_chunks_removes_hidden_records(container, engine):
    result = invoke(container, "index", "--model", "products")

    assert result.exit_code == 0, result.output
    indexed = [[p.id for p in call.args[0]] for call in engine.index_many.call_args_list]
    removed = [[p.id for p in call.args[0]] for call in engine.remove_many.call_args_list]
    assert indexed == [[1], [3]]
    assert removed == [[2], []]


def test_index_selected_ids(container, engine, posts):
    result = invoke(container, "index", "--model", "posts", "--id", "uuid-1, missing")

    assert result.exit_code == 0, result.output
    engine.sync.assert_called_once_with(posts[0])
    engine.index_many.assert_not_called()


def test_index_fresh_flushes_first(container, manager):
    result = invoke(container, "index", "--model", "posts", "--fresh")

    assert result.exit_code == 0, result.output
    manager.flush.assert_called_once_with("posts")


# ── flush ────────────────────────────────────────────────────────────────────

def test_flush_needs_index_or_all(container, manager):
    result = invoke(container, "flush", "--force")

    assert result.exit_code == 1
    assert "Specify index name or use --all" in result.output
    manager.flush.assert_not_called()


def test_flush_one_index(container, manager):
    result = invoke(container, "flush", "posts", "--force")

    assert result.exit_code == 0, result.output
    manager.flush.assert_called_once_with("posts")


def test_flush_asks_for_confirmation(container, manager):
    result = invoke(container, "flush", "posts", input="n\n")

    assert result.exit_code == 0
    manager.flush.assert_not_called()


def test_flush_all(container, manager):
    manager.get_all_indexes.return_value = [IndexInfo("test_posts", "id"), IndexInfo("test_products", "id")]

    result = invoke(container, "flush", "--all", input="y\n")

    assert result.exit_code == 0, result.output
    assert [c.args[0] for c in manager.flush_uid.call_args_list] == ["test_posts", "test_products"]


def test_flush_failure_exits_non_zero(container, manager):
    manager.flush.side_effect = EngineError("Meilisearch unreachable")

    result = invoke(container, "flush", "posts", "--force")

    assert result.exit_code == 1
    assert "Failed to flush index" in result.output


# ── sync ─────────────────────────────────────────────────────────────────────

def test_sync_dry_run_prints_settings(container, manager):
    manager.build_settings_for_model.return_value = {"filterableAttributes": ["status"]}

    result = invoke(container, "sync", "--model", "posts", "--dry-run")

    assert result.exit_code == 0, result.output
    assert "filterableAttributes" in result.output
    manager.sync_settings_for_model.assert_not_called()


def test_sync_dry_run_without_settings(container, manager):
    manager.build_settings_for_model.return_value = {}

    result = invoke(container, "sync", "--model", "posts", "--dry-run")

    assert "No settings to apply for this model." in result.output


def test_sync_applies_settings(container, manager):
    result = invoke(container, "sync", "--model", "posts")

    assert result.exit_code == 0, result.output
    manager.sync_settings_for_model.assert_called_once()


def test_sync_requires_model(container):
    assert invoke(container, "sync").exit_code == 1


# ── search ───────────────────────────────────────────────────────────────────

def test_search_raw_output(container, manager):
    manager.search_index.return_value = {
        "hits": [{"id": "uuid-1"}],
        "query": "hello",
        "estimatedTotalHits": 1,
        "processingTimeMs": 1,
        "facetDistribution": {},
        "facetStats": {},
    }

    result = invoke(container, "search", "posts", "hello", "--filter", "status = published", "--limit", "5", "--raw")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["hits"] == [{"id": "uuid-1"}]
    manager.search_index.assert_called_once_with(
        "posts", "hello", {"limit": 5, "filter": ["status = published"]}, create_missing=False
    )


def test_search_limit_defaults_to_settings(container, manager):
    container.settings.search_limit = 7
    manager.search_index.return_value = {
        "hits": [],
        "query": "",
        "estimatedTotalHits": 0,
        "processingTimeMs": 1,
    }

    result = invoke(container, "search", "posts", "--raw")

    assert result.exit_code == 0, result.output
    manager.search_index.assert_called_once_with("posts", "", {"limit": 7}, create_missing=False)


def test_search_summary_output(container, manager):
    manager.search_index.return_value = {
        "hits": [],
        "query": "",
        "estimatedTotalHits": 0,
        "processingTimeMs": 1,
    }

    result = invoke(container, "search", "posts")

    assert result.exit_code == 0, result.output
    assert "No results found." in result.output


def test_search_rejects_invalid_index_name(container, manager):
    result = invoke(container, "search", "bad name")

    assert result.exit_code == 1
    manager.search_index.assert_not_called()


def test_search_failure(container, manager):
    manager.search_index.side_effect = IndexNotFoundError("test_posts")

    result = invoke(container, "search", "posts")

    assert result.exit_code == 1
    assert "Search failed" in result.output


# ── status ───────────────────────────────────────────────────────────────────

def test_status_json(container, manager):
    manager.get_all_indexes.return_value = [IndexInfo("test_posts", "id")]

    result = invoke(container, "status", "--json")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [
        {"uid": "test_posts", "primaryKey": "id", "createdAt": None, "updatedAt": None}
    ]


def test_status_table(container, manager):
    manager.get_all_indexes.return_value = [IndexInfo("test_posts", "id")]

    result = invoke(container, "status")

    assert "test_posts" in result.output


def test_status_of_one_index(container, manager):
    manager.get_stats.return_value = {"numberOfDocuments": 3, "isIndexing": False}

    result = invoke(container, "status", "posts", "--json")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["numberOfDocuments"] == 3
    manager.get_stats.assert_called_once_with("posts", create_missing=False)


def test_status_of_missing_index(container, manager):
    manager.get_stats.side_effect = IndexNotFoundError("test_ghost")

    result = invoke(container, "status", "ghost")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_disabled_search_fails_cleanly(container):
    container.index_manager = None

    result = invoke(container, "status")

    assert result.exit_code == 1
    assert "disabled" in result.output
