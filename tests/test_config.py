# tests/test_config.py

import pytest
from pydantic import ValidationError

from searchsync.config import DEFAULT_INDEX_SETTINGS, Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("MEILISEARCH_HOST", raising=False)
    settings = Settings(_env_file=None)

    assert settings.host == "http://127.0.0.1:7700"
    assert settings.prefix == ""
    assert settings.queue_name == "search"
    assert settings.batch_size == 500
    assert settings.search_limit == 20
    assert settings.allowed_index_names == []
    assert settings.index_settings == DEFAULT_INDEX_SETTINGS
    assert settings.index_settings is not DEFAULT_INDEX_SETTINGS


def test_environment_uses_prefix(monkeypatch):
    monkeypatch.setenv("MEILISEARCH_HOST", "http://search:7700")
    monkeypatch.setenv("MEILISEARCH_ALLOWED_INDEXES", "posts, parps,")
    monkeypatch.setenv("MEILISEARCH_QUEUE_ENABLED", "true")

    settings = Settings(_env_file=None)

    assert settings.host == "http://search:7700"
    assert settings.allowed_index_names == ["posts", "parps"]
    assert settings.queue_enabled is True


def test_blank_queue_name_falls_back_to_default():
    assert Settings(_env_file=None, queue_name="  ").queue_name == "search"


def test_model_paths():
    settings = Settings(_env_file=None, models="app.models:posts,app.models:products")
    assert settings.model_paths == ["app.models:posts", "app.models:products"]


def test_batch_size_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, batch_size=0)
