# tests/conftest.py

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from searchsync.config import Settings
from searchsync.domain.models import SearchableModel
from searchsync.infrastructure.client import MeilisearchClient
from searchsync.infrastructure.document_builder import DocumentBuilder
from searchsync.infrastructure.index_manager import IndexManager
from tests.fakes import InMemoryRepository, Post


# ── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture
def posts():
    return [
        Post(id=1, uuid="uuid-1", title="Hello", status="published"),
        Post(id=2, uuid="uuid-2", title="World", status="published"),
        Post(id=3, uuid="uuid-3", title="Drafty", status="draft"),
    ]


@pytest.fixture
def post_repository(posts):
    return InMemoryRepository(posts)


@pytest.fixture
def post_model(post_repository):
    return SearchableModel(name="posts", prototype=Post(), repository=post_repository)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        host="http://meili.test:7700",
        key="masterKey",
        prefix="test_",
        batch_size=2,
    )


@pytest.fixture
def sdk_client():
    """Mock of the Meilisearch SDK client; every task succeeds."""
    client = MagicMock()
    client.wait_for_task.return_value = SimpleNamespace(
        status="succeeded", error=None, details={}
    )
    response = MagicMock()
    response.json.return_value = {"taskUid": 7}
    client.http_client.post.return_value = response
    return client


@pytest.fixture
def meili_client(sdk_client):
    return MeilisearchClient(sdk_client, prefix="test_")


@pytest.fixture
def index_manager():
    """IndexManager mock with a real DocumentBuilder and a small batch size."""
    manager = MagicMock(spec=IndexManager)
    manager.batch_size = 2
    manager.document_builder = DocumentBuilder()
    return manager
