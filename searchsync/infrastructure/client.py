# searchsync/infrastructure/client.py

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import httpx
from meilisearch_python_sdk import Client
from meilisearch_python_sdk.errors import (
    MeilisearchApiError,
    MeilisearchError,
    MeilisearchTimeoutError,
)
from meilisearch_python_sdk.index import Index

from searchsync.config import Settings
from searchsync.domain.errors import (
    EngineError,
    IndexNotFoundError,
    TaskFailedError,
    TaskTimeoutError,
)
from searchsync.domain.models import IndexInfo, TaskResult, TaskStatus


logger = logging.getLogger(__name__)

_FAILED_STATUSES = {TaskStatus.FAILED.value, TaskStatus.CANCELED.value}


@contextmanager
def engine_errors(index_uid: Optional[str] = None) -> Iterator[None]:
    """
    Translate SDK and transport exceptions into searchsync errors.

    A 404 is reported as ``IndexNotFoundError`` when the block works on a
    named index; everything else becomes ``EngineError``.
    """
    try:
        yield
    except MeilisearchApiError as exc:
        if getattr(exc, "status_code", None) == 404 and index_uid is not None:
            raise IndexNotFoundError(index_uid) from exc
        raise EngineError(f"Meilisearch request failed: {exc}") from exc
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404 and index_uid is not None:
            raise IndexNotFoundError(index_uid) from exc
        raise EngineError(f"Meilisearch request failed: {exc}") from exc
    except (MeilisearchError, httpx.HTTPError) as exc:
        raise EngineError(f"Meilisearch unreachable: {exc}") from exc


class MeilisearchClient:
    """
    Wrapper around the Meilisearch SDK client.

    Adds index-name prefixing (multi-tenant / staging separation on a shared
    instance), task waiting with distinct failure and timeout errors, and
    reduces SDK models to plain values.
    """

    def __init__(self, client: Client, prefix: str = ""):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_settings(cls, settings: Settings) -> "MeilisearchClient":
        return cls(Client(settings.host, settings.key), prefix=settings.prefix)

    @property
    def prefix(self) -> str:
        return self._prefix

    def prefixed_index_name(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def index(self, uid: str) -> Index:
        """Local handle on an index. No request is made."""
        return self._client.index(uid)

    def get_prefixed_index(self, name: str) -> Index:
        return self.index(self.prefixed_index_name(name))

    def get_index(self, uid: str) -> Index:
        """Fetch an index; raises ``IndexNotFoundError`` when it does not exist."""
        with engine_errors(uid):
            return self._client.get_index(uid)

    def create_index(self, uid: str, primary_key: str) -> int:
        """
        Enqueue index creation with an explicit primary key and return the task uid.

        Sent as a plain POST so the caller owns the wait; the SDK helper
        waits internally and hides the task.
        """
        with engine_errors():
            response = self._client.http_client.post(
                "indexes", json={"uid": uid, "primaryKey": primary_key}
            )
            response.raise_for_status()
            payload = response.json()

        try:
            return int(payload["taskUid"])
        except (KeyError, TypeError, ValueError) as exc:
            raise EngineError(f"Malformed create-index response: {payload!r}") from exc

    def get_indexes(self) -> list[IndexInfo]:
        with engine_errors():
            indexes = self._client.get_indexes() or []

        return [to_index_info(index) for index in indexes]

    def wait_for_task(self, task_uid: int, timeout_ms: int = 5000) -> TaskResult:
        """
        Block until the task reaches a terminal status.

        Raises ``TaskTimeoutError`` when it is still enqueued/processing after
        ``timeout_ms`` and ``TaskFailedError`` when the engine rejected it.
        """
        try:
            task = self._client.wait_for_task(task_uid, timeout_in_ms=timeout_ms)
        except MeilisearchTimeoutError as exc:
            logger.warning("Task %s still pending after %sms", task_uid, timeout_ms)
            raise TaskTimeoutError(task_uid, timeout_ms) from exc
        except (MeilisearchError, httpx.HTTPError) as exc:
            raise EngineError(f"Meilisearch unreachable: {exc}") from exc

        result = TaskResult(
            task_uid=task_uid,
            status=str(getattr(task.status, "value", task.status)),
            error=task.error,
            details=task.details or {},
        )
        if result.status in _FAILED_STATUSES:
            raise TaskFailedError(task_uid, result.error)
        return result


def to_index_info(index: Any) -> IndexInfo:
    return IndexInfo(
        uid=index.uid,
        primary_key=index.primary_key,
        created_at=getattr(index, "created_at", None),
        updated_at=getattr(index, "updated_at", None),
    )


def as_dict(model: Any) -> dict[str, Any]:
    """Plain dict from an SDK response model (pydantic) or an already-plain dict."""
    if model is None:
        return {}
    if isinstance(model, dict):
        return model
    if hasattr(model, "model_dump"):
        return model.model_dump(by_alias=True)
    return dict(vars(model))
