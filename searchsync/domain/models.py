# searchsync/domain/models.py

import dataclasses
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

from searchsync.domain.errors import InvalidIndexNameError

if TYPE_CHECKING:
    from searchsync.domain.interfaces import RecordRepository


# Every index uses this field as its primary key, whatever the entity calls its key.
PRIMARY_KEY = "id"

INDEX_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def is_valid_index_name(name: str) -> bool:
    return bool(INDEX_NAME_PATTERN.fullmatch(name))


def validate_index_name(name: str) -> str:
    if not is_valid_index_name(name):
        raise InvalidIndexNameError(f"Invalid index name: '{name}'")
    return name


class FieldProjection:
    """
    Default field projection an entity can delegate to.

    Key field convention: ``uuid`` when the entity carries a ``uuid``
    attribute, otherwise ``id``. The projected document always holds the
    entity's key under ``id``, replacing a projected ``id`` field when
    the key field is ``uuid``.
    """

    def __init__(self, exclude: tuple[str, ...] = ()):
        self._exclude = set(exclude)

    def key_field(self, entity: Any) -> str:
        return "uuid" if hasattr(entity, "uuid") else "id"

    def key(self, entity: Any) -> str | int:
        return getattr(entity, self.key_field(entity))

    def project(self, entity: Any) -> dict[str, Any]:
        if dataclasses.is_dataclass(entity):
            names = [f.name for f in dataclasses.fields(entity)]
        else:
            names = list(vars(entity))

        document = {
            name: to_index_value(getattr(entity, name))
            for name in names
            if not name.startswith("_") and name not in self._exclude
        }
        document[PRIMARY_KEY] = to_index_value(self.key(entity))
        return document


def to_index_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


class SearchableRecord(ABC):
    """
    Capability an entity implements to be mirrored into a search index.

    Only ``to_document`` is required; entities usually implement it by
    delegating to a ``FieldProjection``. The remaining members have
    documented defaults that entities override as needed.
    """

    @abstractmethod
    def to_document(self) -> dict[str, Any]: ...

    @property
    def table_name(self) -> str:
        return getattr(type(self), "__tablename__", None) or type(self).__name__.lower()

    @property
    def index_name(self) -> str:
        """Logical index name, without the configured prefix."""
        return self.table_name

    @property
    def search_key_field(self) -> str:
        return "uuid" if hasattr(self, "uuid") else "id"

    @property
    def search_key(self) -> str | int:
        return getattr(self, self.search_key_field)

    @property
    def is_searchable(self) -> bool:
        return True

    @property
    def is_soft_deleted(self) -> bool:
        return getattr(self, "deleted_at", None) is not None

    def filterable_fields(self) -> frozenset[str]:
        return frozenset()

    def sortable_fields(self) -> frozenset[str]:
        return frozenset()

    def custom_index_settings(self) -> dict[str, Any]:
        return {}


@dataclass
class SearchableModel:
    """
    Binds an entity type to the repository that stores it.

    ``prototype`` is a representative instance used to read index-level
    facts (index name, key field, declared settings) without a real record.
    """
    name: str
    prototype: SearchableRecord
    repository: "RecordRepository" = field(repr=False)

    @property
    def index_name(self) -> str:
        return self.prototype.index_name or self.prototype.table_name


class SyncAction(str, Enum):
    INDEX = "index"
    REMOVE = "remove"


class DispatchMode(str, Enum):
    DEFERRED = "deferred"
    IMMEDIATE = "immediate"
    QUEUED_DEFERRED = "queued_deferred"
    QUEUED_IMMEDIATE = "queued_immediate"


@dataclass(frozen=True)
class SyncJob:
    """Queued sync work. Carries the key only; the record is re-read when the job runs."""
    action: SyncAction
    model: str
    key: str | int
    index: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "model": self.model,
            "id": self.key,
            "index": self.index,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SyncJob":
        return cls(
            action=SyncAction(payload.get("action", SyncAction.INDEX.value)),
            model=payload["model"],
            key=payload["id"],
            index=payload["index"],
        )


class TaskStatus(str, Enum):
    ENQUEUED = "enqueued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass
class TaskResult:
    task_uid: Optional[int]
    status: str
    error: Optional[dict] = None
    details: dict = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == TaskStatus.SUCCEEDED.value


# Returned by settings sync when there is nothing to send.
NO_SETTINGS = TaskResult(task_uid=None, status="no_settings")


@dataclass
class IndexInfo:
    uid: str
    primary_key: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "primaryKey": self.primary_key,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
