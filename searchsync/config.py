# searchsync/config.py

import copy
from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_INDEX_SETTINGS: dict[str, Any] = {
    "pagination": {
        "maxTotalHits": 10000,
    },
    "typoTolerance": {
        "enabled": True,
        "minWordSizeForTypos": {
            "oneTypo": 5,
            "twoTypos": 9,
        },
    },
}


class Settings(BaseSettings):
    """
    searchsync settings.

    Environment variables use the MEILISEARCH_ prefix, e.g.
    MEILISEARCH_HOST, MEILISEARCH_KEY, MEILISEARCH_PREFIX,
    MEILISEARCH_ALLOWED_INDEXES="posts,parps".
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MEILISEARCH_",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────────────────
    enabled: bool = True
    host: str = "http://127.0.0.1:7700"
    key: Optional[str] = None
    prefix: str = ""
    # Comma-separated; empty means every valid index name is allowed.
    allowed_indexes: str = ""

    # ── Queue ────────────────────────────────────────────────────────────────
    queue_enabled: bool = False
    queue_connection: Optional[str] = None
    queue_name: str = "search"

    # ── Batching / tasks ─────────────────────────────────────────────────────
    batch_size: int = Field(default=500, ge=1)
    batch_timeout: int = Field(default=30, ge=1)
    task_timeout_ms: int = Field(default=5000, ge=1)

    soft_delete: bool = True

    # ── Search defaults ──────────────────────────────────────────────────────
    search_limit: int = Field(default=20, ge=1)
    highlight_pre_tag: str = "<em>"
    highlight_post_tag: str = "</em>"

    index_settings: dict[str, Any] = Field(
        default_factory=lambda: copy.deepcopy(DEFAULT_INDEX_SETTINGS)
    )

    # Comma-separated "package.module:attribute" paths to SearchableModel bindings.
    models: str = ""

    log_level: str = "INFO"

    @field_validator("queue_name")
    @classmethod
    def _queue_name_not_blank(cls, value: str) -> str:
        return value.strip() or "search"

    @property
    def allowed_index_names(self) -> list[str]:
        return _split_csv(self.allowed_indexes)

    @property
    def model_paths(self) -> list[str]:
        return _split_csv(self.models)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
