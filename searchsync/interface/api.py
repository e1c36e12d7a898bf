# searchsync/interface/api.py

import logging
from typing import Any, List, Optional, Sequence

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel

from searchsync.container import Container
from searchsync.domain.errors import EngineError, IndexNotFoundError
from searchsync.domain.models import is_valid_index_name
from searchsync.infrastructure.index_manager import IndexManager


logger = logging.getLogger(__name__)


# ── API Models ───────────────────────────────────────────────────────────────
class SearchResponse(BaseModel):
    hits: List[dict]
    query: str
    estimatedTotalHits: int
    processingTimeMs: int
    facetDistribution: dict = {}
    facetStats: dict = {}


class IndexStatus(BaseModel):
    uid: str
    primaryKey: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class StatusResponse(BaseModel):
    indexes: List[IndexStatus]


def search_params(
    filter: Optional[List[str]] = Query(None, description="Filter expression(s) in Meilisearch syntax"),
    facets: Optional[List[str]] = Query(None, description="Attributes to get facet distribution for"),
    sort: Optional[List[str]] = Query(None, description="attribute:direction"),
    limit: Optional[int] = Query(None, ge=0),
    offset: Optional[int] = Query(None, ge=0),
    attributes_to_retrieve: Optional[List[str]] = Query(None, alias="attributesToRetrieve"),
    attributes_to_highlight: Optional[List[str]] = Query(None, alias="attributesToHighlight"),
) -> dict[str, Any]:
    """Only parameters present in the request end up in the engine call."""
    candidates = {
        "filter": filter,
        "facets": _split_commas(facets),
        "sort": _split_commas(sort),
        "limit": limit,
        "offset": offset,
        "attributesToRetrieve": _split_commas(attributes_to_retrieve),
        "attributesToHighlight": _split_commas(attributes_to_highlight),
    }
    return {key: value for key, value in candidates.items() if value is not None}


def _split_commas(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def validate_index(index: str, allowed: Sequence[str], allow_missing: bool) -> None:
    """
    400 for a missing (query form) or malformed name; 404 for a name outside
    the allowlist, so disallowed indexes look exactly like absent ones.
    """
    if not index:
        if allow_missing:
            raise HTTPException(status_code=400, detail="Missing index")
        raise HTTPException(status_code=404, detail="Index not found")

    if not is_valid_index_name(index):
        raise HTTPException(status_code=400, detail="Invalid index")

    if allowed and index not in allowed:
        raise HTTPException(status_code=404, detail="Index not found")


def build_router(container: Container, admin_dependencies: Sequence[Any] = ()) -> APIRouter:
    """
    Search routes. Authentication is the host's middleware; admin-only routes
    additionally carry ``admin_dependencies`` (e.g. ``[Depends(require_admin)]``).
    """
    router = APIRouter(prefix="/api/search", tags=["Search"])
    settings = container.settings

    def manager() -> IndexManager:
        if container.index_manager is None:
            raise HTTPException(status_code=503, detail="Search is disabled")
        return container.index_manager

    def perform_search(index: str, q: str, params: dict[str, Any]) -> dict[str, Any]:
        params.setdefault("limit", settings.search_limit)
        try:
            return manager().search_index(index, q, params, create_missing=False)
        except IndexNotFoundError:
            raise HTTPException(status_code=404, detail="Index not found")
        except EngineError as error:
            # Engine text stays in the log; callers get a generic message.
            logger.error("Search on '%s' failed: %s", index, error)
            raise HTTPException(status_code=503, detail="Search service unavailable")

    @router.get("", response_model=SearchResponse)
    def search(
        index: str = Query("", description="Index name to search (without prefix)"),
        q: str = Query("", description="Search query; empty returns all documents"),
        params: dict = Depends(search_params),
    ):
        validate_index(index, settings.allowed_index_names, allow_missing=True)
        return perform_search(index, q, params)

    @router.get("/admin/status", response_model=StatusResponse, dependencies=list(admin_dependencies))
    def status():
        """Every index with its primary key and timestamps."""
        try:
            indexes = manager().get_all_indexes()
        except EngineError as error:
            logger.error("Listing indexes failed: %s", error)
            raise HTTPException(status_code=503, detail="Search service unavailable")
        return {"indexes": [info.to_dict() for info in indexes]}

    @router.get("/{index}", response_model=SearchResponse)
    def search_index(
        index: str,
        q: str = Query(""),
        params: dict = Depends(search_params),
    ):
        validate_index(index, settings.allowed_index_names, allow_missing=False)
        return perform_search(index, q, params)

    return router


def create_app(container: Container, admin_dependencies: Sequence[Any] = ()) -> FastAPI:
    app = FastAPI(
        title="searchsync API",
        description="Full-text search over Meilisearch indexes kept in sync with the primary store.",
        version="1.0.0",
    )
    app.include_router(build_router(container, admin_dependencies))
    return app
