# searchsync/application/query.py

from typing import Any, Optional, Sequence

from searchsync.application.result import SearchResult
from searchsync.domain.errors import UnsupportedOperatorError
from searchsync.domain.interfaces import RecordRepository, SearchEnginePort
from searchsync.domain.models import PRIMARY_KEY, SearchableRecord


_MISSING = object()

COMPARISON_OPERATORS = {"=", "!=", ">", ">=", "<", "<="}
LIST_OPERATORS = {"IN", "NOT IN"}
UNARY_OPERATORS = {
    "EXISTS",
    "NOT EXISTS",
    "IS NULL",
    "IS NOT NULL",
    "IS EMPTY",
    "IS NOT EMPTY",
}
SORT_DIRECTIONS = {"asc", "desc"}


class FilterBuilder:
    """Composes Meilisearch filter expressions. Inner expressions are not validated."""

    @staticmethod
    def and_(filters: Sequence[str]) -> str:
        return "(" + " AND ".join(filters) + ")"

    @staticmethod
    def or_(filters: Sequence[str]) -> str:
        return "(" + " OR ".join(filters) + ")"

    @staticmethod
    def not_(filter_expression: str) -> str:
        return "NOT (" + filter_expression + ")"


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return str(value)


def _reject_none(attribute: str, value: Any) -> None:
    if value is None:
        raise ValueError(
            f"Cannot compare {attribute!r} with None; use where_null or where_not_null"
        )


def compile_condition(attribute: str, operator: str, value: Any = None) -> str:
    """
    One ``where`` condition as a filter expression.
    Raises ``UnsupportedOperatorError`` for anything outside the supported set.
    A ``None`` operand raises ``ValueError``; use ``where_null`` instead.
    """
    op = operator.strip().upper()
    if op in COMPARISON_OPERATORS:
        _reject_none(attribute, value)
        return f"{attribute} {op} {format_value(value)}"
    if op in LIST_OPERATORS:
        values = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
        for item in values:
            _reject_none(attribute, item)
        return f"{attribute} {op} [" + ", ".join(format_value(v) for v in values) + "]"
    if op in UNARY_OPERATORS:
        return f"{attribute} {op}"
    raise UnsupportedOperatorError(operator)


class SearchQuery:
    """
    Fluent search query builder.

    Every builder method mutates and returns this instance. Nothing reaches
    the network until ``get()``, ``raw()``, ``first()`` or ``paginate()``.

        results = (
            SearchQuery(engine, Post(), "laravel", repository=posts)
            .where("status", "published")
            .order_by("published_at", "desc")
            .limit(10)
            .get()
        )
    """

    def __init__(
        self,
        engine: SearchEnginePort,
        model: SearchableRecord,
        query: str = "",
        repository: Optional[RecordRepository] = None,
    ):
        self._engine = engine
        self._model = model
        self._repository = repository
        self._query = query
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._filters: list[str] = []
        self._facets: list[str] = []
        self._sort: list[str] = []
        self._attributes_to_retrieve: list[str] = ["*"]
        self._attributes_to_highlight: list[str] = []
        self._highlight_pre_tag: Optional[str] = None
        self._highlight_post_tag: Optional[str] = None
        self._show_matches_position = False

    @property
    def model(self) -> SearchableRecord:
        return self._model

    @property
    def text(self) -> str:
        return self._query

    @property
    def filters(self) -> list[str]:
        return list(self._filters)

    # ── Query text and filters ───────────────────────────────────────────────

    def query(self, query: str) -> "SearchQuery":
        self._query = query
        return self

    def filter(self, expression: str | Sequence[str]) -> "SearchQuery":
        """Add raw filter expression(s) in Meilisearch syntax."""
        if isinstance(expression, str):
            self._filters.append(expression)
        else:
            self._filters.extend(expression)
        return self

    def where(self, attribute: str, operator: Any, value: Any = _MISSING) -> "SearchQuery":
        """
        Add a condition. With two arguments the operator is ``=``:
        ``where("status", "published")`` -> ``status = "published"``.
        """
        if value is _MISSING:
            operator, value = "=", operator
        if not isinstance(operator, str):
            raise UnsupportedOperatorError(repr(operator))

        self._filters.append(compile_condition(attribute, operator, value))
        return self

    def where_in(self, attribute: str, values: Sequence[Any]) -> "SearchQuery":
        return self.where(attribute, "IN", values)

    def where_not_in(self, attribute: str, values: Sequence[Any]) -> "SearchQuery":
        return self.where(attribute, "NOT IN", values)

    def where_null(self, attribute: str) -> "SearchQuery":
        return self.where(attribute, "IS NULL", None)

    def where_not_null(self, attribute: str) -> "SearchQuery":
        return self.where(attribute, "IS NOT NULL", None)

    def where_exists(self, attribute: str) -> "SearchQuery":
        return self.where(attribute, "EXISTS", None)

    # ── Geo ──────────────────────────────────────────────────────────────────
    # Documents need a `_geo: {lat, lng}` field, declared filterable/sortable.

    def where_geo_radius(self, lat: float, lng: float, radius_meters: int) -> "SearchQuery":
        self._filters.append(f"_geoRadius({lat}, {lng}, {radius_meters})")
        return self

    def where_geo_bounding_box(
        self,
        top_left: Sequence[float],
        bottom_right: Sequence[float],
    ) -> "SearchQuery":
        """Corners as ``(lat, lng)`` pairs."""
        self._filters.append(
            f"_geoBoundingBox([{top_left[0]}, {top_left[1]}], "
            f"[{bottom_right[0]}, {bottom_right[1]}])"
        )
        return self

    def order_by_geo(self, lat: float, lng: float, direction: str = "asc") -> "SearchQuery":
        self._sort.append(f"_geoPoint({lat}, {lng}):{_direction(direction)}")
        return self

    # ── Facets, sort, paging, attributes ─────────────────────────────────────

    def facets(self, attributes: Sequence[str]) -> "SearchQuery":
        self._facets = list(attributes)
        return self

    def order_by(self, attribute: str, direction: str = "asc") -> "SearchQuery":
        self._sort.append(f"{attribute}:{_direction(direction)}")
        return self

    def limit(self, limit: int) -> "SearchQuery":
        self._limit = limit
        return self

    def take(self, limit: int) -> "SearchQuery":
        return self.limit(limit)

    def offset(self, offset: int) -> "SearchQuery":
        self._offset = offset
        return self

    def skip(self, offset: int) -> "SearchQuery":
        return self.offset(offset)

    def select(self, attributes: Sequence[str]) -> "SearchQuery":
        self._attributes_to_retrieve = list(attributes)
        return self

    def highlight(
        self,
        attributes: Sequence[str] = ("*",),
        pre_tag: Optional[str] = None,
        post_tag: Optional[str] = None,
    ) -> "SearchQuery":
        self._attributes_to_highlight = list(attributes)
        self._highlight_pre_tag = pre_tag
        self._highlight_post_tag = post_tag
        return self

    def with_matches_position(self) -> "SearchQuery":
        self._show_matches_position = True
        return self

    # ── Execution ────────────────────────────────────────────────────────────

    def get(self) -> SearchResult:
        return SearchResult(self._engine.search(self), self._model, self._repository)

    def raw(self) -> dict[str, Any]:
        """Engine response without hydration."""
        return self._engine.search(self)

    def first(self) -> Optional[SearchableRecord]:
        return self.limit(1).get().first()

    def paginate(self, page: int = 1, per_page: int = 20) -> SearchResult:
        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be positive.")

        self._limit = per_page
        self._offset = (page - 1) * per_page
        return self.get().with_pagination(page, per_page)

    def to_search_params(self) -> dict[str, Any]:
        """Compiled parameters. Only explicitly set parameters are present."""
        params: dict[str, Any] = {}

        if self._query:
            params["q"] = self._query
        if self._limit is not None:
            params["limit"] = self._limit
        if self._offset is not None:
            params["offset"] = self._offset
        if self._filters:
            params["filter"] = list(self._filters)
        if self._facets:
            params["facets"] = list(self._facets)
        if self._sort:
            params["sort"] = list(self._sort)
        if self._attributes_to_retrieve != ["*"]:
            attributes = list(self._attributes_to_retrieve)
            # Hydration looks hits up by their primary key.
            if "*" not in attributes and PRIMARY_KEY not in attributes:
                attributes.append(PRIMARY_KEY)
            params["attributesToRetrieve"] = attributes
        if self._attributes_to_highlight:
            params["attributesToHighlight"] = list(self._attributes_to_highlight)
            if self._highlight_pre_tag is not None:
                params["highlightPreTag"] = self._highlight_pre_tag
            if self._highlight_post_tag is not None:
                params["highlightPostTag"] = self._highlight_post_tag
        if self._show_matches_position:
            params["showMatchesPosition"] = True

        return params


def _direction(direction: str) -> str:
    normalized = direction.strip().lower()
    if normalized not in SORT_DIRECTIONS:
        raise ValueError(f"Sort direction must be 'asc' or 'desc', got '{direction}'.")
    return normalized
