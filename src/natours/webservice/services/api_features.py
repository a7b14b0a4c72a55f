"""Query builder turning request parameters into a tours fetch."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from natours.commons.daos.tour_dao import DEFAULT_PROJECTION, TourQuery
from natours.configs import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from natours.webservice.services.query_params import parse_positive_int

RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields"})
COMPARISON_OPERATORS = {"gte": "$gte", "gt": "$gt", "lte": "$lte", "lt": "$lt"}
DEFAULT_SORT = (("createdAt", -1), ("_id", -1))


def _split_csv(raw: Any) -> List[str]:
    if not isinstance(raw, str):
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def build_filter(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop reserved keys and rewrite ``gte/gt/lte/lt`` to Mongo operators."""
    query_filter: Dict[str, Any] = {}
    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue
        if isinstance(value, Mapping):
            value = {COMPARISON_OPERATORS.get(op, op): operand for op, operand in value.items()}
        query_filter[key] = value
    return query_filter


def build_sort(raw: Any) -> Tuple[Tuple[str, int], ...]:
    """Translate ``-ratingsAverage,price`` into ordered ``(field, direction)`` pairs."""
    keys = []
    for item in _split_csv(raw):
        if item.startswith("-"):
            name, direction = item[1:], -1
        else:
            name, direction = item, 1
        if name:
            keys.append((name, direction))
    return tuple(keys) or DEFAULT_SORT


def build_projection(raw: Any) -> Dict[str, int]:
    """Translate ``name,price`` into an inclusion projection (``-field`` excludes)."""
    projection = {}
    for item in _split_csv(raw):
        if item.startswith("-"):
            if item[1:]:
                projection[item[1:]] = 0
        else:
            projection[item] = 1
    return projection or dict(DEFAULT_PROJECTION)


def page_window(params: Mapping[str, Any]) -> Tuple[int, int]:
    """Return ``(skip, limit)`` for the ``page`` and ``limit`` parameters."""
    page = parse_positive_int(params.get("page"), 1)
    limit = parse_positive_int(params.get("limit"), DEFAULT_PAGE_LIMIT)
    if MAX_PAGE_LIMIT is not None:
        limit = min(limit, MAX_PAGE_LIMIT)
    return (page - 1) * limit, limit


class APIFeatures:
    """Staged builder: filter -> sort -> limit_fields -> paginate.

    Every step returns a new ``APIFeatures``; neither the parameter map nor the
    wrapped handle is modified. The resulting ``query`` is not executed here.
    """

    def __init__(self, query: TourQuery, query_params: Mapping[str, Any]):
        self._query = query
        self._params = query_params

    @property
    def query(self) -> TourQuery:
        """Refined, still unexecuted handle."""
        return self._query

    def _with(self, query: TourQuery) -> "APIFeatures":
        return APIFeatures(query, self._params)

    def filter(self) -> "APIFeatures":
        query_filter = build_filter(self._params)
        if not query_filter:
            return self
        return self._with(self._query.where(query_filter))

    def sort(self) -> "APIFeatures":
        return self._with(self._query.order_by(build_sort(self._params.get("sort"))))

    def limit_fields(self) -> "APIFeatures":
        return self._with(self._query.select(build_projection(self._params.get("fields"))))

    def paginate(self) -> "APIFeatures":
        skip, limit = page_window(self._params)
        return self._with(self._query.window(skip, limit))

    def build(self) -> TourQuery:
        """Apply all four steps in order and return the handle."""
        return self.filter().sort().limit_fields().paginate().query
