"""Translate an EmployeeQuery into a MongoDB filter, sort and skip/limit window.

Every filter produced here carries ``isDeleted: False``. Callers have no way
to remove it: forced conditions and request fields are applied before it.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from pymongo import ASCENDING, DESCENDING

from .exceptions import InvalidArgumentError
from .models import EmployeeQuery

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# Largest integer BSON can encode (int64)
MAX_BSON_INT = 2**63 - 1

SORT_DIRECTIONS = {"asc": ASCENDING, "desc": DESCENDING}
SORTABLE_FIELDS = frozenset(
    {
        "name",
        "surnames",
        "age",
        "city",
        "email",
        "position",
        "department",
        "createdAt",
        "updatedAt",
    }
)


def partial_match(value: str) -> dict[str, Any]:
    """Case-insensitive, unanchored substring match on the literal value."""
    return {"$regex": re.escape(value), "$options": "i"}


# Request attribute -> (stored field, fragment constructor)
TEXT_FILTERS: dict[str, tuple[str, Callable[[str], dict[str, Any]]]] = {
    "name": ("name", partial_match),
    "surnames": ("surnames", partial_match),
    "city": ("city", partial_match),
    "position": ("position", partial_match),
    "department": ("department", partial_match),
}


@dataclass(frozen=True)
class QuerySpec:
    filter: dict[str, Any]
    sort: list[tuple[str, int]]
    skip: int
    limit: int
    page: int


def build_filter(
    query: EmployeeQuery, forced: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    conditions: dict[str, Any] = {}

    for attribute, (field, fragment) in TEXT_FILTERS.items():
        value = getattr(query, attribute)
        if value:
            conditions[field] = fragment(value)

    for name, bound in (("minAge", query.min_age), ("maxAge", query.max_age)):
        if bound is not None and abs(bound) > MAX_BSON_INT:
            raise InvalidArgumentError(f"Invalid {name} {bound}: out of range")

    age_range: dict[str, int] = {}
    if query.min_age is not None:
        age_range["$gte"] = query.min_age
    if query.max_age is not None:
        age_range["$lte"] = query.max_age
    if age_range:
        conditions["age"] = age_range

    # Exact matches replace partial ones on the same field
    if forced:
        conditions.update(forced)

    conditions["isDeleted"] = False
    return conditions


def build_sort(sort_by: str | None, sort_order: str | None) -> list[tuple[str, int]]:
    order = sort_order or "asc"
    if order not in SORT_DIRECTIONS:
        raise InvalidArgumentError(
            f"Invalid sortOrder '{sort_order}': expected 'asc' or 'desc'"
        )

    if not sort_by:
        return [("_id", ASCENDING)]

    if sort_by not in SORTABLE_FIELDS:
        raise InvalidArgumentError(
            f"Invalid sortBy '{sort_by}': expected one of {', '.join(sorted(SORTABLE_FIELDS))}"
        )
    # _id breaks ties so identical requests page identically
    return [(sort_by, SORT_DIRECTIONS[order]), ("_id", ASCENDING)]


def build_window(page: int | None, limit: int | None) -> tuple[int, int, int]:
    """Return (page, skip, limit) after range checks."""
    page = DEFAULT_PAGE if page is None else page
    limit = DEFAULT_LIMIT if limit is None else limit

    if page < 1:
        raise InvalidArgumentError(f"Invalid page {page}: must be >= 1")
    if not 1 <= limit <= MAX_LIMIT:
        raise InvalidArgumentError(
            f"Invalid limit {limit}: must be between 1 and {MAX_LIMIT}"
        )
    return page, (page - 1) * limit, limit


def build_query(
    query: EmployeeQuery, forced: Mapping[str, Any] | None = None
) -> QuerySpec:
    """
    Build the filter, sort and window for a listing request.

    Args:
        query: Filter, sort and pagination request
        forced: Exact-equality conditions layered over the request filters

    Raises:
        InvalidArgumentError: bad sort field/direction, out-of-range age bound
            or out-of-range window
    """
    try:
        conditions = build_filter(query, forced)
        sort = build_sort(query.sort_by, query.sort_order)
        page, skip, limit = build_window(query.page, query.limit)
    except InvalidArgumentError as e:
        logger.warning(f"Rejected employee query: {e}")
        raise

    return QuerySpec(
        filter=conditions,
        sort=sort,
        skip=skip,
        limit=limit,
        page=page,
    )


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)
