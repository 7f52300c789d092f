"""
backend/listing_query.py

Translates public search parameters into a store-agnostic ListingQuery.

Rules:
- Base predicate is always status = Active
- Price bounds, bed/bath minimums and property type are independent, optional filters
- keyword is a case-insensitive substring match on title OR description OR city
- limit is clamped to [0, MAX_LIMIT]; missing or 0 means DEFAULT_LIMIT; skip to >= 0 (default 0)
- sort accepts only SORTABLE_FIELDS; a leading "-" means descending;
  anything else falls back to newest first

Pure Python logic - no FastAPI imports, no database access.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from backend.models import ListingStatus

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# Public sort key -> listings column
SORTABLE_FIELDS = {
    "price": "price",
    "createdAt": "created_at",
    "viewsCount": "views_count",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
}

DEFAULT_SORT: Tuple[str, bool] = ("created_at", True)


@dataclass
class ListingSearchParams:
    """Raw search parameters as accepted by GET /listings."""
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    beds: Optional[int] = None
    baths: Optional[float] = None
    property_type: Optional[str] = None
    keyword: Optional[str] = None
    limit: Optional[int] = None
    skip: Optional[int] = None
    sort: Optional[str] = None


@dataclass(frozen=True)
class Condition:
    """A single column predicate. op is one of: eq, gte, lte."""
    column: str
    op: str
    value: object


@dataclass
class ListingQuery:
    conditions: List[Condition] = field(default_factory=list)
    keyword: Optional[str] = None
    keyword_columns: Tuple[str, ...] = ("title", "description", "city")
    sort_column: str = DEFAULT_SORT[0]
    sort_descending: bool = DEFAULT_SORT[1]
    limit: int = DEFAULT_LIMIT
    skip: int = 0


def clamp_limit(limit: Optional[int]) -> int:
    """Missing or zero means DEFAULT_LIMIT; negatives clamp to 0."""
    if not limit:
        return DEFAULT_LIMIT
    return max(0, min(limit, MAX_LIMIT))


def clamp_skip(skip: Optional[int]) -> int:
    if skip is None:
        return 0
    return max(skip, 0)


def parse_sort(sort: Optional[str]) -> Tuple[str, bool]:
    """
    Resolve a public sort key to (column, descending).

    "-price" -> ("price", True), "bedrooms" -> ("bedrooms", False).
    Unknown or empty keys -> newest first.
    """
    if not sort:
        return DEFAULT_SORT

    descending = sort.startswith("-")
    key = sort[1:] if descending else sort
    column = SORTABLE_FIELDS.get(key)
    if column is None:
        return DEFAULT_SORT
    return column, descending


def build_search_query(params: ListingSearchParams) -> ListingQuery:
    conditions = [Condition("status", "eq", ListingStatus.active.value)]

    if params.price_min is not None:
        conditions.append(Condition("price", "gte", params.price_min))
    if params.price_max is not None:
        conditions.append(Condition("price", "lte", params.price_max))
    if params.beds is not None:
        conditions.append(Condition("bedrooms", "gte", params.beds))
    if params.baths is not None:
        conditions.append(Condition("bathrooms", "gte", params.baths))
    if params.property_type:
        conditions.append(Condition("property_type", "eq", params.property_type))

    keyword = params.keyword.strip() if params.keyword else None
    sort_column, sort_descending = parse_sort(params.sort)

    return ListingQuery(
        conditions=conditions,
        keyword=keyword or None,
        sort_column=sort_column,
        sort_descending=sort_descending,
        limit=clamp_limit(params.limit),
        skip=clamp_skip(params.skip),
    )
