"""
backend/test_listing_query.py

Unit tests for search parameter -> query translation (no database).

Run:
    pytest backend/test_listing_query.py -v
"""

import pytest

from backend.listing_query import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    Condition,
    ListingSearchParams,
    build_search_query,
    clamp_limit,
    clamp_skip,
    parse_sort,
)


def test_base_predicate_is_active_only():
    query = build_search_query(ListingSearchParams())
    assert query.conditions == [Condition("status", "eq", "Active")]
    assert query.keyword is None
    assert (query.limit, query.skip) == (DEFAULT_LIMIT, 0)
    assert (query.sort_column, query.sort_descending) == ("created_at", True)


def test_all_filters_are_independent_and_inclusive():
    query = build_search_query(ListingSearchParams(
        price_min=100000,
        price_max=500000,
        beds=3,
        baths=2,
        property_type="Condo",
        keyword="  lake  ",
    ))
    assert Condition("price", "gte", 100000) in query.conditions
    assert Condition("price", "lte", 500000) in query.conditions
    assert Condition("bedrooms", "gte", 3) in query.conditions
    assert Condition("bathrooms", "gte", 2) in query.conditions
    assert Condition("property_type", "eq", "Condo") in query.conditions
    assert query.keyword == "lake"
    assert query.keyword_columns == ("title", "description", "city")


def test_zero_price_bound_is_still_a_filter():
    query = build_search_query(ListingSearchParams(price_min=0))
    assert Condition("price", "gte", 0) in query.conditions


def test_blank_keyword_is_ignored():
    assert build_search_query(ListingSearchParams(keyword="   ")).keyword is None


@pytest.mark.parametrize(
    "limit, expected",
    [(None, DEFAULT_LIMIT), (0, DEFAULT_LIMIT), (5, 5), (100, 100), (1000, MAX_LIMIT), (-3, 0)],
)
def test_limit_is_clamped(limit, expected):
    assert clamp_limit(limit) == expected


@pytest.mark.parametrize("skip, expected", [(None, 0), (0, 0), (20, 20), (-1, 0)])
def test_skip_is_never_negative(skip, expected):
    assert clamp_skip(skip) == expected


@pytest.mark.parametrize(
    "sort, expected",
    [
        ("price", ("price", False)),
        ("-price", ("price", True)),
        ("viewsCount", ("views_count", False)),
        ("-createdAt", ("created_at", True)),
        ("bathrooms", ("bathrooms", False)),
    ],
)
def test_allowed_sort_keys(sort, expected):
    assert parse_sort(sort) == expected


@pytest.mark.parametrize("sort", [None, "", "-", "agent", "password", "-title", "price;drop"])
def test_unknown_sort_falls_back_to_newest_first(sort):
    assert parse_sort(sort) == ("created_at", True)
