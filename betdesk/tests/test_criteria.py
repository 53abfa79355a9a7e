from __future__ import annotations

from datetime import date, datetime
from urllib.parse import parse_qsl

import pytest

from betdesk.app import models, settings
from betdesk.app.services.criteria import ListingCriteria, SortDirection, SortOrder


@pytest.mark.parametrize(
    ("token", "column", "direction"),
    [
        ("created_at", "created_at", SortDirection.ASC),
        ("+created_at", "created_at", SortDirection.ASC),
        ("-closest_match_date", "closest_match_date", SortDirection.DESC),
    ],
)
def test_sort_order_parse(token, column, direction) -> None:
    order = SortOrder.parse(token)

    assert order == SortOrder(column=column, direction=direction)


@pytest.mark.parametrize("token", [None, "", "-", "name; DROP TABLE", "1abc", 5])
def test_sort_order_parse_rejects_malformed_tokens(token) -> None:
    assert SortOrder.parse(token) is None


def test_sort_order_token_round_trips_direction() -> None:
    assert SortOrder("final_course", SortDirection.DESC).token == "-final_course"
    assert SortOrder("final_course").token == "final_course"


@pytest.mark.parametrize(
    ("page", "limit", "expected_offset"),
    [(1, 10, 0), (2, 10, 10), (3, 25, 50), ("4", "5", 15)],
)
def test_offset_follows_page_and_limit(page, limit, expected_offset) -> None:
    criteria = ListingCriteria(page=page, limit=limit)

    assert criteria.offset == expected_offset


@pytest.mark.parametrize("page", [0, -3, "abc", None, True])
def test_invalid_page_falls_back_to_first(page) -> None:
    assert ListingCriteria(page=page).page == 1


def test_limit_uses_configured_default(monkeypatch) -> None:
    monkeypatch.setenv(settings.PAGE_SIZE_ENV, "25")

    criteria = ListingCriteria()

    assert criteria.limit == 25


def test_limit_is_capped(monkeypatch) -> None:
    monkeypatch.setenv(settings.MAX_PAGE_SIZE_ENV, "50")

    assert ListingCriteria(limit=1000).limit == 50


def test_apply_defaults_keeps_requested_values() -> None:
    criteria = ListingCriteria(limit=5, sort="final_course")

    criteria.apply_defaults("-created_at", 20)

    assert criteria.limit == 5
    assert criteria.sort == SortOrder("final_course")
    assert criteria.default_sort == SortOrder("created_at", SortDirection.DESC)


def test_apply_defaults_fills_missing_values() -> None:
    criteria = ListingCriteria()

    criteria.apply_defaults("-created_at", 20)

    assert criteria.limit == 20
    assert criteria.sort_column == "created_at"
    assert criteria.sort_direction is SortDirection.DESC


def test_total_is_unknown_until_recorded() -> None:
    criteria = ListingCriteria()
    assert criteria.total is None

    criteria.set_total(42)

    assert criteria.total == 42


def test_from_params_separates_reserved_keys() -> None:
    criteria = ListingCriteria.from_params(
        {"page": "2", "limit": "10", "sort": "-created_at", "package_id": "5"}
    )

    assert criteria.page == 2
    assert criteria.limit == 10
    assert criteria.requested_sort == SortOrder("created_at", SortDirection.DESC)
    assert criteria.criteria == {"package_id": "5"}


def test_from_query_collects_repeated_keys() -> None:
    criteria = ListingCriteria.from_query(
        [("states", "1"), ("states", "2"), ("flags[]", "a"), ("query", "john")]
    )

    assert criteria.get_int_list("states") == [1, 2]
    assert criteria.get_list("flags") == ["a"]
    assert criteria.fulltext == "john"


def test_criteria_property_returns_a_copy() -> None:
    criteria = ListingCriteria(criteria={"package_id": 5})

    criteria.criteria["package_id"] = 6

    assert criteria.get_int("package_id") == 5


def test_typed_accessors() -> None:
    criteria = ListingCriteria(
        criteria={
            "package_id": " 7 ",
            "state": 0,
            "broken": "seven",
            "checked": "yes",
            "archived": "0",
            "odd": "maybe",
            "from": "2024-05-01",
            "to": "2024-05-01T08:15:00",
            "bad_date": "05/01/2024",
            "states": ["1", "", "x", 2],
            "blank": "   ",
        }
    )

    assert criteria.get_int("package_id") == 7
    assert criteria.get_int("state") == 0
    assert criteria.get_int("broken") is None
    assert criteria.get_int("missing") is None
    assert criteria.get_bool("checked") is True
    assert criteria.get_bool("archived") is False
    assert criteria.get_bool("odd") is None
    assert criteria.get_date("from") == date(2024, 5, 1)
    assert criteria.get_date("to") == datetime(2024, 5, 1, 8, 15)
    assert criteria.get_date("bad_date") is None
    assert criteria.get_int_list("states") == [1, 2]
    assert criteria.get_str("blank") is None
    assert criteria.get("missing", "fallback") == "fallback"


def test_unlimited_flag() -> None:
    assert ListingCriteria(criteria={"unlimited": "1"}).unlimited is True
    assert ListingCriteria().unlimited is False


def test_build_url_query_is_canonical() -> None:
    criteria = ListingCriteria(
        page=3,
        limit=20,
        sort="-final_course",
        criteria={
            "states": [models.TicketState.SUCCESS, models.TicketState.FAIL],
            "package_id": 5,
            "checked": True,
            "created_at_from": date(2024, 5, 1),
            "query": "",
        },
    )

    assert parse_qsl(criteria.build_url_query()) == [
        ("sort", "-final_course"),
        ("limit", "20"),
        ("checked", "1"),
        ("created_at_from", "2024-05-01"),
        ("package_id", "5"),
        ("states", "1"),
        ("states", "2"),
        ("page", "3"),
    ]


def test_build_url_query_page_override_and_omission() -> None:
    criteria = ListingCriteria(page=2, criteria={"package_id": "5"})

    assert criteria.build_url_query(7) == "package_id=5&page=7"
    assert criteria.build_url_query(include_page=False) == "package_id=5"


def test_build_url_query_leaves_out_defaults() -> None:
    criteria = ListingCriteria()
    criteria.apply_defaults("-created_at", 10)

    assert criteria.build_url_query() == "page=1"


def test_build_url_query_round_trips_through_from_query() -> None:
    original = ListingCriteria(
        page=2, limit=15, sort="closest_match_date", criteria={"states": ["1", "3"], "query": "jane doe"}
    )

    restored = ListingCriteria.from_query(parse_qsl(original.build_url_query()))

    assert restored.page == 2
    assert restored.limit == 15
    assert restored.requested_sort == SortOrder("closest_match_date")
    assert restored.get_int_list("states") == [1, 3]
    assert restored.fulltext == "jane doe"
