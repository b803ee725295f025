from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from watchsales.errors import RateLimited
from watchsales.orchestrator import format_total
from watchsales.orders import (
    PAGE_LIMIT,
    PAGE_SIZE,
    build_search_query,
    sum_order_totals,
)

START = "2024-07-15T00:00:00.000+02:00"
END = "2024-07-21T23:59:59.999+02:00"


def _page(amounts, has_next, cursor_prefix="c"):
    return {
        "orders": {
            "pageInfo": {"hasNextPage": has_next},
            "edges": [
                {
                    "cursor": f"{cursor_prefix}{i}",
                    "node": {
                        "totalPriceSet": {
                            "shopMoney": {"amount": amount, "currencyCode": "USD"}
                        }
                    },
                }
                for i, amount in enumerate(amounts)
            ],
        }
    }


@pytest.fixture
def mock_client():
    return MagicMock()


def test_build_search_query():
    assert build_search_query(START, END) == (
        f"created_at:>={START} created_at:<={END} status:any"
    )


def test_sum_single_page(mock_client):
    mock_client.query.return_value = _page(["10.00", "20.50"], has_next=False)
    assert sum_order_totals(mock_client, START, END) == Decimal("30.50")
    mock_client.query.assert_called_once()


def test_sum_two_pages(mock_client):
    """100 orders summing to 1500.00 then 37 summing to 42.50."""
    first = ["15.00"] * 100
    second = ["1.00"] * 36 + ["6.50"]
    mock_client.query.side_effect = [
        _page(first, has_next=True, cursor_prefix="a"),
        _page(second, has_next=False, cursor_prefix="b"),
    ]

    total = sum_order_totals(mock_client, START, END)

    assert total == Decimal("1542.50")
    assert format_total(total) == "1542.50"
    assert mock_client.query.call_count == 2


def test_pagination_variables(mock_client):
    mock_client.query.side_effect = [
        _page(["1.00", "2.00"], has_next=True, cursor_prefix="a"),
        _page(["3.00"], has_next=False, cursor_prefix="b"),
    ]

    sum_order_totals(mock_client, START, END)

    first_vars = mock_client.query.call_args_list[0].args[1]
    second_vars = mock_client.query.call_args_list[1].args[1]
    assert first_vars == {
        "first": PAGE_SIZE,
        "after": None,
        "query": build_search_query(START, END),
    }
    assert second_vars["after"] == "a1"
    assert PAGE_SIZE == 100


def test_page_cap_enforced(mock_client):
    mock_client.query.return_value = _page(["1.00"], has_next=True)

    total = sum_order_totals(mock_client, START, END)

    assert mock_client.query.call_count == PAGE_LIMIT == 10
    assert total == Decimal("10.00")


def test_empty_page_stops_even_if_next_reported(mock_client):
    mock_client.query.return_value = _page([], has_next=True)
    assert sum_order_totals(mock_client, START, END) == Decimal("0")
    mock_client.query.assert_called_once()


def test_no_orders_field(mock_client):
    mock_client.query.return_value = {}
    assert sum_order_totals(mock_client, START, END) == Decimal("0")


def test_missing_and_bad_amounts_are_skipped(mock_client):
    page = _page(["5.25", None, "oops"], has_next=False)
    page["orders"]["edges"].append({"cursor": "x", "node": None})
    mock_client.query.return_value = page
    assert sum_order_totals(mock_client, START, END) == Decimal("5.25")


def test_decimal_sum_has_no_float_drift(mock_client):
    mock_client.query.return_value = _page(["0.10"] * 3, has_next=False)
    assert sum_order_totals(mock_client, START, END) == Decimal("0.30")


def test_failure_propagates(mock_client):
    mock_client.query.side_effect = [_page(["1.00"], has_next=True), RateLimited()]
    with pytest.raises(RateLimited):
        sum_order_totals(mock_client, START, END)


@pytest.mark.parametrize(
    "data",
    [
        {"orders": []},
        {"orders": "unavailable"},
        {"orders": {"edges": "none", "pageInfo": {"hasNextPage": True}}},
        [],
    ],
)
def test_malformed_orders_payload_sums_to_zero(mock_client, data):
    mock_client.query.return_value = data
    assert sum_order_totals(mock_client, START, END) == Decimal("0")
    assert mock_client.query.call_count == 1


def test_malformed_edges_are_skipped(mock_client):
    page = _page(["10.00"], has_next=False)
    page["orders"]["edges"] += [
        "not-an-edge",
        None,
        {"node": []},
        {"node": {"totalPriceSet": "5.00"}},
    ]
    mock_client.query.return_value = page
    assert sum_order_totals(mock_client, START, END) == Decimal("10.00")
