import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from .client import ShopifyClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
PAGE_LIMIT = 10

ORDERS_TOTAL_QUERY = """query OrdersTotal($first: Int!, $after: String, $query: String!) {
  orders(first: $first, after: $after, query: $query) {
    pageInfo { hasNextPage }
    edges {
      cursor
      node {
        totalPriceSet { shopMoney { amount currencyCode } }
      }
    }
  }
}"""


def build_search_query(start: str, end: str) -> str:
    """Build the orders search filter for an inclusive created_at range."""
    return f"created_at:>={start} created_at:<={end} status:any"


def _field(value, key: str):
    return value.get(key) if isinstance(value, dict) else None


def _edge_amount(edge: dict) -> Optional[Decimal]:
    """Extract the shop-currency amount from an order edge."""
    money = _field(_field(_field(edge, "node"), "totalPriceSet"), "shopMoney")
    amount = _field(money, "amount")
    if amount is None:
        return None
    try:
        return Decimal(str(amount))
    except InvalidOperation:
        logger.warning("Skipping order with unparseable amount %r", amount)
        return None


def sum_order_totals(client: ShopifyClient, start: str, end: str) -> Decimal:
    """Sum order totals created within a date range.

    Follows the ``after`` cursor forward page by page. Stops when the server
    reports no next page, a page comes back empty, or PAGE_LIMIT pages have
    been read; orders beyond the cap are not counted.

    Args:
        client: Client for the store
        start: Inclusive range start (ISO-8601)
        end: Inclusive range end (ISO-8601)

    Returns:
        Sum of the orders' shop-money amounts
    """
    search = build_search_query(start, end)
    total = Decimal("0")
    after = None

    for page in range(PAGE_LIMIT):
        data = client.query(
            ORDERS_TOTAL_QUERY, {"first": PAGE_SIZE, "after": after, "query": search}
        )
        orders = _field(data, "orders")
        edges = _field(orders, "edges")
        if not isinstance(edges, list):
            edges = []

        for edge in edges:
            amount = _edge_amount(edge)
            if amount is not None:
                total += amount

        has_next = _field(_field(orders, "pageInfo"), "hasNextPage")
        if not has_next or not edges:
            break
        after = _field(edges[-1], "cursor")
    else:
        logger.info("Stopped after %d pages; later orders are not counted", PAGE_LIMIT)

    logger.debug("Summed %s over %d page(s)", total, page + 1)
    return total
