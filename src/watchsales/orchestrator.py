import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Protocol, Union

from .cache import ResultCache
from .client import ShopifyClient
from .currency import symbol_for
from .dates import compute_range
from .errors import MissingConfiguration, SalesError
from .messaging import parse_request
from .models import (
    Credentials,
    MoneyTotal,
    Period,
    SalesFailure,
    SalesResult,
    SendResult,
)
from .orders import sum_order_totals
from .settings import SettingsStore

logger = logging.getLogger(__name__)

Outcome = Union[SalesResult, SalesFailure]

STUB_BASE_TOTAL = Decimal("123.45")
STUB_MULTIPLIERS = {Period.DAILY: 1, Period.WEEKLY: 5, Period.MONTHLY: 20}


class MessageSender(Protocol):
    def send(self, message: dict) -> SendResult:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_total(amount: Decimal) -> str:
    """Fixed-point rendering with two fractional digits."""
    return str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def stub_total(period: Period) -> MoneyTotal:
    """Deterministic placeholder total, different for each period."""
    amount = STUB_BASE_TOTAL * STUB_MULTIPLIERS.get(period, 1)
    return MoneyTotal(amount=format_total(amount), currency="USD")


def fetch_sales(
    client: ShopifyClient, period: Period, now: datetime, offset: Optional[str]
) -> MoneyTotal:
    """Fetch and normalize the sales total for one period.

    Raises:
        SalesError: any remote failure
    """
    date_range = compute_range(period, now, offset)
    logger.debug(
        "Range for %s: %s .. %s", period.label, date_range.start, date_range.end
    )

    shop_currency = client.get_shop_currency()
    total = sum_order_totals(client, date_range.start, date_range.end)
    return MoneyTotal(amount=format_total(total), currency=symbol_for(shop_currency))


class SalesOrchestrator:
    """Turns one inbound period request into exactly one outbound message."""

    def __init__(
        self,
        settings: SettingsStore,
        cache: ResultCache,
        client_factory: Callable[[Credentials], ShopifyClient],
        sender: MessageSender,
        clock: Callable[[], datetime] = _utc_now,
        use_stub_when_unconfigured: bool = False,
    ):
        self.settings = settings
        self.cache = cache
        self.client_factory = client_factory
        self.sender = sender
        self.clock = clock
        self.use_stub_when_unconfigured = use_stub_when_unconfigured

    def handle(self, payload: Optional[dict], use_cache: bool = True) -> Outcome:
        """Process a request payload and send the outcome to the watch."""
        period = parse_request(payload)
        logger.info("Request received for period=%d (%s)", period, period.label)

        outcome = self.resolve(period, use_cache=use_cache)
        self._send(outcome)
        return outcome

    def resolve(self, period: Period, use_cache: bool = True) -> Outcome:
        """Compute the outcome for a period without sending it."""
        credentials = self.settings.load()

        if not credentials.is_configured:
            error = MissingConfiguration()
            logger.info("%s", error)
            if self.use_stub_when_unconfigured:
                stub = stub_total(period)
                return SalesResult(
                    period=period, total=stub.amount, currency=stub.currency
                )
            return SalesFailure(period=period, error=str(error))

        if use_cache:
            cached = self.cache.get(period, credentials)
            if cached:
                logger.info("Serving from cache")
                return SalesResult(
                    period=period, total=cached.total, currency=cached.currency
                )

        try:
            client = self.client_factory(credentials)
            money = fetch_sales(client, period, self.clock(), credentials.timezone)
        except SalesError as e:
            logger.warning("Fetch failed for period=%d: %s", period, e)
            return SalesFailure(period=period, error=str(e))

        self.cache.put(period, credentials, money.amount, money.currency)
        return SalesResult(period=period, total=money.amount, currency=money.currency)

    def _send(self, outcome: Outcome) -> None:
        result = self.sender.send(outcome.to_message())
        if result.ok:
            logger.debug("Sent %s to watch", outcome.to_message()["status"])
        else:
            logger.warning("Failed sending message to watch: %s", result.error)
