"""Data models for watchsales requests, results and cache entries."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class Period(IntEnum):
    """Aggregation window requested by the watch."""

    DAILY = 0
    WEEKLY = 1
    MONTHLY = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value) -> "Period":
        """Coerce a raw period value, falling back to DAILY.

        Accepts ints, numeric strings and names ("weekly", "MONTHLY").
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.upper() in cls.__members__:
                return cls[text.upper()]
            value = text
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.DAILY


@dataclass(frozen=True)
class Credentials:
    """Store connection settings."""

    domain: str
    token: str
    timezone: Optional[str] = None  # "+HH:MM" / "-HH:MM"

    @property
    def is_configured(self) -> bool:
        return bool(self.domain and self.token)


@dataclass(frozen=True)
class DateRange:
    """Inclusive boundaries as ISO-8601 strings with numeric offset."""

    start: str
    end: str


@dataclass
class MoneyTotal:
    """Container for a formatted sales total."""

    amount: str  # fixed to 2 fractional digits
    currency: str


@dataclass
class CacheEntry:
    """Cached result for one store/timezone/period."""

    total: str
    currency: str
    written_at: int  # epoch milliseconds


@dataclass
class SalesResult:
    """Successful outcome for a period request."""

    period: Period
    total: str
    currency: str

    def to_message(self) -> dict:
        return {
            "period": int(self.period),
            "status": "ok",
            "total": str(self.total),
            "currency": str(self.currency or "USD"),
        }


@dataclass
class SalesFailure:
    """Failed outcome for a period request."""

    period: Period
    error: str

    def to_message(self) -> dict:
        return {"period": int(self.period), "status": "error", "error": self.error}


@dataclass
class SendResult:
    """Result of handing a message to the watch transport."""

    ok: bool
    error: Optional[str] = None
