import logging
import time
from typing import Callable, Optional

from .models import CacheEntry, Credentials, Period
from .storage import JsonFileStore

logger = logging.getLogger(__name__)

CACHE_STORAGE_KEY = "sales-cache-v1"
CACHE_TTL_MS = 120_000


def _now_ms() -> int:
    return int(time.time() * 1000)


def cache_key(period: Period, credentials: Credentials) -> str:
    """Key for a store/timezone/period; the token is not part of it."""
    return f"{credentials.domain or ''}|{credentials.timezone or ''}|{int(period)}"


class ResultCache:
    """Short-lived cache of computed totals, persisted in a JsonFileStore."""

    def __init__(
        self,
        store: JsonFileStore,
        clock: Callable[[], int] = _now_ms,
        ttl_ms: int = CACHE_TTL_MS,
    ):
        self.store = store
        self.clock = clock
        self.ttl_ms = ttl_ms

    def _read_all(self) -> dict:
        try:
            entries = self.store.get(CACHE_STORAGE_KEY, {})
        except (OSError, ValueError) as e:
            logger.warning("Cache unreadable, treating as empty: %s", e)
            return {}
        return entries if isinstance(entries, dict) else {}

    def get(self, period: Period, credentials: Credentials) -> Optional[CacheEntry]:
        """Return the entry for this request if it is younger than the TTL."""
        entry = self._read_all().get(cache_key(period, credentials))
        if not isinstance(entry, dict):
            return None

        written_at = entry.get("writtenAt")
        if not isinstance(written_at, (int, float)) or isinstance(written_at, bool):
            return None
        if self.clock() - written_at > self.ttl_ms:
            return None

        return CacheEntry(
            total=entry.get("total"),
            currency=entry.get("currency"),
            written_at=int(written_at),
        )

    def put(
        self, period: Period, credentials: Credentials, total: str, currency: str
    ) -> None:
        """Store a result. Failures are logged, never raised."""
        entries = self._read_all()
        entries[cache_key(period, credentials)] = {
            "total": total,
            "currency": currency,
            "writtenAt": self.clock(),
        }
        try:
            self.store.set(CACHE_STORAGE_KEY, entries)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to write cache: %s", e)

    def clear(self) -> None:
        """Drop every cached entry. Failures are logged, never raised."""
        try:
            self.store.delete(CACHE_STORAGE_KEY)
        except (OSError, ValueError) as e:
            logger.warning("Failed to clear cache: %s", e)
