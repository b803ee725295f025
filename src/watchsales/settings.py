import logging
import re
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .models import Credentials
from .storage import JsonFileStore

logger = logging.getLogger(__name__)

# Constants
KEYRING_SERVICE = "watchsales"
SETTINGS_STORAGE_KEY = "settings"

_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def clean_domain(domain: str) -> str:
    """Strip whitespace, any http(s):// prefix and trailing slashes."""
    return _SCHEME_PATTERN.sub("", (domain or "").strip()).rstrip("/")


class SettingsStore:
    """Store connection settings; the access token lives in the keyring."""

    def __init__(self, store: JsonFileStore):
        self.store = store

    def load(self) -> Credentials:
        """Load the saved credentials. Missing values come back empty."""
        try:
            raw = self.store.get(SETTINGS_STORAGE_KEY) or {}
        except (OSError, ValueError) as e:
            logger.warning("Settings unreadable: %s", e)
            raw = {}

        domain = raw.get("domain") or ""
        token = ""
        if domain:
            try:
                token = keyring.get_password(KEYRING_SERVICE, domain) or ""
            except KeyringError as e:
                logger.warning("Keyring unavailable, token not loaded: %s", e)
        return Credentials(
            domain=domain, token=token, timezone=raw.get("timezone") or None
        )

    def save(
        self, domain: str, token: str, timezone: Optional[str] = None
    ) -> Credentials:
        """Persist settings and return the cleaned credentials."""
        previous = self.load().domain
        credentials = Credentials(
            domain=clean_domain(domain),
            token=(token or "").strip(),
            timezone=(timezone or "").strip() or None,
        )

        if previous and previous != credentials.domain:
            self._delete_token(previous)
        if credentials.domain and credentials.token:
            keyring.set_password(KEYRING_SERVICE, credentials.domain, credentials.token)

        self.store.set(
            SETTINGS_STORAGE_KEY,
            {"domain": credentials.domain, "timezone": credentials.timezone},
        )
        logger.info("Settings saved for domain=%s", credentials.domain)
        return credentials

    def forget(self) -> Optional[str]:
        """Remove stored settings and token. Returns the domain that was cleared."""
        domain = self.load().domain
        if domain:
            self._delete_token(domain)
        self.store.delete(SETTINGS_STORAGE_KEY)
        return domain or None

    @staticmethod
    def _delete_token(domain: str) -> None:
        try:
            keyring.delete_password(KEYRING_SERVICE, domain)
        except PasswordDeleteError:
            pass
