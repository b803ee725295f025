import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

from .errors import GraphQLError, HttpError, NetworkError, RateLimited, Unauthorized

logger = logging.getLogger(__name__)

API_VERSION = "2024-07"
REQUEST_TIMEOUT = 12.0  # seconds

SHOP_CURRENCY_QUERY = "query ShopCurrency { shop { currencyCode } }"


@dataclass
class HttpResponse:
    """Status code and parsed JSON body (None if the body was not JSON)."""

    status: int
    json: Any


class HttpTransport(Protocol):
    """Capability to POST a JSON body and read back a JSON response."""

    def post(
        self, url: str, headers: dict, body: dict, timeout: float
    ) -> HttpResponse:
        """Send one POST request. Raises NetworkError on transport failure."""
        ...


class HttpxTransport:
    """HttpTransport backed by an httpx client."""

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client or httpx.Client()

    def post(
        self, url: str, headers: dict, body: dict, timeout: float
    ) -> HttpResponse:
        try:
            response = self._client.post(
                url, headers=headers, json=body, timeout=timeout
            )
        except httpx.TimeoutException as e:
            raise NetworkError("Network timeout") from e
        except httpx.RequestError as e:
            raise NetworkError("Network error") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None
        return HttpResponse(status=response.status_code, json=payload)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ShopifyClient:
    """Admin GraphQL client for a single store."""

    def __init__(self, domain: str, token: str, transport: HttpTransport):
        self.domain = domain
        self.token = token
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"https://{self.domain}/admin/api/{API_VERSION}/graphql.json"

    def query(self, document: str, variables: Optional[dict] = None) -> dict:
        """Run a GraphQL document and return its ``data`` field.

        Args:
            document: GraphQL query text
            variables: Query variables

        Returns:
            The response's data mapping (empty dict if absent)

        Raises:
            Unauthorized: status 401 or 403
            RateLimited: status 429
            HttpError: any other non-2xx status, or a body that is not JSON
            GraphQLError: a non-empty ``errors`` array in the payload
            NetworkError: timeout or connection failure
        """
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.token,
        }
        body = {"query": document, "variables": variables or {}}
        logger.debug("POST %s variables=%s", self.endpoint, variables)

        response = self.transport.post(self.endpoint, headers, body, REQUEST_TIMEOUT)
        status = response.status

        if status in (401, 403):
            raise Unauthorized(status)
        if status == 429:
            raise RateLimited()
        if status < 200 or status >= 300:
            raise HttpError(status)

        payload = response.json
        if not isinstance(payload, dict):
            raise HttpError(status, "invalid JSON response")

        errors = payload.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            messages = [
                e.get("message", str(e)) if isinstance(e, dict) else str(e)
                for e in errors
            ]
            raise GraphQLError(messages)

        return payload.get("data") or {}

    def get_shop_currency(self) -> str:
        """Fetch the store's currency code, defaulting to USD."""
        data = self.query(SHOP_CURRENCY_QUERY)
        shop = data.get("shop") or {}
        return shop.get("currencyCode") or "USD"
