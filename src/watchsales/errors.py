"""Failures that end a sales request.

``str(error)`` is the text forwarded to the watch.
"""

from typing import Sequence


class SalesError(Exception):
    """Base class for all request failures."""


class Unauthorized(SalesError):
    def __init__(self, status: int):
        self.status = status
        super().__init__("Unauthorized: check token and scopes")


class RateLimited(SalesError):
    def __init__(self):
        super().__init__("Rate limited: slow down")


class HttpError(SalesError):
    def __init__(self, status: int, detail: str = ""):
        self.status = status
        message = f"HTTP {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class GraphQLError(SalesError):
    def __init__(self, messages: Sequence[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class NetworkError(SalesError):
    """Timeout, connection failure or aborted request."""


class MissingConfiguration(SalesError):
    def __init__(self):
        super().__init__("Missing store domain/token (configure settings)")
