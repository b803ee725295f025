"""Watch transport adapter: newline-delimited JSON over text streams."""

import json
import logging
import sys
from typing import Iterable, Optional, TextIO

from .models import Period, SendResult

logger = logging.getLogger(__name__)


def parse_request(payload: Optional[dict]) -> Period:
    """Read the requested period from an inbound message (default: daily)."""
    if not isinstance(payload, dict):
        return Period.DAILY
    return Period.parse(payload.get("period", 0))


def decode_line(line: str) -> Optional[dict]:
    """Decode one inbound line. Blank lines yield None."""
    line = line.strip()
    if not line:
        return None
    try:
        payload = json.loads(line)
    except ValueError:
        logger.warning("Unparseable request %r, treating as period 0", line)
        return {}
    return payload if isinstance(payload, dict) else {}


class StdioSender:
    """Writes each outbound message as one JSON line."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def send(self, message: dict) -> SendResult:
        stream = self.stream or sys.stdout
        try:
            stream.write(json.dumps(message, ensure_ascii=False) + "\n")
            stream.flush()
        except (OSError, ValueError) as e:
            return SendResult(ok=False, error=str(e))
        return SendResult(ok=True)


def serve(orchestrator, lines: Iterable[str]) -> int:
    """Handle requests one at a time until the input is exhausted.

    A request arriving while another is in flight waits for it to finish.

    Returns:
        Number of requests handled
    """
    handled = 0
    for line in lines:
        payload = decode_line(line)
        if payload is None:
            continue
        orchestrator.handle(payload)
        handled += 1
    logger.info("Input closed after %d request(s)", handled)
    return handled
