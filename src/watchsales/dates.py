import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import DateRange, Period

logger = logging.getLogger(__name__)

OFFSET_PATTERN = re.compile(r"^([+-])(\d{2}):(\d{2})$")


def parse_offset(text: Optional[str]) -> Optional[timezone]:
    """Parse a "+HH:MM" / "-HH:MM" string into a fixed-offset timezone.

    Returns None when the text is missing, malformed or out of range.
    """
    if not isinstance(text, str):
        return None
    match = OFFSET_PATTERN.match(text)
    if not match:
        return None

    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if sign == "-":
        delta = -delta
    try:
        return timezone(delta)
    except ValueError:
        logger.warning("Ignoring out-of-range timezone offset %r", text)
        return None


def local_offset(now: datetime) -> timezone:
    """Fixed offset of the executing environment at the given instant."""
    offset = now.astimezone().utcoffset()
    return timezone(offset or timedelta(0))


def format_offset(tz: timezone) -> str:
    """Render a fixed offset as "+HH:MM"."""
    total = int(tz.utcoffset(None).total_seconds()) // 60
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def to_iso(dt: datetime) -> str:
    """ISO-8601 with millisecond precision and an explicit numeric offset."""
    return dt.isoformat(timespec="milliseconds")


def _start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999000)


def compute_range(
    period: Period, now: datetime, offset: Optional[str] = None
) -> DateRange:
    """Compute the inclusive date range for a period anchored at ``now``.

    Args:
        period: Daily, weekly (Monday to Sunday) or monthly window
        now: Reference instant; naive values are read as local time
        offset: Optional "+HH:MM" offset; the environment's offset is used otherwise

    Returns:
        DateRange whose boundaries are expressed in the resolved offset
    """
    tz = parse_offset(offset)
    if tz is None:
        if offset:
            logger.debug("Invalid timezone %r, using local offset", offset)
        tz = local_offset(now)

    # All arithmetic is based on this single wall-clock value
    local_now = now.astimezone(tz)
    start = _start_of_day(local_now)
    end = _end_of_day(local_now)

    if period == Period.WEEKLY:
        start = start - timedelta(days=start.isoweekday() - 1)
        end = _end_of_day(start + timedelta(days=6))
    elif period == Period.MONTHLY:
        start = start.replace(day=1)
        if start.month == 12:
            next_month = start.replace(year=start.year + 1, month=1)
        else:
            next_month = start.replace(month=start.month + 1)
        end = _end_of_day(next_month - timedelta(days=1))

    return DateRange(start=to_iso(start), end=to_iso(end))
