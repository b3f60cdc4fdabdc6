"""
Date utility functions for StayScout.

Stay windows are one night long: check-in on day N, check-out on day N+1.
All dates travel as ISO strings (YYYY-MM-DD) in records and URLs.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from stayscout.core.logging import get_logger

logger = get_logger(__name__)

_ISO_PREFIX_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def format_date(d: date, fmt: str = "%Y-%m-%d") -> str:
    """
    Format a date to string.

    Example:
        >>> format_date(date(2026, 1, 8))
        '2026-01-08'
    """
    return d.strftime(fmt)


def shift_days(start: date, days: int) -> date:
    """Return start moved forward by days."""
    return start + timedelta(days=days)


def stay_window(start: date, offset: int = 0) -> Tuple[str, str]:
    """
    Check-in / check-out strings for a one-night stay.

    Args:
        start: Day index 0 of the job window
        offset: Day index within the window

    Returns:
        (checkin, checkout) ISO strings

    Example:
        >>> stay_window(date(2026, 1, 31), 0)
        ('2026-01-31', '2026-02-01')
    """
    checkin = shift_days(start, offset)
    return format_date(checkin), format_date(shift_days(checkin, 1))


def parse_date(date_str: str) -> Optional[datetime]:
    """
    Parse date string to datetime object.

    Tries multiple common formats. Returns None if parsing fails.

    Example:
        >>> parse_date("2026-01-08").year
        2026
        >>> parse_date("invalid") is None
        True
    """
    if not date_str or not isinstance(date_str, str):
        return None

    date_str = date_str.strip()

    formats = [
        "%Y-%m-%d",              # 2026-01-08
        "%Y-%m-%dT%H:%M:%S",     # 2026-01-08T12:00:00
        "%d %B %Y",              # 8 January 2026
        "%d %b %Y",              # 8 Jan 2026
        "%B %d, %Y",             # January 8, 2026
        "%b %d, %Y",             # Jan 8, 2026
        "%a %d %B %Y",           # Thu 08 January 2026
        "%A %d %B %Y",           # Thursday 08 January 2026
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue

    logger.debug(f"Could not parse date: {date_str}")
    return None


def normalize_event_date(value: Optional[str]) -> str:
    """
    Reduce a datetime attribute or visible date text to YYYY-MM-DD.

    ISO-prefixed values (2026-03-01T20:00:00-06:00) are truncated; other
    text is parsed with parse_date. Unparseable input yields "".

    Example:
        >>> normalize_event_date("2026-03-01T20:00:00-06:00")
        '2026-03-01'
        >>> normalize_event_date("1 March 2026")
        '2026-03-01'
        >>> normalize_event_date("soon")
        ''
    """
    if not value:
        return ""
    value = value.strip()
    m = _ISO_PREFIX_RE.match(value)
    if m:
        return m.group(0)
    parsed = parse_date(value)
    if parsed is None:
        m = re.search(r"\b\d{1,2} [A-Za-z]{3,9} \d{4}\b", value)
        parsed = parse_date(m.group(0)) if m else None
    return format_date(parsed) if parsed else ""
