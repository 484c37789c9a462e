"""MallBoard — Calendar date helpers.

All dates travel as zero-padded ``YYYY-MM-DD`` strings so that plain string
comparison orders them correctly.
"""

import re
from datetime import date, datetime, timedelta
from typing import List, Optional

DATE_FORMAT = "%Y-%m-%d"

_DATE_PREFIX = re.compile(r"^(\d{4})-?(\d{2})-?(\d{2})")


def validate_date(d: Optional[str]) -> Optional[str]:
    """Return the date string if valid YYYY-MM-DD, else None."""
    if not d:
        return None
    try:
        datetime.strptime(d, DATE_FORMAT)
        return d
    except ValueError:
        return None


def parse_date(d: str) -> date:
    """Parse YYYY-MM-DD or YYYYMMDD into a date."""
    if "-" in d:
        return datetime.strptime(d, DATE_FORMAT).date()
    return datetime.strptime(d, "%Y%m%d").date()


def normalize_date_prefix(value: str) -> Optional[str]:
    """Extract the calendar day from a timestamp-ish string.

    Accepts "2025-11-01 12:34:56", "20251101", "2025-11-01T00:00:00+0900".
    """
    match = _DATE_PREFIX.match(value or "")
    if not match:
        return None
    return f"{match.group(1)}-{match.group(2)}-{match.group(3)}"


def iter_dates(start: str, end: str) -> List[str]:
    """Every calendar day from start to end, both inclusive."""
    current = parse_date(start)
    stop = parse_date(end)
    days: List[str] = []
    while current <= stop:
        days.append(current.strftime(DATE_FORMAT))
        current += timedelta(days=1)
    return days


def default_date_range(days: int = 30, today: Optional[date] = None) -> tuple[str, str]:
    """The trailing window of ``days`` days ending today."""
    today = today or date.today()
    start = today - timedelta(days=days - 1)
    return start.strftime(DATE_FORMAT), today.strftime(DATE_FORMAT)


def resolve_range(
    start_date: Optional[str],
    end_date: Optional[str],
    days: int = 30,
) -> tuple[str, str]:
    """Resolve optional start/end parameters into a concrete range."""
    start_date = validate_date(start_date)
    end_date = validate_date(end_date)
    default_start, default_end = default_date_range(days)
    if start_date and end_date:
        return start_date, end_date
    if end_date:
        start = parse_date(end_date) - timedelta(days=days - 1)
        return start.strftime(DATE_FORMAT), end_date
    if start_date:
        return start_date, default_end
    return default_start, default_end
