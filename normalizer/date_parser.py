"""
Calendar composition and formatting for receipt dates.
"""
from datetime import date, datetime
from typing import Optional, Union


def expand_year(year: str) -> str:
    """
    Expand a two-digit year by prefixing "20".

    Years 19xx cannot be expressed this way; receipts are assumed to be
    from 2000-2099.
    """
    if len(year) == 2:
        return "20" + year
    return year


def compose_date(year: str, month: str, day: str) -> Optional[date]:
    """
    Build a date from raw numeric components.

    Day and month are zero-padded and the result is validated against the
    Gregorian calendar, so "31"/"02" fails instead of rolling over.

    Args:
        year: Four-digit (or two-digit, expanded to 20yy) year
        month: One- or two-digit month
        day: One- or two-digit day

    Returns:
        A date object if the components form a real date, None otherwise
    """
    value = f"{expand_year(year)}-{month.zfill(2)}-{day.zfill(2)}"
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_iso_datetime(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp as written by the receipt store.

    Plain dates are promoted to midnight.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    value_str = str(value).strip()
    if not value_str:
        return None
    try:
        return datetime.fromisoformat(value_str)
    except ValueError:
        return None


def format_date(dt: Union[date, datetime, None], fmt: str = "%d %b %Y") -> str:
    """
    Format a date object as a string.

    Args:
        dt: Date object to format
        fmt: Output format string (default: DD Mon YYYY)

    Returns:
        Formatted date string, or empty string if date is None
    """
    if dt is None:
        return ""
    return dt.strftime(fmt)
