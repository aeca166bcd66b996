"""
Find the transaction date in receipt text.
"""
import logging
import re
from datetime import date
from typing import List, Optional, Tuple

from normalizer.date_parser import compose_date

logger = logging.getLogger(__name__)

# yyyy-mm-dd, yyyy.mm.dd, yyyy/mm/dd
ISO_DATE_RE = re.compile(r'(?<!\d)(\d{4})[-./](\d{1,2})[-./](\d{1,2})(?!\d)')

# dd.mm.yyyy, d/m/yy, dd-mm-yy
DAY_FIRST_DATE_RE = re.compile(r'(?<!\d)(\d{1,2})[-./](\d{1,2})[-./](\d{4}|\d{2})(?!\d)')

# (name, pattern, group indexes of year, month, day), in priority order
DATE_PATTERNS: List[Tuple[str, re.Pattern, Tuple[int, int, int]]] = [
    ("iso", ISO_DATE_RE, (1, 2, 3)),
    ("day_first", DAY_FIRST_DATE_RE, (3, 2, 1)),
]


def extract_date(text: Optional[str]) -> Optional[date]:
    """
    Return the first valid calendar date in the text.

    Only the highest-priority pattern that matches anywhere is used. If
    none of its matches is a real date (e.g. "2024-02-31"), no date is
    returned even if a lower-priority pattern would have matched.

    Args:
        text: Receipt text, possibly spanning several pages

    Returns:
        A date object, or None if no usable date is present
    """
    if not text:
        return None

    for name, pattern, (year_group, month_group, day_group) in DATE_PATTERNS:
        matches = list(pattern.finditer(text))
        if not matches:
            continue

        for match in matches:
            parsed = compose_date(
                match.group(year_group),
                match.group(month_group),
                match.group(day_group),
            )
            if parsed is not None:
                logger.debug("Date %s from %s pattern: %r", parsed, name, match.group(0))
                return parsed

        logger.debug(
            "%d %s date match(es) but none is a valid calendar date",
            len(matches), name,
        )
        return None

    return None
