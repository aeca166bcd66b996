"""
Amount parser for locale-ambiguous numbers found in receipt text.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

# Grouped (1-3 digits then 3-digit groups) or plain digits, each with an
# optional 2-digit fraction. No-break and thin spaces count as group separators.
NUMBER_PATTERN = (
    r'\d{1,3}(?:[ .,\u00a0\u202f\u2009]\d{3})*(?:[.,]\d{2})?'
    r'|\d+(?:[.,]\d{2})?'
)

_SPECIAL_SPACES = {
    '\u00a0': ' ',   # no-break space
    '\u202f': ' ',   # narrow no-break space
    '\u2009': ' ',   # thin space
}

_CANONICAL_RE = re.compile(r'^\d+(?:\.\d+)?$')


def normalize_number(value: Optional[str]) -> Optional[Decimal]:
    """
    Convert a numeric literal such as "1 234,50", "1.234,50" or "1,234.50"
    into a Decimal.

    Decimal separator resolution:
    - both ',' and '.' present: whichever comes last is the decimal separator
    - only ',' present: ',' is the decimal separator
    - otherwise '.' is the decimal separator
    Spaces and the non-decimal separator are dropped.

    Args:
        value: The literal, as matched by NUMBER_PATTERN

    Returns:
        The Decimal value, or None if the literal does not clean up into a
        plain numeral
    """
    if value is None:
        return None

    cleaned = str(value)
    for special, plain in _SPECIAL_SPACES.items():
        cleaned = cleaned.replace(special, plain)
    cleaned = cleaned.strip()

    has_comma = ',' in cleaned
    has_dot = '.' in cleaned

    if has_comma and has_dot:
        if cleaned.rfind(',') > cleaned.rfind('.'):
            cleaned = cleaned.replace('.', '').replace(',', '.')
        else:
            cleaned = cleaned.replace(',', '')
    elif has_comma:
        cleaned = cleaned.replace(',', '.')
    else:
        cleaned = cleaned.replace(',', '')

    cleaned = cleaned.replace(' ', '')

    # Decimal() would also accept "NaN", "1e3" and friends
    if not _CANONICAL_RE.match(cleaned):
        return None

    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def format_amount(
    amount: Union[Decimal, float, None],
    currency: Optional[str] = None,
) -> str:
    """
    Format an amount for display, e.g. "1,234.50 CZK".

    Args:
        amount: The amount to format
        currency: Optional ISO currency code appended after the number

    Returns:
        Formatted string, or empty string if amount is None
    """
    if amount is None:
        return ""

    result = f"{Decimal(str(amount)):,.2f}"
    if currency:
        result = f"{result} {currency}"
    return result
