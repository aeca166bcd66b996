"""
Entry point for turning recognized receipt text into structured fields.
"""
import logging
from typing import Iterable, Optional

from extractor.amount_extractor import extract_amount
from extractor.date_extractor import extract_date
from extractor.models import ExtractionResult

logger = logging.getLogger(__name__)


def join_pages(pages: Iterable[Optional[str]]) -> str:
    """
    Join per-page OCR text into one receipt text, one newline between pages.

    Page order and line order are preserved; a page without text
    contributes an empty line.
    """
    return "\n".join(page or "" for page in pages)


def extract_receipt(text: Optional[str]) -> ExtractionResult:
    """
    Extract date, total and currency from a receipt's text.

    Never raises for malformed input: any field that cannot be recognized
    is left as None.

    Args:
        text: Aggregated receipt text

    Returns:
        ExtractionResult with the recognized fields
    """
    text = text or ""
    amount, currency = extract_amount(text)
    result = ExtractionResult(
        date=extract_date(text),
        amount=amount,
        currency=currency,
    )
    logger.debug("Extracted %s", result)
    return result


def extract_receipt_pages(pages: Iterable[Optional[str]]) -> ExtractionResult:
    """Extract fields from a receipt supplied as one text block per page."""
    return extract_receipt(join_pages(pages))
