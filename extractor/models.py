"""
Data structures shared by the receipt field extractors.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class NumberToken:
    """A numeric literal found on a receipt line."""
    text: str
    line_index: int
    start: int
    end: int


@dataclass(frozen=True)
class CurrencyToken:
    """
    A currency symbol or code directly before or after a NumberToken.

    `code` is the ISO code from CURRENCY_MAP, or None if the raw token is
    not a known currency.
    """
    text: str
    code: Optional[str]
    start: int
    end: int


@dataclass(frozen=True)
class Candidate:
    """
    A scored (amount, currency) pair competing to be the receipt total.
    """
    amount: Decimal
    currency: Optional[str]
    score: int
    line_index: int = 0


@dataclass
class ExtractionResult:
    """
    Fields recovered from one receipt's text. Each field is independently
    optional; callers decide what to substitute for a missing one.
    """
    date: Optional[date] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to a JSON-friendly dictionary."""
        return {
            'date': self.date.isoformat() if self.date else None,
            'amount': str(self.amount) if self.amount is not None else None,
            'currency': self.currency,
        }

    @property
    def is_empty(self) -> bool:
        """True when nothing at all was recognized."""
        return self.date is None and self.amount is None and self.currency is None
