"""
Normalizer module for parsing receipt dates and amounts.
"""
from .date_parser import compose_date, format_date, parse_iso_datetime
from .amount_parser import NUMBER_PATTERN, normalize_number, format_amount

__all__ = [
    'compose_date', 'format_date', 'parse_iso_datetime',
    'NUMBER_PATTERN', 'normalize_number', 'format_amount',
]
