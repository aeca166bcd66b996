"""
Extractors for receipt dates, totals and currencies.
"""
from .models import Candidate, CurrencyToken, ExtractionResult, NumberToken
from .date_extractor import extract_date
from .amount_extractor import extract_amount, find_total
from .receipt_extractor import extract_receipt, extract_receipt_pages, join_pages

__all__ = [
    'Candidate', 'CurrencyToken', 'ExtractionResult', 'NumberToken',
    'extract_date', 'extract_amount', 'find_total',
    'extract_receipt', 'extract_receipt_pages', 'join_pages',
]
