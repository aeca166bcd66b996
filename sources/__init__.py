"""
Sources module for reading recognized receipt text.
"""
from .text_source import TextSource, PlainTextSource, PDFTextSource, open_text_source

__all__ = ['TextSource', 'PlainTextSource', 'PDFTextSource', 'open_text_source']
