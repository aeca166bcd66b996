"""
Sources of recognized receipt text, one block per scanned page.

Handles:
- Plain UTF-8 text dumps (pages separated by form feeds)
- PDFs that carry a text layer, e.g. scans already run through OCR
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

import pdfplumber

from config import SUPPORTED_INPUT_EXTENSIONS
from extractor.receipt_extractor import join_pages

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"


class TextSource(ABC):
    """
    Abstract base class for receipt text sources.
    """

    def __init__(self, filepath: Union[str, Path]):
        """
        Initialize the source with a file path.

        Args:
            filepath: Path to the scanned receipt file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        self.filepath = Path(filepath)
        if not self.filepath.is_file():
            raise FileNotFoundError(f"Input file not found: {self.filepath}")

    @abstractmethod
    def pages(self) -> List[str]:
        """
        Read the recognized text of every page.

        Returns:
            List of text blocks in page order
        """
        pass

    def text(self) -> str:
        """All pages joined into a single receipt text."""
        return join_pages(self.pages())


class PlainTextSource(TextSource):
    """Text file produced by an OCR tool; form feeds separate pages."""

    def pages(self) -> List[str]:
        content = self.filepath.read_text(encoding="utf-8")
        pages = content.split(PAGE_BREAK)
        logger.debug("Read %d page(s) from %s", len(pages), self.filepath)
        return pages


class PDFTextSource(TextSource):
    """
    PDF with a text layer. Pages without extractable text (pure images)
    come back as empty blocks.

    Usage::

        source = PDFTextSource("Receipt_1718000000.pdf")
        text = source.text()
    """

    def pages(self) -> List[str]:
        pages: List[str] = []
        with pdfplumber.open(self.filepath) as pdf:
            for page_idx, page in enumerate(pdf.pages):
                text = page.extract_text() or ""
                if not text.strip():
                    logger.warning(
                        "Page %d of %s has no text layer", page_idx + 1, self.filepath
                    )
                pages.append(text)

        logger.info("Read %d page(s) from %s", len(pages), self.filepath)
        return pages


def open_text_source(filepath: Union[str, Path]) -> TextSource:
    """
    Pick a text source by file extension.

    Args:
        filepath: Path to a .txt or .pdf file

    Returns:
        A TextSource for the file

    Raises:
        ValueError: If the extension is not supported
        FileNotFoundError: If the file does not exist
    """
    ext = Path(filepath).suffix.lower()
    if ext not in SUPPORTED_INPUT_EXTENSIONS:
        raise ValueError(
            f"Unsupported file extension: {ext or '(none)'}. "
            f"Use one of: {', '.join(SUPPORTED_INPUT_EXTENSIONS)}"
        )
    if ext == ".pdf":
        return PDFTextSource(filepath)
    return PlainTextSource(filepath)
