"""
PDF processing service using pdfplumber.

Handles extraction of plain text from PDF documents for rule validation.
"""

import io
import logging
from pathlib import Path
from typing import BinaryIO

import pdfplumber

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"  # keep page boundaries in the text


class PDFExtractionError(Exception):
    """Raised when text extraction from a PDF fails."""

    pass


class PDFService:
    """
    Service for PDF processing operations.

    Uses pdfplumber (backed by pdfminer.six) to extract page text.
    """

    def __init__(self, page_break: str = PAGE_BREAK):
        """
        Initialize the PDF service.

        Args:
            page_break: Separator inserted between page texts.
        """
        self.page_break = page_break

    def _read_bytes(self, source: bytes | BinaryIO | str | Path) -> bytes:
        if isinstance(source, (str, Path)):
            try:
                return Path(source).read_bytes()
            except OSError as e:
                raise PDFExtractionError(f"Could not read PDF file: {e}") from e
        if hasattr(source, "read"):
            return source.read()
        return source

    def _validate(self, pdf_bytes: bytes) -> None:
        if not pdf_bytes:
            raise PDFExtractionError("Empty PDF file provided")

        # Validate PDF magic bytes
        if not pdf_bytes[:4] == b"%PDF":
            raise PDFExtractionError(
                "Invalid PDF file: does not start with PDF header"
            )

    def extract_text(self, source: bytes | BinaryIO | str | Path) -> str:
        """
        Extract the text of every page in a PDF.

        Args:
            source: PDF as bytes, a file-like object, or a file path.

        Returns:
            Page texts joined with the page break separator. Pages without
            a text layer contribute an empty string.

        Raises:
            PDFExtractionError: If the input is not a readable PDF.
        """
        pdf_bytes = self._read_bytes(source)
        self._validate(pdf_bytes)

        try:
            pages = []
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                for page in pdf.pages:
                    text = page.extract_text() or ""  # avoid None
                    pages.append(text.strip())
        except Exception as e:
            logger.exception("Unexpected error during PDF text extraction")
            raise PDFExtractionError(f"PDF text extraction failed: {e}") from e

        text = self.page_break.join(pages)
        logger.info("Extracted %d characters from %d page(s)", len(text), len(pages))
        return text


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton."""
    global _pdf_service
    if _pdf_service is None:
        _pdf_service = PDFService()
    return _pdf_service
