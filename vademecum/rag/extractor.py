"""
Vademecum Document Text Extractor

Plain-text extraction from drug-reference PDFs.
Uses PyPDF2 with pdfplumber fallback for complex layouts.
"""

import io
import logging
from pathlib import Path

import pdfplumber
from PyPDF2 import PdfReader

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


class PDFTextExtractor:
    """Extracts the text layer of a PDF document.

    Never raises: empty, malformed or image-only documents yield an empty
    string, which callers treat as "extraction yielded nothing".
    """

    def extract(self, pdf_bytes: bytes) -> str:
        """Extract text from raw PDF bytes.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            Extracted text, or "" when no machine-readable text exists.
        """
        if not pdf_bytes:
            logger.warning("Empty PDF payload, nothing to extract")
            return ""

        # Try PyPDF2 first
        try:
            text = self._extract_with_pypdf2(pdf_bytes)
            if text.strip():
                return text
        except Exception as e:
            logger.debug("PyPDF2 extraction failed: %s", e)

        # Fallback to pdfplumber
        try:
            text = self._extract_with_pdfplumber(pdf_bytes)
            if text.strip():
                return text
        except Exception as e:
            logger.debug("pdfplumber extraction failed: %s", e)

        logger.warning(
            "No text layer found in PDF (%d bytes); scanned or malformed document",
            len(pdf_bytes),
        )
        return ""

    def extract_file(self, file_path: str | Path) -> str:
        """Extract text from a PDF on disk. Unreadable files yield ""."""
        path = Path(file_path)
        try:
            pdf_bytes = path.read_bytes()
        except OSError as e:
            logger.warning("Could not read PDF file %s: %s", path, e)
            return ""
        return self.extract(pdf_bytes)

    def _extract_with_pypdf2(self, pdf_bytes: bytes) -> str:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        text_parts = []

        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)

        return PAGE_SEPARATOR.join(text_parts)

    def _extract_with_pdfplumber(self, pdf_bytes: bytes) -> str:
        """Extract text using pdfplumber (better for tables)."""
        text_parts = []

        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)

        return PAGE_SEPARATOR.join(text_parts)
