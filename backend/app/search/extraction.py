"""PDF body-text extraction (PyMuPDF) and the labelled placeholder pages."""

import logging

import fitz  # PyMuPDF

from backend.app.db.repositories import ExtractedPage
from backend.app.errors import IndexingFailure

logger = logging.getLogger(__name__)

# Used only when no extractor is configured; responses flag these as placeholders.
PLACEHOLDER_PAGE_TEXT = (
    "This is sample PDF content for testing search functionality. "
    "Job opportunities and career development.",
    "Important documents and annotations for review. Professional development and skills.",
    "Sample text content that can be searched and highlighted. "
    "Employment and work-related information.",
    "Additional content for comprehensive search testing. Business and professional topics.",
)


def placeholder_pages() -> list[ExtractedPage]:
    """Synthetic page text standing in for a missing extractor."""
    return [
        ExtractedPage(page_number=index, text=text)
        for index, text in enumerate(PLACEHOLDER_PAGE_TEXT, start=1)
    ]


def normalize_page_text(text: str) -> str:
    """Collapse whitespace runs (line breaks, hyphen gaps) into single spaces."""
    return " ".join(text.split())


class PyMuPdfTextExtractor:
    """Extracts body text page by page with PyMuPDF.

    Pages without extractable text (scans, blank pages) are skipped, so page
    numbers in the result may have gaps.
    """

    def extract_pages(self, pdf_bytes: bytes) -> list[ExtractedPage]:
        """Extract normalized text for every page that has any.

        Raises:
            IndexingFailure: If the bytes are not a readable PDF
        """
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
                pages: list[ExtractedPage] = []
                for index, page in enumerate(doc, start=1):
                    text = normalize_page_text(page.get_text("text"))
                    if text:
                        pages.append(ExtractedPage(page_number=index, text=text))
        except (RuntimeError, ValueError) as e:
            logger.warning("PDF text extraction failed: %s", type(e).__name__)
            raise IndexingFailure("PDF text extraction failed") from e

        return pages
