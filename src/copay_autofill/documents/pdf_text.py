"""PDF byte validation and text decoding with pypdf."""

from __future__ import annotations

import logging
from io import BytesIO

from pypdf import PdfReader

from copay_autofill.exceptions import DocumentFormatUnavailable

log = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


def is_pdf_bytes(data: bytes) -> bool:
    """True when the first five bytes are the PDF header."""
    return data[: len(PDF_MAGIC)] == PDF_MAGIC


def decode_pdf_text(data: bytes) -> str:
    """Decode every page's text, in page order.

    Whitespace-separated tokens within a page are joined by single spaces;
    pages are joined by newlines.

    Raises:
        DocumentFormatUnavailable: If *data* is not a PDF or pypdf cannot
            read it.
    """
    if not is_pdf_bytes(data):
        raise DocumentFormatUnavailable("Bytes do not start with %PDF-", head=data[:16])
    # Malformed streams surface from pypdf as many exception types, not only PyPdfError.
    try:
        reader = PdfReader(BytesIO(data))
        page_count = len(reader.pages)
        pages = []
        for page in reader.pages:
            text = (page.extract_text() or "").replace("\xa0", " ")
            pages.append(" ".join(text.split()))
    except Exception as exc:
        raise DocumentFormatUnavailable(f"PDF could not be decoded: {exc}", head=data[:16]) from exc
    if page_count == 0:
        raise DocumentFormatUnavailable("PDF has no pages", head=data[:16])

    log.debug("Decoded %d PDF page(s), %d chars", len(pages), sum(len(p) for p in pages))
    return "\n".join(pages)
