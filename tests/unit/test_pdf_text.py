"""Tests for PDF validation and pypdf text decoding."""

from __future__ import annotations

import pytest

from copay_autofill.documents.pdf_text import decode_pdf_text, is_pdf_bytes
from copay_autofill.exceptions import DocumentFormatUnavailable
from tests.fakes.pdf_factory import make_pdf


class TestIsPdfBytes:
    def test_magic_header(self):
        assert is_pdf_bytes(b"%PDF-1.7\n...")

    def test_html_placeholder(self):
        assert not is_pdf_bytes(b"<html>Generating...</html>")

    def test_too_short(self):
        assert not is_pdf_bytes(b"%PDF")


class TestDecodePdfText:
    def test_pages_in_order_joined_by_newline(self):
        data = make_pdf([["Eligibility   Summary"], ["PCP[IN NETWORK]:$20.00"]])
        text = decode_pdf_text(data)
        pages = text.split("\n")
        assert pages[0] == "Eligibility Summary"
        assert pages[1] == "PCP[IN NETWORK]:$20.00"

    def test_lines_within_a_page_become_single_spaced(self):
        data = make_pdf([["Office Visit:$30.00", "Urgent Care:$60.00"]])
        assert decode_pdf_text(data) == "Office Visit:$30.00 Urgent Care:$60.00"

    def test_parentheses_survive(self):
        line = "Professional (Physician) Visit - Office[PCP]:$25.00"
        assert decode_pdf_text(make_pdf([[line]])) == line

    def test_rejects_non_pdf(self):
        with pytest.raises(DocumentFormatUnavailable):
            decode_pdf_text(b"<html></html>")

    def test_rejects_truncated_pdf(self):
        with pytest.raises(DocumentFormatUnavailable):
            decode_pdf_text(b"%PDF-1.4\n%garbage")

    @pytest.mark.parametrize(
        "error",
        [AttributeError("NullObject has no get"), TypeError("bad stream"), RuntimeError("zlib")],
    )
    def test_any_reader_error_is_format_unavailable(self, monkeypatch, error):
        def broken_reader(stream):
            raise error

        monkeypatch.setattr("copay_autofill.documents.pdf_text.PdfReader", broken_reader)
        with pytest.raises(DocumentFormatUnavailable) as excinfo:
            decode_pdf_text(make_pdf([["PCP:$20.00"]]))
        assert excinfo.value.__cause__ is error
