"""Tests for line grammars and parsed line shapes."""

from __future__ import annotations

import re

import pytest

from copay_autofill.extraction.grammar import (
    BracketedLine,
    CodedLine,
    Grammar,
    LineShape,
    SimpleLine,
    bracketed,
    simple,
)
from copay_autofill.insurers.patterns import CODED_IN_NETWORK_PATTERN, SEQUENCED_PATTERN


class TestLineShape:
    def test_shape_follows_group_count(self):
        assert simple().shape == LineShape.SIMPLE
        assert bracketed().shape == LineShape.BRACKETED
        assert Grammar(CODED_IN_NETWORK_PATTERN).shape == LineShape.CODED

    def test_rejects_unsupported_arity(self):
        with pytest.raises(ValueError, match="expected 2, 3 or 4"):
            Grammar(r"(\d+)")

    def test_accepts_compiled_pattern(self):
        grammar = Grammar(re.compile(r"([^:]+):\$?([\d.]+)"))
        assert grammar.shape == LineShape.SIMPLE

    def test_detail_filter_needs_brackets(self):
        with pytest.raises(ValueError):
            Grammar(r"([^:]+):\$?([\d.]+)", detail_must_contain="UHC")


class TestScan:
    def test_simple_line(self):
        lines = list(simple().scan("Office Visit:$30.00"))
        assert lines == [SimpleLine(service="Office Visit", amount_text="30.00")]
        assert lines[0].details == ""

    def test_bracketed_line(self):
        lines = list(bracketed().scan("PCP[IN NETWORK]:$1,250.00"))
        assert lines == [BracketedLine(service="PCP", detail="IN NETWORK", amount_text="1,250.00")]

    def test_percentage_amount_kept(self):
        (line,) = bracketed().scan("PCP[IN NETWORK]:20%")
        assert line.amount_text == "20%"

    def test_coded_line_details_include_code(self):
        text = "Physician Visit - Office[BLUECHOICE (101) IN NETWORK]:$15.00"
        (line,) = Grammar(CODED_IN_NETWORK_PATTERN).scan(text)
        assert isinstance(line, CodedLine)
        assert line.code == "101"
        assert line.details == "BLUECHOICE (101)"

    def test_sequenced_grammar_drops_sequence_number(self):
        (line,) = Grammar(SEQUENCED_PATTERN).scan("PRIMARY CARE[Seq#7 IN NETWORK]:$5.00")
        assert line.service == "PRIMARY CARE"
        assert line.details == "IN NETWORK"

    def test_detail_filter_skips_other_lines(self):
        text = "PCP[UHC CHOICE PLUS]:$20.00 PCP[OTHER]:$90.00"
        lines = list(bracketed("uhc").scan(text))
        assert [line.amount_text for line in lines] == ["20.00"]
