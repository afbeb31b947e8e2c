"""Tests for candidate scoring weights and per-field winner selection."""

from __future__ import annotations

from decimal import Decimal

import pytest

from copay_autofill.extraction.scorer import CandidateScorer
from copay_autofill.insurers.patterns import DEFAULT
from copay_autofill.models import Candidate, CareCategory

PCP_SERVICE = "Professional (Physician) Visit - Office"


def _cand(service: str, details: str = "", amount: str = "10.00", pct: bool = False) -> Candidate:
    return Candidate(service=service, details=details, amount=Decimal(amount), is_percentage=pct)


@pytest.fixture
def scorer() -> CandidateScorer:
    return CandidateScorer(DEFAULT)


class TestPrimaryScore:
    def test_non_primary_service_is_ignored(self, scorer):
        assert scorer.score_primary(_cand("Chiropractic")) is None

    def test_keyword_match_is_case_insensitive(self, scorer):
        scored = scorer.score_primary(_cand("professional (physician) visit - office"))
        assert scored is not None
        assert scored.exact_match
        assert scored.score == 100

    @pytest.mark.parametrize(
        "details, expected",
        [
            ("", 100),
            ("IN NETWORK", 110),
            ("PRIMARY CARE PHYSICIAN", 115),
            ("PRIMARY CARE", 105),
            ("PCP", 105),
            ("INFUSION THERAPY", 50),
            ("SPECIALIST", 0),
            ("OFFICE VISIT", 120),
            ("CLINIC", 120),
            ("HOME VISIT", 120),
            ("PARTICIPATING", 111),
            ("PREFERRED PRIMARY CARE PHYSICIAN", 128),
        ],
    )
    def test_weights(self, scorer, details, expected):
        assert scorer.score_primary(_cand(PCP_SERVICE, details)).score == expected

    def test_network_counted_once(self, scorer):
        scored = scorer.score_primary(_cand("Office Visit Plus", "IN NETWORK IN-NETWORK"))
        assert scored.score == 10


class TestUrgentScore:
    def test_only_network_and_preference(self, scorer):
        scored = scorer.score_urgent(_cand("Urgent Care", "PARTICIPATING OFFICE VISIT"))
        assert scored.score == 11
        assert scored.category == CareCategory.URGENT_CARE

    def test_non_urgent_service_is_ignored(self, scorer):
        assert scorer.score_urgent(_cand("Lab Work")) is None


class TestSelection:
    def test_exact_match_wins_regardless_of_order(self, scorer):
        loose = _cand("PCP Visit", "IN NETWORK OFFICE VISIT", "40.00")
        exact = _cand("PCP", "", "15.00")
        for order in ([loose, exact], [exact, loose]):
            selection = scorer.select(order)[CareCategory.PRIMARY_CARE]
            assert selection.copay_text == "15.00"

    def test_office_visit_beats_infusion(self, scorer):
        infusion = _cand(PCP_SERVICE, "INFUSION IN NETWORK", "100.00")
        office = _cand(PCP_SERVICE, "OFFICE VISIT IN NETWORK", "30.00")
        selection = scorer.select([infusion, office])[CareCategory.PRIMARY_CARE]
        assert selection.copay_text == "30.00"

    def test_tie_keeps_first_seen(self, scorer):
        first = _cand("PCP", "", "20.00")
        second = _cand("PCP", "", "35.00")
        selection = scorer.select([first, second])[CareCategory.PRIMARY_CARE]
        assert selection.copay.candidate is first

    def test_one_winner_fills_one_field(self, scorer):
        coins = _cand("PCP", "IN NETWORK", "20", pct=True)
        specialist = _cand("Office Visit", "SPECIALIST IN NETWORK", "60.00")
        selection = scorer.select([coins, specialist])[CareCategory.PRIMARY_CARE]
        assert selection.winner.candidate is coins
        assert selection.coinsurance_text == "20"
        assert selection.copay_text is None

    def test_higher_copay_replaces_earlier_coinsurance(self, scorer):
        coins = _cand("PCP Visit", "", "20", pct=True)
        copay = _cand("PCP", "IN NETWORK", "25.00")
        selection = scorer.select([coins, copay])[CareCategory.PRIMARY_CARE]
        assert selection.copay_text == "25.00"
        assert selection.coinsurance_text is None

    def test_negative_score_never_wins(self, scorer):
        excluded = _cand("Office Visit Level 3", "INFUSION", "60.00")
        assert scorer.score_primary(excluded).score < 0
        selection = scorer.select([excluded])[CareCategory.PRIMARY_CARE]
        assert selection.winner is None
        assert selection.copay_text is None

    @pytest.mark.parametrize(
        "service, details",
        [
            ("Office Visit", "SPECIALIST IN NETWORK"),
            (PCP_SERVICE, "SPECIALIST"),
            ("Office Visit[SPECIALIST IN NETWORK]", ""),
        ],
    )
    def test_specialist_line_never_wins(self, scorer, service, details):
        specialist = _cand(service, details, "60.00")
        assert scorer.score_primary(specialist).score >= 0
        selection = scorer.select([specialist])[CareCategory.PRIMARY_CARE]
        assert selection.winner is None

    def test_specialist_line_does_not_shadow_pcp(self, scorer):
        specialist = _cand("Office Visit", "SPECIALIST OFFICE VISIT IN NETWORK", "60.00")
        pcp = _cand("PCP Visit", "", "15.00")
        selection = scorer.select([specialist, pcp])[CareCategory.PRIMARY_CARE]
        assert selection.copay_text == "15.00"

    def test_empty_selection(self, scorer):
        selection = scorer.select([])[CareCategory.URGENT_CARE]
        assert selection.copay_text is None
        assert selection.coinsurance_text is None
