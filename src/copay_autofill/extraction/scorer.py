"""Score candidates and pick the winning copay/coinsurance per care category.

Primary-care weights:

=====================================================  ======
Service equals a primary-care keyword                   +100
Details name a network indicator (once)                 +10
Details say ``PRIMARY CARE PHYSICIAN``                  +15
... else ``PRIMARY CARE`` or ``PCP``                    +5
Details say ``INFUSION``                                -50
Details say ``SPECIALIST``                              -100
Details say ``OFFICE VISIT``, ``CLINIC``, ``HOME VISIT``  +20
Details say ``PREFERRED`` / else ``PARTICIPATING``      +3 / +1
=====================================================  ======

Urgent care only uses the network and preferred/participating weights.
Each care category has one winner: the highest score of zero or more. A dollar
winner fills the copay field, a percentage winner the coinsurance field, and
the other field stays empty. Negative scores never win, and a line that
mentions ``SPECIALIST`` is never a primary-care winner.
Ties keep the first candidate seen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from copay_autofill.insurers.registry import PatternRule
from copay_autofill.models import (
    Candidate,
    CareCategory,
    ScoredCandidate,
    format_money,
    format_percent,
)

log = logging.getLogger(__name__)

EXACT_MATCH = 100
NETWORK = 10
PRIMARY_CARE_PHYSICIAN = 15
PRIMARY_CARE_MENTION = 5
INFUSION_PENALTY = -50
SPECIALIST_PENALTY = -100
OFFICE_SETTING = 20
PREFERRED = 3
PARTICIPATING = 1

# Best score before any candidate is offered; a winner must beat it.
NO_WINNER_SCORE = -1

_OFFICE_TERMS = ("OFFICE VISIT", "CLINIC", "HOME VISIT")


@dataclass
class Selection:
    """Winning candidate for one care category.

    A single contest decides the category; the winner fills the copay field
    or the coinsurance field depending on ``is_percentage``.
    """

    winner: Optional[ScoredCandidate] = None

    def offer(self, scored: ScoredCandidate) -> None:
        if scored.score <= NO_WINNER_SCORE:
            return
        if self.winner is None or scored.score > self.winner.score:
            self.winner = scored

    @property
    def copay(self) -> Optional[ScoredCandidate]:
        if self.winner is not None and not self.winner.candidate.is_percentage:
            return self.winner
        return None

    @property
    def coinsurance(self) -> Optional[ScoredCandidate]:
        if self.winner is not None and self.winner.candidate.is_percentage:
            return self.winner
        return None

    @property
    def copay_text(self) -> Optional[str]:
        return format_money(self.copay.candidate.amount) if self.copay else None

    @property
    def coinsurance_text(self) -> Optional[str]:
        return format_percent(self.coinsurance.candidate.amount) if self.coinsurance else None


def _contains_any(haystack_upper: str, needles: Iterable[str]) -> bool:
    return any(needle.upper() in haystack_upper for needle in needles)


def _is_specialist(candidate: Candidate) -> bool:
    # Flat lines keep the bracketed details inside the service text.
    return "SPECIALIST" in candidate.service.upper() or "SPECIALIST" in candidate.details.upper()


class CandidateScorer:
    """Rank candidates against one insurer's keyword lists."""

    def __init__(self, rule: PatternRule) -> None:
        self._rule = rule

    def score_primary(self, candidate: Candidate) -> Optional[ScoredCandidate]:
        """Score a primary-care candidate, or None if its service is not primary care."""
        service = candidate.service.upper()
        if not _contains_any(service, self._rule.primary_care_keywords):
            return None

        details = candidate.details.upper()
        exact = any(service == keyword.upper() for keyword in self._rule.primary_care_keywords)
        score = EXACT_MATCH if exact else 0
        score += self._network_score(details)

        if "PRIMARY CARE PHYSICIAN" in details:
            score += PRIMARY_CARE_PHYSICIAN
        elif "PRIMARY CARE" in details or "PCP" in details:
            score += PRIMARY_CARE_MENTION

        if "INFUSION" in details:
            score += INFUSION_PENALTY
        if "SPECIALIST" in details:
            score += SPECIALIST_PENALTY
        if _contains_any(details, _OFFICE_TERMS):
            score += OFFICE_SETTING

        score += self._preference_score(details)
        return ScoredCandidate(
            candidate=candidate,
            category=CareCategory.PRIMARY_CARE,
            score=score,
            exact_match=exact,
        )

    def score_urgent(self, candidate: Candidate) -> Optional[ScoredCandidate]:
        """Score an urgent-care candidate, or None if its service is not urgent care."""
        if not _contains_any(candidate.service.upper(), self._rule.urgent_care_keywords):
            return None
        details = candidate.details.upper()
        score = self._network_score(details) + self._preference_score(details)
        return ScoredCandidate(
            candidate=candidate, category=CareCategory.URGENT_CARE, score=score
        )

    def select(self, candidates: Iterable[Candidate]) -> dict[CareCategory, Selection]:
        """Pick the winning candidate for both care categories."""
        selections = {
            CareCategory.PRIMARY_CARE: Selection(),
            CareCategory.URGENT_CARE: Selection(),
        }
        for candidate in candidates:
            primary = self.score_primary(candidate)
            if primary is not None and _is_specialist(candidate):
                log.debug("Excluding specialist line %r [%s]", candidate.service, candidate.details)
            elif primary is not None:
                log.debug(
                    "Primary care candidate %r [%s] score=%d%s amount=%s",
                    candidate.service,
                    candidate.details,
                    primary.score,
                    " (exact)" if primary.exact_match else "",
                    candidate.display_amount(),
                )
                selections[CareCategory.PRIMARY_CARE].offer(primary)
            urgent = self.score_urgent(candidate)
            if urgent is not None:
                selections[CareCategory.URGENT_CARE].offer(urgent)
        return selections

    def _network_score(self, details_upper: str) -> int:
        return NETWORK if _contains_any(details_upper, self._rule.network_indicators) else 0

    @staticmethod
    def _preference_score(details_upper: str) -> int:
        if "PREFERRED" in details_upper:
            return PREFERRED
        if "PARTICIPATING" in details_upper:
            return PARTICIPATING
        return 0
