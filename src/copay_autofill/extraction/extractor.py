"""Turn normalized eligibility text into cost-share candidates."""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation

from copay_autofill.extraction.grammar import ParsedLine
from copay_autofill.insurers.registry import PatternRule
from copay_autofill.models import Candidate

log = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def parse_amount(amount_text: str) -> tuple[Decimal, bool] | None:
    """Parse ``"1,250.00"`` / ``"20%"`` into ``(amount, is_percentage)``.

    Returns None when the text is not a number.
    """
    cleaned = amount_text.replace(",", "").strip()
    is_percentage = cleaned.endswith("%")
    if is_percentage:
        cleaned = cleaned[:-1]
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount, is_percentage


class FieldExtractor:
    """Apply a rule set's grammars to normalized text.

    Args:
        max_matches_per_grammar: Lines taken from one grammar before the
            scan for that grammar stops.
        max_amount: Upper bound (inclusive) for a plausible amount.
    """

    def __init__(self, max_matches_per_grammar: int = 500, max_amount: int = 10_000) -> None:
        self._max_matches = max_matches_per_grammar
        self._max_amount = Decimal(max_amount)

    def extract(self, normalized_text: str, rule: PatternRule) -> list[Candidate]:
        """Return candidates from every grammar of *rule*, in grammar then text order."""
        candidates: list[Candidate] = []
        for index, grammar in enumerate(rule.grammars):
            taken = 0
            for line in grammar.scan(normalized_text):
                if taken >= self._max_matches:
                    log.warning(
                        "Grammar %d of %s hit the %d-match cap; remaining lines ignored",
                        index,
                        rule.name,
                        self._max_matches,
                    )
                    break
                taken += 1
                candidate = self._to_candidate(line)
                if candidate is not None:
                    candidates.append(candidate)
        log.debug("Rule set %s produced %d candidate(s)", rule.name, len(candidates))
        return candidates

    def _to_candidate(self, line: ParsedLine) -> Candidate | None:
        parsed = parse_amount(line.amount_text)
        if parsed is None:
            return None
        amount, is_percentage = parsed
        if amount < 0 or amount > self._max_amount:
            log.debug("Discarding out-of-range amount %s for %r", line.amount_text, line.service)
            return None
        return Candidate(
            service=line.service,
            details=line.details,
            amount=amount,
            is_percentage=is_percentage,
        )
