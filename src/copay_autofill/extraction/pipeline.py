"""Eligibility text -> ExtractionResult.

Detects the insurer, scans its grammars, falls back to the default rule set
when the insurer-specific grammars find nothing, then scores and selects.

Usage::

    pipeline = ExtractionPipeline()
    result = pipeline.extract(pdf_text)
    print(result.primary_copay)   # "25.00"
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from copay_autofill.exceptions import NoCandidatesFound
from copay_autofill.extraction.extractor import FieldExtractor, normalize_whitespace
from copay_autofill.extraction.scorer import CandidateScorer
from copay_autofill.insurers.detector import InsurerDetector
from copay_autofill.models import CareCategory, ExtractionResult

if TYPE_CHECKING:
    from copay_autofill.core.config import ExtractionConfig
    from copay_autofill.insurers.registry import InsurerRegistry

log = logging.getLogger(__name__)


class ExtractionPipeline:
    """Pure function of the input text: same text, same result."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        registry: Optional[InsurerRegistry] = None,
    ) -> None:
        if config is None:
            from copay_autofill.core.config import ExtractionConfig

            config = ExtractionConfig()
        self._detector = InsurerDetector(registry)
        self._extractor = FieldExtractor(
            max_matches_per_grammar=config.max_matches_per_grammar,
            max_amount=config.max_amount,
        )

    @property
    def detector(self) -> InsurerDetector:
        return self._detector

    def extract(self, raw_text: str, *, require_candidates: bool = False) -> ExtractionResult:
        """Extract primary/urgent copay and coinsurance from *raw_text*.

        Args:
            raw_text: Text decoded from the eligibility document.
            require_candidates: Raise instead of returning an empty result
                when no grammar line is found.

        Raises:
            NoCandidatesFound: Only when ``require_candidates`` is set and
                neither the insurer nor the default grammars matched.
        """
        normalized = normalize_whitespace(raw_text)
        rule = self._detector.detect(raw_text)
        candidates = self._extractor.extract(normalized, rule)

        used_fallback = False
        default = self._detector.default
        if not candidates and rule is not default:
            log.info("No %s lines found; retrying with the default rule set", rule.name)
            candidates = self._extractor.extract(normalized, default)
            if candidates:
                rule = default
                used_fallback = True

        if not candidates and require_candidates:
            raise NoCandidatesFound(
                f"No cost-share lines recognized for insurer {rule.name}", insurer=rule.name
            )

        selections = CandidateScorer(rule).select(candidates)
        primary = selections[CareCategory.PRIMARY_CARE]
        urgent = selections[CareCategory.URGENT_CARE]
        scored = [s for s in (primary.winner, urgent.winner) if s is not None]

        result = ExtractionResult(
            insurer=rule.name,
            primary_copay=primary.copay_text,
            primary_coinsurance=primary.coinsurance_text,
            urgent_copay=urgent.copay_text,
            urgent_coinsurance=urgent.coinsurance_text,
            candidates=candidates,
            scored=scored,
            used_default_fallback=used_fallback,
        )
        if candidates and not result.has_any:
            log.warning(
                "%d %s lines found but none won a care category", len(candidates), rule.name
            )
        log.info(
            "Extraction (%s, %d candidates): %s", rule.name, len(candidates), result.summary()
        )
        return result
