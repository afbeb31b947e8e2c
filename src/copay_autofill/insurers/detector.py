"""Insurer detection from raw eligibility text."""

from __future__ import annotations

import logging
from typing import Optional

from copay_autofill.insurers.registry import InsurerRegistry, PatternRule, get_registry

log = logging.getLogger(__name__)


class InsurerDetector:
    """Pick the rule set for a document. Pure and total: never raises."""

    def __init__(self, registry: Optional[InsurerRegistry] = None) -> None:
        self._registry = registry or get_registry()

    @property
    def default(self) -> PatternRule:
        return self._registry.default

    def detect(self, raw_text: str) -> PatternRule:
        rule = self._registry.detect(raw_text)
        log.debug("Detected insurer rule set: %s", rule.name)
        return rule


def detect_insurer(raw_text: str) -> PatternRule:
    """Detect against the process-wide registry."""
    return get_registry().detect(raw_text)
