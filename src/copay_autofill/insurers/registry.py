"""Ordered registry of insurer rule sets.

Each registered entry pairs a :class:`Fingerprint` (which tokens identify the
insurer in the raw document text) with a :class:`PatternRule` (which
grammars and keyword lists extract and score its lines). Entries are tried in
registration order; the first fingerprint that matches wins, otherwise the
default rule set applies.

Usage::

    from copay_autofill.insurers.registry import get_registry

    registry = get_registry()
    rule = registry.detect(raw_text)
    print(rule.name)                 # "CIGNA"
    print(registry.names())          # ["CIGNA", "HUMANA", ...]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from copay_autofill.extraction.grammar import Grammar

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternRule:
    """Grammars and keyword lists for one insurer's document layout."""

    name: str
    grammars: tuple[Grammar, ...]
    network_indicators: tuple[str, ...] = ()
    primary_care_keywords: tuple[str, ...] = ()
    urgent_care_keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class Fingerprint:
    """Token sets identifying an insurer.

    ``any_of`` holds alternatives; each alternative is a tuple of tokens
    that must all appear in the uppercased text.
    """

    any_of: tuple[tuple[str, ...], ...]

    def __post_init__(self) -> None:
        normalized = tuple(tuple(token.upper() for token in group) for group in self.any_of)
        object.__setattr__(self, "any_of", normalized)

    def matches(self, upper_text: str) -> bool:
        return any(all(token in upper_text for token in group) for group in self.any_of)


def tokens(*alternatives: str | tuple[str, ...]) -> Fingerprint:
    """Build a fingerprint: bare strings are single-token alternatives."""
    groups = tuple((alt,) if isinstance(alt, str) else tuple(alt) for alt in alternatives)
    return Fingerprint(any_of=groups)


class InsurerRegistry:
    """Ordered ``(fingerprint, rule)`` pairs plus one default rule."""

    def __init__(self, default: PatternRule) -> None:
        self._default = default
        self._entries: list[tuple[Fingerprint, PatternRule]] = []

    @property
    def default(self) -> PatternRule:
        return self._default

    def register(self, fingerprint: Fingerprint, rule: PatternRule) -> None:
        """Append a rule set; earlier registrations take precedence."""
        if any(existing.name == rule.name for _, existing in self._entries):
            log.warning("Insurer %r already registered, adding another fingerprint", rule.name)
        self._entries.append((fingerprint, rule))
        log.debug("Registered insurer rule set: %s", rule.name)

    def detect(self, raw_text: str) -> PatternRule:
        """Return the first rule set whose fingerprint matches *raw_text*."""
        upper = raw_text.upper()
        for fingerprint, rule in self._entries:
            if fingerprint.matches(upper):
                return rule
        return self._default

    def get(self, name: str) -> PatternRule:
        """Get a rule set by name (case-insensitive).

        Raises:
            KeyError: If no rule set has that name.
        """
        wanted = name.upper()
        if wanted == self._default.name:
            return self._default
        for _, rule in self._entries:
            if rule.name == wanted:
                return rule
        raise KeyError(f"Insurer {name!r} not found. Available: {self.names()}")

    def names(self) -> list[str]:
        """Registered rule-set names in detection order, without duplicates."""
        seen: list[str] = []
        for _, rule in self._entries:
            if rule.name not in seen:
                seen.append(rule.name)
        return seen


# ── Module-level singleton ──────────────────────────────────────────

_global_registry: InsurerRegistry | None = None


def get_registry() -> InsurerRegistry:
    """Return the process-wide registry, populated on first call."""
    global _global_registry
    if _global_registry is None:
        from copay_autofill.insurers.patterns import build_registry

        _global_registry = build_registry()
    return _global_registry
