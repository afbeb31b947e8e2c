"""Insurer rule tables: grammars, keywords and detection fingerprints.

Bracketed lines look like ``SERVICE[DETAIL]:$AMOUNT``; payers that print a
sequence number or a benefit code inside the brackets get dedicated
grammars. Keyword matching is case-insensitive everywhere.
"""

from __future__ import annotations

from copay_autofill.extraction.grammar import AMOUNT, Grammar, bracketed, simple
from copay_autofill.insurers.registry import InsurerRegistry, PatternRule, tokens

# ``Service[Seq#12 DETAIL]:$AMOUNT``
SEQUENCED_PATTERN = r"([^\[\]]+)\[Seq#\d+\s+([^\]]+)\]:" + AMOUNT

# ``Service[DETAIL (CODE) ... IN NETWORK ...]:$AMOUNT``
CODED_IN_NETWORK_PATTERN = (
    r"([^\[\]]+)\[([^\]]+)\s+\((\d+)\)[^\]]*IN NETWORK[^\]]*\]:" + AMOUNT
)

# ``Heading: stray text [DETAIL]:$AMOUNT``
HEADED_BRACKET_PATTERN = r"([^\[\]:]+):\s*[^\[\]]*\[([^\]]+)\]:" + AMOUNT

# ``Service:$AMOUNT`` where the service holds no brackets
PLAIN_SERVICE_PATTERN = r"([^:\[\]]+):" + AMOUNT


DEFAULT = PatternRule(
    name="DEFAULT",
    grammars=(bracketed(), simple()),
    network_indicators=(
        "PREFERRED",
        "PARTICIPATING",
        "IN NETWORK",
        "IN-NETWORK",
        "BCBS PROVIDERS",
        "IN NET",
        "UHC CHOICE",
        "JOHNS HOPKINS",
        "VARIES BY LOCATION",
        "VARIES BY PRACTITIONER",
    ),
    primary_care_keywords=(
        "Professional (Physician) Visit - Office",
        "Professional (Physician) Visit-Office",
        "PRIMARY CARE",
        "PCP",
        "Office Visit",
        "Primary care",
        "Physician Visit",
        "PHYSICIAN OFFICE VISIT PCP",
        "Primary Care Physician",
        "PRIMARY CARE PHYSICIAN SERVICES",
        "PHYSICIAN SERVICES",
    ),
    urgent_care_keywords=(
        "Emergency Room",
        "Urgent Care",
        "URGENT CARE",
        "PHYSICIAN OFFICE URGENT CARE",
    ),
)

ALLEGIANCE = PatternRule(
    name="ALLEGIANCE",
    grammars=(bracketed(),),
    network_indicators=("JOHNS HOPKINS", "IN NETWORK"),
    primary_care_keywords=("PCP", "Office Visit", "Professional (Physician) Visit - Office"),
    urgent_care_keywords=("Urgent Care",),
)

UNITED = PatternRule(
    name="UNITED",
    grammars=(bracketed("UHC"), bracketed("OFFICE VISIT"), simple()),
    network_indicators=("UHC CHOICE", "IN NETWORK"),
    primary_care_keywords=(
        "PCP OFFICE VISIT",
        "Professional (Physician) Visit - Office",
        "OFFICE VISIT PRIMARY",
    ),
    urgent_care_keywords=("Urgent Care",),
)

CIGNA = PatternRule(
    name="CIGNA",
    grammars=(Grammar(SEQUENCED_PATTERN),),
    network_indicators=("IN NETWORK", "PARTICIPATING"),
    primary_care_keywords=("PHYSICIAN OFFICE VISIT PCP", "PRIMARY CARE", "PCP"),
    urgent_care_keywords=("PHYSICIAN OFFICE URGENT CARE", "URGENT CARE"),
)

HUMANA = PatternRule(
    name="HUMANA",
    grammars=(Grammar(SEQUENCED_PATTERN),),
    network_indicators=("IN NETWORK", "PARTICIPATING"),
    primary_care_keywords=("PHYSICIAN OFFICE VISIT PCP", "PRIMARY CARE"),
    urgent_care_keywords=("PHYSICIAN OFFICE URGENT CARE", "URGENT CARE"),
)

CAREFIRST = PatternRule(
    name="CAREFIRST",
    grammars=(
        bracketed("BCBS PROVIDERS"),
        Grammar(CODED_IN_NETWORK_PATTERN),
        bracketed(),
        Grammar(HEADED_BRACKET_PATTERN),
    ),
    network_indicators=("BCBS PROVIDERS", "IN NETWORK", "BLUECHOICE"),
    primary_care_keywords=(
        "Physician Visit - Office",
        "Professional (Physician) Visit - Office",
        "PRIMARY CARE PHYSICIAN",
        "PCP",
        "OFFICE VISIT",
    ),
    urgent_care_keywords=("Urgent Care", "URGENT CARE"),
)

SUREST = PatternRule(
    name="SUREST",
    grammars=(Grammar(PLAIN_SERVICE_PATTERN), bracketed("VARIES BY")),
    network_indicators=("VARIES BY LOCATION", "VARIES BY PRACTITIONER"),
    primary_care_keywords=(
        "Physician Visit - Office: Sick",
        "Physician Visit - Office: Well",
        "Office Visit",
    ),
    urgent_care_keywords=("Urgent Care",),
)

TRICARE = PatternRule(
    name="TRICARE",
    grammars=(simple(),),
    network_indicators=("IN NETWORK",),
    primary_care_keywords=("Professional (Physician) Visit - Office",),
    urgent_care_keywords=("Urgent Care",),
)

AETNA = PatternRule(
    name="AETNA",
    grammars=(bracketed(), simple()),
    network_indicators=("IN NETWORK", "PARTICIPATING"),
    primary_care_keywords=("PCP", "Primary Care", "Professional (Physician) Visit - Office"),
    urgent_care_keywords=("Urgent Care",),
)


# Detection order matters: the sequenced and coded layouts carry tokens
# that also appear in broader fingerprints further down.
DETECTION_ORDER = (
    (tokens("CIGNA HEALTHSPRING", ("CIGNA", "SEQ#")), CIGNA),
    (tokens(("HUMANA", "SEQ#")), HUMANA),
    (tokens("CAREFIRST", "BCBS PROVIDERS"), CAREFIRST),
    (tokens("UNITED HEALTHCARE", "UHC CHOICE", "ALL SAVERS"), UNITED),
    (tokens("SUREST", "VARIES BY LOCATION"), SUREST),
    (tokens("TRICARE"), TRICARE),
    (tokens("AETNA"), AETNA),
    (tokens("ALLEGIANCE"), ALLEGIANCE),
)


def build_registry() -> InsurerRegistry:
    """Create a registry populated with every known insurer."""
    registry = InsurerRegistry(default=DEFAULT)
    for fingerprint, rule in DETECTION_ORDER:
        registry.register(fingerprint, rule)
    return registry
