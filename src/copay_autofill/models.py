"""Pydantic data models for copay-autofill.

Extraction models (``Candidate``, ``ScoredCandidate``, ``ExtractionResult``)
describe what the parsing engine finds in an eligibility document.
``WorkflowContext`` is the durable snapshot the state machine carries
across page reloads.
"""

from __future__ import annotations

import uuid
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_CENTS = Decimal("0.01")
_WHOLE = Decimal("1")

# ── Enums ────────────────────────────────────────────────────────────


class WorkflowStep(str, Enum):
    """Named steps of the verification workflow, in execution order."""

    IDLE = "idle"
    VERIFYING_PRIMARY = "verifying_primary"
    EXTRACTING_PRIMARY = "extracting_primary"
    VERIFYING_SECONDARY = "verifying_secondary"
    EXTRACTING_SECONDARY = "extracting_secondary"
    RECORDING_BALANCE = "recording_balance"
    CREATING_NOTE = "creating_note"
    FILLING_NOTE = "filling_note"
    NAVIGATING_TO_FORM = "navigating_to_form"
    OPENING_FORM_EDITOR = "opening_form_editor"
    FILLING_AND_SAVING = "filling_and_saving"
    RETURNING_HOME = "returning_home"


class InsuranceLevel(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class CareCategory(str, Enum):
    PRIMARY_CARE = "primary_care"
    URGENT_CARE = "urgent_care"


# ── Extraction models ────────────────────────────────────────────────


class Candidate(BaseModel):
    """One grammar match: a service line with its cost-share amount."""

    model_config = {"frozen": True}

    service: str
    details: str = ""
    amount: Decimal = Field(ge=0)
    is_percentage: bool = False

    def display_amount(self) -> str:
        """``$25.00`` for copays, ``20%`` for coinsurance."""
        if self.is_percentage:
            return f"{format_percent(self.amount)}%"
        return f"${format_money(self.amount)}"


class ScoredCandidate(BaseModel):
    """A candidate with its selection score for one care category."""

    candidate: Candidate
    category: CareCategory
    score: int
    exact_match: bool = False


class ExtractionResult(BaseModel):
    """Cost-share figures found in one eligibility document."""

    insurer: str = "DEFAULT"
    primary_copay: Optional[str] = None
    primary_coinsurance: Optional[str] = None
    urgent_copay: Optional[str] = None
    urgent_coinsurance: Optional[str] = None
    candidates: list[Candidate] = Field(default_factory=list)
    scored: list[ScoredCandidate] = Field(default_factory=list)
    used_default_fallback: bool = False

    @property
    def has_primary(self) -> bool:
        return self.primary_copay is not None or self.primary_coinsurance is not None

    @property
    def has_any(self) -> bool:
        return self.has_primary or (
            self.urgent_copay is not None or self.urgent_coinsurance is not None
        )

    def summary(self) -> str:
        parts = []
        if self.primary_copay is not None:
            parts.append(f"Primary Copay: ${self.primary_copay}")
        if self.primary_coinsurance is not None:
            parts.append(f"Primary Coinsurance: {self.primary_coinsurance}%")
        if self.urgent_copay is not None:
            parts.append(f"Urgent Copay: ${self.urgent_copay}")
        if self.urgent_coinsurance is not None:
            parts.append(f"Urgent Coinsurance: {self.urgent_coinsurance}%")
        return ", ".join(parts) if parts else "No copay/coinsurance found"


# ── Workflow models ──────────────────────────────────────────────────


class Appointment(BaseModel):
    """One row of the patient's appointment list, as read from the page."""

    starts_at_text: str
    appointment_type: str
    resource: str = ""


class WorkflowContext(BaseModel):
    """Serializable state carried across full page reloads."""

    current_step: WorkflowStep = WorkflowStep.IDLE
    extraction_result: Optional[ExtractionResult] = None
    insurance_level: InsuranceLevel = InsuranceLevel.PRIMARY
    guarantor_balance: str = ""
    next_appointment_summary: str = "No appointment found"
    retry_count: int = Field(default=0, ge=0)
    workflow_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])

    @field_validator("workflow_id")
    @classmethod
    def _non_empty_id(cls, value: str) -> str:
        return value or uuid.uuid4().hex[:12]

    @property
    def is_idle(self) -> bool:
        return self.current_step == WorkflowStep.IDLE

    def ensure_result(self) -> ExtractionResult:
        """Return the extraction result, creating an empty one if missing."""
        if self.extraction_result is None:
            self.extraction_result = ExtractionResult()
        return self.extraction_result


# ── Amount formatting ────────────────────────────────────────────────


def format_money(amount: Decimal) -> str:
    """Two decimal places, half-up: ``Decimal("25")`` -> ``"25.00"``."""
    return str(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_percent(amount: Decimal) -> str:
    """Whole percent, half-up: ``Decimal("20.5")`` -> ``"21"``."""
    return str(amount.quantize(_WHOLE, rounding=ROUND_HALF_UP))
