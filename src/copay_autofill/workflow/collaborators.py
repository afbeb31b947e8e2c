"""Outbound contract to the host page.

The state machine never touches the DOM. Everything it needs from the page
goes through a :class:`PageCollaborator`; any of these calls may be slow and
``request_navigation``, ``trigger_verification`` and
``write_fields_and_submit`` may tear down the process with a reload.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

from copay_autofill.models import Appointment, InsuranceLevel

NOTE_FORM = "chart_note"
INSURANCE_FORM = "insurance"

# Insurance form field names
COPAY_FIELD = "COPAY"
COINSURANCE_FIELD = "CO_INS"

# Chart note field names
MESSAGE_FIELD = "MESSAGE"
TYPE_FIELD = "TYPE"
FOR_SCHEDULING_FIELD = "FOR_SCHEDULING"
FOR_BILLING_FIELD = "FOR_BILLING"


class NavigationTarget(str, Enum):
    NEW_NOTE = "new_note"
    INSURANCE_INFORMATION = "insurance_information"
    INSURANCE_EDITOR_PRIMARY = "insurance_editor_primary"
    INSURANCE_EDITOR_SECONDARY = "insurance_editor_secondary"
    PATIENT_CHART = "patient_chart"

    @classmethod
    def editor_for(cls, level: InsuranceLevel) -> NavigationTarget:
        if level == InsuranceLevel.SECONDARY:
            return cls.INSURANCE_EDITOR_SECONDARY
        return cls.INSURANCE_EDITOR_PRIMARY


@runtime_checkable
class PageCollaborator(Protocol):
    """Page operations the workflow depends on but does not implement."""

    async def trigger_verification(self, level: InsuranceLevel) -> bool:
        """Start eligibility verification. False if the page has no control for *level*."""
        ...

    async def find_document_url(self, level: InsuranceLevel) -> str | None:
        """URL of the eligibility PDF once the page shows it, else None."""
        ...

    async def read_labeled_value(self, label: str) -> str | None:
        ...

    async def list_appointments(self) -> list[Appointment]:
        ...

    async def write_fields_and_submit(self, form: str, fields: dict[str, str]) -> None:
        ...

    async def request_navigation(self, target: NavigationTarget) -> None:
        ...

    async def report_status(self, title: str, detail: str) -> None:
        """Show a user-visible status message."""
        ...
