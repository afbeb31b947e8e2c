"""Durable WorkflowContext storage over a flat key-value backend.

Layout (every value JSON-encoded)::

    copayAutofill:state               "extracting_primary"
    copayAutofill:primaryCopay        "25.00" | null
    copayAutofill:primaryCoinsurance  "20" | null
    copayAutofill:urgentCopay         ...
    copayAutofill:urgentCoinsurance   ...
    copayAutofill:guarantorBalance    "$12.50"
    copayAutofill:nextAppointment     "01/05/2026 9:00 AM - Est - DR SMITH"
    copayAutofill:insuranceLevel      "primary"
    copayAutofill:retryCount          0
    copayAutofill:workflowId          "3f2a9c0d11be"
    copayAutofill:diagnostics         {"insurer": ..., "candidates": [...]} | null

The context is always read and written as a whole.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from copay_autofill.exceptions import PersistenceError
from copay_autofill.models import ExtractionResult, WorkflowContext
from copay_autofill.persistence.protocols import IPersistenceBackend

log = logging.getLogger(__name__)

STATE = "state"
PRIMARY_COPAY = "primaryCopay"
PRIMARY_COINSURANCE = "primaryCoinsurance"
URGENT_COPAY = "urgentCopay"
URGENT_COINSURANCE = "urgentCoinsurance"
GUARANTOR_BALANCE = "guarantorBalance"
NEXT_APPOINTMENT = "nextAppointment"
INSURANCE_LEVEL = "insuranceLevel"
RETRY_COUNT = "retryCount"
WORKFLOW_ID = "workflowId"
DIAGNOSTICS = "diagnostics"

ALL_KEYS = (
    STATE,
    PRIMARY_COPAY,
    PRIMARY_COINSURANCE,
    URGENT_COPAY,
    URGENT_COINSURANCE,
    GUARANTOR_BALANCE,
    NEXT_APPOINTMENT,
    INSURANCE_LEVEL,
    RETRY_COUNT,
    WORKFLOW_ID,
    DIAGNOSTICS,
)

_RESULT_FIELDS = {
    PRIMARY_COPAY: "primary_copay",
    PRIMARY_COINSURANCE: "primary_coinsurance",
    URGENT_COPAY: "urgent_copay",
    URGENT_COINSURANCE: "urgent_coinsurance",
}
_DIAGNOSTIC_FIELDS = {"insurer", "candidates", "scored", "used_default_fallback"}


class WorkflowStateStore:
    """Read, write and reset the persisted WorkflowContext."""

    def __init__(self, backend: IPersistenceBackend, namespace: str = "copayAutofill") -> None:
        self._backend = backend
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    def key(self, name: str) -> str:
        return f"{self._namespace}:{name}"

    def load(self) -> WorkflowContext:
        """Return the persisted context, or a fresh idle one if nothing is stored.

        Raises:
            PersistenceError: If a stored value is not valid JSON or does not
                describe a valid context.
        """
        if not self._backend.exists(self.key(STATE)):
            return WorkflowContext()

        raw = {name: self._read(name) for name in ALL_KEYS}
        try:
            return WorkflowContext(
                current_step=raw[STATE],
                extraction_result=self._result_from(raw),
                insurance_level=raw[INSURANCE_LEVEL] or "primary",
                guarantor_balance=raw[GUARANTOR_BALANCE] or "",
                next_appointment_summary=raw[NEXT_APPOINTMENT] or "No appointment found",
                retry_count=raw[RETRY_COUNT] or 0,
                workflow_id=raw[WORKFLOW_ID] or "",
            )
        except ValidationError as exc:
            raise PersistenceError(f"Stored workflow context is invalid: {exc}") from exc

    def save(self, ctx: WorkflowContext) -> None:
        result = ctx.extraction_result
        values: dict[str, Any] = {
            STATE: ctx.current_step.value,
            GUARANTOR_BALANCE: ctx.guarantor_balance,
            NEXT_APPOINTMENT: ctx.next_appointment_summary,
            INSURANCE_LEVEL: ctx.insurance_level.value,
            RETRY_COUNT: ctx.retry_count,
            WORKFLOW_ID: ctx.workflow_id,
            DIAGNOSTICS: None,
        }
        for name, attr in _RESULT_FIELDS.items():
            values[name] = getattr(result, attr) if result is not None else None
        if result is not None:
            values[DIAGNOSTICS] = result.model_dump(mode="json", include=_DIAGNOSTIC_FIELDS)

        for name, value in values.items():
            self._backend.save(self.key(name), json.dumps(value))
        log.debug("Saved workflow context at step %s", ctx.current_step.value)

    def clear(self) -> None:
        """Delete every key in the namespace."""
        prefix = self.key("")
        for key in self._backend.list_keys(prefix):
            self._backend.delete(key)
        log.debug("Cleared workflow context (%s*)", prefix)

    def _read(self, name: str) -> Any:
        key = self.key(name)
        if not self._backend.exists(key):
            return None
        data = self._backend.load(key)
        try:
            return json.loads(data)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupt value stored under {key}: {exc}") from exc

    @staticmethod
    def _result_from(raw: dict[str, Any]) -> ExtractionResult | None:
        diagnostics = raw[DIAGNOSTICS]
        fields = {attr: raw[name] for name, attr in _RESULT_FIELDS.items()}
        if diagnostics is None and all(value is None for value in fields.values()):
            return None
        payload = dict(diagnostics or {})
        payload.update(fields)
        return ExtractionResult.model_validate(payload)
