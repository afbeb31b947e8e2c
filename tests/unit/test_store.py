"""Tests for the persisted WorkflowContext layout."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from copay_autofill.exceptions import PersistenceError
from copay_autofill.models import (
    Candidate,
    ExtractionResult,
    InsuranceLevel,
    WorkflowContext,
    WorkflowStep,
)
from copay_autofill.workflow.store import WorkflowStateStore


def _context() -> WorkflowContext:
    return WorkflowContext(
        current_step=WorkflowStep.FILLING_NOTE,
        extraction_result=ExtractionResult(
            insurer="AETNA",
            primary_copay="25.00",
            urgent_coinsurance="20",
            candidates=[Candidate(service="PCP", details="IN NETWORK", amount=Decimal("25.00"))],
        ),
        insurance_level=InsuranceLevel.SECONDARY,
        guarantor_balance="$12.50",
        next_appointment_summary="01/05/2026 9:00 AM - Est - DR SMITH",
        retry_count=2,
        workflow_id="abc123",
    )


class TestRoundTrip:
    def test_field_for_field_equal(self, store):
        ctx = _context()
        store.save(ctx)
        assert store.load() == ctx

    def test_without_extraction_result(self, store):
        ctx = WorkflowContext(current_step=WorkflowStep.EXTRACTING_PRIMARY, workflow_id="w1")
        store.save(ctx)
        loaded = store.load()
        assert loaded == ctx
        assert loaded.extraction_result is None

    def test_empty_result_is_preserved(self, store):
        ctx = WorkflowContext(
            current_step=WorkflowStep.VERIFYING_SECONDARY,
            extraction_result=ExtractionResult(insurer="TRICARE"),
        )
        store.save(ctx)
        assert store.load().extraction_result == ExtractionResult(insurer="TRICARE")

    def test_nothing_stored_is_idle(self, store):
        assert store.load().current_step == WorkflowStep.IDLE


class TestLayout:
    def test_namespaced_json_values(self, store, backend):
        store.save(_context())
        assert json.loads(backend.load("copayAutofill:state")) == "filling_note"
        assert json.loads(backend.load("copayAutofill:primaryCopay")) == "25.00"
        assert json.loads(backend.load("copayAutofill:primaryCoinsurance")) is None
        assert json.loads(backend.load("copayAutofill:insuranceLevel")) == "secondary"
        assert json.loads(backend.load("copayAutofill:retryCount")) == 2
        diagnostics = json.loads(backend.load("copayAutofill:diagnostics"))
        assert diagnostics["insurer"] == "AETNA"
        assert diagnostics["candidates"][0]["service"] == "PCP"

    def test_custom_namespace(self, backend):
        WorkflowStateStore(backend, namespace="alt").save(_context())
        assert backend.exists("alt:state")
        assert not backend.exists("copayAutofill:state")

    def test_clear_removes_every_key(self, store, backend):
        store.save(_context())
        backend.save("unrelated", "1")
        store.clear()
        assert backend.list_keys("copayAutofill:") == []
        assert backend.exists("unrelated")


class TestCorruption:
    def test_invalid_json(self, store, backend):
        store.save(_context())
        backend.save("copayAutofill:retryCount", "{not json")
        with pytest.raises(PersistenceError, match="retryCount"):
            store.load()

    def test_unknown_step(self, store, backend):
        store.save(_context())
        backend.save("copayAutofill:state", '"dancing"')
        with pytest.raises(PersistenceError):
            store.load()
