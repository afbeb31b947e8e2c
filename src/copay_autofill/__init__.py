"""copay-autofill: eligibility PDF cost-share extraction and a reload-surviving
verification workflow.

Usage::

    from copay_autofill import ExtractionPipeline

    result = ExtractionPipeline().extract(pdf_text)
    print(result.primary_copay, result.urgent_copay)

Workflow::

    from copay_autofill import (
        AppSettings, WorkflowStateMachine, WorkflowStateStore, create_backend,
    )
"""

from __future__ import annotations

from copay_autofill.core.config import AppSettings
from copay_autofill.documents.source import DocumentTextSource
from copay_autofill.exceptions import CopayError
from copay_autofill.extraction.pipeline import ExtractionPipeline
from copay_autofill.insurers.registry import PatternRule, get_registry
from copay_autofill.models import (
    Appointment,
    Candidate,
    ExtractionResult,
    InsuranceLevel,
    WorkflowContext,
    WorkflowStep,
)
from copay_autofill.persistence import create_backend
from copay_autofill.workflow.collaborators import NavigationTarget, PageCollaborator
from copay_autofill.workflow.machine import ResumeOutcome, ResumeReport, WorkflowStateMachine
from copay_autofill.workflow.runtime import WorkflowRuntime
from copay_autofill.workflow.store import WorkflowStateStore

__version__ = "0.1.0"

__all__ = [
    "AppSettings",
    "Appointment",
    "Candidate",
    "CopayError",
    "DocumentTextSource",
    "ExtractionPipeline",
    "ExtractionResult",
    "InsuranceLevel",
    "NavigationTarget",
    "PageCollaborator",
    "PatternRule",
    "ResumeOutcome",
    "ResumeReport",
    "WorkflowContext",
    "WorkflowRuntime",
    "WorkflowStateMachine",
    "WorkflowStateStore",
    "WorkflowStep",
    "create_backend",
    "get_registry",
]
