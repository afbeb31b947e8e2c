"""Shared fixtures for copay-autofill tests."""

from __future__ import annotations

import pytest

from copay_autofill.core.config import ExtractionConfig, WorkflowConfig
from copay_autofill.extraction.pipeline import ExtractionPipeline
from copay_autofill.persistence.memory_backend import MemoryPersistenceBackend
from copay_autofill.workflow.store import WorkflowStateStore


@pytest.fixture
def extraction_config() -> ExtractionConfig:
    return ExtractionConfig()


@pytest.fixture
def pipeline(extraction_config: ExtractionConfig) -> ExtractionPipeline:
    return ExtractionPipeline(extraction_config)


@pytest.fixture
def workflow_config() -> WorkflowConfig:
    """Short polling windows so waits resolve in milliseconds."""
    return WorkflowConfig(
        element_poll_interval=0.001,
        element_wait_timeout=0.01,
        document_poll_interval=0.001,
        document_wait_timeout=0.01,
    )


@pytest.fixture
def backend() -> MemoryPersistenceBackend:
    return MemoryPersistenceBackend()


@pytest.fixture
def store(backend: MemoryPersistenceBackend) -> WorkflowStateStore:
    return WorkflowStateStore(backend)
