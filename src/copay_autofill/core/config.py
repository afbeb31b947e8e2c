"""Nested pydantic-settings configuration for the application.

Each group reads its own ``COPAY_<GROUP>_*`` env vars::

    export COPAY_FETCH_ATTEMPTS=8
    export COPAY_WORKFLOW_ENABLE_NOTES=false
    export COPAY_PERSISTENCE_BACKEND=file
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class FetchConfig(BaseSettings):
    """Eligibility document download configuration.

    Env vars use ``COPAY_FETCH_`` prefix.
    """

    model_config = {"env_prefix": "COPAY_FETCH_"}

    attempts: int = 6
    initial_delay_seconds: float = 0.5
    backoff: float = 1.6
    timeout_per_attempt_seconds: float = 12.0
    cache_bust: bool = True


class ExtractionConfig(BaseSettings):
    """Grammar scanning limits.

    Env vars use ``COPAY_EXTRACTION_`` prefix.
    """

    model_config = {"env_prefix": "COPAY_EXTRACTION_"}

    max_matches_per_grammar: int = 500
    max_amount: int = 10_000


class WorkflowConfig(BaseSettings):
    """State machine timing and note options.

    Env vars use ``COPAY_WORKFLOW_`` prefix.
    """

    model_config = {"env_prefix": "COPAY_WORKFLOW_"}

    max_resume_attempts: int = 3
    element_poll_interval: float = 0.2
    element_wait_timeout: float = 10.0
    document_poll_interval: float = 2.0
    document_wait_timeout: float = 45.0

    # ── Chart note ───────────────────────────────────────────────────
    enable_notes: bool = True
    note_on_scheduling: bool = True
    note_on_billing: bool = True

    # ── Balance lookup ───────────────────────────────────────────────
    balance_label: str = "Guarantor Balance"
    default_balance: str = "$0.00"


class PersistenceConfig(BaseSettings):
    """Workflow state persistence configuration.

    Env vars use ``COPAY_PERSISTENCE_`` prefix.
    """

    model_config = {"env_prefix": "COPAY_PERSISTENCE_"}

    backend: Literal["memory", "file"] = "file"
    store_path: Path = Path("./.copay_state")
    namespace: str = Field(default="copayAutofill", min_length=1)


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Env vars use ``COPAY_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "COPAY_OBSERVABILITY_"}

    log_level: str = "INFO"


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs."""

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
