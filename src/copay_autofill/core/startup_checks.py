"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from copay_autofill.core.config import AppSettings

log = logging.getLogger(__name__)


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_fetch(settings)
    _check_workflow(settings)
    _check_extraction(settings)


def _check_fetch(settings: AppSettings) -> None:
    fetch = settings.fetch
    if fetch.attempts < 1:
        raise ValueError("COPAY_FETCH_ATTEMPTS must be at least 1.")
    if fetch.backoff < 1.0:
        raise ValueError(
            f"COPAY_FETCH_BACKOFF={fetch.backoff} would shrink the retry delay. Use a value >= 1."
        )
    if fetch.timeout_per_attempt_seconds <= 0 or fetch.initial_delay_seconds < 0:
        raise ValueError("COPAY_FETCH_* timeouts and delays must be positive.")


def _check_workflow(settings: AppSettings) -> None:
    wf = settings.workflow
    if wf.max_resume_attempts < 1:
        raise ValueError("COPAY_WORKFLOW_MAX_RESUME_ATTEMPTS must be at least 1.")
    for name in (
        "element_poll_interval",
        "element_wait_timeout",
        "document_poll_interval",
        "document_wait_timeout",
    ):
        if getattr(wf, name) <= 0:
            raise ValueError(f"COPAY_WORKFLOW_{name.upper()} must be greater than zero.")
    if wf.document_poll_interval > wf.document_wait_timeout:
        log.warning(
            "COPAY_WORKFLOW_DOCUMENT_POLL_INTERVAL exceeds the wait timeout; "
            "the document link will be checked only once."
        )


def _check_extraction(settings: AppSettings) -> None:
    if settings.extraction.max_matches_per_grammar < 1:
        raise ValueError("COPAY_EXTRACTION_MAX_MATCHES_PER_GRAMMAR must be at least 1.")
    if settings.extraction.max_amount <= 0:
        raise ValueError("COPAY_EXTRACTION_MAX_AMOUNT must be greater than zero.")
