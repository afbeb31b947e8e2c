"""Per-step tracking using structlog contextvars.

Every log line emitted while a workflow step runs carries ``workflow_id``
and ``step``.

Usage::

    with track_step("a1b2c3", "extracting_primary") as timing:
        ...
    print(timing.duration_ms)
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator

import structlog

log = logging.getLogger(__name__)


@dataclass
class StepTiming:
    """Wall-clock timing of one step invocation."""

    workflow_id: str
    step: str
    started: float = 0.0
    duration_ms: float = 0.0
    succeeded: bool = False


@contextmanager
def track_step(workflow_id: str, step: str) -> Generator[StepTiming, None, None]:
    """Bind ``workflow_id``/``step`` to the log context for the duration of a step."""
    timing = StepTiming(workflow_id=workflow_id, step=step, started=time.monotonic())
    structlog.contextvars.bind_contextvars(workflow_id=workflow_id, step=step)
    try:
        yield timing
        timing.succeeded = True
    finally:
        timing.duration_ms = (time.monotonic() - timing.started) * 1000
        log.debug(
            "Step %s finished in %.0f ms (ok=%s)", step, timing.duration_ms, timing.succeeded
        )
        structlog.contextvars.unbind_contextvars("workflow_id", "step")
