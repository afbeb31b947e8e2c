"""In-process workflow flags: reentrancy guard and cooperative stop.

Nothing here survives a page reload. The machine resets the runtime when a
workflow starts and clears it when the workflow ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from copay_autofill.models import WorkflowStep

log = logging.getLogger(__name__)


@dataclass
class WorkflowRuntime:
    """Process-wide mutable state of the running workflow.

    Background callers (periodic UI checks and the like) should test
    :attr:`busy` before doing any work.
    """

    active_step: Optional[WorkflowStep] = None
    stop_requested: bool = False

    @property
    def busy(self) -> bool:
        return self.active_step is not None

    def try_enter(self, step: WorkflowStep) -> bool:
        """Claim the guard for *step*. False if another step is in flight."""
        if self.active_step is not None:
            log.debug("Step %s still in flight; dropping %s", self.active_step.value, step.value)
            return False
        self.active_step = step
        return True

    def switch(self, step: WorkflowStep) -> None:
        """Record that the in-flight run moved on to *step* without reloading."""
        self.active_step = step

    def leave(self) -> None:
        self.active_step = None

    def request_stop(self) -> None:
        self.stop_requested = True

    def reset(self) -> None:
        self.active_step = None
        self.stop_requested = False
