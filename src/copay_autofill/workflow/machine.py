"""Durable, reload-surviving verification workflow.

The host page performs full navigations that destroy the running process, so
the pending computation lives entirely in the persisted
:class:`~copay_autofill.models.WorkflowContext`. Each page load calls
:meth:`WorkflowStateMachine.resume`, which reads the context and dispatches
the step it names::

    idle -> verifying_primary -> extracting_primary
         -> [verifying_secondary -> extracting_secondary]
         -> recording_balance -> [creating_note -> filling_note]
         -> navigating_to_form -> opening_form_editor -> filling_and_saving
         -> returning_home -> idle

A step either finishes in-process and names its successor
(:attr:`StepOutcome.CONTINUE`) or persists its successor *before* invoking a
page action that reloads (:attr:`StepOutcome.AWAIT_RELOAD`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

from copay_autofill.core.config import WorkflowConfig
from copay_autofill.core.run_tracker import track_step
from copay_autofill.exceptions import (
    ElementWaitTimeout,
    WorkflowCancelled,
    WorkflowError,
    WorkflowMaxRetriesExceeded,
)
from copay_autofill.extraction.pipeline import ExtractionPipeline
from copay_autofill.models import (
    ExtractionResult,
    InsuranceLevel,
    WorkflowContext,
    WorkflowStep,
)
from copay_autofill.workflow.collaborators import (
    COINSURANCE_FIELD,
    COPAY_FIELD,
    FOR_BILLING_FIELD,
    FOR_SCHEDULING_FIELD,
    INSURANCE_FORM,
    MESSAGE_FIELD,
    NOTE_FORM,
    TYPE_FIELD,
    NavigationTarget,
    PageCollaborator,
)
from copay_autofill.workflow.note import (
    extract_balance,
    format_note,
    summarize_next_appointment,
)
from copay_autofill.workflow.runtime import WorkflowRuntime
from copay_autofill.workflow.store import WorkflowStateStore
from copay_autofill.workflow.waiting import wait_until

log = logging.getLogger(__name__)

STATUS_TITLE = "Copay Autofill"


class TextFetcher(Protocol):
    async def fetch_and_extract_text(self, url: str) -> str: ...


class StepOutcome(str, Enum):
    CONTINUE = "continue"
    AWAIT_RELOAD = "await_reload"
    FINISHED = "finished"


class ResumeOutcome(str, Enum):
    IDLE = "idle"
    DROPPED = "dropped"
    AWAITING_RELOAD = "awaiting_reload"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    MAX_RETRIES_EXCEEDED = "max_retries_exceeded"


@dataclass
class ResumeReport:
    """What one ``start()``/``resume()`` call did."""

    outcome: ResumeOutcome
    steps: list[WorkflowStep] = field(default_factory=list)
    message: str = ""
    error: Optional[Exception] = None

    @property
    def dispatched(self) -> Optional[WorkflowStep]:
        """First step run by this call, if any."""
        return self.steps[0] if self.steps else None


StepHandler = Callable[[WorkflowContext], Awaitable[StepOutcome]]


class WorkflowStateMachine:
    """Dispatches persisted workflow steps against a page collaborator.

    Args:
        page: Host-page operations.
        store: Persisted context.
        fetcher: Eligibility document downloader.
        config: Timing, retry and note options.
        pipeline: Text -> ExtractionResult.
        runtime: In-process guard and stop flag, shared with background callers.
        today: Date source for the note and the appointment filter.
    """

    def __init__(
        self,
        page: PageCollaborator,
        store: WorkflowStateStore,
        fetcher: TextFetcher,
        *,
        config: Optional[WorkflowConfig] = None,
        pipeline: Optional[ExtractionPipeline] = None,
        runtime: Optional[WorkflowRuntime] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._page = page
        self._store = store
        self._fetcher = fetcher
        self._config = config or WorkflowConfig()
        self._pipeline = pipeline or ExtractionPipeline()
        self._runtime = runtime or WorkflowRuntime()
        self._today = today
        self._handlers: dict[WorkflowStep, StepHandler] = {
            WorkflowStep.VERIFYING_PRIMARY: self._verify_primary,
            WorkflowStep.EXTRACTING_PRIMARY: self._extract_primary,
            WorkflowStep.VERIFYING_SECONDARY: self._verify_secondary,
            WorkflowStep.EXTRACTING_SECONDARY: self._extract_secondary,
            WorkflowStep.RECORDING_BALANCE: self._record_balance,
            WorkflowStep.CREATING_NOTE: self._create_note,
            WorkflowStep.FILLING_NOTE: self._fill_note,
            WorkflowStep.NAVIGATING_TO_FORM: self._navigate_to_form,
            WorkflowStep.OPENING_FORM_EDITOR: self._open_form_editor,
            WorkflowStep.FILLING_AND_SAVING: self._fill_and_save,
            WorkflowStep.RETURNING_HOME: self._return_home,
        }

    @property
    def runtime(self) -> WorkflowRuntime:
        return self._runtime

    # ── Entry points ─────────────────────────────────────────────────

    async def start(self) -> ResumeReport:
        """Discard any previous run and begin at ``verifying_primary``."""
        if self._runtime.busy:
            return ResumeReport(ResumeOutcome.DROPPED, message="A step is already running")

        self._store.clear()
        self._runtime.reset()
        ctx = WorkflowContext(current_step=WorkflowStep.VERIFYING_PRIMARY)
        self._store.save(ctx)
        log.info("Starting copay workflow %s", ctx.workflow_id)

        self._runtime.try_enter(ctx.current_step)
        try:
            return await self._run(ctx)
        finally:
            self._runtime.leave()

    async def resume(self) -> ResumeReport:
        """Continue the persisted workflow. Call once per page load."""
        ctx = self._store.load()
        if ctx.is_idle:
            return ResumeReport(ResumeOutcome.IDLE)
        if not self._runtime.try_enter(ctx.current_step):
            return ResumeReport(ResumeOutcome.DROPPED, message="A step is already running")

        try:
            ctx.retry_count += 1
            self._store.save(ctx)
            limit = self._config.max_resume_attempts
            if ctx.retry_count > limit:
                error = WorkflowMaxRetriesExceeded(
                    f"Step {ctx.current_step.value} resumed {ctx.retry_count} times "
                    f"without advancing (limit {limit})"
                )
                log.error("%s", error)
                self._store.clear()
                await self._page.report_status(f"{STATUS_TITLE}: failed", str(error))
                return ResumeReport(
                    ResumeOutcome.MAX_RETRIES_EXCEEDED, message=str(error), error=error
                )
            log.info(
                "Resuming workflow %s at %s (attempt %d/%d)",
                ctx.workflow_id,
                ctx.current_step.value,
                ctx.retry_count,
                limit,
            )
            return await self._run(ctx)
        finally:
            self._runtime.leave()

    async def stop(self) -> None:
        """Request cancellation and clear the persisted context at once.

        A step in flight halts at its next boundary or handoff; the context is
        already gone, so a reload in between resumes to idle.
        """
        self._runtime.request_stop()
        self._store.clear()
        if self._runtime.busy:
            log.info("Stop requested; the workflow halts at the next step boundary")
            return
        self._runtime.reset()
        await self._page.report_status(f"{STATUS_TITLE}: stopped", "Workflow stopped")

    # ── Dispatch loop ────────────────────────────────────────────────

    async def _run(self, ctx: WorkflowContext) -> ResumeReport:
        steps: list[WorkflowStep] = []
        while True:
            step = ctx.current_step
            steps.append(step)
            handler = self._handlers.get(step)
            try:
                with track_step(ctx.workflow_id, step.value):
                    self._check_stop(step)
                    if handler is None:
                        raise WorkflowError(f"No handler for step {step.value}")
                    outcome = await handler(ctx)
            except WorkflowCancelled as exc:
                log.info("%s", exc)
                self._store.clear()
                self._runtime.stop_requested = False
                await self._page.report_status(f"{STATUS_TITLE}: stopped", "Workflow stopped")
                return ResumeReport(ResumeOutcome.CANCELLED, steps, str(exc), exc)
            except Exception as exc:
                log.exception("Step %s failed", step.value)
                self._store.clear()
                await self._page.report_status(
                    f"{STATUS_TITLE}: failed", f"{step.value}: {exc}"
                )
                return ResumeReport(ResumeOutcome.FAILED, steps, str(exc), exc)

            if outcome == StepOutcome.FINISHED:
                self._store.clear()
                summary = (ctx.extraction_result or ExtractionResult()).summary()
                await self._page.report_status(f"{STATUS_TITLE}: complete", summary)
                return ResumeReport(ResumeOutcome.COMPLETED, steps, summary)
            if outcome == StepOutcome.AWAIT_RELOAD:
                return ResumeReport(
                    ResumeOutcome.AWAITING_RELOAD,
                    steps,
                    f"Waiting for reload into {ctx.current_step.value}",
                )

            ctx.retry_count = 0
            if not self._runtime.stop_requested:
                self._store.save(ctx)
            self._runtime.switch(ctx.current_step)

    async def _handoff(
        self,
        ctx: WorkflowContext,
        next_step: WorkflowStep,
        action: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Persist *next_step*, then run a page action that may reload."""
        self._check_stop(ctx.current_step)
        ctx.current_step = next_step
        ctx.retry_count = 0
        self._store.save(ctx)
        result = await action()
        self._check_stop(next_step)
        return result

    def _check_stop(self, step: WorkflowStep) -> None:
        if self._runtime.stop_requested:
            raise WorkflowCancelled(f"Stopped before {step.value}")

    # ── Steps ────────────────────────────────────────────────────────

    async def _verify_primary(self, ctx: WorkflowContext) -> StepOutcome:
        triggered = await self._handoff(
            ctx,
            WorkflowStep.EXTRACTING_PRIMARY,
            lambda: self._page.trigger_verification(InsuranceLevel.PRIMARY),
        )
        if not triggered:
            raise WorkflowError("No eligibility verification control for primary insurance")
        return StepOutcome.AWAIT_RELOAD

    async def _extract_primary(self, ctx: WorkflowContext) -> StepOutcome:
        ctx.extraction_result = await self._extract_document(InsuranceLevel.PRIMARY)
        ctx.insurance_level = InsuranceLevel.PRIMARY
        if ctx.extraction_result.has_primary:
            ctx.current_step = WorkflowStep.RECORDING_BALANCE
        else:
            log.info("Primary document has no primary-care cost share; trying secondary")
            ctx.current_step = WorkflowStep.VERIFYING_SECONDARY
        return StepOutcome.CONTINUE

    async def _verify_secondary(self, ctx: WorkflowContext) -> StepOutcome:
        triggered = await self._handoff(
            ctx,
            WorkflowStep.EXTRACTING_SECONDARY,
            lambda: self._page.trigger_verification(InsuranceLevel.SECONDARY),
        )
        if triggered:
            return StepOutcome.AWAIT_RELOAD
        log.info("No secondary insurance on file; keeping primary results")
        ctx.current_step = WorkflowStep.RECORDING_BALANCE
        return StepOutcome.CONTINUE

    async def _extract_secondary(self, ctx: WorkflowContext) -> StepOutcome:
        secondary = await self._extract_document(InsuranceLevel.SECONDARY)
        result = ctx.ensure_result()
        used = []
        for attr in ("primary_copay", "primary_coinsurance"):
            value = getattr(secondary, attr)
            if getattr(result, attr) is None and value is not None:
                setattr(result, attr, value)
                used.append(attr)
        if used:
            ctx.insurance_level = InsuranceLevel.SECONDARY
            log.info("Back-filled %s from secondary insurance", ", ".join(used))
        ctx.current_step = WorkflowStep.RECORDING_BALANCE
        return StepOutcome.CONTINUE

    async def _record_balance(self, ctx: WorkflowContext) -> StepOutcome:
        cfg = self._config
        try:
            raw = await wait_until(
                lambda: self._page.read_labeled_value(cfg.balance_label),
                interval=cfg.element_poll_interval,
                timeout=cfg.element_wait_timeout,
                what=cfg.balance_label,
            )
        except ElementWaitTimeout:
            log.info("%s not shown; using %s", cfg.balance_label, cfg.default_balance)
            raw = None
        ctx.guarantor_balance = extract_balance(raw, cfg.default_balance)

        appointments = await self._page.list_appointments()
        ctx.next_appointment_summary = summarize_next_appointment(appointments, self._today())

        if cfg.enable_notes:
            ctx.current_step = WorkflowStep.CREATING_NOTE
        else:
            ctx.current_step = WorkflowStep.NAVIGATING_TO_FORM
        return StepOutcome.CONTINUE

    async def _create_note(self, ctx: WorkflowContext) -> StepOutcome:
        await self._handoff(
            ctx,
            WorkflowStep.FILLING_NOTE,
            lambda: self._page.request_navigation(NavigationTarget.NEW_NOTE),
        )
        return StepOutcome.AWAIT_RELOAD

    async def _fill_note(self, ctx: WorkflowContext) -> StepOutcome:
        cfg = self._config
        fields = {
            MESSAGE_FIELD: format_note(
                ctx.extraction_result,
                ctx.guarantor_balance,
                ctx.next_appointment_summary,
                self._today(),
            ),
            TYPE_FIELD: "Alert",
            FOR_SCHEDULING_FIELD: _flag(cfg.note_on_scheduling),
            FOR_BILLING_FIELD: _flag(cfg.note_on_billing),
        }
        await self._handoff(
            ctx,
            WorkflowStep.NAVIGATING_TO_FORM,
            lambda: self._page.write_fields_and_submit(NOTE_FORM, fields),
        )
        return StepOutcome.AWAIT_RELOAD

    async def _navigate_to_form(self, ctx: WorkflowContext) -> StepOutcome:
        await self._handoff(
            ctx,
            WorkflowStep.OPENING_FORM_EDITOR,
            lambda: self._page.request_navigation(NavigationTarget.INSURANCE_INFORMATION),
        )
        return StepOutcome.AWAIT_RELOAD

    async def _open_form_editor(self, ctx: WorkflowContext) -> StepOutcome:
        target = NavigationTarget.editor_for(ctx.insurance_level)
        await self._handoff(
            ctx,
            WorkflowStep.FILLING_AND_SAVING,
            lambda: self._page.request_navigation(target),
        )
        return StepOutcome.AWAIT_RELOAD

    async def _fill_and_save(self, ctx: WorkflowContext) -> StepOutcome:
        result = ctx.extraction_result or ExtractionResult()
        # Empty strings clear stale values when nothing was found.
        fields = {
            COPAY_FIELD: result.primary_copay or "",
            COINSURANCE_FIELD: result.primary_coinsurance or "",
        }
        await self._handoff(
            ctx,
            WorkflowStep.RETURNING_HOME,
            lambda: self._page.write_fields_and_submit(INSURANCE_FORM, fields),
        )
        return StepOutcome.AWAIT_RELOAD

    async def _return_home(self, ctx: WorkflowContext) -> StepOutcome:
        self._store.clear()
        await self._page.request_navigation(NavigationTarget.PATIENT_CHART)
        return StepOutcome.FINISHED

    # ── Helpers ──────────────────────────────────────────────────────

    async def _extract_document(self, level: InsuranceLevel) -> ExtractionResult:
        cfg = self._config
        url = await wait_until(
            lambda: self._page.find_document_url(level),
            interval=cfg.document_poll_interval,
            timeout=cfg.document_wait_timeout,
            what=f"{level.value} eligibility document",
        )
        text = await self._fetcher.fetch_and_extract_text(url)
        return self._pipeline.extract(text)


def _flag(enabled: bool) -> str:
    return "true" if enabled else "false"
