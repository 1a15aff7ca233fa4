"""The plan manager: the single public-facing component of the planner.

The manager holds at most one active plan and exposes the operations a
caller (typically a tool-calling agent) uses to drive that plan to a
terminal outcome one step at a time. Every operation runs atomically with
respect to the others on the same instance, never raises past the manager,
and returns an :class:`OperationResult` whose message tells the caller what
happened and what it may do next.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence, Union

from pydantic import ValidationError

from ..config import PlannerConfig
from ..models.enums import OperationStatus, PlannerEventType, PlanStatus
from ..models.plan import Plan
from ..models.result import OperationError, OperationResult, PlanSnapshot
from ..models.step import Step
from ..ui.report import format_full_report
from .errors import (
    InvalidArgumentsError,
    NoActiveStepError,
    NoPlanError,
    PlannerError,
    PlanTerminalError,
    StepAlreadyActiveError,
)
from .observer import (
    CallbackObserver,
    LoggingObserver,
    PlannerEvent,
    PlanObserver,
    dispatch_event,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(name: str, value: Any) -> None:
    if not isinstance(value, str):
        raise InvalidArgumentsError(
            f"'{name}' must be text, got {type(value).__name__}."
        )


def _describe(step: Step) -> str:
    if step.details:
        return f"{step.description} (details: {step.details})"
    return step.description


def _validation_error(error: ValidationError) -> InvalidArgumentsError:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}"
        for err in error.errors()
    )
    return InvalidArgumentsError(f"Invalid arguments: {problems}.")


def rejected_result(
    operation: str,
    error: PlannerError,
    plan: Optional[Plan] = None,
    now: Optional[datetime] = None,
) -> OperationResult:
    """Converts a planner error into a rejected operation result."""
    return OperationResult(
        operation=operation,
        status=OperationStatus.REJECTED,
        message=f"Error: {error.detail}",
        timestamp=now or utc_now(),
        plan_id=plan.plan_id if plan else None,
        plan=PlanSnapshot.from_plan(plan) if plan else None,
        error=OperationError(code=error.code, detail=error.detail),
    )


class PlanManager:
    """
    Owns the current plan and applies caller operations to it.
    """

    def __init__(
        self,
        *,
        config: Optional[PlannerConfig] = None,
        observers: Optional[Sequence[PlanObserver]] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._config = config or PlannerConfig()
        self._observers: list[PlanObserver] = list(observers or [])
        if self._config.emit_log_events:
            self._observers.append(LoggingObserver())
        self._clock = clock or utc_now
        self._plan: Optional[Plan] = None
        self._history: list[Plan] = []
        self._changed_at: Optional[datetime] = None
        self._lock = threading.RLock()

    @property
    def config(self) -> PlannerConfig:
        return self._config

    @property
    def current_plan(self) -> Optional[Plan]:
        with self._lock:
            return self._plan

    def snapshot(self) -> Optional[PlanSnapshot]:
        """Returns a consistent snapshot of the current plan, if any."""
        with self._lock:
            return PlanSnapshot.from_plan(self._plan) if self._plan else None

    @property
    def history(self) -> list[Plan]:
        """Superseded plans, oldest first."""
        with self._lock:
            return list(self._history)

    def add_observer(
        self, observer: Union[PlanObserver, Callable[[PlannerEvent], None]]
    ) -> PlanObserver:
        """Registers an observer, wrapping plain callables.

        Returns:
            The registered observer instance.
        """
        if not isinstance(observer, PlanObserver):
            observer = CallbackObserver(observer)
        with self._lock:
            self._observers.append(observer)
        return observer

    def remove_observer(self, observer: PlanObserver) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def create_plan(
        self,
        goal: str,
        description: str,
        steps: Sequence[str],
        details: Optional[Sequence[Optional[str]]] = None,
    ) -> OperationResult:
        """Creates a new plan, replacing the current one.

        Args:
            goal: The objective to achieve.
            description: A brief description of the approach.
            steps: Ordered, non-blank step descriptions.
            details: Optional extra detail per step, aligned with ``steps``.

        Returns:
            A success result naming the step count, or a rejected result
            (``plan.invalid`` or ``operation.invalid_arguments``) that leaves
            the current plan untouched.
        """
        return self._run(
            "create_plan", self._create_plan, goal, description, steps, details
        )

    def execute_next_step(self, step_result: str) -> OperationResult:
        """Completes the step just worked on and starts the following one.

        If no step is in progress, the lowest pending step is started and
        completed at once. When no pending step remains afterwards the plan
        is completed.
        """
        return self._run("execute_next_step", self._execute_next_step, step_result)

    def complete_current_step(self, step_result: str) -> OperationResult:
        """Completes the in-progress step without starting the next one."""
        return self._run(
            "complete_current_step", self._complete_current_step, step_result
        )

    def start_next_step(self) -> OperationResult:
        """Starts the lowest pending step."""
        return self._run("start_next_step", self._start_next_step)

    def get_plan_status(self) -> OperationResult:
        """Returns a read-only snapshot and report of the current plan."""
        return self._run("get_plan_status", self._get_plan_status, read_only=True)

    def mark_step_failed(self, error_message: str) -> OperationResult:
        """Fails the in-progress step.

        The next step is not started; the caller decides whether to continue
        with ``execute_next_step`` or to ``abort_plan``. Failing the last
        step completes the plan.
        """
        return self._run("mark_step_failed", self._mark_step_failed, error_message)

    def abort_plan(self, reason: str) -> OperationResult:
        """Cancels the plan and skips every unfinished step.

        Aborting with no plan, or aborting a finished plan, is a no-op.
        """
        return self._run("abort_plan", self._abort_plan, reason)

    # ------------------------------------------------------------------
    # Operation bodies
    # ------------------------------------------------------------------

    def _run(
        self, operation: str, body, *args, read_only: bool = False
    ) -> OperationResult:
        with self._lock:
            # Reads are stamped with the time of the last state change, so
            # repeated reads of an unchanged plan return equal results.
            if read_only and self._changed_at is not None:
                now = self._changed_at
            else:
                now = self._clock()
            try:
                result = body(now, *args)
            except ValidationError as e:
                return self._reject(operation, _validation_error(e), now)
            except PlannerError as e:
                return self._reject(operation, e, now)
            if read_only or result.status == OperationStatus.SUCCESS.value:
                self._changed_at = now
            return result

    def _reject(
        self, operation: str, e: PlannerError, now: datetime
    ) -> OperationResult:
        self._emit(
            PlannerEventType.OPERATION_REJECTED,
            f"{operation} rejected: {e.detail}",
            now,
            data={"code": e.code, "operation": operation},
        )
        return rejected_result(operation, e, self._plan, now)

    def _create_plan(
        self,
        now: datetime,
        goal: str,
        description: str,
        steps: Sequence[str],
        details: Optional[Sequence[Optional[str]]],
    ) -> OperationResult:
        plan = Plan.create(goal, description, steps, now=now, step_details=details)

        previous = self._plan
        if previous is not None:
            self._archive(previous)
            self._emit(
                PlannerEventType.PLAN_SUPERSEDED,
                f"Plan superseded: {previous.goal}",
                now,
                plan=previous,
                data={"status": previous.status.value},
            )

        self._plan = plan
        self._emit(
            PlannerEventType.PLAN_CREATED,
            f"Plan created for: {plan.goal} ({plan.total_steps} steps)",
            now,
            data={"total_steps": plan.total_steps},
        )
        for step in plan.steps:
            self._emit(
                PlannerEventType.STEP_CREATED,
                f"{step.status_symbol} Step {step.id}: {step.description}",
                now,
                step=step,
            )

        return self._result(
            "create_plan",
            f"Plan created with {plan.total_steps} steps. "
            f"Use 'execute_next_step' to execute the steps one at a time.",
            now,
            metadata={"total_steps": plan.total_steps},
        )

    def _execute_next_step(self, now: datetime, step_result: str) -> OperationResult:
        _require_text("step_result", step_result)
        plan = self._require_open_plan()

        step = plan.current_step
        if step is None:
            step = self._start_step(plan, self._require_next_step(plan), now)

        self._complete_step(plan, step, step_result, now)

        upcoming = plan.next_step
        if upcoming is None:
            self._finish_plan(plan, now)
            return self._result(
                "execute_next_step",
                f"Step {step.id} completed. {self._completion_text(plan)}",
                now,
                step=step,
            )

        self._start_step(plan, upcoming, now)
        return self._result(
            "execute_next_step",
            f"Step {step.id} completed. "
            f"Progress: {plan.completed_steps}/{plan.total_steps}. "
            f"NEXT STEP ({upcoming.id}): {_describe(upcoming)}. "
            f"Execute this step and call 'execute_next_step' with the result.",
            now,
            step=step,
        )

    def _complete_current_step(
        self, now: datetime, step_result: str
    ) -> OperationResult:
        _require_text("step_result", step_result)
        plan = self._require_open_plan()
        step = self._require_current_step(plan)

        self._complete_step(plan, step, step_result, now)

        upcoming = plan.next_step
        if upcoming is None:
            self._finish_plan(plan, now)
            return self._result(
                "complete_current_step",
                f"Step {step.id} completed. {self._completion_text(plan)}",
                now,
                step=step,
            )

        return self._result(
            "complete_current_step",
            f"Step {step.id} completed. "
            f"Progress: {plan.completed_steps}/{plan.total_steps}. "
            f"Call 'start_next_step' to begin step {upcoming.id}: {upcoming.description}.",
            now,
            step=step,
        )

    def _start_next_step(self, now: datetime) -> OperationResult:
        plan = self._require_open_plan()
        active = plan.current_step
        if active is not None:
            raise StepAlreadyActiveError(
                f"Step {active.id} is already in progress. Complete it with "
                f"'complete_current_step' or fail it with 'mark_step_failed'."
            )

        step = self._start_step(plan, self._require_next_step(plan), now)
        return self._result(
            "start_next_step",
            f"Step {step.id} started: {step.description}.",
            now,
            step=step,
        )

    def _get_plan_status(self, now: datetime) -> OperationResult:
        plan = self._plan
        if plan is None:
            return OperationResult(
                operation="get_plan_status",
                status=OperationStatus.NOOP,
                message="No plan exists. Call 'create_plan' to create one.",
                timestamp=now,
            )
        return self._result("get_plan_status", format_full_report(plan), now)

    def _mark_step_failed(self, now: datetime, error_message: str) -> OperationResult:
        _require_text("error_message", error_message)
        plan = self._require_plan()
        step = self._require_current_step(plan)

        step.fail(error_message, now)
        self._emit(
            PlannerEventType.STEP_FAILED,
            f"✗ Step {step.id} failed: {error_message}",
            now,
            step=step,
            data={"error_message": error_message},
        )

        upcoming = plan.next_step
        if upcoming is not None:
            return self._result(
                "mark_step_failed",
                f"Step {step.id} marked as failed. "
                f"Next step available ({upcoming.id}): {_describe(upcoming)}. "
                f"Call 'execute_next_step' to continue or 'abort_plan' to stop.",
                now,
                step=step,
            )

        self._finish_plan(plan, now)
        return self._result(
            "mark_step_failed",
            f"Step {step.id} marked as failed. "
            f"No more steps. Plan completed with failures "
            f"({plan.failed_steps} of {plan.total_steps} steps failed).",
            now,
            step=step,
        )

    def _abort_plan(self, now: datetime, reason: str) -> OperationResult:
        _require_text("reason", reason)
        plan = self._plan
        if plan is None:
            return OperationResult(
                operation="abort_plan",
                status=OperationStatus.NOOP,
                message="No plan to abort.",
                timestamp=now,
            )

        if plan.is_terminal:
            return self._result(
                "abort_plan",
                f"Plan is already {plan.status.value}; nothing to abort.",
                now,
                status=OperationStatus.NOOP,
            )

        succeeded = plan.succeeded_steps
        skipped = plan.cancel(reason, now)
        for step in skipped:
            self._emit(
                PlannerEventType.STEP_SKIPPED,
                f"⊘ Step {step.id} skipped: {reason}",
                now,
                step=step,
            )
        self._emit(
            PlannerEventType.PLAN_CANCELLED,
            f"Plan cancelled: {reason}",
            now,
            data={"reason": reason, "skipped_steps": len(skipped)},
        )

        return self._result(
            "abort_plan",
            f"Plan aborted. Reason: {reason}. "
            f"{succeeded} of {plan.total_steps} steps were completed before abort.",
            now,
            metadata={"succeeded_before_abort": succeeded, "skipped": len(skipped)},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_plan(self) -> Plan:
        if self._plan is None:
            raise NoPlanError("No plan exists. Call 'create_plan' first.")
        return self._plan

    def _require_open_plan(self) -> Plan:
        plan = self._require_plan()
        if plan.is_terminal:
            raise PlanTerminalError(
                f"The plan is already {plan.status.value}; no steps remain to "
                f"execute. Call 'create_plan' to start a new plan."
            )
        return plan

    def _require_current_step(self, plan: Plan) -> Step:
        step = plan.current_step
        if step is None:
            raise NoActiveStepError(
                "No step is currently in progress. Call 'execute_next_step' "
                "to continue or 'create_plan' to start a new plan."
            )
        return step

    def _require_next_step(self, plan: Plan) -> Step:
        step = plan.next_step
        if step is None:
            raise PlanTerminalError(
                "No pending steps remain. Call 'get_plan_status' to review the plan."
            )
        return step

    def _start_step(self, plan: Plan, step: Step, now: datetime) -> Step:
        if plan.status == PlanStatus.CREATED:
            plan.start(now)
            self._emit(
                PlannerEventType.PLAN_STARTED,
                f"Plan execution started: {plan.goal}",
                now,
            )
        step.start(now)
        self._emit(
            PlannerEventType.STEP_STARTED,
            f"► Step {step.id} started: {step.description}",
            now,
            step=step,
        )
        return step

    def _complete_step(
        self, plan: Plan, step: Step, step_result: str, now: datetime
    ) -> None:
        step.complete(step_result, now)
        duration = step.duration
        seconds = duration.total_seconds() if duration is not None else 0.0
        self._emit(
            PlannerEventType.STEP_COMPLETED,
            f"✓ Step {step.id} completed ({seconds:.1f}s)",
            now,
            step=step,
            data={"result": step_result, "duration_seconds": seconds},
        )

    def _finish_plan(self, plan: Plan, now: datetime) -> None:
        plan.finish(now)
        self._emit(
            PlannerEventType.PLAN_COMPLETED,
            f"Plan completed: {plan.succeeded_steps}/{plan.total_steps} steps succeeded.",
            now,
            data={
                "succeeded_steps": plan.succeeded_steps,
                "failed_steps": plan.failed_steps,
            },
        )

    def _completion_text(self, plan: Plan) -> str:
        duration = plan.duration
        seconds = duration.total_seconds() if duration is not None else 0.0
        if plan.has_failures:
            outcome = (
                f"All {plan.total_steps} steps are finished, "
                f"{plan.failed_steps} failed."
            )
        else:
            outcome = f"All {plan.total_steps} steps executed successfully."
        return f"PLAN COMPLETED: {outcome} Total duration: {seconds:.1f}s"

    def _archive(self, plan: Plan) -> None:
        limit = self._config.history_limit
        if limit <= 0:
            return
        self._history.append(plan)
        del self._history[:-limit]

    def _emit(
        self,
        event_type: PlannerEventType,
        message: str,
        now: datetime,
        *,
        plan: Optional[Plan] = None,
        step: Optional[Step] = None,
        data: Optional[dict] = None,
    ) -> None:
        plan = plan or self._plan
        event = PlannerEvent(
            type=event_type,
            plan_id=plan.plan_id if plan else None,
            goal=plan.goal if plan else None,
            step_id=step.id if step else None,
            message=message,
            timestamp=now,
            data=data or {},
        )
        dispatch_event(self._observers, event)

    def _result(
        self,
        operation: str,
        message: str,
        now: datetime,
        *,
        step: Optional[Step] = None,
        status: OperationStatus = OperationStatus.SUCCESS,
        metadata: Optional[dict] = None,
    ) -> OperationResult:
        plan = self._plan
        upcoming = (plan.current_step or plan.next_step) if plan else None
        return OperationResult(
            operation=operation,
            status=status,
            message=message,
            timestamp=now,
            plan_id=plan.plan_id if plan else None,
            step_id=step.id if step else None,
            next_step_id=upcoming.id if upcoming else None,
            has_more_steps=bool(plan and not plan.is_terminal and upcoming),
            plan=PlanSnapshot.from_plan(plan) if plan else None,
            metadata=metadata or {},
        )
