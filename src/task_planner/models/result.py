"""Data models for reporting operation outcomes.

This module defines the structures returned by the plan manager after each
operation: a status, a caller-facing message, and a snapshot of the plan.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import OperationStatus, PlanStatus, StepStatus
from .plan import Plan
from .step import Step


class OperationError(BaseModel):
    """Details regarding a rejected operation.

    Attributes:
        code: Machine-readable error code (e.g., 'plan.missing').
        detail: Human-readable explanation of the error.
    """

    code: str = Field(
        ..., description="Machine-readable error code (e.g., 'plan.missing')."
    )
    detail: str = Field(..., description="Human-readable explanation of the error.")


class StepSnapshot(BaseModel):
    """Read-only view of a step at one point in time."""

    model_config = ConfigDict(use_enum_values=True)

    id: int = Field(..., description="1-based step identifier.")
    description: str = Field(..., description="Imperative description of the work.")
    details: Optional[str] = Field(
        default=None, description="Extra detail supplied with the step."
    )
    status: StepStatus = Field(..., description="Lifecycle status of the step.")
    result: Optional[str] = Field(
        default=None, description="Outcome text or skip reason."
    )
    error_message: Optional[str] = Field(
        default=None, description="Error text for failed steps."
    )
    duration_seconds: Optional[float] = Field(
        default=None, description="Elapsed time for finished steps that were started."
    )

    @classmethod
    def from_step(cls, step: Step) -> "StepSnapshot":
        duration = step.duration
        return cls(
            id=step.id,
            description=step.description,
            details=step.details,
            status=step.status,
            result=step.result,
            error_message=step.error_message,
            duration_seconds=duration.total_seconds() if duration is not None else None,
        )


class PlanSnapshot(BaseModel):
    """Read-only view of a plan and its steps at one point in time."""

    model_config = ConfigDict(use_enum_values=True)

    plan_id: str = Field(..., description="Handle identifying the plan.")
    goal: str = Field(..., description="Objective of the plan.")
    description: str = Field(..., description="The caller's stated approach.")
    status: PlanStatus = Field(..., description="Lifecycle status of the plan.")
    total_steps: int = Field(..., description="Number of steps in the plan.")
    completed_steps: int = Field(
        ..., description="Steps in a terminal status (completed, failed, skipped)."
    )
    succeeded_steps: int = Field(..., description="Steps completed successfully.")
    failed_steps: int = Field(..., description="Steps marked as failed.")
    skipped_steps: int = Field(..., description="Steps skipped by an abort.")
    pending_steps: int = Field(..., description="Steps not started yet.")
    progress_percentage: int = Field(
        ..., ge=0, le=100, description="completed_steps / total_steps as a percentage."
    )
    current_step_id: Optional[int] = Field(
        default=None, description="Step currently in progress, if any."
    )
    next_step_id: Optional[int] = Field(
        default=None, description="Lowest pending step, if any."
    )
    duration_seconds: Optional[float] = Field(
        default=None, description="Total plan duration once the plan is finished."
    )
    steps: list[StepSnapshot] = Field(
        default_factory=list, description="Ordered per-step status list."
    )

    @classmethod
    def from_plan(cls, plan: Plan) -> "PlanSnapshot":
        duration = plan.duration if plan.is_terminal else None
        current = plan.current_step
        upcoming = plan.next_step
        return cls(
            plan_id=plan.plan_id,
            goal=plan.goal,
            description=plan.description,
            status=plan.status,
            total_steps=plan.total_steps,
            completed_steps=plan.completed_steps,
            succeeded_steps=plan.succeeded_steps,
            failed_steps=plan.failed_steps,
            skipped_steps=plan.skipped_steps,
            pending_steps=plan.pending_steps,
            progress_percentage=plan.progress_percentage,
            current_step_id=current.id if current else None,
            next_step_id=upcoming.id if upcoming else None,
            duration_seconds=duration.total_seconds() if duration is not None else None,
            steps=[StepSnapshot.from_step(s) for s in plan.steps],
        )


class OperationResult(BaseModel):
    """The result of a plan manager operation.

    Attributes:
        operation: Name of the operation (e.g. 'execute_next_step').
        status: The outcome (success, rejected, noop).
        message: Text for the caller, naming what happened and what to do next.
        timestamp: When the operation finished.
        plan_id: Handle of the plan the operation acted on, if any.
        step_id: The step the operation acted on, if any.
        next_step_id: The step now in progress or up next, if any.
        has_more_steps: Whether steps remain to be executed.
        plan: Snapshot of the plan after the operation.
        error: Error details if the status is REJECTED.
        metadata: Arbitrary extra data about the operation.
    """

    model_config = ConfigDict(use_enum_values=True)

    operation: str = Field(..., description="Name of the operation.")
    status: OperationStatus = Field(
        ..., description="The outcome (success, rejected, noop)."
    )
    message: str = Field(
        ..., description="Text for the caller, naming what happened and what to do next."
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the operation finished.",
    )
    plan_id: Optional[str] = Field(
        default=None, description="Handle of the plan the operation acted on."
    )
    step_id: Optional[int] = Field(
        default=None, description="The step the operation acted on."
    )
    next_step_id: Optional[int] = Field(
        default=None, description="The step now in progress or up next."
    )
    has_more_steps: bool = Field(
        default=False, description="Whether steps remain to be executed."
    )
    plan: Optional[PlanSnapshot] = Field(
        default=None, description="Snapshot of the plan after the operation."
    )
    error: Optional[OperationError] = Field(
        default=None, description="Error details if the status is REJECTED."
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Arbitrary extra data about the operation."
    )

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCESS.value

    def __str__(self) -> str:
        return self.message
