"""Enumeration definitions for the task planner.

This module contains the status and event enums shared by the plan/step
models, the transition tables and the observers.
"""

from enum import Enum


class StepStatus(str, Enum):
    """Lifecycle status of a single step.

    Attributes:
        PENDING: Declared but not yet started.
        IN_PROGRESS: Currently being worked on by the caller.
        COMPLETED: Finished successfully.
        FAILED: Finished with an error reported by the caller.
        SKIPPED: Never finished because the plan was aborted.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.COMPLETED, StepStatus.FAILED, StepStatus.SKIPPED)


class PlanStatus(str, Enum):
    """Lifecycle status of a plan.

    Attributes:
        CREATED: Steps declared, nothing started yet.
        EXECUTING: At least one step has been started.
        COMPLETED: Every step reached a terminal status (failures included).
        CANCELLED: The plan was aborted by the caller.
    """

    CREATED = "created"
    EXECUTING = "executing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (PlanStatus.COMPLETED, PlanStatus.CANCELLED)


class StepEvent(str, Enum):
    """Inputs of the step state machine."""

    START = "start"
    COMPLETE = "complete"
    FAIL = "fail"
    SKIP = "skip"


class PlanEvent(str, Enum):
    """Inputs of the plan state machine."""

    START = "start"
    FINISH = "finish"
    CANCEL = "cancel"


class OperationStatus(str, Enum):
    """Outcome of a manager operation.

    Attributes:
        SUCCESS: The operation was applied.
        REJECTED: A precondition failed; state is unchanged.
        NOOP: Nothing to do (e.g. aborting a finished plan); state is unchanged.
    """

    SUCCESS = "success"
    REJECTED = "rejected"
    NOOP = "noop"


class PlannerEventType(str, Enum):
    """Kinds of events emitted to observers as operations run."""

    PLAN_CREATED = "plan_created"
    PLAN_SUPERSEDED = "plan_superseded"
    PLAN_STARTED = "plan_started"
    PLAN_COMPLETED = "plan_completed"
    PLAN_CANCELLED = "plan_cancelled"
    STEP_CREATED = "step_created"
    STEP_STARTED = "step_started"
    STEP_COMPLETED = "step_completed"
    STEP_FAILED = "step_failed"
    STEP_SKIPPED = "step_skipped"
    OPERATION_REJECTED = "operation_rejected"
