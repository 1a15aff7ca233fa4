"""Data model for a single plan step.

A step has an immutable identity (``id``, ``description``) and a mutable
status record. Status changes go through the step transition table, which
guarantees that a step only ever moves forward.
"""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import Field, field_validator

from ..execution.transitions import transition_step
from .base import ModelBase, StepId
from .enums import StepEvent, StepStatus


STATUS_SYMBOLS: dict[StepStatus, str] = {
    StepStatus.PENDING: "○",
    StepStatus.IN_PROGRESS: "►",
    StepStatus.COMPLETED: "✓",
    StepStatus.FAILED: "✗",
    StepStatus.SKIPPED: "⊘",
}


class Step(ModelBase):
    """One atomic, caller-verifiable unit of work.

    Attributes:
        id: 1-based position of the step in its plan.
        description: Imperative description ("Create project folder").
        details: Optional extra detail supplied by the caller.
        status: Current lifecycle status.
        result: What was done (completed) or why it was skipped.
        error_message: Why the step failed.
        started_at: When the step left ``pending`` by being started.
        completed_at: When the step entered a terminal status.
    """

    id: StepId = Field(
        ..., ge=1, frozen=True, description="1-based step identifier."
    )
    description: str = Field(
        ...,
        min_length=1,
        frozen=True,
        description="Imperative description of the work.",
    )
    details: Optional[str] = Field(
        default=None,
        frozen=True,
        description="Optional extra detail supplied by the caller.",
    )
    status: StepStatus = Field(
        default=StepStatus.PENDING, description="Current lifecycle status."
    )
    result: Optional[str] = Field(
        default=None,
        description="Outcome text for completed steps, reason for skipped ones.",
    )
    error_message: Optional[str] = Field(
        default=None, description="Error text for failed steps."
    )
    started_at: Optional[datetime] = Field(
        default=None, description="When the step was started."
    )
    completed_at: Optional[datetime] = Field(
        default=None, description="When the step reached a terminal status."
    )

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("step description must not be blank")
        return value

    @property
    def duration(self) -> Optional[timedelta]:
        if self.started_at is None or self.completed_at is None:
            return None
        return self.completed_at - self.started_at

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_success(self) -> bool:
        return self.status == StepStatus.COMPLETED

    @property
    def status_symbol(self) -> str:
        return STATUS_SYMBOLS[self.status]

    def __str__(self) -> str:
        duration = self.duration
        suffix = (
            f" ({duration.total_seconds():.1f}s)" if duration is not None else ""
        )
        return f"[{self.status_symbol}] Step {self.id}: {self.description}{suffix}"

    # The payload is assigned (and validated) before the status, so a
    # rejected value leaves the step unchanged.

    def start(self, now: datetime) -> None:
        status = transition_step(self.status, StepEvent.START)
        self.started_at = now
        self.status = status

    def complete(self, result: Optional[str], now: datetime) -> None:
        status = transition_step(self.status, StepEvent.COMPLETE)
        self.result = result
        self.completed_at = now
        self.status = status

    def fail(self, error_message: str, now: datetime) -> None:
        status = transition_step(self.status, StepEvent.FAIL)
        self.error_message = error_message
        self.completed_at = now
        self.status = status

    def skip(self, reason: str, now: datetime) -> None:
        # Steps skipped straight from pending were never started.
        status = transition_step(self.status, StepEvent.SKIP)
        self.result = reason
        self.completed_at = now
        self.status = status
