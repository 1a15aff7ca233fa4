"""Data model for a goal-directed plan.

A plan owns an ordered, fixed list of steps and derives its progress from
them. Plan status changes go through the plan transition table.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from pydantic import Field, field_validator

from ..execution.errors import InvalidArgumentsError, InvalidPlanError
from ..execution.transitions import transition_plan
from .base import ModelBase, PlanId
from .enums import PlanEvent, PlanStatus, StepStatus
from .step import Step


class Plan(ModelBase):
    """The full effort toward one goal.

    Attributes:
        plan_id: Handle identifying this plan instance.
        goal: The objective supplied by the caller.
        description: The caller's stated approach.
        steps: Ordered steps; list order is execution order.
        status: Current lifecycle status.
        created_at: When the plan was created.
        started_at: When the plan entered ``executing``.
        completed_at: When the plan entered ``completed`` or ``cancelled``.
    """

    plan_id: PlanId = Field(
        default_factory=lambda: uuid.uuid4().hex,
        frozen=True,
        description="Handle identifying this plan instance.",
    )
    goal: str = Field(..., frozen=True, description="Objective of the plan.")
    description: str = Field(
        default="", frozen=True, description="The caller's stated approach."
    )
    steps: list[Step] = Field(
        ...,
        min_length=1,
        frozen=True,
        description="Ordered steps; list order is execution order.",
    )
    status: PlanStatus = Field(
        default=PlanStatus.CREATED, description="Current lifecycle status."
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the plan was created.",
    )
    started_at: Optional[datetime] = Field(
        default=None, description="When the plan entered executing."
    )
    completed_at: Optional[datetime] = Field(
        default=None, description="When the plan reached a terminal status."
    )

    @field_validator("steps")
    @classmethod
    def _check_step_ids(cls, steps: list[Step]) -> list[Step]:
        ids = [s.id for s in steps]
        if ids != list(range(1, len(steps) + 1)):
            raise ValueError("step ids must be 1..N in declaration order")
        return steps

    @classmethod
    def create(
        cls,
        goal: str,
        description: str,
        step_descriptions: Sequence[str],
        now: Optional[datetime] = None,
        step_details: Optional[Sequence[Optional[str]]] = None,
    ) -> "Plan":
        """Builds a new plan with one pending step per description.

        ``step_details`` optionally pairs each step with extra detail text;
        it must not be longer than ``step_descriptions``.

        Raises:
            InvalidArgumentsError: If goal, description or steps have the
                wrong type.
            InvalidPlanError: If there are no steps or a step is blank.
        """
        if not isinstance(goal, str):
            raise InvalidArgumentsError("The goal must be text.")
        if description is not None and not isinstance(description, str):
            raise InvalidArgumentsError("The description must be text.")
        if isinstance(step_descriptions, (str, bytes)) or not isinstance(
            step_descriptions, Sequence
        ):
            raise InvalidArgumentsError("Steps must be a list of step descriptions.")
        if not step_descriptions:
            raise InvalidPlanError("A plan needs at least one step.")

        details = list(step_details or [])
        if len(details) > len(step_descriptions):
            raise InvalidPlanError(
                f"Got details for {len(details)} steps but the plan has "
                f"{len(step_descriptions)}."
            )
        for index, text in enumerate(details, start=1):
            if text is not None and not isinstance(text, str):
                raise InvalidArgumentsError(f"Details of step {index} must be text.")
        details += [None] * (len(step_descriptions) - len(details))

        cleaned: list[str] = []
        for index, text in enumerate(step_descriptions, start=1):
            if not isinstance(text, str) or not text.strip():
                raise InvalidPlanError(f"Step {index} has an empty description.")
            cleaned.append(text.strip())

        return cls(
            goal=goal,
            description=description or "",
            steps=[
                Step(id=i, description=d, details=(x or "").strip() or None)
                for i, (d, x) in enumerate(zip(cleaned, details), start=1)
            ],
            created_at=now or datetime.now(timezone.utc),
        )

    # Derived values

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def _count(self, status: StepStatus) -> int:
        return sum(1 for s in self.steps if s.status == status)

    @property
    def completed_steps(self) -> int:
        """Number of steps in a terminal status (completed, failed or skipped)."""
        return sum(1 for s in self.steps if s.is_terminal)

    @property
    def succeeded_steps(self) -> int:
        return self._count(StepStatus.COMPLETED)

    @property
    def failed_steps(self) -> int:
        return self._count(StepStatus.FAILED)

    @property
    def skipped_steps(self) -> int:
        return self._count(StepStatus.SKIPPED)

    @property
    def pending_steps(self) -> int:
        return self._count(StepStatus.PENDING)

    @property
    def progress_percentage(self) -> int:
        if not self.steps:
            return 0
        return int(self.completed_steps * 100 / self.total_steps)

    @property
    def current_step(self) -> Optional[Step]:
        return next(
            (s for s in self.steps if s.status == StepStatus.IN_PROGRESS), None
        )

    @property
    def next_step(self) -> Optional[Step]:
        return next(
            (s for s in self.steps if s.status == StepStatus.PENDING), None
        )

    @property
    def has_failures(self) -> bool:
        return self.failed_steps > 0

    @property
    def all_steps_succeeded(self) -> bool:
        return all(s.is_success for s in self.steps)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def duration(self) -> Optional[timedelta]:
        """Span from entering executing to reaching a terminal status.

        While the plan is still executing the span runs up to now.
        """
        if self.started_at is None:
            return None
        end = self.completed_at or datetime.now(timezone.utc)
        return end - self.started_at

    def get_step(self, step_id: int) -> Optional[Step]:
        if 1 <= step_id <= len(self.steps):
            return self.steps[step_id - 1]
        return None

    # Transitions

    def start(self, now: datetime) -> None:
        self.status = transition_plan(self.status, PlanEvent.START)
        self.started_at = now

    def finish(self, now: datetime) -> None:
        self.status = transition_plan(self.status, PlanEvent.FINISH)
        self.completed_at = now

    def cancel(self, reason: str, now: datetime) -> list[Step]:
        """Cancels the plan and skips every non-terminal step.

        Returns:
            The steps that were skipped, in order.
        """
        self.status = transition_plan(self.status, PlanEvent.CANCEL)
        self.completed_at = now
        skipped = []
        for step in self.steps:
            if not step.is_terminal:
                step.skip(reason, now)
                skipped.append(step)
        return skipped
