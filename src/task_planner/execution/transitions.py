"""Transition tables for the step and plan state machines.

Every status change in the models goes through :func:`transition_step` or
:func:`transition_plan`, so the legal moves are declared in one place.
"""

from ..models.enums import PlanEvent, PlanStatus, StepEvent, StepStatus
from .errors import InvalidTransitionError


STEP_TRANSITIONS: dict[tuple[StepStatus, StepEvent], StepStatus] = {
    (StepStatus.PENDING, StepEvent.START): StepStatus.IN_PROGRESS,
    (StepStatus.IN_PROGRESS, StepEvent.COMPLETE): StepStatus.COMPLETED,
    (StepStatus.IN_PROGRESS, StepEvent.FAIL): StepStatus.FAILED,
    (StepStatus.PENDING, StepEvent.SKIP): StepStatus.SKIPPED,
    (StepStatus.IN_PROGRESS, StepEvent.SKIP): StepStatus.SKIPPED,
}

PLAN_TRANSITIONS: dict[tuple[PlanStatus, PlanEvent], PlanStatus] = {
    (PlanStatus.CREATED, PlanEvent.START): PlanStatus.EXECUTING,
    (PlanStatus.EXECUTING, PlanEvent.FINISH): PlanStatus.COMPLETED,
    (PlanStatus.CREATED, PlanEvent.CANCEL): PlanStatus.CANCELLED,
    (PlanStatus.EXECUTING, PlanEvent.CANCEL): PlanStatus.CANCELLED,
}


def transition_step(current: StepStatus, event: StepEvent) -> StepStatus:
    """Returns the status a step moves to when ``event`` happens.

    Raises:
        InvalidTransitionError: If the move is not allowed from ``current``.
    """
    try:
        return STEP_TRANSITIONS[(StepStatus(current), StepEvent(event))]
    except KeyError:
        raise InvalidTransitionError(
            f"Step cannot '{StepEvent(event).value}' from status "
            f"'{StepStatus(current).value}'"
        ) from None


def transition_plan(current: PlanStatus, event: PlanEvent) -> PlanStatus:
    """Returns the status a plan moves to when ``event`` happens.

    Raises:
        InvalidTransitionError: If the move is not allowed from ``current``.
    """
    try:
        return PLAN_TRANSITIONS[(PlanStatus(current), PlanEvent(event))]
    except KeyError:
        raise InvalidTransitionError(
            f"Plan cannot '{PlanEvent(event).value}' from status "
            f"'{PlanStatus(current).value}'"
        ) from None
