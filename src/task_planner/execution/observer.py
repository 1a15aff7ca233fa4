"""Observer sinks for plan progress events.

The plan manager does not log progress itself; it hands a
:class:`PlannerEvent` to every registered observer as each operation runs.
Hosting layers route these events to a UI, a log or a metrics system.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.enums import PlannerEventType
from ..observability.logging import get_logger
from ..observability.metrics import PlannerMetrics

logger = get_logger(__name__)


class PlannerEvent(BaseModel):
    """A single state change reported by the plan manager.

    Attributes:
        type: What happened.
        plan_id: Plan the event belongs to.
        goal: Goal of that plan.
        step_id: Step the event concerns, if any.
        message: One-line human-readable description.
        timestamp: When it happened.
        data: Extra structured details (result text, error code, ...).
    """

    model_config = ConfigDict(use_enum_values=True)

    type: PlannerEventType = Field(..., description="What happened.")
    plan_id: Optional[str] = Field(default=None, description="Plan the event belongs to.")
    goal: Optional[str] = Field(default=None, description="Goal of that plan.")
    step_id: Optional[int] = Field(default=None, description="Step concerned, if any.")
    message: str = Field(..., description="One-line human-readable description.")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When it happened.",
    )
    data: dict[str, Any] = Field(
        default_factory=dict, description="Extra structured details."
    )


class PlanObserver(ABC):
    """Sink interface called by the manager on each state change."""

    @abstractmethod
    def notify(self, event: PlannerEvent) -> None:
        """Receives one event.

        Args:
            event: The event describing the state change.
        """
        pass  # pragma: no cover


class CallbackObserver(PlanObserver):
    """Adapts a plain callable to the observer interface."""

    def __init__(self, callback: Callable[[PlannerEvent], None]):
        self.callback = callback

    def notify(self, event: PlannerEvent) -> None:
        self.callback(event)


class LoggingObserver(PlanObserver):
    """Writes every event as a log record with structured extra fields."""

    REJECTION_LEVEL = logging.WARNING

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or get_logger("task_planner.events")

    def notify(self, event: PlannerEvent) -> None:
        level = (
            self.REJECTION_LEVEL
            if event.type == PlannerEventType.OPERATION_REJECTED.value
            else logging.INFO
        )
        self.log.log(
            level,
            event.message,
            extra={
                "extra_fields": {
                    "event": event.type,
                    "plan_id": event.plan_id,
                    "step_id": event.step_id,
                    **event.data,
                }
            },
        )


class MetricsObserver(PlanObserver):
    """Counts events into a PlannerMetrics instance."""

    COUNTER_NAMES: dict[str, str] = {
        PlannerEventType.PLAN_CREATED.value: "plans.created",
        PlannerEventType.PLAN_SUPERSEDED.value: "plans.superseded",
        PlannerEventType.PLAN_STARTED.value: "plans.started",
        PlannerEventType.PLAN_COMPLETED.value: "plans.completed",
        PlannerEventType.PLAN_CANCELLED.value: "plans.cancelled",
        PlannerEventType.STEP_CREATED.value: "steps.created",
        PlannerEventType.STEP_STARTED.value: "steps.started",
        PlannerEventType.STEP_COMPLETED.value: "steps.completed",
        PlannerEventType.STEP_FAILED.value: "steps.failed",
        PlannerEventType.STEP_SKIPPED.value: "steps.skipped",
    }

    def __init__(self, metrics: Optional[PlannerMetrics] = None):
        self.metrics = metrics or PlannerMetrics()

    def notify(self, event: PlannerEvent) -> None:
        if event.type == PlannerEventType.OPERATION_REJECTED.value:
            code = event.data.get("code", "unknown")
            self.metrics.inc(f"operations.rejected.{code}")
            return
        name = self.COUNTER_NAMES.get(event.type)
        if name:
            self.metrics.inc(name)
        seconds = event.data.get("duration_seconds")
        if event.type == PlannerEventType.STEP_COMPLETED.value and seconds is not None:
            self.metrics.observe("steps.duration", seconds)


def dispatch_event(observers: list[PlanObserver], event: PlannerEvent) -> None:
    """Delivers an event to every observer.

    A failing observer is logged and skipped; it never aborts the operation
    that produced the event.
    """
    for observer in observers:
        try:
            observer.notify(event)
        except Exception as e:
            logger.error(
                f"Error in plan observer {type(observer).__name__}: {str(e)}"
            )
