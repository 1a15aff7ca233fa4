"""Arena of independent plans addressed by handle.

Where several callers drive plans at once, each plan gets its own
:class:`PlanManager` (and therefore its own lock) under the handle returned
by ``create_plan``. The registry lock only guards the handle map.
"""

import threading
from typing import Optional, Sequence

from ..config import PlannerConfig
from ..models.result import OperationResult, PlanSnapshot
from .errors import NoPlanError
from .manager import Clock, PlanManager, rejected_result
from .observer import PlanObserver


class PlanRegistry:
    """Holds many plans at once, one manager per plan handle."""

    def __init__(
        self,
        *,
        config: Optional[PlannerConfig] = None,
        observers: Optional[Sequence[PlanObserver]] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._config = config or PlannerConfig()
        self._observers = list(observers or [])
        self._clock = clock
        self._managers: dict[str, PlanManager] = {}
        self._global = threading.Lock()

    def __len__(self) -> int:
        with self._global:
            return len(self._managers)

    def __contains__(self, plan_id: str) -> bool:
        with self._global:
            return plan_id in self._managers

    def get_manager(self, plan_id: str) -> Optional[PlanManager]:
        with self._global:
            return self._managers.get(plan_id)

    def create_plan(
        self,
        goal: str,
        description: str,
        steps: Sequence[str],
        details: Optional[Sequence[Optional[str]]] = None,
    ) -> OperationResult:
        """Creates a plan under a fresh handle.

        Returns:
            The create result; its ``plan_id`` is the handle to pass to every
            other operation.
        """
        manager = PlanManager(
            config=self._config, observers=self._observers, clock=self._clock
        )
        result = manager.create_plan(goal, description, steps, details)
        if result.ok and result.plan_id:
            with self._global:
                self._managers[result.plan_id] = manager
        return result

    def execute_next_step(self, plan_id: str, step_result: str) -> OperationResult:
        manager = self.get_manager(plan_id)
        if manager is None:
            return self._unknown("execute_next_step", plan_id)
        return manager.execute_next_step(step_result)

    def complete_current_step(self, plan_id: str, step_result: str) -> OperationResult:
        manager = self.get_manager(plan_id)
        if manager is None:
            return self._unknown("complete_current_step", plan_id)
        return manager.complete_current_step(step_result)

    def start_next_step(self, plan_id: str) -> OperationResult:
        manager = self.get_manager(plan_id)
        if manager is None:
            return self._unknown("start_next_step", plan_id)
        return manager.start_next_step()

    def get_plan_status(self, plan_id: str) -> OperationResult:
        manager = self.get_manager(plan_id)
        if manager is None:
            return self._unknown("get_plan_status", plan_id)
        return manager.get_plan_status()

    def mark_step_failed(self, plan_id: str, error_message: str) -> OperationResult:
        manager = self.get_manager(plan_id)
        if manager is None:
            return self._unknown("mark_step_failed", plan_id)
        return manager.mark_step_failed(error_message)

    def abort_plan(self, plan_id: str, reason: str) -> OperationResult:
        manager = self.get_manager(plan_id)
        if manager is None:
            return self._unknown("abort_plan", plan_id)
        return manager.abort_plan(reason)

    def remove_plan(self, plan_id: str) -> bool:
        """Forgets a plan. Returns whether the handle was known."""
        with self._global:
            return self._managers.pop(plan_id, None) is not None

    def list_plans(self) -> list[PlanSnapshot]:
        with self._global:
            managers = list(self._managers.values())
        snapshots = [m.snapshot() for m in managers]
        return [s for s in snapshots if s is not None]

    def _unknown(self, operation: str, plan_id: str) -> OperationResult:
        error = NoPlanError(
            f"No plan with id '{plan_id}'. Call 'create_plan' first."
        )
        return rejected_result(operation, error)
