"""API endpoint handlers for the task planner.

This module exposes the plan registry as plain JSON-serializable
dictionaries, for hosting layers that speak JSON.
"""

from typing import Any, Optional

from ..execution.registry import PlanRegistry


class PlannerEndpoints:
    """Handlers for API endpoints."""

    def __init__(self, registry: Optional[PlanRegistry] = None):
        """Initialize with the plan registry."""
        self.registry = registry or PlanRegistry()

    def create_plan(
        self,
        goal: str,
        description: str,
        steps: Optional[list[str]],
        details: Optional[list[Optional[str]]] = None,
    ) -> dict[str, Any]:
        """Creates a plan and returns its result, including the new plan_id.

        Args:
            goal: The objective to achieve.
            description: The approach.
            steps: Ordered step descriptions.
            details: Optional extra detail per step.

        Returns:
            The operation result as a dictionary.
        """
        result = self.registry.create_plan(goal, description, steps or [], details)
        return result.model_dump(mode="json")

    def execute_next_step(self, plan_id: str, step_result: str) -> dict[str, Any]:
        """Completes the current step of a plan and starts the next one."""
        return self.registry.execute_next_step(plan_id, step_result).model_dump(
            mode="json"
        )

    def get_plan_status(self, plan_id: str) -> dict[str, Any]:
        """Returns the status snapshot of a plan."""
        return self.registry.get_plan_status(plan_id).model_dump(mode="json")

    def mark_step_failed(self, plan_id: str, error_message: str) -> dict[str, Any]:
        """Fails the in-progress step of a plan."""
        return self.registry.mark_step_failed(plan_id, error_message).model_dump(
            mode="json"
        )

    def abort_plan(self, plan_id: str, reason: str) -> dict[str, Any]:
        """Aborts a plan, skipping its unfinished steps."""
        return self.registry.abort_plan(plan_id, reason).model_dump(mode="json")

    def list_plans(self) -> list[dict[str, Any]]:
        """Lists snapshots of every known plan.

        Returns:
            A list of plan snapshot dictionaries.
        """
        return [p.model_dump(mode="json") for p in self.registry.list_plans()]
