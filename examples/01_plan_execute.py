"""Example of driving a plan step by step.

This example demonstrates how to:
1. Create a plan with several steps.
2. Complete steps one at a time with `execute_next_step`.
3. Handle a failed step and decide to abort.
4. Watch progress through an observer.
"""

from task_planner.config import PlannerConfig
from task_planner.execution.manager import PlanManager
from task_planner.execution.observer import PlannerEvent


def print_event(event: PlannerEvent):
    print(f"   [{event.type}] {event.message}")


def run_example():
    # 1. Initialize
    manager = PlanManager(config=PlannerConfig(emit_log_events=False))
    manager.add_observer(print_event)

    # 2. Create the plan
    print("--- Creating plan ---")
    result = manager.create_plan(
        "Ship feature X",
        "incremental rollout",
        ["Write code", "Write tests", "Deploy"],
        details=[None, "unit and integration", "blue/green to prod"],
    )
    print(result.message)

    # 3. Work through the steps
    print("\n--- Executing ---")
    print(manager.execute_next_step("wrote the code").message)

    # Tests cannot be verified: fail the step, then give up
    print(manager.mark_step_failed("tests flaky, cannot verify").message)
    print(manager.abort_plan("giving up").message)

    # 4. Final report
    print("\n--- Status ---")
    print(manager.get_plan_status().message)


if __name__ == "__main__":
    run_example()
