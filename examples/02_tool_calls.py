"""Example of the tool-calling surface.

An LLM with function calling receives `tool_definitions()` and answers with
tool calls (name plus JSON arguments). This example replays such calls.
"""

import json

from task_planner.chat.tools import PlannerToolset
from task_planner.config import PlannerConfig
from task_planner.execution.manager import PlanManager


def run_example():
    toolset = PlannerToolset(PlanManager(config=PlannerConfig(emit_log_events=False)))

    print("--- Tools offered to the model ---")
    for tool in toolset.tool_definitions():
        print(f"- {tool['function']['name']}")

    # Calls as a model would emit them
    calls = [
        ("create_plan", json.dumps({
            "goal": "Create a .NET project with unit tests",
            "description": "scaffold, then add tests",
            "steps": "Create project folder|Initialize project|Add test project|Run tests",
        })),
        ("execute_next_step", '{"step_result": "folder created"}'),
        ("execute_next_step", '{"step_result": "dotnet new console"}'),
        ("execute_next_step", '{"step_result": "dotnet new xunit"}'),
        ("execute_next_step", '{"step_result": "1 test passed"}'),
        ("get_plan_status", "{}"),
    ]

    print("\n--- Replaying tool calls ---")
    for name, arguments in calls:
        result = toolset.dispatch(name, arguments)
        print(f"> {name}: {result.message}\n")


if __name__ == "__main__":
    run_example()
