"""Tool-calling surface of the planner.

Each planner operation is described by a pydantic argument model. The
models double as the JSON schemas handed to a function-calling LLM, and
:class:`PlannerToolset` routes a tool call (name plus arguments) to the
matching :class:`PlanManager` operation.
"""

import json
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..execution.errors import PlannerError
from ..execution.manager import PlanManager, rejected_result
from ..models.result import OperationResult


class ToolCallError(PlannerError):
    code = "tool.invalid_arguments"


class CreatePlanArgs(BaseModel):
    """
    Creates an execution plan to achieve a goal.

    Call this tool FIRST, before executing any step. Each step should be atomic
    (one clear action), verifiable, and written in imperative form
    ("Create folder", "Write file"). Creating a plan replaces the current one.
    """

    model_config = ConfigDict(extra="forbid")

    goal: str = Field(
        ...,
        description="The objective to achieve (what the user asked for).",
    )

    description: str = Field(
        "",
        description="A brief description of the approach.",
    )

    steps: Union[list[str], str] = Field(
        ...,
        description=(
            "Ordered step descriptions, either as a list or as one string "
            "separated by '|' characters."
        ),
    )

    details: Optional[list[Optional[str]]] = Field(
        None,
        description=(
            "Optional extra detail for each step, in the same order as "
            "'steps'. Use null for steps without details."
        ),
    )

    def step_list(self, separator: str = "|") -> list[str]:
        if isinstance(self.steps, str):
            return [s.strip() for s in self.steps.split(separator) if s.strip()]
        return list(self.steps)


class ExecuteNextStepArgs(BaseModel):
    """
    Marks the current step as done and moves on to the next pending step.

    Call this after completing the work for the current step, passing a
    description of what was accomplished. The response says whether more
    steps remain and what the next step is. Keep calling it until the plan
    is completed.
    """

    model_config = ConfigDict(extra="forbid")

    step_result: str = Field(
        ...,
        description="What was accomplished for the step just worked on.",
    )


class GetPlanStatusArgs(BaseModel):
    """
    Gets the current status of the execution plan: overall status, progress
    (finished/total steps), the current step, and every step with its status.
    """

    model_config = ConfigDict(extra="forbid")


class MarkStepFailedArgs(BaseModel):
    """
    Marks the current step as failed.

    Use this when a step cannot be completed. Afterwards either continue with
    'execute_next_step' or stop with 'abort_plan'.
    """

    model_config = ConfigDict(extra="forbid")

    error_message: str = Field(
        ...,
        description="What went wrong while working on the step.",
    )

    @field_validator("error_message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("error_message must not be blank")
        return value


class AbortPlanArgs(BaseModel):
    """
    Aborts the entire plan. Every unfinished step is marked as skipped.

    Use this when continuing execution is not possible or not desired.
    """

    model_config = ConfigDict(extra="forbid")

    reason: str = Field(
        ...,
        description="Why the plan is being aborted.",
    )


TOOL_MODELS: dict[str, type[BaseModel]] = {
    "create_plan": CreatePlanArgs,
    "execute_next_step": ExecuteNextStepArgs,
    "get_plan_status": GetPlanStatusArgs,
    "mark_step_failed": MarkStepFailedArgs,
    "abort_plan": AbortPlanArgs,
}


def _tool_description(model: type[BaseModel]) -> str:
    doc = model.__doc__ or ""
    return " ".join(doc.split())


class PlannerToolset:
    """Exposes a PlanManager as a set of named, schema-described tools."""

    def __init__(self, manager: PlanManager):
        self.manager = manager
        self._handlers: dict[str, Callable[[Any], OperationResult]] = {
            "create_plan": self._create_plan,
            "execute_next_step": lambda a: self.manager.execute_next_step(a.step_result),
            "get_plan_status": lambda a: self.manager.get_plan_status(),
            "mark_step_failed": lambda a: self.manager.mark_step_failed(a.error_message),
            "abort_plan": lambda a: self.manager.abort_plan(a.reason),
        }

    @property
    def tool_names(self) -> list[str]:
        return list(TOOL_MODELS.keys())

    def tool_definitions(self) -> list[dict[str, Any]]:
        """Returns the tools in the OpenAI function-calling format."""
        tools: list[dict[str, Any]] = []
        for name, model in TOOL_MODELS.items():
            schema = model.model_json_schema()
            schema.pop("title", None)
            schema.pop("description", None)
            for prop in schema.get("properties", {}).values():
                prop.pop("title", None)
            tools.append(
                {
                    "type": "function",
                    "function": {
                        "name": name,
                        "description": _tool_description(model),
                        "parameters": schema,
                    },
                }
            )
        return tools

    def dispatch(
        self, name: str, arguments: Union[str, dict[str, Any], None] = None
    ) -> OperationResult:
        """Runs the tool ``name`` with the given arguments.

        Args:
            name: Tool name, as listed in ``tool_definitions``.
            arguments: Arguments as a dict or as the raw JSON string produced
                by the model.

        Returns:
            The operation result; malformed calls give a rejected result.
        """
        model = TOOL_MODELS.get(name)
        if model is None:
            return rejected_result(
                name,
                ToolCallError(
                    f"Tool '{name}' does not exist. Available tools: "
                    f"{', '.join(TOOL_MODELS)}.",
                    code="tool.unknown",
                ),
            )

        try:
            if isinstance(arguments, str):
                arguments = json.loads(arguments) if arguments.strip() else {}
            args = model.model_validate(arguments or {})
        except json.JSONDecodeError as e:
            return rejected_result(
                name, ToolCallError(f"Arguments are not valid JSON: {e.msg}.")
            )
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            return rejected_result(
                name, ToolCallError(f"Invalid arguments for '{name}': {problems}.")
            )

        return self._handlers[name](args)

    def _create_plan(self, args: CreatePlanArgs) -> OperationResult:
        return self.manager.create_plan(
            args.goal,
            args.description,
            args.step_list(self.manager.config.step_separator),
            args.details,
        )
