import json
from pathlib import Path

from task_planner.chat.tools import TOOL_MODELS
from task_planner.models.result import OperationResult, PlanSnapshot
from task_planner.plan_file import PlanDefinition


OUTPUT_DIR = Path("docs/schemas")


MODELS = {
    "operation_result.schema.json": OperationResult,
    "plan_snapshot.schema.json": PlanSnapshot,
    "plan_definition.schema.json": PlanDefinition,
    **{f"tool.{name}.schema.json": model for name, model in TOOL_MODELS.items()},
}


def main() -> None:
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for filename, model in MODELS.items():
        schema = model.model_json_schema()
        (OUTPUT_DIR / filename).write_text(
            json.dumps(schema, indent=2),
            encoding="utf-8",
        )


if __name__ == "__main__":
    main()
