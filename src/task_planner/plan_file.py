"""Loading plan definitions from YAML or JSON files."""

import json
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class PlanFileError(Exception):
    def __init__(self, path: Path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"{path}: {detail}")


class StepDefinition(BaseModel):
    """
    A step written as a mapping, for steps that carry extra details.
    """

    model_config = ConfigDict(extra="forbid")

    description: str = Field(..., min_length=1, description="What to do.")
    details: Optional[str] = Field(None, description="Extra detail for the step.")


class PlanDefinition(BaseModel):
    """
    A plan as written in a file: goal, approach, and ordered steps.

    Each step is either plain text or a mapping with ``description`` and
    ``details``.
    """

    model_config = ConfigDict(extra="forbid")

    goal: str = Field(..., min_length=1, description="Objective of the plan.")
    description: str = Field("", description="The approach.")
    steps: list[Union[str, StepDefinition]] = Field(
        ..., min_length=1, description="Ordered steps."
    )

    def step_descriptions(self) -> list[str]:
        return [s if isinstance(s, str) else s.description for s in self.steps]

    def step_details(self) -> list[Optional[str]]:
        return [None if isinstance(s, str) else s.details for s in self.steps]


def load_plan_file(path: Union[str, Path]) -> PlanDefinition:
    """Reads and validates a plan definition.

    Files ending in .yaml/.yml are parsed as YAML, anything else as JSON.

    Raises:
        PlanFileError: If the file is missing, unparsable or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise PlanFileError(path, "file not found")

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise PlanFileError(path, f"cannot parse file: {e}") from e

    if not isinstance(data, dict):
        raise PlanFileError(path, "expected a mapping with goal, description and steps")

    try:
        return PlanDefinition.model_validate(data)
    except ValidationError as e:
        raise PlanFileError(path, str(e)) from e
