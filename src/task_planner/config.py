"""Runtime configuration for the task planner."""

import os
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


LogFormat = Literal["json", "text"]


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class PlannerConfig(BaseModel):
    """
    Static configuration for the plan manager and its hosting layers.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    log_level: str = Field(
        default="INFO",
        description="Log level used by setup_logging.",
    )
    log_format: LogFormat = Field(
        default="json",
        description="Log output format: one JSON object per line, or plain text.",
    )
    history_limit: int = Field(
        default=10,
        ge=0,
        description="How many superseded plans to keep in history (0 disables).",
    )
    step_separator: str = Field(
        default="|",
        min_length=1,
        description="Separator used when steps are supplied as one delimited string.",
    )
    emit_log_events: bool = Field(
        default=True,
        description="Whether the manager attaches a LoggingObserver by default.",
    )

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "PlannerConfig":
        """Builds a config from PLANNER_* environment variables.

        Unset variables fall back to the field defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if "PLANNER_LOG_LEVEL" in env:
            values["log_level"] = env["PLANNER_LOG_LEVEL"].upper()
        if "PLANNER_LOG_FORMAT" in env:
            values["log_format"] = env["PLANNER_LOG_FORMAT"].lower()
        if "PLANNER_HISTORY_LIMIT" in env:
            values["history_limit"] = int(env["PLANNER_HISTORY_LIMIT"])
        if "PLANNER_STEP_SEPARATOR" in env:
            values["step_separator"] = env["PLANNER_STEP_SEPARATOR"]
        if "PLANNER_EMIT_LOG_EVENTS" in env:
            values["emit_log_events"] = _env_bool(env["PLANNER_EMIT_LOG_EVENTS"])
        return cls(**values)
