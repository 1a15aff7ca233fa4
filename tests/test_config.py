import pytest
from pydantic import ValidationError

from task_planner.config import PlannerConfig


class TestPlannerConfig:
    def test_defaults(self):
        config = PlannerConfig()
        assert config.log_level == "INFO"
        assert config.log_format == "json"
        assert config.history_limit == 10
        assert config.step_separator == "|"
        assert config.emit_log_events is True

    def test_from_env(self):
        config = PlannerConfig.from_env(
            {
                "PLANNER_LOG_LEVEL": "debug",
                "PLANNER_LOG_FORMAT": "TEXT",
                "PLANNER_HISTORY_LIMIT": "3",
                "PLANNER_STEP_SEPARATOR": ";",
                "PLANNER_EMIT_LOG_EVENTS": "no",
            }
        )
        assert config.log_level == "DEBUG"
        assert config.log_format == "text"
        assert config.history_limit == 3
        assert config.step_separator == ";"
        assert config.emit_log_events is False

    def test_from_env_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("PLANNER_HISTORY_LIMIT", "0")
        assert PlannerConfig.from_env().history_limit == 0

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            PlannerConfig(history_limit=-1)
        with pytest.raises(ValidationError):
            PlannerConfig(log_format="xml")
        with pytest.raises(ValidationError):
            PlannerConfig(unknown=True)

    def test_frozen(self):
        config = PlannerConfig()
        with pytest.raises(ValidationError):
            config.history_limit = 5
