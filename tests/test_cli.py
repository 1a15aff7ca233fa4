import json
import logging

import pytest
from typer.testing import CliRunner

from task_planner.cli import app

runner = CliRunner()


@pytest.fixture
def plan_file(tmp_path):
    path = tmp_path / "plan.yaml"
    path.write_text(
        "goal: Ship feature X\n"
        "description: incremental rollout\n"
        "steps: [Write code, Write tests, Deploy]\n"
    )
    return path


class TestCLI:
    @pytest.fixture(autouse=True)
    def quiet_logs(self, monkeypatch):
        monkeypatch.setenv("PLANNER_LOG_LEVEL", "ERROR")
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_schema(self):
        result = runner.invoke(app, ["schema"])
        assert result.exit_code == 0
        tools = json.loads(result.output)
        assert [t["function"]["name"] for t in tools][0] == "create_plan"

    def test_demo(self, plan_file):
        result = runner.invoke(app, ["demo", str(plan_file), "--result", "ok"])
        assert result.exit_code == 0
        assert "Plan created with 3 steps" in result.output
        assert "PLAN COMPLETED" in result.output
        assert "Status: completed" in result.output

    def test_demo_missing_file(self, tmp_path):
        result = runner.invoke(app, ["demo", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_run_session(self):
        session = "\n".join(
            [
                "help",
                "create Ship | rollout | Write code | Deploy",
                "next wrote it",
                "fail deploy broke",
                "status",
                "report",
                "metrics",
                "bogus",
                "exit",
            ]
        )
        result = runner.invoke(app, ["run"], input=session + "\n")

        assert result.exit_code == 0
        assert "Commands:" in result.output
        assert "Plan created with 2 steps" in result.output
        assert "NEXT STEP (2): Deploy" in result.output
        assert "Plan completed with failures" in result.output
        assert "Status: completed" in result.output
        assert "### Plan: Ship" in result.output
        assert "steps.failed" in result.output
        assert "Unknown command: bogus" in result.output
        assert "Bye!" in result.output

    def test_run_with_plan_file_and_eof(self, plan_file):
        result = runner.invoke(
            app, ["run", "--plan-file", str(plan_file)], input="next done\n"
        )
        assert result.exit_code == 0
        assert "Plan created with 3 steps" in result.output
        assert "Step 1 completed" in result.output
        assert "Bye!" in result.output

    def test_run_rejections_are_reported(self):
        result = runner.invoke(app, ["run"], input="next x\ncreate only goal\nexit\n")
        assert result.exit_code == 0
        assert "No plan exists" in result.output
        assert "Usage: create" in result.output

    def test_demo_reports_step_details(self, tmp_path):
        path = tmp_path / "plan.yaml"
        path.write_text(
            "goal: Ship\n"
            "steps:\n"
            "  - Code\n"
            "  - description: Deploy\n"
            "    details: to staging first\n"
        )
        result = runner.invoke(app, ["demo", str(path)])

        assert result.exit_code == 0
        assert "NEXT STEP (2): Deploy (details: to staging first)" in result.output
        assert "to staging first" in result.output
