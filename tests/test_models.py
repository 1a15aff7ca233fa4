from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from task_planner.execution.errors import (
    InvalidArgumentsError,
    InvalidPlanError,
    InvalidTransitionError,
)
from task_planner.models.enums import PlanStatus, StepStatus
from task_planner.models.plan import Plan
from task_planner.models.result import OperationResult, PlanSnapshot, StepSnapshot
from task_planner.models.step import Step

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestStep:
    def test_defaults(self):
        step = Step(id=1, description="Create project folder")
        assert step.status == StepStatus.PENDING
        assert step.result is None
        assert step.started_at is None
        assert step.duration is None
        assert str(step) == "[○] Step 1: Create project folder"

    def test_blank_description_rejected(self):
        with pytest.raises(ValidationError):
            Step(id=1, description="   ")

    def test_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            Step(id=0, description="x")

    def test_identity_is_immutable(self):
        step = Step(id=1, description="x")
        with pytest.raises(ValidationError):
            step.description = "y"
        with pytest.raises(ValidationError):
            step.id = 2

    def test_complete_lifecycle(self):
        step = Step(id=1, description="Write code")
        step.start(T0)
        assert step.status == StepStatus.IN_PROGRESS
        assert step.status_symbol == "►"

        step.complete("done", T0 + timedelta(seconds=2.5))
        assert step.status == StepStatus.COMPLETED
        assert step.result == "done"
        assert step.duration == timedelta(seconds=2.5)
        assert step.is_terminal and step.is_success
        assert str(step) == "[✓] Step 1: Write code (2.5s)"

    def test_fail(self):
        step = Step(id=2, description="Deploy")
        step.start(T0)
        step.fail("boom", T0)
        assert step.status == StepStatus.FAILED
        assert step.error_message == "boom"
        assert step.result is None
        assert not step.is_success

    def test_cannot_complete_pending_step(self):
        step = Step(id=1, description="x")
        with pytest.raises(InvalidTransitionError):
            step.complete("done", T0)
        assert step.status == StepStatus.PENDING
        assert step.result is None

    def test_terminal_step_cannot_move(self):
        step = Step(id=1, description="x")
        step.start(T0)
        step.complete("done", T0)
        for action in (
            lambda: step.start(T0),
            lambda: step.fail("e", T0),
            lambda: step.skip("r", T0),
        ):
            with pytest.raises(InvalidTransitionError):
                action()
        assert step.status == StepStatus.COMPLETED

    def test_invalid_result_leaves_step_unchanged(self):
        step = Step(id=1, description="x")
        step.start(T0)

        with pytest.raises(ValidationError):
            step.complete({"files": ["a.py"]}, T0)

        assert step.status == StepStatus.IN_PROGRESS
        assert step.result is None
        assert step.completed_at is None

    def test_invalid_error_message_leaves_step_unchanged(self):
        step = Step(id=1, description="x")
        step.start(T0)

        with pytest.raises(ValidationError):
            step.fail(404, T0)

        assert step.status == StepStatus.IN_PROGRESS
        assert step.error_message is None

    def test_skip_pending_step(self):
        step = Step(id=1, description="x")
        step.skip("aborted", T0)
        assert step.status == StepStatus.SKIPPED
        assert step.result == "aborted"
        assert step.completed_at == T0
        assert step.started_at is None
        assert step.duration is None


class TestPlan:
    @pytest.fixture
    def plan(self):
        return Plan.create("Goal", "Approach", ["A", "B", "C", "D"], now=T0)

    def test_create(self, plan):
        assert plan.status == PlanStatus.CREATED
        assert plan.total_steps == 4
        assert plan.completed_steps == 0
        assert plan.progress_percentage == 0
        assert plan.current_step is None
        assert plan.next_step.id == 1
        assert plan.created_at == T0
        assert plan.duration is None
        assert len(plan.plan_id) == 32

    def test_create_requires_steps(self):
        with pytest.raises(InvalidPlanError) as exc:
            Plan.create("g", "d", [])
        assert exc.value.code == "plan.invalid"

    def test_create_with_details(self):
        plan = Plan.create("g", "", ["A", "B"], now=T0, step_details=[" a ", ""])
        assert [s.details for s in plan.steps] == ["a", None]

    @pytest.mark.parametrize(
        "goal, steps",
        [(None, ["A"]), ("g", "A"), ("g", 5)],
    )
    def test_create_rejects_wrong_types(self, goal, steps):
        with pytest.raises(InvalidArgumentsError) as exc:
            Plan.create(goal, "", steps)
        assert exc.value.code == "operation.invalid_arguments"

    def test_step_ids_must_be_sequential(self):
        with pytest.raises(ValidationError):
            Plan(goal="g", steps=[Step(id=1, description="a"), Step(id=3, description="b")])

    def test_get_step(self, plan):
        assert plan.get_step(2).description == "B"
        assert plan.get_step(0) is None
        assert plan.get_step(5) is None

    def test_progress_counts_all_terminal_steps(self, plan):
        plan.start(T0)
        plan.steps[0].start(T0)
        plan.steps[0].complete("ok", T0)
        plan.steps[1].start(T0)
        plan.steps[1].fail("bad", T0)

        assert plan.completed_steps == 2
        assert plan.succeeded_steps == 1
        assert plan.failed_steps == 1
        assert plan.pending_steps == 2
        assert plan.progress_percentage == 50
        assert plan.has_failures
        assert not plan.all_steps_succeeded

    def test_progress_truncates(self):
        plan = Plan.create("g", "", ["A", "B", "C"])
        plan.start(T0)
        plan.steps[0].start(T0)
        plan.steps[0].complete("ok", T0)
        assert plan.progress_percentage == 33

    def test_cancel_skips_unfinished_steps(self, plan):
        plan.start(T0)
        plan.steps[0].start(T0)
        plan.steps[0].complete("ok", T0)
        plan.steps[1].start(T0)

        skipped = plan.cancel("stop", T0 + timedelta(seconds=3))

        assert [s.id for s in skipped] == [2, 3, 4]
        assert plan.status == PlanStatus.CANCELLED
        assert plan.completed_steps == plan.total_steps
        assert plan.progress_percentage == 100
        assert plan.duration == timedelta(seconds=3)

    def test_finish_requires_executing(self, plan):
        with pytest.raises(InvalidTransitionError):
            plan.finish(T0)

    def test_cancelled_plan_cannot_restart(self, plan):
        plan.cancel("stop", T0)
        with pytest.raises(InvalidTransitionError):
            plan.start(T0)

    def test_goal_is_immutable(self, plan):
        with pytest.raises(ValidationError):
            plan.goal = "other"


class TestSnapshots:
    def test_plan_snapshot(self):
        plan = Plan.create("Goal", "Approach", ["A", "B"], now=T0)
        plan.start(T0)
        plan.steps[0].start(T0)

        snap = PlanSnapshot.from_plan(plan)

        assert snap.status == "executing"
        assert snap.current_step_id == 1
        assert snap.next_step_id == 2
        assert snap.duration_seconds is None
        assert snap.steps[0].status == "in_progress"

    def test_step_snapshot_duration(self):
        step = Step(id=1, description="x")
        step.start(T0)
        step.complete("ok", T0 + timedelta(seconds=1))
        assert StepSnapshot.from_step(step).duration_seconds == 1.0

    def test_result_serializes_to_json(self):
        plan = Plan.create("Goal", "", ["A"], now=T0)
        result = OperationResult(
            operation="create_plan",
            status="success",
            message="ok",
            timestamp=T0,
            plan=PlanSnapshot.from_plan(plan),
        )
        data = result.model_dump(mode="json")
        assert data["status"] == "success"
        assert data["plan"]["steps"][0]["status"] == "pending"
        assert result.ok
        assert str(result) == "ok"
