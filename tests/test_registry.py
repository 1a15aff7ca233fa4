import threading

import pytest

from task_planner.api.endpoints import PlannerEndpoints
from task_planner.config import PlannerConfig
from task_planner.execution.manager import PlanManager
from task_planner.execution.registry import PlanRegistry
from task_planner.models.enums import PlanStatus


class TestPlanRegistry:
    @pytest.fixture
    def registry(self):
        return PlanRegistry(config=PlannerConfig(emit_log_events=False))

    def test_plans_are_independent(self, registry):
        a = registry.create_plan("A", "", ["a1", "a2"])
        b = registry.create_plan("B", "", ["b1"])
        assert a.plan_id != b.plan_id
        assert len(registry) == 2

        registry.execute_next_step(b.plan_id, "done")

        assert registry.get_manager(b.plan_id).current_plan.status == PlanStatus.COMPLETED
        assert registry.get_manager(a.plan_id).current_plan.status == PlanStatus.CREATED

    def test_invalid_plan_is_not_registered(self, registry):
        result = registry.create_plan("A", "", [])
        assert result.error.code == "plan.invalid"
        assert len(registry) == 0

    def test_unknown_handle(self, registry):
        for result in (
            registry.execute_next_step("nope", "x"),
            registry.complete_current_step("nope", "x"),
            registry.start_next_step("nope"),
            registry.get_plan_status("nope"),
            registry.mark_step_failed("nope", "x"),
            registry.abort_plan("nope", "x"),
        ):
            assert result.status == "rejected"
            assert result.error.code == "plan.missing"
            assert "nope" in result.message

    def test_split_operations_by_handle(self, registry):
        pid = registry.create_plan("A", "", ["a1"]).plan_id
        assert registry.start_next_step(pid).ok
        assert registry.complete_current_step(pid, "ok").ok
        assert registry.get_plan_status(pid).plan.status == "completed"

    def test_remove_and_list(self, registry):
        pid = registry.create_plan("A", "", ["a1"]).plan_id
        registry.create_plan("B", "", ["b1"])

        assert {p.goal for p in registry.list_plans()} == {"A", "B"}
        assert pid in registry
        assert registry.remove_plan(pid) is True
        assert registry.remove_plan(pid) is False
        assert [p.goal for p in registry.list_plans()] == ["B"]

    def test_concurrent_callers_keep_one_step_active(self, registry):
        pid = registry.create_plan("A", "", [f"s{i}" for i in range(50)]).plan_id
        results = []

        def worker():
            for _ in range(10):
                results.append(registry.execute_next_step(pid, "ok"))

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        plan = registry.get_manager(pid).current_plan
        assert all(r.ok for r in results)
        assert plan.status == PlanStatus.COMPLETED
        assert plan.succeeded_steps == 50
        assert sorted(r.step_id for r in results) == list(range(1, 51))


    def test_list_plans_waits_for_running_operation(self, registry):
        pid = registry.create_plan("A", "", ["a1", "a2"]).plan_id
        manager = registry.get_manager(pid)
        listed = []

        with manager._lock:
            reader = threading.Thread(
                target=lambda: listed.extend(registry.list_plans())
            )
            reader.start()
            reader.join(timeout=0.2)
            assert reader.is_alive()
            manager.current_plan.steps[0].start(manager.current_plan.created_at)

        reader.join(timeout=5)
        assert [p.current_step_id for p in listed] == [1]

    def test_snapshot_without_plan(self):
        assert PlanManager(config=PlannerConfig(emit_log_events=False)).snapshot() is None


class TestPlannerEndpoints:
    @pytest.fixture
    def api(self):
        return PlannerEndpoints(PlanRegistry(config=PlannerConfig(emit_log_events=False)))

    def test_round_of_operations(self, api):
        created = api.create_plan("Ship", "fast", ["Code", "Deploy"])
        assert created["status"] == "success"
        pid = created["plan_id"]

        step = api.execute_next_step(pid, "coded")
        assert step["step_id"] == 1
        assert step["plan"]["current_step_id"] == 2

        failed = api.mark_step_failed(pid, "deploy broke")
        assert failed["plan"]["status"] == "completed"
        assert failed["plan"]["failed_steps"] == 1

        status = api.get_plan_status(pid)
        assert status["plan"]["progress_percentage"] == 100

        aborted = api.abort_plan(pid, "late")
        assert aborted["status"] == "noop"

        plans = api.list_plans()
        assert len(plans) == 1
        assert plans[0]["plan_id"] == pid

    def test_missing_steps(self, api):
        result = api.create_plan("Ship", "", None)
        assert result["status"] == "rejected"
        assert result["error"]["code"] == "plan.invalid"

    def test_default_registry(self):
        assert isinstance(PlannerEndpoints().registry, PlanRegistry)

    def test_wrong_argument_types_are_rejected(self, api):
        created = api.create_plan(None, "", ["A"])
        assert created["status"] == "rejected"
        assert created["error"]["code"] == "operation.invalid_arguments"
        assert api.list_plans() == []

        pid = api.create_plan("Ship", "", ["Code", "Deploy"])["plan_id"]
        result = api.execute_next_step(pid, {"files": ["a.py"]})
        assert result["status"] == "rejected"
        assert result["error"]["code"] == "operation.invalid_arguments"
        assert [s["status"] for s in result["plan"]["steps"]] == ["pending", "pending"]

    def test_details_round_trip(self, api):
        created = api.create_plan("Ship", "", ["Code", "Deploy"], ["in src/", None])
        assert [s["details"] for s in created["plan"]["steps"]] == ["in src/", None]
