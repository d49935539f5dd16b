"""Tests for the Task and Plan models."""

from taskpilot.models.task import Plan, Task, TaskStatus


def _plan(count: int) -> Plan:
    plan = Plan(goal="Ship feature")
    for i in range(count):
        plan.add_task(f"Step {i + 1}")
    return plan


class TestTask:
    def test_defaults(self):
        task = Task(number=1, description="Write tests")
        assert task.status == TaskStatus.PENDING
        assert task.error is None
        assert task.started_at is None
        assert task.completed_at is None

    def test_mark_in_progress_stamps_start_and_clears_error(self):
        task = Task(number=1, description="x", error="old")
        task.mark_in_progress()
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.started_at is not None
        assert task.error is None

    def test_mark_complete_stamps_completion(self):
        task = Task(number=1, description="x")
        task.mark_complete()
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at is not None

    def test_mark_failed_keeps_error(self):
        task = Task(number=2, description="x")
        task.mark_failed("boom")
        assert task.status == TaskStatus.FAILED
        assert task.error == "boom"

    def test_str(self):
        task = Task(number=3, description="Deploy")
        task.mark_complete()
        assert str(task) == "[✓] 3. Deploy"

    def test_to_dict(self):
        data = Task(number=1, description="x").to_dict()
        assert data["status"] == "pending"
        assert data["started_at"] is None


class TestPlanNumbering:
    def test_numbers_are_sequential(self):
        plan = _plan(3)
        assert [t.number for t in plan.tasks] == [1, 2, 3]

    def test_get_task_out_of_range(self):
        plan = _plan(2)
        assert plan.get_task(0) is None
        assert plan.get_task(3) is None
        assert plan.get_task(2).description == "Step 2"


class TestOverallStatus:
    def test_empty_plan_is_pending(self):
        assert Plan(goal="nothing").overall_status == TaskStatus.PENDING

    def test_fresh_plan_is_pending(self):
        assert _plan(3).overall_status == TaskStatus.PENDING

    def test_in_progress(self):
        plan = _plan(2)
        plan.tasks[0].mark_in_progress()
        assert plan.overall_status == TaskStatus.IN_PROGRESS

    def test_all_completed(self):
        plan = _plan(3)
        for task in plan.tasks:
            task.mark_complete()
        assert plan.overall_status == TaskStatus.COMPLETED
        assert plan.is_complete()

    def test_failure_dominates(self):
        plan = _plan(3)
        plan.tasks[0].mark_complete()
        plan.tasks[1].mark_failed("nope")
        plan.tasks[2].mark_complete()
        assert plan.overall_status == TaskStatus.FAILED
        assert plan.has_failed()
        assert not plan.is_complete()


class TestPlanProgress:
    def test_counts_and_percentage(self):
        plan = _plan(4)
        plan.tasks[0].mark_complete()
        assert plan.completed_count == 1
        assert plan.total_count == 4
        assert plan.progress_percentage == 25.0

    def test_empty_percentage(self):
        assert Plan(goal="g").progress_percentage == 0.0

    def test_current_and_next(self):
        plan = _plan(3)
        assert plan.current_task is None
        assert plan.next_pending_task.number == 1
        plan.tasks[0].mark_complete()
        plan.tasks[1].mark_in_progress()
        assert plan.current_task.number == 2
        assert plan.next_pending_task.number == 3

    def test_to_dict(self):
        plan = _plan(1)
        data = plan.to_dict()
        assert data["goal"] == "Ship feature"
        assert data["status"] == "pending"
        assert len(data["tasks"]) == 1
