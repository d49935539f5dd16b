from typing import Dict, Optional

from taskpilot.models.task import Plan, Task, TaskStatus
from taskpilot.utils.logger import setup_logger

logger = setup_logger(__name__)

PROGRESS_BAR_WIDTH = 40
SEPARATOR_WIDTH = 70

TASK_PREFIXES = {
    TaskStatus.PENDING: "[ ]",
    TaskStatus.IN_PROGRESS: "[→]",
    TaskStatus.COMPLETED: "[✓]",
    TaskStatus.FAILED: "[✗]",
}


class PlanManager:
    """Holds the single current plan and renders it.

    Every operation except create_plan is a no-op when no plan exists, and
    task numbers outside the plan are ignored.
    """

    def __init__(self):
        self.current_plan: Optional[Plan] = None

    def create_plan(self, description: str) -> Plan:
        self.current_plan = Plan(goal=description)
        logger.info(f"Created plan: {description}")
        return self.current_plan

    def add_task(self, description: str) -> Optional[Task]:
        if not self.current_plan:
            return None
        task = self.current_plan.add_task(description)
        logger.debug(f"Added task #{task.number}: {description}")
        return task

    def _get_task(self, task_number: int) -> Optional[Task]:
        if not self.current_plan:
            return None
        task = self.current_plan.get_task(task_number)
        if task is None:
            logger.debug(f"Ignoring unknown task number {task_number}")
        return task

    def start_task(self, task_number: int):
        task = self._get_task(task_number)
        if task:
            task.mark_in_progress()

    def complete_task(self, task_number: int):
        task = self._get_task(task_number)
        if task:
            task.mark_complete()
            logger.info(f"Task #{task_number} completed")

    def fail_task(self, task_number: int, error: str):
        task = self._get_task(task_number)
        if task:
            task.mark_failed(error)
            logger.info(f"Task #{task_number} failed: {error}")

    def get_current_plan(self) -> Optional[Plan]:
        return self.current_plan

    def has_plan(self) -> bool:
        return self.current_plan is not None

    def clear_plan(self):
        self.current_plan = None

    def get_plan_data(self) -> Optional[Dict]:
        if not self.current_plan:
            return None
        return self.current_plan.to_dict()

    def display_plan(self) -> str:
        """Full view: goal, progress bar and one line per task."""
        plan = self.current_plan
        if not plan:
            return "No active plan."

        progress = int(plan.progress_percentage)
        lines = [_separator("TASK PLAN"), ""]
        if plan.goal:
            lines += [f"Goal: {plan.goal}", ""]
        lines += [
            f"Progress: {_progress_bar(progress)} {progress}% "
            f"({plan.completed_count}/{plan.total_count} tasks)",
            "",
            "Tasks:",
        ]
        for task in plan.tasks:
            lines.append(f"{TASK_PREFIXES[task.status]} {task.number}. {task.description}")
            if task.error:
                lines.append(f"    Error: {task.error}")
        lines += ["", _separator("")]
        return "\n".join(lines)

    def display_compact_plan(self) -> str:
        """One line: progress plus the current or next task."""
        plan = self.current_plan
        if not plan:
            return ""

        line = f"[Plan: {plan.completed_count}/{plan.total_count}] "
        current = plan.current_task
        if current:
            return line + f"→ {current.description}"
        if plan.is_complete():
            return line + "✓ Complete"
        upcoming = plan.next_pending_task
        if upcoming:
            return line + f"Next: {upcoming.description}"
        return line.rstrip()

    def get_plan_summary_for_llm(self) -> str:
        plan = self.current_plan
        if not plan:
            return ""

        summary = [
            "CURRENT PLAN:",
            f"Goal: {plan.goal}",
            f"Progress: {plan.completed_count}/{plan.total_count} tasks completed",
            "Tasks:",
        ]
        for task in plan.tasks:
            summary.append(
                f"  {task.number}. [{task.status.name}] {task.description}"
            )
        return "\n".join(summary) + "\n"


def _progress_bar(percentage: int, width: int = PROGRESS_BAR_WIDTH) -> str:
    filled = int(width * percentage / 100.0)
    return "[" + "█" * filled + "░" * (width - filled) + "]"


def _separator(title: str, width: int = SEPARATOR_WIDTH) -> str:
    if not title:
        return "─" * width
    return f" {title} ".center(width, "─")
