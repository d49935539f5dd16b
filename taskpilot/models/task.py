from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class TaskStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


STATUS_GLYPHS = {
    TaskStatus.PENDING: "⋯",
    TaskStatus.IN_PROGRESS: "→",
    TaskStatus.COMPLETED: "✓",
    TaskStatus.FAILED: "✗",
}


@dataclass
class Task:
    number: int
    description: str
    status: TaskStatus = TaskStatus.PENDING
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def mark_in_progress(self):
        self.status = TaskStatus.IN_PROGRESS
        self.error = None
        self.started_at = datetime.now()

    def mark_complete(self):
        self.status = TaskStatus.COMPLETED
        self.completed_at = datetime.now()

    def mark_failed(self, error: str):
        self.status = TaskStatus.FAILED
        self.error = error
        self.completed_at = datetime.now()

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "description": self.description,
            "status": self.status.value,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
        }

    def __str__(self) -> str:
        return f"[{STATUS_GLYPHS[self.status]}] {self.number}. {self.description}"


@dataclass
class Plan:
    goal: str
    tasks: List[Task] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    def add_task(self, description: str) -> Task:
        task = Task(number=len(self.tasks) + 1, description=description)
        self.tasks.append(task)
        return task

    def get_task(self, number: int) -> Optional[Task]:
        if 0 < number <= len(self.tasks):
            return self.tasks[number - 1]
        return None

    @property
    def overall_status(self) -> TaskStatus:
        """Derived from the tasks on every access; failure dominates."""
        statuses = [t.status for t in self.tasks]
        if TaskStatus.FAILED in statuses:
            return TaskStatus.FAILED
        if statuses and all(s == TaskStatus.COMPLETED for s in statuses):
            return TaskStatus.COMPLETED
        if TaskStatus.IN_PROGRESS in statuses:
            return TaskStatus.IN_PROGRESS
        return TaskStatus.PENDING

    @property
    def current_task(self) -> Optional[Task]:
        return next(
            (t for t in self.tasks if t.status == TaskStatus.IN_PROGRESS), None
        )

    @property
    def next_pending_task(self) -> Optional[Task]:
        return next((t for t in self.tasks if t.status == TaskStatus.PENDING), None)

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self.tasks if t.status == TaskStatus.COMPLETED)

    @property
    def total_count(self) -> int:
        return len(self.tasks)

    @property
    def progress_percentage(self) -> float:
        if not self.tasks:
            return 0.0
        return self.completed_count * 100.0 / self.total_count

    def is_complete(self) -> bool:
        return self.overall_status == TaskStatus.COMPLETED

    def has_failed(self) -> bool:
        return self.overall_status == TaskStatus.FAILED

    def to_dict(self) -> dict:
        return {
            "goal": self.goal,
            "status": self.overall_status.value,
            "created_at": self.created_at.isoformat(),
            "tasks": [t.to_dict() for t in self.tasks],
        }
