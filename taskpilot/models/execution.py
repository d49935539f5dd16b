"""
Data models for plan execution.

A run is a state machine: it advances until a task fails and an operator
decision is needed, then resumes with that decision.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from taskpilot.models.recovery import RecoverySuggestion


class RunState(Enum):
    RUNNING = "running"
    AWAITING_DECISION = "awaiting_decision"
    FINISHED = "finished"


class OperatorDecision(Enum):
    RETRY = "retry"
    SKIP = "skip"
    STOP = "stop"

    @classmethod
    def parse(cls, value: str) -> "OperatorDecision":
        """Map an operator selection (name or shortcut) to a decision."""
        normalized = value.strip().lower()
        aliases = {"r": cls.RETRY, "s": cls.SKIP, "q": cls.STOP, "quit": cls.STOP}
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)


@dataclass
class TaskOutcome:
    """Result of executing a single task step."""

    succeeded: bool
    error: Optional[str] = None
    response: Optional[str] = None
    exception: Optional[BaseException] = None

    @classmethod
    def success(cls, response: Optional[str] = None) -> "TaskOutcome":
        return cls(succeeded=True, response=response)

    @classmethod
    def failure(
        cls,
        reason: str,
        response: Optional[str] = None,
        exception: Optional[BaseException] = None,
    ) -> "TaskOutcome":
        return cls(succeeded=False, error=reason, response=response, exception=exception)


@dataclass
class DecisionRequest:
    """Raised by a run when a failed task needs an operator decision."""

    task_number: int
    description: str
    error: str
    options: List[OperatorDecision] = field(
        default_factory=lambda: list(OperatorDecision)
    )
    suggestions: List[RecoverySuggestion] = field(default_factory=list)

    @property
    def prompt(self) -> str:
        return f"Task #{self.task_number} failed: {self.error}. What would you like to do?"


@dataclass
class ExecutionSummary:
    total: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def all_completed(self) -> bool:
        return self.completed == self.total

    def format(self) -> str:
        if self.all_completed:
            return "All tasks completed successfully!"
        return (
            f"Execution incomplete: {self.completed} completed, "
            f"{self.failed} failed, {self.skipped} skipped"
        )


@dataclass
class ExecutionResult:
    success: bool
    message: str
    summary: Optional[ExecutionSummary] = None
