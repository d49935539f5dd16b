from abc import ABC, abstractmethod
from typing import Any, ContextManager, Dict, List, Optional, Sequence

from taskpilot.models.execution import ExecutionSummary
from taskpilot.models.recovery import RecoverySuggestion
from taskpilot.models.task import Task


class BaseView(ABC):
    @abstractmethod
    async def print_welcome(self):
        """Displays the welcome message."""
        pass

    @abstractmethod
    async def start_app(self):
        """Runs the interactive input loop."""
        pass

    @abstractmethod
    async def ask_choice(self, prompt: str, options: Sequence[str]) -> str:
        """Asks the operator to pick one of the options and returns it."""
        pass

    @abstractmethod
    async def print_agent_response(self, text: str):
        """Displays the reasoning engine's text response."""
        pass

    @abstractmethod
    async def print_plan(self, plan_data: Dict[str, Any]):
        """Displays the plan status."""
        pass

    @abstractmethod
    async def print_text(self, text: str):
        """Displays pre-rendered plain text."""
        pass

    @abstractmethod
    async def print_success(self, message: str):
        pass

    @abstractmethod
    async def print_info(self, message: str):
        """Displays an informational message."""
        pass

    @abstractmethod
    async def print_error(self, message: str):
        """Displays an error message."""
        pass

    @abstractmethod
    async def print_goodbye(self):
        """Displays a goodbye message."""
        pass

    @abstractmethod
    def print_execution_start(self, total: int):
        pass

    @abstractmethod
    def print_task_start(self, task: Task, total: int):
        pass

    @abstractmethod
    def print_task_success(self, task: Task, retried: bool = False):
        pass

    @abstractmethod
    def print_task_failure(
        self,
        task: Task,
        error: str,
        suggestions: Optional[List[RecoverySuggestion]] = None,
        final: bool = False,
    ):
        pass

    @abstractmethod
    def print_execution_summary(self, summary: ExecutionSummary):
        pass

    @abstractmethod
    def create_spinner(self, text: str) -> ContextManager:
        """Creates a context manager for a loading spinner."""
        pass
