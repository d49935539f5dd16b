"""
Agent controller orchestrating the interactive session.

Routes operator input to the @plan and @errors commands, gates free-form
requests through the complexity analyzer, and drives plan execution.
"""

import asyncio
import signal
from typing import Optional

from taskpilot.config import Config
from taskpilot.models.project import ProjectContext
from taskpilot.services.complexity_service import ComplexityAnalyzer
from taskpilot.services.error_recovery_service import ErrorRecoveryService
from taskpilot.services.plan_builder import PlanBuilder
from taskpilot.services.plan_executor import PlanExecutor, PlanSession
from taskpilot.services.task_service import PlanManager
from taskpilot.views.base_view import BaseView
from taskpilot.utils.logger import setup_logger

logger = setup_logger(__name__)

PLAN_USAGE = """@plan create <description>  - Create a new plan with LLM assistance
@plan show                   - Display the current plan
@plan execute                - Execute the plan automatically
@plan start <task_number>    - Mark a task as in progress
@plan complete <task_number> - Mark a task as completed
@plan fail <task_number> [message] - Mark a task as failed
@plan clear                  - Clear the current plan"""

ERRORS_USAGE = """@errors [command]

  list [n]     Show last n errors (default: 10)
  stats        Show error statistics
  insights     Show learning insights from past errors
  clear        Clear error history
  clearlearn   Clear learned patterns"""

DEFAULT_ERROR_LIMIT = 10
MESSAGE_PREVIEW_LENGTH = 100


class AgentController:
    """Connects the operator, the planning services and the reasoning engine."""

    def __init__(
        self,
        view: Optional[BaseView] = None,
        engine=None,
        session: Optional[PlanSession] = None,
        recovery: Optional[ErrorRecoveryService] = None,
        analyzer: Optional[ComplexityAnalyzer] = None,
        project_context: Optional[ProjectContext] = None,
    ) -> None:
        """
        Initialize the agent controller.

        Args:
            view: View used for output and operator decisions. Defaults to CLIView.
            engine: Reasoning engine. Defaults to OpenAIService.
            session: Plan session shared with the executor.
            recovery: Error recovery service backed by the knowledge store.
            analyzer: Complexity analyzer for free-form requests.
            project_context: Description of the working directory's project.
        """
        logger.info("Initializing AgentController")
        if view is None:
            from taskpilot.views.cli_view import CLIView

            view = CLIView()
        if engine is None:
            from taskpilot.services.openai_service import OpenAIService

            engine = OpenAIService()

        self.view = view
        self.engine = engine
        self.session = session or PlanSession()
        self.recovery = recovery or ErrorRecoveryService()
        self.analyzer = analyzer or ComplexityAnalyzer()
        self.project_context = project_context or ProjectContext.from_directory()

        self.plan_builder = PlanBuilder(self.engine, self.plan_manager)
        self.executor = PlanExecutor(
            self.session, self.engine, self.recovery, operator=self.view, view=self.view
        )

        if hasattr(self.view, "set_controller"):
            self.view.set_controller(self)

    @property
    def plan_manager(self) -> PlanManager:
        return self.session.plan_manager

    async def start(self, initial_prompt: Optional[str] = None) -> None:
        await self.view.print_welcome()

        if initial_prompt and not await self.handle_input(initial_prompt):
            await self.view.print_goodbye()
            return

        await self.view.start_app()

    async def handle_input(self, user_input: str) -> bool:
        """
        Handle one line of operator input.

        Returns:
            False when the operator asked to exit, True otherwise.
        """
        text = user_input.strip()
        if not text:
            return True
        if text.lower() in Config.EXIT_COMMANDS:
            return False

        command, _, args = text.partition(" ")
        try:
            if command.lower() == "@plan":
                await self.handle_plan_command(args.strip())
            elif command.lower() == "@errors":
                await self.handle_errors_command(args.strip())
            else:
                await self.handle_request(text)
        except Exception as e:
            logger.error(f"Error handling input: {e}", exc_info=True)
            await self.view.print_error(f"Error handling input: {e}")
        return True

    # ── Free-form requests ───────────────────────────────────────────

    async def handle_request(self, text: str) -> None:
        verdict = self.analyzer.analyze(text)
        logger.info(f"Request complexity: {verdict}")

        if self.analyzer.should_suggest_plan(verdict) and not self.plan_manager.has_plan():
            await self.view.print_info(
                f"This looks like a {verdict.level.value.replace('_', ' ')} request "
                f"({verdict.reasoning})."
            )
            choice = await self.view.ask_choice(
                "Create a step-by-step plan first?", ["plan", "direct"]
            )
            if choice == "plan":
                await self.create_plan(text)
                return

        prompt = text
        plan_summary = self.plan_manager.get_plan_summary_for_llm()
        if plan_summary:
            prompt = f"{plan_summary}\n{text}"

        with self.view.create_spinner("Thinking..."):
            response = await self.engine.query(prompt)
        await self.view.print_agent_response(response)

    # ── @plan ────────────────────────────────────────────────────────

    async def handle_plan_command(self, args: str) -> None:
        if not args:
            if self.plan_manager.has_plan():
                await self.view.print_text(self.plan_manager.display_plan())
            else:
                await self.view.print_info(PLAN_USAGE)
            return

        subcommand, _, rest = args.partition(" ")
        subcommand = subcommand.lower()
        rest = rest.strip()

        if subcommand == "create":
            if not rest:
                await self.view.print_error(
                    "Description required. Usage: @plan create <description>"
                )
                return
            await self.create_plan(rest)
        elif subcommand == "show":
            if not self.plan_manager.has_plan():
                await self.view.print_info(
                    "No active plan. Create one with: @plan create <description>"
                )
                return
            await self.view.print_text(self.plan_manager.display_plan())
        elif subcommand == "execute":
            await self.execute_plan()
        elif subcommand == "start":
            number = await self._task_number(rest)
            if number is not None:
                self.plan_manager.start_task(number)
                await self.view.print_success(f"Task {number} started")
                await self.view.print_text(self.plan_manager.display_compact_plan())
        elif subcommand == "complete":
            number = await self._task_number(rest)
            if number is not None:
                self.plan_manager.complete_task(number)
                await self.view.print_success(f"Task {number} completed!")
                await self.view.print_text(self.plan_manager.display_compact_plan())
                if self.plan_manager.get_current_plan().is_complete():
                    await self.view.print_success("All tasks completed! Plan finished.")
        elif subcommand == "fail":
            number_text, _, message = rest.partition(" ")
            number = await self._task_number(number_text)
            if number is not None:
                self.plan_manager.fail_task(number, message.strip() or "Task failed")
                await self.view.print_error(f"Task {number} marked as failed")
                await self.view.print_text(self.plan_manager.display_plan())
        elif subcommand == "clear":
            if not self.plan_manager.has_plan():
                await self.view.print_info("No active plan to clear")
                return
            self.plan_manager.clear_plan()
            await self.view.print_success("Plan cleared")
        else:
            await self.view.print_error(f"Unknown subcommand. Usage:\n{PLAN_USAGE}")

    async def _task_number(self, value: str) -> Optional[int]:
        """Parses and range-checks a task number, reporting problems to the view."""
        plan = self.plan_manager.get_current_plan()
        if plan is None:
            await self.view.print_error("No active plan")
            return None

        try:
            number = int(value)
        except ValueError:
            await self.view.print_error("Invalid task number")
            return None

        if number < 1 or number > plan.total_count:
            await self.view.print_error(
                f"Invalid task number. Valid range: 1-{plan.total_count}"
            )
            return None
        return number

    async def create_plan(self, goal: str) -> None:
        with self.view.create_spinner("Creating plan with LLM assistance..."):
            plan = await self.plan_builder.create_plan(goal, self.project_context)

        if plan is None:
            await self.view.print_error(
                "Failed to parse LLM response. No tasks extracted."
            )
            return

        await self.view.print_success("Plan created successfully!")
        await self.view.print_plan(self.plan_manager.get_plan_data())
        await self.view.print_info("Run '@plan execute' to run it automatically.")

    async def execute_plan(self) -> None:
        if self.executor.is_execution_in_progress():
            await self.view.print_error("Plan execution already in progress")
            return

        loop = asyncio.get_running_loop()
        handler_installed = False
        try:
            loop.add_signal_handler(signal.SIGINT, self.executor.stop_execution)
            handler_installed = True
        except (NotImplementedError, RuntimeError, ValueError):
            logger.debug("SIGINT handler unavailable on this platform")

        try:
            result = await self.executor.execute_plan(self.project_context)
        finally:
            if handler_installed:
                loop.remove_signal_handler(signal.SIGINT)

        if result.success:
            await self.view.print_success(result.message)
        else:
            await self.view.print_error(result.message)

    # ── @errors ──────────────────────────────────────────────────────

    async def handle_errors_command(self, args: str) -> None:
        parts = args.split()
        command = parts[0].lower() if parts else "list"

        if command == "list":
            limit = DEFAULT_ERROR_LIMIT
            if len(parts) > 1:
                try:
                    limit = int(parts[1])
                except ValueError:
                    pass
            await self._show_error_list(limit)
        elif command == "stats":
            stats = self.recovery.get_statistics()
            if stats.total_errors == 0:
                await self.view.print_success("No errors recorded")
                return
            await self.view.print_text(stats.format())
        elif command == "insights":
            insights = self.recovery.get_learning_insights()
            if insights.total_patterns == 0:
                await self.view.print_success(
                    "No learned patterns yet. Patterns are learned as errors occur."
                )
                return
            await self.view.print_text(insights.format())
        elif command == "clear":
            self.recovery.clear_history()
            await self.view.print_success("Error history cleared")
        elif command == "clearlearn":
            self.recovery.clear_learning()
            await self.view.print_success("Learned patterns cleared")
        else:
            await self.view.print_error(f"Unknown command: {command}\n\n{ERRORS_USAGE}")

    async def _show_error_list(self, limit: int) -> None:
        errors = self.recovery.get_recent_errors(limit)
        if not errors:
            await self.view.print_success("No errors recorded")
            return

        lines = [f"ERROR HISTORY (last {len(errors)})", ""]
        for i, error in enumerate(errors, start=1):
            lines.append(f"#{i} - {error.timestamp:%Y-%m-%d %H:%M:%S}")
            lines.append(f"  Operation: {error.operation}")
            lines.append(f"  Type: {error.type}")
            if error.message:
                message = error.message
                if len(message) > MESSAGE_PREVIEW_LENGTH:
                    message = message[:MESSAGE_PREVIEW_LENGTH] + "..."
                lines.append(f"  Message: {message}")
            if error.context:
                lines.append(f"  Context: {len(error.context)} item(s)")
            lines.append("")
        await self.view.print_text("\n".join(lines))
