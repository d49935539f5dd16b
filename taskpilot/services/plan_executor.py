"""
Unattended plan execution.

Tasks run in plan order against the reasoning engine. A failed task suspends
the run until the operator chooses to retry it once, skip it or stop the
run; the executor tallies completed, failed and skipped tasks for the
final summary.
"""

import asyncio
import threading
from typing import List, Optional, Set, Union

from taskpilot.config import Config
from taskpilot.models.execution import (
    DecisionRequest,
    ExecutionResult,
    ExecutionSummary,
    OperatorDecision,
    RunState,
    TaskOutcome,
)
from taskpilot.models.knowledge import ErrorRecord
from taskpilot.models.project import ProjectContext
from taskpilot.models.task import Plan, Task, TaskStatus
from taskpilot.services.outcome_classifier import (
    KeywordOutcomeClassifier,
    OutcomeClassifier,
)
from taskpilot.services.task_service import PlanManager
from taskpilot.utils.logger import setup_logger

logger = setup_logger(__name__)

RETRY_OUTCOME = "Task completed on retry"


class TaskExecutionError(Exception):
    """A task the reasoning engine reported as failed."""


class PlanSession:
    """
    State shared by everything that drives one plan.

    Owns the plan manager, the in-progress flag and the cooperative stop
    flag. Create one per interactive session and hand it to the executor.
    """

    def __init__(self, plan_manager: Optional[PlanManager] = None):
        self.plan_manager = plan_manager or PlanManager()
        self._lock = threading.Lock()
        self._running = False
        self._stop_event = asyncio.Event()

    def try_begin(self) -> bool:
        """Marks the session as running; False if it already was."""
        with self._lock:
            if self._running:
                return False
            self._running = True
            self._stop_event.clear()
            return True

    def end(self) -> None:
        with self._lock:
            self._running = False

    @property
    def in_progress(self) -> bool:
        with self._lock:
            return self._running

    def request_stop(self) -> None:
        self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    async def wait_for_stop(self, timeout: float) -> bool:
        """Sleeps up to timeout seconds; returns True as soon as a stop is requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False


class ExecutionRun:
    """
    One pass over a plan.

    advance() runs tasks until one fails, returning a DecisionRequest, or
    until the plan is exhausted or stopped, returning None. After a
    DecisionRequest the caller must answer it with resume().
    """

    def __init__(
        self,
        session: PlanSession,
        engine,
        recovery,
        classifier: Optional[OutcomeClassifier] = None,
        project_context: Optional[ProjectContext] = None,
        task_delay: Optional[float] = None,
        view=None,
    ):
        plan = session.plan_manager.get_current_plan()
        if plan is None:
            raise ValueError("No active plan to execute")

        self.session = session
        self.plan: Plan = plan
        self.engine = engine
        self.recovery = recovery
        self.classifier = classifier or KeywordOutcomeClassifier()
        self.project_context = project_context
        self.task_delay = Config.TASK_DELAY if task_delay is None else task_delay
        self.view = view

        self.state = RunState.RUNNING
        self.summary = ExecutionSummary(total=self.plan.total_count)
        self.pending_request: Optional[DecisionRequest] = None
        self._index = 0
        self._failed_record: Optional[ErrorRecord] = None
        self._retried: Set[int] = set()

    @property
    def plan_manager(self) -> PlanManager:
        return self.session.plan_manager

    @property
    def tasks(self) -> List[Task]:
        return self.plan.tasks

    async def advance(self) -> Optional[DecisionRequest]:
        if self.state == RunState.AWAITING_DECISION:
            return self.pending_request
        if self.state == RunState.FINISHED:
            return None

        while self._index < len(self.tasks):
            if self.session.stop_requested:
                logger.info("Stop requested, ending plan execution")
                self._finish(stopped=True)
                return None

            task = self.tasks[self._index]

            if task.status == TaskStatus.COMPLETED:
                self.summary.completed += 1
                self._index += 1
                continue
            if task.status == TaskStatus.FAILED:
                self.summary.failed += 1
                self._index += 1
                continue

            if self.view:
                self.view.print_task_start(task, self.plan.total_count)

            outcome = await self._execute_task(task)
            if not outcome.succeeded:
                return self._suspend(task, outcome)

            self.plan_manager.complete_task(task.number)
            self.summary.completed += 1
            if self.view:
                self.view.print_task_success(task)
            await self._next_task()

        self._finish()
        return None

    async def resume(
        self, decision: Union[OperatorDecision, str]
    ) -> Optional[DecisionRequest]:
        if self.state != RunState.AWAITING_DECISION:
            raise RuntimeError("No operator decision is pending")
        if not isinstance(decision, OperatorDecision):
            decision = OperatorDecision.parse(decision)

        task = self.tasks[self._index]
        record = self._failed_record
        self.pending_request = None
        self._failed_record = None
        self.state = RunState.RUNNING
        logger.info(f"Operator chose {decision.value} for task #{task.number}")

        if decision == OperatorDecision.STOP:
            self.session.request_stop()
            self._finish(stopped=True)
            return None

        if decision == OperatorDecision.SKIP:
            await self._next_task()
            return await self.advance()

        return await self._retry(task, record)

    async def _retry(
        self, task: Task, record: Optional[ErrorRecord]
    ) -> Optional[DecisionRequest]:
        if task.number in self._retried:
            raise ValueError(f"Task #{task.number} has already been retried")
        self._retried.add(task.number)

        outcome = await self._execute_task(task)
        if outcome.succeeded:
            self.plan_manager.complete_task(task.number)
            self.summary.completed += 1
            self.summary.failed -= 1
            if record is not None:
                self.recovery.record_successful_resolution(
                    record, f"Retry task: {task.description}", RETRY_OUTCOME
                )
            if self.view:
                self.view.print_task_success(task, retried=True)
            await self._next_task()
            return await self.advance()

        self.plan_manager.fail_task(task.number, outcome.error)
        self._record_failure(task, outcome)
        if self.view:
            self.view.print_task_failure(task, outcome.error, final=True)
        self.session.request_stop()
        self._finish(stopped=True)
        return None

    def _suspend(self, task: Task, outcome: TaskOutcome) -> DecisionRequest:
        self.plan_manager.fail_task(task.number, outcome.error)
        self.summary.failed += 1
        recovery_context = self._record_failure(task, outcome)

        self._failed_record = recovery_context.error if recovery_context else None
        self.pending_request = DecisionRequest(
            task_number=task.number,
            description=task.description,
            error=outcome.error,
            suggestions=recovery_context.suggestions if recovery_context else [],
        )
        self.state = RunState.AWAITING_DECISION
        if self.view:
            self.view.print_task_failure(
                task, outcome.error, suggestions=self.pending_request.suggestions
            )
        return self.pending_request

    def _record_failure(self, task: Task, outcome: TaskOutcome):
        error = outcome.exception or TaskExecutionError(outcome.error)
        return self.recovery.record_error(
            f"Plan execution - Task #{task.number}",
            error,
            {"task": task.description},
        )

    async def _execute_task(self, task: Task) -> TaskOutcome:
        self.plan_manager.start_task(task.number)
        prompt = self.build_task_prompt(task)

        try:
            response = await self.engine.query(prompt)
        except Exception as e:
            logger.error(f"Reasoning engine failed on task #{task.number}: {e}")
            return TaskOutcome.failure(str(e) or type(e).__name__, exception=e)

        return self.classifier.classify(response)

    def build_task_prompt(self, task: Task) -> str:
        prompt = "Execute the following task:\n\n"
        prompt += f"Task: {task.description}\n\n"
        prompt += "Context:\n"
        prompt += (
            f"- This is task #{task.number} of {self.plan.total_count} "
            "in a multi-step plan\n"
        )

        done = [
            t
            for t in self.tasks
            if t.status == TaskStatus.COMPLETED and t.number < task.number
        ]
        if done:
            prompt += "- Previously completed tasks:\n"
            for t in done:
                prompt += f"  ✓ Task #{t.number}: {t.description}\n"

        if self.project_context:
            prompt += f"{self.project_context.describe()}\n"

        prompt += "\nInstructions:\n"
        prompt += "- Perform the task as described\n"
        prompt += "- Use the available tools where needed\n"
        prompt += "- If you encounter errors, report them clearly\n"
        prompt += "- Confirm completion when done\n"
        return prompt

    async def _next_task(self) -> None:
        self._index += 1
        if self._index < len(self.tasks) and not self.session.stop_requested:
            await self.session.wait_for_stop(self.task_delay)

    def _finish(self, stopped: bool = False) -> None:
        if stopped:
            self.summary.skipped = sum(
                1 for t in self.tasks if t.status == TaskStatus.PENDING
            )
        self.state = RunState.FINISHED
        logger.info(f"Plan execution finished: {self.summary.format()}")


class PlanExecutor:
    def __init__(
        self,
        session: PlanSession,
        engine,
        recovery,
        operator,
        classifier: Optional[OutcomeClassifier] = None,
        view=None,
        task_delay: Optional[float] = None,
    ):
        self.session = session
        self.engine = engine
        self.recovery = recovery
        self.operator = operator
        self.classifier = classifier or KeywordOutcomeClassifier()
        self.view = view
        self.task_delay = task_delay

    async def execute_plan(
        self, project_context: Optional[ProjectContext] = None
    ) -> ExecutionResult:
        """
        Runs every outstanding task of the current plan.

        Failures are handled through the operator and never raise; the result
        reports whether every task ended up completed.
        """
        if not self.session.plan_manager.has_plan():
            return ExecutionResult(success=False, message="No active plan to execute")
        if not self.session.try_begin():
            return ExecutionResult(
                success=False, message="Execution already in progress"
            )

        try:
            run = ExecutionRun(
                self.session,
                self.engine,
                self.recovery,
                classifier=self.classifier,
                project_context=project_context,
                task_delay=self.task_delay,
                view=self.view,
            )
            logger.info(f"Executing plan with {run.summary.total} tasks")
            if self.view:
                self.view.print_execution_start(run.summary.total)

            request = await run.advance()
            while request is not None:
                decision = await self._ask_operator(request)
                request = await run.resume(decision)
        finally:
            self.session.end()

        summary = run.summary
        if self.view:
            self.view.print_execution_summary(summary)
        return ExecutionResult(
            success=summary.all_completed, message=summary.format(), summary=summary
        )

    async def _ask_operator(self, request: DecisionRequest) -> OperatorDecision:
        choice = await self.operator.ask_choice(
            request.prompt, [option.value for option in request.options]
        )
        try:
            return OperatorDecision.parse(choice)
        except ValueError:
            logger.warning(f"Unrecognized operator choice {choice!r}, stopping")
            return OperatorDecision.STOP

    def stop_execution(self) -> None:
        logger.info("Stop requested by operator")
        self.session.request_stop()

    def is_execution_in_progress(self) -> bool:
        return self.session.in_progress
