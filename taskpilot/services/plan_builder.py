import re
from typing import List, Optional, Tuple

from taskpilot.models.project import ProjectContext
from taskpilot.models.task import Plan
from taskpilot.services.task_service import PlanManager
from taskpilot.utils.logger import setup_logger

logger = setup_logger(__name__)

TASK_LINE_PATTERN = re.compile(r"^\d+\.\s+.+")

PLAN_INSTRUCTIONS = (
    "Create a step-by-step plan with 3-8 specific, actionable tasks.\n"
    "Each task should be clear and focused on one thing.\n\n"
    "Format your response EXACTLY as follows (nothing else):\n"
    "PLAN: <one-line summary>\n"
    "1. <task description>\n"
    "2. <task description>\n"
    "3. <task description>\n"
    "...\n\n"
    "Example:\n"
    "PLAN: Add JWT authentication to the web API\n"
    "1. Add the PyJWT dependency to pyproject.toml\n"
    "2. Create a token module for issuing and validating tokens\n"
    "3. Add a login endpoint that returns a token\n"
    "4. Protect existing endpoints with an authentication dependency\n"
    "5. Write tests for the token flow\n"
)


def parse_plan_response(text: str, default_goal: str) -> Tuple[str, List[str]]:
    """
    Extracts the plan summary and the numbered task lines from an engine reply.

    Returns:
        (goal, tasks). The goal falls back to default_goal when no "PLAN:" line exists.
    """
    goal = default_goal
    lines = text.splitlines()

    for line in lines:
        stripped = line.strip()
        if stripped.startswith("PLAN:"):
            goal = stripped.split(":", 1)[1].strip() or default_goal
            break

    tasks = []
    for line in lines:
        stripped = line.strip()
        if TASK_LINE_PATTERN.match(stripped):
            tasks.append(stripped.split(".", 1)[1].strip())

    return goal, tasks


class PlanBuilder:
    """Asks the reasoning engine to break a goal into a plan."""

    def __init__(self, engine, plan_manager: PlanManager):
        self.engine = engine
        self.plan_manager = plan_manager

    def build_prompt(
        self, goal: str, project_context: Optional[ProjectContext] = None
    ) -> str:
        prompt = "Create a detailed task plan for the following goal:\n\n"
        prompt += f"Goal: {goal}\n\n"
        if project_context:
            prompt += f"Project Context:\n{project_context.describe()}\n\n"
        return prompt + PLAN_INSTRUCTIONS

    async def create_plan(
        self, goal: str, project_context: Optional[ProjectContext] = None
    ) -> Optional[Plan]:
        logger.info(f"Requesting plan for goal: {goal}")
        response = await self.engine.query(self.build_prompt(goal, project_context))

        summary, tasks = parse_plan_response(response or "", goal)
        plan = self.plan_manager.create_plan(summary)
        for description in tasks:
            self.plan_manager.add_task(description)

        if plan.total_count == 0:
            logger.warning("Plan response contained no tasks")
            self.plan_manager.clear_plan()
            return None

        logger.info(f"Plan created with {plan.total_count} tasks")
        return plan
