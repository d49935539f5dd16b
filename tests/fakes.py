"""Test doubles for the reasoning engine and the operator."""

from typing import List, Sequence

from taskpilot.services.plan_executor import PlanSession


class ScriptedEngine:
    """Reasoning engine that replays canned responses in order.

    An exception in the script is raised instead of returned. Once the script
    runs out every query answers "Done."
    """

    def __init__(self, responses: Sequence = ()):
        self.responses = list(responses)
        self.prompts: List[str] = []

    async def query(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            return "Done."
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.prompts)


class ScriptedOperator:
    """Operator that answers decision prompts from a list, then stops."""

    def __init__(self, choices: Sequence[str] = ()):
        self.choices = list(choices)
        self.prompts: List[str] = []
        self.options: List[List[str]] = []

    async def ask_choice(self, prompt: str, options: Sequence[str]) -> str:
        self.prompts.append(prompt)
        self.options.append(list(options))
        return self.choices.pop(0) if self.choices else "stop"


def make_plan(session: PlanSession, *descriptions: str, goal: str = "Test goal"):
    """Creates the session's current plan with the given task descriptions."""
    plan = session.plan_manager.create_plan(goal)
    for description in descriptions:
        session.plan_manager.add_task(description)
    return plan
