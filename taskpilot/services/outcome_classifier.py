"""
Heuristic classification of reasoning-engine responses.

The engine answers in free text, so there is no reliable success signal.
A classifier turns a response into a TaskOutcome; the keyword classifier
is the default and can be replaced by anything implementing classify().
"""

from typing import Optional, Protocol

from taskpilot.models.execution import TaskOutcome

FAILURE_MARKERS = ("error:", "failed:", "exception:", "cannot", "unable to")
DEFAULT_FAILURE_MESSAGE = "Task execution failed"


class OutcomeClassifier(Protocol):
    def classify(self, response: Optional[str]) -> TaskOutcome: ...


class KeywordOutcomeClassifier:
    """Treats a response as failed when it contains a failure marker."""

    def classify(self, response: Optional[str]) -> TaskOutcome:
        if response is None:
            return TaskOutcome.failure(DEFAULT_FAILURE_MESSAGE)

        lowered = response.lower()
        if any(marker in lowered for marker in FAILURE_MARKERS):
            return TaskOutcome.failure(extract_error(response), response=response)
        return TaskOutcome.success(response)


def extract_error(response: str) -> str:
    """First line mentioning an error or failure, trimmed."""
    for line in response.splitlines():
        lowered = line.lower()
        if "error" in lowered or "failed" in lowered:
            return line.strip()
    return DEFAULT_FAILURE_MESSAGE
