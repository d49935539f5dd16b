"""
Data models for error recovery suggestions and statistics.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from taskpilot.models.knowledge import ErrorRecord


class RecoveryAction(Enum):
    """What the operator is advised to do about an error."""

    RETRY = "Retry the operation"
    PROVIDE_DIFFERENT_INPUT = "Provide different input"
    FIX_CODE = "Fix the code"
    MANUAL_INTERVENTION = "Manual intervention required"
    SKIP = "Skip this step"

    @property
    def display_name(self) -> str:
        return self.value


@dataclass
class RecoverySuggestion:
    """A titled group of suggested actions for one error."""

    title: str
    description: str
    actions: List[str] = field(default_factory=list)
    recommended_action: RecoveryAction = RecoveryAction.RETRY


@dataclass
class RecoveryContext:
    """An error together with the suggestions found for it."""

    error: ErrorRecord
    suggestions: List[RecoverySuggestion] = field(default_factory=list)

    def format(self) -> str:
        lines = [
            "ERROR RECOVERY",
            "",
            f"Operation: {self.error.operation}",
            f"Error Type: {self.error.type}",
            f"Message: {self.error.message}",
        ]

        if self.suggestions:
            lines += ["", "RECOVERY SUGGESTIONS:"]
            for i, suggestion in enumerate(self.suggestions, start=1):
                lines += ["", f"{i}. {suggestion.title}", f"   {suggestion.description}"]
                lines.append("   Suggested actions:")
                lines += [f"   • {action}" for action in suggestion.actions]
                lines.append(
                    f"   Recommended: {suggestion.recommended_action.display_name}"
                )

        return "\n".join(lines)


@dataclass
class ErrorStatistics:
    """Counts over the in-memory error history."""

    total_errors: int
    errors_by_type: Dict[str, int] = field(default_factory=dict)
    errors_by_operation: Dict[str, int] = field(default_factory=dict)

    def format(self) -> str:
        lines = ["ERROR STATISTICS", "", f"Total Errors: {self.total_errors}"]

        if self.errors_by_type:
            lines += ["", "By Type:"]
            for name, count in sorted(
                self.errors_by_type.items(), key=lambda item: item[1], reverse=True
            ):
                lines.append(f"  {name:<30}: {count}")

        if self.errors_by_operation:
            lines += ["", "By Operation:"]
            ranked = sorted(
                self.errors_by_operation.items(), key=lambda item: item[1], reverse=True
            )
            for name, count in ranked[:10]:
                lines.append(f"  {name:<30}: {count}")

        return "\n".join(lines)
