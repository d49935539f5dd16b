"""
Data models for the error knowledge store.

Learned patterns group similar errors under a coarse signature and keep the
solutions that resolved them, so later failures can be matched against
what worked before.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

MAX_RESOLUTIONS = 10
MAX_FAILED_ATTEMPTS = 5


@dataclass
class ErrorRecord:
    """A single error occurrence, as wrapped by the recovery service."""

    operation: str
    type: str
    message: Optional[str]
    timestamp: datetime = field(default_factory=datetime.now)
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Resolution:
    """A solution that resolved an error, with its observed outcome."""

    solution: str
    outcome: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "solution": self.solution,
            "outcome": self.outcome,
            "timestamp": self.timestamp.isoformat(),
        }

    @staticmethod
    def from_dict(data: dict) -> "Resolution":
        timestamp = data.get("timestamp")
        return Resolution(
            solution=data["solution"],
            outcome=data.get("outcome", ""),
            timestamp=datetime.fromisoformat(timestamp) if timestamp else datetime.now(),
        )


@dataclass
class FailedAttempt:
    """A solution that was tried and did not work."""

    attempted_solution: str
    reason: str

    def to_dict(self) -> dict:
        return {"attempted_solution": self.attempted_solution, "reason": self.reason}

    @staticmethod
    def from_dict(data: dict) -> "FailedAttempt":
        return FailedAttempt(
            attempted_solution=data["attempted_solution"],
            reason=data.get("reason", ""),
        )


@dataclass
class LearnedSolution:
    """A candidate solution surfaced for an error."""

    solution: str
    confidence: float
    usage_count: int
    outcome: str


@dataclass
class LearnedPattern:
    """Everything learned about one error signature."""

    signature: str
    error_type: str
    sample_message: Optional[str]
    success_count: int = 0
    failure_count: int = 0
    successful_resolutions: List[Resolution] = field(default_factory=list)
    failed_attempts: List[FailedAttempt] = field(default_factory=list)

    def record_resolution(self, resolution: Resolution) -> None:
        """Append a resolution, evicting the oldest beyond the cap."""
        self.successful_resolutions.append(resolution)
        if len(self.successful_resolutions) > MAX_RESOLUTIONS:
            del self.successful_resolutions[: -MAX_RESOLUTIONS]

    def record_failed_attempt(self, attempt: FailedAttempt) -> None:
        """Append a failed attempt, evicting the oldest beyond the cap."""
        self.failed_attempts.append(attempt)
        if len(self.failed_attempts) > MAX_FAILED_ATTEMPTS:
            del self.failed_attempts[: -MAX_FAILED_ATTEMPTS]

    def has_successful_resolutions(self) -> bool:
        return bool(self.successful_resolutions)

    @property
    def weight(self) -> int:
        """Ranking key used when trimming the store for persistence."""
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> float:
        total = self.success_count + self.failure_count
        return self.success_count / total if total else 0.0

    def top_resolutions(self, limit: int) -> List[LearnedSolution]:
        """Most used distinct solutions of this pattern, most used first.

        Args:
            limit: Maximum number of solutions to return.

        Returns:
            LearnedSolution list; confidence is the share of this pattern's
            resolutions that used the same solution text.
        """
        if not self.successful_resolutions:
            return []

        counts = Counter(r.solution for r in self.successful_resolutions)
        total = len(self.successful_resolutions)
        solutions = []
        for solution, count in counts.items():
            outcome = next(
                r.outcome for r in self.successful_resolutions if r.solution == solution
            )
            solutions.append(
                LearnedSolution(
                    solution=solution,
                    confidence=count / total,
                    usage_count=count,
                    outcome=outcome,
                )
            )

        solutions.sort(key=lambda s: s.usage_count, reverse=True)
        return solutions[:limit]

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "error_type": self.error_type,
            "sample_message": self.sample_message,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "successful_resolutions": [r.to_dict() for r in self.successful_resolutions],
            "failed_attempts": [a.to_dict() for a in self.failed_attempts],
        }

    @staticmethod
    def from_dict(data: dict) -> "LearnedPattern":
        return LearnedPattern(
            signature=data["signature"],
            error_type=data["error_type"],
            sample_message=data.get("sample_message"),
            success_count=int(data.get("success_count", 0)),
            failure_count=int(data.get("failure_count", 0)),
            successful_resolutions=[
                Resolution.from_dict(r) for r in data.get("successful_resolutions", [])
            ],
            failed_attempts=[
                FailedAttempt.from_dict(a) for a in data.get("failed_attempts", [])
            ],
        )


@dataclass
class LearningInsights:
    """Aggregated view of the knowledge store for display."""

    total_patterns: int
    total_successes: int
    total_failures: int
    patterns_by_type: Dict[str, int] = field(default_factory=dict)
    top_patterns: List[LearnedPattern] = field(default_factory=list)

    def format(self) -> str:
        lines = [
            "ERROR LEARNING INSIGHTS",
            "",
            f"Total Patterns Learned: {self.total_patterns}",
            f"Successful Resolutions: {self.total_successes}",
            f"Failed Attempts: {self.total_failures}",
        ]

        if self.patterns_by_type:
            lines += ["", "Patterns by Error Type:"]
            ranked = sorted(
                self.patterns_by_type.items(), key=lambda item: item[1], reverse=True
            )
            for error_type, count in ranked[:5]:
                lines.append(f"  {error_type:<30}: {count}")

        if self.top_patterns:
            lines += ["", "Most Resolved Patterns:"]
            for i, pattern in enumerate(self.top_patterns[:5], start=1):
                lines.append(
                    f"  {i}. {pattern.error_type} ({pattern.success_count} successes, "
                    f"{pattern.success_rate * 100:.1f}% success rate)"
                )

        return "\n".join(lines)
