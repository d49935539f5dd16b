"""
Data models for request complexity analysis.
"""

from dataclasses import dataclass
from enum import Enum


class ComplexityLevel(Enum):
    """Classification of request complexity levels."""

    SIMPLE = "simple"  # Single step, straightforward
    MODERATE = "moderate"  # 2-3 steps, manageable
    COMPLEX = "complex"  # 4-6 steps, benefits from planning
    VERY_COMPLEX = "very_complex"  # 7+ steps, needs a plan


@dataclass(frozen=True)
class ComplexityVerdict:
    """Result of analyzing a single request. Never persisted."""

    level: ComplexityLevel
    score: int
    reasoning: str

    def __str__(self) -> str:
        return f"Level: {self.level.name}, Score: {self.score}, Reasoning: {self.reasoning}"
