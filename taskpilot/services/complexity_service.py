"""
Complexity analysis for incoming requests.

Scores a request by the actions, domains and files it mentions to decide
whether it deserves an explicit multi-step plan before execution.
"""

import re
from typing import Iterable, List, Optional

from taskpilot.models.complexity import ComplexityLevel, ComplexityVerdict
from taskpilot.utils.logger import setup_logger

logger = setup_logger(__name__)

# Prefixes that dispatch straight to a command, bypassing planning
TOOL_SIGILS = ("@",)

COMPLEX_ACTION_KEYWORDS = [
    "add",
    "create",
    "implement",
    "build",
    "develop",
    "setup",
    "configure",
    "integrate",
    "migrate",
    "refactor",
    "redesign",
    "restructure",
    "ajoute",
    "crée",
    "implémente",
    "développe",
    "intègre",
]

COMPLEXITY_INDICATORS = [
    "system",
    "feature",
    "functionality",
    "module",
    "component",
    "service",
    "authentication",
    "authorization",
    "api",
    "database",
    "architecture",
    "système",
    "fonctionnalité",
    "composant",
    "authentification",
    "base de données",
]

SIMPLE_QUERY_KEYWORDS = [
    "what",
    "how",
    "where",
    "when",
    "why",
    "explain",
    "show",
    "display",
    "comment",
    "où",
    "quand",
    "pourquoi",
    "explique",
    "montre",
    "affiche",
]

ACTION_VERBS = [
    "add",
    "create",
    "implement",
    "build",
    "make",
    "write",
    "modify",
    "update",
    "delete",
    "remove",
    "change",
    "configure",
    "setup",
    "install",
    "integrate",
    "ajoute",
    "crée",
    "implémente",
    "construis",
    "fais",
    "écris",
    "modifie",
    "supprime",
    "installe",
    "intègre",
]

COMPONENT_KEYWORDS = [
    "controller",
    "service",
    "repository",
    "model",
    "entity",
    "dto",
    "config",
    "configuration",
    "filter",
    "interceptor",
    "handler",
]

CONJUNCTIONS = ["and", "et"]

FILE_MENTION_PATTERN = re.compile(
    r"[\w./\\-]*\.(?:java|py|js|ts|xml|json|yaml|yml)\b"
)

LONG_INPUT_WORDS = 15


def _contains_word(text: str, word: str) -> bool:
    return re.search(rf"\b{re.escape(word)}\b", text) is not None


def _matching(text: str, keywords: Iterable[str]) -> List[str]:
    """Distinct keywords present in text as whole words, in list order."""
    return [k for k in dict.fromkeys(keywords) if _contains_word(text, k)]


class ComplexityAnalyzer:
    """Scores requests and decides when a plan should be suggested."""

    def analyze(self, user_input: Optional[str]) -> ComplexityVerdict:
        """
        Analyze a request and return its complexity verdict.

        Args:
            user_input: The raw request text.

        Returns:
            ComplexityVerdict with level, score and the factors that contributed.
        """
        if user_input is None or not user_input.strip():
            return ComplexityVerdict(ComplexityLevel.SIMPLE, 0, "Empty input")

        text = user_input.lower().strip()

        if text.startswith(TOOL_SIGILS):
            return ComplexityVerdict(ComplexityLevel.SIMPLE, 0, "Tool command")

        if "?" in text and _matching(text, SIMPLE_QUERY_KEYWORDS):
            return ComplexityVerdict(ComplexityLevel.SIMPLE, 0, "Simple question")

        score = 0
        reasons = []

        actions = _matching(text, COMPLEX_ACTION_KEYWORDS)
        if actions:
            score += len(actions) * 2
            reasons.append(f"Action keywords: {len(actions)}")

        indicators = _matching(text, COMPLEXITY_INDICATORS)
        if indicators:
            score += len(indicators) * 3
            reasons.append(f"Complexity indicators: {len(indicators)}")

        verbs = len(_matching(text, ACTION_VERBS))
        if verbs >= 2:
            score += (verbs - 1) * 2
            reasons.append(f"Multiple verbs: {verbs}")

        mentions = self._count_file_component_mentions(text)
        if mentions >= 2:
            score += mentions * 2
            reasons.append(f"Multiple files/components: {mentions}")

        if _matching(text, CONJUNCTIONS):
            score += 3
            reasons.append("Conjunction 'and'")

        word_count = len(text.split())
        if word_count > LONG_INPUT_WORDS:
            score += 2
            reasons.append(f"Long input ({word_count} words)")

        verdict = ComplexityVerdict(
            level=self._level_for(score),
            score=score,
            reasoning="; ".join(reasons) if reasons else "Basic task",
        )
        logger.debug(f"Analyzed request: {verdict}")
        return verdict

    @staticmethod
    def _count_file_component_mentions(text: str) -> int:
        files = set(FILE_MENTION_PATTERN.findall(text))
        return len(files) + len(_matching(text, COMPONENT_KEYWORDS))

    @staticmethod
    def _level_for(score: int) -> ComplexityLevel:
        if score >= 10:
            return ComplexityLevel.VERY_COMPLEX
        if score >= 6:
            return ComplexityLevel.COMPLEX
        if score >= 3:
            return ComplexityLevel.MODERATE
        return ComplexityLevel.SIMPLE

    def should_suggest_plan(self, verdict: ComplexityVerdict) -> bool:
        """Only complex and very complex requests get a plan suggested."""
        return verdict.level in (ComplexityLevel.COMPLEX, ComplexityLevel.VERY_COMPLEX)
