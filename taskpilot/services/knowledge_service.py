"""
Error knowledge store for learning from past resolutions.

Groups errors under a coarse signature (type plus salient message words),
remembers which solutions resolved them and which did not, and surfaces
the most used solutions for new errors of the same or a similar pattern.
The whole store is persisted as one JSON document after every recording.
"""

import json
import os
import re
import tempfile
import threading
from collections import Counter
from typing import Dict, List, Optional

from taskpilot.config import Config
from taskpilot.models.knowledge import (
    ErrorRecord,
    FailedAttempt,
    LearnedPattern,
    LearnedSolution,
    LearningInsights,
    Resolution,
)
from taskpilot.utils.logger import setup_logger

logger = setup_logger(__name__)

SIGNATURE_WORDS = 5
MIN_SIGNATURE_WORD_LENGTH = 4
SIMILARITY_THRESHOLD = 0.3
EXACT_MATCH_SOLUTIONS = 3
SIMILAR_MATCH_SOLUTIONS = 2
MAX_LEARNED_SOLUTIONS = 5


def generate_signature(error: ErrorRecord) -> str:
    """Build the pattern key for an error.

    The key is the error type followed by up to five distinct lowercase
    alphanumeric words of four or more characters from the message, in
    first-seen order, all joined by underscores.
    """
    words: List[str] = []
    if error.message:
        cleaned = re.sub(r"[^a-z0-9\s]", " ", error.message.lower())
        for word in cleaned.split():
            if len(word) >= MIN_SIGNATURE_WORD_LENGTH and word not in words:
                words.append(word)
                if len(words) == SIGNATURE_WORDS:
                    break
    return "_".join([error.type] + words)


def calculate_similarity(first: Optional[str], second: Optional[str]) -> float:
    """Jaccard index of the lowercase whitespace-separated word sets."""
    if first is None or second is None:
        return 0.0
    words1 = set(first.lower().split())
    words2 = set(second.lower().split())
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


class ErrorKnowledgeStore:
    """Persistent, signature-indexed collection of learned error patterns."""

    def __init__(
        self, path: Optional[str] = None, max_patterns: Optional[int] = None
    ) -> None:
        """
        Initialize the store and load any persisted knowledge.

        Args:
            path: JSON file holding the knowledge base. Defaults to Config.KNOWLEDGE_FILE.
            max_patterns: Maximum number of patterns written to disk.
        """
        self.path = path or Config.KNOWLEDGE_FILE
        self.max_patterns = (
            max_patterns if max_patterns is not None else Config.MAX_LEARNED_PATTERNS
        )
        self._patterns: Dict[str, LearnedPattern] = {}
        self._lock = threading.RLock()
        self._load()

    def __len__(self) -> int:
        return len(self._patterns)

    @property
    def patterns(self) -> List[LearnedPattern]:
        with self._lock:
            return list(self._patterns.values())

    def get_pattern(self, signature: str) -> Optional[LearnedPattern]:
        with self._lock:
            return self._patterns.get(signature)

    def _find_or_create(self, error: ErrorRecord) -> LearnedPattern:
        signature = generate_signature(error)
        pattern = self._patterns.get(signature)
        if pattern is None:
            pattern = LearnedPattern(
                signature=signature,
                error_type=error.type,
                sample_message=error.message,
            )
            self._patterns[signature] = pattern
            logger.debug(f"New learned pattern: {signature}")
        return pattern

    def record_successful_resolution(
        self, error: ErrorRecord, solution: str, outcome: str
    ) -> LearnedPattern:
        """Remember that a solution resolved an error, then persist.

        Args:
            error: The error that was resolved.
            solution: What was done.
            outcome: What happened as a result.

        Returns:
            The updated LearnedPattern.
        """
        with self._lock:
            pattern = self._find_or_create(error)
            pattern.record_resolution(Resolution(solution=solution, outcome=outcome))
            pattern.success_count += 1
            self._save()
        logger.info(f"Recorded successful resolution for {pattern.signature}")
        return pattern

    def record_failed_resolution(
        self, error: ErrorRecord, attempted_solution: str, reason: str
    ) -> LearnedPattern:
        """Remember that an attempted solution did not work, then persist.

        Args:
            error: The error that was not resolved.
            attempted_solution: What was tried.
            reason: Why it is considered a failure.

        Returns:
            The updated LearnedPattern.
        """
        with self._lock:
            pattern = self._find_or_create(error)
            pattern.record_failed_attempt(
                FailedAttempt(attempted_solution=attempted_solution, reason=reason)
            )
            pattern.failure_count += 1
            self._save()
        logger.info(f"Recorded failed resolution for {pattern.signature}")
        return pattern

    def get_learned_solutions(self, error: ErrorRecord) -> List[LearnedSolution]:
        """Solutions that worked for this error or similar ones.

        Takes up to three solutions from the exact-signature pattern, then up to
        two from each same-type pattern whose sample message is more than 30%
        similar, most similar first, until five have been collected.

        Args:
            error: The error to find solutions for.

        Returns:
            Up to five distinct solutions, highest confidence first.
        """
        with self._lock:
            solutions: List[LearnedSolution] = []

            exact = self._patterns.get(generate_signature(error))
            if exact and exact.has_successful_resolutions():
                solutions.extend(exact.top_resolutions(EXACT_MATCH_SOLUTIONS))

            for pattern in self._find_similar_patterns(error):
                if len(solutions) >= MAX_LEARNED_SOLUTIONS:
                    break
                if pattern.has_successful_resolutions():
                    solutions.extend(pattern.top_resolutions(SIMILAR_MATCH_SOLUTIONS))

        unique: Dict[str, LearnedSolution] = {}
        for solution in solutions:
            unique.setdefault(solution.solution, solution)

        ranked = sorted(unique.values(), key=lambda s: s.confidence, reverse=True)
        return ranked[:MAX_LEARNED_SOLUTIONS]

    def _find_similar_patterns(self, error: ErrorRecord) -> List[LearnedPattern]:
        scored = []
        for pattern in self._patterns.values():
            if pattern.error_type != error.type:
                continue
            similarity = calculate_similarity(error.message, pattern.sample_message)
            if similarity > SIMILARITY_THRESHOLD:
                scored.append((similarity, pattern))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [pattern for _, pattern in scored]

    def get_insights(self) -> LearningInsights:
        """Aggregate the store for display."""
        with self._lock:
            patterns = list(self._patterns.values())

        by_type = Counter(p.error_type for p in patterns)
        top = sorted(patterns, key=lambda p: p.success_count, reverse=True)[:10]
        return LearningInsights(
            total_patterns=len(patterns),
            total_successes=sum(p.success_count for p in patterns),
            total_failures=sum(p.failure_count for p in patterns),
            patterns_by_type=dict(by_type),
            top_patterns=top,
        )

    def clear_knowledge(self) -> None:
        """Forget everything and delete the persisted file."""
        with self._lock:
            self._patterns.clear()
            try:
                if os.path.exists(self.path):
                    os.remove(self.path)
            except OSError as e:
                logger.warning(f"Could not delete error knowledge file {self.path}: {e}")
        logger.info("Cleared error knowledge")

    def _load(self) -> None:
        """Load the knowledge base; a missing or unreadable file leaves it empty."""
        if not os.path.exists(self.path):
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            records = data.get("patterns", []) if isinstance(data, dict) else data
            loaded = {}
            for record in records:
                pattern = LearnedPattern.from_dict(record)
                loaded[pattern.signature] = pattern
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Could not load error knowledge from {self.path}: {e}")
            return

        self._patterns = loaded
        logger.info(f"Loaded {len(loaded)} learned error patterns from {self.path}")

    def _save(self) -> None:
        """Write the heaviest patterns to disk, replacing the previous file."""
        ranked = sorted(self._patterns.values(), key=lambda p: p.weight, reverse=True)
        document = {"patterns": [p.to_dict() for p in ranked[: self.max_patterns]]}

        try:
            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=directory, prefix=".error-knowledge-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not save error knowledge to {self.path}: {e}")
