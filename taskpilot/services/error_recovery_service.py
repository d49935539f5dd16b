import re
from collections import Counter, deque
from typing import Any, Dict, List, Optional

from taskpilot.models.knowledge import ErrorRecord, LearningInsights
from taskpilot.models.recovery import (
    ErrorStatistics,
    RecoveryAction,
    RecoveryContext,
    RecoverySuggestion,
)
from taskpilot.services.knowledge_service import ErrorKnowledgeStore
from taskpilot.utils.logger import setup_logger

logger = setup_logger(__name__)

MAX_ERROR_HISTORY = 100
RECURRING_THRESHOLD = 2
SHARED_WORDS_FOR_SIMILARITY = 3


class ErrorRecoveryService:
    def __init__(self, knowledge_store: Optional[ErrorKnowledgeStore] = None):
        self.knowledge_store = knowledge_store or ErrorKnowledgeStore()
        self.history: deque = deque(maxlen=MAX_ERROR_HISTORY)
        self.error_patterns = [
            (
                r"no such file|file not found|cannot find",
                RecoverySuggestion(
                    "File Not Found",
                    "The specified file does not exist.",
                    [
                        "Verify the file path is correct",
                        "Check if the file was moved or deleted",
                        "Use @search to find the file",
                        "Create the file if it should exist",
                    ],
                    RecoveryAction.PROVIDE_DIFFERENT_INPUT,
                ),
            ),
            (
                r"permission denied|access denied",
                RecoverySuggestion(
                    "Permission Denied",
                    "Insufficient permissions to perform the operation.",
                    [
                        "Check file and directory permissions",
                        "Run with appropriate user privileges",
                        "Verify the file is not read-only",
                    ],
                    RecoveryAction.MANUAL_INTERVENTION,
                ),
            ),
            (
                r"invalid syntax|unexpected indent|syntax error|compilation error|cannot compile",
                RecoverySuggestion(
                    "Syntax Error",
                    "The code could not be parsed or compiled.",
                    [
                        "Review the syntax of the generated code",
                        "Check for missing imports or dependencies",
                        "Verify variable and function names",
                    ],
                    RecoveryAction.FIX_CODE,
                ),
            ),
            (
                r"connection refused|timed? ?out|unable to connect",
                RecoverySuggestion(
                    "Connection Error",
                    "Failed to establish connection.",
                    [
                        "Check if the service is running",
                        "Verify network connectivity",
                        "Verify the endpoint URL is correct",
                    ],
                    RecoveryAction.RETRY,
                ),
            ),
            (
                r"no module named",
                RecoverySuggestion(
                    "Missing Module",
                    "A Python module could not be imported.",
                    [
                        "Check the import statement for typos",
                        "Install the missing package in the active environment",
                    ],
                    RecoveryAction.MANUAL_INTERVENTION,
                ),
            ),
            (
                r"expecting value|extra data|invalid control character",
                RecoverySuggestion(
                    "Invalid JSON",
                    "A JSON document could not be decoded.",
                    [
                        "Check the document for syntax errors",
                        "Escape control characters inside strings",
                    ],
                    RecoveryAction.PROVIDE_DIFFERENT_INPUT,
                ),
            ),
            (
                r"merge conflict|not a git repository|\bgit\b",
                RecoverySuggestion(
                    "Git Operation Error",
                    "Git operation failed.",
                    [
                        "Check that you are inside a git repository",
                        "Inspect the repository state with git status",
                        "Resolve any merge conflicts",
                    ],
                    RecoveryAction.MANUAL_INTERVENTION,
                ),
            ),
            (
                r"out of memory|memoryerror|heap space",
                RecoverySuggestion(
                    "Memory Error",
                    "Operation exceeded available memory.",
                    [
                        "Process smaller batches of data",
                        "Check for memory leaks",
                        "Use lazier data structures",
                    ],
                    RecoveryAction.MANUAL_INTERVENTION,
                ),
            ),
        ]

    def record_error(
        self,
        operation: str,
        error: BaseException,
        context: Optional[Dict[str, Any]] = None,
    ) -> RecoveryContext:
        """
        Records a failure and returns the suggestions found for it.

        The error is kept in the bounded in-memory history and forwarded to the
        knowledge store as a failed resolution of the attempted task.
        """
        context = context or {}
        record = ErrorRecord(
            operation=operation,
            type=type(error).__name__,
            message=str(error) if str(error) else None,
            context=context,
        )
        self.history.appendleft(record)
        logger.warning(f"{operation} failed with {record.type}: {record.message}")

        suggestions = self._find_suggestions(record)

        self.knowledge_store.record_failed_resolution(
            record,
            str(context.get("task", operation)),
            record.message or record.type,
        )
        return RecoveryContext(error=record, suggestions=suggestions)

    def _find_suggestions(self, record: ErrorRecord) -> List[RecoverySuggestion]:
        suggestions = []

        learned = self.knowledge_store.get_learned_solutions(record)
        if learned:
            suggestions.append(
                RecoverySuggestion(
                    "Learned Solutions",
                    "Based on previous successful resolutions:",
                    [
                        f"{s.solution} (confidence: {s.confidence * 100:.0f}%, "
                        f"used {s.usage_count} times)"
                        for s in learned
                    ],
                    RecoveryAction.RETRY,
                )
            )

        if record.message:
            for pattern, suggestion in self.error_patterns:
                if re.search(pattern, record.message, re.IGNORECASE):
                    suggestions.append(suggestion)

        recurring = self._find_recurring_suggestion(record)
        if recurring:
            suggestions.append(recurring)

        if not suggestions:
            suggestions.append(self._generic_suggestion(record))

        return suggestions

    def _find_recurring_suggestion(
        self, record: ErrorRecord
    ) -> Optional[RecoverySuggestion]:
        similar = sum(
            1
            for past in self.history
            if past is not record and self._is_similar(record, past)
        )
        if similar < RECURRING_THRESHOLD:
            return None
        return RecoverySuggestion(
            "Recurring Issue Detected",
            f"This error has occurred {similar} times. Consider addressing the root cause.",
            [
                "Review the operation logs for patterns",
                "Check if the issue is configuration-related",
                "Consider refactoring the problematic code",
            ],
            RecoveryAction.MANUAL_INTERVENTION,
        )

    @staticmethod
    def _is_similar(first: ErrorRecord, second: ErrorRecord) -> bool:
        if first.type != second.type:
            return False
        if first.operation == second.operation:
            return True
        if first.message is None or second.message is None:
            return False
        shared = set(first.message.lower().split()) & set(
            second.message.lower().split()
        )
        return len(shared) >= SHARED_WORDS_FOR_SIMILARITY

    @staticmethod
    def _generic_suggestion(record: ErrorRecord) -> RecoverySuggestion:
        if record.type in ("OSError", "IOError", "FileNotFoundError", "PermissionError"):
            return RecoverySuggestion(
                "File I/O Error",
                "An error occurred while reading or writing a file.",
                [
                    "Check if the file path is correct",
                    "Verify file permissions",
                    "Ensure the file is not locked by another process",
                ],
                RecoveryAction.RETRY,
            )
        if record.type in ("AttributeError", "TypeError"):
            return RecoverySuggestion(
                "Null Reference Error",
                "An object was missing or of the wrong type.",
                [
                    "Check if required parameters were provided",
                    "Verify initialization order",
                    "Add checks for None before accessing attributes",
                ],
                RecoveryAction.MANUAL_INTERVENTION,
            )
        if record.type == "ValueError":
            return RecoverySuggestion(
                "Invalid Argument",
                "An invalid argument was provided.",
                [
                    "Check argument format and type",
                    "Verify argument constraints",
                    "Review the usage documentation",
                ],
                RecoveryAction.PROVIDE_DIFFERENT_INPUT,
            )
        return RecoverySuggestion(
            "Unexpected Error",
            f"An unexpected error occurred: {record.type}",
            [
                "Review error logs for details",
                "Try the operation again",
                "Report if the issue persists",
            ],
            RecoveryAction.RETRY,
        )

    def get_statistics(self) -> ErrorStatistics:
        return ErrorStatistics(
            total_errors=len(self.history),
            errors_by_type=dict(Counter(r.type for r in self.history)),
            errors_by_operation=dict(Counter(r.operation for r in self.history)),
        )

    def get_recent_errors(self, limit: int = 10) -> List[ErrorRecord]:
        return list(self.history)[:limit]

    def clear_history(self) -> None:
        self.history.clear()

    def record_successful_resolution(
        self, error: ErrorRecord, solution: str, outcome: str
    ) -> None:
        self.knowledge_store.record_successful_resolution(error, solution, outcome)

    def record_failed_resolution(
        self, error: ErrorRecord, attempted_solution: str, reason: str
    ) -> None:
        self.knowledge_store.record_failed_resolution(error, attempted_solution, reason)

    def get_learning_insights(self) -> LearningInsights:
        return self.knowledge_store.get_insights()

    def clear_learning(self) -> None:
        self.knowledge_store.clear_knowledge()
