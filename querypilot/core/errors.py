"""
Error taxonomy for planning and execution.
"""

from typing import List, Optional


class QueryPilotError(Exception):
    """Base error carrying a stable machine-readable code."""

    def __init__(self, message: str, code: str = "QUERYPILOT_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code


class CompletionError(QueryPilotError):
    """The completion service returned something unusable (empty or non-JSON)."""

    def __init__(self, message: str, code: str = "COMPLETION_INVALID_RESPONSE"):
        super().__init__(message, code)


class PlanValidationError(QueryPilotError):
    """Planner output did not match the ExecutionPlan shape."""

    def __init__(self, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message, "PLAN_INVALID")
        self.errors = errors or []


class EngineError(QueryPilotError):
    """SQL engine rejected a statement."""

    def __init__(self, message: str):
        super().__init__(message, "SQL_ENGINE_ERROR")


class ScriptExecutionError(QueryPilotError):
    """A Python fallback script exited with an error."""

    def __init__(self, message: str):
        super().__init__(message, "SCRIPT_EXECUTION_ERROR")


class ExecutionError(QueryPilotError):
    """All execution attempts for a call failed; message chains every attempt."""

    def __init__(self, message: str, attempts: Optional[List[str]] = None):
        super().__init__(message, "EXECUTION_FAILED")
        self.attempts = attempts or [message]


class DatasetNotFoundError(QueryPilotError):
    def __init__(self, dataset_id: str):
        super().__init__(f"Dataset '{dataset_id}' was not found in the local catalog.", "DATASET_NOT_FOUND")
        self.dataset_id = dataset_id
