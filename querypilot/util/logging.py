"""
Structured logging for the plan/approve/execute/learn pipeline.
Every operation is logged as "Operation: <name>, Status: <status>, Details: {...}".
"""

import logging
from typing import Any, Dict, List

class StructuredLogger:
    """Structured logger for execution, approval, and memory operations."""

    def __init__(self, name: str = "querypilot"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.info(message)

    def log_plan_created(self, dataset_id: str, strategy: str, language: str, intent: str):
        """Log planner output."""
        details = {
            "dataset_id": dataset_id,
            "strategy": strategy,
            "language": language,
            "intent": intent[:100]
        }
        self.log_operation("planner.plan_created", "success", details)

    def log_execution_attempt(self, dataset_id: str, language: str, command: str, stage: str,
                              status: str = "success", error: str = None):
        """Log a single execution attempt (primary, fallback or retry)."""
        details = {
            "dataset_id": dataset_id,
            "language": language,
            "stage": stage,
            "command": _truncate(command, 80)
        }
        if error:
            details["error"] = _truncate(error, 200)

        self.log_operation(f"execution.{stage}", status, details)

    def log_fallback(self, dataset_id: str, reason: str, status: str = "started"):
        """Log a switch from SQL to the Python fallback path."""
        details = {
            "dataset_id": dataset_id,
            "reason": _truncate(reason, 200)
        }
        self.log_operation("execution.fallback", status, details)

    # Approval gate audit logging
    def log_approval_request(self, dataset_id: str, language: str, command: str):
        """Log that a mutating command is waiting on the approval gate."""
        log_details = {
            "dataset_id": dataset_id,
            "language": language,
            "command": _truncate(command, 80)
        }
        self.log_operation("approval.request_created", "pending", log_details)

    def log_approval_decision(self, dataset_id: str, decision: str, approver: str = "user"):
        """Log approval decision."""
        log_details = {
            "dataset_id": dataset_id,
            "decision": decision,
            "approver": approver
        }
        status = "approved" if decision == "approved" else "rejected"
        self.log_operation("approval.decision", status, log_details)

    def log_approval_bypass(self, dataset_id: str, reason: str = "override_flag"):
        """Log approval bypass."""
        log_details = {
            "dataset_id": dataset_id,
            "reason": reason
        }
        self.log_operation("approval.bypass", "allowed", log_details)

    # Learning memory logging
    def log_learning_saved(self, dataset_id: str, fingerprint: str, status: str = "saved"):
        """Log a learning write (or a deduplicated no-op)."""
        log_details = {
            "dataset_id": dataset_id,
            "fingerprint": fingerprint[:12]
        }
        self.log_operation("memory.save_learning", status, log_details)

    def log_memory_curated(self, scope: str, promoted: List[str], target: str):
        """Log a curation pass."""
        log_details = {
            "scope": scope,
            "promoted_count": len(promoted),
            "target": target
        }
        self.log_operation("memory.curate", "success", log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def _truncate(value: str, limit: int) -> str:
    if value is None:
        return ""
    flat = " ".join(str(value).split())
    return flat[:limit - 3] + "..." if len(flat) > limit else flat


# Global logger instance
logger = StructuredLogger()


def sanitize_payload(payload: Any, limit: int = 100) -> Any:
    """Truncate long strings inside payloads before they are logged."""
    if isinstance(payload, dict):
        return {k: sanitize_payload(v, limit) for k, v in payload.items()}
    elif isinstance(payload, str):
        return payload[:limit] + "..." if len(payload) > limit else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, limit) for item in payload]
    else:
        return payload
