"""
Records passed between the planner, the orchestrator, the learning memory and the audit trail.
"""

import hashlib
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple


class Language:
    SQL = "sql"
    PYTHON = "python"

    ALL = (SQL, PYTHON)


class ResultShape:
    TABLE = "table"
    SCALAR = "scalar"
    TEXT = "text"

    ALL = (TABLE, SCALAR, TEXT)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ExecutionPlan:
    intent: str
    language: str  # sql | python
    command: str
    requires_approval: bool
    expected_shape: str  # table | scalar | text
    explanation_seed: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExecutionContext:
    dataset_id: str
    bypass_approval: bool = False
    source_tables: Tuple[str, ...] = ()
    memory_hints: Tuple[str, ...] = ()


@dataclass
class ExecutionResult:
    plan: ExecutionPlan
    command: str
    result: str
    explanation: str
    source_tables: List[str]
    memory_hints: List[str]
    fallback_used: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["plan"] = self.plan.to_dict()
        return data


def compute_fingerprint(dataset_id: str, symptom: str, fix: str) -> str:
    """Deterministic hash used to deduplicate learnings."""
    return hashlib.sha256(f"{dataset_id}:{symptom}:{fix}".encode("utf-8")).hexdigest()


DEFAULT_LEARNING_TAGS = ("auto-learning", "execution-retry")


@dataclass(frozen=True)
class LearningRecord:
    dataset_id: str
    symptom: str
    root_cause: str
    fix: str
    command: str
    language: str
    fingerprint: str
    confidence: float = 0.75
    tags: Tuple[str, ...] = DEFAULT_LEARNING_TAGS
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def create(cls, dataset_id: str, symptom: str, root_cause: str, fix: str, command: str,
               language: str, confidence: float = 0.75, tags: Tuple[str, ...] = DEFAULT_LEARNING_TAGS) -> 'LearningRecord':
        """Build a record with its fingerprint and creation timestamp filled in."""
        return cls(
            dataset_id=dataset_id,
            symptom=symptom,
            root_cause=root_cause,
            fix=fix,
            command=command,
            language=language,
            fingerprint=compute_fingerprint(dataset_id, symptom, fix),
            confidence=confidence,
            tags=tuple(tags),
        )

    def to_markdown(self) -> str:
        """Render the persisted "## Learning" block. Every value stays on one line."""
        lines = [
            f"## Learning {self.fingerprint[:12]}",
            f"- dataset_id: {_one_line(self.dataset_id)}",
            f"- symptom: {_one_line(self.symptom)}",
            f"- root_cause: {_one_line(self.root_cause)}",
            f"- fix: {_one_line(self.fix)}",
            f"- language: {self.language}",
            f"- command: {_one_line(self.command)}",
            f"- confidence: {self.confidence}",
            f"- tags: {','.join(self.tags)}",
            f"- created_at: {self.created_at}",
            f"- fingerprint: {self.fingerprint}",
            "",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class AuditRecord:
    dataset_id: str
    command: str
    language: str
    mutating: bool
    approved: bool
    override: bool
    success: bool
    error: Optional[str] = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "timestamp": self.timestamp,
            "dataset_id": self.dataset_id,
            "command": self.command,
            "language": self.language,
            "mutating": self.mutating,
            "approved": self.approved,
            "override": self.override,
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


def _one_line(value: str) -> str:
    return str(value).replace("\r", " ").replace("\n", " ")
