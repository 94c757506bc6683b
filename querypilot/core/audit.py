"""
Audit trail - append-only JSON-lines log of execution calls.
One line per record; write-only from the pipeline's point of view.
"""

import json
from pathlib import Path
from typing import Optional, Union

from .paths import get_project_paths
from .schema import AuditRecord


class AuditTrail:
    """Appends AuditRecords to <state>/logs/audit.jsonl."""

    def __init__(self, project_root: Optional[Union[str, Path]] = None, log_path: Optional[Union[str, Path]] = None):
        self.log_path = Path(log_path) if log_path else get_project_paths(project_root).audit_log_path

    def append(self, record: AuditRecord) -> None:
        """Serialize one record as a single JSON line."""
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(record.to_dict(), ensure_ascii=False)
        with open(self.log_path, "a", encoding="utf-8") as handle:
            handle.write(line + "\n")
