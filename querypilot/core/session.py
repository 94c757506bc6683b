"""
Session state for the command line: remembers the default dataset between runs.
The approval override never lives here; callers pass it with each ask.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from .paths import get_project_paths
from ..util.logging import logger


SCHEMA_VERSION = 1


class SessionState:
    def __init__(self, project_root: Optional[Union[str, Path]] = None):
        self.path = get_project_paths(project_root).session_state_path

    def read_default_dataset(self) -> Optional[str]:
        """Return the stored default dataset id, or None when missing or malformed."""
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session state {self.path}: {e}")
            return None

        if not isinstance(data, dict) or data.get("schema_version") != SCHEMA_VERSION:
            return None
        dataset_id = data.get("default_dataset_id")
        if not isinstance(dataset_id, str) or not dataset_id.strip():
            return None
        return dataset_id.strip()

    def resolve_default_dataset(self, local_dataset_ids: Iterable[str]) -> Tuple[Optional[str], bool]:
        """Return (dataset_id, cleared_invalid_default)."""
        dataset_id = self.read_default_dataset()
        if dataset_id is None:
            return None, False
        if dataset_id in set(local_dataset_ids):
            return dataset_id, False

        self.clear_default_dataset()
        return None, True

    def set_default_dataset(self, dataset_id: str) -> None:
        normalized = dataset_id.strip()
        if not normalized:
            raise ValueError("default dataset id cannot be empty")

        payload = {
            "schema_version": SCHEMA_VERSION,
            "default_dataset_id": normalized,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(f"{self.path.name}.tmp-{os.getpid()}")
        temp_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        os.replace(temp_path, self.path)

    def clear_default_dataset(self) -> None:
        if self.path.exists():
            self.path.unlink()
