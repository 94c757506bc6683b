"""
On-disk layout of the .querypilot state directory.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .config import STATE_DIR_NAME, get_project_root


@dataclass(frozen=True)
class ProjectPaths:
    project_root: Path
    state_root: Path
    datasets_root: Path
    session_state_path: Path
    global_memory_root: Path
    global_curated_memory_path: Path
    audit_log_path: Path


def get_project_paths(project_root: Optional[Union[str, Path]] = None) -> ProjectPaths:
    """Resolve every state path relative to the project root."""
    root = Path(project_root).resolve() if project_root is not None else get_project_root()
    state_root = root / STATE_DIR_NAME

    return ProjectPaths(
        project_root=root,
        state_root=state_root,
        datasets_root=state_root / "datasets",
        session_state_path=state_root / "session.json",
        global_memory_root=state_root / "memory" / "global",
        global_curated_memory_path=root / "MEMORY.md",
        audit_log_path=state_root / "logs" / "audit.jsonl",
    )


def ensure_project_directories(project_root: Optional[Union[str, Path]] = None) -> ProjectPaths:
    """Create the state directories if they do not exist yet."""
    paths = get_project_paths(project_root)
    paths.datasets_root.mkdir(parents=True, exist_ok=True)
    paths.global_memory_root.mkdir(parents=True, exist_ok=True)
    paths.audit_log_path.parent.mkdir(parents=True, exist_ok=True)
    return paths


def get_dataset_root(dataset_id: str, project_root: Optional[Union[str, Path]] = None) -> Path:
    return get_project_paths(project_root).datasets_root / dataset_id
