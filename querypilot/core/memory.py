"""
Markdown-backed learning memory.

Learnings are appended as "## Learning <id>" blocks to a per-dataset daily file
and to a global daily file. A fingerprint (sha256 of dataset, symptom and fix)
guarantees at most one block per learning. Curation promotes the most frequent
blocks into a hand-reviewable MEMORY.md, overwriting it on every pass.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from .config import CURATE_LIMIT, MEMORY_SEARCH_LIMIT, MEMORY_SNIPPET_LINES
from .paths import ensure_project_directories, get_dataset_root
from .schema import LearningRecord
from ..util.logging import logger


LEARNING_DELIMITER = "## Learning "
CURATED_HEADER = "# Curated Memory\n\n"
CURATED_FILE_NAME = "MEMORY.md"

_FINGERPRINT_PATTERN = re.compile(r"fingerprint:\s*([a-f0-9]+)", re.IGNORECASE)


@dataclass
class MemorySearchResult:
    snippet: str
    source: str
    score: int


def today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class MarkdownLearningMemory:
    """Learning store rooted at a project directory."""

    def __init__(self, project_root: Optional[Union[str, Path]] = None):
        self.paths = ensure_project_directories(project_root)

    def save_learning(self, record: LearningRecord) -> bool:
        """Persist a learning block. Returns False when the fingerprint is already stored."""
        existing = self._read_all_memory_text(record.dataset_id)
        if record.fingerprint in existing:
            logger.log_learning_saved(record.dataset_id, record.fingerprint, status="duplicate")
            return False

        block = record.to_markdown()
        day = today()

        dataset_memory = self._dataset_root(record.dataset_id) / "memory"
        dataset_memory.mkdir(parents=True, exist_ok=True)
        _append_text(dataset_memory / f"{day}.md", block)

        self.paths.global_memory_root.mkdir(parents=True, exist_ok=True)
        _append_text(self.paths.global_memory_root / f"{day}.md", block)

        logger.log_learning_saved(record.dataset_id, record.fingerprint)
        return True

    def search(self, query: str, dataset_id: Optional[str] = None) -> List[MemorySearchResult]:
        """Rank memory files by how many query terms they contain."""
        terms = [term for term in query.lower().split() if term]
        if not terms:
            return []

        results = []
        for path in self._memory_files(dataset_id):
            text = _read_text(path)
            if text is None:
                continue
            lowered = text.lower()
            score = sum(1 for term in terms if term in lowered)
            if score > 0:
                results.append(MemorySearchResult(
                    snippet="\n".join(text.split("\n")[:MEMORY_SNIPPET_LINES]),
                    source=str(path),
                    score=score
                ))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:MEMORY_SEARCH_LIMIT]

    def curate(self, dataset_id: Optional[str] = None) -> List[str]:
        """Rewrite the curated file from the daily files in scope; return promoted fingerprints."""
        grouped: Dict[str, Dict[str, object]] = {}

        for path in self._daily_files(dataset_id):
            text = _read_text(path)
            if text is None:
                continue
            for block in text.split(LEARNING_DELIMITER):
                if not block.strip():
                    continue
                match = _FINGERPRINT_PATTERN.search(block)
                if not match:
                    continue
                fingerprint = match.group(1).lower()

                if fingerprint in grouped:
                    grouped[fingerprint]["count"] += 1
                    continue
                grouped[fingerprint] = {"count": 1, "snippet": f"{LEARNING_DELIMITER}{block.strip()}\n"}

        # dict preserves first-seen order, so equal counts keep file order
        promoted = sorted(grouped.items(), key=lambda item: item[1]["count"], reverse=True)[:CURATE_LIMIT]

        target = self.curated_path(dataset_id)
        target.parent.mkdir(parents=True, exist_ok=True)
        body = "\n".join(value["snippet"] for _, value in promoted)
        target.write_text(CURATED_HEADER + body, encoding="utf-8")

        fingerprints = [fingerprint for fingerprint, _ in promoted]
        logger.log_memory_curated(dataset_id or "global", fingerprints, str(target))
        return fingerprints

    def curated_path(self, dataset_id: Optional[str] = None) -> Path:
        if dataset_id:
            return self._dataset_root(dataset_id) / CURATED_FILE_NAME
        return self.paths.global_curated_memory_path

    def daily_path(self, dataset_id: Optional[str] = None, day: Optional[str] = None) -> Path:
        day = day or today()
        if dataset_id:
            return self._dataset_root(dataset_id) / "memory" / f"{day}.md"
        return self.paths.global_memory_root / f"{day}.md"

    def _dataset_root(self, dataset_id: str) -> Path:
        return get_dataset_root(dataset_id, self.paths.project_root)

    def _memory_files(self, dataset_id: Optional[str] = None) -> List[Path]:
        """Every readable memory file in scope, curated files included."""
        files = [self.paths.global_curated_memory_path]
        files.extend(_list_markdown(self.paths.global_memory_root))

        if dataset_id:
            root = self._dataset_root(dataset_id)
            files.append(root / CURATED_FILE_NAME)
            files.extend(_list_markdown(root / "memory"))
        else:
            files.extend(_list_markdown(self.paths.datasets_root))

        unique = []
        seen = set()
        for path in files:
            if path in seen or not path.is_file():
                continue
            seen.add(path)
            unique.append(path)
        return unique

    def _daily_files(self, dataset_id: Optional[str] = None) -> List[Path]:
        """Non-curated daily files: the dataset's own, or the global ones when unscoped."""
        if dataset_id:
            return _list_markdown(self._dataset_root(dataset_id) / "memory")
        return _list_markdown(self.paths.global_memory_root)

    def _read_all_memory_text(self, dataset_id: str) -> str:
        texts = [_read_text(path) for path in self._memory_files(dataset_id)]
        return "\n".join(text for text in texts if text)


def _list_markdown(root: Path) -> List[Path]:
    if not root.is_dir():
        return []
    return sorted(path for path in root.rglob("*.md") if path.is_file())


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Skipping unreadable memory file {path}: {e}")
        return None


def _append_text(path: Path, text: str) -> None:
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(text)
