"""
Mutation classifier - decides whether a command would change persisted state.
Biased toward false positives. Pure, total, no side effects.
"""

import re
from typing import List

from .schema import Language


SQL_MUTATION_KEYWORDS = [
    "create",
    "insert",
    "update",
    "delete",
    "drop",
    "alter",
    "truncate",
    "replace",
    "merge",
    "copy",
]

_SQL_KEYWORD_PATTERN = re.compile(r"\b(" + "|".join(SQL_MUTATION_KEYWORDS) + r")\b")

# (pattern, label) pairs for Python fallback scripts
PYTHON_MUTATION_PATTERNS = [
    (r"\bopen\(.+?,\s*(?:mode\s*=\s*)?[\"'][^\"']*[wax+]", "file_write"),
    (r"\.open\(\s*(?:mode\s*=\s*)?[\"'][^\"']*[wax+]", "file_write"),
    (r"\.write_(?:text|bytes)\(", "file_write"),
    (r"\bos\.(?:remove|unlink|rename|replace|rmdir|removedirs)\(", "filesystem_delete_rename"),
    (r"\bshutil\.(?:rmtree|move)\(", "filesystem_delete_rename"),
    (r"\.(?:unlink|rename|rmdir|rmtree)\(", "filesystem_delete_rename"),
    (r"\bfrom\s+os\s+import\s+(?:\([^)]*|[^\n]*)\b(?:remove|unlink|rename|replace|rmdir|removedirs)\b",
     "filesystem_delete_rename"),
    (r"\bfrom\s+shutil\s+import\s+(?:\([^)]*|[^\n]*)\b(?:rmtree|move)\b", "filesystem_delete_rename"),
    (r"\bos\.(?:system|popen|exec\w*|spawn\w*)\(", "process_spawn"),
    (r"\bfrom\s+os\s+import\s+(?:\([^)]*|[^\n]*)\b(?:system|popen|exec\w*|spawn\w*)\b", "process_spawn"),
    (r"\bsubprocess\.", "process_spawn"),
    (r"\bimport\s+(?:[\w.]+(?:\s+as\s+\w+)?\s*,\s*)*subprocess\b", "process_spawn"),
    (r"\bfrom\s+subprocess\s+import\b", "process_spawn"),
    (r"\brequests\.", "network_call"),
    (r"\bhttpx\.", "network_call"),
    (r"\burllib\.request\b", "network_call"),
    (r"\bsocket\.", "network_call"),
    (r"\bimport\s+(?:[\w.]+(?:\s+as\s+\w+)?\s*,\s*)*(?:socket|requests|httpx|http\.client)\b", "network_call"),
    (r"\bfrom\s+(?:requests|httpx|urllib|http\.client|socket)\b[\w.]*\s+import\b", "network_call"),
]


def normalize_sql(sql: str) -> str:
    return re.sub(r"\s+", " ", sql.lower()).strip()


def is_mutating_sql(sql: str) -> bool:
    normalized = normalize_sql(sql or "")
    return bool(_SQL_KEYWORD_PATTERN.search(normalized))


def is_mutating_python(code: str) -> bool:
    return any(re.search(pattern, code or "") for pattern, _ in PYTHON_MUTATION_PATTERNS)


def is_mutating(command: str, language: str) -> bool:
    """Classify a command. Unknown languages are treated as mutating."""
    if language == Language.SQL:
        return is_mutating_sql(command)
    if language == Language.PYTHON:
        return is_mutating_python(command)
    return True


def describe_mutation(command: str, language: str) -> List[str]:
    """Return the keywords or pattern labels that made a command mutating."""
    if language == Language.SQL:
        found = _SQL_KEYWORD_PATTERN.findall(normalize_sql(command or ""))
        return sorted(set(found))
    if language == Language.PYTHON:
        labels = [label for pattern, label in PYTHON_MUTATION_PATTERNS if re.search(pattern, command or "")]
        return sorted(set(labels))
    return ["unknown_language"]
