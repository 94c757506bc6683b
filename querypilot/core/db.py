"""
SQLite-backed dataset store - the primary (SQL) execution path.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Union

from .config import RESULT_ROW_LIMIT
from .errors import EngineError


class DatasetStore:
    """One SQLite database file holding a dataset's tables."""

    def __init__(self, db_path: Union[str, Path], row_limit: int = RESULT_ROW_LIMIT):
        self.db_path = Path(db_path)
        self.row_limit = row_limit

    @contextmanager
    def get_db(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a SQLite database connection."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            yield conn
        finally:
            conn.close()

    def query(self, sql: str) -> str:
        """Run one statement and render up to row_limit rows as tab-separated text."""
        try:
            with self.get_db() as conn:
                cursor = conn.execute(sql)
                if cursor.description is None:
                    conn.commit()
                    return "(no rows)"

                columns = [col[0] for col in cursor.description]
                rows = cursor.fetchmany(self.row_limit)
                conn.commit()
        except sqlite3.Error as e:
            raise EngineError(f"{type(e).__name__}: {e}") from e

        if not rows:
            return "(no rows)"

        lines = ["\t".join(columns)]
        for row in rows:
            lines.append("\t".join(_stringify_cell(value) for value in row))
        return "\n".join(lines)

    def list_tables(self) -> List[str]:
        with self.get_db() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY rowid"
            )
            return [row[0] for row in cursor.fetchall()]

    def get_table_schemas(self) -> List[Dict[str, Any]]:
        schemas = []
        with self.get_db() as conn:
            for table in self.list_tables():
                cursor = conn.execute(f'PRAGMA table_info("{_escape_identifier(table)}")')
                columns = [{"name": row[1], "type": row[2] or "ANY"} for row in cursor.fetchall()]
                schemas.append({"name": table, "columns": columns})
        return schemas

    def health_check(self) -> bool:
        """Check the database file opens and answers a trivial query."""
        if not self.db_path.exists():
            return False
        try:
            with self.get_db() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error:
            return False


def _escape_identifier(name: str) -> str:
    return name.replace('"', '""')


def _stringify_cell(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    return str(value)
