"""
Shared fixtures: an isolated project root and a small SQLite dataset inside it.
"""

import sqlite3

import pytest

from querypilot.core.paths import ensure_project_directories


@pytest.fixture
def project_root(tmp_path):
    """Empty project directory with the .querypilot layout created."""
    ensure_project_directories(tmp_path)
    return tmp_path


@pytest.fixture
def dataset_db(project_root):
    """Dataset 'sales' with a main_table of three rows and a regions table."""
    dataset_dir = project_root / ".querypilot" / "datasets" / "sales"
    dataset_dir.mkdir(parents=True)
    db_path = dataset_dir / "dataset.db"

    conn = sqlite3.connect(str(db_path))
    conn.execute("CREATE TABLE main_table (id INTEGER, region TEXT, amount REAL)")
    conn.executemany(
        "INSERT INTO main_table VALUES (?, ?, ?)",
        [(1, "north", 10.5), (2, "south", None), (3, "north", 7.0)]
    )
    conn.execute("CREATE TABLE regions (name TEXT)")
    conn.commit()
    conn.close()
    return db_path
