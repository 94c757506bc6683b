"""
Python fallback runner - executes a script in a fresh interpreter against a dataset file.
The dataset path is exposed to the script as the QUERYPILOT_DB_PATH environment variable.
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import Union

from .errors import ScriptExecutionError


DB_PATH_ENV = "QUERYPILOT_DB_PATH"


def run_python_script(script: str, db_path: Union[str, Path]) -> str:
    """Run script with the current interpreter; raise ScriptExecutionError on non-zero exit."""
    env = dict(os.environ)
    env[DB_PATH_ENV] = str(db_path)

    try:
        # No timeout: a hung script blocks the call
        result = subprocess.run(
            [sys.executable, "-c", script],
            capture_output=True,
            text=True,
            env=env
        )
    except OSError as e:
        raise ScriptExecutionError(f"Failed to execute python: {e}") from e

    if result.returncode != 0:
        message = (result.stderr or result.stdout or "").strip()
        raise ScriptExecutionError(message or f"Python process exited with code {result.returncode}")

    return result.stdout.strip() or "(no output)"
