"""
Environment-driven configuration.
All values are read once at import; accessor functions re-read where tests need it.
"""

import os
from pathlib import Path

# Project root holding the .querypilot state directory
PROJECT_ROOT = os.getenv("QUERYPILOT_HOME", ".")
STATE_DIR_NAME = ".querypilot"

# Debug flag
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Planner configuration (heuristic planner unless an LLM provider is configured)
PLANNER_PROVIDER = os.getenv("PLANNER_PROVIDER", "heuristic")  # heuristic|ollama
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.1:8b")
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434")
PLANNER_TEMPERATURE = float(os.getenv("PLANNER_TEMPERATURE", "0"))

# Execution output limits
RESULT_ROW_LIMIT = int(os.getenv("RESULT_ROW_LIMIT", "50"))

# Learning memory configuration
MEMORY_SEARCH_LIMIT = int(os.getenv("MEMORY_SEARCH_LIMIT", "12"))
MEMORY_SNIPPET_LINES = int(os.getenv("MEMORY_SNIPPET_LINES", "12"))
MEMORY_HINT_LIMIT = int(os.getenv("MEMORY_HINT_LIMIT", "6"))
CURATE_LIMIT = int(os.getenv("CURATE_LIMIT", "50"))
LEARNING_CONFIDENCE = float(os.getenv("LEARNING_CONFIDENCE", "0.75"))

# HTTP API
API_ENABLED = os.getenv("API_ENABLED", "true").lower() == "true"

# Version string
VERSION = "0.3.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_project_root() -> Path:
    """Resolve the configured project root."""
    return Path(os.getenv("QUERYPILOT_HOME", PROJECT_ROOT)).resolve()


def get_planner_provider():
    """Get planner provider (heuristic|ollama)."""
    return os.getenv("PLANNER_PROVIDER", PLANNER_PROVIDER).lower()


def is_llm_planner_enabled():
    """Check if the LLM-backed planner strategy should be used."""
    return get_planner_provider() == "ollama" and bool(OLLAMA_MODEL.strip())


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if get_planner_provider() not in ["heuristic", "ollama"]:
        issues.append(f"Invalid PLANNER_PROVIDER: {get_planner_provider()}")

    if get_planner_provider() == "ollama" and not OLLAMA_MODEL.strip():
        issues.append("PLANNER_PROVIDER=ollama requires OLLAMA_MODEL")

    if RESULT_ROW_LIMIT < 1:
        issues.append("RESULT_ROW_LIMIT must be >= 1")

    if MEMORY_SEARCH_LIMIT < 1 or MEMORY_SNIPPET_LINES < 1:
        issues.append("MEMORY_SEARCH_LIMIT and MEMORY_SNIPPET_LINES must be >= 1")

    if not 0.0 <= LEARNING_CONFIDENCE <= 1.0:
        issues.append("LEARNING_CONFIDENCE must be between 0 and 1")

    return issues
