"""
QueryPilot - natural-language questions over local datasets.
SQL-first execution with a Python fallback, an approval gate, and a markdown learning memory.
"""

from .core.config import VERSION

__version__ = VERSION
