"""
Core pipeline pieces: records, classifier, approval gate, memory, audit, dataset access.
"""

from .schema import (
    AuditRecord,
    ExecutionContext,
    ExecutionPlan,
    ExecutionResult,
    Language,
    LearningRecord,
    ResultShape,
)
from .mutation import is_mutating

__all__ = [
    'AuditRecord',
    'ExecutionContext',
    'ExecutionPlan',
    'ExecutionResult',
    'Language',
    'LearningRecord',
    'ResultShape',
    'is_mutating'
]
