"""
Ask service - wires the catalog, memory, planner and orchestrator for one question.
"""

from functools import partial
from pathlib import Path
from typing import List, Optional, Union

from .completion import OllamaCompletionService
from .orchestrator import ExecutionOrchestrator
from .planner import Planner, PlannerContext
from ..core.approval import ApprovalGate, ConsoleApprovalGate
from ..core.audit import AuditTrail
from ..core.config import MEMORY_HINT_LIMIT
from ..core.datasets import DatasetCatalog
from ..core.memory import MarkdownLearningMemory, MemorySearchResult
from ..core.paths import ensure_project_directories
from ..core.runner import run_python_script
from ..core.schema import ExecutionContext, ExecutionResult


class AskService:
    def __init__(self, project_root: Optional[Union[str, Path]] = None,
                 completion=None, approval_gate: Optional[ApprovalGate] = None,
                 python_runner=run_python_script):
        self.paths = ensure_project_directories(project_root)
        self.catalog = DatasetCatalog(self.paths.project_root)
        self.memory = MarkdownLearningMemory(self.paths.project_root)
        self.audit = AuditTrail(self.paths.project_root)
        self.completion = completion if completion is not None else OllamaCompletionService()
        self.planner = Planner(self.completion)
        self.approval_gate = approval_gate or ConsoleApprovalGate()
        self.python_runner = python_runner

    def ask(self, dataset_id: str, prompt: str, bypass_approval: bool = False,
            approval_gate: Optional[ApprovalGate] = None) -> ExecutionResult:
        """Plan and execute one prompt. The approval override applies to this call only."""
        store = self.catalog.get_store(dataset_id)
        main_table = self.catalog.main_table(dataset_id)

        memory_hints = [item.snippet for item in self.memory.search(prompt, dataset_id)[:MEMORY_HINT_LIMIT]]

        plan = self.planner.create_plan(PlannerContext(
            dataset_id=dataset_id,
            prompt=rewrite_prompt_with_main_table(prompt, main_table),
            schema=self.catalog.get_schema(dataset_id),
            memory_hints=memory_hints,
            main_table=main_table,
        ))

        orchestrator = ExecutionOrchestrator(
            run_sql=store.query,
            run_python=partial(self.python_runner, db_path=store.db_path),
            approval_gate=approval_gate or self.approval_gate,
            memory=self.memory,
            audit=self.audit,
            row_limit=store.row_limit,
        )
        context = ExecutionContext(
            dataset_id=dataset_id,
            bypass_approval=bypass_approval,
            source_tables=tuple(self.catalog.get_source_tables(dataset_id)),
            memory_hints=tuple(memory_hints),
        )
        return orchestrator.execute(plan, context)

    def search_memory(self, query: str, dataset_id: Optional[str] = None) -> List[MemorySearchResult]:
        return self.memory.search(query, dataset_id)

    def curate_memory(self, dataset_id: Optional[str] = None) -> List[str]:
        return self.memory.curate(dataset_id)


def rewrite_prompt_with_main_table(prompt: str, main_table: str) -> str:
    if "main_table" in prompt.lower():
        return prompt.replace("main_table", main_table)
    return f"{prompt}\n\nUse '{main_table}' as the primary table when no table is specified."
