"""
Execution orchestrator - the Classify -> Gate -> Execute -> (Fallback | Retry) -> Record state machine.

For every execute() call the orchestrator:
1. Classifies the command independently of the planner's self-declared risk
2. Gates mutating commands on the approval collaborator unless the call overrides it
3. Runs the command in its language
4. Recovers from a SQL failure by re-issuing the query through a Python script
5. Recovers from a Python NameError on table context with exactly one repaired retry
6. Saves a learning only when a failure was repaired
7. Appends exactly one audit record describing the final outcome
"""

import re
from dataclasses import replace
from typing import Callable, Optional, Sequence

from ..core.approval import ApprovalGate
from ..core.config import LEARNING_CONFIDENCE, RESULT_ROW_LIMIT
from ..core.effects import best_effort
from ..core.errors import ExecutionError
from ..core.mutation import describe_mutation, is_mutating
from ..core.runner import DB_PATH_ENV
from ..core.schema import (
    AuditRecord,
    ExecutionContext,
    ExecutionPlan,
    ExecutionResult,
    Language,
    LearningRecord,
)
from ..util.logging import logger


CANCELED_RESULT = "Execution canceled: command was rejected by approval gate."
CANCELED_EXPLANATION = "A mutating command requires explicit approval."
REJECTED_AUDIT_ERROR = "Command was rejected by user approval gate."

_MISSING_CONTEXT_PATTERN = re.compile(r"NameError: name '(?P<name>[A-Za-z_][A-Za-z0-9_]*)' is not defined")


class ExecutionOrchestrator:
    """
    Drives one plan through the pipeline. Collaborators are injected so the
    state machine can run without a terminal, a database or a model.
    """

    def __init__(self,
                 run_sql: Callable[[str], str],
                 run_python: Callable[[str], str],
                 approval_gate: ApprovalGate,
                 memory,
                 audit,
                 classifier: Callable[[str, str], bool] = is_mutating,
                 row_limit: int = RESULT_ROW_LIMIT):
        self.run_sql = run_sql
        self.run_python = run_python
        self.approval_gate = approval_gate
        self.memory = memory
        self.audit = audit
        self.classifier = classifier
        self.row_limit = row_limit

    def execute(self, plan: ExecutionPlan, context: ExecutionContext) -> ExecutionResult:
        # Classify
        mutating = self.classifier(plan.command, plan.language)
        if mutating and not plan.requires_approval:
            logger.warning(
                f"Planner under-reported mutation risk ({', '.join(describe_mutation(plan.command, plan.language))}), "
                "forcing approval"
            )
            plan = replace(plan, requires_approval=True)

        # Gate
        approved = self._gate(plan, context, mutating)
        if not approved:
            self._record(plan, context, mutating, approved=False, success=False, error=REJECTED_AUDIT_ERROR)
            return self._result(plan, context, plan.command, CANCELED_RESULT, CANCELED_EXPLANATION)

        # Primary execution
        try:
            output = self._run(plan.language, plan.command)
        except Exception as e:
            message = _error_message(e)
            logger.log_execution_attempt(context.dataset_id, plan.language, plan.command, "primary", "failed", message)
            if plan.language == Language.SQL:
                return self._recover_with_fallback(plan, context, mutating, message)
            return self._retry_with_table_context(plan, context, mutating, message)

        logger.log_execution_attempt(context.dataset_id, plan.language, plan.command, "primary")
        self._record(plan, context, mutating, approved=True, success=True)
        return self._result(plan, context, plan.command, output, plan.explanation_seed)

    def _gate(self, plan: ExecutionPlan, context: ExecutionContext, mutating: bool) -> bool:
        if not mutating:
            return True

        if context.bypass_approval:
            logger.log_approval_bypass(context.dataset_id)
            return True

        logger.log_approval_request(context.dataset_id, plan.language, plan.command)
        approved = bool(self.approval_gate.approve(plan.command, plan.language))
        logger.log_approval_decision(context.dataset_id, "approved" if approved else "rejected")
        return approved

    def _run(self, language: str, command: str) -> str:
        if language == Language.SQL:
            return self.run_sql(command)
        if language == Language.PYTHON:
            return self.run_python(command)
        raise ValueError(f"Unsupported execution language: {language}")

    def _recover_with_fallback(self, plan: ExecutionPlan, context: ExecutionContext,
                               mutating: bool, sql_error: str) -> ExecutionResult:
        """SQL failed: re-issue it through a generated Python script."""
        script = build_fallback_script(plan.command, sql_error, self.row_limit)
        logger.log_fallback(context.dataset_id, sql_error)

        try:
            output = self.run_python(script)
        except Exception as e:
            fallback_error = _error_message(e)
            logger.log_execution_attempt(context.dataset_id, Language.PYTHON, script, "fallback", "failed", fallback_error)
            combined = f"primary failed: {sql_error}; fallback failed: {fallback_error}"
            self._record(plan, context, mutating, approved=True, success=False, error=combined)
            raise ExecutionError(combined, attempts=[sql_error, fallback_error]) from e

        logger.log_execution_attempt(context.dataset_id, Language.PYTHON, script, "fallback")
        self._learn(LearningRecord.create(
            dataset_id=context.dataset_id,
            symptom=f"primary failed: {sql_error}",
            root_cause="Original SQL could not execute on current schema or engine constraints.",
            fix="Used Python fallback to answer the query.",
            command=script,
            language=Language.PYTHON,
            confidence=LEARNING_CONFIDENCE,
        ))
        self._record(plan, context, mutating, approved=True, success=True)
        return self._result(
            plan, context, script, output,
            f"{plan.explanation_seed} SQL failed, so Python fallback was used.",
            fallback_used=True
        )

    def _retry_with_table_context(self, plan: ExecutionPlan, context: ExecutionContext,
                                  mutating: bool, error: str) -> ExecutionResult:
        """Python failed: retry once if the script referenced uninjected table context."""
        variable = missing_context_variable(error)
        if variable is None:
            message = f"fallback failed: {error}"
            self._record(plan, context, mutating, approved=True, success=False, error=message)
            raise ExecutionError(message, attempts=[error])

        repaired = table_context_declaration(variable, context.source_tables) + plan.command
        try:
            output = self.run_python(repaired)
        except Exception as e:
            retry_error = _error_message(e)
            logger.log_execution_attempt(context.dataset_id, Language.PYTHON, repaired, "retry", "failed", retry_error)
            message = f"fallback failed: {error}. Table-context retry also failed: {retry_error}"
            self._record(plan, context, mutating, approved=True, success=False, error=message)
            raise ExecutionError(message, attempts=[error, retry_error]) from e

        logger.log_execution_attempt(context.dataset_id, Language.PYTHON, repaired, "retry")
        self._learn(LearningRecord.create(
            dataset_id=context.dataset_id,
            symptom=f"fallback failed: {error}",
            root_cause=f"Script referenced table context '{variable}' that was not injected.",
            fix=f"Declared {variable} from the dataset's source tables before running the script.",
            command=repaired,
            language=Language.PYTHON,
            confidence=LEARNING_CONFIDENCE,
        ))
        self._record(plan, context, mutating, approved=True, success=True)
        return self._result(
            plan, context, repaired, output,
            f"{plan.explanation_seed} The script referenced missing table context '{variable}', "
            "which was injected before a single retry.",
            fallback_used=True
        )

    def _learn(self, record: LearningRecord) -> None:
        best_effort(self.memory.save_learning, record, description="learning save")

    def _record(self, plan: ExecutionPlan, context: ExecutionContext, mutating: bool,
                approved: bool, success: bool, error: Optional[str] = None) -> None:
        record = AuditRecord(
            dataset_id=context.dataset_id,
            command=plan.command,
            language=plan.language,
            mutating=mutating,
            approved=approved,
            override=context.bypass_approval,
            success=success,
            error=error,
        )
        best_effort(self.audit.append, record, description="audit append")

    def _result(self, plan: ExecutionPlan, context: ExecutionContext, command: str, output: str,
                explanation: str, fallback_used: bool = False) -> ExecutionResult:
        return ExecutionResult(
            plan=plan,
            command=command,
            result=output,
            explanation=explanation,
            source_tables=list(context.source_tables),
            memory_hints=list(context.memory_hints),
            fallback_used=fallback_used,
        )


def build_fallback_script(sql: str, sql_error: str, row_limit: int = RESULT_ROW_LIMIT) -> str:
    """
    Python script that re-issues sql against the dataset file and fails descriptively.
    Output matches DatasetStore.query: tab-separated header and rows, NULL for None, "(no rows)" when empty.
    """
    return "\n".join([
        "import os",
        "import sqlite3",
        "",
        "def cell(value):",
        "    if value is None:",
        "        return 'NULL'",
        "    if isinstance(value, bytes):",
        "        return f'<{len(value)} bytes>'",
        "    return str(value)",
        "",
        f"con = sqlite3.connect(os.environ[{DB_PATH_ENV!r}])",
        f"query = {sql!r}",
        "try:",
        "    cursor = con.execute(query)",
        "    if cursor.description is None:",
        "        con.commit()",
        "        print('(no rows)')",
        "    else:",
        f"        rows = cursor.fetchmany({int(row_limit)})",
        "        con.commit()",
        "        if not rows:",
        "            print('(no rows)')",
        "        else:",
        "            print('\\t'.join(d[0] for d in cursor.description))",
        "            for row in rows:",
        "                print('\\t'.join(cell(v) for v in row))",
        "except Exception as err:",
        f"    raise RuntimeError({('Original SQL failed: ' + sql_error)!r} + f' ({{err}})') from err",
        "finally:",
        "    con.close()",
    ])


def missing_context_variable(error: str) -> Optional[str]:
    """Name of an undefined table-context variable in a Python traceback, if any."""
    match = _MISSING_CONTEXT_PATTERN.search(error or "")
    if not match:
        return None
    name = match.group("name")
    return name if "table" in name.lower() else None


def table_context_declaration(variable: str, source_tables: Sequence[str]) -> str:
    """Source line binding variable: the full list for *tables names, else the first table."""
    tables = list(source_tables)
    if variable.lower().endswith("tables"):
        value = tables
    else:
        value = tables[0] if tables else None
    return f"{variable} = {value!r}\n"


def _error_message(error: Exception) -> str:
    return str(error) or type(error).__name__
