"""
Planner - turns a dataset schema, a user prompt and memory hints into an ExecutionPlan.

Two strategies:
1. LLM-backed: one JSON completion, strictly validated against PlanPayload
2. Heuristic: keyword sniffing, used whenever the completion service is unconfigured

The planner's requires_approval flag is advisory; the orchestrator re-classifies every command.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic import ValidationError

from ..api.schemas import PlanPayload
from ..core.errors import PlanValidationError
from ..core.schema import ExecutionPlan, Language, ResultShape
from ..util.logging import logger, sanitize_payload


PLANNER_SYSTEM_PROMPT = """
You are the QueryPilot planner.
Return only valid JSON with the shape:
{
  "intent": "string",
  "language": "sql" | "python",
  "command": "string",
  "requiresApproval": boolean,
  "expectedShape": "table" | "scalar" | "text",
  "explanationSeed": "string"
}
Rules:
- Prefer SQL (SQLite dialect).
- Use Python only if SQL is not suitable. Python reads the dataset with
  sqlite3.connect(os.environ["QUERYPILOT_DB_PATH"]) and prints its answer.
- If the command mutates data, requiresApproval must be true.
- Never include markdown fences.
"""

PYTHON_HINT_TOKENS = ["plot", "chart", "visual", "complex", "clean"]


@dataclass
class PlannerContext:
    dataset_id: str
    prompt: str
    schema: Dict[str, Any]
    memory_hints: List[str] = field(default_factory=list)
    main_table: str = "main_table"


class Planner:
    def __init__(self, completion):
        """completion: object with is_configured() and plan_json(system_prompt, payload)."""
        self.completion = completion

    def create_plan(self, context: PlannerContext) -> ExecutionPlan:
        if not self.completion.is_configured():
            plan = heuristic_plan(context.prompt, context.main_table)
            logger.log_plan_created(context.dataset_id, "heuristic", plan.language, plan.intent)
            return plan

        payload = {
            "dataset_id": context.dataset_id,
            "prompt": context.prompt,
            "schema": context.schema,
            "memory_hints": context.memory_hints,
        }
        logger.debug(f"Planner payload: {sanitize_payload(payload)}")
        raw = self.completion.plan_json(PLANNER_SYSTEM_PROMPT, payload)
        plan = parse_plan(raw)
        logger.log_plan_created(context.dataset_id, "llm", plan.language, plan.intent)
        return plan


def parse_plan(raw: Any) -> ExecutionPlan:
    """Validate a loosely typed planner reply. Malformed shapes are rejected, not repaired."""
    try:
        payload = PlanPayload.model_validate(raw)
    except ValidationError as e:
        errors = [{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()]
        raise PlanValidationError(f"Planner returned an invalid plan: {errors}", errors) from e

    return ExecutionPlan(
        intent=payload.intent,
        language=payload.language,
        command=payload.command,
        requires_approval=payload.requiresApproval,
        expected_shape=payload.expectedShape,
        explanation_seed=payload.explanationSeed,
    )


def heuristic_plan(prompt: str, main_table: str = "main_table") -> ExecutionPlan:
    """Offline plan: Python for analytical-sounding prompts, bounded SELECT otherwise."""
    lowered = prompt.lower()
    table = main_table.replace('"', '""')

    if any(token in lowered for token in PYTHON_HINT_TOKENS):
        return ExecutionPlan(
            intent="Use Python fallback for complex analytics.",
            language=Language.PYTHON,
            command=_summary_script(table),
            requires_approval=False,
            expected_shape=ResultShape.TEXT,
            explanation_seed="Python fallback selected because the request looks analytical.",
        )

    return ExecutionPlan(
        intent="Run SQL query on the local dataset.",
        language=Language.SQL,
        command=f'SELECT * FROM "{table}" LIMIT 50;',
        requires_approval=False,
        expected_shape=ResultShape.TABLE,
        explanation_seed="Default SQL-first planning path.",
    )


def _summary_script(table: str) -> str:
    return "\n".join([
        "import os",
        "import sqlite3",
        "",
        'con = sqlite3.connect(os.environ["QUERYPILOT_DB_PATH"])',
        f"cursor = con.execute('SELECT * FROM \"{table}\" LIMIT 1000')",
        "columns = [d[0] for d in cursor.description]",
        "rows = cursor.fetchall()",
        "print(f\"Sampled {len(rows)} rows across {len(columns)} columns: {', '.join(columns)}\")",
        "for index, name in enumerate(columns):",
        "    values = [row[index] for row in rows if row[index] is not None]",
        "    print(f\"- {name}: {len(values)} non-null, {len(set(values))} distinct\")",
    ])
