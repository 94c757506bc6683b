"""
Planner tests - heuristic strategy, LLM strategy and strict plan validation.
"""

import pytest
from unittest.mock import Mock

from querypilot.agents.planner import PLANNER_SYSTEM_PROMPT, Planner, PlannerContext, heuristic_plan, parse_plan
from querypilot.core.errors import PlanValidationError
from querypilot.core.mutation import is_mutating


VALID_PLAN = {
    "intent": "Count rows",
    "language": "sql",
    "command": "SELECT COUNT(*) FROM main_table",
    "requiresApproval": False,
    "expectedShape": "scalar",
    "explanationSeed": "Counted rows with SQL.",
}


@pytest.fixture
def context():
    return PlannerContext(
        dataset_id="sales",
        prompt="how many rows?",
        schema={"dataset_id": "sales", "tables": [{"name": "main_table", "columns": []}]},
        memory_hints=["## Learning abc"],
    )


class TestHeuristicPlan:

    def test_default_is_bounded_select(self):
        plan = heuristic_plan("show me the data")

        assert plan.language == "sql"
        assert plan.command == 'SELECT * FROM "main_table" LIMIT 50;'
        assert plan.expected_shape == "table"
        assert plan.requires_approval is False

    def test_uses_given_main_table(self):
        assert heuristic_plan("show rows", "orders").command == 'SELECT * FROM "orders" LIMIT 50;'

    @pytest.mark.parametrize("prompt", ["plot revenue", "make a chart", "Complex breakdown", "clean the data"])
    def test_analytical_prompts_choose_python(self, prompt):
        plan = heuristic_plan(prompt)

        assert plan.language == "python"
        assert plan.expected_shape == "text"
        assert "QUERYPILOT_DB_PATH" in plan.command
        compile(plan.command, "<summary>", "exec")
        assert is_mutating(plan.command, "python") is False


class TestPlannerStrategies:

    def test_unconfigured_completion_uses_heuristic(self, context):
        completion = Mock()
        completion.is_configured.return_value = False

        plan = Planner(completion).create_plan(context)

        assert plan.language == "sql"
        completion.plan_json.assert_not_called()

    def test_configured_completion_sends_context(self, context):
        completion = Mock()
        completion.is_configured.return_value = True
        completion.plan_json.return_value = dict(VALID_PLAN)

        plan = Planner(completion).create_plan(context)

        system_prompt, payload = completion.plan_json.call_args.args
        assert system_prompt == PLANNER_SYSTEM_PROMPT
        assert payload["dataset_id"] == "sales"
        assert payload["prompt"] == "how many rows?"
        assert payload["memory_hints"] == ["## Learning abc"]
        assert payload["schema"]["tables"][0]["name"] == "main_table"
        assert plan.command == "SELECT COUNT(*) FROM main_table"
        assert plan.expected_shape == "scalar"

    def test_invalid_llm_plan_propagates(self, context):
        completion = Mock()
        completion.is_configured.return_value = True
        completion.plan_json.return_value = {"intent": "x"}

        with pytest.raises(PlanValidationError):
            Planner(completion).create_plan(context)


class TestParsePlan:

    def test_valid_plan(self):
        plan = parse_plan(VALID_PLAN)

        assert plan.intent == "Count rows"
        assert plan.requires_approval is False
        assert plan.explanation_seed == "Counted rows with SQL."

    def test_extra_keys_are_ignored(self):
        assert parse_plan({**VALID_PLAN, "confidence": 0.9}).language == "sql"

    @pytest.mark.parametrize("field,value", [
        ("language", "javascript"),
        ("expectedShape", "chart"),
        ("requiresApproval", "false"),
        ("command", "   "),
        ("intent", 5),
    ])
    def test_wrong_values_are_rejected(self, field, value):
        with pytest.raises(PlanValidationError) as exc_info:
            parse_plan({**VALID_PLAN, field: value})

        assert exc_info.value.code == "PLAN_INVALID"
        assert any(error["field"] == field for error in exc_info.value.errors)

    def test_missing_field_is_rejected(self):
        raw = dict(VALID_PLAN)
        del raw["command"]

        with pytest.raises(PlanValidationError):
            parse_plan(raw)

    def test_non_object_is_rejected(self):
        with pytest.raises(PlanValidationError):
            parse_plan(["not", "a", "plan"])
