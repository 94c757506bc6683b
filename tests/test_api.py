"""
HTTP API tests with a mocked ask service.
"""

import pytest
from unittest.mock import Mock, patch
from fastapi.testclient import TestClient

from querypilot.api import main
from querypilot.core.errors import CompletionError, DatasetNotFoundError, ExecutionError, PlanValidationError
from querypilot.core.memory import MemorySearchResult
from querypilot.core.schema import ExecutionPlan, ExecutionResult


def sample_result():
    plan = ExecutionPlan(
        intent="Run SQL query on the local dataset.",
        language="sql",
        command="SELECT 1",
        requires_approval=False,
        expected_shape="table",
        explanation_seed="Default SQL-first planning path.",
    )
    return ExecutionResult(
        plan=plan,
        command="SELECT 1",
        result="1\n1",
        explanation="Default SQL-first planning path.",
        source_tables=["main_table"],
        memory_hints=[],
    )


@pytest.fixture
def mock_service():
    service = Mock()
    service.ask.return_value = sample_result()
    service.completion.check_health.return_value = False
    service.catalog.list_datasets.return_value = ["sales"]
    return service


@pytest.fixture
def client(mock_service):
    with patch('querypilot.api.main.get_service', return_value=mock_service), \
         patch('querypilot.core.config.API_ENABLED', True):
        with TestClient(main.app) as test_client:
            yield test_client


class TestAskEndpoint:

    def test_successful_ask(self, client, mock_service):
        response = client.post("/ask", json={"dataset_id": "sales", "prompt": "show rows"})

        assert response.status_code == 200
        data = response.json()
        assert data["command"] == "SELECT 1"
        assert data["plan"]["language"] == "sql"
        assert data["fallback_used"] is False
        mock_service.ask.assert_called_once_with("sales", "show rows", bypass_approval=False)

    def test_bypass_flag_is_forwarded(self, client, mock_service):
        client.post("/ask", json={"dataset_id": "sales", "prompt": "drop it", "bypass_approval": True})
        mock_service.ask.assert_called_once_with("sales", "drop it", bypass_approval=True)

    def test_empty_prompt_is_rejected(self, client, mock_service):
        response = client.post("/ask", json={"dataset_id": "sales", "prompt": "  "})

        assert response.status_code == 422
        mock_service.ask.assert_not_called()

    def test_unknown_dataset_is_404(self, client, mock_service):
        mock_service.ask.side_effect = DatasetNotFoundError("nope")

        response = client.post("/ask", json={"dataset_id": "nope", "prompt": "x"})

        assert response.status_code == 404

    @pytest.mark.parametrize("error,code", [
        (ExecutionError("primary failed: a; fallback failed: b"), "EXECUTION_FAILED"),
        (PlanValidationError("bad plan"), "PLAN_INVALID"),
    ])
    def test_execution_failures_are_422(self, client, mock_service, error, code):
        mock_service.ask.side_effect = error

        response = client.post("/ask", json={"dataset_id": "sales", "prompt": "x"})

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == code

    def test_completion_failure_is_502(self, client, mock_service):
        mock_service.ask.side_effect = CompletionError("garbage")

        response = client.post("/ask", json={"dataset_id": "sales", "prompt": "x"})

        assert response.status_code == 502

    def test_disabled_api_is_503(self, mock_service):
        with patch('querypilot.api.main.get_service', return_value=mock_service), \
             patch('querypilot.core.config.API_ENABLED', False):
            with TestClient(main.app) as test_client:
                response = test_client.post("/ask", json={"dataset_id": "sales", "prompt": "x"})

        assert response.status_code == 503


class TestMemoryEndpoints:

    def test_search(self, client, mock_service):
        mock_service.search_memory.return_value = [MemorySearchResult(snippet="## Learning abc", source="a.md", score=2)]

        response = client.get("/memory/search", params={"query": "column", "dataset_id": "sales"})

        assert response.status_code == 200
        assert response.json()["results"][0]["score"] == 2
        mock_service.search_memory.assert_called_once_with("column", "sales")

    def test_curate(self, client, mock_service):
        mock_service.curate_memory.return_value = ["abc123"]

        response = client.post("/memory/curate", json={})

        assert response.status_code == 200
        assert response.json() == {"scope": "global", "promoted": ["abc123"]}
        mock_service.curate_memory.assert_called_once_with(None)


class TestHealthEndpoint:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["datasets"] == 1
        assert data["completion_healthy"] is False
        assert data["version"] == main.VERSION
