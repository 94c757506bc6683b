"""
Ollama completion service tests with a mocked client.
"""

import pytest
from unittest.mock import MagicMock

from querypilot.agents.completion import OllamaCompletionService
from querypilot.core.errors import CompletionError


def service_with_reply(content):
    client = MagicMock()
    client.chat.return_value = {"message": {"content": content}}
    return OllamaCompletionService(model_name="test-model", enabled=True, client=client), client


class TestPlanJson:

    def test_parses_json_object(self):
        service, client = service_with_reply('{"intent": "x"}')

        assert service.plan_json("system", {"prompt": "hi"}) == {"intent": "x"}

        kwargs = client.chat.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["format"] == "json"
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}
        assert '"prompt": "hi"' in kwargs["messages"][1]["content"]

    def test_strips_markdown_fences(self):
        service, _ = service_with_reply('```json\n{"intent": "x"}\n```')
        assert service.plan_json("system", {}) == {"intent": "x"}

    def test_empty_content_is_rejected(self):
        service, _ = service_with_reply("   ")

        with pytest.raises(CompletionError) as exc_info:
            service.plan_json("system", {})
        assert exc_info.value.code == "COMPLETION_EMPTY_RESPONSE"

    def test_invalid_json_is_rejected(self):
        service, _ = service_with_reply("not json at all")

        with pytest.raises(CompletionError) as exc_info:
            service.plan_json("system", {})
        assert exc_info.value.code == "COMPLETION_INVALID_RESPONSE"

    def test_non_object_json_is_rejected(self):
        service, _ = service_with_reply("[1, 2]")

        with pytest.raises(CompletionError):
            service.plan_json("system", {})

    def test_unconfigured_service_refuses(self):
        client = MagicMock()
        service = OllamaCompletionService(model_name="test-model", enabled=False, client=client)

        with pytest.raises(CompletionError) as exc_info:
            service.plan_json("system", {})
        assert exc_info.value.code == "COMPLETION_NOT_CONFIGURED"
        client.chat.assert_not_called()

    def test_transport_errors_propagate(self):
        service, client = service_with_reply("{}")
        client.chat.side_effect = ConnectionError("refused")

        with pytest.raises(ConnectionError):
            service.plan_json("system", {})


class TestHealth:

    def test_healthy_when_model_is_available(self):
        service, client = service_with_reply("{}")
        assert service.check_health() is True
        client.show.assert_called_once_with("test-model")

    def test_unhealthy_when_show_fails(self):
        service, client = service_with_reply("{}")
        client.show.side_effect = Exception("model not found")
        assert service.check_health() is False

    def test_unconfigured_is_unhealthy(self):
        service = OllamaCompletionService(model_name="test-model", enabled=False, client=MagicMock())
        assert service.is_configured() is False
        assert service.check_health() is False
