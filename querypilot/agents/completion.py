"""
Ollama completion service - one-shot JSON completions for the planner.
"""

import json
import re
from typing import Any, Dict, Optional

import ollama

from ..core.config import OLLAMA_HOST, OLLAMA_MODEL, PLANNER_TEMPERATURE, is_llm_planner_enabled
from ..core.errors import CompletionError


_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class OllamaCompletionService:
    """
    Thin wrapper over the ollama client.
    Transport errors (ollama.ResponseError, connection errors) propagate unchanged.
    """

    def __init__(self, model_name: str = OLLAMA_MODEL, host: str = OLLAMA_HOST,
                 enabled: Optional[bool] = None, client: Optional[ollama.Client] = None):
        self.model_name = model_name
        self.host = host
        self.enabled = is_llm_planner_enabled() if enabled is None else enabled
        self._client = client

    @property
    def client(self) -> ollama.Client:
        if self._client is None:
            self._client = ollama.Client(host=self.host)
        return self._client

    def is_configured(self) -> bool:
        return self.enabled and bool(self.model_name)

    def plan_json(self, system_prompt: str, user_payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send one system + user exchange and parse the reply as a JSON object."""
        if not self.is_configured():
            raise CompletionError(
                "Completion service is not configured. Set PLANNER_PROVIDER=ollama and OLLAMA_MODEL.",
                "COMPLETION_NOT_CONFIGURED"
            )

        response = self.client.chat(
            model=self.model_name,
            messages=[
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': json.dumps(user_payload, indent=2, default=str)}
            ],
            format='json',
            options={'temperature': PLANNER_TEMPERATURE}
        )

        content = response['message']['content'] or ''
        if not content.strip():
            raise CompletionError("Completion response did not include message content.", "COMPLETION_EMPTY_RESPONSE")

        normalized = _FENCE_PATTERN.sub("", content.strip()).strip()
        try:
            parsed = json.loads(normalized)
        except json.JSONDecodeError as e:
            raise CompletionError(f"Completion returned invalid JSON. Raw content: {content}") from e

        if not isinstance(parsed, dict):
            raise CompletionError(f"Completion returned JSON {type(parsed).__name__}, expected an object.")
        return parsed

    def check_health(self) -> bool:
        """Check if Ollama answers and the configured model is pulled."""
        if not self.is_configured():
            return False
        try:
            self.client.show(self.model_name)
            return True
        except Exception:
            return False
