"""
Pydantic models: planner output validation and HTTP request/response bodies.
"""

from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Literal, Optional


class PlanPayload(BaseModel):
    """Strict shape of the JSON object returned by the LLM planner. Nothing is coerced."""
    model_config = ConfigDict(strict=True, extra="ignore")

    intent: str
    language: Literal["sql", "python"]
    command: str
    requiresApproval: bool
    expectedShape: Literal["table", "scalar", "text"]
    explanationSeed: str

    @field_validator('command')
    @classmethod
    def command_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('command cannot be empty')
        return v


class AskRequest(BaseModel):
    dataset_id: str
    prompt: str
    bypass_approval: bool = False

    @field_validator('dataset_id')
    @classmethod
    def dataset_id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('dataset_id cannot be empty')
        return v.strip()

    @field_validator('prompt')
    @classmethod
    def prompt_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('prompt cannot be empty')
        return v


class PlanResponse(BaseModel):
    intent: str
    language: str
    command: str
    requires_approval: bool
    expected_shape: str
    explanation_seed: str


class AskResponse(BaseModel):
    plan: PlanResponse
    command: str
    result: str
    explanation: str
    source_tables: List[str]
    memory_hints: List[str]
    fallback_used: bool


class MemorySearchItem(BaseModel):
    snippet: str
    source: str
    score: int


class MemorySearchResponse(BaseModel):
    results: List[MemorySearchItem]


class CurateRequest(BaseModel):
    dataset_id: Optional[str] = None


class CurateResponse(BaseModel):
    scope: str
    promoted: List[str]


class HealthResponse(BaseModel):
    status: str
    version: str
    planner_provider: str
    completion_healthy: bool
    datasets: int
    config_issues: List[str]
