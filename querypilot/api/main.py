"""
HTTP surface for the ask pipeline.
Requests never prompt: mutating commands are rejected unless bypass_approval is set.
"""

from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from .schemas import (
    AskRequest,
    AskResponse,
    CurateRequest,
    CurateResponse,
    HealthResponse,
    MemorySearchItem,
    MemorySearchResponse,
)
from ..agents.ask import AskService
from ..core.approval import RejectingApprovalGate
from ..core.config import VERSION, debug_enabled, get_planner_provider, validate_config
from ..core.errors import DatasetNotFoundError, ExecutionError, PlanValidationError, QueryPilotError
from ..util.logging import logger

# Initialize the FastAPI application
app = FastAPI(
    title="QueryPilot API",
    version=VERSION,
    description="Natural-language questions over local datasets with SQL-first execution",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

_service: Optional[AskService] = None


def get_service() -> AskService:
    """Lazily build the shared service with a non-interactive approval gate."""
    global _service
    if _service is None:
        _service = AskService(approval_gate=RejectingApprovalGate())
    return _service


def _require_enabled():
    from ..core import config
    if not config.API_ENABLED:
        raise HTTPException(status_code=503, detail="API is disabled. Set API_ENABLED=true to enable.")


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check system health."""
    service = get_service()
    issues = validate_config()
    completion_healthy = service.completion.check_health()

    return HealthResponse(
        status="healthy" if not issues else "degraded",
        version=VERSION,
        planner_provider=get_planner_provider(),
        completion_healthy=completion_healthy,
        datasets=len(service.catalog.list_datasets()),
        config_issues=issues
    )


@app.post("/ask", response_model=AskResponse)
def ask_endpoint(request: AskRequest):
    """Plan and execute one prompt against a local dataset."""
    _require_enabled()
    service = get_service()

    try:
        result = service.ask(request.dataset_id, request.prompt, bypass_approval=request.bypass_approval)
    except DatasetNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except (ExecutionError, PlanValidationError) as e:
        raise HTTPException(status_code=422, detail={"code": e.code, "message": e.message})
    except QueryPilotError as e:
        logger.error(f"Ask failed for dataset {request.dataset_id}: {e}")
        raise HTTPException(status_code=502, detail={"code": e.code, "message": e.message})

    return AskResponse(**result.to_dict())


@app.get("/memory/search", response_model=MemorySearchResponse)
def memory_search_endpoint(query: str = Query(..., min_length=1), dataset_id: Optional[str] = None):
    """Search learning memory by term overlap."""
    _require_enabled()
    results = get_service().search_memory(query, dataset_id)
    return MemorySearchResponse(
        results=[MemorySearchItem(snippet=r.snippet, source=r.source, score=r.score) for r in results]
    )


@app.post("/memory/curate", response_model=CurateResponse)
def memory_curate_endpoint(request: CurateRequest):
    """Promote recurring learnings into the curated memory file."""
    _require_enabled()
    promoted = get_service().curate_memory(request.dataset_id)
    return CurateResponse(scope=request.dataset_id or "global", promoted=promoted)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    logger.error(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
