"""FastAPI scenario analysis endpoints.

POST /api/validate-key   - check a completion API key
POST /api/analyze        - run, persist and return an analysis
GET  /api/scenarios      - most recent stored analyses
POST /api/video-status   - poll a video render task

Credentials arrive per request and are never stored.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from whatif.agents.llm_client import ModelGateway
from whatif.agents.orchestrator import AnalysisOrchestrator
from whatif.agents.video_client import VideoClient
from whatif.api.dependencies import (
    get_model_gateway,
    get_orchestrator,
    get_scenario_repo,
    get_video_client,
)
from whatif.db.session import get_async_session
from whatif.errors import PersistenceError
from whatif.models.analysis import ScenarioRecord
from whatif.repositories.scenarios import MAX_RECENT, ScenarioRepository

router = APIRouter(prefix="/api", tags=["scenarios"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class ValidateKeyRequest(BaseModel):
    api_key: str | None = Field(default=None, alias="apiKey")


class ValidateKeyResponse(BaseModel):
    valid: bool


class VideoStatusRequest(BaseModel):
    task_id: str | None = Field(default=None, alias="taskId")
    video_api_key: str | None = Field(default=None, alias="minimaxApiKey")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/validate-key", response_model=ValidateKeyResponse)
async def validate_key(
    body: ValidateKeyRequest,
    gateway: ModelGateway = Depends(get_model_gateway),
):
    """Report whether the completion API accepts the key."""
    if not body.api_key:
        return JSONResponse(
            status_code=400,
            content={"valid": False, "error": "API key required"},
        )
    valid = await gateway.validate_credential(body.api_key)
    return ValidateKeyResponse(valid=valid)


@router.post("/analyze")
async def analyze_scenario(
    payload: Any = Body(default=None),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    repo: ScenarioRepository = Depends(get_scenario_repo),
    session: AsyncSession = Depends(get_async_session),
) -> dict:
    """Analyse a scenario and persist the result.

    Sections that were not requested are absent from the body. Errors are
    returned as ``{"error": ...}`` by the application exception handlers.
    The record is committed before the response is built.
    """
    request = orchestrator.parse_request(payload)
    result = await orchestrator.analyze(request, store=repo)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Failed to save scenario: {exc}") from exc
    return result.to_response()


@router.get("/scenarios", response_model=list[ScenarioRecord])
async def list_recent_scenarios(
    repo: ScenarioRepository = Depends(get_scenario_repo),
) -> list[ScenarioRecord]:
    """Most recent analyses, newest first."""
    rows = await repo.list_recent(MAX_RECENT)
    return [ScenarioRecord.model_validate(row) for row in rows]


@router.post("/video-status")
async def video_status(
    body: VideoStatusRequest,
    video_client: VideoClient = Depends(get_video_client),
):
    """Poll a render task; upstream failures surface as 502."""
    if not body.task_id or not body.video_api_key:
        return JSONResponse(
            status_code=400,
            content={"error": "Task ID and API key required"},
        )
    task = await video_client.poll_status(body.video_api_key, body.task_id)
    return task.model_dump(mode="json", exclude_none=True)
