"""FastAPI dependency injection factories.

Repositories take AsyncSession via Depends(get_async_session). Upstream
clients are built from settings; tests override get_model_gateway and
get_video_client to point at stub transports.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from whatif.agents.llm_client import ModelGateway
from whatif.agents.orchestrator import AnalysisOrchestrator
from whatif.agents.video_client import VideoClient
from whatif.config.settings import Settings, get_settings
from whatif.db.session import get_async_session
from whatif.repositories.scenarios import ScenarioRepository

# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


async def get_scenario_repo(
    session: AsyncSession = Depends(get_async_session),
) -> ScenarioRepository:
    return ScenarioRepository(session)


# ---------------------------------------------------------------------------
# Upstream clients
# ---------------------------------------------------------------------------


def get_model_gateway(
    settings: Settings = Depends(get_settings),
) -> ModelGateway:
    return ModelGateway(
        api_url=settings.COMPLETION_API_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        validation_model=settings.DEFAULT_MODEL,
    )


def get_video_client(
    settings: Settings = Depends(get_settings),
) -> VideoClient:
    return VideoClient(
        base_url=settings.VIDEO_API_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def get_orchestrator(
    gateway: ModelGateway = Depends(get_model_gateway),
    video_client: VideoClient = Depends(get_video_client),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(gateway=gateway, video_client=video_client)
