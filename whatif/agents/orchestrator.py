"""Analysis orchestrator: validate, analyse, enrich, persist.

Runs the enabled model-backed sections (entities, timeline) concurrently,
attaches research sources, optionally requests a video render, then writes
exactly one scenario record.

Failure semantics:
- Section failure (upstream, parse, schema): whole request fails, nothing stored
- Video failure: absorbed into ``video_generation = {error: ...}``
- Store failure: whole request fails
"""

import asyncio
import logging
from typing import Any, Protocol

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from whatif.agents.llm_client import ModelGateway
from whatif.agents.prompts import AnalysisSection, PromptPack, build_local_problem_scenario
from whatif.agents.research import compile_research_sources
from whatif.agents.video_client import VideoClient
from whatif.errors import ParseError, ValidationError
from whatif.models.analysis import (
    AnalysisRequest,
    AnalysisResult,
    Entity,
    TimelineEvent,
    VideoGenerationFailure,
    VideoGenerationResult,
)
from whatif.models.common import ScenarioType

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100

_SECTION_SCHEMAS: dict[AnalysisSection, type[BaseModel]] = {
    AnalysisSection.ENTITIES: Entity,
    AnalysisSection.TIMELINE: TimelineEvent,
}


class ScenarioStore(Protocol):
    async def create(self, **fields: Any) -> Any:
        ...


def truncate_title(text: str, limit: int = TITLE_MAX_LENGTH) -> str:
    """Truncate to ``limit`` UTF-16 code units.

    A surrogate pair split by the boundary is dropped rather than kept half.
    """
    encoded = text.encode("utf-16-le")
    if len(encoded) <= limit * 2:
        return text
    return encoded[:limit * 2].decode("utf-16-le", errors="ignore")


def _format_validation_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


class AnalysisOrchestrator:
    """Compose a scenario analysis from the model gateway and video client."""

    def __init__(
        self,
        *,
        gateway: ModelGateway,
        video_client: VideoClient | None = None,
        prompt_pack: PromptPack | None = None,
    ) -> None:
        self._gateway = gateway
        self._video_client = video_client
        self._pack = prompt_pack or PromptPack.current()

    @staticmethod
    def parse_request(payload: Any) -> AnalysisRequest:
        """Validate a raw request body.

        Raises ValidationError with a readable summary of every problem.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            return AnalysisRequest.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(_format_validation_errors(exc)) from exc

    async def analyze(
        self,
        request: AnalysisRequest,
        *,
        store: ScenarioStore,
    ) -> AnalysisResult:
        """Run the analysis and persist it. Returns the in-memory result."""
        scenario_text = self._model_input(request)

        jobs: dict[AnalysisSection, Any] = {}
        if request.enable_entities:
            jobs[AnalysisSection.ENTITIES] = self._run_section(
                AnalysisSection.ENTITIES, request, scenario_text,
            )
        if request.enable_timeline:
            jobs[AnalysisSection.TIMELINE] = self._run_section(
                AnalysisSection.TIMELINE, request, scenario_text,
            )

        # Both sections finish before either failure propagates
        outcomes = await asyncio.gather(*jobs.values(), return_exceptions=True)
        sections: dict[AnalysisSection, list] = {}
        for section, outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Section %s failed: %s", section.value, outcome)
                raise outcome
            sections[section] = outcome

        entities = sections.get(AnalysisSection.ENTITIES)
        timeline = sections.get(AnalysisSection.TIMELINE)

        research_sources = compile_research_sources(
            enable_search=request.enable_search,
            enable_code=request.enable_code,
        )

        video_generation = await self._generate_video(request, entities, timeline)

        result = AnalysisResult(
            entities=entities,
            timeline=timeline,
            research_sources=research_sources,
            video_generation=video_generation,
        )

        await store.create(
            title=truncate_title(request.scenario),
            description=scenario_text,
            model=request.model,
            type=(request.type or ScenarioType.GENERAL).value,
            subjects=request.subjects,
            background=request.background,
            entities=_dump_list(entities),
            timeline=_dump_list(timeline),
            research_sources=research_sources.model_dump(mode="json"),
            video_generation=(
                video_generation.model_dump(mode="json")
                if video_generation is not None
                else None
            ),
        )

        logger.info(
            "Analysis stored: model=%s sections=%s video=%s prompt_pack=%s",
            request.model,
            sorted(s.value for s in sections),
            video_generation is not None,
            self._pack.version,
        )
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def _model_input(request: AnalysisRequest) -> str:
        """Scenario text sent to the model and stored as the description."""
        if request.type == ScenarioType.LOCAL and (request.subjects or request.background):
            return build_local_problem_scenario(
                request.scenario, request.subjects, request.background,
            )
        return request.scenario

    async def _run_section(
        self,
        section: AnalysisSection,
        request: AnalysisRequest,
        scenario_text: str,
    ) -> list:
        payload = await self._gateway.complete(
            request.api_key,
            request.model,
            scenario_text,
            self._pack.instruction(section),
        )
        return _validate_section(section, payload)

    async def _generate_video(
        self,
        request: AnalysisRequest,
        entities: list[Entity] | None,
        timeline: list[TimelineEvent] | None,
    ) -> VideoGenerationResult | None:
        if not request.wants_video or self._video_client is None:
            return None
        try:
            return await self._video_client.generate(
                request.video_api_key,
                request.scenario,
                entities,
                timeline,
            )
        except Exception as exc:
            logger.warning("Video generation failed: %s", exc)
            return VideoGenerationFailure(error=f"Video generation failed: {exc}")


def _validate_section(section: AnalysisSection, payload: Any) -> list:
    """Check a parsed reply against the section schema; reject on violation."""
    if not isinstance(payload, list):
        raise ParseError(f"Model reply for {section.value} is not a JSON array")

    schema = _SECTION_SCHEMAS[section]
    try:
        return [schema.model_validate(item) for item in payload]
    except PydanticValidationError as exc:
        logger.warning(
            "Model reply for %s failed schema validation: %s",
            section.value, _format_validation_errors(exc),
        )
        raise ParseError(
            f"Model reply for {section.value} does not match the expected schema"
        ) from exc


def _dump_list(items: list[BaseModel] | None) -> list[dict] | None:
    if items is None:
        return None
    return [item.model_dump(mode="json") for item in items]
