"""Scenario analysis models: request, sections, and persisted record.

The sections produced for an analysis are typed individually:

- Entity / TimelineEvent: parsed from model output, validated post-parse
- ResearchSources: always attached to a result
- VideoGenerationResult: either a render task or a failure marker

AnalysisResult keeps every optional section as ``None`` when it was not
requested; the API layer omits those keys from the response body.
"""

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field, StrictBool, field_validator, model_validator

from whatif.models.common import (
    ImpactLevel,
    ImpactSeverity,
    Probability,
    ScenarioType,
    WhatIfBase,
)

# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class AnalysisRequest(WhatIfBase):
    """Incoming analysis request.

    Wire names are camelCase (``enableEntities``, ``apiKey``...); snake_case
    is accepted too.
    """

    scenario: str
    model: str = Field(..., min_length=1)
    enable_entities: StrictBool = Field(..., alias="enableEntities")
    enable_timeline: StrictBool = Field(..., alias="enableTimeline")
    enable_search: StrictBool = Field(..., alias="enableSearch")
    enable_code: StrictBool = Field(..., alias="enableCode")
    enable_video: StrictBool | None = Field(default=None, alias="enableVideo")
    api_key: str = Field(default="", alias="apiKey")
    video_api_key: str | None = Field(default=None, alias="minimaxApiKey")
    type: ScenarioType | None = None
    subjects: list[str] | None = None
    background: str | None = None

    @field_validator("scenario")
    @classmethod
    def _scenario_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("scenario must not be empty")
        return v

    @field_validator("model")
    @classmethod
    def _model_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("model must not be empty")
        return v

    @model_validator(mode="after")
    def _credential_for_model_sections(self) -> "AnalysisRequest":
        if self.needs_model and not self.api_key.strip():
            raise ValueError(
                "apiKey is required when entities or timeline analysis is enabled"
            )
        return self

    @property
    def needs_model(self) -> bool:
        """True when at least one section requires the completion API."""
        return self.enable_entities or self.enable_timeline

    @property
    def wants_video(self) -> bool:
        """Video runs when a credential is present, unless explicitly disabled."""
        return bool(self.video_api_key) and self.enable_video is not False


# ---------------------------------------------------------------------------
# Model-produced sections
# ---------------------------------------------------------------------------


class Entity(WhatIfBase):
    """A stakeholder, actor or factor affected by the scenario."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: str
    impact: ImpactLevel
    impact_probability: Probability
    description: str
    confidence_score: Probability


class TimelineEvent(WhatIfBase):
    """A predicted future occurrence with an associated time window."""

    model_config = ConfigDict(frozen=True)

    time: str
    event: str
    likelihood: str
    probability: Probability
    description: str
    confidence_score: Probability
    impact_severity: ImpactSeverity
    uncertainty_factors: list[str] | None = None


# ---------------------------------------------------------------------------
# Research sources
# ---------------------------------------------------------------------------


class WebSearchSource(WhatIfBase):
    source: str
    relevance_score: Probability
    credibility_score: Probability
    summary: str | None = None


class CodeAnalysisSource(WhatIfBase):
    analysis_type: str
    result: str
    accuracy_probability: Probability
    methodology: str | None = None


class ResearchSources(WhatIfBase):
    """Supporting research attached to every analysis."""

    web_search: list[WebSearchSource] = Field(default_factory=list)
    code_analysis: list[CodeAnalysisSource] = Field(default_factory=list)
    overall_confidence: Probability


# ---------------------------------------------------------------------------
# Video enrichment
# ---------------------------------------------------------------------------


class VideoRenderTask(WhatIfBase):
    """Render task returned by the video API (generate or status query).

    Provider-specific extras (e.g. ``file_id``, ``base_resp``) are kept.
    """

    model_config = ConfigDict(extra="allow")

    video_url: str | None = None
    task_id: str | None = None
    status: str | None = None


class VideoGenerationFailure(WhatIfBase):
    """Soft failure marker stored when video generation did not succeed."""

    error: str


VideoGenerationResult = VideoRenderTask | VideoGenerationFailure


# ---------------------------------------------------------------------------
# Composed result and persisted record
# ---------------------------------------------------------------------------


class AnalysisResult(WhatIfBase):
    """In-memory result returned to the caller."""

    entities: list[Entity] | None = None
    timeline: list[TimelineEvent] | None = None
    research_sources: ResearchSources
    video_generation: VideoGenerationResult | None = None

    def to_response(self) -> dict:
        """JSON-ready dict without the sections that were not produced."""
        return self.model_dump(mode="json", exclude_none=True)


class ScenarioRecord(WhatIfBase):
    """Durable analysis record as listed by the scenarios endpoint."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    model: str
    type: str
    subjects: list[str] | None = None
    background: str | None = None
    entities: list[dict] | None = None
    timeline: list[dict] | None = None
    research_sources: dict | None = None
    video_generation: dict | None = None
    created_at: datetime
