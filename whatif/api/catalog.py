"""FastAPI catalog endpoints: static reference data for clients.

GET /api/models    - supported completion models
GET /api/examples  - curated example scenarios

Deterministic: no upstream calls, no database.
"""

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(prefix="/api", tags=["catalog"])


class CompletionModel(BaseModel):
    id: str
    name: str
    description: str
    agentic: bool


class ExampleScenario(BaseModel):
    title: str
    description: str
    scenario: str


COMPLETION_MODELS: tuple[CompletionModel, ...] = (
    CompletionModel(
        id="llama-3.3-70b-versatile",
        name="Standard Model (Llama 3.3 70B)",
        description="Standard text generation model",
        agentic=False,
    ),
    CompletionModel(
        id="compound-beta",
        name="Agentic Tooling (compound-beta)",
        description="Multi-tool capability with web search and code execution",
        agentic=True,
    ),
    CompletionModel(
        id="compound-beta-mini",
        name="Agentic Tooling Mini (compound-beta-mini)",
        description="Single-tool capability with 3x lower latency",
        agentic=True,
    ),
)

EXAMPLE_SCENARIOS: tuple[ExampleScenario, ...] = (
    ExampleScenario(
        title="AI Market Disruption",
        description="What if AI becomes 10x more capable overnight?",
        scenario=(
            "What if a breakthrough in AI technology makes current AI systems 10 times"
            " more capable overnight? How would this affect the tech industry, job"
            " markets, and society at large?"
        ),
    ),
    ExampleScenario(
        title="Climate Technology",
        description="Revolutionary carbon capture technology",
        scenario=(
            "What if a new carbon capture technology is developed that can remove CO2"
            " from the atmosphere at 1/100th the current cost? How would this change"
            " climate policy, energy markets, and global economics?"
        ),
    ),
    ExampleScenario(
        title="Remote Work Evolution",
        description="The future of distributed work",
        scenario=(
            "What if virtual reality technology becomes so advanced that remote work"
            " feels identical to in-person collaboration? How would this transform"
            " cities, real estate, and global talent distribution?"
        ),
    ),
    ExampleScenario(
        title="Energy Breakthrough",
        description="Room-temperature superconductor discovery",
        scenario=(
            "What if scientists discover a room-temperature superconductor that's cheap"
            " and easy to manufacture? How would this revolutionize power transmission,"
            " transportation, and computing?"
        ),
    ),
)


@router.get("/models", response_model=list[CompletionModel])
async def list_models() -> list[CompletionModel]:
    return list(COMPLETION_MODELS)


@router.get("/examples", response_model=list[ExampleScenario])
async def list_examples() -> list[ExampleScenario]:
    return list(EXAMPLE_SCENARIOS)
