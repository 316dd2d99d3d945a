"""Prompt templates for scenario analysis sections.

PromptPack provides versioned access to the instruction templates. The
pack version is logged with every completion call so a stored analysis can
be traced back to the prompts that produced it.
"""

from dataclasses import dataclass, field
from enum import StrEnum

# Current prompt pack version, bump on any prompt change
PROMPT_PACK_VERSION = "whatif_v1"

SYSTEM_PREAMBLE = "You are a scenario analysis AI. "

VALIDATION_PROMPT = "Hello"


class AnalysisSection(StrEnum):
    """Model-backed sections of an analysis."""

    ENTITIES = "entities"
    TIMELINE = "timeline"


ENTITIES_TEMPLATE = "\n".join([
    "Analyze this scenario and identify the key entities and their relationships"
    " with probability scoring.",
    "Return a JSON array with objects containing: name, type, impact,"
    " impact_probability, description, confidence_score.",
    '- impact should be "High", "Medium", or "Low"',
    "- impact_probability should be a decimal between 0 and 1 representing the"
    " probability of this impact level",
    "- confidence_score should be a decimal between 0 and 1 representing your"
    " confidence in this entity analysis",
    "",
    'Example format: [{"name": "AI Industry", "type": "Technology", "impact": "High",'
    ' "impact_probability": 0.85, "description": "Primary sector affected by this'
    ' change", "confidence_score": 0.92}]',
    "Provide exactly 4-6 entities. Return ONLY the JSON array, no other text.",
])

TIMELINE_TEMPLATE = "\n".join([
    "Predict a realistic timeline of events that would result from this scenario"
    " with detailed probability analysis.",
    "Return a JSON array with objects containing: time, event, likelihood,"
    " probability, description, confidence_score, impact_severity,"
    " uncertainty_factors.",
    "- probability should be a decimal between 0 and 1 representing the"
    " likelihood of this event",
    "- confidence_score should be a decimal between 0 and 1 representing your"
    " confidence in this prediction",
    '- impact_severity should be "Critical", "High", "Medium", or "Low"',
    "- uncertainty_factors should be an array of strings describing what could"
    " change this prediction",
    "",
    'Example format: [{"time": "2025-2026", "event": "Initial Impact",'
    ' "likelihood": "85%", "probability": 0.85, "description": "Detailed'
    ' description of what happens", "confidence_score": 0.78,'
    ' "impact_severity": "High", "uncertainty_factors": ["Economic conditions",'
    ' "Regulatory changes"]}]',
    "Provide exactly 4-5 timeline events. Return ONLY the JSON array, no other text.",
])

INSTRUCTION_TEMPLATES: dict[AnalysisSection, str] = {
    AnalysisSection.ENTITIES: ENTITIES_TEMPLATE,
    AnalysisSection.TIMELINE: TIMELINE_TEMPLATE,
}


@dataclass(frozen=True)
class PromptPack:
    """Versioned collection of section instruction templates.

    Usage::

        pack = PromptPack.current()
        instruction = pack.instruction(AnalysisSection.ENTITIES)
        print(pack.version)  # "whatif_v1"
    """

    version: str
    templates: dict[AnalysisSection, str] = field(default_factory=dict)

    def instruction(self, section: AnalysisSection) -> str:
        """Return the instruction template for a section.

        Raises KeyError if the section is not in this pack.
        """
        return self.templates[section]

    def system_prompt(self, section: AnalysisSection) -> str:
        """Full system message for a section: preamble + instruction."""
        return SYSTEM_PREAMBLE + self.instruction(section)

    @classmethod
    def current(cls) -> "PromptPack":
        """Return the current prompt pack."""
        return cls(version=PROMPT_PACK_VERSION, templates=dict(INSTRUCTION_TEMPLATES))


def build_local_problem_scenario(
    scenario: str,
    subjects: list[str] | None = None,
    background: str | None = None,
) -> str:
    """Build the contextualized scenario text for a local problem.

    Blank subjects are dropped. Background is included only when non-blank.
    """
    valid_subjects = [s.strip() for s in subjects or [] if s.strip()]

    lines = ["Local Problem Analysis:"]
    if valid_subjects:
        lines.append(f"Subjects: {', '.join(valid_subjects)}")
    if background and background.strip():
        lines.append(f"Background Context: {background.strip()}")
    lines.extend([
        f"Scenario: {scenario.strip()}",
        "",
        "Please analyze this local problem considering the specific subjects and"
        " background provided. Consider the interplay between all subjects mentioned.",
    ])
    return "\n".join(lines)
