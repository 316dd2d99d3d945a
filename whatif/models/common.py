"""Shared types, enums, and base models used across WhatIf domain models."""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


# --- Reusable annotated types ---

Probability = Annotated[float, Field(ge=0.0, le=1.0)]


# --- Shared enums ---


class ScenarioType(StrEnum):
    """Classification tag for a submitted scenario."""

    GENERAL = "general"
    LOCAL = "local"


class ImpactLevel(StrEnum):
    """Impact level assigned to an entity."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class ImpactSeverity(StrEnum):
    """Severity assigned to a timeline event."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# --- Base model ---


class WhatIfBase(BaseModel):
    """Base model with common configuration for all WhatIf Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
    }
