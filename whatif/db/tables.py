"""SQLAlchemy ORM table models for WhatIf.

Uses FlexJSON (JSONB on Postgres, JSON on SQLite) for the model-produced
sections. Scenario rows are append-only: created once, never updated.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from whatif.db.session import Base

# JSONB on PostgreSQL, plain JSON on SQLite (for tests)
FlexJSON = JSONB().with_variant(JSON(), "sqlite")

# text[] on PostgreSQL, JSON list on SQLite
TextList = ARRAY(Text).with_variant(JSON(), "sqlite")


class ScenarioRow(Base):
    """Immutable record of one completed scenario analysis."""

    __tablename__ = "scenarios"

    id: Mapped[UUID] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    subjects = mapped_column(TextList, nullable=True)
    background: Mapped[str | None] = mapped_column(Text, nullable=True)
    entities = mapped_column(FlexJSON, nullable=True)
    timeline = mapped_column(FlexJSON, nullable=True)
    research_sources = mapped_column(FlexJSON, nullable=True)
    video_generation = mapped_column(FlexJSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True,
    )
