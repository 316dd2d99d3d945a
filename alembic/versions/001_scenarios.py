"""Scenario store: append-only analysis records.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "scenarios",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("model", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), server_default="general", nullable=False),
        sa.Column("subjects", ARRAY(sa.Text), nullable=True),
        sa.Column("background", sa.Text, nullable=True),
        sa.Column("entities", JSONB, nullable=True),
        sa.Column("timeline", JSONB, nullable=True),
        sa.Column("research_sources", JSONB, nullable=True),
        sa.Column("video_generation", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_scenarios_created_at", "scenarios", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_scenarios_created_at", table_name="scenarios")
    op.drop_table("scenarios")
