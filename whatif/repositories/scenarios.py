"""Scenario repository: append-only store of completed analyses."""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from whatif.db.tables import ScenarioRow
from whatif.errors import PersistenceError
from whatif.models.common import ScenarioType, new_uuid7, utc_now

DEFAULT_TITLE = "Untitled Scenario"
DEFAULT_MODEL = "llama-3.3-70b-versatile"
MAX_RECENT = 10


class ScenarioRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, title: str, description: str,
                     model: str | None = None,
                     type: str | None = None,
                     subjects: list[str] | None = None,
                     background: str | None = None,
                     entities: list | None = None,
                     timeline: list | None = None,
                     research_sources: dict | None = None,
                     video_generation: dict | None = None) -> ScenarioRow:
        """Insert one record; id and created_at are assigned here."""
        row = ScenarioRow(
            id=new_uuid7(),
            title=title or DEFAULT_TITLE,
            description=description or "",
            model=model or DEFAULT_MODEL,
            type=type or ScenarioType.GENERAL.value,
            subjects=subjects,
            background=background,
            entities=entities,
            timeline=timeline,
            research_sources=research_sources,
            video_generation=video_generation,
            created_at=utc_now(),
        )
        try:
            self._session.add(row)
            await self._session.flush()
            await self._session.refresh(row)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save scenario: {exc}") from exc
        return row

    async def list_recent(self, limit: int = MAX_RECENT) -> list[ScenarioRow]:
        """Newest first, never more than MAX_RECENT rows."""
        limit = max(0, min(limit, MAX_RECENT))
        result = await self._session.execute(
            select(ScenarioRow)
            .order_by(ScenarioRow.created_at.desc(), ScenarioRow.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
