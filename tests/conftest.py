"""Shared pytest fixtures for the WhatIf test suite.

Provides:
- db_engine: in-memory SQLite async engine with all tables
- db_session: SAVEPOINT-isolated async session (app commits don't leak)
- upstream: recording stubs for the completion and video APIs
- client: AsyncClient with session and upstream clients overridden
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from whatif.agents.llm_client import ModelGateway
from whatif.agents.video_client import VideoClient
from whatif.db.session import Base, get_async_session
import whatif.db.tables  # noqa: F401 register ORM models on Base.metadata

from stubs import COMPLETION_URL, VIDEO_BASE_URL, UpstreamStubs


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a SAVEPOINT-isolated session.

    The outer transaction is never committed; it rolls back at teardown.
    Application code calling session.commit() releases the SAVEPOINT, which
    is then restarted so later operations stay in the same outer transaction.
    """
    async with db_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        nested = await conn.begin_nested()

        @event.listens_for(session.sync_session, "after_transaction_end")
        def restart_savepoint(sync_session, transaction):  # noqa: ARG001
            nonlocal nested
            if transaction.nested and not transaction._parent.nested:
                nested = conn.sync_connection.begin_nested()

        yield session

        await session.close()
        await trans.rollback()


@pytest.fixture
def upstream() -> UpstreamStubs:
    return UpstreamStubs()


@pytest.fixture
async def client(db_session, upstream):
    """AsyncClient wired to the test session and the upstream stubs."""
    from whatif.api.dependencies import get_model_gateway, get_video_client
    from whatif.api.main import app

    async def _override_session():
        yield db_session

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_model_gateway] = lambda: ModelGateway(
        api_url=COMPLETION_URL, transport=upstream.completion.transport,
    )
    app.dependency_overrides[get_video_client] = lambda: VideoClient(
        base_url=VIDEO_BASE_URL, transport=upstream.video.transport,
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
