"""Tests for the scenario analysis endpoints.

Upstream APIs are stubbed at the transport level; the database is the
SAVEPOINT-isolated SQLite session from conftest.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from whatif.agents import orchestrator as orchestrator_module

from stubs import SAMPLE_ENTITY, section_replies, status_reply


def _analyze_body(**overrides) -> dict:
    body = {
        "scenario": "What if X?",
        "model": "m1",
        "enableEntities": True,
        "enableTimeline": False,
        "enableSearch": False,
        "enableCode": False,
        "apiKey": "k",
    }
    body.update(overrides)
    return body


# ===================================================================
# POST /api/analyze
# ===================================================================


class TestAnalyze:
    @pytest.mark.anyio
    async def test_entities_analysis_is_returned_and_stored(
        self, client: AsyncClient, upstream,
    ) -> None:
        response = await client.post("/api/analyze", json=_analyze_body())
        assert response.status_code == 200
        data = response.json()
        assert data["entities"] == [SAMPLE_ENTITY]
        assert "timeline" not in data
        assert "video_generation" not in data
        assert 0.0 <= data["research_sources"]["overall_confidence"] <= 1.0

        stored = (await client.get("/api/scenarios")).json()
        assert len(stored) == 1
        record = stored[0]
        assert record["title"] == "What if X?"
        assert record["type"] == "general"
        assert record["model"] == "m1"
        assert record["entities"] == [SAMPLE_ENTITY]
        assert record["timeline"] is None

    @pytest.mark.anyio
    async def test_full_analysis(self, client: AsyncClient, upstream) -> None:
        response = await client.post("/api/analyze", json=_analyze_body(
            enableTimeline=True, enableSearch=True, enableCode=True,
        ))
        assert response.status_code == 200
        data = response.json()
        assert data["timeline"][0]["impact_severity"] == "High"
        assert len(data["research_sources"]["web_search"]) == 3
        assert len(data["research_sources"]["code_analysis"]) == 3
        assert len(upstream.completion.requests) == 2

    @pytest.mark.anyio
    async def test_credential_is_not_stored(self, client: AsyncClient, upstream) -> None:
        await client.post("/api/analyze", json=_analyze_body(apiKey="top-secret"))
        stored = (await client.get("/api/scenarios")).text
        assert "top-secret" not in stored

    @pytest.mark.anyio
    async def test_upstream_rejection_is_502_and_nothing_stored(
        self, client: AsyncClient, upstream,
    ) -> None:
        upstream.completion.respond = status_reply(401)
        response = await client.post("/api/analyze", json=_analyze_body())
        assert response.status_code == 502
        assert "error" in response.json()
        assert (await client.get("/api/scenarios")).json() == []

    @pytest.mark.anyio
    async def test_unparseable_reply_is_502(self, client: AsyncClient, upstream) -> None:
        upstream.completion.respond = section_replies(entities={"not": "a list"})
        response = await client.post("/api/analyze", json=_analyze_body())
        assert response.status_code == 502
        assert (await client.get("/api/scenarios")).json() == []

    @pytest.mark.anyio
    async def test_video_failure_is_soft(self, client: AsyncClient, upstream) -> None:
        upstream.video.respond = status_reply(500)
        response = await client.post(
            "/api/analyze", json=_analyze_body(minimaxApiKey="vk"),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["entities"] == [SAMPLE_ENTITY]
        assert data["video_generation"] == {
            "error": "Video generation failed: MiniMax API error: 500",
        }
        stored = (await client.get("/api/scenarios")).json()
        assert stored[0]["video_generation"] == data["video_generation"]

    @pytest.mark.anyio
    async def test_video_task_returned(self, client: AsyncClient, upstream) -> None:
        response = await client.post(
            "/api/analyze", json=_analyze_body(minimaxApiKey="vk"),
        )
        assert response.json()["video_generation"] == {
            "task_id": "task-1", "status": "Queueing",
        }

    @pytest.mark.anyio
    async def test_local_problem(self, client: AsyncClient, upstream) -> None:
        response = await client.post("/api/analyze", json=_analyze_body(
            type="local", subjects=["Residents"], background="Old drains",
        ))
        assert response.status_code == 200
        record = (await client.get("/api/scenarios")).json()[0]
        assert record["type"] == "local"
        assert record["subjects"] == ["Residents"]
        assert record["background"] == "Old drains"
        assert record["description"].startswith("Local Problem Analysis:")

    @pytest.mark.anyio
    @pytest.mark.parametrize("overrides", [
        {"scenario": ""},
        {"model": ""},
        {"enableEntities": "yes"},
        {"apiKey": ""},
    ])
    async def test_invalid_request_is_400(
        self, client: AsyncClient, upstream, overrides: dict,
    ) -> None:
        response = await client.post("/api/analyze", json=_analyze_body(**overrides))
        assert response.status_code == 400
        assert "error" in response.json()
        assert upstream.completion.requests == []

    @pytest.mark.anyio
    async def test_non_ascii_credential_is_400(self, client: AsyncClient, upstream) -> None:
        response = await client.post("/api/analyze", json=_analyze_body(apiKey="k\u00e9y"))
        assert response.status_code == 400
        assert "error" in response.json()
        assert upstream.completion.requests == []

    @pytest.mark.anyio
    async def test_commit_failure_is_500(
        self, client: AsyncClient, upstream, monkeypatch,
    ) -> None:
        async def failing_commit(*args, **kwargs):
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(AsyncSession, "commit", failing_commit)
        response = await client.post("/api/analyze", json=_analyze_body())
        assert response.status_code == 500
        assert "Failed to save scenario" in response.json()["error"]
        assert "entities" not in response.json()

    @pytest.mark.anyio
    async def test_unexpected_error_is_500_json(
        self, client: AsyncClient, upstream, monkeypatch,
    ) -> None:
        def broken_research(**kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(orchestrator_module, "compile_research_sources", broken_research)
        from whatif.api.main import app

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.post("/api/analyze", json=_analyze_body())
        assert response.status_code == 500
        assert response.json() == {"error": "Analysis failed"}

    @pytest.mark.anyio
    async def test_non_object_body_is_400(self, client: AsyncClient) -> None:
        response = await client.post("/api/analyze", json=["What if X?"])
        assert response.status_code == 400

    @pytest.mark.anyio
    async def test_malformed_json_is_400(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/analyze",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Malformed request body"}


# ===================================================================
# GET /api/scenarios
# ===================================================================


class TestListScenarios:
    @pytest.mark.anyio
    async def test_empty(self, client: AsyncClient) -> None:
        response = await client.get("/api/scenarios")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.anyio
    async def test_at_most_ten_newest_first(self, client: AsyncClient, upstream) -> None:
        for i in range(12):
            await client.post("/api/analyze", json=_analyze_body(scenario=f"What if {i}?"))
        records = (await client.get("/api/scenarios")).json()
        assert len(records) == 10
        stamps = [r["created_at"] for r in records]
        assert stamps == sorted(stamps, reverse=True)
        assert records[0]["title"] == "What if 11?"


# ===================================================================
# POST /api/validate-key
# ===================================================================


class TestValidateKey:
    @pytest.mark.anyio
    async def test_accepted_key(self, client: AsyncClient, upstream) -> None:
        response = await client.post("/api/validate-key", json={"apiKey": "good"})
        assert response.status_code == 200
        assert response.json() == {"valid": True}

    @pytest.mark.anyio
    async def test_rejected_key(self, client: AsyncClient, upstream) -> None:
        upstream.completion.respond = status_reply(401)
        response = await client.post("/api/validate-key", json={"apiKey": "bad"})
        assert response.status_code == 200
        assert response.json() == {"valid": False}

    @pytest.mark.anyio
    async def test_missing_key(self, client: AsyncClient, upstream) -> None:
        response = await client.post("/api/validate-key", json={})
        assert response.status_code == 400
        assert response.json() == {"valid": False, "error": "API key required"}
        assert upstream.completion.requests == []


# ===================================================================
# POST /api/video-status
# ===================================================================


class TestVideoStatus:
    @pytest.mark.anyio
    async def test_returns_upstream_status(self, client: AsyncClient, upstream) -> None:
        upstream.video.respond = status_reply(200, {
            "task_id": "task-1", "status": "Success", "file_id": "f1",
        })
        response = await client.post(
            "/api/video-status", json={"taskId": "task-1", "minimaxApiKey": "vk"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Success"
        assert data["file_id"] == "f1"
        assert upstream.video.requests[0].url.params["task_id"] == "task-1"

    @pytest.mark.anyio
    @pytest.mark.parametrize("body", [
        {"taskId": "task-1"},
        {"minimaxApiKey": "vk"},
        {},
    ])
    async def test_missing_fields(self, client: AsyncClient, upstream, body: dict) -> None:
        response = await client.post("/api/video-status", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Task ID and API key required"}
        assert upstream.video.requests == []

    @pytest.mark.anyio
    async def test_upstream_failure_is_502(self, client: AsyncClient, upstream) -> None:
        upstream.video.respond = status_reply(500)
        response = await client.post(
            "/api/video-status", json={"taskId": "task-1", "minimaxApiKey": "vk"},
        )
        assert response.status_code == 502
        assert response.json() == {"error": "MiniMax API error: 500"}
