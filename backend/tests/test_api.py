"""
Tests for the HTTP API: SSE compare stream, sessions and health.
"""
import json

import pytest
from fastapi.testclient import TestClient

from conftest import FailingResultStore


def parse_sse(body: str) -> list[dict]:
    """Decode `data: {...}` frames from an SSE body."""
    events = []
    for frame in body.split("\n\n"):
        frame = frame.strip()
        if frame.startswith("data: "):
            events.append(json.loads(frame[len("data: "):]))
    return events


@pytest.fixture
def client(providers_dir):
    from llm_compare.config import Settings
    from llm_compare.main import create_app

    settings = Settings(
        _env_file=None,
        result_store="memory",
        provider_mode="mock",
        providers_dir=providers_dir,
    )
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


class TestCompareStream:
    """GET /api/compare/stream"""

    def test_streams_both_models(self, client):
        """Test event order and content of a full run."""
        response = client.get("/api/compare/stream", params={"prompt": "ping"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache, no-transform"
        assert response.headers["x-accel-buffering"] == "no"

        events = parse_sse(response.text)
        assert events[0]["type"] == "session"
        assert events[0]["sessionId"]
        assert events[-1] == {"type": "all-complete"}
        assert sum(1 for e in events if e["type"] == "all-complete") == 1

        for model_id, expected in (
            ("openai", "OpenAI says ping back "),
            ("gemini", "Gemini says ping too "),
        ):
            chunks = [e["data"] for e in events if e.get("modelId") == model_id and e["type"] == "chunk"]
            statuses = [e for e in events if e.get("modelId") == model_id and e["type"] == "status"]
            assert "".join(chunks) == expected
            assert len(statuses) == 1
            assert statuses[0]["status"] == "complete"
            assert statuses[0]["metrics"]["tokenCount"] == -(-len(expected) // 4)

    @pytest.mark.parametrize("params", [{}, {"prompt": ""}, {"prompt": "   "}])
    def test_blank_prompt_rejected(self, client, params):
        """Test a missing or blank prompt is a 400 with no stream."""
        response = client.get("/api/compare/stream", params=params)

        assert response.status_code == 400
        assert response.json()["detail"] == "prompt is required"

    def test_run_creation_failure(self, client):
        """Test a store failure before streaming is a 503."""
        from llm_compare.services.streaming import StreamRelay

        relay = client.app.state.relay
        client.app.state.relay = StreamRelay(FailingResultStore(fail_create=True), *relay.streams)

        response = client.get("/api/compare/stream", params={"prompt": "ping"})

        assert response.status_code == 503
        assert response.json()["detail"] == "Failed to create comparison session"

    def test_results_are_persisted(self, client):
        """Test a finished stream leaves both results in the store."""
        response = client.get("/api/compare/stream", params={"prompt": "ping"})
        session_id = parse_sse(response.text)[0]["sessionId"]

        session = client.get(f"/api/sessions/{session_id}").json()

        assert session["prompt"] == "ping"
        by_provider = {r["provider"]: r for r in session["results"]}
        assert set(by_provider) == {"openai", "google"}
        assert by_provider["openai"]["responseText"] == "OpenAI says ping back "
        assert by_provider["google"]["modelName"] == "gemini-2.5-flash"


class TestSessions:
    """/api/sessions"""

    def test_create_and_get(self, client):
        """Test a created session can be read back without results."""
        created = client.post("/api/sessions", json={"prompt": "hello"})

        assert created.status_code == 200
        body = created.json()
        assert body["prompt"] == "hello"

        fetched = client.get(f"/api/sessions/{body['sessionId']}")
        assert fetched.status_code == 200
        assert fetched.json()["results"] == []
        assert fetched.json()["createdAt"] == body["createdAt"]

    def test_blank_prompt_rejected(self, client):
        """Test request validation."""
        response = client.post("/api/sessions", json={"prompt": "  "})
        assert response.status_code == 422

    def test_unknown_session(self, client):
        """Test missing sessions are a 404."""
        response = client.get("/api/sessions/does-not-exist")
        assert response.status_code == 404


class TestHealth:
    """GET /health"""

    def test_health(self, client):
        """Test liveness reports the store kind."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "store": "memory"}
