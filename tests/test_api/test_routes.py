"""Tests for analysis API endpoints."""

import pytest
from fastapi.testclient import TestClient

from novelgraph.analysis import AnalysisOrchestrator, Character, FetchError
from novelgraph.api.main import app
from novelgraph.api.routes import analysis

TEXT = "In Verona Romeo met Juliet. " * 20


@pytest.fixture
def orchestrator(make_oracle, make_fetcher, make_result, fast_config):
    """Orchestrator with scripted collaborators wired to the app's reporter."""
    oracle = make_oracle(
        discoveries={"Verona": [Character(name="Romeo", mentions=2), Character(name="Juliet", mentions=2)]},
        default_analysis=make_result(
            characters=[("Romeo", 1), ("Juliet", 1)],
            interactions=[("Romeo", "Juliet", 2, ["met"])],
        ),
    )
    return AnalysisOrchestrator(make_fetcher(TEXT), oracle, analysis.reporter, fast_config)


@pytest.fixture
def client(orchestrator):
    """Create test client with the orchestrator dependency overridden."""
    app.dependency_overrides[analysis.get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "Novel Graph"

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "openai" in data["components"]


class TestAnalyzeStreaming:
    """Test starting analyses and reading session status."""

    def test_start_with_session_id(self, client):
        response = client.post(
            "/api/analysis/analyze-streaming",
            json={"bookID": "1513", "sessionId": "verona"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["sessionId"] == "verona"
        assert data["message"] == "Analysis started"
        assert "WebSocket" in data["instructions"]

        # Background task has finished once the test client returns
        status = client.get("/api/analysis/sessions/verona")
        assert status.status_code == 200
        body = status.json()
        assert body["state"] == "complete"
        assert body["document_id"] == "1513"
        assert body["character_count"] == 2
        assert body["batches_completed"] == body["total_batches"]

    def test_generates_unique_session_ids(self, client):
        first = client.post("/api/analysis/analyze-streaming", json={"bookID": "1513"}).json()
        second = client.post("/api/analysis/analyze-streaming", json={"bookID": "1513"}).json()

        assert first["sessionId"]
        assert first["sessionId"] != second["sessionId"]

    def test_missing_book_id(self, client):
        response = client.post("/api/analysis/analyze-streaming", json={"sessionId": "x"})
        assert response.status_code == 422

    def test_failed_run_status(self, client, orchestrator, make_fetcher):
        orchestrator.fetcher = make_fetcher(error=FetchError("Failed to fetch book: 404 Not Found"))

        client.post("/api/analysis/analyze-streaming", json={"bookID": "0", "sessionId": "missing"})

        body = client.get("/api/analysis/sessions/missing").json()
        assert body["state"] == "errored"
        assert "404" in body["error"]

    def test_unknown_session(self, client):
        response = client.get("/api/analysis/sessions/does-not-exist")
        assert response.status_code == 404


class TestProgressWebSocket:
    """Test joining session rooms over WebSocket."""

    def test_join_session(self, client):
        with client.websocket_connect("/api/analysis/ws") as websocket:
            websocket.send_json({"event": "join", "sessionId": "room-1"})
            message = websocket.receive_json()

            assert message["event"] == "joined"
            assert message["data"]["sessionId"] == "room-1"
            assert analysis.reporter.subscriber_count("room-1") == 1

            websocket.send_json({"event": "leave", "sessionId": "room-1"})
            assert websocket.receive_json()["event"] == "left"
            assert analysis.reporter.subscriber_count("room-1") == 0

    def test_join_requires_session_id(self, client):
        with client.websocket_connect("/api/analysis/ws") as websocket:
            websocket.send_json({"event": "join"})
            message = websocket.receive_json()
            assert message["event"] == "error"
            assert "sessionId" in message["data"]["message"]

    def test_unknown_event(self, client):
        with client.websocket_connect("/api/analysis/ws") as websocket:
            websocket.send_json({"event": "dance", "sessionId": "room-1"})
            assert websocket.receive_json()["event"] == "error"

    def test_bare_session_id_joins(self, client):
        with client.websocket_connect("/api/analysis/ws") as websocket:
            websocket.send_json("room-2")
            message = websocket.receive_json()

            assert message["event"] == "joined"
            assert message["data"]["sessionId"] == "room-2"
            assert analysis.reporter.subscriber_count("room-2") == 1

    def test_non_json_message(self, client):
        with client.websocket_connect("/api/analysis/ws") as websocket:
            websocket.send_text("not json")
            assert websocket.receive_json()["event"] == "error"

            # Connection stays usable
            websocket.send_json({"event": "join", "sessionId": "room-3"})
            assert websocket.receive_json()["event"] == "joined"

    def test_non_object_message(self, client):
        with client.websocket_connect("/api/analysis/ws") as websocket:
            websocket.send_json([1, 2, 3])
            message = websocket.receive_json()
            assert message["event"] == "error"
            assert "JSON object" in message["data"]["message"]
