"""Integration tests for the session endpoints."""

import pytest
from fastapi.testclient import TestClient

from weatherchat.app.config import Settings
from weatherchat.app.main import create_app


@pytest.fixture
def client(completions, weather_service, registry) -> TestClient:
    app = create_app(
        Settings(),
        completion_client=completions,
        weather_service=weather_service,
        registry=registry,
    )
    return TestClient(app)


class TestSessionRoutes:
    def test_create_and_get_session(self, client) -> None:
        created = client.post("/api/sessions")
        assert created.status_code == 201
        session_id = created.json()["sessionId"]
        assert session_id.startswith("session_")

        fetched = client.get(f"/api/sessions/{session_id}")
        assert fetched.status_code == 200
        data = fetched.json()
        assert data["sessionId"] == session_id
        assert data["context"]["version"] == 1
        assert data["summary"].startswith("Current Context:")

    def test_create_with_seed_context(self, client) -> None:
        created = client.post(
            "/api/sessions",
            json={
                "location": {
                    "current": {
                        "city": "Tokyo",
                        "country": "Japan",
                        "latitude": 35.6762,
                        "longitude": 139.6503,
                    }
                },
                "preferences": {"language": "ja"},
            },
        )

        assert created.status_code == 201
        context = created.json()["context"]
        assert context["location"]["current"]["city"] == "Tokyo"
        assert context["preferences"]["language"] == "ja"

    def test_unknown_session_is_404(self, client) -> None:
        assert client.get("/api/sessions/session_missing").status_code == 404
        assert client.delete("/api/sessions/session_missing").status_code == 404

    def test_expired_session_is_404(self, client, clock) -> None:
        session_id = client.post("/api/sessions").json()["sessionId"]
        clock.advance(hours=24, seconds=1)

        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    def test_delete_session(self, client) -> None:
        session_id = client.post("/api/sessions").json()["sessionId"]

        assert client.delete(f"/api/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    def test_stats(self, client, clock) -> None:
        client.post("/api/sessions")
        clock.advance(hours=25)
        client.post("/api/sessions")

        response = client.get("/api/sessions/stats")

        assert response.status_code == 200
        assert response.json() == {"totalSessions": 2, "activeSessions": 1}
