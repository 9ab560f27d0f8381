# Tests for lookups, usage, health, rate limiting and error envelopes.
# Created: 2026-09-08

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from anythingai.api.serve import RATE_LIMIT_MESSAGE, create_app
from anythingai.llm.events import WebResult


class TestLookups:
    def test_weather_requires_query(self, client):
        resp = client.get("/api/weather")
        assert resp.status_code == 400
        assert resp.json() == {"error": True, "code": "BAD_REQUEST", "message": "Missing query."}

    def test_weather_unavailable(self, client):
        with patch("anythingai.api.lookups.get_weather_data", new=AsyncMock(return_value=None)):
            resp = client.get("/api/weather", params={"query": "weather in Atlantis"})
        assert resp.json() == {"available": False}

    def test_time(self, client):
        resp = client.get("/api/time", params={"query": "what time is it now?"})
        body = resp.json()
        assert body["available"] is True
        assert set(body["data"]) >= {"iso", "date", "time"}

    def test_time_not_asked(self, client):
        resp = client.get("/api/time", params={"query": "tell me a joke"})
        assert resp.json() == {"available": False}

    def test_search(self, client):
        results = [WebResult(title="Docs", link="https://example.com", snippet="hello")]
        with patch("anythingai.api.lookups.search_web", new=AsyncMock(return_value=results)):
            resp = client.get("/api/search", params={"query": "python docs"})
        assert resp.status_code == 200
        assert resp.json() == {
            "results": [{"title": "Docs", "link": "https://example.com", "snippet": "hello"}]
        }

    def test_search_failure(self, client):
        with patch(
            "anythingai.api.lookups.search_web",
            new=AsyncMock(side_effect=ValueError("TAVILY_API_KEY is not configured")),
        ):
            resp = client.get("/api/search", params={"query": "python docs"})
        assert resp.status_code == 500
        assert resp.json()["message"] == "Search lookup failed."


class TestUsage:
    def test_records_after_chat(self, client, register):
        headers, _ = register()
        client.post("/api/chat/stream", json={"message": "Hello"}, headers=headers)

        resp = client.get("/api/usage", params={"limit": 5}, headers=headers)
        assert resp.status_code == 200
        records = resp.json()["records"]
        assert len(records) == 1
        assert records[0]["model"] == "test-model"
        assert records[0]["inputTokens"] == 12
        assert records[0]["outputTokens"] == 7
        assert records[0]["totalTokens"] == 19

    def test_requires_auth(self, client):
        assert client.get("/api/usage").status_code == 401

    def test_limit_bounds(self, client, register):
        headers, _ = register()
        assert client.get("/api/usage?limit=0", headers=headers).status_code == 400


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["model"] == "test-model"
        assert body["queue"] == {"concurrency": 3, "active": 0, "pending": 0}

    def test_health_is_not_rate_limited(self, client):
        assert "X-RateLimit-Limit" not in client.get("/health").headers


class TestRateLimit:
    def test_exceeding_limit(self, settings, store, generation):
        settings.rate_limit_max = 2
        app = create_app(settings, store=store, generation=generation)
        with TestClient(app) as client:
            first = client.get("/api/departments")
            assert first.status_code == 200
            assert first.headers["X-RateLimit-Limit"] == "2"
            assert client.get("/api/departments").status_code == 200

            resp = client.get("/api/departments")

        assert resp.status_code == 429
        assert resp.json() == {
            "error": True,
            "code": "RATE_LIMIT_EXCEEDED",
            "message": RATE_LIMIT_MESSAGE,
        }
        assert int(resp.headers["Retry-After"]) > 0

    def test_cleanup_task_follows_lifespan(self, settings, store, generation):
        app = create_app(settings, store=store, generation=generation)
        with TestClient(app):
            task = app.state.cleanup_task
            assert not task.done()
        assert task.cancelled()


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.json()["error"] is True

    def test_malformed_json(self, client, register):
        headers, _ = register()
        resp = client.post(
            "/api/chat/stream",
            content=b"{not json",
            headers={**headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "BAD_REQUEST"
