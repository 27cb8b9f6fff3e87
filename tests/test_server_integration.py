"""HTTP route integration tests through the FastMCP Starlette app."""

from unittest.mock import patch

import pytest
from starlette.testclient import TestClient

import tubescout.server as server_mod
from tubescout.ratelimit import SlidingWindowRateLimiter

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.fixture
def client(service):
    """TestClient over the server's HTTP app with the service patched in."""
    limiter = SlidingWindowRateLimiter(max_requests=100, window_seconds=60)
    history = SlidingWindowRateLimiter(max_requests=100, window_seconds=60)
    with patch.object(server_mod, "_get_service", return_value=service), \
            patch.object(server_mod, "extract_limiter", limiter), \
            patch.object(server_mod, "history_limiter", history):
        yield TestClient(server_mod.mcp.http_app())


class TestExtractRoute:
    def test_video(self, client):
        resp = client.post("/api/extract", json={"type": "video", "url": URL})
        assert resp.status_code == 200
        assert resp.json()["data"]["title"] == "Intro to Machine Learning"

    def test_missing_url(self, client):
        resp = client.post("/api/extract", json={"type": "video"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "URL is required"}

    def test_invalid_json(self, client):
        resp = client.post("/api/extract", content=b"{not json", headers={"content-type": "application/json"})
        assert resp.status_code == 400

    def test_bulk_transcript_off(self, client):
        resp = client.post("/api/extract", json={
            "type": "bulk_analyze", "urls": [URL, "bogus"], "options": {"transcript": False},
        })
        data = resp.json()["data"]
        assert len(data) == 2
        assert "transcript" not in data[0]
        assert data[1]["error"] == "Failed to analyze video"

    def test_rate_limited_per_caller(self, client):
        with patch.object(server_mod, "extract_limiter", SlidingWindowRateLimiter(max_requests=1, window_seconds=60)):
            first = client.post("/api/extract", json={"type": "video"}, headers={"X-User-Id": "a"})
            second = client.post("/api/extract", json={"type": "video"}, headers={"X-User-Id": "a"})
            other = client.post("/api/extract", json={"type": "video"}, headers={"X-User-Id": "b"})
        assert first.status_code == 400
        assert second.status_code == 429
        assert second.json() == {"error": "Rate limit exceeded"}
        assert "retry-after" in second.headers
        assert other.status_code == 400


class TestHistoryRoute:
    def test_requires_user(self, client):
        assert client.get("/api/history").status_code == 401
        assert client.post("/api/history", json={}).status_code == 401

    def test_save_and_list(self, client):
        headers = {"X-User-Id": "u1"}
        payload = {"type": "video", "title": "Intro", "thumbnail": "t.jpg", "data": {"views": "12"}}
        saved = client.post("/api/history", json=payload, headers=headers)
        assert saved.status_code == 200
        assert saved.json()["data"]["data"] == {"views": "12"}

        listed = client.get("/api/history", headers=headers).json()["data"]
        assert [a["title"] for a in listed] == ["Intro"]
        assert client.get("/api/history?type=channel_list", headers=headers).json()["data"] == []

    def test_missing_fields(self, client):
        resp = client.post("/api/history", json={"type": "video"}, headers={"X-User-Id": "u1"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing required fields"}
