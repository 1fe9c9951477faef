"""Integration tests for /walks routes."""
import pytest
from fastapi.testclient import TestClient

from walkie.api.main import create_app
from walkie.tracking.position import PushPositionSource


@pytest.fixture(name="client")
def client_fixture(engine):
    app = create_app(engine=engine)
    with TestClient(app) as c:
        yield c


def post_track(client, n: int = 3):
    for i in range(n):
        resp = client.post("/walks/samples", json={"lat": 45.4642 + i * 0.001, "lng": 9.19})
        assert resp.status_code == 200
    return resp


class TestWalkLifecycle:
    def test_start(self, client):
        resp = client.post("/walks/start")
        assert resp.status_code == 201
        body = resp.json()
        assert body["distance_km"] == 0.0
        assert body["pace_sec_per_km"] is None
        assert body["goal_progress_pct"] == 0

    def test_double_start_conflicts(self, client):
        client.post("/walks/start")
        assert client.post("/walks/start").status_code == 409

    def test_samples_accumulate(self, client):
        client.post("/walks/start")
        body = post_track(client, 3).json()
        assert body["point_count"] == 3
        assert body["distance_km"] == pytest.approx(0.2224, abs=0.001)

    def test_sample_without_walk(self, client):
        resp = client.post("/walks/samples", json={"lat": 45.0, "lng": 9.0})
        assert resp.status_code == 409

    def test_sample_validation(self, client):
        client.post("/walks/start")
        assert client.post("/walks/samples", json={"lat": "north"}).status_code == 422

    def test_current(self, client):
        client.post("/walks/start")
        post_track(client, 2)
        body = client.get("/walks/current").json()
        assert body["goal_km"] == 2.0
        assert body["last_point"] == pytest.approx([45.4652, 9.19])
        assert len(body["path"]) == 2
        assert body["last_error"] is None

    def test_current_without_walk(self, client):
        assert client.get("/walks/current").status_code == 404

    def test_position_error_keeps_walk(self, client):
        client.post("/walks/start")
        post_track(client, 2)
        resp = client.post("/walks/errors", json={"message": "Signal lost"})
        assert resp.status_code == 202
        body = client.get("/walks/current").json()
        assert body["last_error"] == "Signal lost"
        assert body["point_count"] == 2

    def test_track_png(self, client):
        client.post("/walks/start")
        post_track(client, 3)
        resp = client.get("/walks/current/track.png")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.content[:4] == b"\x89PNG"

    def test_stop_returns_record(self, client):
        client.post("/walks/start")
        post_track(client, 3)
        resp = client.post("/walks/stop")
        assert resp.status_code == 200
        body = resp.json()
        assert set(body) == {"date", "km", "sec", "avg"}
        assert body["km"] == 0.22
        assert client.get("/walks/current").status_code == 404

    def test_stop_without_walk(self, client):
        assert client.post("/walks/stop").status_code == 409

    def test_samples_after_stop_rejected(self, client):
        client.post("/walks/start")
        client.post("/walks/stop")
        assert client.post("/walks/samples", json={"lat": 45.0, "lng": 9.0}).status_code == 409

    def test_zero_point_walk(self, client):
        client.post("/walks/start")
        body = client.post("/walks/stop").json()
        assert body["km"] == 0
        assert body["avg"] == 0


class TestHistory:
    def test_empty(self, client):
        assert client.get("/walks/history").json() == []

    def test_most_recent_first(self, client):
        for n in (2, 4, 3):
            client.post("/walks/start")
            post_track(client, n)
            client.post("/walks/stop")
        history = client.get("/walks/history").json()
        assert len(history) == 3
        assert [h["km"] for h in history] == [0.22, 0.33, 0.11]
        assert history[0]["date"] >= history[1]["date"] >= history[2]["date"]

    def test_limit(self, client):
        for _ in range(3):
            client.post("/walks/start")
            client.post("/walks/stop")
        assert len(client.get("/walks/history", params={"limit": 2}).json()) == 2


class TestNoPositionSource:
    def test_start_unavailable(self, engine):
        app = create_app(engine=engine, source=PushPositionSource(available=False))
        with TestClient(app) as client:
            assert client.post("/walks/start").status_code == 503
            assert client.get("/walks/current").status_code == 404
