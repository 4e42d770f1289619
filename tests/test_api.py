"""
Tests for the HTTP surface: health, stream connection and stats views.
"""
import pytest
from fastapi.testclient import TestClient

from matchstats.live_stats import StatsConfig, StatsProvider, get_stats_provider
from matchstats.main import app


@pytest.fixture
def provider(scheduler, source_factory):
    provider = StatsProvider(config=StatsConfig(), source_factory=source_factory, scheduler=scheduler)
    yield provider
    provider.disconnect()


@pytest.fixture
def client(provider):
    app.dependency_overrides[get_stats_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def live(client, sources, scheduler, match_created_payload):
    """Connected stream with a few events flushed."""
    client.post("/api/stream", json={"endpoint_url": "https://events.example/m/1"})
    source = sources[-1]
    source.emit("sportingEventCreated", match_created_payload, 5000.0)
    source.emit("startPeriod", {"period": 1, "occurredOn": 5000.0}, 5000.0)
    source.emit("shot", {"id": "s1", "result": "GOAL", "possession": {"teamId": "home-1"}})
    source.emit("shot", {"id": "s2", "result": "MISS", "possession": {"teamId": "away-1"}})
    source.emit("goalCorrection", {"id": "g1", "teamId": "away-1"})
    source.emit("substitution", {"id": "sub1", "teamId": "away-1", "inPersonId": "p12", "outPersonId": "p7"})
    scheduler.advance(60.0)
    return source


def test_health_endpoint_returns_ok(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_version_endpoint(client):
    data = client.get("/version").json()
    assert data["name"] == "Live Match Stats"


def test_stats_without_stream_returns_404(client):
    response = client.get("/api/stats")
    assert response.status_code == 404


def test_connect_stream(client, sources):
    response = client.post(
        "/api/stream",
        json={"endpoint_url": "https://events.example/m/1", "refresh_interval": 500, "period_count": 4},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["connected"] is True
    assert data["endpoint_url"] == "https://events.example/m/1"
    assert sources[0].config.refresh_interval == 120
    assert sources[0].config.period_count == 4


def test_disconnect_stream(client, live):
    response = client.delete("/api/stream")
    assert response.json()["connected"] is False
    assert live.stopped


def test_state(client, live):
    data = client.get("/api/state").json()
    assert data["event_count"] == 6
    assert data["server_time"] == pytest.approx(5060.0)


def test_stats_default_views(client, live):
    data = client.get("/api/stats").json()

    assert data["match"]["home_team"]["team_id"] == "home-1"
    assert data["score"] == {"home": 1, "away": 1, "display": "1 - 1"}
    assert data["period"]["period1"] == {"state": "STARTED", "elapsed": pytest.approx(60.0)}
    assert data["period"]["period2"]["state"] == "NOT_STARTED"
    assert [g["id"] for g in data["goals"]] == ["s1", "g1"]
    assert data["goals"][1]["kind"] == "goal_correction"
    assert data["goals"][1]["score"]["display"] == "1 - 1"
    assert data["shots"] is None


def test_stats_requested_views(client, live):
    data = client.get("/api/stats", params={"types": "shots,substitutions,raw"}).json()

    assert [s["id"] for s in data["shots"]] == ["s1", "s2"]
    assert data["substitutions"][0]["team"]["name"] == "Away United"
    assert data["raw"][0]["event_type"] == "match_created"
    assert len(data["raw"]) == 6
    assert data["score"] is None


def test_stats_unknown_view_type(client, live):
    response = client.get("/api/stats", params={"types": "score,possession"})
    assert response.status_code == 400


def test_stats_before_match_known(client, sources, scheduler):
    client.post("/api/stream", json={"endpoint_url": "https://events.example/m/2"})
    sources[-1].emit("shot", {"id": "s1", "result": "GOAL", "teamId": "home-1"})
    scheduler.advance(0.01)

    data = client.get("/api/stats", params={"types": "score,goals"}).json()
    assert data["match"] is None
    assert data["score"] is None
    assert data["goals"] == []


def test_lifespan_connects_default_endpoint(provider, sources, monkeypatch):
    import matchstats.main as main

    monkeypatch.setattr(main, "get_stats_provider", lambda: provider)
    monkeypatch.setattr(main.settings, "default_endpoint_url", "https://events.example/default")

    with TestClient(app):
        assert provider.endpoint_url == "https://events.example/default"
        assert sources[0].started

    assert provider.session is None
    assert sources[0].stopped


def test_lifespan_without_default_endpoint(provider, sources, monkeypatch):
    import matchstats.main as main

    monkeypatch.setattr(main, "get_stats_provider", lambda: provider)
    monkeypatch.setattr(main.settings, "default_endpoint_url", None)

    with TestClient(app):
        assert provider.session is None
    assert sources == []
