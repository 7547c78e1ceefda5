"""Tests for the HTTP API, with the controller's collaborators stubbed out."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from fakes import MARCH_SNAPSHOT, MemoryStore, march_conditions
from pollen_nav.main import create_app
from pollen_nav.services.dashboard import DashboardController, get_controller
from pollen_nav.services.errors import WeatherUnavailableError


def _clock():
    return datetime(2026, 3, 10, 9, 0, tzinfo=ZoneInfo("Asia/Tokyo"))


async def _fetch_ok(lat, lon):
    return march_conditions()


async def _fetch_fail(lat, lon):
    raise WeatherUnavailableError()


async def _city_ok(lat, lon):
    return MARCH_SNAPSHOT


def _client(fetch=_fetch_ok, fetch_city=_city_ok, store=None):
    controller = DashboardController(
        store or MemoryStore(),
        fetch_conditions=fetch,
        fetch_city=fetch_city,
        clock=_clock,
        default_location="tokyo",
    )
    controller.start()
    app = create_app()
    app.dependency_overrides[get_controller] = lambda: controller
    # No context manager: the lifespan (real DB, background fetch) is not run
    return TestClient(app)


@pytest.fixture
def client():
    return _client()


class TestRisk:
    def test_get_risk(self, client):
        resp = client.get("/api/risk")
        assert resp.status_code == 200
        data = resp.json()
        assert data["location"]["id"] == "tokyo"
        assert data["today"]["score"] == 76
        assert data["today"]["level"] == "very_high"
        assert data["tip"]
        assert [d["score"] for d in data["forecast"]] == [76, 60, 31]
        assert data["weather"]["pm25"] == 15
        assert data["pollen_types"][0]["id"] == "cedar"

    def test_upstream_failure_is_502(self):
        resp = _client(fetch=_fetch_fail).get("/api/risk")
        assert resp.status_code == 502
        assert "weather" in resp.json()["detail"].lower()

    def test_pollen_types(self, client):
        data = client.get("/api/risk/pollen-types").json()
        scores = [p["score"] for p in data]
        assert scores == sorted(scores, reverse=True)
        assert data[0]["season_months"] == [2, 3, 4]


class TestLocations:
    def test_list(self, client):
        data = client.get("/api/locations").json()
        assert data["selected"] == "tokyo"
        assert len(data["options"]) == 5

    def test_select(self, client):
        resp = client.put("/api/locations/selected", json={"id": "osaka"})
        assert resp.status_code == 200
        assert resp.json()["location"]["id"] == "osaka"

    def test_select_unknown(self, client):
        resp = client.put("/api/locations/selected", json={"id": "atlantis"})
        assert resp.status_code == 404

    def test_current_position(self, client):
        resp = client.post("/api/locations/current", json={"lat": 35.0, "lon": 135.0})
        assert resp.status_code == 200
        assert resp.json()["location"]["id"] == "current-location"
        options = client.get("/api/locations").json()["options"]
        assert options[0]["id"] == "current-location"

    def test_current_position_out_of_range(self, client):
        resp = client.post("/api/locations/current", json={"lat": 135.0, "lon": 35.0})
        assert resp.status_code == 422


class TestMap:
    def test_partial(self):
        async def fetch_city(lat, lon):
            if lat > 40:
                raise WeatherUnavailableError()
            return MARCH_SNAPSHOT

        data = _client(fetch_city=fetch_city).get("/api/map").json()
        assert data["failed"] == ["sapporo"]
        assert data["warning"]
        assert all(c["id"] != "sapporo" for c in data["cities"])

    def test_total_failure(self):
        async def fetch_city(lat, lon):
            raise WeatherUnavailableError()

        resp = _client(fetch_city=fetch_city).get("/api/map")
        assert resp.status_code == 502


class TestLogs:
    def test_submit_and_list(self):
        store = MemoryStore()
        client = _client(store=store)
        resp = client.post("/api/logs", json={"severity": 6, "took_medicine": True, "memo": "eyes"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["logs"][0]["date"] == "2026-03-10"
        assert data["weekly_average"] == 6.0
        assert data["trend"] is None
        assert len(store.logs) == 1

    @pytest.mark.parametrize("severity", [-1, 11])
    def test_severity_validated(self, client, severity):
        resp = client.post("/api/logs", json={"severity": severity})
        assert resp.status_code == 422


class TestActions:
    def test_toggle(self, client):
        data = client.post("/api/actions/mask/toggle").json()
        assert data["completion_rate"] == 20
        assert next(i for i in data["items"] if i["key"] == "mask")["done"] is True

    def test_unknown(self, client):
        assert client.post("/api/actions/yoga/toggle").status_code == 404

    def test_list(self, client):
        data = client.get("/api/actions").json()
        assert len(data["items"]) == 5
        assert data["completion_rate"] == 0


class TestStatus:
    def test_status(self, client):
        data = client.get("/api/status").json()
        assert data["today"] == "2026-03-10"
        assert data["reference_timezone"] == "Asia/Tokyo"
        assert data["has_conditions"] is False
