"""
tests/test_api.py
──────────────────
Tests for the REST endpoints and the push stream, using Flask's test client.
"""
from collections import deque
from datetime import datetime, timedelta, timezone

import pytest
from flask import Flask

from config.alerts import AlertSeverity
from config.settings import Settings
from src.api.routes import register_api, sample_evenly
from src.data.broadcast import MessageKind
from src.data.models import AlertEvent
from src.services import Services

LONG_INTERVAL_MS = 60_000


@pytest.fixture
def services(store, broadcaster, make_engine):
    settings = Settings()
    settings.SIMULATION_INTERVAL_MS = LONG_INTERVAL_MS
    settings.STREAM_KEEPALIVE_S = 0.05
    engine = make_engine(store, broadcaster)
    return Services(
        settings=settings,
        store=store,
        broadcaster=broadcaster,
        engine=engine,
        live_feed=broadcaster.subscribe(),
        recent_alerts=deque(maxlen=settings.LIVE_FEED_SIZE),
    )


@pytest.fixture
def client(services):
    server = Flask(__name__)
    register_api(server, services)
    return server.test_client()


def _alert(store, system_id):
    return store.create_alert(AlertEvent(
        system_id=system_id,
        parameter="pressure",
        severity=AlertSeverity.MEDIUM,
        message="PRESSURE is above maximum: 3.40 (threshold: 3.00)",
        value=3.4,
        threshold=3.0,
    ))


class TestSampleEvenly:
    def test_short_list_untouched(self):
        assert sample_evenly([1, 2, 3], 5) == [1, 2, 3]

    def test_caps_length(self):
        out = sample_evenly(list(range(100)), 20)
        assert len(out) == 20
        assert out[0] == 0
        assert out[1] == 5


class TestSystemsApi:
    def test_list(self, client, system):
        resp = client.get("/api/systems")
        assert resp.status_code == 200
        body = resp.get_json()
        assert [s["id"] for s in body] == [system.id]
        assert body[0]["isActive"] is True
        assert "createdAt" in body[0]

    def test_get_unknown(self, client):
        resp = client.get("/api/systems/missing")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "System not found"

    def test_create(self, client, store):
        resp = client.post("/api/systems", json={"name": "Unit N", "description": "New"})
        assert resp.status_code == 201
        created = resp.get_json()
        assert store.get_system(created["id"]).name == "Unit N"

    def test_create_invalid(self, client):
        resp = client.post("/api/systems", json={"description": "no name"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid system data"
        assert resp.get_json()["details"]

    def test_deactivate(self, client, store, system):
        resp = client.patch(f"/api/systems/{system.id}", json={"isActive": False})
        assert resp.status_code == 200
        assert resp.get_json()["isActive"] is False
        assert store.get_system(system.id).is_active is False

    def test_patch_unknown(self, client):
        assert client.patch("/api/systems/missing", json={"isActive": False}).status_code == 404

    def test_patch_invalid(self, client, system):
        assert client.patch(f"/api/systems/{system.id}", json={"name": "x"}).status_code == 400


class TestReadingsApi:
    def test_latest_missing(self, client, system):
        assert client.get(f"/api/systems/{system.id}/readings/latest").status_code == 404

    def test_latest_after_tick(self, client, services, system):
        services.engine.start(system.id, LONG_INTERVAL_MS)
        services.engine.tick(system.id)
        resp = client.get(f"/api/systems/{system.id}/readings/latest")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["systemId"] == system.id
        assert {"pH", "hydrogenFlow", "power", "systemStatus", "id"} <= set(body)

    def test_limit(self, client, store, system, make_snapshot):
        now = datetime.now(tz=timezone.utc)
        for i in range(5):
            store.create_sensor_reading(make_snapshot(system_id=system.id, timestamp=now - timedelta(seconds=i)))
        body = client.get(f"/api/systems/{system.id}/readings?limit=3").get_json()
        assert len(body) == 3

    def test_time_range_samples(self, client, store, system, make_snapshot):
        now = datetime.now(tz=timezone.utc)
        for i in range(60):
            store.create_sensor_reading(make_snapshot(system_id=system.id, timestamp=now - timedelta(seconds=30 * i)))
        # Two hours back: outside the 1h window
        store.create_sensor_reading(make_snapshot(system_id=system.id, timestamp=now - timedelta(hours=2)))
        body = client.get(f"/api/systems/{system.id}/readings?timeRange=1h").get_json()
        assert len(body) == 20

    def test_explicit_window(self, client, store, system, make_snapshot):
        base = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        for minutes in range(5):
            store.create_sensor_reading(make_snapshot(system_id=system.id, timestamp=base + timedelta(minutes=minutes)))
        resp = client.get(
            f"/api/systems/{system.id}/readings",
            query_string={"startTime": "2024-06-01T12:01:00", "endTime": "2024-06-01T12:03:00"},
        )
        assert len(resp.get_json()) == 3

    def test_bad_query(self, client, system):
        resp = client.get(f"/api/systems/{system.id}/readings?limit=abc")
        assert resp.status_code == 400

    def test_create_reading(self, client, store, system):
        body = {
            "voltage": 12.4, "current": 84.0, "power": 1041.6, "temperature": 66.0,
            "pressure": 2.2, "pH": 13.9, "hydrogenFlow": 15.0, "oxygenFlow": 7.5,
            "electrolyteFlow": 124.0, "efficiency": 81.0,
        }
        resp = client.post(f"/api/systems/{system.id}/readings", json=body)
        assert resp.status_code == 201
        created = resp.get_json()
        assert created["systemId"] == system.id
        assert created["pH"] == 13.9
        assert created["systemStatus"] == "running"

        stored = store.get_latest_sensor_reading(system.id)
        assert stored.id == created["id"]
        assert stored.hydrogen_flow == 15.0

    def test_create_reading_path_id_wins(self, client, store, system):
        other = store.create_system("Other")
        body = {
            "systemId": other.id, "voltage": 12.0, "current": 80.0, "power": 960.0,
            "temperature": 60.0, "pressure": 2.0, "pH": 14.0, "hydrogenFlow": 14.0,
            "oxygenFlow": 7.0, "electrolyteFlow": 120.0, "efficiency": 80.0,
            "systemStatus": "idle",
        }
        assert client.post(f"/api/systems/{system.id}/readings", json=body).status_code == 201
        assert store.get_latest_sensor_reading(other.id) is None
        assert store.get_latest_sensor_reading(system.id).system_status.value == "idle"

    def test_create_reading_invalid(self, client, store, system):
        resp = client.post(f"/api/systems/{system.id}/readings", json={"voltage": -1})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "Invalid reading data"
        assert body["details"]
        assert store.get_latest_sensor_reading(system.id) is None

    def test_create_reading_unknown_system(self, client):
        assert client.post("/api/systems/missing/readings", json={"voltage": 12.0}).status_code == 404


class TestThresholdsApi:
    def test_create_and_list(self, client, system):
        resp = client.post(
            f"/api/systems/{system.id}/thresholds",
            json={"parameter": "temperature", "minValue": 45, "maxValue": 85},
        )
        assert resp.status_code == 201
        created = resp.get_json()
        assert created["maxValue"] == 85
        assert created["isEnabled"] is True

        listed = client.get(f"/api/systems/{system.id}/thresholds").get_json()
        assert [t["id"] for t in listed] == [created["id"]]

    def test_unknown_system(self, client):
        resp = client.post("/api/systems/missing/thresholds", json={"parameter": "voltage"})
        assert resp.status_code == 404

    def test_unexpected_field(self, client, system):
        resp = client.post(
            f"/api/systems/{system.id}/thresholds",
            json={"parameter": "voltage", "severity": "high"},
        )
        assert resp.status_code == 400

    def test_update(self, client, store, system):
        created = client.post(
            f"/api/systems/{system.id}/thresholds",
            json={"parameter": "pressure", "minValue": 1.5, "maxValue": 3.0},
        ).get_json()
        resp = client.patch(f"/api/thresholds/{created['id']}", json={"maxValue": 3.5, "isEnabled": False})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["maxValue"] == 3.5
        assert body["minValue"] == 1.5
        assert body["isEnabled"] is False
        assert store.get_alert_threshold(created["id"]).max_value == 3.5

    def test_update_unknown(self, client):
        assert client.patch("/api/thresholds/9999", json={"maxValue": 1.0}).status_code == 404

    def test_update_rejects_parameter_change(self, client, system):
        created = client.post(f"/api/systems/{system.id}/thresholds", json={"parameter": "voltage"}).get_json()
        assert client.patch(f"/api/thresholds/{created['id']}", json={"parameter": "pH"}).status_code == 400


class TestAlertsApi:
    def test_list_active(self, client, store, system):
        alert = _alert(store, system.id)
        other = store.create_system("Other")
        _alert(store, other.id)

        assert len(client.get("/api/alerts").get_json()) == 2
        body = client.get(f"/api/alerts?systemId={system.id}").get_json()
        assert [a["id"] for a in body] == [alert.id]
        assert body[0]["severity"] == "medium"

    def test_resolve(self, client, store, system):
        alert = _alert(store, system.id)
        assert client.post(f"/api/alerts/{alert.id}/resolve").get_json() == {"success": True}
        assert client.post(f"/api/alerts/{alert.id}/resolve").get_json() == {"success": False}
        assert client.get("/api/alerts").get_json() == []

    def test_resolve_unknown(self, client):
        assert client.post("/api/alerts/missing/resolve").status_code == 404


class TestSimulationApi:
    def test_start_status_stop(self, client, services, system):
        resp = client.post(f"/api/simulation/{system.id}/start", json={"intervalMs": LONG_INTERVAL_MS})
        assert resp.get_json() == {"systemId": system.id, "running": True}

        status = client.get(f"/api/simulation/{system.id}").get_json()
        assert status["running"] is True
        assert status["cyclePosition"] == 0
        assert status["intervalMs"] == LONG_INTERVAL_MS
        assert status["latest"]["systemId"] == system.id

        resp = client.post(f"/api/simulation/{system.id}/stop")
        assert resp.get_json()["running"] is False
        assert not services.engine.is_running(system.id)

    def test_start_unknown_system(self, client):
        assert client.post("/api/simulation/missing/start").status_code == 404

    def test_start_invalid_interval(self, client, system):
        resp = client.post(f"/api/simulation/{system.id}/start", json={"intervalMs": 0})
        assert resp.status_code == 400

    def test_status_when_stopped(self, client, system):
        status = client.get(f"/api/simulation/{system.id}").get_json()
        assert status["running"] is False
        assert status["latest"] is None


class TestStream:
    def test_connection_message_first(self, client):
        resp = client.get("/api/stream")
        try:
            assert resp.mimetype == "text/event-stream"
            first = next(iter(resp.response))
            assert b"event: connection" in first
            assert b'"type":"connection"' in first
        finally:
            resp.close()

    def test_unstarted_stream_holds_no_subscription(self, client, services):
        before = services.broadcaster.subscriber_count
        resp = client.get("/api/stream")
        assert services.broadcaster.subscriber_count == before
        resp.close()
        assert services.broadcaster.subscriber_count == before

    def test_subscription_released_on_close(self, client, services):
        before = services.broadcaster.subscriber_count
        resp = client.get("/api/stream")
        next(iter(resp.response))
        assert services.broadcaster.subscriber_count == before + 1
        resp.close()
        assert services.broadcaster.subscriber_count == before


class TestLiveFeed:
    def test_poll_collects_alerts_newest_first(self, services):
        services.broadcaster.publish(MessageKind.SENSOR_DATA, {"systemId": "s"})
        services.broadcaster.publish(MessageKind.ALERT, {"message": "first"})
        services.broadcaster.publish(MessageKind.ALERT, {"message": "second"})
        assert [a["message"] for a in services.poll_live_alerts()] == ["second", "first"]
        # Buffer persists across polls
        assert len(services.poll_live_alerts()) == 2
