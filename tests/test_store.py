"""
tests/test_store.py
────────────────────
Tests for the SQLite data store.
"""
import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from config.alerts import AlertSeverity
from src.data.models import AlertEvent, AlertThreshold, SystemStatus


def _event(system_id, severity=AlertSeverity.HIGH, parameter="temperature"):
    return AlertEvent(
        system_id=system_id,
        parameter=parameter,
        severity=severity,
        message=f"{parameter.upper()} is above maximum: 110.00 (threshold: 85.00)",
        value=110.0,
        threshold=85.0,
    )


class TestSystems:
    def test_create_and_get(self, store):
        created = store.create_system("Unit A", "Primary")
        fetched = store.get_system(created.id)
        assert fetched == created
        assert fetched.is_active is True

    def test_unknown_system(self, store):
        assert store.get_system("missing") is None

    def test_list_sorted_by_name(self, store):
        store.create_system("Zeta")
        store.create_system("Alpha")
        assert [s.name for s in store.get_all_systems()] == ["Alpha", "Zeta"]

    def test_update_status(self, store, system):
        assert store.update_system_status(system.id, False) is True
        assert store.get_system(system.id).is_active is False

    def test_update_status_unknown(self, store):
        assert store.update_system_status("missing", False) is False


class TestSensorReadings:
    def test_round_trip_keeps_timestamp(self, store, system, make_snapshot, now):
        snap = make_snapshot(system_id=system.id, system_status=SystemStatus.FAULT)
        saved = store.create_sensor_reading(snap)
        assert saved.id > 0
        assert saved.timestamp == now

        latest = store.get_latest_sensor_reading(system.id)
        assert latest.id == saved.id
        assert latest.timestamp == now
        assert latest.ph == 14.0
        assert latest.system_status == SystemStatus.FAULT

    def test_unknown_system_rejected(self, store, make_snapshot):
        with pytest.raises(sqlite3.IntegrityError):
            store.create_sensor_reading(make_snapshot(system_id="missing"))

    def test_no_readings(self, store, system):
        assert store.get_latest_sensor_reading(system.id) is None
        assert store.get_sensor_readings(system.id) == []

    def test_newest_first_with_range(self, store, system, make_snapshot, now):
        for minutes in range(5):
            store.create_sensor_reading(
                make_snapshot(system_id=system.id, timestamp=now + timedelta(minutes=minutes), voltage=10.0 + minutes)
            )
        readings = store.get_sensor_readings(system.id)
        assert [r.voltage for r in readings] == [14.0, 13.0, 12.0, 11.0, 10.0]

        window = store.get_sensor_readings(
            system.id, start=now + timedelta(minutes=1), end=now + timedelta(minutes=3)
        )
        assert [r.voltage for r in window] == [13.0, 12.0, 11.0]

        assert len(store.get_sensor_readings(system.id, limit=2)) == 2

    def test_readings_frame_oldest_first(self, store, system, make_snapshot):
        base = datetime.now(tz=timezone.utc)
        for minutes in (30, 10, 20, 120):
            store.create_sensor_reading(
                make_snapshot(system_id=system.id, timestamp=base - timedelta(minutes=minutes))
            )
        df = store.readings_frame(system.id, hours=1)
        assert len(df) == 3
        assert df["timestamp"].is_monotonic_increasing
        assert {"voltage", "ph", "hydrogen_flow", "system_status"} <= set(df.columns)

    def test_readings_frame_empty(self, store, system):
        assert store.readings_frame(system.id).empty


class TestThresholds:
    def test_create_and_list(self, store, system):
        t = store.create_alert_threshold(
            AlertThreshold(system_id=system.id, parameter="efficiency", min_value=70.0)
        )
        assert t.id is not None
        rows = store.get_alert_thresholds(system.id)
        assert rows == [t]
        assert rows[0].max_value is None

    def test_update(self, store, system):
        t = store.create_alert_threshold(
            AlertThreshold(system_id=system.id, parameter="voltage", min_value=10.0, max_value=15.0)
        )
        assert store.update_alert_threshold(t.id, max_value=14.0, is_enabled=False) is True
        updated = store.get_alert_threshold(t.id)
        assert updated.max_value == 14.0
        assert updated.is_enabled is False
        assert updated.min_value == 10.0

    def test_update_unknown_field(self, store, system):
        t = store.create_alert_threshold(AlertThreshold(system_id=system.id, parameter="voltage"))
        with pytest.raises(ValueError):
            store.update_alert_threshold(t.id, system_id="other")

    def test_update_missing(self, store):
        assert store.update_alert_threshold(9999, max_value=1.0) is False
        assert store.update_alert_threshold(9999) is False
        assert store.get_alert_threshold(9999) is None


class TestAlerts:
    def test_create_is_active(self, store, system):
        alert = store.create_alert(_event(system.id))
        assert alert.is_active is True
        assert alert.resolved_at is None
        assert store.get_alert(alert.id) == alert

    def test_active_listing(self, store, system):
        other = store.create_system("Other")
        store.create_alert(_event(system.id))
        store.create_alert(_event(other.id))
        assert len(store.get_active_alerts()) == 2
        assert [a.system_id for a in store.get_active_alerts(system.id)] == [system.id]

    def test_resolve(self, store, system):
        alert = store.create_alert(_event(system.id))
        assert store.resolve_alert(alert.id) is True
        resolved = store.get_alert(alert.id)
        assert resolved.is_active is False
        assert resolved.resolved_at is not None
        assert store.get_active_alerts(system.id) == []

    def test_resolve_twice(self, store, system):
        alert = store.create_alert(_event(system.id))
        store.resolve_alert(alert.id)
        assert store.resolve_alert(alert.id) is False
        assert store.resolve_alert("missing") is False

    def test_count_active(self, store, system):
        store.create_alert(_event(system.id, AlertSeverity.CRITICAL))
        store.create_alert(_event(system.id, AlertSeverity.LOW))
        done = store.create_alert(_event(system.id, AlertSeverity.CRITICAL))
        store.resolve_alert(done.id)
        assert store.count_active_alerts() == 2
        assert store.count_active_alerts(system.id, severity="critical") == 1

    def test_alerts_frame_filters(self, store, system):
        store.create_alert(_event(system.id, AlertSeverity.CRITICAL))
        low = store.create_alert(_event(system.id, AlertSeverity.LOW, parameter="pressure"))
        store.resolve_alert(low.id)

        assert len(store.alerts_frame(system.id)) == 2
        assert len(store.alerts_frame(system.id, active_only=True)) == 1
        df = store.alerts_frame(severity="low")
        assert list(df["parameter"]) == ["pressure"]
        assert df["is_active"].iloc[0] == 0
