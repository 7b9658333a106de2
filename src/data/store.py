"""
src/data/store.py
─────────────────
SQLite data store.

Provides:
  - systems           : create / get / list / activate
  - sensor readings   : insert, latest, time-range queries, DataFrame export
  - alert thresholds  : per-system CRUD
  - alerts            : insert, active listing, resolve

Thread safety: uses check_same_thread=False + a per-store lock. Foreign keys
are enforced, so readings, thresholds and alerts must reference an existing
system.
"""
from __future__ import annotations

import sqlite3
import threading
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import pandas as pd

from src.data.models import (
    Alert,
    AlertEvent,
    AlertThreshold,
    MonitoredSystem,
    SensorReading,
    SensorSnapshot,
)

# ── Schema ────────────────────────────────────────────────────────────────────

_CREATE_SYSTEMS = """
CREATE TABLE IF NOT EXISTS systems (
    id           TEXT PRIMARY KEY,
    name         TEXT NOT NULL,
    description  TEXT,
    is_active    INTEGER NOT NULL DEFAULT 1,
    created_at   TEXT NOT NULL
);
"""

_CREATE_READINGS = """
CREATE TABLE IF NOT EXISTS sensor_readings (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    system_id         TEXT NOT NULL REFERENCES systems (id),
    timestamp         TEXT NOT NULL,
    voltage           REAL NOT NULL,
    current           REAL NOT NULL,
    power             REAL NOT NULL,
    temperature       REAL NOT NULL,
    pressure          REAL NOT NULL,
    ph                REAL NOT NULL,
    hydrogen_flow     REAL NOT NULL,
    oxygen_flow       REAL NOT NULL,
    electrolyte_flow  REAL NOT NULL,
    efficiency        REAL NOT NULL,
    system_status     TEXT NOT NULL DEFAULT 'running'
);
"""

_CREATE_THRESHOLDS = """
CREATE TABLE IF NOT EXISTS alert_thresholds (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    system_id   TEXT NOT NULL REFERENCES systems (id),
    parameter   TEXT NOT NULL,
    min_value   REAL,
    max_value   REAL,
    is_enabled  INTEGER NOT NULL DEFAULT 1
);
"""

_CREATE_ALERTS = """
CREATE TABLE IF NOT EXISTS alerts (
    id           TEXT PRIMARY KEY,
    system_id    TEXT NOT NULL REFERENCES systems (id),
    parameter    TEXT NOT NULL,
    severity     TEXT NOT NULL,
    message      TEXT NOT NULL,
    value        REAL NOT NULL,
    threshold    REAL NOT NULL,
    is_active    INTEGER NOT NULL DEFAULT 1,
    created_at   TEXT NOT NULL,
    resolved_at  TEXT
);
"""

_CREATE_IDX = """
CREATE INDEX IF NOT EXISTS idx_readings_sys_ts ON sensor_readings (system_id, timestamp);
CREATE INDEX IF NOT EXISTS idx_alerts_sys_ts   ON alerts          (system_id, created_at);
"""

_READING_COLUMNS = (
    "system_id", "timestamp", "voltage", "current", "power", "temperature",
    "pressure", "ph", "hydrogen_flow", "oxygen_flow", "electrolyte_flow",
    "efficiency", "system_status",
)

_THRESHOLD_FIELDS = ("parameter", "min_value", "max_value", "is_enabled")


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _row_to_system(row: sqlite3.Row) -> MonitoredSystem:
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    return MonitoredSystem.model_validate(data)


def _row_to_threshold(row: sqlite3.Row) -> AlertThreshold:
    data = dict(row)
    data["is_enabled"] = bool(data["is_enabled"])
    return AlertThreshold.model_validate(data)


def _row_to_alert(row: sqlite3.Row) -> Alert:
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    return Alert.model_validate(data)


class SQLiteStore:
    """Persistence for systems, readings, thresholds and alerts."""

    def __init__(self, database_url: str) -> None:
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(database_url, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        with self._conn:
            self._conn.executescript(_CREATE_SYSTEMS + _CREATE_READINGS + _CREATE_THRESHOLDS + _CREATE_ALERTS + _CREATE_IDX)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ── Systems ───────────────────────────────────────────────────────────────

    def create_system(self, name: str, description: str | None = None, is_active: bool = True) -> MonitoredSystem:
        system = MonitoredSystem(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            is_active=is_active,
            created_at=_now(),
        )
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO systems (id, name, description, is_active, created_at) VALUES (?,?,?,?,?)",
                (system.id, system.name, system.description, int(system.is_active), system.created_at.isoformat()),
            )
        return system

    def get_system(self, system_id: str) -> MonitoredSystem | None:
        with self._lock:
            row = self._conn.execute("SELECT * FROM systems WHERE id = ?", (system_id,)).fetchone()
        return _row_to_system(row) if row else None

    def get_all_systems(self) -> list[MonitoredSystem]:
        with self._lock:
            rows = self._conn.execute("SELECT * FROM systems ORDER BY name").fetchall()
        return [_row_to_system(r) for r in rows]

    def update_system_status(self, system_id: str, is_active: bool) -> bool:
        """Returns False when no such system exists."""
        with self._lock, self._conn:
            cur = self._conn.execute("UPDATE systems SET is_active = ? WHERE id = ?", (int(is_active), system_id))
        return cur.rowcount > 0

    # ── Sensor readings ───────────────────────────────────────────────────────

    def create_sensor_reading(self, snapshot: SensorSnapshot) -> SensorReading:
        """Persist a snapshot; the store assigns the row id."""
        data = snapshot.model_dump()
        values = [data[c] for c in _READING_COLUMNS]
        values[1] = snapshot.timestamp.isoformat()
        values[-1] = snapshot.system_status.value
        with self._lock, self._conn:
            cur = self._conn.execute(
                f"INSERT INTO sensor_readings ({', '.join(_READING_COLUMNS)}) "
                f"VALUES ({', '.join('?' * len(_READING_COLUMNS))})",
                values,
            )
        return SensorReading(id=cur.lastrowid, **data)

    def get_latest_sensor_reading(self, system_id: str) -> SensorReading | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM sensor_readings WHERE system_id = ? ORDER BY timestamp DESC, id DESC LIMIT 1",
                (system_id,),
            ).fetchone()
        return SensorReading.model_validate(dict(row)) if row else None

    def get_sensor_readings(
        self,
        system_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 1000,
    ) -> list[SensorReading]:
        """Readings for a system, newest first."""
        where = ["system_id = ?"]
        params: list[Any] = [system_id]
        if start is not None:
            where.append("timestamp >= ?")
            params.append(start.isoformat())
        if end is not None:
            where.append("timestamp <= ?")
            params.append(end.isoformat())
        params.append(limit)

        with self._lock:
            rows = self._conn.execute(
                f"SELECT * FROM sensor_readings WHERE {' AND '.join(where)} "
                "ORDER BY timestamp DESC, id DESC LIMIT ?",
                params,
            ).fetchall()
        return [SensorReading.model_validate(dict(r)) for r in rows]

    def readings_frame(self, system_id: str, hours: float = 1.0, limit: int = 10_000) -> pd.DataFrame:
        """Readings for the last ``hours`` hours as a DataFrame, oldest first."""
        since = (_now() - timedelta(hours=hours)).isoformat()
        with self._lock:
            df = pd.read_sql_query(
                """SELECT * FROM (
                       SELECT * FROM sensor_readings
                       WHERE system_id = ? AND timestamp >= ?
                       ORDER BY timestamp DESC LIMIT ?
                   ) ORDER BY timestamp ASC""",
                self._conn,
                params=(system_id, since, limit),
            )
        if not df.empty:
            df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
        return df

    # ── Alert thresholds ──────────────────────────────────────────────────────

    def get_alert_thresholds(self, system_id: str) -> list[AlertThreshold]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM alert_thresholds WHERE system_id = ? ORDER BY id", (system_id,)
            ).fetchall()
        return [_row_to_threshold(r) for r in rows]

    def create_alert_threshold(self, threshold: AlertThreshold) -> AlertThreshold:
        with self._lock, self._conn:
            cur = self._conn.execute(
                """INSERT INTO alert_thresholds (system_id, parameter, min_value, max_value, is_enabled)
                   VALUES (?,?,?,?,?)""",
                (
                    threshold.system_id,
                    threshold.parameter,
                    threshold.min_value,
                    threshold.max_value,
                    int(threshold.is_enabled),
                ),
            )
        return threshold.model_copy(update={"id": cur.lastrowid})

    def get_alert_threshold(self, threshold_id: int) -> AlertThreshold | None:
        with self._lock:
            row = self._conn.execute("SELECT * FROM alert_thresholds WHERE id = ?", (threshold_id,)).fetchone()
        return _row_to_threshold(row) if row else None

    def update_alert_threshold(self, threshold_id: int, **fields: Any) -> bool:
        """Update the given columns. Returns False when no such threshold exists."""
        unknown = set(fields) - set(_THRESHOLD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown threshold fields: {sorted(unknown)}")
        if not fields:
            return self.get_alert_threshold(threshold_id) is not None
        if "is_enabled" in fields:
            fields["is_enabled"] = int(bool(fields["is_enabled"]))
        assignments = ", ".join(f"{k} = ?" for k in fields)
        with self._lock, self._conn:
            cur = self._conn.execute(
                f"UPDATE alert_thresholds SET {assignments} WHERE id = ?",
                [*fields.values(), threshold_id],
            )
        return cur.rowcount > 0

    # ── Alerts ────────────────────────────────────────────────────────────────

    def create_alert(self, event: AlertEvent) -> Alert:
        """Persist an alert event as a new active alert."""
        alert = Alert(id=str(uuid.uuid4()), created_at=_now(), **event.model_dump())
        with self._lock, self._conn:
            self._conn.execute(
                """INSERT INTO alerts
                   (id, system_id, parameter, severity, message, value, threshold, is_active, created_at)
                   VALUES (?,?,?,?,?,?,?,?,?)""",
                (
                    alert.id,
                    alert.system_id,
                    alert.parameter,
                    alert.severity.value,
                    alert.message,
                    alert.value,
                    alert.threshold,
                    int(alert.is_active),
                    alert.created_at.isoformat(),
                ),
            )
        return alert

    def get_alert(self, alert_id: str) -> Alert | None:
        with self._lock:
            row = self._conn.execute("SELECT * FROM alerts WHERE id = ?", (alert_id,)).fetchone()
        return _row_to_alert(row) if row else None

    def get_active_alerts(self, system_id: str | None = None, limit: int = 500) -> list[Alert]:
        """Active alerts, newest first."""
        where = "is_active = 1"
        params: list[Any] = []
        if system_id:
            where += " AND system_id = ?"
            params.append(system_id)
        params.append(limit)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT * FROM alerts WHERE {where} ORDER BY created_at DESC LIMIT ?", params
            ).fetchall()
        return [_row_to_alert(r) for r in rows]

    def alerts_frame(
        self,
        system_id: str | None = None,
        severity: str | None = None,
        active_only: bool = False,
        days: int = 7,
        limit: int = 500,
    ) -> pd.DataFrame:
        """Fetch alerts with optional filters as a DataFrame."""
        since = (_now() - timedelta(days=days)).isoformat()
        where = ["created_at >= ?"]
        params: list[Any] = [since]

        if system_id:
            where.append("system_id = ?")
            params.append(system_id)
        if severity:
            where.append("severity = ?")
            params.append(severity)
        if active_only:
            where.append("is_active = 1")

        sql = f"""SELECT * FROM alerts WHERE {' AND '.join(where)}
                  ORDER BY created_at DESC LIMIT ?"""
        params.append(limit)

        with self._lock:
            df = pd.read_sql_query(sql, self._conn, params=params)
        if not df.empty:
            df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
        return df

    def resolve_alert(self, alert_id: str) -> bool:
        """Mark an active alert resolved. Returns False if nothing changed."""
        with self._lock, self._conn:
            cur = self._conn.execute(
                "UPDATE alerts SET is_active = 0, resolved_at = ? WHERE id = ? AND is_active = 1",
                (_now().isoformat(), alert_id),
            )
        return cur.rowcount > 0

    def count_active_alerts(self, system_id: str | None = None, severity: str | None = None) -> int:
        where = "is_active = 1"
        params: list[Any] = []
        if system_id:
            where += " AND system_id = ?"
            params.append(system_id)
        if severity:
            where += " AND severity = ?"
            params.append(severity)
        with self._lock:
            return self._conn.execute(f"SELECT COUNT(*) FROM alerts WHERE {where}", params).fetchone()[0]
