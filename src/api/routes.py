"""
src/api/routes.py
─────────────────
REST endpoints and the Server-Sent Events push stream, mounted on the
Dash app's Flask server under /api.
"""
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from flask import Blueprint, Flask, Response, jsonify, request, stream_with_context
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from src.data.broadcast import MessageKind, encode_message, make_message
from src.data.models import AlertThreshold, SensorSnapshot, SystemStatus
from src.services import Services

logger = logging.getLogger(__name__)

# timeRange → (window, points returned)
TIME_RANGES: dict[str, tuple[timedelta, int]] = {
    "1h": (timedelta(hours=1), 20),
    "6h": (timedelta(hours=6), 50),
    "24h": (timedelta(hours=24), 100),
    "7d": (timedelta(days=7), 150),
}

DEFAULT_READINGS_LIMIT = 100


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class SystemIn(_Body):
    name: str = Field(min_length=1)
    description: str | None = None
    is_active: bool = True


class SystemPatchIn(_Body):
    is_active: bool


class SensorReadingIn(_Body):
    """Externally pushed telemetry; the system id comes from the URL."""
    voltage: float = Field(ge=0.0)
    current: float = Field(ge=0.0)
    power: float = Field(ge=0.0)
    temperature: float = Field(ge=0.0)
    pressure: float = Field(ge=0.0)
    ph: float = Field(ge=0.0, le=14.0, alias="pH")
    hydrogen_flow: float = Field(ge=0.0)
    oxygen_flow: float = Field(ge=0.0)
    electrolyte_flow: float = Field(ge=0.0)
    efficiency: float = Field(ge=0.0)
    system_status: SystemStatus = SystemStatus.RUNNING


class ThresholdIn(_Body):
    parameter: str = Field(min_length=1)
    min_value: float | None = None
    max_value: float | None = None
    is_enabled: bool = True


class ThresholdPatchIn(_Body):
    min_value: float | None = None
    max_value: float | None = None
    is_enabled: bool = True


class SimulationStartIn(_Body):
    interval_ms: int | None = Field(default=None, gt=0)


def sample_evenly(items: list[Any], limit: int) -> list[Any]:
    """Keep every n-th item so at most ``limit`` remain."""
    if limit <= 0 or len(items) <= limit:
        return items
    step = len(items) // limit
    return items[::step][:limit]


def _error(message: str, status: int, **extra: Any) -> tuple[Response, int]:
    return jsonify({"error": message, **extra}), status


def _validation_error(message: str, exc: ValidationError) -> tuple[Response, int]:
    return _error(message, 400, details=exc.errors(include_url=False, include_context=False))


def _parse_time(raw: str) -> datetime:
    ts = datetime.fromisoformat(raw)
    return ts.astimezone(UTC) if ts.tzinfo is not None else ts.replace(tzinfo=UTC)


def _sse(message: dict[str, Any]) -> str:
    return f"event: {message['type']}\ndata: {encode_message(message)}\n\n"


def create_api_blueprint(services: Services) -> Blueprint:
    bp = Blueprint("api", __name__, url_prefix="/api")
    store = services.store
    engine = services.engine

    # ── Systems ───────────────────────────────────────────────────────────────

    @bp.get("/systems")
    def list_systems():
        return jsonify([s.to_payload() for s in store.get_all_systems()])

    @bp.get("/systems/<system_id>")
    def get_system(system_id: str):
        system = store.get_system(system_id)
        if system is None:
            return _error("System not found", 404)
        return jsonify(system.to_payload())

    @bp.post("/systems")
    def create_system():
        try:
            body = SystemIn.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            return _validation_error("Invalid system data", exc)
        system = store.create_system(body.name, body.description, body.is_active)
        return jsonify(system.to_payload()), 201

    @bp.patch("/systems/<system_id>")
    def update_system(system_id: str):
        try:
            body = SystemPatchIn.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            return _validation_error("Invalid system data", exc)
        if not store.update_system_status(system_id, body.is_active):
            return _error("System not found", 404)
        return jsonify(store.get_system(system_id).to_payload())

    # ── Readings ──────────────────────────────────────────────────────────────

    @bp.get("/systems/<system_id>/readings/latest")
    def latest_reading(system_id: str):
        reading = store.get_latest_sensor_reading(system_id)
        if reading is None:
            return _error("No readings found for system", 404)
        return jsonify(reading.to_payload())

    @bp.get("/systems/<system_id>/readings")
    def list_readings(system_id: str):
        args = request.args
        try:
            limit = int(args.get("limit", DEFAULT_READINGS_LIMIT))
            time_range = args.get("timeRange")
            if time_range:
                window, limit = TIME_RANGES.get(time_range, TIME_RANGES["1h"])
                end = datetime.now(tz=UTC)
                start = end - window
                fetch_limit = 10_000
            else:
                start = _parse_time(args["startTime"]) if "startTime" in args else None
                end = _parse_time(args["endTime"]) if "endTime" in args else None
                fetch_limit = limit
        except ValueError:
            return _error("Invalid query parameters", 400)

        readings = store.get_sensor_readings(system_id, start, end, fetch_limit)
        return jsonify([r.to_payload() for r in sample_evenly(readings, limit)])

    @bp.post("/systems/<system_id>/readings")
    def create_reading(system_id: str):
        if store.get_system(system_id) is None:
            return _error("System not found", 404)
        data = request.get_json(silent=True) or {}
        if isinstance(data, dict):
            data.pop("systemId", None)
        try:
            body = SensorReadingIn.model_validate(data)
        except ValidationError as exc:
            return _validation_error("Invalid reading data", exc)
        snapshot = SensorSnapshot(system_id=system_id, timestamp=datetime.now(tz=UTC), **body.model_dump())
        reading = store.create_sensor_reading(snapshot)
        return jsonify(reading.to_payload()), 201

    # ── Thresholds ────────────────────────────────────────────────────────────

    @bp.get("/systems/<system_id>/thresholds")
    def list_thresholds(system_id: str):
        return jsonify([t.to_payload() for t in store.get_alert_thresholds(system_id)])

    @bp.post("/systems/<system_id>/thresholds")
    def create_threshold(system_id: str):
        if store.get_system(system_id) is None:
            return _error("System not found", 404)
        try:
            body = ThresholdIn.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            return _validation_error("Invalid threshold data", exc)
        threshold = store.create_alert_threshold(AlertThreshold(system_id=system_id, **body.model_dump()))
        return jsonify(threshold.to_payload()), 201

    @bp.patch("/thresholds/<int:threshold_id>")
    def update_threshold(threshold_id: int):
        try:
            body = ThresholdPatchIn.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            return _validation_error("Invalid threshold data", exc)
        if not store.update_alert_threshold(threshold_id, **body.model_dump(exclude_unset=True)):
            return _error("Threshold not found", 404)
        return jsonify(store.get_alert_threshold(threshold_id).to_payload())

    # ── Alerts ────────────────────────────────────────────────────────────────

    @bp.get("/alerts")
    def list_alerts():
        alerts = store.get_active_alerts(request.args.get("systemId"))
        return jsonify([a.to_payload() for a in alerts])

    @bp.post("/alerts/<alert_id>/resolve")
    def resolve_alert(alert_id: str):
        if store.get_alert(alert_id) is None:
            return _error("Alert not found", 404)
        return jsonify({"success": store.resolve_alert(alert_id)})

    # ── Simulation control ────────────────────────────────────────────────────

    @bp.get("/simulation/<system_id>")
    def simulation_status(system_id: str):
        reading = engine.get_latest_reading(system_id)
        return jsonify({
            "systemId": system_id,
            "running": engine.is_running(system_id),
            "cyclePosition": engine.cycle_position(system_id),
            "intervalMs": engine.interval_ms(system_id),
            "latest": reading.to_payload() if reading else None,
        })

    @bp.post("/simulation/<system_id>/start")
    def start_simulation(system_id: str):
        if store.get_system(system_id) is None:
            return _error("System not found", 404)
        try:
            body = SimulationStartIn.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            return _validation_error("Invalid simulation settings", exc)
        engine.start(system_id, body.interval_ms or services.settings.SIMULATION_INTERVAL_MS)
        return jsonify({"systemId": system_id, "running": True})

    @bp.post("/simulation/<system_id>/stop")
    def stop_simulation(system_id: str):
        engine.stop(system_id)
        return jsonify({"systemId": system_id, "running": False})

    # ── Push stream ───────────────────────────────────────────────────────────

    @bp.get("/stream")
    def stream():
        system_filter = request.args.get("systemId")
        keepalive = services.settings.STREAM_KEEPALIVE_S

        def events():
            # Subscribed on first pull so an unstarted stream holds no subscription
            sub = services.broadcaster.subscribe()
            try:
                yield _sse(make_message(
                    MessageKind.CONNECTION,
                    {"message": "Connected to electrolyzer monitor stream", "systemId": system_filter},
                ))
                while True:
                    message = sub.get(timeout=keepalive)
                    if message is None:
                        if sub.closed:
                            return
                        yield ": keepalive\n\n"
                        continue
                    if system_filter and message["data"].get("systemId") != system_filter:
                        continue
                    yield _sse(message)
            finally:
                services.broadcaster.unsubscribe(sub)

        return Response(
            stream_with_context(events()),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    return bp


def register_api(server: Flask, services: Services) -> None:
    server.register_blueprint(create_api_blueprint(services))
    logger.info("REST API mounted at /api")
