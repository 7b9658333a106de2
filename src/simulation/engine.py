"""
src/simulation/engine.py
────────────────────────
Simulation lifecycle manager.

One periodic APScheduler job per monitored system. Each tick:

  advance cycle → synthesize → persist reading → evaluate thresholds
  → persist + publish alerts → publish reading

Per-system state (profile, cycle position, last reading, job handle) lives
in the engine instance; collaborators are injected. Failures inside a tick
are logged and never stop the job or leak into other systems' ticks.

State machine per system:  Stopped ──start──▶ Running ──stop──▶ Stopped
Starting a running system resets it.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

import numpy as np
from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from config.simulation import CYCLE_DEGREES, CYCLIC_TREND_PROBABILITY
from src.analytics.thresholds import evaluate
from src.data.broadcast import MessageKind
from src.data.models import (
    Alert,
    AlertEvent,
    AlertThreshold,
    SensorReading,
    SensorSnapshot,
    SimulationProfile,
    TrendMode,
)
from src.simulation.synthesizer import ReadingSynthesizer

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 2000


class ReadingStore(Protocol):
    def create_sensor_reading(self, snapshot: SensorSnapshot) -> SensorReading: ...
    def get_alert_thresholds(self, system_id: str) -> list[AlertThreshold]: ...
    def create_alert(self, event: AlertEvent) -> Alert: ...


class EventPublisher(Protocol):
    def publish(self, kind: MessageKind | str, payload: dict[str, Any]) -> int: ...


def build_profile(
    system_id: str,
    rng: np.random.Generator,
    cyclic_probability: float = CYCLIC_TREND_PROBABILITY,
    **overrides: Any,
) -> SimulationProfile:
    """Fresh profile at nominal values; trend is cyclic with ``cyclic_probability``."""
    trend = TrendMode.CYCLIC if rng.random() < cyclic_probability else TrendMode.STABLE
    params = {"trend": trend, **overrides}
    return SimulationProfile(system_id=system_id, **params)


@dataclass
class _SystemState:
    profile: SimulationProfile
    synthesizer: ReadingSynthesizer
    interval_ms: int
    cycle_position: int = 0
    last_reading: SensorSnapshot | None = None
    job: Job | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)


def job_id_for(system_id: str) -> str:
    return f"simulation:{system_id}"


class SimulationEngine:
    """
    Owns one independent periodic simulation per monitored system.

    Args:
        store: Persists readings / alerts and serves thresholds
        publisher: Fan-out channel for live events
        scheduler: APScheduler instance; a BackgroundScheduler is created
                   (and started on first use) when omitted
        seed: Root seed; each started system draws from its own child stream
        cyclic_probability: Chance a freshly started system gets a cyclic trend
        profile_overrides: SimulationProfile fields applied to every start
    """

    def __init__(
        self,
        store: ReadingStore,
        publisher: EventPublisher,
        scheduler: BaseScheduler | None = None,
        seed: int | None = None,
        cyclic_probability: float = CYCLIC_TREND_PROBABILITY,
        profile_overrides: dict[str, Any] | None = None,
    ) -> None:
        self._store = store
        self._publisher = publisher
        self._scheduler = scheduler if scheduler is not None else BackgroundScheduler()
        self._seed_seq = np.random.SeedSequence(seed)
        self._cyclic_probability = cyclic_probability
        self._profile_overrides = dict(profile_overrides or {})
        self._states: dict[str, _SystemState] = {}
        self._lock = threading.RLock()

    @property
    def scheduler(self) -> BaseScheduler:
        return self._scheduler

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self, system_id: str, interval_ms: int = DEFAULT_INTERVAL_MS) -> None:
        """(Re)start the simulation for a system. Always leaves exactly one job."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        with self._lock:
            self._stop_locked(system_id)

            rng = np.random.default_rng(self._seed_seq.spawn(1)[0])
            profile = build_profile(
                system_id, rng, cyclic_probability=self._cyclic_probability, **self._profile_overrides
            )
            synthesizer = ReadingSynthesizer(rng)
            state = _SystemState(profile=profile, synthesizer=synthesizer, interval_ms=interval_ms)
            # Seed reading: in memory only, never persisted or published
            state.last_reading = synthesizer.synthesize(profile, state.cycle_position)

            if not self._scheduler.running:
                self._scheduler.start()
            state.job = self._scheduler.add_job(
                self._run_job,
                "interval",
                seconds=interval_ms / 1000.0,
                args=[system_id, state],
                id=job_id_for(system_id),
                name=f"Simulation {system_id}",
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            self._states[system_id] = state

        logger.info(
            "Started simulation for system %s (interval=%dms, trend=%s)",
            system_id, interval_ms, profile.trend.value,
        )

    def stop(self, system_id: str) -> None:
        """Cancel future ticks and discard the system's state. No-op when stopped."""
        with self._lock:
            stopped = self._stop_locked(system_id)
        if stopped:
            logger.info("Stopped simulation for system %s", system_id)

    def stop_all(self) -> None:
        with self._lock:
            system_ids = list(self._states)
            for system_id in system_ids:
                self._stop_locked(system_id)
        for system_id in system_ids:
            logger.info("Stopped simulation for system %s", system_id)

    def shutdown(self) -> None:
        """Stop every simulation and the scheduler. Used at process exit."""
        self.stop_all()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def _stop_locked(self, system_id: str) -> bool:
        state = self._states.pop(system_id, None)
        if state is None:
            return False
        if state.job is not None:
            try:
                state.job.remove()
            except JobLookupError:
                logger.debug("Job for system %s already gone", system_id)
        return True

    # ── Tick ──────────────────────────────────────────────────────────────────

    def tick(self, system_id: str) -> SensorSnapshot | None:
        """
        Run one simulation step for a system.

        Returns the new snapshot, or None when the system is not running or
        synthesis failed.
        """
        state = self._states.get(system_id)
        if state is None:
            return None
        return self._tick_state(system_id, state)

    def _run_job(self, system_id: str, state: _SystemState) -> None:
        # A run dispatched before a restart or stop belongs to a replaced state
        if self._states.get(system_id) is not state:
            logger.debug("Skipping stale tick for system %s", system_id)
            return
        self._tick_state(system_id, state)

    def _tick_state(self, system_id: str, state: _SystemState) -> SensorSnapshot | None:
        with state.lock:
            try:
                state.cycle_position = (state.cycle_position + 1) % CYCLE_DEGREES
                snapshot = state.synthesizer.synthesize(state.profile, state.cycle_position)
            except Exception:
                logger.exception("Error in simulation for system %s", system_id)
                return None

            state.last_reading = snapshot
            self._persist_reading(snapshot)
            self._check_alerts(snapshot)
            self._publish(MessageKind.SENSOR_DATA, snapshot.to_payload())

        logger.debug(
            "Generated sensor reading for system %s: V=%.2f I=%.2f T=%.1f eff=%.2f status=%s",
            system_id,
            snapshot.voltage,
            snapshot.current,
            snapshot.temperature,
            snapshot.efficiency,
            snapshot.system_status.value,
        )
        return snapshot

    def _persist_reading(self, snapshot: SensorSnapshot) -> None:
        try:
            self._store.create_sensor_reading(snapshot)
        except Exception:
            logger.exception("Error storing sensor reading for system %s", snapshot.system_id)

    def _check_alerts(self, snapshot: SensorSnapshot) -> None:
        try:
            thresholds = self._store.get_alert_thresholds(snapshot.system_id)
            events = evaluate(snapshot, thresholds)
        except Exception:
            logger.exception("Error checking alerts for system %s", snapshot.system_id)
            return

        for event in events:
            payload = event.to_payload()
            try:
                payload = self._store.create_alert(event).to_payload()
            except Exception:
                logger.exception("Error creating alert for system %s", snapshot.system_id)
            self._publish(MessageKind.ALERT, payload)

    def _publish(self, kind: MessageKind, payload: dict[str, Any]) -> None:
        try:
            self._publisher.publish(kind, payload)
        except Exception:
            logger.exception("Error broadcasting %s message", kind.value)

    # ── Accessors ─────────────────────────────────────────────────────────────

    def get_latest_reading(self, system_id: str) -> SensorSnapshot | None:
        state = self._states.get(system_id)
        return state.last_reading if state else None

    def is_running(self, system_id: str) -> bool:
        return system_id in self._states

    def cycle_position(self, system_id: str) -> int | None:
        state = self._states.get(system_id)
        return state.cycle_position if state else None

    def get_profile(self, system_id: str) -> SimulationProfile | None:
        state = self._states.get(system_id)
        return state.profile if state else None

    def interval_ms(self, system_id: str) -> int | None:
        state = self._states.get(system_id)
        return state.interval_ms if state else None

    def running_systems(self) -> list[str]:
        with self._lock:
            return list(self._states)
