"""
src/services.py
───────────────
Builds the long-lived collaborators (store, broadcaster, engine) from
settings and hands them to the API and dashboard callbacks.
"""
from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from config.settings import Settings
from src.data.broadcast import Broadcaster, MessageKind, Subscription
from src.data.store import SQLiteStore
from src.simulation.engine import SimulationEngine


@dataclass
class Services:
    settings: Settings
    store: SQLiteStore
    broadcaster: Broadcaster
    engine: SimulationEngine
    live_feed: Subscription  # dashboard's own subscription to the broadcaster
    recent_alerts: deque[dict[str, Any]] = field(default_factory=deque)
    _feed_lock: threading.Lock = field(default_factory=threading.Lock)

    def poll_live_alerts(self) -> list[dict[str, Any]]:
        """
        Move pushed alert payloads from the dashboard subscription into the
        shared recent-alerts buffer and return it, newest first.
        """
        with self._feed_lock:
            for message in self.live_feed.drain():
                if message["type"] == MessageKind.ALERT.value:
                    self.recent_alerts.appendleft(message["data"])
            return list(self.recent_alerts)

    def shutdown(self) -> None:
        self.engine.shutdown()
        self.broadcaster.unsubscribe(self.live_feed)
        self.store.close()


def create_services(settings: Settings) -> Services:
    store = SQLiteStore(settings.DATABASE_URL)
    broadcaster = Broadcaster()
    engine = SimulationEngine(
        store,
        broadcaster,
        seed=settings.SIMULATION_SEED,
        cyclic_probability=settings.SIM_CYCLIC_PROBABILITY,
        profile_overrides={
            "variability": settings.SIM_VARIABILITY,
            "fault_probability": settings.SIM_FAULT_PROBABILITY,
        },
    )
    return Services(
        settings=settings,
        store=store,
        broadcaster=broadcaster,
        engine=engine,
        live_feed=broadcaster.subscribe(),
        recent_alerts=deque(maxlen=settings.LIVE_FEED_SIZE),
    )
