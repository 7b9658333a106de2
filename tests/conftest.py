"""
tests/conftest.py
─────────────────
Shared pytest fixtures for the Electrolyzer Monitor test suite.
"""
import os
import pytest
import numpy as np
from datetime import datetime, timezone

# Use in-memory SQLite for tests
os.environ.setdefault("DATABASE_URL", ":memory:")
os.environ.setdefault("SIMULATION_SEED", "42")
os.environ.setdefault("SEED_DEMO_SYSTEMS", "false")


class RecordingPublisher:
    """Publisher double that keeps every message in order."""

    def __init__(self):
        self.messages = []

    def publish(self, kind, payload):
        from src.data.broadcast import make_message
        self.messages.append(make_message(kind, payload))
        return 1

    def of_type(self, kind: str) -> list:
        return [m for m in self.messages if m["type"] == kind]


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    from src.data.store import SQLiteStore
    s = SQLiteStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def system(store):
    return store.create_system("Test Unit T-1", "Fixture electrolyzer")


@pytest.fixture
def broadcaster():
    from src.data.broadcast import Broadcaster
    return Broadcaster(max_queue=1000)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def make_engine():
    """Factory for engines that are shut down after the test."""
    from src.simulation.engine import SimulationEngine
    engines = []

    def _make(store, publisher, seed=42, **kwargs):
        engine = SimulationEngine(store, publisher, seed=seed, **kwargs)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.shutdown()


@pytest.fixture
def engine(make_engine, store, publisher):
    return make_engine(store, publisher)


@pytest.fixture
def make_snapshot(now):
    """Nominal snapshot with per-test overrides (snake_case field names)."""
    from src.data.models import SensorSnapshot

    def _make(**overrides):
        values = dict(
            system_id="sys-1",
            timestamp=now,
            voltage=12.5,
            current=85.0,
            power=1062.5,
            temperature=65.0,
            pressure=2.1,
            ph=14.0,
            hydrogen_flow=15.2,
            oxygen_flow=7.6,
            electrolyte_flow=125.0,
            efficiency=82.5,
        )
        values.update(overrides)
        return SensorSnapshot(**values)

    return _make
