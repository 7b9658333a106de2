"""
src/simulation/bootstrap.py
───────────────────────────
Startup seeding: demo systems, their default thresholds, and one running
simulation per active system.
"""
from __future__ import annotations

import logging

from config.alerts import DEFAULT_THRESHOLDS, DEMO_SYSTEMS
from src.data.models import AlertThreshold
from src.data.store import SQLiteStore
from src.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)


def seed_demo_systems(store: SQLiteStore) -> int:
    """Create the demo systems and thresholds on an empty store. Returns how many were created."""
    existing = store.get_all_systems()
    if existing:
        logger.info("Found %d existing systems", len(existing))
        return 0

    for data in DEMO_SYSTEMS:
        system = store.create_system(data["name"], data["description"])
        logger.info("Created system: %s (ID: %s)", system.name, system.id)
        for parameter, (min_value, max_value) in DEFAULT_THRESHOLDS.items():
            store.create_alert_threshold(
                AlertThreshold(
                    system_id=system.id,
                    parameter=parameter,
                    min_value=min_value,
                    max_value=max_value,
                )
            )
        logger.info("Created alert thresholds for system %s", system.name)
    return len(DEMO_SYSTEMS)


def initialize_demo_systems(
    store: SQLiteStore,
    engine: SimulationEngine,
    interval_ms: int,
    seed_demo: bool = True,
) -> list[str]:
    """
    Seed demo data (optional) and start simulating every active system.

    Safe to call multiple times; errors are logged, not raised.
    Returns the ids of the systems started.
    """
    started: list[str] = []
    try:
        logger.info("Initializing electrolysis systems...")
        if seed_demo:
            seed_demo_systems(store)

        for system in store.get_all_systems():
            if not system.is_active:
                continue
            logger.info("Starting data simulation for system: %s", system.name)
            engine.start(system.id, interval_ms)
            started.append(system.id)

        logger.info("Systems initialization completed (%d running)", len(started))
    except Exception:
        logger.exception("Error initializing systems")
    return started
