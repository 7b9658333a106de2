"""
config/settings.py
──────────────────
Application configuration loaded from environment variables.
"""
import os
from dataclasses import dataclass


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


@dataclass
class Settings:
    # Server
    DEBUG: bool = os.getenv("DEBUG", "true").lower() == "true"
    PORT: int = int(os.getenv("PORT", "8050"))
    HOST: str = os.getenv("HOST", "0.0.0.0")

    # Database (SQLite path, ":memory:" for tests)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "electrolyzer_monitor.db")

    # Dashboard refresh interval in milliseconds
    UPDATE_INTERVAL_MS: int = int(os.getenv("UPDATE_INTERVAL_MS", "3000"))

    # Simulation
    SIMULATION_INTERVAL_MS: int = int(os.getenv("SIMULATION_INTERVAL_MS", "3000"))
    SIMULATION_SEED: int | None = _optional_int("SIMULATION_SEED")
    SIM_VARIABILITY: float = float(os.getenv("SIM_VARIABILITY", "0.15"))
    SIM_FAULT_PROBABILITY: float = float(os.getenv("SIM_FAULT_PROBABILITY", "0.02"))
    SIM_CYCLIC_PROBABILITY: float = float(os.getenv("SIM_CYCLIC_PROBABILITY", "0.3"))
    SEED_DEMO_SYSTEMS: bool = os.getenv("SEED_DEMO_SYSTEMS", "true").lower() == "true"

    # Live feed / push stream
    LIVE_FEED_SIZE: int = int(os.getenv("LIVE_FEED_SIZE", "50"))
    STREAM_KEEPALIVE_S: float = float(os.getenv("STREAM_KEEPALIVE_S", "15"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
