"""
config/alerts.py
────────────────
Alert severity levels, default thresholds, demo systems and display
configuration.
"""

from enum import Enum


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Deviation (percent beyond the violated threshold) that must be exceeded
# for each severity, checked from the top down.
SEVERITY_DEVIATION_LIMITS: tuple[tuple[float, AlertSeverity], ...] = (
    (50.0, AlertSeverity.CRITICAL),
    (25.0, AlertSeverity.HIGH),
    (10.0, AlertSeverity.MEDIUM),
)

SEVERITY_COLORS: dict[str, str] = {
    AlertSeverity.LOW: "#58a6ff",
    AlertSeverity.MEDIUM: "#e8a020",
    AlertSeverity.HIGH: "#f0883e",
    AlertSeverity.CRITICAL: "#da3633",
}

SEVERITY_LABELS: dict[str, str] = {
    AlertSeverity.LOW: "Low",
    AlertSeverity.MEDIUM: "Medium",
    AlertSeverity.HIGH: "High",
    AlertSeverity.CRITICAL: "Critical",
}

# Severity ordering for sorting (higher = more severe)
SEVERITY_ORDER: dict[str, int] = {
    AlertSeverity.CRITICAL: 4,
    AlertSeverity.HIGH: 3,
    AlertSeverity.MEDIUM: 2,
    AlertSeverity.LOW: 1,
}

# parameter → (min, max); seeded for every demo system
DEFAULT_THRESHOLDS: dict[str, tuple[float | None, float | None]] = {
    "voltage": (10.0, 15.0),
    "current": (20.0, 120.0),
    "temperature": (45.0, 85.0),
    "pressure": (1.5, 3.0),
    "pH": (12.0, 15.0),
    "efficiency": (70.0, None),
}

DEMO_SYSTEMS: list[dict[str, str]] = [
    {
        "name": "Electrolyzer Unit A-1",
        "description": "Primary hydrogen production unit for industrial process",
    },
    {
        "name": "Electrolyzer Unit B-2",
        "description": "Secondary hydrogen production unit for backup operations",
    },
    {
        "name": "Research Electrolyzer R-3",
        "description": "Experimental unit for testing new electrolyte compositions",
    },
]

MAX_ALERTS_DISPLAY = 100
