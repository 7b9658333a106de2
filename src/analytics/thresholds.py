"""
src/analytics/thresholds.py
────────────────────────────
Threshold evaluation engine.

Provides:
  - evaluate()          : snapshot × configured thresholds → alert events
  - classify_severity() : deviation percent → low / medium / high / critical
  - band_status()       : normal / warning / critical for dashboard gauges

Severity is driven by how far the observed value lies beyond the threshold
it violated, relative to that threshold:

  > 50 %  critical
  > 25 %  high
  > 10 %  medium
  else    low
"""
from __future__ import annotations

import logging

from config.alerts import SEVERITY_DEVIATION_LIMITS, AlertSeverity
from config.simulation import ALERTABLE_PARAMETERS, Channel
from src.data.models import AlertEvent, AlertThreshold, SensorSnapshot

logger = logging.getLogger(__name__)

BELOW_MINIMUM = "below minimum"
ABOVE_MAXIMUM = "above maximum"


def deviation_percent(value: float, threshold: float) -> float:
    """Relative distance of ``value`` from ``threshold`` in percent."""
    if threshold == 0:
        return float("inf")
    return abs((value - threshold) / threshold) * 100.0


def classify_severity(deviation: float) -> AlertSeverity:
    for limit, severity in SEVERITY_DEVIATION_LIMITS:
        if deviation > limit:
            return severity
    return AlertSeverity.LOW


def format_message(parameter: str, violation: str, value: float, threshold: float) -> str:
    return f"{parameter.upper()} is {violation}: {value:.2f} (threshold: {threshold:.2f})"


def check_threshold(value: float, threshold: AlertThreshold) -> tuple[str, float] | None:
    """
    Return ``(violation, violated_value)`` or None.

    The max check runs after the min check and overrides it, so a value
    outside both bounds of an inverted row reports the max violation.
    """
    result: tuple[str, float] | None = None
    if threshold.min_value is not None and value < threshold.min_value:
        result = (BELOW_MINIMUM, threshold.min_value)
    if threshold.max_value is not None and value > threshold.max_value:
        result = (ABOVE_MAXIMUM, threshold.max_value)
    return result


def evaluate(snapshot: SensorSnapshot, thresholds: list[AlertThreshold]) -> list[AlertEvent]:
    """
    Evaluate a snapshot against a system's thresholds.

    Every enabled row on an alertable parameter is checked on its own; two
    rows on the same parameter can both fire. Unknown parameters are skipped.
    """
    events: list[AlertEvent] = []
    for threshold in thresholds:
        if not threshold.is_enabled or threshold.parameter not in ALERTABLE_PARAMETERS:
            continue
        value = snapshot.value_of(threshold.parameter)
        if value is None:
            continue

        violation = check_threshold(value, threshold)
        if violation is None:
            continue
        kind, violated = violation

        event = AlertEvent(
            system_id=snapshot.system_id,
            parameter=threshold.parameter,
            severity=classify_severity(deviation_percent(value, violated)),
            message=format_message(threshold.parameter, kind, value, violated),
            value=value,
            threshold=violated,
        )
        logger.warning("ALERT system=%s %s [%s]", snapshot.system_id, event.message, event.severity.value)
        events.append(event)
    return events


# ── Dashboard helpers ─────────────────────────────────────────────────────────

STATUS_COLORS = {
    "normal": "#2ea44f",
    "warning": "#e8a020",
    "critical": "#da3633",
}


def band_status(value: float, channel: Channel) -> str:
    """Classify a live value against a channel's display bands."""
    if channel.normal is None:
        return "normal"
    if channel.normal.contains(value):
        return "normal"
    if channel.warning is not None and channel.warning.contains(value):
        return "warning"
    return "critical"


def get_value_color(value: float, channel: Channel) -> str:
    return STATUS_COLORS[band_status(value, channel)]
