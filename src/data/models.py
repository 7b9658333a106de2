"""
src/data/models.py
──────────────────
Pydantic v2 data models for monitored systems, simulation profiles,
sensor snapshots, alert thresholds and alerts.

Python attributes are snake_case; the payloads pushed to subscribers and
returned by the API use camelCase keys (``pH`` keeps its chemical spelling).
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config.alerts import AlertSeverity
from config.simulation import (
    CHANNELS,
    DEFAULT_FAULT_PROBABILITY,
    DEFAULT_VARIABILITY,
)


class TrendMode(str, Enum):
    STABLE = "stable"
    INCREASING = "increasing"
    DECREASING = "decreasing"
    CYCLIC = "cyclic"


class SystemStatus(str, Enum):
    RUNNING = "running"
    IDLE = "idle"
    FAULT = "fault"
    MAINTENANCE = "maintenance"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class MonitoredSystem(_CamelModel):
    id: str
    name: str
    description: str | None = None
    is_active: bool = True
    created_at: datetime


class SimulationProfile(BaseModel):
    """Per-system generator parameters. Owned by the engine, never persisted."""
    system_id: str
    base_voltage: float = Field(default=CHANNELS["voltage"].base, gt=0.0)
    base_current: float = Field(default=CHANNELS["current"].base, gt=0.0)
    base_temperature: float = Field(default=CHANNELS["temperature"].base, gt=0.0)
    base_pressure: float = Field(default=CHANNELS["pressure"].base, gt=0.0)
    base_ph: float = Field(default=CHANNELS["pH"].base, ge=0.0, le=14.0)
    base_hydrogen_flow: float = Field(default=CHANNELS["hydrogenFlow"].base, ge=0.0)
    base_oxygen_flow: float = Field(default=CHANNELS["oxygenFlow"].base, ge=0.0)
    base_electrolyte_flow: float = Field(default=CHANNELS["electrolyteFlow"].base, ge=0.0)
    base_efficiency: float = Field(default=CHANNELS["efficiency"].base, gt=0.0, le=100.0)
    variability: float = Field(default=DEFAULT_VARIABILITY, ge=0.0, le=1.0)
    trend: TrendMode = TrendMode.STABLE
    fault_probability: float = Field(default=DEFAULT_FAULT_PROBABILITY, ge=0.0, le=1.0)


class SensorSnapshot(_CamelModel):
    """One tick's worth of correlated channel values. Immutable."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    system_id: str
    timestamp: datetime
    voltage: float = Field(ge=0.0)
    current: float = Field(ge=0.0)
    power: float = Field(ge=0.0)
    temperature: float = Field(ge=0.0)
    pressure: float = Field(ge=0.0)
    ph: float = Field(ge=0.0, alias="pH")
    hydrogen_flow: float = Field(ge=0.0)
    oxygen_flow: float = Field(ge=0.0)
    electrolyte_flow: float = Field(ge=0.0)
    efficiency: float = Field(ge=0.0)
    system_status: SystemStatus = SystemStatus.RUNNING

    def value_of(self, parameter: str) -> float | None:
        """Value for a wire key such as ``"pH"`` or ``"hydrogenFlow"``."""
        if parameter == "power":
            return self.power
        channel = CHANNELS.get(parameter)
        if channel is None:
            return None
        return getattr(self, channel.attr)


class SensorReading(SensorSnapshot):
    id: int


class AlertThreshold(_CamelModel):
    id: int | None = None
    system_id: str
    parameter: str
    min_value: float | None = None
    max_value: float | None = None
    is_enabled: bool = True


class AlertEvent(_CamelModel):
    system_id: str
    parameter: str
    severity: AlertSeverity
    message: str
    value: float
    threshold: float


class Alert(AlertEvent):
    id: str
    is_active: bool = True
    created_at: datetime
    resolved_at: datetime | None = None
