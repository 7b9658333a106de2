"""
config/simulation.py
────────────────────
Monitored channels of an alkaline electrolysis unit and the constants of the
telemetry simulation.

Channels (nominal operating point):
  voltage          12.5 V      cell stack voltage
  current          85.0 A      stack current
  temperature      65.0 °C     electrolyte temperature (efficiency optimum)
  pressure          2.1 bar    hydrogen outlet pressure
  pH               14.0        alkaline (KOH) electrolyte
  hydrogenFlow     15.2 L/min
  oxygenFlow        7.6 L/min  half of hydrogen (stoichiometry)
  electrolyteFlow 125.0 L/min  circulation
  efficiency       82.5 %
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class Band:
    """Display band used by the dashboard gauges (inclusive bounds)."""
    low: float
    high: float

    def contains(self, value: float) -> bool:
        return self.low <= value <= self.high


@dataclass(frozen=True)
class Channel:
    key: str                 # wire / threshold name
    attr: str                # SensorSnapshot attribute
    label: str
    unit: str
    base: float              # nominal value
    decimals: int            # rounding applied to snapshots
    display_range: tuple[float, float]
    alertable: bool = False
    normal: Band | None = None
    warning: Band | None = None


CHANNELS: dict[str, Channel] = {
    "voltage": Channel(
        key="voltage", attr="voltage", label="Voltage", unit="V",
        base=12.5, decimals=2, display_range=(0.0, 20.0), alertable=True,
    ),
    "current": Channel(
        key="current", attr="current", label="Current", unit="A",
        base=85.0, decimals=2, display_range=(0.0, 150.0), alertable=True,
    ),
    "temperature": Channel(
        key="temperature", attr="temperature", label="Temperature", unit="°C",
        base=65.0, decimals=1, display_range=(0.0, 100.0), alertable=True,
        normal=Band(20.0, 70.0), warning=Band(70.0, 85.0),
    ),
    "pressure": Channel(
        key="pressure", attr="pressure", label="Pressure", unit="bar",
        base=2.1, decimals=2, display_range=(0.0, 5.0), alertable=True,
        normal=Band(0.5, 3.0), warning=Band(3.0, 4.0),
    ),
    "pH": Channel(
        key="pH", attr="ph", label="pH Level", unit="pH",
        base=14.0, decimals=2, display_range=(0.0, 16.0), alertable=True,
        normal=Band(12.0, 15.0), warning=Band(10.0, 16.0),
    ),
    "hydrogenFlow": Channel(
        key="hydrogenFlow", attr="hydrogen_flow", label="Hydrogen Flow", unit="L/min",
        base=15.2, decimals=1, display_range=(0.0, 30.0),
    ),
    "oxygenFlow": Channel(
        key="oxygenFlow", attr="oxygen_flow", label="Oxygen Flow", unit="L/min",
        base=7.6, decimals=1, display_range=(0.0, 15.0),
    ),
    "electrolyteFlow": Channel(
        key="electrolyteFlow", attr="electrolyte_flow", label="Electrolyte Flow", unit="L/min",
        base=125.0, decimals=1, display_range=(0.0, 200.0),
    ),
    "efficiency": Channel(
        key="efficiency", attr="efficiency", label="Efficiency", unit="%",
        base=82.5, decimals=2, display_range=(0.0, 100.0), alertable=True,
        normal=Band(80.0, 100.0), warning=Band(70.0, 80.0),
    ),
}

POWER_DECIMALS = 2

ALERTABLE_PARAMETERS: tuple[str, ...] = tuple(k for k, c in CHANNELS.items() if c.alertable)

# ── Profile defaults ──────────────────────────────────────────────────────────
DEFAULT_VARIABILITY = 0.15
DEFAULT_FAULT_PROBABILITY = 0.02
CYCLIC_TREND_PROBABILITY = 0.3

# ── Trend / cycle shaping ─────────────────────────────────────────────────────
CYCLE_DEGREES = 360
LINEAR_TREND = 0.05        # ± for increasing / decreasing
CYCLIC_TREND_AMPLITUDE = 0.08
CYCLE_AMPLITUDE = 0.10     # shared oscillation on every channel

# ── Noise model ───────────────────────────────────────────────────────────────
NOISE_SPIKE_PROBABILITY = 0.05

# (fault, normal) spike magnitudes passed to add_variation
SPIKE_MAGNITUDES: dict[str, tuple[float, float]] = {
    "voltage": (0.30, 0.05),
    "current": (0.40, 0.08),
    "temperature": (0.25, 0.06),
    "pressure": (0.20, 0.04),
    "pH": (0.10, 0.02),
    "hydrogenFlow": (0.30, 0.10),
    "oxygenFlow": (0.30, 0.10),
    "electrolyteFlow": (0.20, 0.05),
    "efficiency": (0.30, 0.08),
}

# Scale applied to the profile variability for the chemically / hydraulically
# steadier channels
VARIABILITY_SCALE: dict[str, float] = {
    "pH": 0.5,
    "electrolyteFlow": 0.3,
    "efficiency": 0.5,
}

# ── Physical couplings ────────────────────────────────────────────────────────
CURRENT_VOLTAGE_COUPLING = 0.95
TEMPERATURE_PER_AMP = 0.2
PRESSURE_PER_AMP = 0.01
OPTIMAL_TEMPERATURE_C = 65.0
EFFICIENCY_PENALTY_PER_DEGREE = 0.005
MIN_TEMPERATURE_EFFICIENCY_FACTOR = 0.7

# ── Status derivation ─────────────────────────────────────────────────────────
FAULT_EFFICIENCY_BELOW = 70.0
FAULT_TEMPERATURE_ABOVE = 85.0
FAULT_VOLTAGE_BELOW = 10.0
IDLE_CURRENT_BELOW = 20.0
MAINTENANCE_PROBABILITY = 0.01
