"""
src/simulation/synthesizer.py
─────────────────────────────
Correlated sensor snapshot generator for a simulated electrolysis unit.

Signal model (per tick):
  1. fault flag       : Bernoulli(profile.fault_probability)
  2. trend factor     : 0 / +5 % / −5 % / 8 %·sin(θ) depending on trend mode
  3. cycle factor     : 10 %·sin(θ), shared by every channel
  4. voltage          : nominal × (1 + trend + cycle), varied
  5. current          : follows voltage (×0.95)
  6. power            : V × I, never varied on its own
  7. temperature      : rises 0.2 °C per amp above nominal
  8. pressure         : rises 0.01 bar per amp above nominal
  9. pH               : half variability
 10. H₂ / O₂ flow     : scale with the current ratio
 11. electrolyte flow : 30 % variability
 12. efficiency       : penalised 0.5 %/°C away from 65 °C, floor 70 %

Noise is two-layered: the tick-level fault flag selects the spike magnitude,
and every add_variation call independently rolls a 5 % chance of using it.
"""
from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime

import numpy as np

from config.simulation import (
    CHANNELS,
    CURRENT_VOLTAGE_COUPLING,
    CYCLE_AMPLITUDE,
    CYCLE_DEGREES,
    CYCLIC_TREND_AMPLITUDE,
    EFFICIENCY_PENALTY_PER_DEGREE,
    FAULT_EFFICIENCY_BELOW,
    FAULT_TEMPERATURE_ABOVE,
    FAULT_VOLTAGE_BELOW,
    IDLE_CURRENT_BELOW,
    LINEAR_TREND,
    MAINTENANCE_PROBABILITY,
    MIN_TEMPERATURE_EFFICIENCY_FACTOR,
    NOISE_SPIKE_PROBABILITY,
    OPTIMAL_TEMPERATURE_C,
    POWER_DECIMALS,
    PRESSURE_PER_AMP,
    SPIKE_MAGNITUDES,
    TEMPERATURE_PER_AMP,
    VARIABILITY_SCALE,
)
from src.data.models import SensorSnapshot, SimulationProfile, SystemStatus, TrendMode


# ── Shaping helpers ───────────────────────────────────────────────────────────

def _sin_deg(cycle_position: int) -> float:
    return math.sin(cycle_position * math.pi / 180.0)


def trend_factor(trend: TrendMode, cycle_position: int) -> float:
    if trend == TrendMode.INCREASING:
        return LINEAR_TREND
    if trend == TrendMode.DECREASING:
        return -LINEAR_TREND
    if trend == TrendMode.CYCLIC:
        return _sin_deg(cycle_position) * CYCLIC_TREND_AMPLITUDE
    return 0.0


def cycle_factor(cycle_position: int) -> float:
    return _sin_deg(cycle_position) * CYCLE_AMPLITUDE


def temperature_efficiency_factor(temperature: float) -> float:
    """Efficiency multiplier: 1.0 at the 65 °C optimum, never below 0.7."""
    return max(
        MIN_TEMPERATURE_EFFICIENCY_FACTOR,
        1.0 - abs(temperature - OPTIMAL_TEMPERATURE_C) * EFFICIENCY_PENALTY_PER_DEGREE,
    )


def derive_status(
    is_fault: bool,
    voltage: float,
    current: float,
    temperature: float,
    efficiency: float,
    roll: Callable[[], float],
) -> SystemStatus:
    """
    Classify the operating state of a unit.

    Precedence: fault conditions, then idle, then the random maintenance
    window, then running.

    Args:
        is_fault: Tick-level fault flag
        voltage, current, temperature, efficiency: Snapshot values
        roll: Uniform [0, 1) source, called only when the maintenance
              window is actually considered
    """
    if (
        is_fault
        or efficiency < FAULT_EFFICIENCY_BELOW
        or temperature > FAULT_TEMPERATURE_ABOVE
        or voltage < FAULT_VOLTAGE_BELOW
    ):
        return SystemStatus.FAULT
    if current < IDLE_CURRENT_BELOW:
        return SystemStatus.IDLE
    if roll() < MAINTENANCE_PROBABILITY:
        return SystemStatus.MAINTENANCE
    return SystemStatus.RUNNING


def _round(key: str, value: float) -> float:
    return round(value, CHANNELS[key].decimals)


# ── Synthesizer ───────────────────────────────────────────────────────────────

class ReadingSynthesizer:
    """
    Produces one SensorSnapshot per call from a SimulationProfile.

    Deterministic for a given random generator state and clock.
    """

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def add_variation(
        self,
        base: float,
        normal_variability: float,
        fault_variability: float,
    ) -> float:
        """
        Multiplicative noise around ``base``, floored at zero.

        A uniform draw in [−1, 1) is scaled by ``normal_variability``, or by
        ``fault_variability`` on an independent 5 % spike roll.
        """
        variation = self._rng.uniform(-1.0, 1.0)
        spike = self._rng.random() < NOISE_SPIKE_PROBABILITY
        magnitude = fault_variability if spike else normal_variability
        return max(0.0, base * (1.0 + variation * magnitude))

    def _vary(self, key: str, base: float, variability: float, is_fault: bool) -> float:
        fault_mag, normal_mag = SPIKE_MAGNITUDES[key]
        scaled = variability * VARIABILITY_SCALE.get(key, 1.0)
        return self.add_variation(base, scaled, fault_mag if is_fault else normal_mag)

    def synthesize(self, profile: SimulationProfile, cycle_position: int) -> SensorSnapshot:
        if not 0 <= cycle_position < CYCLE_DEGREES:
            raise ValueError(f"cycle_position must be in [0, {CYCLE_DEGREES}), got {cycle_position}")

        p = profile
        var = p.variability
        is_fault = bool(self._rng.random() < p.fault_probability)

        level = 1.0 + trend_factor(p.trend, cycle_position) + cycle_factor(cycle_position)

        voltage = self._vary("voltage", p.base_voltage * level, var, is_fault)
        current = self._vary(
            "current",
            p.base_current * (voltage / p.base_voltage) * CURRENT_VOLTAGE_COUPLING,
            var,
            is_fault,
        )
        temperature = self._vary(
            "temperature",
            p.base_temperature + (current - p.base_current) * TEMPERATURE_PER_AMP,
            var,
            is_fault,
        )
        pressure = self._vary(
            "pressure",
            p.base_pressure + (current - p.base_current) * PRESSURE_PER_AMP,
            var,
            is_fault,
        )
        ph = self._vary("pH", p.base_ph, var, is_fault)

        current_ratio = current / p.base_current
        hydrogen_flow = self._vary("hydrogenFlow", p.base_hydrogen_flow * current_ratio, var, is_fault)
        oxygen_flow = self._vary("oxygenFlow", p.base_oxygen_flow * current_ratio, var, is_fault)
        electrolyte_flow = self._vary("electrolyteFlow", p.base_electrolyte_flow, var, is_fault)

        efficiency = self._vary(
            "efficiency",
            p.base_efficiency * temperature_efficiency_factor(temperature),
            var,
            is_fault,
        )

        # Status is decided on unrounded values
        status = derive_status(is_fault, voltage, current, temperature, efficiency, self._rng.random)

        voltage = _round("voltage", voltage)
        current = _round("current", current)

        return SensorSnapshot(
            system_id=p.system_id,
            timestamp=self._clock(),
            voltage=voltage,
            current=current,
            power=round(voltage * current, POWER_DECIMALS),
            temperature=_round("temperature", temperature),
            pressure=_round("pressure", pressure),
            ph=_round("pH", ph),
            hydrogen_flow=_round("hydrogenFlow", hydrogen_flow),
            oxygen_flow=_round("oxygenFlow", oxygen_flow),
            electrolyte_flow=_round("electrolyteFlow", electrolyte_flow),
            efficiency=_round("efficiency", efficiency),
            system_status=status,
        )
