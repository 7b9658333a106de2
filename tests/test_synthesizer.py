"""
tests/test_synthesizer.py
──────────────────────────
Tests for the correlated reading synthesizer.
"""
import math
from datetime import datetime, timezone

import numpy as np
import pytest

from src.data.models import SimulationProfile, SystemStatus, TrendMode
from src.simulation.synthesizer import (
    ReadingSynthesizer,
    cycle_factor,
    derive_status,
    temperature_efficiency_factor,
    trend_factor,
)


def _never_called() -> float:
    raise AssertionError("maintenance roll should not be drawn")


@pytest.fixture
def profile() -> SimulationProfile:
    return SimulationProfile(system_id="sys-1")


class TestShapingHelpers:
    def test_trend_factors(self):
        assert trend_factor(TrendMode.STABLE, 90) == 0.0
        assert trend_factor(TrendMode.INCREASING, 90) == pytest.approx(0.05)
        assert trend_factor(TrendMode.DECREASING, 90) == pytest.approx(-0.05)
        assert trend_factor(TrendMode.CYCLIC, 90) == pytest.approx(0.08)
        assert trend_factor(TrendMode.CYCLIC, 0) == pytest.approx(0.0)

    def test_cycle_factor(self):
        assert cycle_factor(0) == pytest.approx(0.0)
        assert cycle_factor(90) == pytest.approx(0.10)
        assert cycle_factor(270) == pytest.approx(-0.10)

    def test_temperature_efficiency_factor(self):
        assert temperature_efficiency_factor(65.0) == pytest.approx(1.0)
        assert temperature_efficiency_factor(75.0) == pytest.approx(0.95)
        assert temperature_efficiency_factor(55.0) == pytest.approx(0.95)
        # Floor
        assert temperature_efficiency_factor(200.0) == pytest.approx(0.7)


class TestDeriveStatus:
    def test_fault_flag_wins(self):
        status = derive_status(True, 12.5, 5.0, 65.0, 82.0, _never_called)
        assert status == SystemStatus.FAULT

    @pytest.mark.parametrize("voltage,temperature,efficiency", [
        (9.9, 65.0, 82.0),
        (12.5, 85.1, 82.0),
        (12.5, 65.0, 69.9),
    ])
    def test_fault_conditions(self, voltage, temperature, efficiency):
        status = derive_status(False, voltage, 85.0, temperature, efficiency, _never_called)
        assert status == SystemStatus.FAULT

    def test_idle_before_maintenance(self):
        status = derive_status(False, 12.5, 19.9, 65.0, 82.0, _never_called)
        assert status == SystemStatus.IDLE

    def test_maintenance_roll(self):
        assert derive_status(False, 12.5, 85.0, 65.0, 82.0, lambda: 0.005) == SystemStatus.MAINTENANCE
        assert derive_status(False, 12.5, 85.0, 65.0, 82.0, lambda: 0.5) == SystemStatus.RUNNING

    def test_boundaries_are_not_faults(self):
        # Exactly on the limits is still healthy
        status = derive_status(False, 10.0, 20.0, 85.0, 70.0, lambda: 0.5)
        assert status == SystemStatus.RUNNING


class TestAddVariation:
    def test_floored_at_zero(self, rng):
        synth = ReadingSynthesizer(rng)
        values = [synth.add_variation(10.0, 5.0, 5.0) for _ in range(500)]
        assert min(values) >= 0.0
        assert 0.0 in values

    def test_zero_base(self, rng):
        synth = ReadingSynthesizer(rng)
        assert synth.add_variation(0.0, 0.5, 0.5) == 0.0

    def test_bounded_by_spike_magnitude(self, rng):
        synth = ReadingSynthesizer(rng)
        values = np.array([synth.add_variation(100.0, 0.05, 0.30) for _ in range(2000)])
        assert values.min() >= 70.0
        assert values.max() <= 130.0
        # Most draws stay inside the normal band
        assert np.mean(np.abs(values - 100.0) <= 5.0) > 0.9


class TestSynthesize:
    def test_values_non_negative(self, rng):
        synth = ReadingSynthesizer(rng)
        profile = SimulationProfile(system_id="sys-1", variability=1.0, fault_probability=0.5)
        for pos in range(0, 360, 3):
            s = synth.synthesize(profile, pos)
            for key in ("voltage", "current", "power", "temperature", "pressure", "ph",
                        "hydrogen_flow", "oxygen_flow", "electrolyte_flow", "efficiency"):
                assert getattr(s, key) >= 0.0

    def test_power_is_product_of_rounded_values(self, rng, profile):
        synth = ReadingSynthesizer(rng)
        for pos in range(0, 360, 7):
            s = synth.synthesize(profile, pos)
            assert s.power == round(s.voltage * s.current, 2)

    def test_rounding(self, rng, profile):
        synth = ReadingSynthesizer(rng)
        s = synth.synthesize(profile, 45)
        assert round(s.voltage, 2) == s.voltage
        assert round(s.temperature, 1) == s.temperature
        assert round(s.hydrogen_flow, 1) == s.hydrogen_flow
        assert round(s.ph, 2) == s.ph
        assert round(s.efficiency, 2) == s.efficiency

    def test_certain_fault(self, rng):
        synth = ReadingSynthesizer(rng)
        profile = SimulationProfile(system_id="sys-1", fault_probability=1.0)
        assert all(synth.synthesize(profile, pos).system_status == SystemStatus.FAULT for pos in range(50))

    def test_quiet_profile_runs(self, rng):
        synth = ReadingSynthesizer(rng)
        profile = SimulationProfile(system_id="sys-1", variability=0.0, fault_probability=0.0)
        statuses = {synth.synthesize(profile, pos).system_status for pos in range(0, 360, 10)}
        assert statuses <= {SystemStatus.RUNNING, SystemStatus.MAINTENANCE}

    def test_deterministic_for_seed(self, profile):
        t = datetime(2024, 6, 1, tzinfo=timezone.utc)
        a = ReadingSynthesizer(np.random.default_rng(7), clock=lambda: t)
        b = ReadingSynthesizer(np.random.default_rng(7), clock=lambda: t)
        for pos in (0, 90, 180):
            assert a.synthesize(profile, pos) == b.synthesize(profile, pos)

    def test_clock_injected(self, rng, profile):
        t = datetime(2030, 1, 1, tzinfo=timezone.utc)
        s = ReadingSynthesizer(rng, clock=lambda: t).synthesize(profile, 0)
        assert s.timestamp == t
        assert s.system_id == "sys-1"

    def test_oxygen_roughly_half_hydrogen(self, rng, profile):
        synth = ReadingSynthesizer(rng)
        ratios = [
            s.oxygen_flow / s.hydrogen_flow
            for s in (synth.synthesize(profile, pos) for pos in range(0, 360, 4))
            if s.hydrogen_flow > 0
        ]
        assert np.median(ratios) == pytest.approx(0.5, abs=0.1)

    def test_cycle_lifts_voltage(self, profile):
        # Average over many draws: the 90° peak sits above the 270° trough
        synth = ReadingSynthesizer(np.random.default_rng(3))
        peak = np.mean([synth.synthesize(profile, 90).voltage for _ in range(200)])
        trough = np.mean([synth.synthesize(profile, 270).voltage for _ in range(200)])
        assert peak > trough
        assert math.isclose(peak / 12.5, 1.10, abs_tol=0.03)

    @pytest.mark.parametrize("pos", [-1, 360, 1000])
    def test_invalid_cycle_position(self, rng, profile, pos):
        with pytest.raises(ValueError):
            ReadingSynthesizer(rng).synthesize(profile, pos)
