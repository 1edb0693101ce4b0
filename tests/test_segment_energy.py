"""Regression tests for the composed segment energy model.

Reference vehicle, air density 1.25 kg/m³, 1000 m in 120 s (30 km/h).
"""

from __future__ import annotations

import pytest

from evroute.config import VehicleConfig
from evroute.engine.segment_energy import segment_battery_power_w, segment_energy_wh

RHO = 1.25


class TestRegressionFixtures:

    def test_flat(self, vehicle):
        assert segment_energy_wh(1000, 120, 0, 0, vehicle, RHO) == pytest.approx(98.36, abs=0.01)

    def test_climb_10_m(self, vehicle):
        assert segment_energy_wh(1000, 120, 0, 10, vehicle, RHO) == pytest.approx(150.89, abs=0.01)

    def test_descent_10_m(self, vehicle):
        assert segment_energy_wh(1000, 120, 10, 0, vehicle, RHO) == pytest.approx(10.20, abs=0.01)

    def test_only_elevation_difference_matters(self, vehicle):
        assert segment_energy_wh(1000, 120, 100, 110, vehicle, RHO) == pytest.approx(
            segment_energy_wh(1000, 120, 0, 10, vehicle, RHO),
        )

    @pytest.mark.parametrize("rise_per_500_m", [0.0, 5.0, -5.0])
    def test_doubling_distance_and_duration_doubles_energy(self, vehicle, rise_per_500_m):
        # Same 8.33 m/s and the same slope, twice as long.
        half = segment_energy_wh(500, 60, 0, rise_per_500_m, vehicle, RHO)
        full = segment_energy_wh(1000, 120, 0, 2 * rise_per_500_m, vehicle, RHO)
        assert full == pytest.approx(2 * half)


class TestEdgeCases:

    def test_zero_duration_costs_nothing(self, vehicle):
        assert segment_energy_wh(1000, 0, 0, 50, vehicle, RHO) == 0.0

    def test_standstill_draws_accessories_only(self, vehicle):
        # 300 W / √0.95 for one hour
        assert segment_energy_wh(0, 3600, 0, 0, vehicle, RHO) == pytest.approx(300 / 0.95 ** 0.5)

    def test_standstill_ignores_elevation(self, vehicle):
        assert segment_energy_wh(0, 60, 0, 10, vehicle, RHO) == segment_energy_wh(0, 60, 0, 0, vehicle, RHO)

    def test_negative_inputs_rejected(self, vehicle):
        with pytest.raises(ValueError):
            segment_energy_wh(-1, 60, 0, 0, vehicle, RHO)
        with pytest.raises(ValueError):
            segment_energy_wh(100, -60, 0, 0, vehicle, RHO)

    def test_steep_descent_regenerates(self, vehicle):
        assert segment_energy_wh(1000, 120, 60, 0, vehicle, RHO) < 0

    def test_slow_descent_does_not_regenerate(self, vehicle):
        # 1 m/s is below u1, so braking energy is lost and accessories still draw.
        assert segment_energy_wh(1000, 1000, 60, 0, vehicle, RHO) > 0


class TestVehicleSensitivity:

    def test_heavier_vehicle_uses_more(self, vehicle):
        heavy = VehicleConfig(mass_kg=2500)
        assert segment_energy_wh(1000, 120, 0, 0, heavy, RHO) > segment_energy_wh(1000, 120, 0, 0, vehicle, RHO)

    def test_permanent_magnet_motor_is_more_efficient(self, vehicle):
        pm = VehicleConfig(motor_type="permanent_magnet_motor")
        assert segment_energy_wh(1000, 60, 0, 0, pm, RHO) < segment_energy_wh(1000, 60, 0, 0, vehicle, RHO)

    def test_power_is_energy_over_time(self, vehicle):
        power = segment_battery_power_w(1000 / 120, 0.0, vehicle, RHO)
        assert power * 120 / 3600 == pytest.approx(segment_energy_wh(1000, 120, 0, 0, vehicle, RHO))
