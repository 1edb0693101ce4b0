"""Battery-side power flow and the charging curve."""

from __future__ import annotations

import math
from dataclasses import dataclass

from evroute.engine.errors import EnergyModelError


def battery_power_flow(motor_input_power_w: float, accessory_power_w: float) -> float:
    """Power leaving the battery before internal losses (W)."""
    return motor_input_power_w + accessory_power_w


def battery_terminal_power(power_flow_w: float, round_trip_efficiency: float) -> float:
    """Apply battery losses, split evenly between charge and discharge.

    Discharging draws ``P / √rte`` from the cells; charging stores
    ``P × √rte``.
    """
    if not 0 < round_trip_efficiency <= 1:
        raise EnergyModelError(f"round-trip efficiency must be within (0, 1], got {round_trip_efficiency}")
    loss = math.sqrt(round_trip_efficiency)
    if power_flow_w < 0:
        return power_flow_w * loss
    return power_flow_w / loss


@dataclass(frozen=True)
class ChargingModel:
    """Constant-power charging with a slower tail above ``taper_threshold``.

    Fast chargers back off near full; the tail is modelled as charging at
    ``taper_rate`` × outlet power once SoC passes ``taper_threshold``.
    """

    efficiency: float = 0.9
    taper_threshold: float = 0.8
    taper_rate: float = 0.5

    def __post_init__(self) -> None:
        if not 0 < self.efficiency <= 1:
            raise EnergyModelError(f"charging efficiency must be within (0, 1], got {self.efficiency}")
        if not 0 < self.taper_rate <= 1:
            raise EnergyModelError(f"taper rate must be within (0, 1], got {self.taper_rate}")
        if not 0 < self.taper_threshold <= 1:
            raise EnergyModelError(f"taper threshold must be within (0, 1], got {self.taper_threshold}")

    def charging_duration_s(
        self, soc_kwh: float, target_pct: float, capacity_kw: float, battery_capacity_kwh: float,
    ) -> float:
        """Seconds needed to go from ``soc_kwh`` to ``target_pct`` % of the battery.

        Returns 0 when the battery already holds at least the target.
        """
        if capacity_kw <= 0:
            raise EnergyModelError(f"outlet capacity must be positive, got {capacity_kw}")
        target_kwh = target_pct / 100 * battery_capacity_kwh
        if soc_kwh >= target_kwh:
            return 0.0

        taper_kwh = self.taper_threshold * battery_capacity_kwh
        fast_kwh = max(0.0, min(target_kwh, taper_kwh) - soc_kwh)
        slow_kwh = max(0.0, target_kwh - max(soc_kwh, taper_kwh))
        rate_kw = capacity_kw * self.efficiency
        hours = fast_kwh / rate_kw + slow_kwh / (rate_kw * self.taper_rate)
        return hours * 3600
