"""Route segments — the atomic stretches of road the planner reasons about."""

from __future__ import annotations

import math
from dataclasses import dataclass

Coordinate = tuple[float, float]
"""(longitude, latitude) in degrees — GeoJSON order, as the routing engine returns it."""


@dataclass(frozen=True)
class RouteSegment:
    """One stretch of road between two consecutive route intersections."""

    start: Coordinate
    end: Coordinate
    distance_m: float
    duration_s: float
    elevation_start_m: float = 0.0
    elevation_end_m: float = 0.0
    energy_wh: float = 0.0
    """Net battery energy over the segment; negative when regenerating."""

    @property
    def speed_ms(self) -> float:
        return self.distance_m / self.duration_s if self.duration_s > 0 else 0.0

    @property
    def slope_angle(self) -> float:
        if self.distance_m <= 0:
            return 0.0
        return math.atan((self.elevation_end_m - self.elevation_start_m) / self.distance_m)


@dataclass(frozen=True)
class RouteTotals:
    """Summed distance, duration and energy of a run of segments."""

    distance_m: float
    duration_s: float
    energy_wh: float
