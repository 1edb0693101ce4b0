"""Top-level planner configuration — bundles every input of one planning run."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from evroute.config.vehicle import VehicleConfig

Criterion = Literal["cumulative_duration", "cumulative_financial_cost"]


class GraphConfig(BaseModel):
    """How station sub-graphs are laid out."""

    charge_level_step_pct: int = Field(
        default=10, ge=1, le=100,
        description="Spacing of candidate charge targets in percent of capacity. "
                    "10 → 10, 20, …, 100. Use 25 for high-volume batch runs.",
    )
    overhead_duration_s: float = Field(
        default=300.0, ge=0,
        description="Fixed time per charging stop for plugging in, paying and leaving (s)",
    )
    minimum_capacity_kw: float = Field(
        default=0.0, ge=0,
        description="Outlets below this power are ignored. Batch experiments use 22 kW.",
    )


class SearchConfig(BaseModel):
    """Label-setting search settings."""

    criterion: Criterion = Field(
        default="cumulative_duration",
        description="Cost field the search minimises. Financial cost ties break on duration.",
    )
    initial_soc_pct: float = Field(default=0.95, ge=0, le=1.0, description="SoC at departure (fraction)")
    min_soc_pct: float = Field(
        default=0.10, ge=0, le=1.0,
        description="Hard floor on SoC anywhere along the path (fraction of capacity)",
    )
    fast_mode: bool = Field(
        default=False,
        description="Prune labels dominated on the active cost field. Bounds the search "
                    "but may drop labels that are better on secondary fields.",
    )
    charging_efficiency: float = Field(default=0.9, gt=0, le=1.0, description="Grid-to-battery efficiency")
    taper_threshold_pct: float = Field(
        default=0.8, gt=0, le=1.0, description="SoC above which fast charging slows down",
    )
    taper_rate_factor: float = Field(
        default=0.5, gt=0, le=1.0, description="Fraction of outlet power delivered above the threshold",
    )


class EnvironmentConfig(BaseModel):
    """Ambient physical constants."""

    air_density_kg_m3: float = Field(default=1.225, gt=0, description="Air density (kg/m³), 1.225 at 15 °C")
    gravity_ms2: float = Field(default=9.81, gt=0, description="Gravitational acceleration (m/s²)")


class PlannerConfig(BaseModel):
    """Complete input bundle for one planning run."""

    vehicle: VehicleConfig = Field(default_factory=VehicleConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)

    @property
    def initial_soc_kwh(self) -> float:
        return self.search.initial_soc_pct * self.vehicle.battery_capacity_kwh

    @property
    def min_soc_kwh(self) -> float:
        return self.search.min_soc_pct * self.vehicle.battery_capacity_kwh


def load_planner_config(path: str | Path) -> PlannerConfig:
    """Load a YAML planner file; missing sections fall back to defaults."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return PlannerConfig(**data)
