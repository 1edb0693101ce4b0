"""Configuration models — every input of a planning run."""

from evroute.config.vehicle import MotorType, VehicleConfig
from evroute.config.station import ChargingStation, OutletGroup, StationLocation
from evroute.config.scenario import (
    Criterion,
    EnvironmentConfig,
    GraphConfig,
    PlannerConfig,
    SearchConfig,
    load_planner_config,
)

__all__ = [
    "MotorType",
    "VehicleConfig",
    "ChargingStation",
    "OutletGroup",
    "StationLocation",
    "Criterion",
    "EnvironmentConfig",
    "GraphConfig",
    "SearchConfig",
    "PlannerConfig",
    "load_planner_config",
]
