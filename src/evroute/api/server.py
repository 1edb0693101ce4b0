"""FastAPI server for the EV route-and-charge planner.

Run with:
    uvicorn evroute.api.server:app --reload --port 8000

Or:
    python -m evroute.api.server

Endpoints:
    GET  /health           — liveness probe
    GET  /schema           — JSON Schema for PlannerConfig
    GET  /config/defaults  — complete default PlannerConfig as JSON
    POST /energy/segment   — battery energy for one road segment
    POST /plan             — plan a trip (one or both criteria)
    POST /codec/decode     — unpack hex-encoded label records

The routing engine and the station directory are read from
``EVROUTE_OSRM_URL`` and ``EVROUTE_STATIONS_URL``.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import requests
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from evroute.clients.osrm import OsrmClient, RoutingError
from evroute.clients.stations import ChargingStationDirectory
from evroute.config.scenario import Criterion, PlannerConfig
from evroute.config.vehicle import VehicleConfig
from evroute.engine.errors import EnergyModelError, LabelCodecError
from evroute.engine.label_codec import decode_path
from evroute.engine.planner import plan_both_criteria, plan_route
from evroute.engine.segment_energy import segment_energy_wh
from evroute.interfaces import RoutingEngine, StationDirectory
from evroute.models.results import PlanResult
from evroute.models.segment import RouteSegment
from evroute.utils.logging import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_OSRM_URL = "http://localhost:5000"
DEFAULT_STATIONS_URL = "http://localhost:8080"


# ═══════════════════════════════════════════════════════════════════════════
# App setup
# ═══════════════════════════════════════════════════════════════════════════

app = FastAPI(
    title="EV Route & Charge Planner API",
    version="1.0",
    description=(
        "Energy-feasible, cost-optimal routes for battery-electric vehicles, "
        "with charging stops chosen by a label-setting search over the route "
        "and nearby charging stations."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ═══════════════════════════════════════════════════════════════════════════
# Request / response models
# ═══════════════════════════════════════════════════════════════════════════

class SegmentEnergyRequest(BaseModel):
    """Request body for /energy/segment."""
    distance_m: float = Field(..., ge=0, description="Segment length (m)")
    duration_s: float = Field(..., ge=0, description="Travel time (s)")
    elevation_start_m: float = Field(default=0.0, description="Elevation at the start (m)")
    elevation_end_m: float = Field(default=0.0, description="Elevation at the end (m)")
    vehicle: dict[str, Any] = Field(
        default_factory=dict,
        description="Partial VehicleConfig. Missing fields use the reference vehicle.",
    )
    air_density_kg_m3: float = Field(default=1.225, gt=0)


class SegmentEnergyResponse(BaseModel):
    energy_wh: float
    speed_ms: float
    slope_angle: float


class PlanRequest(BaseModel):
    """Request body for /plan. Coordinates are (lon, lat)."""
    origin: tuple[float, float]
    destination: tuple[float, float]
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Partial PlannerConfig. Example: {'search': {'initial_soc_pct': 0.8}}",
    )
    criterion: Criterion | None = Field(
        default=None, description="Overrides config.search.criterion",
    )
    both_criteria: bool = Field(
        default=False, description="Plan for financial cost and duration on one graph",
    )
    pack_path: bool = Field(default=False, description="Include hex-packed label records")


class PlanResponse(BaseModel):
    results: dict[str, PlanResult]


class DecodeRequest(BaseModel):
    hex: str = Field(..., description="Concatenated 25-byte label records, hex encoded")


# ═══════════════════════════════════════════════════════════════════════════
# Dependencies & helpers
# ═══════════════════════════════════════════════════════════════════════════

def get_routing_engine() -> RoutingEngine:
    return OsrmClient(os.environ.get("EVROUTE_OSRM_URL", DEFAULT_OSRM_URL))


def get_station_directory() -> StationDirectory:
    return ChargingStationDirectory(os.environ.get("EVROUTE_STATIONS_URL", DEFAULT_STATIONS_URL))


def _deep_merge(base: dict, overrides: dict) -> dict:
    """Recursively merge overrides into base dict."""
    for key, val in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(val, dict):
            _deep_merge(base[key], val)
        else:
            base[key] = val
    return base


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=exc.errors(include_url=False, include_context=False, include_input=False),
    )


def _build_config(overrides: dict[str, Any]) -> PlannerConfig:
    """PlannerConfig from partial overrides merged onto defaults.

    The vehicle's norm factor is left out of the defaults so it follows an
    overridden motor rating.
    """
    defaults = PlannerConfig().model_dump(exclude={"vehicle": {"norm_factor"}})
    _deep_merge(defaults, overrides)
    try:
        return PlannerConfig(**defaults)
    except ValidationError as exc:
        raise _validation_error(exc) from exc


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/")
def root():
    return {
        "name": "EV Route & Charge Planner API",
        "version": "1.0",
        "start_here": "GET /config/defaults",
        "docs": "GET /docs (interactive Swagger UI)",
    }


@app.get("/schema")
def get_schema():
    """Full JSON Schema for PlannerConfig — all inputs with types, defaults, constraints."""
    return PlannerConfig.model_json_schema()


@app.get("/config/defaults")
def get_defaults():
    """Complete default PlannerConfig as JSON."""
    return PlannerConfig().model_dump()


@app.post("/energy/segment", response_model=SegmentEnergyResponse)
def energy_for_segment(req: SegmentEnergyRequest):
    """Net battery energy for one segment with the given (or reference) vehicle."""
    try:
        vehicle = VehicleConfig(**req.vehicle)
    except ValidationError as exc:
        raise _validation_error(exc) from exc

    try:
        energy = segment_energy_wh(
            req.distance_m, req.duration_s, req.elevation_start_m, req.elevation_end_m,
            vehicle, req.air_density_kg_m3,
        )
    except EnergyModelError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    segment = RouteSegment(
        (0.0, 0.0), (0.0, 0.0), req.distance_m, req.duration_s, req.elevation_start_m, req.elevation_end_m, energy,
    )
    return SegmentEnergyResponse(energy_wh=energy, speed_ms=segment.speed_ms, slope_angle=segment.slope_angle)


@app.post("/plan", response_model=PlanResponse)
def plan(
    req: PlanRequest,
    routing: RoutingEngine = Depends(get_routing_engine),
    directory: StationDirectory = Depends(get_station_directory),
):
    """Plan a trip with charging stops.

    Infeasible trips are not errors: the summary reports ``feasible: false``.
    Failures of the routing engine or station directory return 502. A path
    too large for the label codec returns 422 when ``pack_path`` is set.
    """
    config = _build_config(req.config)
    try:
        if req.both_criteria:
            results = plan_both_criteria(req.origin, req.destination, routing, directory, config, req.pack_path)
        else:
            result = plan_route(
                req.origin, req.destination, routing, directory, config, req.criterion, req.pack_path,
            )
            results = {result.summary.criterion: result}
    except (requests.RequestException, RoutingError) as exc:
        logger.error("Planning %s → %s failed: %s", req.origin, req.destination, exc)
        raise HTTPException(status_code=502, detail=f"upstream service failed: {exc}") from exc
    except LabelCodecError as exc:
        raise HTTPException(status_code=422, detail=f"path cannot be packed: {exc}") from exc
    return PlanResponse(results=results)


@app.post("/codec/decode")
def decode_labels(req: DecodeRequest):
    """Unpack label-codec records back into label fields."""
    try:
        records = decode_path(bytes.fromhex(req.hex))
    except (ValueError, LabelCodecError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "labels": [
            {
                "node_id": r.node_id,
                "duration_s": r.duration_s,
                "energy_kwh": r.energy_kwh,
                "cost": r.cost,
                "predecessor_index": r.predecessor_index,
                "index": r.index,
                "preceding_node": r.preceding_node,
            }
            for r in records
        ],
    }


# ═══════════════════════════════════════════════════════════════════════════
# CLI entry point
# ═══════════════════════════════════════════════════════════════════════════

def main():
    """Run the API server with console logging at ``EVROUTE_LOG_LEVEL`` (default INFO)."""
    import uvicorn

    setup_logging(os.environ.get("EVROUTE_LOG_LEVEL", "INFO"))
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
