"""Batch experiment harness.

Draws random origin/destination pairs inside a bounding box, plans each for
financial cost and then for duration on the same graph, and collects one row
per run. A run whose collaborators fail is logged and recorded with its error;
the batch carries on. A path too large to pack keeps its scalar results and
records the codec error instead of the hex.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

import numpy as np
import pandas as pd
import requests

from evroute.clients.osrm import RoutingError
from evroute.config.scenario import PlannerConfig
from evroute.engine.errors import LabelCodecError
from evroute.engine.label_codec import encode_path
from evroute.engine.planner import plan_on_graph, prepare_route
from evroute.interfaces import RoutingEngine, StationDirectory

logger = logging.getLogger(__name__)

MAX_ROUTES = 1200

Bounds = tuple[float, float, float, float]
"""(min_lon, min_lat, max_lon, max_lat)."""

SWEDEN_BOUNDS: Bounds = (11.1, 55.4, 24.1, 69.0)

COLUMNS = [
    "job_id", "start_time", "end_time",
    "origin_lon", "origin_lat", "destination_lon", "destination_lat",
    "route_distance_m", "route_duration_s", "route_energy_wh",
    "node_count", "edge_count", "stations_total", "stations_included", "outlets_total", "outlets_usable",
    "optimized_cost", "optimized_cost_duration_s", "cost_path_hex",
    "optimized_duration_s", "optimized_duration_cost", "duration_path_hex",
    "error",
]


def random_point(rng: np.random.Generator, bounds: Bounds) -> tuple[float, float]:
    min_lon, min_lat, max_lon, max_lat = bounds
    return float(rng.uniform(min_lon, max_lon)), float(rng.uniform(min_lat, max_lat))


def run_single(
    origin: tuple[float, float],
    destination: tuple[float, float],
    routing: RoutingEngine,
    directory: StationDirectory,
    config: PlannerConfig,
) -> dict:
    """Plan one pair for both criteria and flatten the outcome into a row."""
    row: dict = dict.fromkeys(COLUMNS)
    row.update(
        job_id=uuid.uuid4().hex,
        start_time=datetime.now(timezone.utc),
        origin_lon=origin[0], origin_lat=origin[1],
        destination_lon=destination[0], destination_lat=destination[1],
    )
    try:
        prepared = prepare_route(origin, destination, routing, directory, config)
    except (requests.RequestException, RoutingError) as exc:
        logger.error("Run %s failed: %s", row["job_id"], exc)
        row.update(error=f"{type(exc).__name__}: {exc}", end_time=datetime.now(timezone.utc))
        return row

    row.update(
        route_distance_m=prepared.totals.distance_m,
        route_duration_s=prepared.totals.duration_s,
        route_energy_wh=prepared.totals.energy_wh,
        **prepared.stats.model_dump(exclude={"charge_level_nodes"}),
    )

    by_cost = plan_on_graph(prepared.graph, config, "cumulative_financial_cost")
    if by_cost.path:
        row.update(
            optimized_cost=by_cost.summary.total_cost,
            optimized_cost_duration_s=by_cost.summary.total_duration_s,
        )

    by_duration = plan_on_graph(prepared.graph, config, "cumulative_duration")
    if by_duration.path:
        row.update(
            optimized_duration_s=by_duration.summary.total_duration_s,
            optimized_duration_cost=by_duration.summary.total_cost,
        )

    try:
        if by_cost.path:
            row["cost_path_hex"] = encode_path(by_cost.path).hex()
        if by_duration.path:
            row["duration_path_hex"] = encode_path(by_duration.path).hex()
    except LabelCodecError as exc:
        logger.error("Run %s: path cannot be packed: %s", row["job_id"], exc)
        row["error"] = f"{type(exc).__name__}: {exc}"

    row["end_time"] = datetime.now(timezone.utc)
    return row


def run_experiments(
    n_routes: int,
    routing: RoutingEngine,
    directory: StationDirectory,
    config: PlannerConfig | None = None,
    bounds: Bounds = SWEDEN_BOUNDS,
    seed: int | None = None,
) -> pd.DataFrame:
    """Plan ``n_routes`` random trips.

    Parameters
    ----------
    n_routes : int
        Number of origin/destination pairs, 0 to 1200.
    routing, directory
        External collaborators.
    config : PlannerConfig, optional
        Planner settings. Batch runs usually set ``graph.minimum_capacity_kw``
        to 22 and a coarser ``charge_level_step_pct``.
    bounds : Bounds
        Sampling box for origins and destinations.
    seed : int, optional
        Seed for reproducible sampling.

    Returns
    -------
    pd.DataFrame
        One row per run, columns as in :data:`COLUMNS`.
    """
    if not 0 <= n_routes <= MAX_ROUTES:
        raise ValueError(f"n_routes must be within [0, {MAX_ROUTES}], got {n_routes}")
    config = config or PlannerConfig()
    rng = np.random.default_rng(seed)

    rows = []
    for i in range(n_routes):
        origin = random_point(rng, bounds)
        destination = random_point(rng, bounds)
        logger.info("Run %d/%d: %s → %s", i + 1, n_routes, origin, destination)
        rows.append(run_single(origin, destination, routing, directory, config))

    df = pd.DataFrame(rows, columns=COLUMNS)
    failed = int(df["error"].notna().sum()) if not df.empty else 0
    logger.info("Finished %d run(s), %d failed", len(df), failed)
    return df
