"""Augmented graph builder.

Threads the road route through every usable charging station:

  s → a0 → (i0 → c0-* → o0 → b0 | bypass a0 → b0) → a1 → … → d

Road edges between route points carry the prefix-sum distance, duration and
energy of the segments in between. Detours to and from a station are routed
by the routing engine and segmented with the same vehicle, two blocking
calls per station, in route order.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from evroute.config.scenario import GraphConfig
from evroute.config.station import ChargingStation
from evroute.config.vehicle import VehicleConfig
from evroute.engine.segment_energy import segment_energy_wh
from evroute.engine.segmenter import (
    boundary_points,
    nearest_boundary_index,
    segment_route,
    summarize_segments,
)
from evroute.engine.traction import GRAVITY
from evroute.interfaces import RoutingEngine
from evroute.models.graph import (
    ApproachNode,
    ChargeLevelNode,
    DestinationNode,
    EntryNode,
    ExitNode,
    ReturnNode,
    StartNode,
    StationGraph,
)
from evroute.models.results import GraphStats
from evroute.models.segment import Coordinate, RouteSegment, RouteTotals

logger = logging.getLogger(__name__)


class _RoadCosts:
    """Prefix sums over segment distance, duration and energy."""

    def __init__(self, segments: Sequence[RouteSegment]) -> None:
        self.distance = np.concatenate(([0.0], np.cumsum([s.distance_m for s in segments])))
        self.duration = np.concatenate(([0.0], np.cumsum([s.duration_s for s in segments])))
        self.energy = np.concatenate(([0.0], np.cumsum([s.energy_wh for s in segments])))

    def between(self, start: int, end: int) -> tuple[float, float, float]:
        """Road cost from boundary ``start`` to boundary ``end`` (start ≤ end)."""
        return (
            float(self.distance[end] - self.distance[start]),
            float(self.duration[end] - self.duration[start]),
            float(self.energy[end] - self.energy[start]),
        )


def _leg_totals(
    route: dict, vehicle: VehicleConfig, air_density: float, gravity: float,
) -> RouteTotals:
    """Distance, duration and energy of a routed detour leg."""
    has_intersections = any(
        step.get("intersections") for leg in route.get("legs", []) for step in leg.get("steps", [])
    )
    if has_intersections:
        return summarize_segments(segment_route(route, vehicle, air_density, gravity))
    distance = float(route.get("distance", 0.0))
    duration = float(route.get("duration", 0.0))
    return RouteTotals(distance, duration, segment_energy_wh(distance, duration, 0.0, 0.0, vehicle, air_density, gravity))


def charge_levels(step_pct: int) -> list[int]:
    """Candidate charge targets: step, 2·step, … up to 100 %."""
    return list(range(step_pct, 101, step_pct))


def build_station_graph(
    segments: Sequence[RouteSegment],
    stations: Sequence[ChargingStation],
    routing: RoutingEngine,
    vehicle: VehicleConfig,
    config: GraphConfig | None = None,
    air_density: float = 1.225,
    gravity: float = GRAVITY,
) -> StationGraph:
    """Build the augmented graph for one route.

    Parameters
    ----------
    segments : Sequence[RouteSegment]
        Energy-annotated road segments, in travel order.
    stations : Sequence[ChargingStation]
        Candidate stations, any order. Included stations are numbered 0, 1, …
        in route order; stations without a usable outlet take no number.
    routing : RoutingEngine
        Used for the station detours. Its exceptions propagate.
    vehicle : VehicleConfig
        Vehicle used to price the detours.
    config : GraphConfig
        Charge-level spacing, stop overhead and outlet filter.

    Returns
    -------
    StationGraph
        Graph with nodes ``s`` and ``d`` and one sub-graph per usable station.
    """
    config = config or GraphConfig()
    points = boundary_points(segments)
    road = _RoadCosts(segments)
    levels = charge_levels(config.charge_level_step_pct)

    graph = StationGraph()
    frontier = graph.add_node(StartNode(tuple(points[0].tolist())))
    frontier_index = 0

    placed = sorted(
        ((nearest_boundary_index(points, st.location.longitude, st.location.latitude), st) for st in stations),
        key=lambda pair: pair[0],
    )

    i = 0
    for k, station in placed:
        outlets = station.usable_outlets(config.minimum_capacity_kw)
        if not outlets:
            logger.debug("Skipping station %s: no usable outlets", station.slug)
            continue

        near: Coordinate = tuple(points[k].tolist())
        site: Coordinate = (station.location.longitude, station.location.latitude)

        # --- Road up to the station's nearest route point ---
        a = graph.add_node(ApproachNode(i, near))
        graph.add_edge(frontier, a, *road.between(frontier_index, k))

        # --- Detour to the station ---
        entry = graph.add_node(EntryNode(i, station.slug, site))
        there = _leg_totals(routing.route(near, site), vehicle, air_density, gravity)
        graph.add_edge(a, entry, there.distance_m, there.duration_s, there.energy_wh)

        exit_ = graph.add_node(ExitNode(i, station.slug, site))

        # --- Charge-level choices ---
        for outlet in outlets:
            for level in levels:
                c = graph.add_node(
                    ChargeLevelNode(i, level, outlet.capacity_kw, outlet.cost_per_kwh, outlet.cost_per_minute),
                )
                graph.add_edge(entry, c, 0.0, None, 0.0)
                graph.add_edge(c, exit_, 0.0, config.overhead_duration_s, 0.0)

        # --- Back to the route, or bypass ---
        b = graph.add_node(ReturnNode(i, near))
        back = _leg_totals(routing.route(site, near), vehicle, air_density, gravity)
        graph.add_edge(exit_, b, back.distance_m, back.duration_s, back.energy_wh)
        graph.add_edge(a, b, 0.0, 0.0, 0.0)

        logger.debug(
            "Station %s → index %d at boundary %d: %d outlet(s) × %d level(s), detour %.0f m + %.0f m",
            station.slug, i, k, len(outlets), len(levels), there.distance_m, back.distance_m,
        )
        frontier, frontier_index = b, k
        i += 1

    last = len(points) - 1
    d = graph.add_node(DestinationNode(tuple(points[last].tolist())))
    graph.add_edge(frontier, d, *road.between(frontier_index, last))

    logger.info(
        "Built station graph: %d nodes, %d edges, %d/%d stations",
        graph.node_count, graph.edge_count, len(graph.station_indices()), len(stations),
    )
    return graph


def graph_stats(
    graph: StationGraph, stations: Sequence[ChargingStation], minimum_capacity_kw: float = 0.0,
) -> GraphStats:
    return GraphStats(
        node_count=graph.node_count,
        edge_count=graph.edge_count,
        stations_total=len(stations),
        stations_included=len(graph.station_indices()),
        outlets_total=sum(len(st.outlets) for st in stations),
        outlets_usable=sum(len(st.usable_outlets(minimum_capacity_kw)) for st in stations),
        charge_level_nodes=sum(isinstance(n, ChargeLevelNode) for n in graph.nodes()),
    )
