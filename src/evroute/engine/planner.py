"""Planner — one request from origin/destination to a PlanResult.

Pipeline::

    routing.route ─▶ segment_route ─▶ ┐
                                      ├─▶ build_station_graph ─▶ LabelSettingSearch
    directory.stations_along_route ─▶ ┘

Collaborator errors (HTTP failures, routing errors) propagate unchanged.
Infeasibility is not an error: the summary says ``feasible=False`` and the
path is empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from evroute.config.scenario import Criterion, PlannerConfig
from evroute.config.station import ChargingStation
from evroute.engine.battery import ChargingModel
from evroute.engine.graph_builder import build_station_graph, graph_stats
from evroute.engine.label_codec import encode_path
from evroute.engine.search import Label, LabelSettingSearch
from evroute.engine.segmenter import segment_route, summarize_segments
from evroute.interfaces import RoutingEngine, StationDirectory
from evroute.models.graph import ChargeLevelNode, EntryNode, ExitNode, StationGraph
from evroute.models.results import GraphStats, PathStep, PlanResult, RouteSummary
from evroute.models.segment import Coordinate, RouteSegment, RouteTotals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedRoute:
    """Everything up to (not including) the search. Reusable across criteria."""

    origin: Coordinate
    destination: Coordinate
    segments: list[RouteSegment]
    totals: RouteTotals
    stations: list[ChargingStation]
    graph: StationGraph
    stats: GraphStats


@dataclass(frozen=True)
class SearchOutcome:
    path: list[Label] | None
    summary: RouteSummary
    steps: list[PathStep]


def charging_model(config: PlannerConfig) -> ChargingModel:
    return ChargingModel(
        efficiency=config.search.charging_efficiency,
        taper_threshold=config.search.taper_threshold_pct,
        taper_rate=config.search.taper_rate_factor,
    )


def prepare_route(
    origin: Coordinate,
    destination: Coordinate,
    routing: RoutingEngine,
    directory: StationDirectory,
    config: PlannerConfig,
) -> PreparedRoute:
    """Route, segment, fetch stations and build the station graph."""
    env = config.environment
    route = routing.route(origin, destination)
    segments = segment_route(route, config.vehicle, env.air_density_kg_m3, env.gravity_ms2)
    totals = summarize_segments(segments)
    logger.info(
        "Route %s → %s: %.1f km, %.0f min, %.2f kWh",
        origin, destination, totals.distance_m / 1000, totals.duration_s / 60, totals.energy_wh / 1000,
    )

    stations = directory.stations_along_route(origin, destination)
    logger.info("Directory returned %d station(s)", len(stations))

    graph = build_station_graph(
        segments, stations, routing, config.vehicle, config.graph, env.air_density_kg_m3, env.gravity_ms2,
    )
    stats = graph_stats(graph, stations, config.graph.minimum_capacity_kw)
    return PreparedRoute(origin, destination, segments, totals, stations, graph, stats)


def _path_steps(graph: StationGraph, path: list[Label], initial_soc_kwh: float) -> list[PathStep]:
    steps = []
    for label in path:
        node = graph.node(label.node_id)
        steps.append(PathStep(
            node_id=label.node_id,
            node_kind=node.kind,
            duration_s=label.duration_s,
            distance_m=label.distance_m,
            energy_kwh=label.energy_kwh,
            cost=label.cost,
            soc_kwh=initial_soc_kwh - label.energy_kwh,
            charging_duration_s=label.charging_duration_s,
            charged_energy_kwh=label.charged_energy_kwh,
            charging_stops=label.charging_stops,
            coordinate=getattr(node, "coordinate", None),
            station_slug=node.slug if isinstance(node, (EntryNode, ExitNode)) else None,
            charge_level_pct=node.charge_level_pct if isinstance(node, ChargeLevelNode) else None,
            capacity_kw=node.capacity_kw if isinstance(node, ChargeLevelNode) else None,
        ))
    return steps


def plan_on_graph(
    graph: StationGraph,
    config: PlannerConfig,
    criterion: Criterion | None = None,
) -> SearchOutcome:
    """Run the search on a prebuilt graph and summarise the outcome."""
    criterion = criterion or config.search.criterion
    capacity = config.vehicle.battery_capacity_kwh
    search = LabelSettingSearch(
        graph,
        criterion,
        initial_soc_kwh=config.initial_soc_kwh,
        battery_capacity_kwh=capacity,
        min_soc_kwh=config.min_soc_kwh,
        fast_mode=config.search.fast_mode,
        charging=charging_model(config),
    )
    path = search.run()
    counts = {"labels_created": search.labels_created, "labels_settled": len(search.settled)}

    if path is None:
        return SearchOutcome(None, RouteSummary(criterion=criterion, feasible=False, **counts), [])

    last = path[-1]
    final_soc = config.initial_soc_kwh - last.energy_kwh
    summary = RouteSummary(
        criterion=criterion,
        feasible=True,
        total_duration_s=last.duration_s,
        total_distance_m=last.distance_m,
        total_energy_kwh=last.energy_kwh,
        total_cost=last.cost,
        charging_duration_s=last.charging_duration_s,
        charged_energy_kwh=last.charged_energy_kwh,
        charging_stops=last.charging_stops,
        final_soc_kwh=final_soc,
        final_soc_pct=final_soc / capacity,
        **counts,
    )
    return SearchOutcome(path, summary, _path_steps(graph, path, config.initial_soc_kwh))


def _plan_result(prepared: PreparedRoute, outcome: SearchOutcome, pack_path: bool) -> PlanResult:
    return PlanResult(
        origin=prepared.origin,
        destination=prepared.destination,
        route_distance_m=prepared.totals.distance_m,
        route_duration_s=prepared.totals.duration_s,
        route_energy_wh=prepared.totals.energy_wh,
        segment_count=len(prepared.segments),
        graph=prepared.stats,
        summary=outcome.summary,
        path=outcome.steps,
        packed_path=encode_path(outcome.path).hex() if pack_path and outcome.path else None,
    )


def plan_route(
    origin: Coordinate,
    destination: Coordinate,
    routing: RoutingEngine,
    directory: StationDirectory,
    config: PlannerConfig | None = None,
    criterion: Criterion | None = None,
    pack_path: bool = False,
) -> PlanResult:
    """Plan one trip for one criterion.

    Parameters
    ----------
    origin, destination : Coordinate
        (lon, lat) in degrees.
    routing, directory
        External collaborators. Their exceptions propagate.
    config : PlannerConfig, optional
        Defaults to the reference vehicle and search settings.
    criterion : str, optional
        Overrides ``config.search.criterion``.
    pack_path : bool
        Also return the path as hex-encoded label-codec records.
    """
    config = config or PlannerConfig()
    prepared = prepare_route(origin, destination, routing, directory, config)
    return _plan_result(prepared, plan_on_graph(prepared.graph, config, criterion), pack_path)


def plan_both_criteria(
    origin: Coordinate,
    destination: Coordinate,
    routing: RoutingEngine,
    directory: StationDirectory,
    config: PlannerConfig | None = None,
    pack_path: bool = False,
) -> dict[str, PlanResult]:
    """Plan for financial cost and for duration on one shared graph."""
    config = config or PlannerConfig()
    prepared = prepare_route(origin, destination, routing, directory, config)
    return {
        criterion: _plan_result(prepared, plan_on_graph(prepared.graph, config, criterion), pack_path)
        for criterion in ("cumulative_financial_cost", "cumulative_duration")
    }
