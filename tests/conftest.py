"""Shared test fixtures — reference vehicle, synthetic routes and fake collaborators."""

from __future__ import annotations

import pytest

from evroute.config import (
    ChargingStation,
    GraphConfig,
    OutletGroup,
    PlannerConfig,
    StationLocation,
    VehicleConfig,
)
from evroute.engine.segmenter import haversine_m
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


# ═══════════════════════════════════════════════════════════════════════════
# Synthetic routing-engine payloads
# ═══════════════════════════════════════════════════════════════════════════

def make_route(
    locations: list[tuple[float, float]],
    distances: list[float],
    durations: list[float],
    elevations: list[float] | None = None,
) -> dict:
    """OSRM-shaped route with one annotated intersection per segment.

    ``locations`` has one more entry than ``distances``/``durations``: the
    last location is where the route ends.
    """
    intersections = []
    for k, (loc, dist, dur) in enumerate(zip(locations, distances, durations)):
        x = {"location": list(loc), "distance": dist, "duration": dur}
        if elevations is not None:
            x["elevation"] = elevations[k]
        intersections.append(x)
    return {
        "distance": sum(distances),
        "duration": sum(durations),
        "geometry": {"type": "LineString", "coordinates": [list(loc) for loc in locations]},
        "legs": [{
            "distance": sum(distances),
            "duration": sum(durations),
            "steps": [{
                "distance": sum(distances),
                "duration": sum(durations),
                "intersections": intersections,
            }],
        }],
    }


# Straight east along the equator, four 10 km / 10 min flat segments.
TRIP_ORIGIN = (0.0, 0.0)
TRIP_DESTINATION = (0.4, 0.0)
TRIP_LOCATIONS = [(0.0, 0.0), (0.1, 0.0), (0.2, 0.0), (0.3, 0.0), (0.4, 0.0)]

DETOUR_DISTANCE_M = 500.0
DETOUR_DURATION_S = 60.0


class FakeRoutingEngine:
    """Returns the trip route for the trip, a fixed short detour for anything else."""

    def __init__(self, trip: tuple = (TRIP_ORIGIN, TRIP_DESTINATION), route: dict | None = None) -> None:
        self.trip = trip
        self.trip_route = route or make_route(TRIP_LOCATIONS, [10_000.0] * 4, [600.0] * 4)
        self.calls: list[tuple] = []

    def route(self, origin, destination) -> dict:
        self.calls.append((tuple(origin), tuple(destination)))
        if (tuple(origin), tuple(destination)) == self.trip:
            return self.trip_route
        return make_route([origin, destination], [DETOUR_DISTANCE_M], [DETOUR_DURATION_S])


class StraightLineRouter:
    """Routes any pair as one straight segment at 60 km/h."""

    def __init__(self) -> None:
        self.calls = 0

    def route(self, origin, destination) -> dict:
        self.calls += 1
        distance = float(haversine_m(origin[0], origin[1], destination[0], destination[1]))
        return make_route([origin, destination], [distance], [distance / (60 / 3.6)])


class FakeDirectory:
    def __init__(self, stations: list[ChargingStation] | None = None) -> None:
        self.stations = stations or []
        self.calls = 0

    def stations_along_route(self, origin, destination) -> list[ChargingStation]:
        self.calls += 1
        return list(self.stations)


# ═══════════════════════════════════════════════════════════════════════════
# Config fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def vehicle() -> VehicleConfig:
    """Reference compact EV (1663 kg, 80 kW induction motor, 24 kWh)."""
    return VehicleConfig()


@pytest.fixture
def planner_config() -> PlannerConfig:
    return PlannerConfig(graph=GraphConfig(charge_level_step_pct=25))


def station(slug: str, lon: float, lat: float, outlets: list[dict]) -> ChargingStation:
    return ChargingStation(
        slug=slug,
        title=slug.title(),
        location=StationLocation(latitude=lat, longitude=lon),
        outlets=[OutletGroup(**o) for o in outlets],
    )


@pytest.fixture
def trip_stations() -> list[ChargingStation]:
    """Three stations along the trip, deliberately out of route order.

    ``beta`` near km 30 has one usable outlet group (50 and 50.2 kW round to
    the same id). ``gamma`` near km 20 has no priced outlet. ``alpha`` near
    km 10 has a 50 kW and a 150 kW group.
    """
    return [
        station("beta", 0.3, 0.001, [
            {"capacity": 50, "costKwh": 0.4},
            {"capacity": 50.2, "costKwh": 0.3},
        ]),
        station("gamma", 0.2, 0.001, [{"capacity": 50}]),
        station("alpha", 0.1, 0.001, [
            {"capacity": 50, "costKwh": 0.5},
            {"capacity": 150, "costKwh": 0.8, "costMin": 0.0},
        ]),
    ]


# ═══════════════════════════════════════════════════════════════════════════
# Hand-built station graphs
# ═══════════════════════════════════════════════════════════════════════════

def single_station_graph(
    energy_to_station_wh: float,
    energy_after_station_wh: float,
    outlets: list[tuple[float, float | None, float | None]] = ((50.0, 0.5, None),),
    levels: range = range(10, 101, 10),
) -> StationGraph:
    """s ─(600 s)→ a0 ─→ [i0 → c0-* → o0] ─→ b0 ─(600 s)→ d.

    Detours take 60 s each way and cost no energy; plugging in takes 300 s.
    ``outlets`` holds (capacity kW, price per kWh, price per minute).
    """
    g = StationGraph()
    g.add_node(StartNode((0.0, 0.0)))
    g.add_node(ApproachNode(0, (0.1, 0.0)))
    g.add_edge("s", "a0", 10_000.0, 600.0, energy_to_station_wh)
    g.add_node(EntryNode(0, "alpha", (0.1, 0.001)))
    g.add_edge("a0", "i0", 0.0, 60.0, 0.0)
    g.add_node(ExitNode(0, "alpha", (0.1, 0.001)))
    for capacity, per_kwh, per_min in outlets:
        for level in levels:
            c = g.add_node(ChargeLevelNode(0, level, capacity, per_kwh, per_min))
            g.add_edge("i0", c, 0.0, None, 0.0)
            g.add_edge(c, "o0", 0.0, 300.0, 0.0)
    g.add_node(ReturnNode(0, (0.1, 0.0)))
    g.add_edge("o0", "b0", 0.0, 60.0, 0.0)
    g.add_edge("a0", "b0", 0.0, 0.0, 0.0)
    g.add_node(DestinationNode((0.2, 0.0)))
    g.add_edge("b0", "d", 10_000.0, 600.0, energy_after_station_wh)
    return g


def distant_stations(n: int) -> list[ChargingStation]:
    """``n`` priced 50 kW stations about 160 km off any route in the 0.1° test box.

    Every station makes it into the graph, but detours are too long for a
    charging branch to settle before the destination.
    """
    return [station(f"remote-{k}", 0.05, 1.5, [{"capacity": 50, "costKwh": 0.4}]) for k in range(n)]
