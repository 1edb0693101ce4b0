"""Result types — the contract between planner, experiment harness and API.

Everything the planner hands back is a pydantic model so the API can return
it as-is and the experiment harness can flatten it into a DataFrame row.
"""

from __future__ import annotations

from pydantic import BaseModel


# ═══════════════════════════════════════════════════════════════════════════
# Graph statistics
# ═══════════════════════════════════════════════════════════════════════════

class GraphStats(BaseModel):
    """Size of one augmented graph and how much of the directory made it in."""

    node_count: int
    edge_count: int

    stations_total: int
    """Stations the directory returned for the route."""
    stations_included: int
    """Stations with at least one usable outlet — each adds a sub-graph."""

    outlets_total: int
    """Outlet groups across all returned stations."""
    outlets_usable: int
    """Outlet groups that passed the capacity and pricing filter, after
    de-duplication by rounded capacity."""

    charge_level_nodes: int


# ═══════════════════════════════════════════════════════════════════════════
# Path
# ═══════════════════════════════════════════════════════════════════════════

class PathStep(BaseModel):
    """One label on the winning path, with cumulative values up to this node."""

    node_id: str
    node_kind: str
    """One-letter node kind: s, a, i, c, o, b, d."""

    duration_s: float
    distance_m: float
    energy_kwh: float
    """Net energy drawn from the battery so far; falls when charging."""
    cost: float
    soc_kwh: float

    charging_duration_s: float = 0.0
    charged_energy_kwh: float = 0.0
    charging_stops: int = 0

    coordinate: tuple[float, float] | None = None
    """(lon, lat) for nodes with a position."""
    station_slug: str | None = None
    charge_level_pct: int | None = None
    capacity_kw: float | None = None


class RouteSummary(BaseModel):
    """Headline numbers for one search."""

    criterion: str
    feasible: bool

    total_duration_s: float | None = None
    total_distance_m: float | None = None
    total_energy_kwh: float | None = None
    total_cost: float | None = None
    charging_duration_s: float | None = None
    charged_energy_kwh: float | None = None
    charging_stops: int | None = None

    final_soc_kwh: float | None = None
    final_soc_pct: float | None = None
    """Fraction of battery capacity at arrival."""

    labels_created: int
    labels_settled: int


class PlanResult(BaseModel):
    """Complete output of one planning run."""

    origin: tuple[float, float]
    destination: tuple[float, float]

    # --- Direct road route, no charging ---
    route_distance_m: float
    route_duration_s: float
    route_energy_wh: float
    segment_count: int

    graph: GraphStats
    summary: RouteSummary
    path: list[PathStep] = []

    packed_path: str | None = None
    """Hex of the label-codec records for the path, when requested."""
