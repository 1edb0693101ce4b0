"""Augmented station graph — node variants, edges and the graph arena.

Each usable charging station *i* becomes a diamond hanging off the road
route::

    a_i ──────────────(bypass, free)──────────────▶ b_i
     │                                              ▲
     ▼ detour                                return │
    i_i ──▶ c_i-10-50 ─┐                            │
     ├───▶ c_i-20-50 ─┼──▶ o_i ─────────────────────┘
     └───▶ …         ─┘

so "skip the station" and "charge to level L on outlet K" compete as plain
edges. Nodes live in an arena keyed by their id string; edges refer to ids,
never to node objects.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import ClassVar, Union

from evroute.engine.errors import GraphConstructionError
from evroute.models.segment import Coordinate

START_ID = "s"
DESTINATION_ID = "d"


# ═══════════════════════════════════════════════════════════════════════════
# Node variants
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StartNode:
    coordinate: Coordinate
    kind: ClassVar[str] = "s"

    @property
    def node_id(self) -> str:
        return START_ID


@dataclass(frozen=True)
class DestinationNode:
    coordinate: Coordinate
    kind: ClassVar[str] = "d"

    @property
    def node_id(self) -> str:
        return DESTINATION_ID


@dataclass(frozen=True)
class ApproachNode:
    """Point on the route closest to station ``station_index``."""

    station_index: int
    coordinate: Coordinate
    kind: ClassVar[str] = "a"

    @property
    def node_id(self) -> str:
        return f"a{self.station_index}"


@dataclass(frozen=True)
class EntryNode:
    """Arrival at the station itself."""

    station_index: int
    slug: str
    coordinate: Coordinate
    kind: ClassVar[str] = "i"

    @property
    def node_id(self) -> str:
        return f"i{self.station_index}"


@dataclass(frozen=True)
class ChargeLevelNode:
    """Charge to ``charge_level_pct`` % on an outlet of ``capacity_kw``."""

    station_index: int
    charge_level_pct: int
    capacity_kw: float
    cost_per_kwh: float | None
    cost_per_minute: float | None
    kind: ClassVar[str] = "c"

    @property
    def node_id(self) -> str:
        return f"c{self.station_index}-{self.charge_level_pct}-{round(self.capacity_kw)}"


@dataclass(frozen=True)
class ExitNode:
    """Leaving the station after charging."""

    station_index: int
    slug: str
    coordinate: Coordinate
    kind: ClassVar[str] = "o"

    @property
    def node_id(self) -> str:
        return f"o{self.station_index}"


@dataclass(frozen=True)
class ReturnNode:
    """Back on the route, at the same point as the approach node."""

    station_index: int
    coordinate: Coordinate
    kind: ClassVar[str] = "b"

    @property
    def node_id(self) -> str:
        return f"b{self.station_index}"


GraphNode = Union[StartNode, DestinationNode, ApproachNode, EntryNode, ChargeLevelNode, ExitNode, ReturnNode]


@dataclass(frozen=True)
class Edge:
    """Directed edge. ``duration_s`` is None when it depends on the arriving SoC."""

    source: str
    target: str
    distance_m: float
    duration_s: float | None
    energy_wh: float
    """Positive = drawn from the battery."""


# ═══════════════════════════════════════════════════════════════════════════
# Arena
# ═══════════════════════════════════════════════════════════════════════════

class StationGraph:
    """Directed graph of route and station nodes, keyed by node id.

    Node insertion order is kept and is the order the builder emitted them.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, GraphNode] = {}
        self._out: dict[str, list[Edge]] = {}
        self._edge_count = 0

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    @property
    def node_order(self) -> list[str]:
        """Node ids in creation order."""
        return list(self._nodes)

    def add_node(self, node: GraphNode) -> str:
        node_id = node.node_id
        if node_id in self._nodes:
            raise GraphConstructionError(f"duplicate node id {node_id!r}")
        self._nodes[node_id] = node
        self._out[node_id] = []
        return node_id

    def add_edge(
        self,
        source: str,
        target: str,
        distance_m: float,
        duration_s: float | None,
        energy_wh: float,
    ) -> Edge:
        for node_id in (source, target):
            if node_id not in self._nodes:
                raise GraphConstructionError(f"edge {source}→{target} refers to unknown node {node_id!r}")
        edge = Edge(source, target, distance_m, duration_s, energy_wh)
        self._out[source].append(edge)
        self._edge_count += 1
        return edge

    def node(self, node_id: str) -> GraphNode:
        return self._nodes[node_id]

    def nodes(self) -> Iterator[GraphNode]:
        return iter(self._nodes.values())

    def out_edges(self, node_id: str) -> list[Edge]:
        return self._out[node_id]

    def in_edges(self, node_id: str) -> list[Edge]:
        return [e for edges in self._out.values() for e in edges if e.target == node_id]

    def edges(self) -> Iterator[Edge]:
        for edges in self._out.values():
            yield from edges

    def charge_level_nodes(self, station_index: int) -> list[ChargeLevelNode]:
        return [
            n for n in self._nodes.values()
            if isinstance(n, ChargeLevelNode) and n.station_index == station_index
        ]

    def station_indices(self) -> list[int]:
        """Indices of stations that made it into the graph, in route order."""
        return [n.station_index for n in self._nodes.values() if isinstance(n, EntryNode)]
