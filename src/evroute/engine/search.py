"""Label-setting search over the augmented station graph.

Resource-constrained shortest path after Huber & Bogenberger (2015),
Algorithm A. A label is one partial path ending at a node; labels are kept in
an open heap ordered by the active criterion and moved to the settled list
when popped. The first settled label at ``d`` is optimal.

Resource constraint: at no label may the battery fall below ``min_soc_kwh``,
i.e. ``initial_soc − cumulative_energy ≥ min_soc``. SoC never rises above
capacity: energy regenerated into a full battery is lost.

Per criterion the heap key is:

  cumulative_duration        (duration, index)
  cumulative_financial_cost  (cost, duration, index)
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass

from evroute.config.scenario import Criterion
from evroute.engine.battery import ChargingModel
from evroute.engine.errors import GraphConstructionError
from evroute.models.graph import (
    DESTINATION_ID,
    START_ID,
    ChargeLevelNode,
    Edge,
    ExitNode,
    StationGraph,
)

logger = logging.getLogger(__name__)

CRITERIA: tuple[str, ...] = ("cumulative_duration", "cumulative_financial_cost")


@dataclass(frozen=True)
class Label:
    """Cumulative state of one partial path. Never mutated after creation."""

    node_id: str
    duration_s: float = 0.0
    distance_m: float = 0.0
    energy_kwh: float = 0.0
    """Net energy drawn from the battery (kWh); charging lowers it."""
    cost: float = 0.0
    charging_duration_s: float = 0.0
    charged_energy_kwh: float = 0.0
    charging_stops: int = 0
    preceding_node: str | None = None
    predecessor_index: int = 0
    index: int = 0


@dataclass(frozen=True)
class _Step:
    """What traversing one edge adds to a label."""

    duration_s: float
    distance_m: float
    energy_kwh: float
    cost: float = 0.0
    charging_duration_s: float = 0.0
    charged_energy_kwh: float = 0.0
    charging_stops: int = 0


class LabelSettingSearch:
    """One search run. Owns its heap, label counter and label registry.

    Parameters
    ----------
    graph : StationGraph
        Graph with ``s`` and ``d`` nodes.
    criterion : str
        ``"cumulative_duration"`` or ``"cumulative_financial_cost"``.
    initial_soc_kwh : float
        Energy in the battery at ``s``.
    battery_capacity_kwh : float
        Usable battery capacity.
    min_soc_kwh : float, optional
        Hard floor on SoC. Defaults to 10 % of capacity.
    fast_mode : bool
        Prune labels dominated on the active criterion. Faster, but a label
        that loses on the criterion and wins on SoC is dropped, so a feasible
        path can be missed on tight batteries.
    charging : ChargingModel
        Charging curve for charge-level edges.
    """

    def __init__(
        self,
        graph: StationGraph,
        criterion: Criterion,
        initial_soc_kwh: float,
        battery_capacity_kwh: float,
        min_soc_kwh: float | None = None,
        fast_mode: bool = False,
        charging: ChargingModel | None = None,
    ) -> None:
        if criterion not in CRITERIA:
            raise ValueError(f"unknown criterion {criterion!r}, expected one of {CRITERIA}")
        if battery_capacity_kwh <= 0:
            raise ValueError(f"battery capacity must be positive, got {battery_capacity_kwh}")
        if min_soc_kwh is None:
            min_soc_kwh = 0.1 * battery_capacity_kwh
        if not 0 <= min_soc_kwh <= initial_soc_kwh <= battery_capacity_kwh:
            raise ValueError(
                f"require 0 ≤ min_soc ≤ initial_soc ≤ capacity, got "
                f"{min_soc_kwh} / {initial_soc_kwh} / {battery_capacity_kwh} kWh",
            )
        for node_id in (START_ID, DESTINATION_ID):
            if node_id not in graph:
                raise ValueError(f"graph has no {node_id!r} node")

        self.graph = graph
        self.criterion = criterion
        self.initial_soc_kwh = initial_soc_kwh
        self.battery_capacity_kwh = battery_capacity_kwh
        self.min_soc_kwh = min_soc_kwh
        self.fast_mode = fast_mode
        self.charging = charging or ChargingModel()

        self._counter = itertools.count()
        self._open: list[tuple] = []
        self._labels: dict[int, Label] = {}
        self._settled: list[Label] = []
        self._evicted: set[int] = set()
        self._open_at: dict[str, dict[int, Label]] = {}
        self._settled_at: dict[str, list[Label]] = {}
        self._ran = False
        # Cumulative energy at which the battery is full; regeneration stops there.
        self._full_kwh = initial_soc_kwh - battery_capacity_kwh

    # ── public ──────────────────────────────────────────────────────────

    @property
    def labels_created(self) -> int:
        return len(self._labels)

    @property
    def settled(self) -> list[Label]:
        """Settled labels in pop order."""
        return list(self._settled)

    def run(self) -> list[Label] | None:
        """Search for the optimal path. ``None`` when no path is feasible."""
        if self._ran:
            raise RuntimeError("a LabelSettingSearch instance runs once")
        self._ran = True

        self._push(Label(START_ID, index=next(self._counter)))

        while self._open:
            *_, index = heapq.heappop(self._open)
            if index in self._evicted:
                continue
            current = self._labels[index]
            self._open_at[current.node_id].pop(index, None)
            self._settled.append(current)
            self._settled_at.setdefault(current.node_id, []).append(current)

            if current.node_id == DESTINATION_ID:
                path = self._reconstruct(current)
                logger.info(
                    "Found %s path: %d nodes, %.0f s, cost %.2f (%d labels created, %d settled)",
                    self.criterion, len(path), current.duration_s, current.cost,
                    self.labels_created, len(self._settled),
                )
                return path

            soc = self.initial_soc_kwh - current.energy_kwh
            for edge in self.graph.out_edges(current.node_id):
                step = self._traverse(edge, soc)
                if step is None:
                    continue
                label = self._extend(current, edge.target, step)
                if self.initial_soc_kwh - label.energy_kwh < self.min_soc_kwh:
                    continue
                if self.fast_mode and not self._admit(label):
                    continue
                self._push(label)

        logger.warning(
            "No feasible %s path (%d labels created, %d settled)",
            self.criterion, self.labels_created, len(self._settled),
        )
        return None

    # ── internals ───────────────────────────────────────────────────────

    def _key(self, label: Label) -> float:
        return label.duration_s if self.criterion == "cumulative_duration" else label.cost

    def _push(self, label: Label) -> None:
        self._labels[label.index] = label
        self._open_at.setdefault(label.node_id, {})[label.index] = label
        if self.criterion == "cumulative_duration":
            entry = (label.duration_s, label.index)
        else:
            entry = (label.cost, label.duration_s, label.index)
        heapq.heappush(self._open, entry)

    def _traverse(self, edge: Edge, soc_kwh: float) -> _Step | None:
        """Cost of ``edge`` for a label holding ``soc_kwh``. None = not worth expanding."""
        target = self.graph.node(edge.target)

        if isinstance(target, ChargeLevelNode):
            target_kwh = target.charge_level_pct / 100 * self.battery_capacity_kwh
            if target_kwh <= soc_kwh:
                return None
            duration = self.charging.charging_duration_s(
                soc_kwh, target.charge_level_pct, target.capacity_kw, self.battery_capacity_kwh,
            )
            charged = target_kwh - soc_kwh
            cost = duration / 60 * (target.cost_per_minute or 0.0) + charged * (target.cost_per_kwh or 0.0)
            return _Step(
                duration_s=duration,
                distance_m=edge.distance_m,
                energy_kwh=-charged,
                cost=cost,
                charging_duration_s=duration,
                charged_energy_kwh=charged,
                charging_stops=1,
            )

        if edge.duration_s is None:
            kind = "overhead" if isinstance(target, ExitNode) else "road"
            raise GraphConstructionError(f"{kind} edge {edge.source}→{edge.target} has no duration")
        return _Step(edge.duration_s, edge.distance_m, edge.energy_wh / 1000)

    def _extend(self, label: Label, node_id: str, step: _Step) -> Label:
        return Label(
            node_id=node_id,
            duration_s=label.duration_s + step.duration_s,
            distance_m=label.distance_m + step.distance_m,
            energy_kwh=max(label.energy_kwh + step.energy_kwh, self._full_kwh),
            cost=label.cost + step.cost,
            charging_duration_s=label.charging_duration_s + step.charging_duration_s,
            charged_energy_kwh=label.charged_energy_kwh + step.charged_energy_kwh,
            charging_stops=label.charging_stops + step.charging_stops,
            preceding_node=label.node_id,
            predecessor_index=label.index,
            index=next(self._counter),
        )

    def _admit(self, label: Label) -> bool:
        """Dominance on the active criterion only. Evicts beaten open labels."""
        key = self._key(label)
        open_here = self._open_at.get(label.node_id, {})
        for other in (*open_here.values(), *self._settled_at.get(label.node_id, ())):
            if self._key(other) < key:
                return False
        for index in [i for i, other in open_here.items() if self._key(other) > key]:
            del open_here[index]
            self._evicted.add(index)
        return True

    def _reconstruct(self, label: Label) -> list[Label]:
        path = [label]
        while label.preceding_node is not None:
            label = self._labels[label.predecessor_index]
            path.insert(0, label)
        return path


def find_path(
    graph: StationGraph,
    criterion: Criterion,
    initial_soc_kwh: float,
    battery_capacity_kwh: float,
    min_soc_kwh: float | None = None,
    fast_mode: bool = False,
    charging: ChargingModel | None = None,
) -> list[Label] | None:
    """Run one :class:`LabelSettingSearch` and return its path, or None."""
    return LabelSettingSearch(
        graph, criterion, initial_soc_kwh, battery_capacity_kwh, min_soc_kwh, fast_mode, charging,
    ).run()
