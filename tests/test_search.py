"""Tests for the label-setting search.

Graphs come from ``single_station_graph``: 10 min to the station's route
point, 1 min detour each way, 5 min plugging overhead, 10 min to the
destination. Battery 24 kWh, start at 95 % (22.8 kWh), floor 10 % (2.4 kWh).
"""

from __future__ import annotations

import logging

import pytest

from conftest import single_station_graph
from evroute.engine.battery import ChargingModel
from evroute.engine.errors import GraphConstructionError
from evroute.engine.search import Label, LabelSettingSearch, find_path
from evroute.models.graph import ApproachNode, DestinationNode, StartNode, StationGraph

CAPACITY = 24.0
INITIAL = 22.8
MIN_SOC = 2.4


def nodes(path: list[Label]) -> list[str]:
    return [label.node_id for label in path]


# ═══════════════════════════════════════════════════════════════════════════
# No charging needed
# ═══════════════════════════════════════════════════════════════════════════

class TestBypass:
    """10 kWh trip with 20.4 kWh usable: skip the station."""

    @pytest.mark.parametrize("criterion", ["cumulative_duration", "cumulative_financial_cost"])
    def test_takes_bypass(self, criterion):
        graph = single_station_graph(5_000, 5_000)
        path = find_path(graph, criterion, INITIAL, CAPACITY)
        assert nodes(path) == ["s", "a0", "b0", "d"]
        assert path[-1].duration_s == 1_200.0
        assert path[-1].cost == 0.0
        assert path[-1].energy_kwh == pytest.approx(10.0)
        assert path[-1].charging_stops == 0

    def test_start_label(self):
        path = find_path(single_station_graph(5_000, 5_000), "cumulative_duration", INITIAL, CAPACITY)
        start = path[0]
        assert start.node_id == "s"
        assert start.preceding_node is None
        assert (start.duration_s, start.energy_kwh, start.cost, start.index) == (0.0, 0.0, 0.0, 0)

    def test_predecessor_chain(self):
        path = find_path(single_station_graph(5_000, 5_000), "cumulative_duration", INITIAL, CAPACITY)
        for prev, label in zip(path, path[1:]):
            assert label.preceding_node == prev.node_id
            assert label.predecessor_index == prev.index
            assert label.index > prev.index


# ═══════════════════════════════════════════════════════════════════════════
# Charging needed
# ═══════════════════════════════════════════════════════════════════════════

class TestChargingStop:
    """15 kWh to the station leaves 7.8 kWh; another 10 kWh follows.

    Reaching ``d`` above 2.4 kWh needs ≥ 12.4 kWh at ``b0``, so 60 % (14.4 kWh)
    is the lowest usable level. 7.8 → 14.4 kWh at 50 kW × 0.9 = 528 s.
    """

    def test_duration_optimal_path(self):
        graph = single_station_graph(15_000, 10_000)
        path = find_path(graph, "cumulative_duration", INITIAL, CAPACITY)
        assert nodes(path) == ["s", "a0", "i0", "c0-60-50", "o0", "b0", "d"]
        # 600 + 60 + 528 + 300 + 60 + 600
        assert path[-1].duration_s == pytest.approx(2_148.0)
        assert path[-1].charging_duration_s == pytest.approx(528.0)
        assert path[-1].charged_energy_kwh == pytest.approx(6.6)
        assert path[-1].charging_stops == 1
        # 6.6 kWh × 0.5 per kWh
        assert path[-1].cost == pytest.approx(3.3)

    def test_cost_optimal_path(self):
        graph = single_station_graph(15_000, 10_000)
        path = find_path(graph, "cumulative_financial_cost", INITIAL, CAPACITY)
        assert nodes(path)[3] == "c0-60-50"
        assert path[-1].cost == pytest.approx(3.3)

    def test_criteria_pick_different_outlets(self):
        # 150 kW at 0.8 per kWh versus 50 kW at 0.5 per kWh.
        graph = single_station_graph(15_000, 10_000, outlets=[(50.0, 0.5, None), (150.0, 0.8, None)])
        fastest = find_path(graph, "cumulative_duration", INITIAL, CAPACITY)
        cheapest = find_path(graph, "cumulative_financial_cost", INITIAL, CAPACITY)
        assert nodes(fastest)[3] == "c0-60-150"
        assert nodes(cheapest)[3] == "c0-60-50"
        # 6.6 kWh at 135 kW = 176 s
        assert fastest[-1].duration_s == pytest.approx(600 + 60 + 176 + 300 + 60 + 600)
        assert fastest[-1].cost == pytest.approx(5.28)
        assert cheapest[-1].duration_s > fastest[-1].duration_s

    def test_time_based_price(self):
        graph = single_station_graph(15_000, 10_000, outlets=[(50.0, None, 0.6)])
        path = find_path(graph, "cumulative_financial_cost", INITIAL, CAPACITY)
        # 528 s = 8.8 min × 0.6
        assert path[-1].cost == pytest.approx(5.28)

    def test_soc_never_below_floor(self):
        graph = single_station_graph(15_000, 10_000)
        path = find_path(graph, "cumulative_duration", INITIAL, CAPACITY)
        assert all(INITIAL - label.energy_kwh >= MIN_SOC - 1e-9 for label in path)

    def test_charging_lowers_cumulative_energy(self):
        graph = single_station_graph(15_000, 10_000)
        path = find_path(graph, "cumulative_duration", INITIAL, CAPACITY)
        at_station, charged = path[2], path[3]
        assert charged.energy_kwh == pytest.approx(at_station.energy_kwh - 6.6)

    def test_levels_at_or_below_soc_not_expanded(self):
        graph = single_station_graph(15_000, 10_000)
        search = LabelSettingSearch(graph, "cumulative_duration", INITIAL, CAPACITY)
        search.run()
        reached = {label.node_id for label in search.settled}
        # SoC 7.8 kWh at i0: 10/20/30 % (2.4/4.8/7.2 kWh) are not worth a stop.
        assert not reached & {"c0-10-50", "c0-20-50", "c0-30-50"}
        assert "c0-40-50" in reached

    def test_custom_charging_model(self):
        graph = single_station_graph(15_000, 10_000)
        path = find_path(
            graph, "cumulative_duration", INITIAL, CAPACITY, charging=ChargingModel(efficiency=1.0),
        )
        # 6.6 kWh at 50 kW = 475.2 s
        assert path[-1].charging_duration_s == pytest.approx(475.2)


# ═══════════════════════════════════════════════════════════════════════════
# Infeasibility & fast mode
# ═══════════════════════════════════════════════════════════════════════════

class TestInfeasible:

    def test_cannot_reach_station(self):
        # 21 kWh to the station leaves 1.8 kWh < 2.4 kWh floor.
        graph = single_station_graph(21_000, 1_000)
        assert find_path(graph, "cumulative_duration", INITIAL, CAPACITY) is None

    def test_full_charge_not_enough(self):
        graph = single_station_graph(5_000, 23_000)
        assert find_path(graph, "cumulative_financial_cost", INITIAL, CAPACITY) is None

    def test_infeasibility_is_logged(self, caplog):
        graph = single_station_graph(21_000, 1_000)
        with caplog.at_level(logging.WARNING, logger="evroute.engine.search"):
            find_path(graph, "cumulative_duration", INITIAL, CAPACITY)
        assert "No feasible" in caplog.text

    def test_lower_floor_makes_it_feasible(self):
        graph = single_station_graph(21_000, 1_000)
        path = find_path(graph, "cumulative_duration", INITIAL, CAPACITY, min_soc_kwh=0.0)
        assert path is not None


class TestFastMode:

    def test_finds_feasible_path(self):
        graph = single_station_graph(5_000, 5_000)
        path = find_path(graph, "cumulative_duration", INITIAL, CAPACITY, fast_mode=True)
        assert nodes(path) == ["s", "a0", "b0", "d"]

    def test_creates_no_more_labels_than_exact_search(self):
        exact = LabelSettingSearch(single_station_graph(5_000, 5_000), "cumulative_duration", INITIAL, CAPACITY)
        fast = LabelSettingSearch(
            single_station_graph(5_000, 5_000), "cumulative_duration", INITIAL, CAPACITY, fast_mode=True,
        )
        exact.run()
        fast.run()
        assert len(fast.settled) <= len(exact.settled)

    def test_prunes_on_active_criterion_only(self):
        # The bypass reaches b0 first and dominates every charged label at b0
        # on duration, although only charged labels can reach d.
        graph = single_station_graph(15_000, 10_000)
        assert find_path(graph, "cumulative_duration", INITIAL, CAPACITY) is not None
        assert find_path(graph, "cumulative_duration", INITIAL, CAPACITY, fast_mode=True) is None


# ═══════════════════════════════════════════════════════════════════════════
# Full battery
# ═══════════════════════════════════════════════════════════════════════════

def descent_then_climb(descent_wh: float, climb_wh: float) -> StationGraph:
    g = StationGraph()
    g.add_node(StartNode((0.0, 0.0)))
    g.add_node(ApproachNode(0, (0.1, 0.0)))
    g.add_node(DestinationNode((0.2, 0.0)))
    g.add_edge("s", "a0", 10_000.0, 600.0, descent_wh)
    g.add_edge("a0", "d", 10_000.0, 600.0, climb_wh)
    return g


class TestFullBattery:
    """Regeneration stops at capacity: 22.8 kWh + 5 kWh descent = 24 kWh, not 27.8."""

    def test_soc_capped_at_capacity(self):
        path = find_path(descent_then_climb(-5_000, 1_000), "cumulative_duration", INITIAL, CAPACITY)
        assert path[1].energy_kwh == pytest.approx(INITIAL - CAPACITY)
        assert path[-1].energy_kwh == pytest.approx(INITIAL - CAPACITY + 1.0)
        assert all(INITIAL - label.energy_kwh <= CAPACITY + 1e-9 for label in path)

    def test_lost_regeneration_does_not_count_toward_feasibility(self):
        # 24 − 23 = 1 kWh at d, below the 2.4 kWh floor.
        assert find_path(descent_then_climb(-5_000, 23_000), "cumulative_duration", INITIAL, CAPACITY) is None

    def test_partial_regeneration_kept(self):
        path = find_path(descent_then_climb(-1_000, 1_000), "cumulative_duration", INITIAL, CAPACITY)
        assert path[1].energy_kwh == pytest.approx(-1.0)
        assert path[-1].energy_kwh == pytest.approx(0.0)


# ═══════════════════════════════════════════════════════════════════════════
# Queue ordering & run state
# ═══════════════════════════════════════════════════════════════════════════

class TestOrdering:

    def test_durations_settle_in_order(self):
        search = LabelSettingSearch(single_station_graph(15_000, 10_000), "cumulative_duration", INITIAL, CAPACITY)
        search.run()
        durations = [label.duration_s for label in search.settled]
        assert durations == sorted(durations)

    def test_costs_settle_in_order(self):
        graph = single_station_graph(15_000, 10_000, outlets=[(50.0, 0.5, 0.1), (150.0, 0.8, None)])
        search = LabelSettingSearch(graph, "cumulative_financial_cost", INITIAL, CAPACITY)
        search.run()
        costs = [label.cost for label in search.settled]
        assert costs == sorted(costs)

    def test_label_ids_unique_per_run(self):
        search = LabelSettingSearch(single_station_graph(15_000, 10_000), "cumulative_duration", INITIAL, CAPACITY)
        search.run()
        ids = [label.index for label in search.settled]
        assert len(ids) == len(set(ids))
        assert search.labels_created >= len(search.settled)

    def test_independent_runs_restart_ids(self):
        graph = single_station_graph(15_000, 10_000)
        first = find_path(graph, "cumulative_duration", INITIAL, CAPACITY)
        second = find_path(graph, "cumulative_duration", INITIAL, CAPACITY)
        assert [label.index for label in first] == [label.index for label in second]

    def test_search_runs_once(self):
        search = LabelSettingSearch(single_station_graph(5_000, 5_000), "cumulative_duration", INITIAL, CAPACITY)
        search.run()
        with pytest.raises(RuntimeError):
            search.run()


# ═══════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════

class TestValidation:

    def test_unknown_criterion(self):
        with pytest.raises(ValueError):
            LabelSettingSearch(single_station_graph(1, 1), "shortest", INITIAL, CAPACITY)

    @pytest.mark.parametrize("initial, capacity, min_soc", [
        (10.0, 0.0, 0.0),
        (30.0, 24.0, 2.4),
        (2.0, 24.0, 2.4),
        (10.0, 24.0, -1.0),
        (-1.0, 24.0, None),
    ])
    def test_soc_bounds(self, initial, capacity, min_soc):
        with pytest.raises(ValueError):
            LabelSettingSearch(single_station_graph(1, 1), "cumulative_duration", initial, capacity, min_soc)

    def test_graph_needs_start_and_destination(self):
        g = StationGraph()
        g.add_node(StartNode((0.0, 0.0)))
        with pytest.raises(ValueError):
            LabelSettingSearch(g, "cumulative_duration", INITIAL, CAPACITY)

    def test_missing_road_duration_is_a_construction_error(self):
        g = StationGraph()
        g.add_node(StartNode((0.0, 0.0)))
        g.add_node(DestinationNode((1.0, 0.0)))
        g.add_edge("s", "d", 1_000.0, None, 100.0)
        with pytest.raises(GraphConstructionError):
            find_path(g, "cumulative_duration", INITIAL, CAPACITY)

    def test_missing_overhead_duration_is_a_construction_error(self):
        g = single_station_graph(15_000, 10_000, levels=range(60, 61))
        g.add_edge("c0-60-50", "o0", 0.0, None, 0.0)
        with pytest.raises(GraphConstructionError):
            find_path(g, "cumulative_duration", INITIAL, CAPACITY)
