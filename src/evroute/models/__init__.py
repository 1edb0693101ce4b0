"""Data models — road segments, the station graph and planner results."""

from evroute.models.segment import Coordinate, RouteSegment, RouteTotals
from evroute.models.graph import (
    ApproachNode,
    ChargeLevelNode,
    DestinationNode,
    Edge,
    EntryNode,
    ExitNode,
    GraphNode,
    ReturnNode,
    StartNode,
    StationGraph,
)
from evroute.models.results import GraphStats, PathStep, PlanResult, RouteSummary

__all__ = [
    "Coordinate",
    "RouteSegment",
    "RouteTotals",
    "ApproachNode",
    "ChargeLevelNode",
    "DestinationNode",
    "Edge",
    "EntryNode",
    "ExitNode",
    "GraphNode",
    "ReturnNode",
    "StartNode",
    "StationGraph",
    "GraphStats",
    "PathStep",
    "PlanResult",
    "RouteSummary",
]
