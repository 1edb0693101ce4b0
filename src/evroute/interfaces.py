"""Protocol definitions for the external collaborators the planner talks to."""

from __future__ import annotations

from typing import Protocol

from evroute.config.station import ChargingStation
from evroute.models.segment import Coordinate


class RoutingEngine(Protocol):
    """Road routing between two points."""

    def route(self, origin: Coordinate, destination: Coordinate) -> dict:
        """Return one OSRM-shaped route.

        Coordinates are (lon, lat). The route carries ``distance``,
        ``duration``, ``legs[].steps[].intersections[]`` and
        ``geometry.coordinates``.
        """
        ...


class StationDirectory(Protocol):
    """Charging stations and their live pricing."""

    def stations_along_route(self, origin: Coordinate, destination: Coordinate) -> list[ChargingStation]:
        """Stations within reach of the route between origin and destination."""
        ...
