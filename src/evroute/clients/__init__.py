"""Clients for the routing engine and the charging-station directory."""

from evroute.clients.osrm import OsrmClient, RoutingError
from evroute.clients.stations import ChargingStationDirectory

__all__ = [
    "OsrmClient",
    "RoutingError",
    "ChargingStationDirectory",
]
