"""HTTP client for the charging-station directory."""

from __future__ import annotations

import logging

import requests
from pydantic import ValidationError

from evroute.config.station import ChargingStation
from evroute.models.segment import Coordinate

logger = logging.getLogger(__name__)


class ChargingStationDirectory:
    """Stations along a route, with live outlet pricing.

    ``GET {base_url}/route`` with the trip's end points and the largest
    detour (km) a station may require. The response's ``stations`` list is
    validated into :class:`ChargingStation` records; records that fail
    validation are logged and dropped.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        max_detour_km: float = 4.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_detour_km = max_detour_km
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def stations_along_route(self, origin: Coordinate, destination: Coordinate) -> list[ChargingStation]:
        (olon, olat), (dlon, dlat) = origin, destination
        params = {
            "fromlat": olat,
            "fromlng": olon,
            "tolat": dlat,
            "tolng": dlon,
            "detour": self.max_detour_km,
            "preference": "recommended",
        }
        response = self.session.get(f"{self.base_url}/route", params=params, timeout=self.timeout)
        response.raise_for_status()

        stations = []
        for raw in response.json().get("stations", []):
            try:
                stations.append(ChargingStation.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Dropping station %s: %s", raw.get("slug", "?"), exc.errors()[0]["msg"])
        logger.info("Found %d station(s) along %s → %s", len(stations), origin, destination)
        return stations
