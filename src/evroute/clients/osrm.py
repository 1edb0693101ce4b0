"""HTTP client for an OSRM routing server."""

from __future__ import annotations

import logging

import requests

from evroute.models.segment import Coordinate

logger = logging.getLogger(__name__)


class RoutingError(RuntimeError):
    """The routing engine answered, but without a usable route."""


class OsrmClient:
    """Routes between two points with ``/route/v1/{profile}``.

    Requests full GeoJSON geometry, steps and annotations so the segmenter
    can work per intersection.
    """

    def __init__(
        self,
        base_url: str,
        profile: str = "driving",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def route(self, origin: Coordinate, destination: Coordinate) -> dict:
        """First route between ``origin`` and ``destination``, both (lon, lat)."""
        (olon, olat), (dlon, dlat) = origin, destination
        url = f"{self.base_url}/route/v1/{self.profile}/{olon},{olat};{dlon},{dlat}"
        params = {
            "steps": "true",
            "overview": "full",
            "annotations": "true",
            "geometries": "geojson",
        }
        logger.debug("GET %s", url)
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()
        if data.get("code") != "Ok" or not data.get("routes"):
            raise RoutingError(f"no route {origin} → {destination}: {data.get('code')} {data.get('message', '')}".rstrip())
        return data["routes"][0]
