"""Route segmenter — routing-engine response → ordered road segments.

A route is flattened to its intersections (``legs[*].steps[*].intersections``).
Each intersection opens a segment that closes at the next intersection; the
last one closes at the final geometry coordinate. Per-intersection
``distance``/``duration`` annotations are used when the routing engine
provides them. Otherwise the step's totals are shared out over its
intersections in proportion to great-circle length.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from evroute.config.vehicle import VehicleConfig
from evroute.engine.segment_energy import segment_energy_wh
from evroute.engine.traction import GRAVITY
from evroute.models.segment import Coordinate, RouteSegment, RouteTotals

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lon1, lat1, lon2, lat2):
    """Great-circle distance in metres. Accepts scalars or numpy arrays."""
    lon1, lat1, lon2, lat2 = map(np.radians, (lon1, lat1, lon2, lat2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def _step_shares(step: dict, ends: list[Coordinate]) -> list[tuple[float, float]]:
    """(distance, duration) of each intersection in one step."""
    intersections = step.get("intersections") or []
    if all("distance" in x and "duration" in x for x in intersections):
        return [(float(x["distance"]), float(x["duration"])) for x in intersections]

    starts = np.array([x["location"] for x in intersections], dtype=float)
    stops = np.array(ends, dtype=float)
    lengths = haversine_m(starts[:, 0], starts[:, 1], stops[:, 0], stops[:, 1])
    total = lengths.sum()
    weights = lengths / total if total > 0 else np.full(len(intersections), 1 / len(intersections))

    step_distance = float(step.get("distance", 0.0))
    step_duration = float(step.get("duration", 0.0))
    return [(step_distance * w, step_duration * w) for w in weights]


def segment_route(
    route: dict,
    vehicle: VehicleConfig,
    air_density: float,
    gravity: float = GRAVITY,
) -> list[RouteSegment]:
    """Flatten a routing-engine route into energy-annotated segments.

    Parameters
    ----------
    route : dict
        One OSRM-shaped route: ``legs[].steps[].intersections[].location``
        in (lon, lat), step ``distance``/``duration``, and optionally
        ``geometry.coordinates``. Intersections may carry ``distance``,
        ``duration`` and ``elevation``.
    vehicle : VehicleConfig
        Vehicle used for the energy model.
    air_density : float
        Air density (kg/m³).

    Returns
    -------
    list[RouteSegment]
        One segment per intersection, in travel order.
    """
    steps = [step for leg in route.get("legs", []) for step in leg.get("steps", [])]
    flat = [(step, x) for step in steps for x in (step.get("intersections") or [])]
    if not flat:
        raise ValueError("route has no intersections to segment")

    coordinates = (route.get("geometry") or {}).get("coordinates") or []
    final: Coordinate = tuple(coordinates[-1]) if coordinates else tuple(flat[-1][1]["location"])

    locations: list[Coordinate] = [tuple(x["location"]) for _, x in flat]
    elevations = [float(x.get("elevation", 0.0)) for _, x in flat]
    ends = locations[1:] + [final]
    end_elevations = elevations[1:] + [elevations[-1]]

    shares: list[tuple[float, float]] = []
    k = 0
    for step in steps:
        n = len(step.get("intersections") or [])
        if n:
            shares.extend(_step_shares(step, ends[k:k + n]))
            k += n

    segments = []
    for start, end, (distance, duration), h0, h1 in zip(locations, ends, shares, elevations, end_elevations):
        energy = segment_energy_wh(distance, duration, h0, h1, vehicle, air_density, gravity)
        segments.append(RouteSegment(start, end, distance, duration, h0, h1, energy))

    logger.debug("Segmented route into %d segments over %d steps", len(segments), len(steps))
    return segments


def summarize_segments(segments: Sequence[RouteSegment]) -> RouteTotals:
    return RouteTotals(
        distance_m=sum(s.distance_m for s in segments),
        duration_s=sum(s.duration_s for s in segments),
        energy_wh=sum(s.energy_wh for s in segments),
    )


def boundary_points(segments: Sequence[RouteSegment]) -> np.ndarray:
    """Segment boundaries as an ``(n + 1, 2)`` array of (lon, lat).

    Row ``k`` is where segment ``k`` starts; the last row is where the
    route ends.
    """
    if not segments:
        raise ValueError("no segments")
    return np.array([s.start for s in segments] + [segments[-1].end], dtype=float)


def nearest_boundary_index(points: np.ndarray, lon: float, lat: float) -> int:
    """Index of the boundary point closest to (lon, lat). Ties go to the earliest."""
    distances = haversine_m(points[:, 0], points[:, 1], lon, lat)
    return int(np.argmin(distances))
