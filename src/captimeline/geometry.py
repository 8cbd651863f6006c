"""Polygon extraction and helpers for CAP ``<polygon>`` strings."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

from pyproj import Geod
from shapely.geometry import Polygon, mapping

from .settings import DEFAULT_REGION, RegionBounds

LOGGER = logging.getLogger(__name__)
GEOD = Geod(ellps="WGS84")

Coordinate = tuple[float, float]
Ring = tuple[Coordinate, ...]

MIN_POLYGON_POINTS = 3


def extract_polygon(raw: Any, bounds: RegionBounds | None = None) -> Ring | None:
    """Parse ``"lat,lng lat,lng ..."`` into a closed ring of ``(lat, lng)`` pairs.

    Malformed pairs are skipped. Fewer than three usable points yields
    ``None``. Points outside ``bounds`` are logged but kept. Never raises.
    """
    if not isinstance(raw, str) or not raw.strip():
        return None

    region = bounds or DEFAULT_REGION
    points: list[Coordinate] = []
    for pair in raw.split():
        point = _parse_pair(pair)
        if point is None:
            continue
        lat, lng = point
        if not region.contains(lat, lng):
            LOGGER.warning("Coordinate outside expected region: %s", pair)
        points.append(point)

    if len(points) < MIN_POLYGON_POINTS:
        LOGGER.warning("Insufficient coordinates for polygon: %s", len(points))
        return None

    if points[0] != points[-1]:
        points.append(points[0])
    return tuple(points)


def _parse_pair(pair: str) -> Coordinate | None:
    parts = pair.split(",")
    if len(parts) < 2 or not parts[0].strip() or not parts[1].strip():
        LOGGER.warning("Invalid coordinate pair: %s", pair)
        return None
    try:
        lat = float(parts[0])
        lng = float(parts[1])
    except ValueError:
        LOGGER.warning("Non-numeric coordinates: %s", pair)
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        LOGGER.warning("Non-numeric coordinates: %s", pair)
        return None
    return lat, lng


def _to_shape(polygon: Sequence[Coordinate] | None) -> Polygon | None:
    # shapely needs three distinct vertices for a ring
    if not polygon or len(set(polygon)) < MIN_POLYGON_POINTS:
        return None
    return Polygon([(lng, lat) for lat, lng in polygon])


def polygon_to_geojson(polygon: Sequence[Coordinate] | None) -> dict[str, Any] | None:
    """GeoJSON ``Polygon`` for a ``(lat, lng)`` ring, in ``[lng, lat]`` order."""
    shape = _to_shape(polygon)
    if shape is None:
        return None
    geojson = mapping(shape)
    return {
        "type": geojson["type"],
        "coordinates": [[list(point) for point in ring] for ring in geojson["coordinates"]],
    }


def polygon_area_km2(polygon: Sequence[Coordinate] | None) -> float | None:
    shape = _to_shape(polygon)
    if shape is None:
        return None
    area, _ = GEOD.geometry_area_perimeter(shape)
    return round(abs(area) / 1_000_000, 2)
