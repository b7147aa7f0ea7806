"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from ..errors import ValidationFailure
from ..models.domain import Location

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance(a: Location, b: Location) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def path_length_km(waypoints: Sequence[Location]) -> float:
    """Sum of the distances between consecutive waypoints."""

    return sum(distance(waypoints[i], waypoints[i + 1]) for i in range(len(waypoints) - 1))


def interpolate(start: Location, end: Location, segments: int) -> list[Location]:
    """Return ``segments + 1`` points evenly spaced in lat/lon between start and end.

    The interpolation is linear in degrees, not geodesic; the endpoints are
    returned as given.
    """

    if segments < 1:
        raise ValidationFailure("segments must be >= 1")
    points: list[Location] = [start]
    for i in range(1, segments):
        ratio = i / segments
        points.append(
            Location(
                latitude=start.latitude + (end.latitude - start.latitude) * ratio,
                longitude=start.longitude + (end.longitude - start.longitude) * ratio,
            )
        )
    points.append(end)
    return points


def validate_coordinates(latitude: float, longitude: float) -> None:
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationFailure("Coordinates must be finite numbers.")
    if not -90.0 <= latitude <= 90.0:
        raise ValidationFailure(f"Latitude {latitude} is out of range [-90, 90].")
    if not -180.0 <= longitude <= 180.0:
        raise ValidationFailure(f"Longitude {longitude} is out of range [-180, 180].")
