"""
Geofenced check-in validation.

Distances use the Haversine great-circle formula on a spherical Earth, which is
well within GPS accuracy at academy scale.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_000.0


class InvalidCoordinate(ValueError):
    """Latitude/longitude missing or outside the valid range."""


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeoFence:
    center: Coordinate
    radius_meters: float


@dataclass(frozen=True)
class FenceCheck:
    within_fence: bool
    distance_meters: float


def validate_coordinate(latitude: float | None, longitude: float | None) -> Coordinate:
    """Boundary guard for raw input; the distance functions assume validated coordinates."""
    if latitude is None or longitude is None:
        raise InvalidCoordinate("Latitude and longitude are required")
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as e:
        raise InvalidCoordinate(f"Invalid coordinate: {latitude}, {longitude}") from e
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidCoordinate(f"Invalid coordinate: {latitude}, {longitude}")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinate(f"Latitude {lat} out of range [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinate(f"Longitude {lon} out of range [-180, 180]")
    return Coordinate(lat, lon)


def compute_distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters between two points."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    # Rounding can push h a hair outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return 2.0 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))


def is_within_fence(point: Coordinate, fence: GeoFence) -> FenceCheck:
    """Check whether a point is inside or on the boundary of a circular fence."""
    distance = compute_distance_meters(point, fence.center)
    return FenceCheck(within_fence=distance <= fence.radius_meters, distance_meters=distance)
