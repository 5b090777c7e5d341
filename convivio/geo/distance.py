from __future__ import annotations

import math

import numpy as np
from sklearn.metrics.pairwise import haversine_distances

EARTH_RADIUS_KM = 6371.0
MAX_RADIUS_KM = 1000.0


class InvalidLocationError(ValueError):
    """Raised for out-of-range coordinates or search radii."""


def distances_km(latitude: float, longitude: float, points) -> np.ndarray:
    """
    Great-circle distances in km from one centre to many points.

    *points* is an ``(n, 2)`` array-like of ``(latitude, longitude)`` in
    degrees. Shared by the meal lookup and the scorer.
    """
    centre = np.radians([[latitude, longitude]])
    targets = np.radians(np.asarray(points, dtype=float).reshape(-1, 2))
    return haversine_distances(centre, targets).flatten() * EARTH_RADIUS_KM


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance between two points in km."""
    return float(distances_km(lat1, lon1, [[lat2, lon2]])[0])


def validate_coordinates(latitude: float, longitude: float) -> tuple[float, float]:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise InvalidLocationError("Coordinates must be numeric") from None

    if math.isnan(lat) or math.isnan(lon):
        raise InvalidLocationError("Coordinates must be numeric")
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        raise InvalidLocationError(
            "Invalid coordinates. Latitude must be in [-90, 90], longitude in [-180, 180]"
        )
    return lat, lon


def validate_radius(radius_km: float) -> float:
    try:
        radius = float(radius_km)
    except (TypeError, ValueError):
        raise InvalidLocationError("Radius must be numeric") from None

    if math.isnan(radius) or radius <= 0 or radius > MAX_RADIUS_KM:
        raise InvalidLocationError(f"Invalid radius. Must be between 0 and {MAX_RADIUS_KM:g} km")
    return radius
