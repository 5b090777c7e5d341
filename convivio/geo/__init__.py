"""
Geo helpers shared by the meal store and the scorer.

Responsibilities:
- Great-circle (haversine) distance between two points in kilometres.
- Validate user-supplied coordinates and search radii.
"""
from .distance import (
    EARTH_RADIUS_KM,
    InvalidLocationError,
    distances_km,
    haversine_km,
    validate_coordinates,
    validate_radius,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "InvalidLocationError",
    "distances_km",
    "haversine_km",
    "validate_coordinates",
    "validate_radius",
]
