"""Great-circle distance helpers."""

import math

EARTH_RADIUS_KM = 6371.0


def _check_coordinate(value: float, limit: float, name: str) -> None:
    if not math.isfinite(value) or abs(value) > limit:
        raise ValueError(f"Invalid {name}: {value!r}")


def validate_coordinates(lat: float, lon: float) -> None:
    """Raise ValueError if latitude or longitude is not finite or out of range."""
    _check_coordinate(lat, 90, "latitude")
    _check_coordinate(lon, 180, "longitude")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance in kilometres between two latitude/longitude points.

    Raises:
        ValueError: if a coordinate is not finite or out of range
    """
    validate_coordinates(lat1, lon1)
    validate_coordinates(lat2, lon2)

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
