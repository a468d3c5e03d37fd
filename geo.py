"""
Geographic helpers for vendor distance

Vendor coordinates are stored [longitude, latitude] (GeoJSON order), while
distance math takes (latitude, longitude) pairs. Distances are great-circle
distances in kilometers; NaN inputs propagate NaN, so callers check that
coordinates are present before calling.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from errors import InvalidQueryError

EARTH_RADIUS_KM = 6371
BOX_PADDING_DEG = 1e-9  # float slack so points on the circle stay inside the box


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points in kilometers."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))

    return EARTH_RADIUS_KM * c


@dataclass(frozen=True)
class GeoLocation:
    """Geographic coordinates in decimal degrees"""
    latitude: float
    longitude: float

    @classmethod
    def from_coordinates(cls, coordinates: Optional[Sequence[float]]) -> Optional["GeoLocation"]:
        """Build from a [longitude, latitude] pair; None when absent"""
        if not coordinates or len(coordinates) < 2:
            return None
        if coordinates[0] is None or coordinates[1] is None:
            return None
        return cls(latitude=float(coordinates[1]), longitude=float(coordinates[0]))

    def distance_to(self, other: "GeoLocation") -> float:
        """Haversine distance to another location in kilometers."""
        return haversine_km(self.latitude, self.longitude, other.latitude, other.longitude)

    def bounding_box(self, radius_km: float) -> tuple:
        """
        (min_lat, max_lat, min_lon, max_lon) enclosing a circle of radius_km.

        Used as a cheap SQL prefilter before the exact haversine check, so it
        must never be tighter than the circle. The longitude half-width is
        taken at the circle's widest point, asin(sin(r/R) / cos(lat)), not at
        the origin's parallel. Circles reaching a pole span every longitude.
        """
        angular = radius_km / EARTH_RADIUS_KM
        dlat = math.degrees(angular) + BOX_PADDING_DEG

        cos_lat = math.cos(math.radians(self.latitude))
        reaches_pole = abs(self.latitude) + dlat >= 90.0
        ratio = math.sin(min(angular, math.pi / 2)) / cos_lat if cos_lat > 0 else math.inf
        if reaches_pole or ratio >= 1.0:
            dlon = 180.0
        else:
            dlon = min(180.0, math.degrees(math.asin(ratio)) + BOX_PADDING_DEG)

        return (
            self.latitude - dlat,
            self.latitude + dlat,
            self.longitude - dlon,
            self.longitude + dlon,
        )


def parse_user_location(value: Optional[str]) -> Optional[GeoLocation]:
    """
    Parse a "lng,lat" query value into a GeoLocation.

    Raises:
        InvalidQueryError: If the value is not two comma-separated numbers
            or lies outside latitude -90..90 / longitude -180..180
    """
    if value is None or not value.strip():
        return None

    parts = value.split(",")
    if len(parts) != 2:
        raise InvalidQueryError(f"userLocation must be 'lng,lat', got {value!r}")

    try:
        lng, lat = (float(p) for p in parts)
    except ValueError:
        raise InvalidQueryError(f"userLocation must be numeric 'lng,lat', got {value!r}")

    if math.isnan(lat) or math.isnan(lng):
        raise InvalidQueryError("userLocation cannot contain NaN")

    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise InvalidQueryError(f"userLocation out of range (lng -180..180, lat -90..90): {value!r}")

    return GeoLocation(latitude=lat, longitude=lng)
