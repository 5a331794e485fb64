"""Coordinates and great-circle distance."""

import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_008.8


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def distance_to(self, other: "Coordinate") -> float:
        return distance_m(self, other)

    def short(self) -> str:
        return f"{self.latitude:.5f},{self.longitude:.5f}"


def distance_m(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in meters."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def round_coordinate(coord: Coordinate, precision: int = 3) -> tuple[float, float]:
    """Grid key for caching: 3 decimals is roughly a 111 m cell."""
    return (round(coord.latitude, precision), round(coord.longitude, precision))


def offset(coord: Coordinate, north_m: float = 0.0, east_m: float = 0.0) -> Coordinate:
    """Coordinate shifted by a small metric offset (flat-earth approximation)."""
    dlat = math.degrees(north_m / EARTH_RADIUS_M)
    dlon = math.degrees(east_m / (EARTH_RADIUS_M * math.cos(math.radians(coord.latitude))))
    return Coordinate(coord.latitude + dlat, coord.longitude + dlon)
