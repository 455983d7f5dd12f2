"""
modules/tool_usage/distance_tool.py
-------------------------------------
Great-circle distance and fixed-speed travel-time estimates.
No external HTTP calls are made and no traffic data is used.

Config knobs (config.py, via PlannerParameters):
  ASSUMED_SPEED_KMH     -- door-to-door speed used for travel time (default: 30)
  TRAVEL_OVERHEAD_HOURS -- fixed cost per hop (parking, walking, waiting)
"""

from __future__ import annotations
import math
from typing import Iterable, Optional, TypeVar

from trip_optimizer import config
from trip_optimizer.schemas.trip import Coordinate

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

_EARTH_RADIUS_KM = config.EARTH_RADIUS_KM


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    r = _EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    # rounding can push a a hair above 1.0 for antipodal points
    return 2 * r * math.asin(math.sqrt(min(1.0, a)))


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between two coordinates; 0.0 when they are equal."""
    if a == b:
        return 0.0
    return haversine_km(a.lat, a.lon, b.lat, b.lon)


# ---------------------------------------------------------------------------
# DistanceTool
# ---------------------------------------------------------------------------


class DistanceTool:
    """
    Travel-time estimates on top of the Haversine distance.
    travel_time = km / speed + fixed overhead per hop.
    """

    def __init__(
        self,
        speed_kmh: float = config.ASSUMED_SPEED_KMH,
        overhead_hours: float = config.TRAVEL_OVERHEAD_HOURS,
    ) -> None:
        self.speed_kmh = speed_kmh
        self.overhead_hours = overhead_hours

    def travel_time_hours(self, km: float) -> float:
        """Hours needed to cover km, including the per-hop overhead."""
        return km / self.speed_kmh + self.overhead_hours

    def calculate(self, a: Optional[Coordinate], b: Optional[Coordinate]) -> Optional[float]:
        """Distance in km, or None when either side is unknown."""
        if a is None or b is None:
            return None
        return distance_km(a, b)

    @staticmethod
    def nearest(
        point: Coordinate,
        items: Iterable[T],
        coord_of,
    ) -> Optional[tuple[T, float]]:
        """
        Closest item to point among those with a known coordinate.
        Ties keep the earliest item. Returns (item, km) or None.
        """
        best: Optional[tuple[T, float]] = None
        for item in items:
            c = coord_of(item)
            if c is None:
                continue
            km = distance_km(point, c)
            if best is None or km < best[1]:
                best = (item, km)
        return best
