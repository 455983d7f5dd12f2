"""
test_distance_tool.py
─────────────────────
Haversine distance and fixed-speed travel time.

Run:
    pytest test_distance_tool.py
"""

from __future__ import annotations

import math

import pytest

from trip_optimizer.modules.tool_usage.distance_tool import DistanceTool, distance_km, haversine_km
from trip_optimizer.schemas.trip import Coordinate

BCN = Coordinate(41.3851, 2.1734)
GIRONA = Coordinate(41.9794, 2.8214)


def test_distance_to_self_is_zero():
    assert distance_km(BCN, BCN) == 0.0
    assert distance_km(Coordinate(41.3851, 2.1734), BCN) == 0.0


def test_distance_is_symmetric():
    assert distance_km(BCN, GIRONA) == pytest.approx(distance_km(GIRONA, BCN))
    assert distance_km(BCN, GIRONA) > 0


def test_one_degree_of_longitude_at_equator():
    km = distance_km(Coordinate(0.0, 0.0), Coordinate(0.0, 1.0))
    assert km == pytest.approx(111.2, rel=0.01)


def test_antipodal_points():
    km = haversine_km(0.0, 0.0, 0.0, 180.0)
    assert km == pytest.approx(math.pi * 6371.0, rel=1e-6)


def test_known_city_pair():
    # Barcelona to Girona is roughly 85 km as the crow flies
    assert 80.0 < distance_km(BCN, GIRONA) < 90.0


def test_travel_time_includes_overhead():
    tool = DistanceTool(speed_kmh=30.0, overhead_hours=0.25)
    assert tool.travel_time_hours(15.0) == pytest.approx(0.75)
    assert tool.travel_time_hours(0.0) == pytest.approx(0.25)


def test_calculate_with_unknown_side():
    tool = DistanceTool()
    assert tool.calculate(BCN, None) is None
    assert tool.calculate(None, BCN) is None
    assert tool.calculate(BCN, GIRONA) == pytest.approx(distance_km(BCN, GIRONA))


def test_nearest_skips_unknown_and_keeps_first_on_tie():
    items = [("nowhere", None), ("first", GIRONA), ("second", GIRONA)]
    item, km = DistanceTool.nearest(BCN, items, lambda it: it[1])
    assert item[0] == "first"
    assert km == pytest.approx(distance_km(BCN, GIRONA))

    assert DistanceTool.nearest(BCN, [("nowhere", None)], lambda it: it[1]) is None


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))
