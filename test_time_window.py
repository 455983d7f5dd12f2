"""
test_time_window.py
───────────────────
Weekday closures, clock parsing and the per-day operating window.

Run:
    pytest test_time_window.py
"""

from __future__ import annotations

from datetime import date

import pytest

from trip_optimizer.modules.planning.time_window import (
    DayWindow, day_window, filter_open, is_open_on, weekday_index,
)
from trip_optimizer.modules.tool_usage.time_tool import format_clock, parse_clock
from trip_optimizer.schemas.trip import CandidatePlace, FlightTimes, PlannerParameters

PARAMS = PlannerParameters()


def test_weekday_index_starts_on_sunday():
    assert weekday_index(date(2024, 5, 5)) == 0   # Sunday
    assert weekday_index(date(2024, 5, 6)) == 1   # Monday
    assert weekday_index(date(2024, 5, 7)) == 2   # Tuesday
    assert weekday_index(date(2024, 5, 11)) == 6  # Saturday


def test_closed_weekdays_filter():
    museum = CandidatePlace(name="Museum", closed_weekdays=frozenset({1}))
    market = CandidatePlace(name="Market", closed_weekdays=frozenset({0}))
    park = CandidatePlace(name="Park")
    assert not is_open_on(museum, 1)
    assert is_open_on(museum, 2)
    assert [c.name for c in filter_open([museum, market, park], 1)] == ["Market", "Park"]
    assert [c.name for c in filter_open([museum, market, park], 0)] == ["Museum", "Park"]


def test_parse_clock():
    assert parse_clock("09:00") == 540
    assert parse_clock(" 7:30 ") == 450
    assert parse_clock(None) is None
    assert parse_clock("") is None
    with pytest.raises(ValueError):
        parse_clock("24:00")
    with pytest.raises(ValueError):
        parse_clock("noon")


def test_format_clock_clamps():
    assert format_clock(690) == "11:30"
    assert format_clock(1500) == "23:59"


def test_default_window():
    window = day_window(2, 3, None, PARAMS)
    assert (window.start_min, window.end_min) == (540, 1200)
    assert window.hours == 11.0
    assert not window.is_transit
    assert str(window) == "09:00-20:00"


def test_arrival_clamps_day_one_only():
    flights = FlightTimes(arrival="10:00")
    assert day_window(1, 3, flights, PARAMS).start_min == 690
    assert day_window(2, 3, flights, PARAMS).start_min == 540
    # an early arrival never opens the day before 09:00
    assert day_window(1, 3, FlightTimes(arrival="07:00"), PARAMS).start_min == 540


def test_departure_clamps_last_day_only():
    flights = FlightTimes(departure="18:00")
    assert day_window(3, 3, flights, PARAMS).end_min == 900
    assert day_window(2, 3, flights, PARAMS).end_min == 1200
    assert day_window(3, 3, FlightTimes(departure="23:30"), PARAMS).end_min == 1200


def test_one_day_trip_applies_both_clamps():
    window = day_window(1, 1, FlightTimes(arrival="10:00", departure="19:00"), PARAMS)
    assert (window.start_min, window.end_min) == (690, 960)


def test_late_arrival_is_a_transit_day():
    window = day_window(1, 2, FlightTimes(arrival="22:00"), PARAMS)
    assert window.is_transit
    assert window.hours < 0
    assert str(window) == "closed"


def test_transit_threshold_boundary():
    # 17:00 + 90 min = 18:30, exactly 1.5 h before 20:00
    assert not day_window(1, 2, FlightTimes(arrival="17:00"), PARAMS).is_transit
    assert day_window(1, 2, FlightTimes(arrival="17:05"), PARAMS).is_transit


def test_window_hours():
    assert DayWindow(600, 630, 1.5).hours == 0.5
    assert DayWindow(600, 630, 0.25).is_transit is False


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))
