"""
test_lodging_schedule.py
────────────────────────
Active-lodging resolution over half-open stays, plus the geofence lodging
used when the active stay was never geocoded.

Run:
    pytest test_lodging_schedule.py
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from trip_optimizer.modules.planning.lodging_schedule import (
    active_lodging, geofence_lodging, nearest_lodging, schedule_summary,
)
from trip_optimizer.modules.validation import InputValidationError
from trip_optimizer.schemas.trip import Coordinate, Lodging

CENTRO = Coordinate(41.3851, 2.1734)
SITGES = Coordinate(41.2371, 1.8059)
GIRONA = Coordinate(41.9794, 2.8214)


def _stay(name, check_in, check_out, coordinate=CENTRO) -> Lodging:
    return Lodging(
        id=name.lower().replace(" ", "-"),
        name=name,
        coordinate=coordinate,
        check_in=date.fromisoformat(check_in),
        check_out=date.fromisoformat(check_out),
    )


A = _stay("Hotel Centro", "2024-05-06", "2024-05-08")
B = _stay("Sitges Beach House", "2024-05-08", "2024-05-10", SITGES)
C = _stay("Girona Inn", "2024-05-11", "2024-05-13", GIRONA)


def test_day_inside_a_stay():
    assert active_lodging(date(2024, 5, 6), [A, B]) is A
    assert active_lodging(date(2024, 5, 7), [A, B]) is A
    assert active_lodging(date(2024, 5, 9), [A, B]) is B


def test_hand_off_day_belongs_to_incoming_stay():
    assert active_lodging(date(2024, 5, 8), [A, B]) is B


def test_checkout_day_keeps_departing_lodging():
    assert active_lodging(date(2024, 5, 10), [A, B]) is B


def test_overlapping_stays_resolve_by_list_order():
    overlap = _stay("Overlap Hostel", "2024-05-07", "2024-05-09")
    assert active_lodging(date(2024, 5, 7), [A, overlap]) is A
    assert active_lodging(date(2024, 5, 7), [overlap, A]) is overlap


def test_gap_night_uses_latest_prior_stay():
    # nothing covers 05-10 in [A, C]; A checked out most recently
    assert active_lodging(date(2024, 5, 10), [A, C]) is A
    assert active_lodging(date(2024, 5, 20), [C, A]) is C


def test_date_before_every_stay_falls_back_to_last():
    assert active_lodging(date(2024, 5, 1), [A, B, C]) is C


def test_time_of_day_is_ignored():
    assert active_lodging(datetime(2024, 5, 7, 23, 30), [A, B]) is A
    assert active_lodging(datetime(2024, 5, 8, 0, 5), [A, B]) is B


def test_stay_given_as_datetimes():
    late = Lodging(
        name="Late Arrival Hotel",
        check_in=datetime(2024, 5, 6, 22, 15),
        check_out=datetime(2024, 5, 8, 11, 0),
    )
    assert late.check_in == date(2024, 5, 6)
    assert type(late.check_out) is date
    assert active_lodging(date(2024, 5, 7), [late, B]) is late
    assert active_lodging(datetime(2024, 5, 8, 9, 0), [late, B]) is B


def test_resolution_is_pure():
    lodgings = [A, B, C]
    snapshot = list(lodgings)
    first = active_lodging(date(2024, 5, 9), lodgings)
    second = active_lodging(date(2024, 5, 9), lodgings)
    assert first is second
    assert lodgings == snapshot


def test_empty_or_broken_schedule_is_fatal():
    with pytest.raises(InputValidationError, match="ERROR_EMPTY_LODGINGS"):
        active_lodging(date(2024, 5, 6), [])
    broken = Lodging(name="Backwards", check_in=date(2024, 5, 9), check_out=date(2024, 5, 6))
    with pytest.raises(InputValidationError, match="ERROR_INVALID_STAY"):
        active_lodging(date(2024, 5, 6), [broken])


def test_geofence_lodging_looks_forward_then_back():
    ungeocoded = _stay("Hotel Centro", "2024-05-06", "2024-05-08", None)
    assert geofence_lodging(date(2024, 5, 6), [ungeocoded, B]) is B

    late = _stay("Sitges Beach House", "2024-05-08", "2024-05-10", None)
    assert geofence_lodging(date(2024, 5, 9), [A, late]) is A

    assert geofence_lodging(date(2024, 5, 6), [ungeocoded]) is None


def test_nearest_lodging():
    lodging, km = nearest_lodging(Coordinate(41.24, 1.81), [A, B, C])
    assert lodging is B
    assert km < 1.0
    assert nearest_lodging(None, [A]) is None
    assert nearest_lodging(CENTRO, [_stay("Nowhere", "2024-05-06", "2024-05-07", None)]) is None


def test_schedule_summary():
    assert schedule_summary([A, B]) == (
        "2024-05-06~2024-05-08: Hotel Centro, 2024-05-08~2024-05-10: Sitges Beach House"
    )


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))
