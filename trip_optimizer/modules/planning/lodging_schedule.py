"""
modules/planning/lodging_schedule.py
-------------------------------------
Which lodging is the traveller based at on a given calendar day?

Stays are half-open [check_in, check_out). Resolution order for a day:
  1. first lodging whose stay contains the day (on a hand-off day the
     incoming stay contains it; overlapping stays resolve by list order)
  2. a lodging checking out that day (still based there until departure)
  3. the lodging with the latest check_out before the day (gap nights)
  4. the last lodging in the list

All functions are pure: the lodging list is never reordered or mutated.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import Optional, Sequence

from trip_optimizer.modules.tool_usage.distance_tool import DistanceTool
from trip_optimizer.modules.validation import require_lodgings
from trip_optimizer.schemas.trip import Coordinate, Lodging


def _day(d: date) -> date:
    return d.date() if isinstance(d, datetime) else d


def _active_index(day: date, lodgings: Sequence[Lodging]) -> int:
    require_lodgings(lodgings)
    day = _day(day)

    for idx, lodging in enumerate(lodgings):
        if lodging.check_in <= day < lodging.check_out:
            return idx

    for idx, lodging in enumerate(lodgings):
        if lodging.check_out == day:
            return idx

    prior = [idx for idx, l in enumerate(lodgings) if l.check_out < day]
    if prior:
        # max() keeps the first of equal check_out dates
        return max(prior, key=lambda i: lodgings[i].check_out)

    return len(lodgings) - 1


def active_lodging(day: date, lodgings: Sequence[Lodging]) -> Lodging:
    """Return the lodging the traveller sleeps at (or departs from) on day."""
    return lodgings[_active_index(day, lodgings)]


def geofence_lodging(day: date, lodgings: Sequence[Lodging]) -> Optional[Lodging]:
    """
    The lodging whose coordinate fences the day's search.

    The active lodging when it is geocoded; otherwise the nearest geocoded
    lodging in list order, looking at later stays first, then earlier ones.
    None when no lodging has a coordinate.
    """
    idx = _active_index(day, lodgings)
    if lodgings[idx].coordinate is not None:
        return lodgings[idx]
    for lodging in list(lodgings[idx + 1:]) + list(reversed(lodgings[:idx])):
        if lodging.coordinate is not None:
            return lodging
    return None


def nearest_lodging(
    point: Optional[Coordinate],
    lodgings: Sequence[Lodging],
) -> Optional[tuple[Lodging, float]]:
    """(lodging, km) for the geocoded lodging closest to point, or None."""
    if point is None:
        return None
    return DistanceTool.nearest(point, lodgings, lambda l: l.coordinate)


def schedule_summary(lodgings: Sequence[Lodging]) -> str:
    """One-line stay schedule for the narrative stage."""
    return ", ".join(
        f"{l.check_in.isoformat()}~{l.check_out.isoformat()}: {l.name}"
        for l in lodgings
    )
