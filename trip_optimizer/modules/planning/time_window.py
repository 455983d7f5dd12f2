"""
modules/planning/time_window.py
--------------------------------
Temporal gates for a trip day.

  weekday filter : a place closed on the day's weekday is not a candidate
  day window     : 09:00–20:00 by default, squeezed by flights
                     day 1     start = max(arrival + buffer, 09:00)
                     last day  end   = min(departure − buffer, 20:00)
                   a window shorter than min_window_hours is a transit day

Weekdays follow the retrieval stage's convention: 0 = Sunday … 6 = Saturday.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from trip_optimizer.modules.tool_usage.time_tool import format_clock, parse_clock
from trip_optimizer.schemas.trip import CandidatePlace, FlightTimes, PlannerParameters


def weekday_index(d: date) -> int:
    """0 = Sunday … 6 = Saturday."""
    return d.isoweekday() % 7


def is_open_on(candidate: CandidatePlace, weekday: int) -> bool:
    return weekday not in candidate.closed_weekdays


def filter_open(candidates: Iterable[CandidatePlace], weekday: int) -> list[CandidatePlace]:
    """Keep only places open on weekday (order preserved)."""
    return [c for c in candidates if is_open_on(c, weekday)]


@dataclass(frozen=True)
class DayWindow:
    """Operating window of one day, in minutes from midnight."""
    start_min: int
    end_min: int
    min_hours: float

    @property
    def hours(self) -> float:
        return (self.end_min - self.start_min) / 60.0

    @property
    def is_transit(self) -> bool:
        return self.hours < self.min_hours

    def __str__(self) -> str:
        if self.start_min >= self.end_min:
            return "closed"
        return f"{format_clock(self.start_min)}-{format_clock(self.end_min)}"


def day_window(
    day_number: int,
    total_days: int,
    flights: FlightTimes | None,
    params: PlannerParameters,
) -> DayWindow:
    """
    Window for day_number (1-based). On a one-day trip both the arrival
    and the departure clamp apply.
    """
    start, end = params.day_start_min, params.day_end_min
    flights = flights or FlightTimes()

    if day_number == 1:
        arrival = parse_clock(flights.arrival)
        if arrival is not None:
            start = max(arrival + params.arrival_buffer_min, start)

    if day_number == total_days:
        departure = parse_clock(flights.departure)
        if departure is not None:
            end = min(departure - params.departure_buffer_min, end)

    return DayWindow(start_min=start, end_min=end, min_hours=params.min_window_hours)
