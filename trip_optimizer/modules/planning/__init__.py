"""
modules/planning package: scoring, lodging schedule, time windows and the
day-partitioned route planner.
"""
from trip_optimizer.modules.planning.attraction_scoring import AttractionScorer, rank_candidates
from trip_optimizer.modules.planning.lodging_schedule import (
    active_lodging,
    geofence_lodging,
    nearest_lodging,
    schedule_summary,
)
from trip_optimizer.modules.planning.route_planner import (
    DayContext,
    RoutePlanner,
    group_by_day,
    optimize_route,
)
from trip_optimizer.modules.planning.time_window import (
    DayWindow,
    day_window,
    filter_open,
    is_open_on,
    weekday_index,
)

__all__ = [
    "AttractionScorer",
    "rank_candidates",
    "active_lodging",
    "geofence_lodging",
    "nearest_lodging",
    "schedule_summary",
    "DayContext",
    "RoutePlanner",
    "group_by_day",
    "optimize_route",
    "DayWindow",
    "day_window",
    "filter_open",
    "is_open_on",
    "weekday_index",
]
