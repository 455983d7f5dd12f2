"""
modules/planning/route_planner.py
-----------------------------------
Day-partitioned greedy route optimizer.

Input is the ranked candidate list; output is the assigned places in
visiting order, day 1 first. Every day 1..total_days receives at least one
entry (a placeholder when nothing real fits).

Each day d runs the same state machine:
  1. ComputeContext  date, weekday, active lodging, operating window,
                     anchor (airport on day 1 if known, else the lodging).
                     A window below the transit threshold skips to 4.
  2. Filter          unassigned ∩ open on the weekday ∩ inside the geofence
                     (lodging radius, plus the airport radius on day 1).
                     The radius widens when few candidates remain; when the
                     fence leaves nothing, open places are admitted anyway.
  3. GreedySelect    repeatedly take the place minimising
                         weight = travel_km − score / score_distance_scale
                     from the current anchor; commit it unless the day would
                     overrun its window by more than the flex tolerance.
  4. Finalize        zero commits → one placeholder for the day.

Constraints enforced:
  visit-once : committed indices leave the unassigned set immediately
  closures   : a place is never offered on a weekday it is closed
  coverage   : each day gets ≥ 1 entry; a fair-share quota per day
               (ceil(placeable / schedulable days left)) stops early days
               from draining the pool. A place open today but on no later
               schedulable day is exempt from the quota and holds a
               reserved slot.
  time       : elapsed + travel + visit ≤ window + flex
"""

from __future__ import annotations
import logging
import math
import time as _time_mod
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Sequence

from trip_optimizer.modules.observability.logger import StructuredLogger
from trip_optimizer.modules.planning.lodging_schedule import active_lodging, geofence_lodging
from trip_optimizer.modules.planning.time_window import (
    DayWindow, day_window, is_open_on, weekday_index,
)
from trip_optimizer.modules.tool_usage.distance_tool import DistanceTool, distance_km
from trip_optimizer.modules.validation import InputValidationError, require_lodgings
from trip_optimizer.schemas.trip import (
    CandidatePlace, Category, Coordinate, FlightTimes, Lodging, PlannerParameters,
)

logger = logging.getLogger(__name__)
_perf_logger = StructuredLogger()


# ── Per-day state ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DayContext:
    """Everything fixed about a day before any place is chosen."""
    day_number: int
    date: date
    weekday: int                    # 0 = Sunday
    lodging: Lodging                # where the traveller sleeps
    fence: Optional[Lodging]        # geocoded lodging used for the geofence
    window: DayWindow
    anchor: Optional[Coordinate]
    anchor_label: str


@dataclass(frozen=True)
class _ChainState:
    """Running position of the greedy chain; replaced, never mutated."""
    anchor: Optional[Coordinate]
    anchor_label: str
    elapsed_hours: float = 0.0


@dataclass
class _DayStats:
    pool_size: int = 0
    closed: int = 0
    outside_fence: int = 0
    time_overflow: int = 0
    radius_km: float = 0.0
    widened: bool = False
    last_resort: bool = False
    rejected: list[str] = field(default_factory=list)


class RoutePlanner:
    """
    Greedy nearest-neighbour planner over a moving depot (one lodging per leg).

    One call owns its unassigned pool; nothing survives between calls, so
    re-running with the same inputs yields the same output.
    """

    def __init__(
        self,
        params: PlannerParameters | None = None,
        event_logger: StructuredLogger | None = None,
    ):
        self.params = params or PlannerParameters.from_config()
        self.distance_tool = DistanceTool(
            speed_kmh=self.params.speed_kmh,
            overhead_hours=self.params.travel_overhead_hours,
        )
        self.event_logger = event_logger or _perf_logger

    # ── Public entry point ────────────────────────────────────────────────────

    def optimize_route(
        self,
        ranked: Sequence[CandidatePlace],
        lodgings: Sequence[Lodging],
        trip_start: date,
        total_days: int,
        airport: Optional[Coordinate] = None,
        flights: Optional[FlightTimes] = None,
        session_id: str = "default",
    ) -> list[CandidatePlace]:
        """
        Assign ranked places to days and order each day's places.

        Args:
            ranked:     Candidates sorted best-first (AttractionScorer.rank).
            lodgings:   Stay schedule in list order.
            trip_start: Calendar date of day 1.
            total_days: Trip length in days (≥ 1).
            airport:    Optional airport coordinate (day-1 anchor and fence).
            flights:    Optional day-1 arrival / final-day departure clock times.

        Returns:
            Copies of the assigned places plus one placeholder per otherwise
            empty day, grouped by day and in visiting order.

        Raises:
            InputValidationError: total_days < 1 or no lodgings.
        """
        _t0 = _time_mod.perf_counter()
        if total_days < 1:
            raise InputValidationError(
                f"ERROR_INVALID_TOTAL_DAYS: total_days={total_days} must be >= 1."
            )
        require_lodgings(lodgings)

        arena = self._build_arena(ranked)
        unassigned: set[int] = set(range(len(arena)))

        contexts = [
            self.compute_context(d, lodgings, trip_start, total_days, airport, flights)
            for d in range(1, total_days + 1)
        ]
        schedulable_left = sum(1 for ctx in contexts if not ctx.window.is_transit)

        output: list[CandidatePlace] = []
        placeholders = 0
        for pos, ctx in enumerate(contexts):
            if ctx.window.is_transit:
                logger.debug(
                    "day %d: window %s below %.1f h → transit day",
                    ctx.day_number, ctx.window, self.params.min_window_hours,
                )
                output.append(self._placeholder(ctx, transit=True))
                placeholders += 1
                continue

            later = {c.weekday for c in contexts[pos + 1:] if not c.window.is_transit}
            placeable = [
                i for i in unassigned
                if any(is_open_on(arena[i], wd) for wd in later | {ctx.weekday})
            ]
            quota = math.ceil(len(placeable) / schedulable_left) if placeable else 0
            pool, stats = self._filter_pool(ctx, arena, unassigned, schedulable_left, airport)
            schedulable_left -= 1
            # open today but on no later schedulable day
            last_chance = {
                i for i in pool if not any(is_open_on(arena[i], wd) for wd in later)
            }

            committed = self._greedy_select(
                ctx, arena, pool, unassigned, quota, stats, last_chance,
            )
            if committed:
                output.extend(committed)
            else:
                self._trace_empty_day(ctx, stats, len(unassigned))
                output.append(self._placeholder(ctx, transit=False))
                placeholders += 1

            logger.debug(
                "day %d (%s, %s): %d placed from pool %d (quota %d, radius %.0f km%s)",
                ctx.day_number, ctx.date, ctx.window, len(committed),
                stats.pool_size, quota, stats.radius_km,
                ", last resort" if stats.last_resort else "",
            )

        self.event_logger.log(session_id, "ROUTE_OPTIMIZED", {
            "component": "RoutePlanner.optimize_route",
            "total_days": total_days,
            "candidates": len(arena),
            "assigned": len(arena) - len(unassigned),
            "unassigned": len(unassigned),
            "placeholders": placeholders,
            "duration_ms": round((_time_mod.perf_counter() - _t0) * 1000, 2),
        })
        self.event_logger.close(session_id)
        return output

    # ── State 1: ComputeContext ───────────────────────────────────────────────

    def compute_context(
        self,
        day_number: int,
        lodgings: Sequence[Lodging],
        trip_start: date,
        total_days: int,
        airport: Optional[Coordinate] = None,
        flights: Optional[FlightTimes] = None,
    ) -> DayContext:
        day_date = date.fromordinal(trip_start.toordinal() + day_number - 1)
        lodging = active_lodging(day_date, lodgings)
        fence = geofence_lodging(day_date, lodgings)

        if day_number == 1 and airport is not None:
            anchor, label = airport, "airport"
        elif fence is not None:
            anchor, label = fence.coordinate, fence.name
        else:
            anchor, label = None, "unknown start"

        return DayContext(
            day_number=day_number,
            date=day_date,
            weekday=weekday_index(day_date),
            lodging=lodging,
            fence=fence,
            window=day_window(day_number, total_days, flights, self.params),
            anchor=anchor,
            anchor_label=label,
        )

    # ── State 2: Filter ───────────────────────────────────────────────────────

    def _filter_pool(
        self,
        ctx: DayContext,
        arena: list[CandidatePlace],
        unassigned: set[int],
        days_left: int,
        airport: Optional[Coordinate],
    ) -> tuple[set[int], _DayStats]:
        p = self.params
        stats = _DayStats(radius_km=p.geofence_radius_km)

        if len(unassigned) <= p.small_pool_per_day * max(days_left, 1):
            stats.radius_km = p.geofence_radius_km * p.geofence_widen_factor
            stats.widened = True

        open_now = {i for i in unassigned if is_open_on(arena[i], ctx.weekday)}
        stats.closed = len(unassigned) - len(open_now)

        centers: list[Coordinate] = []
        if ctx.fence is not None:
            centers.append(ctx.fence.coordinate)
        if ctx.day_number == 1 and airport is not None:
            centers.append(airport)

        if not centers:
            stats.pool_size = len(open_now)
            return open_now, stats

        inside = {
            i for i in open_now
            if arena[i].coordinate is None
            or any(distance_km(arena[i].coordinate, c) <= stats.radius_km for c in centers)
        }
        stats.outside_fence = len(open_now) - len(inside)

        if not inside and open_now:
            stats.last_resort = True
            inside = open_now

        stats.pool_size = len(inside)
        return inside, stats

    # ── State 3: GreedySelectLoop ─────────────────────────────────────────────

    def _travel_km(self, anchor: Optional[Coordinate], place: CandidatePlace) -> float:
        km = self.distance_tool.calculate(anchor, place.coordinate)
        return self.params.unknown_travel_km if km is None else km

    def _greedy_select(
        self,
        ctx: DayContext,
        arena: list[CandidatePlace],
        pool: set[int],
        unassigned: set[int],
        quota: int,
        stats: _DayStats,
        last_chance: frozenset[int] | set[int] = frozenset(),
    ) -> list[CandidatePlace]:
        """
        Build one day's chain from the pool.

        Places in last_chance are exempt from the quota and keep a slot
        reserved while they are still pending, so a flexible place cannot
        push out one that no later day can take.
        """
        p = self.params
        window_hours = ctx.window.hours
        limit_hours = window_hours + p.time_flex_hours
        remaining = set(pool)
        state = _ChainState(anchor=ctx.anchor, anchor_label=ctx.anchor_label)
        committed: list[CandidatePlace] = []

        while remaining and state.elapsed_hours < window_hours:
            pending = remaining & last_chance
            free_slots = quota - len(committed) - len(pending)
            eligible = remaining if free_slots > 0 else pending
            if not eligible:
                break
            # lowest weight wins; the index tie-break keeps rank order
            idx = min(
                eligible,
                key=lambda i: (
                    self._travel_km(state.anchor, arena[i])
                    - arena[i].score / p.score_distance_scale,
                    i,
                ),
            )
            remaining.discard(idx)
            place = arena[idx]
            km = self._travel_km(state.anchor, place)
            needed = self.distance_tool.travel_time_hours(km) + place.visit_duration_hours

            if state.elapsed_hours + needed > limit_hours:
                stats.time_overflow += 1
                stats.rejected.append(
                    f"{place.name!r}: {state.elapsed_hours:.1f} h + {needed:.1f} h "
                    f"> {limit_hours:.1f} h"
                )
                continue

            committed.append(self._commit(ctx, place, state))
            unassigned.discard(idx)

            if place.coordinate is not None:
                state = _ChainState(place.coordinate, place.name, state.elapsed_hours + needed)
            else:
                state = replace(state, elapsed_hours=state.elapsed_hours + needed)

        return committed

    def _commit(
        self,
        ctx: DayContext,
        place: CandidatePlace,
        state: _ChainState,
    ) -> CandidatePlace:
        distance = place.distance_from_lodging
        if ctx.fence is not None and place.coordinate is not None:
            distance = round(distance_km(ctx.fence.coordinate, place.coordinate), 1)
        return replace(
            place,
            assigned_day=ctx.day_number,
            anchor=state.anchor_label,
            distance_from_lodging=distance,
            assignment_reason=(
                f"{place.assignment_reason} | Day {ctx.day_number} from {state.anchor_label}"
            ),
        )

    # ── State 4: Finalize / Backfill ──────────────────────────────────────────

    def _placeholder(self, ctx: DayContext, transit: bool) -> CandidatePlace:
        if transit:
            name = "Transit day (arrival)" if ctx.day_number == 1 else "Transit day"
            reason = f"Day {ctx.day_number}: operating window {ctx.window} too short to schedule visits"
        else:
            name = f"Free exploration near {ctx.lodging.name}"
            reason = f"Day {ctx.day_number}: no eligible place left; free time around the lodging"
        coord = ctx.fence.coordinate if ctx.fence is not None else None
        return CandidatePlace(
            name=name,
            category=Category.other,
            rating=0.0,
            price_level=0,
            coordinate=coord,
            visit_duration_hours=max(ctx.window.hours, 0.0),
            score=0.0,
            distance_from_lodging=0.0 if coord is not None else None,
            assigned_day=ctx.day_number,
            assignment_reason=reason,
            anchor=ctx.anchor_label,
            is_placeholder=True,
        )

    # ── Helpers ───────────────────────────────────────────────────────────────

    @staticmethod
    def _build_arena(ranked: Sequence[CandidatePlace]) -> list[CandidatePlace]:
        """
        Fresh copies of the ranked places, rank order kept. Placeholders and
        repeated names are skipped so no place can be scheduled twice.
        """
        arena: list[CandidatePlace] = []
        seen: set[str] = set()
        for c in ranked:
            if c.is_placeholder or c.key in seen:
                continue
            seen.add(c.key)
            arena.append(replace(c, assigned_day=None, anchor=""))
        return arena

    @staticmethod
    def _trace_empty_day(ctx: DayContext, stats: _DayStats, unassigned_left: int) -> None:
        """Rejection diagnostics before a day is backfilled."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug(
            "day %d backfilled: unassigned=%d closed(weekday %d)=%d outside_fence(%.0f km)=%d "
            "time_overflow=%d anchor=%s",
            ctx.day_number, unassigned_left, ctx.weekday, stats.closed,
            stats.radius_km, stats.outside_fence, stats.time_overflow, ctx.anchor_label,
        )
        for line in stats.rejected[:5]:
            logger.debug("  rejected %s", line)


def optimize_route(
    ranked: Sequence[CandidatePlace],
    lodgings: Sequence[Lodging],
    trip_start: date,
    total_days: int,
    airport: Optional[Coordinate] = None,
    flights: Optional[FlightTimes] = None,
    params: PlannerParameters | None = None,
) -> list[CandidatePlace]:
    """Module-level shortcut for RoutePlanner(params).optimize_route(...)."""
    return RoutePlanner(params).optimize_route(
        ranked, lodgings, trip_start, total_days, airport=airport, flights=flights,
    )


def group_by_day(
    assigned: Sequence[CandidatePlace],
    total_days: int,
) -> dict[int, list[CandidatePlace]]:
    """Bucket assigned places by day (1..total_days), keeping visiting order."""
    buckets: dict[int, list[CandidatePlace]] = {d: [] for d in range(1, total_days + 1)}
    for place in assigned:
        if place.assigned_day in buckets:
            buckets[place.assigned_day].append(place)
    return buckets
