"""
test_route_planner.py
─────────────────────
Day partitioning and greedy chaining.

Covers the four reference scenarios:
  A. small pool, generous windows  → everything placed, no placeholders
  B. closed on the day's weekday   → excluded, day backfilled
  C. 22:00 arrival                 → day 1 is a single transit placeholder
  D. 150 km outlier                → placed only when nothing closer is left

plus the geofence (exclusion, widening, last resort, per-lodging and day-1
airport fences), the fair-share quota around closures, and the structural
guarantees (every day non-empty, visit-once, closures honoured, deterministic
output, inputs untouched).

Run:
    pytest test_route_planner.py
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

import pytest

from trip_optimizer.modules.observability.logger import StructuredLogger
from trip_optimizer.modules.planning.attraction_scoring import AttractionScorer
from trip_optimizer.modules.planning.route_planner import RoutePlanner, group_by_day, optimize_route
from trip_optimizer.modules.planning.time_window import weekday_index
from trip_optimizer.modules.validation import InputValidationError
from trip_optimizer.schemas.trip import (
    CandidatePlace, Category, Coordinate, FlightTimes, Lodging, TripParameters,
)

START = date(2024, 5, 6)   # a Monday
CENTRO = Coordinate(41.3851, 2.1734)
HOTEL = Lodging(
    id="h1", name="Hotel Centro", coordinate=CENTRO,
    check_in=START, check_out=START + timedelta(days=3),
)
TUESDAY = 2


def _planner() -> RoutePlanner:
    return RoutePlanner(event_logger=StructuredLogger(enabled=False))


def _place(name, dlat=0.0, score=50.0, closed=(), hours=1.0, coordinate=...):
    """A scored place dlat degrees north of the hotel (0.009° ≈ 1 km)."""
    if coordinate is ...:
        coordinate = Coordinate(CENTRO.lat + dlat, CENTRO.lon)
    return CandidatePlace(
        name=name,
        category=Category.sightseeing,
        coordinate=coordinate,
        closed_weekdays=frozenset(closed),
        visit_duration_hours=hours,
        score=score,
    )


def _real(assigned):
    return [p for p in assigned if not p.is_placeholder]


# ── Scenarios ─────────────────────────────────────────────────────────────────

def test_scenario_a_everything_fits():
    ranked = [_place("Sagrada Familia", 0.01, 80), _place("Park Guell", 0.02, 70),
              _place("Casa Batllo", 0.015, 60)]
    assigned = _planner().optimize_route(ranked, [HOTEL], START, 2)

    assert not any(p.is_placeholder for p in assigned)
    assert sorted(p.name for p in assigned) == sorted(p.name for p in ranked)
    buckets = group_by_day(assigned, 2)
    assert buckets[1] and buckets[2]


def test_scenario_b_closed_on_the_only_day_left():
    museum = _place("Museu Nacional", 0.01, 80, closed={TUESDAY})
    assigned = _planner().optimize_route(
        [museum], [HOTEL], START, 2, flights=FlightTimes(arrival="22:00"),
    )
    # day 1 is transit, day 2 is a Tuesday
    assert [p.name for p in assigned] == [
        "Transit day (arrival)", "Free exploration near Hotel Centro",
    ]
    assert all(p.is_placeholder for p in assigned)


def test_scenario_b_pool_excludes_closed_place():
    planner = _planner()
    museum = _place("Museu Nacional", 0.01, 80, closed={TUESDAY})
    arena = planner._build_arena([museum])
    ctx = planner.compute_context(2, [HOTEL], START, 2)
    assert ctx.weekday == TUESDAY

    pool, stats = planner._filter_pool(ctx, arena, {0}, 1, None)
    assert pool == set()
    assert stats.closed == 1


def test_scenario_b_placed_on_an_open_day():
    museum = _place("Museu Nacional", 0.01, 80, closed={TUESDAY})
    assigned = _planner().optimize_route([museum], [HOTEL], START, 2)
    assert assigned[0].name == "Museu Nacional"
    assert assigned[0].assigned_day == 1
    assert assigned[1].is_placeholder
    assert assigned[1].assigned_day == 2


def test_scenario_c_late_arrival_is_transit():
    ranked = [_place("Sagrada Familia", 0.01, 80), _place("Park Guell", 0.02, 70)]
    assigned = _planner().optimize_route(
        ranked, [HOTEL], START, 2, flights=FlightTimes(arrival="22:00"),
    )
    day1 = group_by_day(assigned, 2)[1]
    assert len(day1) == 1
    assert day1[0].is_placeholder
    assert day1[0].name == "Transit day (arrival)"
    assert {p.name for p in group_by_day(assigned, 2)[2]} == {"Sagrada Familia", "Park Guell"}


def test_scenario_d_outlier_waits_for_closer_places():
    trip = TripParameters(start_date=START, end_date=START)
    candidates = [
        CandidatePlace(name="Distant Castle", coordinate=Coordinate(CENTRO.lat + 1.349, CENTRO.lon)),
        CandidatePlace(name="Sagrada Familia", coordinate=Coordinate(CENTRO.lat + 0.01, CENTRO.lon)),
        CandidatePlace(name="Park Guell", coordinate=Coordinate(CENTRO.lat + 0.02, CENTRO.lon)),
    ]
    ranked = AttractionScorer().rank(candidates, trip, [HOTEL])
    assert ranked[-1].name == "Distant Castle"
    assert ranked[-1].score < 0

    assigned = _planner().optimize_route(ranked, [HOTEL], START, 1)
    assert {p.name for p in assigned} == {"Sagrada Familia", "Park Guell"}

    alone = _planner().optimize_route([ranked[-1]], [HOTEL], START, 1)
    assert [p.name for p in alone] == ["Distant Castle"]
    assert alone[0].assigned_day == 1
    assert alone[0].distance_from_lodging == pytest.approx(150.0, abs=1.0)


# ── Greedy chaining ───────────────────────────────────────────────────────────

def test_high_score_outweighs_modest_distance():
    near = _place("Corner Cafe", 0.018, 50)       # ~2 km, weight −3
    better = _place("Palau Guell", 0.045, 90)     # ~5 km, weight −4
    assigned = _planner().optimize_route([near, better], [HOTEL], START, 1)
    assert [p.name for p in assigned] == ["Palau Guell", "Corner Cafe"]
    assert assigned[0].anchor == "Hotel Centro"
    assert assigned[1].anchor == "Palau Guell"


def test_equal_weights_keep_rank_order():
    ranked = [_place("Plaça A", 0.0, 50), _place("Plaça B", 0.0, 50)]
    assigned = _planner().optimize_route(ranked, [HOTEL], START, 1)
    assert [p.name for p in assigned] == ["Plaça A", "Plaça B"]


def test_time_budget_rejects_overflowing_place():
    ranked = [_place(f"Long Tour {n}", 0.0, 50, hours=5.0) for n in range(3)]
    assigned = _planner().optimize_route(ranked, [HOTEL], START, 1)
    # 5.25 h each: a third would need 15.75 h against 11 h + 0.5 h flex
    assert [p.name for p in assigned] == ["Long Tour 0", "Long Tour 1"]


def test_airport_anchors_day_one():
    airport = Coordinate(CENTRO.lat + 0.1, CENTRO.lon)
    ranked = [_place("Terminal Market", 0.101, 50), _place("Old Town", 0.005, 50)]
    assigned = _planner().optimize_route(ranked, [HOTEL], START, 2, airport=airport)
    assert assigned[0].name == "Terminal Market"
    assert assigned[0].anchor == "airport"


def test_unknown_coordinate_does_not_move_anchor():
    mystery = _place("Mystery Spot", score=120, coordinate=None)
    lobby = _place("Lobby Bar", 0.0, 10)
    assigned = _planner().optimize_route([mystery, lobby], [HOTEL], START, 1)
    assert [p.name for p in assigned] == ["Mystery Spot", "Lobby Bar"]
    assert assigned[1].anchor == "Hotel Centro"
    assert assigned[0].distance_from_lodging is None


def test_travel_falls_back_when_a_side_is_unknown():
    planner = _planner()
    place = _place("Sagrada Familia", 0.018, 80)
    assert planner._travel_km(CENTRO, place) == pytest.approx(2.0, abs=0.1)
    assert planner._travel_km(None, place) == planner.params.unknown_travel_km
    assert planner._travel_km(CENTRO, replace(place, coordinate=None)) == planner.params.unknown_travel_km


def test_commit_records_distance_and_reason():
    place = replace(_place("Sagrada Familia", 0.018, 80), assignment_reason="Score 80.0")
    assigned = _planner().optimize_route([place], [HOTEL], START, 1)
    assert assigned[0].distance_from_lodging == pytest.approx(2.0, abs=0.1)
    assert assigned[0].assignment_reason == "Score 80.0 | Day 1 from Hotel Centro"


# ── Fair share and closures ───────────────────────────────────────────────────

def test_place_closed_on_later_days_is_not_crowded_out():
    flexible = _place("Park Guell", 0.01, 90)
    monday_only = _place("Museu Nacional", 0.02, 50, closed={TUESDAY})
    assigned = _planner().optimize_route([flexible, monday_only], [HOTEL], START, 2)

    assert not any(p.is_placeholder for p in assigned)
    assert [(p.name, p.assigned_day) for p in assigned] == [
        ("Museu Nacional", 1), ("Park Guell", 2),
    ]


def test_last_chance_places_go_past_the_quota():
    ranked = [_place("Park Guell", 0.01, 90)] + [
        _place(f"Monday Market {n}", 0.003 * (n + 1), 40, closed={TUESDAY}) for n in range(3)
    ]
    assigned = _planner().optimize_route(ranked, [HOTEL], START, 2)
    buckets = group_by_day(assigned, 2)

    # quota is ceil(4 / 2) = 2, but no market can wait for Tuesday
    assert {p.name for p in buckets[1]} == {f"Monday Market {n}" for n in range(3)}
    assert [p.name for p in buckets[2]] == ["Park Guell"]


# ── Geofence ──────────────────────────────────────────────────────────────────

def _old_town(count):
    return [_place(f"Old Town {n}", 0.005 * (n + 1), 50) for n in range(count)]


def test_geofence_leaves_out_far_place_while_closer_ones_remain():
    planner = _planner()
    montserrat = _place("Montserrat", 0.45, 95)           # ~50 km north
    arena = planner._build_arena(_old_town(4) + [montserrat])
    ctx = planner.compute_context(1, [HOTEL], START, 2)

    pool, stats = planner._filter_pool(ctx, arena, set(range(5)), 2, None)
    assert pool == {0, 1, 2, 3}
    assert stats.outside_fence == 1
    assert not stats.widened
    assert stats.radius_km == pytest.approx(40.0)

    assigned = _planner().optimize_route(arena, [HOTEL], START, 2)
    assert "Montserrat" not in {p.name for p in group_by_day(assigned, 2)[1]}


def test_geofence_widens_when_few_places_remain():
    planner = _planner()
    arena = planner._build_arena(_old_town(1) + [_place("Montserrat", 0.45, 95)])
    ctx = planner.compute_context(1, [HOTEL], START, 1)

    pool, stats = planner._filter_pool(ctx, arena, {0, 1}, 1, None)
    assert stats.widened
    assert stats.radius_km == pytest.approx(100.0)
    assert pool == {0, 1}
    assert stats.outside_fence == 0


def test_geofence_last_resort_admits_lone_outlier():
    planner = _planner()
    arena = planner._build_arena([_place("Distant Castle", 1.349, 10)])   # ~150 km
    ctx = planner.compute_context(1, [HOTEL], START, 1)

    pool, stats = planner._filter_pool(ctx, arena, {0}, 1, None)
    assert stats.widened
    assert stats.outside_fence == 1
    assert stats.last_resort
    assert pool == {0}


def test_each_day_is_fenced_and_anchored_on_its_own_lodging():
    girona = Coordinate(41.9794, 2.8214)                   # ~85 km from the centre
    lodgings = [
        Lodging(id="h1", name="Hotel Centro", coordinate=CENTRO,
                check_in=START, check_out=START + timedelta(days=1)),
        Lodging(id="h2", name="Girona Inn", coordinate=girona,
                check_in=START + timedelta(days=1), check_out=START + timedelta(days=3)),
    ]
    in_girona = [
        _place(f"Girona Stop {n}", score=60,
               coordinate=Coordinate(girona.lat + 0.004 * (n + 1), girona.lon))
        for n in range(3)
    ]
    in_barcelona = [_place(f"Barcelona Stop {n}", 0.004 * (n + 1), 60) for n in range(3)]

    planner = _planner()
    assert planner.compute_context(2, lodgings, START, 2).fence.name == "Girona Inn"

    assigned = planner.optimize_route(in_girona + in_barcelona, lodgings, START, 2)
    buckets = group_by_day(assigned, 2)
    assert {p.name for p in buckets[1]} == {p.name for p in in_barcelona}
    assert {p.name for p in buckets[2]} == {p.name for p in in_girona}
    assert buckets[1][0].anchor == "Hotel Centro"
    assert buckets[2][0].anchor == "Girona Inn"
    assert all(p.distance_from_lodging < 2.0 for p in _real(assigned))


def test_airport_fence_applies_on_day_one_only():
    planner = _planner()
    airport = Coordinate(CENTRO.lat + 0.6, CENTRO.lon)     # ~67 km from the hotel
    terminal = _place("Terminal Market", score=50,
                      coordinate=Coordinate(airport.lat + 0.005, airport.lon))
    arena = planner._build_arena(_old_town(5) + [terminal])
    unassigned = set(range(6))

    day1 = planner.compute_context(1, [HOTEL], START, 2, airport)
    pool, stats = planner._filter_pool(day1, arena, unassigned, 2, airport)
    assert 5 in pool
    assert not stats.widened

    day2 = planner.compute_context(2, [HOTEL], START, 2, airport)
    pool, stats = planner._filter_pool(day2, arena, unassigned, 2, airport)
    assert 5 not in pool
    assert stats.outside_fence == 1


# ── Structural guarantees ─────────────────────────────────────────────────────

def _mixed_pool():
    return [
        _place("Sagrada Familia", 0.010, 90, closed={1}),
        _place("Park Guell", 0.020, 85),
        _place("Casa Batllo", 0.015, 80, closed={2, 3}),
        _place("La Pedrera", 0.012, 75),
        _place("Boqueria", 0.003, 70, closed={0, 1}),
        _place("Montjuic", 0.030, 65, hours=3.0),
        _place("Tibidabo", 0.080, 60, hours=4.0),
        _place("Barceloneta", 0.025, 55),
    ]


def test_partition_and_closures():
    ranked = _mixed_pool()
    assigned = _planner().optimize_route(ranked, [HOTEL], START, 3)
    buckets = group_by_day(assigned, 3)

    assert all(buckets[d] for d in (1, 2, 3))
    names = [p.name for p in _real(assigned)]
    assert len(names) == len(set(names))
    for place in _real(assigned):
        assert 1 <= place.assigned_day <= 3
        day_date = START + timedelta(days=place.assigned_day - 1)
        assert weekday_index(day_date) not in place.closed_weekdays


def test_output_is_grouped_in_day_order():
    assigned = _planner().optimize_route(_mixed_pool(), [HOTEL], START, 3)
    days = [p.assigned_day for p in assigned]
    assert days == sorted(days)


def test_repeat_runs_are_identical():
    ranked = _mixed_pool()
    planner = _planner()
    first = planner.optimize_route(ranked, [HOTEL], START, 3)
    second = planner.optimize_route(ranked, [HOTEL], START, 3)
    assert first == second


def test_inputs_are_not_mutated():
    ranked = _mixed_pool()
    snapshot = [replace(p) for p in ranked]
    lodgings = [HOTEL]
    _planner().optimize_route(ranked, lodgings, START, 3)
    assert ranked == snapshot
    assert lodgings == [HOTEL]


def test_module_shortcut_matches_planner():
    ranked = _mixed_pool()
    assert optimize_route(ranked, [HOTEL], START, 3) == _planner().optimize_route(ranked, [HOTEL], START, 3)


def test_duplicate_names_are_scheduled_once():
    ranked = [_place("Park Guell", 0.02, 80), _place("park  guell", 0.02, 70)]
    assigned = _planner().optimize_route(ranked, [HOTEL], START, 1)
    assert [p.name for p in assigned] == ["Park Guell"]


def test_empty_pool_backfills_every_day():
    assigned = _planner().optimize_route([], [HOTEL], START, 3)
    assert [p.assigned_day for p in assigned] == [1, 2, 3]
    assert all(p.is_placeholder for p in assigned)
    assert assigned[0].coordinate == CENTRO


def test_fatal_preconditions():
    with pytest.raises(InputValidationError, match="ERROR_INVALID_TOTAL_DAYS"):
        _planner().optimize_route([], [HOTEL], START, 0)
    with pytest.raises(InputValidationError, match="ERROR_EMPTY_LODGINGS"):
        _planner().optimize_route([], [], START, 1)


def test_route_event_is_logged(tmp_path):
    with StructuredLogger(logs_dir=tmp_path, enabled=True) as events:
        RoutePlanner(event_logger=events).optimize_route(
            _mixed_pool(), [HOTEL], START, 3, session_id="trip_test",
        )
    assert events.path_for("trip_test").exists()

    records = events.events("trip_test", "ROUTE_OPTIMIZED")
    assert len(records) == 1
    payload = records[0]["payload"]
    assert payload["total_days"] == 3
    assert payload["candidates"] == 8
    assert payload["assigned"] + payload["unassigned"] == 8


def test_planner_parameters_follow_config(monkeypatch):
    from trip_optimizer import config
    from trip_optimizer.schemas.trip import PlannerParameters

    assert PlannerParameters.from_config() == PlannerParameters()
    monkeypatch.setattr(config, "GEOFENCE_RADIUS_KM", 10.0)
    assert PlannerParameters.from_config().geofence_radius_km == 10.0
    assert RoutePlanner().params.geofence_radius_km == 10.0


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))
