"""
pipeline.py
-----------
Trip optimizer entry point. Runs the stages between candidate retrieval and
narrative generation:

  Stage 1: Input validation      (fatal errors surface here, before any work)
  Stage 2: Scoring & ranking     (every candidate scored once, best first)
  Stage 3: Top-N selection       (config.TOP_CANDIDATES best places kept)
  Stage 4: Route optimization    (day assignment + same-day visiting order)
  Stage 5: Output assembly       (day buckets, narrative payload, lodging schedule)

Run:
  python -m trip_optimizer.pipeline trip.json

where trip.json holds the same body as POST /v1/itinerary/optimize.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from trip_optimizer import config
from trip_optimizer.modules.observability.logger import StructuredLogger
from trip_optimizer.modules.planning.attraction_scoring import AttractionScorer
from trip_optimizer.modules.planning.lodging_schedule import active_lodging, schedule_summary
from trip_optimizer.modules.planning.route_planner import RoutePlanner, group_by_day
from trip_optimizer.modules.validation import require_valid_inputs
from trip_optimizer.schemas.itinerary import DayBucket, TripPlan
from trip_optimizer.schemas.trip import (
    CandidatePlace, Lodging, PlannerParameters, TripParameters,
)

logger = logging.getLogger(__name__)
_logger = StructuredLogger()


def narrative_payload(assigned: Sequence[CandidatePlace]) -> list[dict[str, Any]]:
    """
    Slimmed per-place records for the narrative stage: only what it needs
    to honour the day assignment and explain the choice.
    """
    payload: list[dict[str, Any]] = []
    for p in assigned:
        payload.append({
            "name":   p.name,
            "day":    p.assigned_day,
            "closed": sorted(p.closed_weekdays),
            "hours":  p.opening_text,
            "lat":    round(p.coordinate.lat, 4) if p.coordinate else None,
            "lng":    round(p.coordinate.lon, 4) if p.coordinate else None,
            "score":  p.score,
            "rating": p.rating,
            "price":  p.price_level,
            "reason": p.assignment_reason,
            "placeholder": p.is_placeholder,
        })
    return payload


def plan_trip(
    trip: TripParameters,
    candidates: Sequence[CandidatePlace],
    lodgings: Sequence[Lodging],
    params: PlannerParameters | None = None,
    top_n: Optional[int] = None,
    session_id: Optional[str] = None,
) -> TripPlan:
    """
    Validate, rank, optimize and assemble a TripPlan.

    Raises:
        InputValidationError: empty candidates, empty lodgings, bad stay,
                              or end_date before start_date.
    """
    params = params or PlannerParameters.from_config()
    top_n = config.TOP_CANDIDATES if top_n is None else top_n
    trip_id = session_id or f"trip_{uuid.uuid4().hex[:12]}"

    try:
        # ── Stage 1 ───────────────────────────────────────────────────────────
        require_valid_inputs(trip, candidates, lodgings)
        total_days = trip.total_days
        _logger.log(trip_id, "PIPELINE_START", {
            "start_date": trip.start_date, "end_date": trip.end_date,
            "total_days": total_days, "candidates": len(candidates),
            "lodgings": len(lodgings), "focus": trip.focus.value,
        })

        # ── Stage 2 ───────────────────────────────────────────────────────────
        ranked = AttractionScorer(params).rank(candidates, trip, lodgings)

        # ── Stage 3 ───────────────────────────────────────────────────────────
        top = ranked[:top_n] if top_n > 0 else list(ranked)
        logger.info("ranked %d candidates, keeping top %d", len(ranked), len(top))

        # ── Stage 4 ───────────────────────────────────────────────────────────
        assigned = RoutePlanner(params).optimize_route(
            top, lodgings, trip.start_date, total_days,
            airport=trip.airport, flights=trip.flights, session_id=trip_id,
        )

        # ── Stage 5 ───────────────────────────────────────────────────────────
        buckets = group_by_day(assigned, total_days)
        days = [
            DayBucket(
                day_number=d,
                date=trip.date_of(d),
                lodging_name=active_lodging(trip.date_of(d), lodgings).name,
                places=buckets[d],
            )
            for d in range(1, total_days + 1)
        ]
        placed = {p.key for p in assigned if not p.is_placeholder}
        unassigned = [c for c in top if c.key not in placed]

        plan = TripPlan(
            trip_id=trip_id,
            total_days=total_days,
            days=days,
            ranked=ranked,
            unassigned=unassigned,
            lodging_schedule=schedule_summary(lodgings),
            narrative_payload=narrative_payload(assigned),
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
        _logger.log(trip_id, "PIPELINE_END", {
            "assigned": len(placed),
            "unassigned": len(unassigned),
            "backfilled_days": [d.day_number for d in days if d.is_backfilled],
        })
        return plan
    finally:
        _logger.close(trip_id)


def main(argv: list[str] | None = None) -> int:
    """CLI: read a request JSON file, print the plan JSON."""
    # imported here: the API layer pulls in fastapi/pydantic
    from trip_optimizer.api.routes.itinerary import OptimizeRequest, build_inputs

    parser = argparse.ArgumentParser(description="Plan a multi-day trip from candidate places.")
    parser.add_argument("request", help="path to a JSON request body")
    parser.add_argument("--top-n", type=int, default=None, help="candidates kept after ranking")
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    with open(args.request, encoding="utf-8") as fh:
        req = OptimizeRequest.model_validate(json.load(fh))
    trip, candidates, lodgings = build_inputs(req)
    plan = plan_trip(trip, candidates, lodgings, top_n=args.top_n)
    json.dump(plan.to_dict(), sys.stdout, ensure_ascii=False, indent=2, default=str)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
