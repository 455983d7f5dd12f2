"""
api/routes/itinerary.py
------------------------
POST /v1/itinerary/optimize

Takes the trip form plus the retrieval stage's candidates and lodgings,
runs the ranking + route optimization pipeline synchronously and returns
the day-partitioned plan JSON for the narrative stage.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from trip_optimizer.modules.tool_usage.candidate_tool import (
    dedupe_candidates, parse_candidate_payload, parse_candidates, parse_coordinate,
)
from trip_optimizer.modules.tool_usage.lodging_tool import (
    backfill_lodging_coordinates, parse_lodgings,
)
from trip_optimizer.modules.tool_usage.time_tool import parse_clock
from trip_optimizer.modules.validation import InputValidationError, validate_trip
from trip_optimizer.modules.validation.ingestion_validator import as_date
from trip_optimizer.pipeline import plan_trip
from trip_optimizer.schemas.trip import (
    CandidatePlace, FlightTimes, Focus, Lodging, Pace, TransportPreference, TripParameters,
)

router = APIRouter()


# ── Request schema ─────────────────────────────────────────────────────────────

class OptimizeRequest(BaseModel):
    start_date: str = Field(..., description="ISO-8601 date YYYY-MM-DD (day 1)")
    end_date:   str = Field(..., description="ISO-8601 date YYYY-MM-DD (last day, inclusive)")
    arrival_time:   Optional[str] = Field(None, description="Day-1 flight arrival HH:MM")
    departure_time: Optional[str] = Field(None, description="Last-day flight departure HH:MM")
    travelers:      int = Field(1, ge=1)
    budget_amount:  float = Field(0.0, ge=0, description="Per-person trip budget")
    currency:       str = Field("USD", min_length=3, max_length=3)
    pace:           Pace = Pace.moderate
    focus:          Focus = Focus.balanced
    transport_preference: TransportPreference = TransportPreference.balanced
    custom_requests: str = ""
    airport_lat:    Optional[float] = None
    airport_lon:    Optional[float] = None
    # Retrieval-stage data, in the shape the retrieval stage produces it
    lodgings:    list[dict[str, Any]] = Field(default_factory=list)
    candidates:  list[dict[str, Any]] = Field(default_factory=list)
    hotels_data: list[dict[str, Any]] = Field(
        default_factory=list, description="Geocoded hotels used to back-fill lodging coordinates",
    )
    raw_payload: Optional[str] = Field(
        None, description="Unparsed retrieval answer (JSON, possibly fenced)",
    )
    top_n: Optional[int] = Field(None, ge=1, description="Candidates kept after ranking")


def build_inputs(
    req: OptimizeRequest,
) -> tuple[TripParameters, list[CandidatePlace], list[Lodging]]:
    """
    Convert a request into typed inputs.
    Raises ValueError (incl. InputValidationError) on malformed trip fields.
    """
    result = validate_trip(req.model_dump(include={
        "start_date", "end_date", "travelers", "budget_amount",
    }))
    if not result.valid:
        raise InputValidationError("ERROR_INVALID_TRIP: " + "; ".join(result.errors))
    parse_clock(req.arrival_time)
    parse_clock(req.departure_time)

    candidates = parse_candidates(req.candidates)
    hotels_data = list(req.hotels_data)
    if req.raw_payload:
        extra, extra_hotels = parse_candidate_payload(req.raw_payload)
        candidates = dedupe_candidates(candidates + extra)
        hotels_data.extend(extra_hotels)

    lodgings = backfill_lodging_coordinates(parse_lodgings(req.lodgings), hotels_data)

    trip = TripParameters(
        start_date=as_date(req.start_date),
        end_date=as_date(req.end_date),
        flights=FlightTimes(arrival=req.arrival_time, departure=req.departure_time),
        travelers=req.travelers,
        budget_amount=req.budget_amount,
        currency=req.currency.upper(),
        pace=req.pace,
        focus=req.focus,
        transport_preference=req.transport_preference,
        custom_requests=req.custom_requests,
        airport=parse_coordinate(req.airport_lat, req.airport_lon),
    )
    return trip, candidates, lodgings


# ── Endpoint ───────────────────────────────────────────────────────────────────

@router.post("/optimize", summary="Rank candidates and assign them to trip days")
def optimize_itinerary(req: OptimizeRequest) -> dict:
    """
    Runs the 5-stage optimizer pipeline:
      1. Input validation
      2. Scoring & ranking
      3. Top-N selection
      4. Day-partitioned route optimization
      5. Output assembly (days, narrative payload, lodging schedule)
    """
    try:
        trip, candidates, lodgings = build_inputs(req)
        plan = plan_trip(trip, candidates, lodgings, top_n=req.top_n)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Pipeline error: {exc}") from exc

    return plan.to_dict()
