"""
schemas/itinerary.py
--------------------
Dataclass definitions for the optimizer output handed to the narrative stage.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from trip_optimizer.schemas.trip import CandidatePlace


def place_to_dict(p: CandidatePlace) -> dict[str, Any]:
    """Serialise a place in the camelCase shape the retrieval stage sent it in."""
    return {
        "name":                p.name,
        "category":            p.category.value,
        "rating":              p.rating,
        "reviewCount":         p.review_count,
        "priceLevel":          p.price_level,
        "latitude":            p.coordinate.lat if p.coordinate else None,
        "longitude":           p.coordinate.lon if p.coordinate else None,
        "closedDays":          sorted(p.closed_weekdays),
        "openingText":         p.opening_text,
        "description":         p.description,
        "durationHours":       p.visit_duration_hours,
        "score":               p.score,
        "distanceFromLodging": p.distance_from_lodging,
        "assignedDay":         p.assigned_day,
        "assignmentReason":    p.assignment_reason,
        "anchor":              p.anchor,
        "isPlaceholder":       p.is_placeholder,
    }


@dataclass
class DayBucket:
    """One trip day: the places in visiting order (never empty once planned)."""
    day_number: int = 0
    date: Optional[date] = None
    lodging_name: str = ""
    places: list[CandidatePlace] = field(default_factory=list)

    @property
    def is_backfilled(self) -> bool:
        return all(p.is_placeholder for p in self.places)


@dataclass
class TripPlan:
    """
    Top-level output of the pipeline.

    ranked:            every candidate after scoring, best first
    unassigned:        top-N candidates the route planner could not place
    narrative_payload: slimmed per-place records for the narrative stage
    """
    trip_id: str = ""
    total_days: int = 0
    days: list[DayBucket] = field(default_factory=list)
    ranked: list[CandidatePlace] = field(default_factory=list)
    unassigned: list[CandidatePlace] = field(default_factory=list)
    lodging_schedule: str = ""
    narrative_payload: list[dict] = field(default_factory=list)
    generated_at: str = ""  # ISO-8601 timestamp

    def to_dict(self) -> dict[str, Any]:
        return {
            "trip_id":      self.trip_id,
            "total_days":   self.total_days,
            "generated_at": self.generated_at,
            "lodging_schedule": self.lodging_schedule,
            "days": [
                {
                    "day_number":   d.day_number,
                    "date":         d.date.isoformat() if d.date else None,
                    "lodging":      d.lodging_name,
                    "places":       [place_to_dict(p) for p in d.places],
                }
                for d in self.days
            ],
            "unassigned":        [place_to_dict(p) for p in self.unassigned],
            "narrative_payload": self.narrative_payload,
        }
