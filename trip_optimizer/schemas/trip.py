"""
schemas/trip.py
---------------
Dataclass definitions for the optimizer inputs: places, lodgings, trip
parameters and the planner tuning structure.

Units:
  distances → km | durations → hours | clock times → "HH:MM" strings
  weekdays  → 0 = Sunday … 6 = Saturday (as sent by the retrieval stage)
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from trip_optimizer import config


class Category(str, Enum):
    sightseeing = "sightseeing"
    shopping = "shopping"
    food = "food"
    culture = "culture"
    other = "other"

    @classmethod
    def parse(cls, value: object) -> "Category":
        """Map any incoming string onto the closed set; unknown → other."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.other


class Focus(str, Enum):
    sightseeing = "sightseeing"
    shopping = "shopping"
    food = "food"
    culture = "culture"
    balanced = "balanced"


class Pace(str, Enum):
    relaxed = "relaxed"
    moderate = "moderate"
    intense = "intense"


class TransportPreference(str, Enum):
    cheaper = "cheaper"
    faster = "faster"
    balanced = "balanced"


@dataclass(frozen=True)
class Coordinate:
    """A (latitude, longitude) pair in degrees. Absent locations are None, never (0, 0)."""
    lat: float
    lon: float


def normalize_name(name: str) -> str:
    """Dedup key: case-folded, whitespace-collapsed name."""
    return re.sub(r"\s+", " ", name or "").strip().casefold()


@dataclass
class CandidatePlace:
    """
    A point of interest proposed by the retrieval stage.

    The last block of fields is computed: ScoringEngine fills score,
    distance_from_lodging and assignment_reason; RoutePlanner fills
    assigned_day and anchor.
    """
    name: str = ""
    category: Category = Category.other
    rating: float = config.DEFAULT_RATING     # 0–5
    review_count: int = 0
    price_level: int = 0                      # 1–4 ($ … $$$$), 0 = unknown
    coordinate: Optional[Coordinate] = None
    closed_weekdays: frozenset[int] = frozenset()
    opening_text: str = ""
    description: str = ""
    visit_duration_hours: float = 1.0

    # ── Computed ──────────────────────────────────────────────────────────────
    score: float = 0.0
    distance_from_lodging: Optional[float] = None   # km, one decimal
    assigned_day: Optional[int] = None               # 1-based
    assignment_reason: str = ""
    anchor: str = ""
    is_placeholder: bool = False

    @property
    def key(self) -> str:
        return normalize_name(self.name)


@dataclass(frozen=True)
class Lodging:
    """
    Where the traveller sleeps for the half-open stay [check_in, check_out).
    coordinate is None when geocoding failed.
    """
    id: str = ""
    name: str = ""
    address: str = ""
    coordinate: Optional[Coordinate] = None
    check_in: date = date.min
    check_out: date = date.min

    def __post_init__(self) -> None:
        # stays are whole nights; a datetime would not compare with a date
        for name in ("check_in", "check_out"):
            value = getattr(self, name)
            if isinstance(value, datetime):
                object.__setattr__(self, name, value.date())


@dataclass(frozen=True)
class FlightTimes:
    """Clock times ("HH:MM") of the day-1 arrival and the final-day departure."""
    arrival: Optional[str] = None
    departure: Optional[str] = None


@dataclass
class TripParameters:
    """Trip-level inputs collected by the form (dates inclusive)."""
    start_date: date
    end_date: date
    flights: FlightTimes = field(default_factory=FlightTimes)
    travelers: int = 1
    budget_amount: float = 0.0          # per person
    currency: str = "USD"
    pace: Pace = Pace.moderate
    focus: Focus = Focus.balanced
    transport_preference: TransportPreference = TransportPreference.balanced
    custom_requests: str = ""           # opaque here; consumed upstream
    airport: Optional[Coordinate] = None

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def date_of(self, day_number: int) -> date:
        return self.start_date + timedelta(days=day_number - 1)


@dataclass(frozen=True)
class PlannerParameters:
    """
    Every tuning constant used by scoring and routing, in one place.
    Defaults are snapshotted from config.py; override per run with
    dataclasses.replace(params, ...).
    """
    # Scoring weights
    w_rating: float = config.SCORE_WEIGHT_RATING
    w_interest: float = config.SCORE_WEIGHT_INTEREST
    w_proximity: float = config.SCORE_WEIGHT_PROXIMITY
    w_budget: float = config.SCORE_WEIGHT_BUDGET

    # Proximity term
    comfort_radius_km: float = config.PROXIMITY_COMFORT_RADIUS_KM
    outlier_km: float = config.PROXIMITY_OUTLIER_KM
    outlier_penalty: float = config.PROXIMITY_OUTLIER_PENALTY
    unknown_location_penalty: float = config.UNKNOWN_LOCATION_PENALTY

    # Budget term
    low_budget_per_day: float = config.LOW_BUDGET_PER_DAY

    # Day window [minutes from midnight]
    day_start_min: int = config.DAY_START_MIN
    day_end_min: int = config.DAY_END_MIN
    arrival_buffer_min: int = config.ARRIVAL_BUFFER_MIN
    departure_buffer_min: int = config.DEPARTURE_BUFFER_MIN
    min_window_hours: float = config.MIN_WINDOW_HOURS
    time_flex_hours: float = config.TIME_FLEX_HOURS

    # Travel model
    speed_kmh: float = config.ASSUMED_SPEED_KMH
    travel_overhead_hours: float = config.TRAVEL_OVERHEAD_HOURS
    unknown_travel_km: float = config.UNKNOWN_TRAVEL_KM

    # Geofence / greedy chaining
    geofence_radius_km: float = config.GEOFENCE_RADIUS_KM
    geofence_widen_factor: float = config.GEOFENCE_WIDEN_FACTOR
    small_pool_per_day: float = config.SMALL_POOL_PER_DAY
    score_distance_scale: float = config.SCORE_DISTANCE_SCALE

    @classmethod
    def from_config(cls) -> "PlannerParameters":
        """Snapshot of config.py as it is now (the field defaults are read at import)."""
        return cls(
            w_rating=config.SCORE_WEIGHT_RATING,
            w_interest=config.SCORE_WEIGHT_INTEREST,
            w_proximity=config.SCORE_WEIGHT_PROXIMITY,
            w_budget=config.SCORE_WEIGHT_BUDGET,
            comfort_radius_km=config.PROXIMITY_COMFORT_RADIUS_KM,
            outlier_km=config.PROXIMITY_OUTLIER_KM,
            outlier_penalty=config.PROXIMITY_OUTLIER_PENALTY,
            unknown_location_penalty=config.UNKNOWN_LOCATION_PENALTY,
            low_budget_per_day=config.LOW_BUDGET_PER_DAY,
            day_start_min=config.DAY_START_MIN,
            day_end_min=config.DAY_END_MIN,
            arrival_buffer_min=config.ARRIVAL_BUFFER_MIN,
            departure_buffer_min=config.DEPARTURE_BUFFER_MIN,
            min_window_hours=config.MIN_WINDOW_HOURS,
            time_flex_hours=config.TIME_FLEX_HOURS,
            speed_kmh=config.ASSUMED_SPEED_KMH,
            travel_overhead_hours=config.TRAVEL_OVERHEAD_HOURS,
            unknown_travel_km=config.UNKNOWN_TRAVEL_KM,
            geofence_radius_km=config.GEOFENCE_RADIUS_KM,
            geofence_widen_factor=config.GEOFENCE_WIDEN_FACTOR,
            small_pool_per_day=config.SMALL_POOL_PER_DAY,
            score_distance_scale=config.SCORE_DISTANCE_SCALE,
        )
