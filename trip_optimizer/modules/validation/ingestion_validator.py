"""
modules/validation/ingestion_validator.py
------------------------------------------
Data-quality guards applied before anything reaches the optimizer.

Two layers:

  Record-level (candidates are recoverable: bad records are dropped with a
  warning; a bad lodging record is fatal, ERROR_INVALID_STAY):
    Candidate:
      ✓ Non-empty name
      ✓ Latitude in [-90, 90], longitude in [-180, 180] if present
      ✓ Rating in [0, 5] if present
      ✓ priceLevel in [0, 4] if present
      ✓ closedDays entries in [0, 6]
    Lodging:
      ✓ Non-empty name
      ✓ checkIn / checkOut are ISO-8601 dates and checkIn < checkOut
    Trip:
      ✓ end_date >= start_date
      ✓ travelers >= 1, budget >= 0

  Run-level (fatal: raised before optimization starts):
    ✓ at least one candidate
    ✓ total_days >= 1
    ✓ at least one lodging, each with check_in < check_out

Usage:
    from trip_optimizer.modules.validation import validate_candidate, filter_valid

    clean_records = filter_valid(records, validate_candidate)
    require_valid_inputs(trip, candidates, lodgings)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Sequence, TypeVar

from trip_optimizer.schemas.trip import CandidatePlace, Lodging, TripParameters

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InputValidationError(ValueError):
    """Fatal input problem; the message starts with an ERROR_* code."""


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of a single validation run.

    Attributes:
        valid:  True iff there are zero errors.
        errors: Human-readable list of failure reasons.
        record: The input record dict (for logging purposes).
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    record: dict = field(default_factory=dict, repr=False)

    def __bool__(self) -> bool:
        return self.valid


def as_date(value: Any) -> date:
    """date, datetime or ISO-8601 string → date (time of day stripped)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


# ── Candidate validation ───────────────────────────────────────────────────────

def validate_candidate(record: dict[str, Any]) -> ValidationResult:
    """
    Validate a raw candidate record as returned by the retrieval stage
    (camelCase keys: name, latitude, longitude, rating, priceLevel, closedDays).

    Missing coordinates are NOT an error: they become "unknown" downstream.
    """
    errors: list[str] = []

    # ── Name ───────────────────────────────────────────────────────────────
    name = record.get("name", "")
    if not name or not str(name).strip():
        errors.append("name must not be empty or NULL")

    # ── Coordinates ────────────────────────────────────────────────────────
    lat = record.get("latitude")
    lon = record.get("longitude")
    if lat is not None and lon is not None:
        try:
            lat_f, lon_f = float(lat), float(lon)
            if not (-90.0 <= lat_f <= 90.0):
                errors.append(f"latitude={lat_f} is outside valid range [-90, 90]")
            if not (-180.0 <= lon_f <= 180.0):
                errors.append(f"longitude={lon_f} is outside valid range [-180, 180]")
        except (TypeError, ValueError):
            errors.append(
                f"latitude/longitude must be numeric (got lat={lat!r}, lon={lon!r})"
            )

    # ── Rating ─────────────────────────────────────────────────────────────
    rating = record.get("rating")
    if rating is not None:
        try:
            r = float(rating)
            if not (0.0 <= r <= 5.0):
                errors.append(f"rating={r} is outside valid range [0, 5]")
        except (TypeError, ValueError):
            errors.append(f"rating={rating!r} must be numeric")

    # ── Price level ────────────────────────────────────────────────────────
    price = record.get("priceLevel")
    if price is not None:
        try:
            p = int(price)
            if not (0 <= p <= 4):
                errors.append(f"priceLevel={p} is outside valid range [0, 4]")
        except (TypeError, ValueError):
            errors.append(f"priceLevel={price!r} must be an integer")

    # ── Closed days ────────────────────────────────────────────────────────
    closed = record.get("closedDays") or []
    if not isinstance(closed, (list, tuple, set, frozenset)):
        errors.append(f"closedDays={closed!r} must be a list of integers 0-6")
    else:
        bad = [d for d in closed if not isinstance(d, int) or not (0 <= d <= 6)]
        if bad:
            errors.append(f"closedDays contains invalid weekday(s) {bad!r}; expected 0-6")

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=record)


# ── Lodging validation ─────────────────────────────────────────────────────────

def validate_lodging(record: dict[str, Any]) -> ValidationResult:
    """
    Validate a raw lodging record (name, checkIn, checkOut as ISO dates).
    The stay is half-open, so checkIn must be strictly before checkOut.
    """
    errors: list[str] = []

    name = record.get("name", "")
    if not name or not str(name).strip():
        errors.append("name must not be empty or NULL")

    check_in = record.get("checkIn")
    check_out = record.get("checkOut")
    if check_in is None or check_out is None:
        errors.append(
            f"checkIn/checkOut must not be NULL (got checkIn={check_in!r}, checkOut={check_out!r})"
        )
    else:
        try:
            ci, co = as_date(check_in), as_date(check_out)
            if ci >= co:
                errors.append(f"checkIn={ci} must be before checkOut={co}")
        except ValueError:
            errors.append(
                f"checkIn={check_in!r} or checkOut={check_out!r} is not a valid ISO-8601 date"
            )

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=record)


# ── Trip validation ────────────────────────────────────────────────────────────

def validate_trip(record: dict[str, Any]) -> ValidationResult:
    """
    Validate trip-level fields (start_date, end_date, travelers, budget_amount).
    """
    errors: list[str] = []

    budget = record.get("budget_amount")
    if budget is not None:
        try:
            b = float(budget)
            if b < 0:
                errors.append(f"budget_amount={b} must be >= 0")
        except (TypeError, ValueError):
            errors.append(f"budget_amount={budget!r} must be numeric")

    travelers = record.get("travelers")
    if travelers is not None:
        try:
            if int(travelers) < 1:
                errors.append(f"travelers={travelers} must be >= 1")
        except (TypeError, ValueError):
            errors.append(f"travelers={travelers!r} must be a positive integer")

    start = record.get("start_date")
    end = record.get("end_date")
    if start is not None and end is not None:
        try:
            start_d, end_d = as_date(start), as_date(end)
            if end_d < start_d:
                errors.append(f"end_date={end_d} is before start_date={start_d}")
        except ValueError:
            errors.append(
                f"start_date={start!r} or end_date={end!r} is not a valid ISO-8601 date"
            )

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=record)


# ── Run-level guard ────────────────────────────────────────────────────────────

def require_valid_inputs(
    trip: TripParameters,
    candidates: Sequence[CandidatePlace],
    lodgings: Sequence[Lodging],
) -> None:
    """
    Raise InputValidationError for the fatal cases; return None otherwise.
    Called by the pipeline before ranking so nothing half-runs.
    """
    if not candidates:
        raise InputValidationError(
            "ERROR_EMPTY_CANDIDATES: the retrieval stage returned no candidate places."
        )
    if trip.total_days < 1:
        raise InputValidationError(
            f"ERROR_INVALID_DATE_RANGE: end_date={trip.end_date} is before "
            f"start_date={trip.start_date}."
        )
    require_lodgings(lodgings)


def require_lodgings(lodgings: Sequence[Lodging]) -> None:
    if not lodgings:
        raise InputValidationError(
            "ERROR_EMPTY_LODGINGS: at least one lodging is required to plan days."
        )
    for lodging in lodgings:
        if lodging.check_in >= lodging.check_out:
            raise InputValidationError(
                f"ERROR_INVALID_STAY: lodging {lodging.name!r} has "
                f"check_in={lodging.check_in} >= check_out={lodging.check_out}."
            )


# ── Batch filter helper ────────────────────────────────────────────────────────

def filter_valid(
    items: list[T],
    validator: Callable[[dict], ValidationResult],
    to_dict: Callable[[T], dict] | None = None,
    log: bool = True,
) -> list[T]:
    """
    Apply a validator to every item in a list, return only the valid ones.

    Args:
        items:     List of items (dicts, or anything to_dict can convert).
        validator: One of validate_candidate / validate_lodging / validate_trip.
        to_dict:   Optional callable to convert each item to a dict.
        log:       If True, log a warning for every rejected record.
    """
    valid_items: list[T] = []
    rejected = 0

    for item in items:
        record_dict = to_dict(item) if to_dict is not None else item
        result = validator(record_dict)
        if result.valid:
            valid_items.append(item)
        else:
            rejected += 1
            if log:
                logger.warning(
                    "REJECTED %r: %s", record_dict.get("name", "?"), "; ".join(result.errors)
                )

    if log and rejected:
        logger.warning(
            "%d/%d records rejected; %d passed.", rejected, len(items), len(valid_items)
        )

    return valid_items
