"""
modules/tool_usage/lodging_tool.py
-----------------------------------
Lodging records: parsing from the trip form and coordinate back-fill from
the retrieval stage's "hotelsData" block.

Back-fill never mutates its input; it returns new Lodging records.
"""

from __future__ import annotations
import logging
from dataclasses import replace
from typing import Any, Optional

from trip_optimizer.modules.tool_usage.candidate_tool import parse_coordinate
from trip_optimizer.modules.validation import InputValidationError, validate_lodging
from trip_optimizer.modules.validation.ingestion_validator import as_date
from trip_optimizer.schemas.trip import Lodging

logger = logging.getLogger(__name__)


def parse_lodgings(records: list[dict[str, Any]]) -> list[Lodging]:
    """
    Convert raw lodging records (id, name, location, checkIn, checkOut and
    optional latitude/longitude). List order is preserved because it decides
    hand-off days.

    Raises:
        InputValidationError: ERROR_INVALID_STAY for the first record that is
                              not an object or fails validate_lodging. A stay
                              cannot be dropped without changing every later
                              day's lodging.
    """
    lodgings: list[Lodging] = []
    for idx, r in enumerate(records):
        if not isinstance(r, dict):
            raise InputValidationError(
                f"ERROR_INVALID_STAY: lodging #{idx + 1} is not an object (got {type(r).__name__})."
            )
        result = validate_lodging(r)
        if not result.valid:
            raise InputValidationError(
                f"ERROR_INVALID_STAY: lodging #{idx + 1} {r.get('name')!r}: "
                + "; ".join(result.errors)
            )
        lodgings.append(Lodging(
            id=str(r.get("id") or f"lodging-{idx + 1}"),
            name=str(r.get("name", "")).strip(),
            address=str(r.get("location") or r.get("address") or ""),
            coordinate=parse_coordinate(r.get("latitude"), r.get("longitude")),
            check_in=as_date(r["checkIn"]),
            check_out=as_date(r["checkOut"]),
        ))
    return lodgings


def _match_hotel(
    lodging: Lodging,
    index: int,
    hotels_data: list[dict[str, Any]],
) -> Optional[dict[str, Any]]:
    """
    Find the geocoded entry for a lodging: first by name containment
    (the retrieval stage often returns a longer official name), then by
    position in the list.
    """
    needle = lodging.name.casefold()
    if needle:
        for h in hotels_data:
            if needle in str(h.get("name", "")).casefold():
                return h
    if index < len(hotels_data):
        return hotels_data[index]
    return None


def backfill_lodging_coordinates(
    lodgings: list[Lodging],
    hotels_data: list[dict[str, Any]],
) -> list[Lodging]:
    """
    Return a copy of lodgings where every lodging without a coordinate gets
    one from hotels_data when a match with a usable lat/lng exists.
    Lodgings that already have a coordinate are left as they are.
    """
    filled: list[Lodging] = []
    for idx, lodging in enumerate(lodgings):
        if lodging.coordinate is not None:
            filled.append(lodging)
            continue
        match = _match_hotel(lodging, idx, hotels_data)
        coord = parse_coordinate(match.get("lat"), match.get("lng")) if match else None
        if coord is None:
            logger.warning("no coordinates resolved for lodging %r", lodging.name)
            filled.append(lodging)
        else:
            filled.append(replace(lodging, coordinate=coord))
    return filled
