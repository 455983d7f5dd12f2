"""
modules/tool_usage/candidate_tool.py
-------------------------------------
Turns the candidate payload produced by the retrieval stage into
CandidatePlace records.

The retrieval stage is an LLM with web search; its answer is *meant* to be
a JSON object of the shape

    {
      "hotelsData": [{"id": ..., "name": ..., "lat": ..., "lng": ...}],
      "candidates": [{"name", "category", "rating", "reviewCount",
                      "priceLevel", "latitude", "longitude", "description",
                      "closedDays", "openingText", "durationHours"}]
    }

but often arrives wrapped in Markdown fences or surrounded by prose.

Normalisation rules:
  category     unknown strings → "other"
  rating       missing / 0     → config.DEFAULT_RATING
  priceLevel   clamped to 0–4 (0 = unknown)
  coordinates  missing, non-numeric or exactly (0.0, 0.0) → None
  closedDays   entries outside 0–6 dropped
  durationHours missing / ≤ 0  → category default (config.DEFAULT_VISIT_HOURS)
  duplicates   same normalised name → first occurrence kept
"""

from __future__ import annotations
import json
import logging
import re
from typing import Any, Optional

from trip_optimizer import config
from trip_optimizer.modules.validation import filter_valid, validate_candidate
from trip_optimizer.schemas.trip import CandidatePlace, Category, Coordinate

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def clean_json_text(text: str) -> str:
    """Strip Markdown code fences and cut to the outermost {...} block."""
    cleaned = _FENCE_RE.sub("", text or "")
    first, last = cleaned.find("{"), cleaned.rfind("}")
    if first != -1 and last != -1:
        cleaned = cleaned[first:last + 1]
    return cleaned.strip()


def parse_coordinate(lat: Any, lon: Any) -> Optional[Coordinate]:
    """
    Build a Coordinate, or None when the location is unknown.
    (0.0, 0.0) is treated as a missing value, not as null island.
    """
    if lat is None or lon is None:
        return None
    try:
        lat_f, lon_f = float(lat), float(lon)
    except (TypeError, ValueError):
        return None
    if lat_f == 0.0 and lon_f == 0.0:
        return None
    return Coordinate(lat_f, lon_f)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _visit_hours_for_category(category: Category) -> float:
    return config.DEFAULT_VISIT_HOURS.get(category.value, 1.0)


def _parse_candidate(record: dict[str, Any]) -> CandidatePlace:
    """Convert one validated raw record; optional fields fall back to defaults."""
    category = Category.parse(record.get("category", "other"))

    rating = _as_float(record.get("rating"))
    if rating <= 0.0:
        rating = config.DEFAULT_RATING

    price = max(0, min(4, int(record.get("priceLevel") or 0)))

    duration = _as_float(record.get("durationHours"))
    if duration <= 0.0:
        duration = _visit_hours_for_category(category)

    closed = frozenset(
        d for d in (record.get("closedDays") or [])
        if isinstance(d, int) and 0 <= d <= 6
    )

    return CandidatePlace(
        name=str(record.get("name", "")).strip(),
        category=category,
        rating=rating,
        review_count=_as_int(record.get("reviewCount")),
        price_level=price,
        coordinate=parse_coordinate(record.get("latitude"), record.get("longitude")),
        closed_weekdays=closed,
        opening_text=str(record.get("openingText") or ""),
        description=str(record.get("description") or ""),
        visit_duration_hours=duration,
    )


def dedupe_candidates(candidates: list[CandidatePlace]) -> list[CandidatePlace]:
    """Drop records whose normalised name was already seen (first one wins)."""
    seen: set[str] = set()
    kept: list[CandidatePlace] = []
    for c in candidates:
        if c.key in seen:
            logger.debug("duplicate candidate dropped: %r", c.name)
            continue
        seen.add(c.key)
        kept.append(c)
    return kept


def parse_candidates(records: list[dict[str, Any]]) -> list[CandidatePlace]:
    """Validate, convert and de-duplicate raw candidate records."""
    valid = filter_valid([r for r in records if isinstance(r, dict)], validate_candidate)
    parsed = dedupe_candidates([_parse_candidate(r) for r in valid])
    if len(parsed) < len(records):
        logger.info("candidates: %d raw → %d usable", len(records), len(parsed))
    return parsed


def parse_candidate_payload(text: str) -> tuple[list[CandidatePlace], list[dict[str, Any]]]:
    """
    Parse the retrieval stage's raw text answer.

    Returns (candidates, hotels_data). hotels_data is passed on to
    lodging_tool.backfill_lodging_coordinates().

    Raises ValueError if the text holds no parseable JSON object.
    """
    try:
        data = json.loads(clean_json_text(text))
    except json.JSONDecodeError as exc:
        raise ValueError(f"ERROR_UNPARSEABLE_PAYLOAD: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("ERROR_UNPARSEABLE_PAYLOAD: top-level JSON value is not an object")

    candidates = parse_candidates(data.get("candidates") or [])
    hotels_data = [h for h in (data.get("hotelsData") or []) if isinstance(h, dict)]
    return candidates, hotels_data
