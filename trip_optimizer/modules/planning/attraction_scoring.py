"""
modules/planning/attraction_scoring.py
----------------------------------------
Composite desirability score for candidate places.

  S = Wr·SC_r + Wi·SC_i + Wp·SC_p + Wb·SC_b   (+ outlier penalty)

Each term is normalised to [0, 100] before weighting:

  SC_r (w=0.3): rating quality       : (rating / 5) · 100
  SC_i (w=0.4): interest match       : category vs trip focus
  SC_p (w=0.2): proximity to lodging : linear decay to the comfort radius,
                                       measured to the NEAREST lodging
  SC_b (w=0.1): budget fit           : price level vs per-day budget

Proximity special cases:
  beyond outlier_km         → add outlier_penalty (≈ −200) to S; the place
                              stays in the ranking as a last resort
  unknown place / lodgings  → SC_p replaced by unknown_location_penalty

Weights and thresholds come from PlannerParameters (config.py defaults).
"""

from __future__ import annotations
import logging
from dataclasses import replace
from typing import Sequence

from trip_optimizer.modules.planning.lodging_schedule import nearest_lodging
from trip_optimizer.schemas.trip import (
    CandidatePlace, Category, Focus, Lodging, PlannerParameters, TripParameters,
)

logger = logging.getLogger(__name__)

# Categories close enough to count as a near-match for each other
_RELATED_CATEGORIES: frozenset[frozenset[str]] = frozenset({
    frozenset({Category.sightseeing.value, Category.culture.value}),
})


class AttractionScorer:
    """
    Scores and ranks candidate places for one trip.

    score() never mutates its argument; it returns an updated copy with
    score, distance_from_lodging and assignment_reason filled in.
    """

    def __init__(self, params: PlannerParameters | None = None):
        self.params = params or PlannerParameters.from_config()

    # ── Public ────────────────────────────────────────────────────────────────

    def score(
        self,
        candidate: CandidatePlace,
        trip: TripParameters,
        lodgings: Sequence[Lodging],
    ) -> CandidatePlace:
        p = self.params
        reasons: list[str] = []

        sc_r = self._score_rating(candidate, reasons)
        sc_i = self._score_interest_match(candidate, trip.focus, reasons)
        sc_b = self._score_budget(candidate, trip, reasons)

        total = p.w_rating * sc_r + p.w_interest * sc_i + p.w_budget * sc_b

        nearest = nearest_lodging(candidate.coordinate, lodgings)
        distance = None
        if nearest is None:
            total += p.unknown_location_penalty
            reasons.append("location unknown")
        else:
            lodging, km = nearest
            distance = round(km, 1)
            total += p.w_proximity * self._score_proximity(km)
            if km > p.outlier_km:
                total += p.outlier_penalty
                reasons.append(f"far outlier ({distance} km from {lodging.name})")
            elif km < 2.0:
                reasons.append(f"close to {lodging.name} ({distance} km)")

        score = round(total, 1)
        reason = f"Score {score}"
        if reasons:
            reason += " | " + ", ".join(reasons)

        return replace(
            candidate,
            score=score,
            distance_from_lodging=distance,
            assignment_reason=reason,
        )

    def rank(
        self,
        candidates: Sequence[CandidatePlace],
        trip: TripParameters,
        lodgings: Sequence[Lodging],
    ) -> list[CandidatePlace]:
        """
        Score every candidate and sort descending by score.
        sorted() is stable, so equal scores keep their input order.
        """
        scored = [self.score(c, trip, lodgings) for c in candidates]
        ranked = sorted(scored, key=lambda c: c.score, reverse=True)
        if ranked:
            logger.debug(
                "ranked %d candidates (top=%r %.1f, bottom=%r %.1f)",
                len(ranked), ranked[0].name, ranked[0].score,
                ranked[-1].name, ranked[-1].score,
            )
        return ranked

    # ── Term scorers ──────────────────────────────────────────────────────────

    @staticmethod
    def _score_rating(candidate: CandidatePlace, reasons: list[str]) -> float:
        """SC_r: rating on [0, 5] → [0, 100]."""
        rating = max(0.0, min(5.0, candidate.rating))
        if rating >= 4.5:
            reasons.append(f"highly rated ({rating})")
        return rating / 5.0 * 100.0

    @staticmethod
    def _score_interest_match(
        candidate: CandidatePlace,
        focus: Focus,
        reasons: list[str],
    ) -> float:
        """
        SC_i: category vs trip focus.
        100: exact match
         80: balanced focus, or related categories (sightseeing ↔ culture)
         30: food focus, non-food place
         70: generic sightseeing place
         50: any other mismatch
        """
        cat = candidate.category.value
        if cat == focus.value:
            reasons.append(f"matches interest ({focus.value})")
            return 100.0
        if focus is Focus.balanced:
            return 80.0
        if frozenset({cat, focus.value}) in _RELATED_CATEGORIES:
            return 80.0
        if focus is Focus.food:
            return 30.0
        if candidate.category is Category.sightseeing:
            return 70.0
        return 50.0

    def _score_proximity(self, km: float) -> float:
        """SC_p: 100 at the lodging, linearly down to 0 at the comfort radius."""
        radius = self.params.comfort_radius_km
        if radius <= 0:
            return 0.0
        return max(0.0, (1.0 - km / radius) * 100.0)

    def _score_budget(
        self,
        candidate: CandidatePlace,
        trip: TripParameters,
        reasons: list[str],
    ) -> float:
        """
        SC_b: per-day budget = budget / trip length.
        Low budget: price ≤ 2 → 100, price ≥ 3 → 20. High budget: flat 80.
        Unknown price level → 50.
        """
        if candidate.price_level <= 0:
            return 50.0
        per_day = trip.budget_amount / max(trip.total_days, 1)
        if per_day < self.params.low_budget_per_day:
            if candidate.price_level <= 2:
                reasons.append("fits budget")
                return 100.0
            return 20.0
        return 80.0


def rank_candidates(
    candidates: Sequence[CandidatePlace],
    trip: TripParameters,
    lodgings: Sequence[Lodging],
    params: PlannerParameters | None = None,
) -> list[CandidatePlace]:
    """Module-level shortcut for AttractionScorer(params).rank(...)."""
    return AttractionScorer(params).rank(candidates, trip, lodgings)
