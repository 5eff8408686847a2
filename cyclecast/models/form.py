"""
Recent form model.

Turns a rider's race history into a time-decayed performance signal. Only
races from the last 90 days count, each weighted by 0.5^(days / 21) times
the race category weight.
"""

import logging
import math
from collections.abc import Iterable
from datetime import UTC, date, datetime, time

from cyclecast.types.form_types import FormScore, RecentResult, Trend
from cyclecast.utils import config_loader
from cyclecast.utils.config_schema import FormConfig
from cyclecast.utils.constants import (
    DEFAULT_RACE_WEIGHT,
    FORM_DESCRIPTION_BANDS,
    FORM_DESCRIPTION_FLOOR,
    FORM_POSITION_SCORES,
    RACE_CATEGORY_WEIGHTS,
)
from cyclecast.utils.validation_helpers import is_finite_number, is_valid_position

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400.0


def _as_datetime(value: date) -> datetime:
    """Naive UTC datetime for a date or datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(UTC).replace(tzinfo=None)
        return value
    return datetime.combine(value, time.min)


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def days_between(reference: date, when: date) -> float:
    """Fractional days from ``when`` to ``reference`` (negative if in the future)."""
    return (_as_datetime(reference) - _as_datetime(when)).total_seconds() / SECONDS_PER_DAY


def race_weight_for_category(category: str | None) -> float:
    """Race weight for a UCI category, 0.5 when unknown."""
    return RACE_CATEGORY_WEIGHTS.get(category or "", DEFAULT_RACE_WEIGHT)


def performance_score(
    position: int | None, field_size: int, dnf: bool, dnf_score: float = -0.5
) -> float:
    """Score a single result on [-1, 1]: a win is 1.0, a DNF ``dnf_score``."""
    if dnf or position is None:
        return dnf_score

    for max_position, score in FORM_POSITION_SCORES:
        if position <= max_position:
            return score

    # Below the top 20: linear in normalized position
    normalized = 1.0 - (position - 1) / ((field_size - 1) or 1)
    return max(-1.0, normalized * 2.0 - 1.0)


def form_multiplier(score: float, spread: float = 0.2) -> float:
    """Map a form score in [-1, 1] to a multiplier in [1 - spread, 1 + spread]."""
    clamped = max(-1.0, min(1.0, score))
    return 1.0 + clamped * spread


def days_since_last_race(
    last_race_date: date | None, reference_date: date | None = None
) -> float:
    """Whole days since the last race, infinite when the rider never raced."""
    if last_race_date is None:
        return math.inf
    reference = reference_date if reference_date is not None else _utcnow()
    return float(math.floor(days_between(reference, last_race_date)))


def describe_form(form: FormScore, reference_date: date | None = None) -> str:
    """Human-readable form summary, e.g. 'Good form (improving) - raced 3d ago'."""
    if form.races_count == 0:
        return "No recent race data"

    description = FORM_DESCRIPTION_FLOOR
    for lower_bound, label in FORM_DESCRIPTION_BANDS:
        if form.overall >= lower_bound:
            description = label
            break

    if form.trend != "stable":
        description += f" ({form.trend})"

    if form.last_race_date is not None:
        days = days_since_last_race(form.last_race_date, reference_date)
        if days <= 7:
            description += f" - raced {int(days)}d ago"
        elif days <= 30:
            description += f" - last race {round(days / 7)}w ago"
        else:
            description += f" - hasn't raced in {round(days / 30)}+ months"

    return description


class FormEngine:
    """Computes FormScore snapshots from recent results."""

    def __init__(self, config: FormConfig | None = None):
        self.config = config if config is not None else config_loader.get_model().form

    def performance_score(self, result: RecentResult) -> float:
        return performance_score(
            result.position, result.field_size, result.dnf, self.config.dnf_score
        )

    def form_multiplier(self, score: float) -> float:
        return form_multiplier(score, self.config.multiplier_spread)

    def _is_well_formed(self, result: RecentResult) -> bool:
        if not isinstance(getattr(result, "date", None), date):
            logger.warning(f"Skipping result without a date: {result!r}")
            return False
        if not is_finite_number(result.race_weight) or result.race_weight < 0:
            logger.warning(f"Skipping result with invalid race weight: {result!r}")
            return False
        if not isinstance(result.field_size, int) or result.field_size < 1:
            logger.warning(f"Skipping result with invalid field size: {result!r}")
            return False
        if not result.dnf and result.position is not None and not is_valid_position(
            result.position
        ):
            logger.warning(f"Skipping result with invalid position: {result!r}")
            return False
        return True

    def calculate_form(
        self, results: Iterable[RecentResult], reference_date: date | None = None
    ) -> FormScore:
        """
        Calculate form from recent results.

        Args:
            results: Race history in any order
            reference_date: "Today" for decay purposes (defaults to now, UTC)

        Returns:
            FormScore; neutral (overall 0, stable) when no result falls in
            the window. ``last_race_date`` is then the most recent supplied
            date, or None when nothing usable was supplied.
        """
        reference = reference_date if reference_date is not None else _utcnow()
        valid = [r for r in results if self._is_well_formed(r)]

        windowed = []
        for result in valid:
            days = days_between(reference, result.date)
            if 0.0 <= days <= self.config.window_days:
                windowed.append((days, result))

        if not windowed:
            last = max(valid, key=lambda r: _as_datetime(r.date)).date if valid else None
            return FormScore.empty(last_race_date=last)

        # Most recent first
        windowed.sort(key=lambda item: item[0])

        total_weight = 0.0
        weighted_score = 0.0
        profile_totals: dict[str, list[float]] = {}
        scores = []

        for days, result in windowed:
            decay = 0.5 ** (days / self.config.half_life_days)
            score = self.performance_score(result)
            weight = decay * result.race_weight
            scores.append(score)

            total_weight += weight
            weighted_score += score * weight

            bucket = profile_totals.setdefault(result.profile_type, [0.0, 0.0])
            bucket[0] += weight
            bucket[1] += score * weight

        overall = weighted_score / total_weight if total_weight > 0 else 0.0
        by_profile = {
            profile: (score_sum / weight_sum if weight_sum > 0 else 0.0)
            for profile, (weight_sum, score_sum) in profile_totals.items()
        }

        return FormScore(
            overall=overall,
            by_profile=by_profile,
            races_count=len(windowed),
            last_race_date=windowed[0][1].date,
            trend=self._trend(scores),
        )

    def _trend(self, scores: list[float]) -> Trend:
        """Compare the recent half against the older half (scores most recent first)."""
        if len(scores) < 2:
            # A lone result has no older half; it is not scored against zero
            return "stable"

        midpoint = max(len(scores) // 2, 1)
        recent, older = scores[:midpoint], scores[midpoint:]
        diff = sum(recent) / len(recent) - sum(older) / len(older)

        if diff > self.config.trend_threshold:
            return "improving"
        if diff < -self.config.trend_threshold:
            return "declining"
        return "stable"
