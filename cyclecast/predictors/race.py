"""
Race prediction engine.

Combines skill rating, recent form, profile affinity and community rumours
into a ranked prediction list:

    FINAL SCORE = conservative_skill * form_mult * profile_mult * (1 + rumour_mod)

Finishing probabilities come from a single shared Monte Carlo batch over the
riders' skill distributions.
"""

import logging
import math
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

import numpy as np
import pandas as pd

from cyclecast.models.form import form_multiplier
from cyclecast.models.profile import profile_affinity_multiplier
from cyclecast.models.rating import calculate_elo
from cyclecast.predictors.monte_carlo import simulate_finish_probabilities
from cyclecast.types.form_types import FormScore
from cyclecast.types.prediction_types import (
    FinishProbabilities,
    RacePrediction,
    RacePredictionResult,
    RiderPredictionInput,
    ScoreComponents,
)
from cyclecast.types.rating_types import RiderSkill
from cyclecast.utils import config_loader
from cyclecast.utils.config_schema import CyclecastConfig
from cyclecast.utils.constants import (
    CONFIDENCE_BASE,
    CONFIDENCE_FORM_RACES,
    CONFIDENCE_HIGH_SIGMA,
    CONFIDENCE_HIGH_SIGMA_PENALTY,
    CONFIDENCE_LOW_SIGMA,
    CONFIDENCE_LOW_SIGMA_BONUS,
    CONFIDENCE_NO_FORM_PENALTY,
    CONFIDENCE_NO_PROFILE_PENALTY,
    CONFIDENCE_PROFILE_SAMPLES,
    CONFIDENCE_RUMOUR_BONUS,
    CONFIDENCE_RUMOUR_TIPS,
    PROFILE_TYPES,
    REASON_FALLBACK,
    REASON_FORM_BELOW_AVERAGE,
    REASON_FORM_EXCELLENT,
    REASON_FORM_GOOD,
    REASON_FORM_POOR,
    REASON_PROFILE_GOOD,
    REASON_PROFILE_STRONG,
    REASON_PROFILE_WEAK,
    REASON_RUMOUR_MIN_TIPS,
    REASON_RUMOUR_MODIFIER,
    REASON_WIN_CONTENDER,
    REASON_WIN_FAVOURITE,
)
from cyclecast.utils.validation_helpers import is_finite_number, validate_enum

logger = logging.getLogger(__name__)

AffinityCurve = Callable[[float, int], float]


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class PredictionEngine:
    """
    Pure prediction engine: no I/O, deterministic for a fixed seed.

    Args:
        config: Full configuration; loaded from config/default.yaml if omitted
        seed: Seed for the Monte Carlo generator
        rng: Pre-built generator (takes precedence over ``seed``)
        affinity_curve: (affinity, sample_size) -> multiplier in [0.7, 1.3];
            defaults to ``profile_affinity_multiplier``
    """

    def __init__(
        self,
        config: CyclecastConfig | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        affinity_curve: AffinityCurve | None = None,
    ):
        self.config = config if config is not None else config_loader.get_model()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        if affinity_curve is None:
            profile_config = self.config.profile

            def affinity_curve(affinity: float, sample_size: int) -> float:
                return profile_affinity_multiplier(affinity, sample_size, profile_config)

        self.affinity_curve = affinity_curve

    def calculate_final_score(self, rider: RiderPredictionInput) -> ScoreComponents:
        """Combine skill, form, profile affinity and rumour into one score."""
        prediction_config = self.config.prediction

        # Floor at 1 so an uncertain rider cannot zero or flip the product
        conservative_skill = max(calculate_elo(rider.skill_mean, rider.skill_variance), 1.0)
        form_mult = form_multiplier(rider.form.overall, self.config.form.multiplier_spread)
        profile_mult = self.affinity_curve(rider.profile_affinity, rider.profile_sample_size)

        # Rumours need corroborating tips to reach full weight
        tips = max(rider.rumour_tip_count, 0)
        rumour_weight = min(tips / prediction_config.rumour_full_weight_tips, 1.0)
        rumour_score = max(-1.0, min(1.0, rider.rumour_score))
        rumour_mod = rumour_score * prediction_config.max_rumour_impact * rumour_weight

        final_score = conservative_skill * form_mult * profile_mult * (1.0 + rumour_mod)
        return ScoreComponents(
            conservative_skill=conservative_skill,
            form_multiplier=form_mult,
            profile_multiplier=profile_mult,
            rumour_modifier=rumour_mod,
            final_score=final_score,
        )

    def calculate_confidence(self, rider: RiderPredictionInput) -> float:
        """Confidence in [0.1, 0.95] from how much data backs the prediction."""
        confidence = CONFIDENCE_BASE

        races = rider.form.races_count
        if races == 0:
            confidence += CONFIDENCE_NO_FORM_PENALTY
        else:
            confidence += next((bonus for n, bonus in CONFIDENCE_FORM_RACES if races >= n), 0.0)

        samples = rider.profile_sample_size
        if samples <= 0:
            confidence += CONFIDENCE_NO_PROFILE_PENALTY
        else:
            confidence += next(
                (bonus for n, bonus in CONFIDENCE_PROFILE_SAMPLES if samples >= n), 0.0
            )

        sigma = math.sqrt(rider.skill_variance)
        if sigma < CONFIDENCE_LOW_SIGMA:
            confidence += CONFIDENCE_LOW_SIGMA_BONUS
        elif sigma > CONFIDENCE_HIGH_SIGMA:
            confidence += CONFIDENCE_HIGH_SIGMA_PENALTY

        if rider.rumour_tip_count >= CONFIDENCE_RUMOUR_TIPS:
            confidence += CONFIDENCE_RUMOUR_BONUS

        bounds = self.config.prediction
        return max(bounds.confidence_min, min(bounds.confidence_max, confidence))

    def generate_reasoning(
        self, rider: RiderPredictionInput, scores: ScoreComponents, win_probability: float
    ) -> str:
        """Short explanation built from fixed-order rules."""
        reasons = []

        if scores.form_multiplier >= REASON_FORM_EXCELLENT:
            reasons.append("excellent recent form")
        elif scores.form_multiplier >= REASON_FORM_GOOD:
            reasons.append("good recent form")
        elif scores.form_multiplier <= REASON_FORM_POOR:
            reasons.append("poor recent form")
        elif scores.form_multiplier <= REASON_FORM_BELOW_AVERAGE:
            reasons.append("below average recent form")

        if rider.form.trend == "improving":
            reasons.append("form trending upward")
        elif rider.form.trend == "declining":
            reasons.append("form trending down")

        if scores.profile_multiplier >= REASON_PROFILE_STRONG:
            reasons.append("strong profile match")
        elif scores.profile_multiplier >= REASON_PROFILE_GOOD:
            reasons.append("good profile match")
        elif scores.profile_multiplier <= REASON_PROFILE_WEAK:
            reasons.append("weak profile match")

        if rider.rumour_tip_count >= REASON_RUMOUR_MIN_TIPS:
            if scores.rumour_modifier > REASON_RUMOUR_MODIFIER:
                reasons.append("positive community intel")
            elif scores.rumour_modifier < -REASON_RUMOUR_MODIFIER:
                reasons.append("concerning community reports")

        if win_probability >= REASON_WIN_FAVOURITE:
            reasons.append("race favorite")
        elif win_probability >= REASON_WIN_CONTENDER:
            reasons.append("strong contender")

        if not reasons:
            return REASON_FALLBACK

        text = ", ".join(reasons)
        return text[0].upper() + text[1:] + "."

    def _valid_inputs(
        self, startlist: Iterable[RiderPredictionInput]
    ) -> list[RiderPredictionInput]:
        valid = []
        seen: set[str] = set()
        for rider in startlist:
            rider_id = getattr(rider, "rider_id", None)
            if not isinstance(rider_id, str) or not rider_id:
                logger.warning(f"Skipping start list entry without rider id: {rider!r}")
                continue
            if rider_id in seen:
                logger.warning(f"Skipping duplicate start list entry for rider {rider_id}")
                continue
            if not (
                is_finite_number(rider.skill_mean)
                and is_finite_number(rider.skill_variance)
                and rider.skill_variance >= 0
            ):
                logger.warning(f"Skipping rider {rider_id}: invalid skill distribution")
                continue
            if not isinstance(rider.form, FormScore) or not is_finite_number(rider.form.overall):
                logger.warning(f"Skipping rider {rider_id}: invalid form {rider.form!r}")
                continue
            if not (
                is_finite_number(rider.profile_affinity) and is_finite_number(rider.rumour_score)
            ):
                logger.warning(f"Skipping rider {rider_id}: invalid profile affinity or rumour")
                continue
            if not (_is_count(rider.profile_sample_size) and _is_count(rider.rumour_tip_count)):
                logger.warning(f"Skipping rider {rider_id}: invalid sample or tip count")
                continue
            seen.add(rider_id)
            valid.append(rider)
        return valid

    def generate_race_predictions(
        self,
        race_id: str,
        startlist: Iterable[RiderPredictionInput],
        race_profile: str | None = None,
    ) -> RacePredictionResult:
        """
        Generate predictions for a race.

        Args:
            race_id: Identifier carried through to the result
            startlist: One input per starter; malformed entries are skipped
            race_profile: Optional profile type, recorded on the result

        Returns:
            RacePredictionResult with predictions sorted by final score.
            An empty start list gives an empty prediction list.
        """
        if race_profile is not None:
            validate_enum(race_profile, "race_profile", PROFILE_TYPES)

        prediction_config = self.config.prediction
        riders = self._valid_inputs(startlist)
        generated_at = datetime.now(UTC)

        if not riders:
            return RacePredictionResult(
                race_id=race_id,
                predictions=[],
                generated_at=generated_at,
                version=prediction_config.version,
                race_profile=race_profile,
            )

        scored = [(rider, self.calculate_final_score(rider)) for rider in riders]

        probabilities = simulate_finish_probabilities(
            [RiderSkill(r.rider_id, r.skill_mean, r.skill_variance) for r in riders],
            n_trials=prediction_config.n_simulations,
            beta=self.config.rating.beta,
            rng=self.rng,
            n_workers=prediction_config.n_workers,
            podium_size=prediction_config.podium_size,
            top_n=prediction_config.top_n,
        )

        predictions = [
            self._build_prediction(rider, scores, probs)
            for (rider, scores), probs in zip(scored, probabilities, strict=True)
        ]

        # Stable: equal scores keep start list order
        predictions.sort(key=lambda p: p.final_score, reverse=True)
        for position, prediction in enumerate(predictions, start=1):
            prediction.predicted_position = position

        logger.debug(f"Generated {len(predictions)} predictions for race {race_id}")
        return RacePredictionResult(
            race_id=race_id,
            predictions=predictions,
            generated_at=generated_at,
            version=prediction_config.version,
            race_profile=race_profile,
        )

    def _build_prediction(
        self,
        rider: RiderPredictionInput,
        scores: ScoreComponents,
        probs: FinishProbabilities,
    ) -> RacePrediction:
        return RacePrediction(
            rider_id=rider.rider_id,
            rider_name=rider.rider_name,
            win_probability=probs["win"],
            podium_probability=probs["podium"],
            top10_probability=probs["top10"],
            final_score=scores.final_score,
            breakdown=scores.breakdown(),
            confidence=self.calculate_confidence(rider),
            reasoning=self.generate_reasoning(rider, scores, probs["win"]),
        )


def top_predictions(result: RacePredictionResult, n: int = 10) -> list[RacePrediction]:
    """First ``n`` predictions by predicted position."""
    return result.predictions[:n]


def predictions_to_frame(result: RacePredictionResult) -> pd.DataFrame:
    """Flatten a prediction result into a DataFrame, one row per rider."""
    rows = [
        {
            "race_id": result.race_id,
            "rider_id": p.rider_id,
            "rider_name": p.rider_name,
            "predicted_position": p.predicted_position,
            "win_probability": p.win_probability,
            "podium_probability": p.podium_probability,
            "top10_probability": p.top10_probability,
            "final_score": p.final_score,
            **p.breakdown,
            "confidence": p.confidence,
            "reasoning": p.reasoning,
            "version": result.version,
        }
        for p in result.predictions
    ]
    return pd.DataFrame(rows)
