"""
Race profile affinity.

Measures how well a rider's historical results match each race profile
(flat, hilly, mountain, tt, cobbles) and turns an affinity into the
multiplier used by the prediction engine.
"""

import logging
from collections.abc import Iterable

from cyclecast.types.form_types import ProfileAnalysis, ProfileResult
from cyclecast.utils import config_loader
from cyclecast.utils.config_schema import ProfileConfig
from cyclecast.utils.constants import (
    AFFINITY_DNF_SCORE,
    AFFINITY_POSITION_SCORES,
    AFFINITY_TAIL_MIN,
    AFFINITY_TAIL_RANGE,
    DEFAULT_PROFILE,
    FLAT_MAX_ELEVATION_PER_KM,
    HILLY_MAX_ELEVATION_PER_KM,
    PROFILE_DISPLAY_NAMES,
    PROFILE_TYPES,
)
from cyclecast.utils.validation_helpers import is_finite_number, is_valid_position

logger = logging.getLogger(__name__)


def _resolve(config: ProfileConfig | None) -> ProfileConfig:
    return config if config is not None else config_loader.get_model().profile


def affinity_score(position: int | None, field_size: int, dnf: bool) -> float:
    """Score a single result on [0.1, 1.0]."""
    if dnf or position is None:
        return AFFINITY_DNF_SCORE

    for max_position, score in AFFINITY_POSITION_SCORES:
        if position <= max_position:
            return score

    normalized = max(0.0, 1.0 - (position - 1) / ((field_size - 1) or 1))
    return AFFINITY_TAIL_MIN + normalized * AFFINITY_TAIL_RANGE


def calculate_profile_affinities(
    results: Iterable[ProfileResult], config: ProfileConfig | None = None
) -> ProfileAnalysis:
    """Aggregate results into per-profile affinities, specialties and weaknesses."""
    config = _resolve(config)
    totals = {profile: {"weight": 0.0, "score": 0.0, "count": 0} for profile in PROFILE_TYPES}

    for result in results:
        data = totals.get(result.profile_type)
        if data is None:
            logger.debug(f"Ignoring result with unknown profile '{result.profile_type}'")
            continue
        if not is_finite_number(result.race_weight) or result.race_weight < 0:
            logger.warning(f"Skipping profile result with invalid race weight: {result!r}")
            continue
        if not result.dnf and result.position is not None and not is_valid_position(
            result.position
        ):
            logger.warning(f"Skipping profile result with invalid position: {result!r}")
            continue

        score = affinity_score(result.position, result.field_size, result.dnf)
        data["weight"] += result.race_weight
        data["score"] += score * result.race_weight
        data["count"] += 1

    affinities: dict[str, float] = {}
    sample_sizes: dict[str, int] = {}
    min_races = config.min_races_for_confidence

    for profile, data in totals.items():
        count = int(data["count"])
        sample_sizes[profile] = count
        affinity = config.default_affinity

        if count > 0 and data["weight"] > 0:
            calculated = data["score"] / data["weight"]
            if count >= min_races:
                affinity = calculated
            else:
                # Partial confidence: blend with default
                confidence = count / min_races
                affinity = calculated * confidence + config.default_affinity * (1 - confidence)

        affinities[profile] = affinity

    specialty = [
        p
        for p in PROFILE_TYPES
        if sample_sizes[p] >= min_races and affinities[p] >= config.specialty_threshold
    ]
    weakness = [
        p
        for p in PROFILE_TYPES
        if sample_sizes[p] >= min_races and affinities[p] <= config.weakness_threshold
    ]
    specialty.sort(key=lambda p: affinities[p], reverse=True)
    weakness.sort(key=lambda p: affinities[p])

    return ProfileAnalysis(
        affinities=affinities,
        specialty=specialty,
        weakness=weakness,
        sample_sizes=sample_sizes,
    )


def profile_affinity_multiplier(
    affinity: float, sample_size: int, config: ProfileConfig | None = None
) -> float:
    """
    Multiplier in [0.7, 1.3] for how well a rider suits the race profile.

    Affinity 0..1 maps linearly onto the multiplier range; with fewer than
    ``min_races_for_confidence`` samples the result is blended towards 1.0.
    """
    config = _resolve(config)
    affinity = max(0.0, min(1.0, affinity))
    confidence = min(1.0, max(sample_size, 0) / config.min_races_for_confidence)

    span = config.multiplier_max - config.multiplier_min
    base = config.multiplier_min + affinity * span
    return base * confidence + 1.0 * (1.0 - confidence)


def classify_race_profile(
    distance_km: float | None, elevation_m: float | None, is_time_trial: bool = False
) -> str:
    """Classify a race by metres climbed per km."""
    if is_time_trial:
        return "tt"
    if not distance_km or not elevation_m:
        return DEFAULT_PROFILE

    elevation_per_km = elevation_m / distance_km
    if elevation_per_km < FLAT_MAX_ELEVATION_PER_KM:
        return "flat"
    if elevation_per_km < HILLY_MAX_ELEVATION_PER_KM:
        return "hilly"
    return "mountain"


def profile_display_name(profile: str) -> str:
    return PROFILE_DISPLAY_NAMES.get(profile, profile)


def describe_profile_strengths(analysis: ProfileAnalysis) -> str:
    """One-line summary such as 'Flat and Cobbles specialist'."""
    if not analysis.specialty:
        return "All-rounder with no clear specialty"

    names = [profile_display_name(p) for p in analysis.specialty]
    if len(names) == 1:
        return f"{names[0]} specialist"
    return f"{', '.join(names[:-1])} and {names[-1]} specialist"
