"""
cyclecast: statistical core for cycling race predictions.

Usage:
    from cyclecast import RaceResult, RatingEngine

    engine = RatingEngine()
    skills = {}  # caller-owned, rider_id -> RiderSkill
    updates = engine.process_race(
        [RaceResult("a", 1), RaceResult("b", 2), RaceResult("c", None, dnf=True)],
        skills,
    )
"""

from cyclecast.models import (
    FormEngine,
    RandomSubgroupSampler,
    RatingEngine,
    calculate_elo,
    calculate_profile_affinities,
    describe_form,
    form_multiplier,
    profile_affinity_multiplier,
)
from cyclecast.predictors import PredictionEngine, simulate_finish_probabilities
from cyclecast.systems import RatingPool
from cyclecast.types import (
    FormScore,
    RacePrediction,
    RacePredictionResult,
    RaceResult,
    RecentResult,
    RiderPredictionInput,
    RiderSkill,
    SkillUpdate,
)

__version__ = "0.1.0"

__all__ = [
    "FormEngine",
    "FormScore",
    "PredictionEngine",
    "RacePrediction",
    "RacePredictionResult",
    "RaceResult",
    "RandomSubgroupSampler",
    "RatingEngine",
    "RatingPool",
    "RecentResult",
    "RiderPredictionInput",
    "RiderSkill",
    "SkillUpdate",
    "calculate_elo",
    "calculate_profile_affinities",
    "describe_form",
    "form_multiplier",
    "profile_affinity_multiplier",
    "simulate_finish_probabilities",
]
