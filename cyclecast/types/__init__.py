"""Domain type definitions."""

from .form_types import FormScore, ProfileAnalysis, ProfileResult, RecentResult, Trend
from .prediction_types import (
    ComponentBreakdown,
    FinishProbabilities,
    RacePrediction,
    RacePredictionResult,
    RiderPredictionInput,
    ScoreComponents,
)
from .rating_types import (
    RaceResult,
    RatingHistoryRecord,
    RiderPoolRecord,
    RiderSkill,
    SkillUpdate,
)

__all__ = [
    "ComponentBreakdown",
    "FinishProbabilities",
    "FormScore",
    "ProfileAnalysis",
    "ProfileResult",
    "RacePrediction",
    "RacePredictionResult",
    "RaceResult",
    "RatingHistoryRecord",
    "RecentResult",
    "RiderPoolRecord",
    "RiderPredictionInput",
    "RiderSkill",
    "ScoreComponents",
    "SkillUpdate",
    "Trend",
]
