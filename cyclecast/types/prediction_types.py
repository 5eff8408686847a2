"""Type definitions for prediction data structures."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TypedDict

from .form_types import FormScore


class FinishProbabilities(TypedDict):
    """Monte Carlo finishing probabilities for one rider."""

    win: float
    podium: float
    top10: float


class ComponentBreakdown(TypedDict):
    """Factors that were multiplied into a final score."""

    conservative_skill: float
    form_multiplier: float
    profile_multiplier: float
    rumour_modifier: float


@dataclass(frozen=True)
class RiderPredictionInput:
    """Everything the prediction engine needs to know about one starter."""

    rider_id: str
    skill_mean: float
    skill_variance: float
    rider_name: str = ""
    form: FormScore = field(default_factory=FormScore.empty)
    profile_affinity: float = 0.5  # 0..1
    profile_sample_size: int = 0
    rumour_score: float = 0.0  # -1..1
    rumour_tip_count: int = 0


@dataclass(frozen=True)
class ScoreComponents:
    """Result of combining skill, form, profile and rumour for one rider."""

    conservative_skill: float
    form_multiplier: float
    profile_multiplier: float
    rumour_modifier: float
    final_score: float

    def breakdown(self) -> ComponentBreakdown:
        return ComponentBreakdown(
            conservative_skill=self.conservative_skill,
            form_multiplier=self.form_multiplier,
            profile_multiplier=self.profile_multiplier,
            rumour_modifier=self.rumour_modifier,
        )


@dataclass
class RacePrediction:
    """Prediction for one rider in one race."""

    rider_id: str
    rider_name: str
    win_probability: float
    podium_probability: float
    top10_probability: float
    final_score: float
    breakdown: ComponentBreakdown
    confidence: float
    reasoning: str
    predicted_position: int = 0  # assigned after ranking


@dataclass
class RacePredictionResult:
    """Versioned snapshot of all predictions for a race."""

    race_id: str
    predictions: list[RacePrediction]
    generated_at: datetime
    version: int = 1
    race_profile: str | None = None
