"""Type definitions for skill ratings."""

import math
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class RiderSkill:
    """Belief over a rider's latent ability: Normal(mean, variance)."""

    rider_id: str
    mean: float
    variance: float  # variance, not standard deviation

    @property
    def sigma(self) -> float:
        return math.sqrt(self.variance)


@dataclass(frozen=True)
class RaceResult:
    """One rider's finish in a race (rating input)."""

    rider_id: str
    position: int | None  # 1-based; None when unplaced
    dnf: bool = False


@dataclass(frozen=True)
class SkillUpdate:
    """Audit record of one rider's rating change after a race."""

    rider_id: str
    old_mean: float
    old_variance: float
    new_mean: float
    new_variance: float
    rating_delta: float  # change in conservative rating


@dataclass
class RiderPoolRecord:
    """Per-rider state held by a rating pool."""

    skill: RiderSkill
    races_total: int = 0
    wins_total: int = 0
    podiums_total: int = 0
    last_race_date: date | None = None


@dataclass(frozen=True)
class RatingHistoryRecord:
    """Rating history entry written once per rider per processed race."""

    rider_id: str
    race_id: str
    discipline: str
    age_category: str
    rating_before: float
    rating_after: float
    rating_change: float
    race_position: int | None
