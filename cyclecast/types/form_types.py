"""Type definitions for form and profile affinity inputs/outputs."""

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

Trend = Literal["improving", "stable", "declining"]


@dataclass(frozen=True)
class RecentResult:
    """A single race in a rider's recent history (form input)."""

    date: date  # datetime.date or datetime.datetime
    position: int | None
    field_size: int
    race_weight: float  # 0..1, by race category
    profile_type: str
    dnf: bool = False


@dataclass(frozen=True)
class FormScore:
    """Snapshot of a rider's recent form."""

    overall: float  # -1 (bad) .. 1 (good)
    by_profile: dict[str, float] = field(default_factory=dict)
    races_count: int = 0
    last_race_date: date | None = None
    trend: Trend = "stable"

    @classmethod
    def empty(cls, last_race_date: date | None = None) -> "FormScore":
        """Neutral form for riders with no usable recent results."""
        return cls(overall=0.0, last_race_date=last_race_date)


@dataclass(frozen=True)
class ProfileResult:
    """A historical result tagged with the race profile (affinity input)."""

    profile_type: str
    position: int | None
    field_size: int
    race_weight: float = 1.0
    dnf: bool = False


@dataclass(frozen=True)
class ProfileAnalysis:
    """Per-profile affinities (0..1) with specialties and weaknesses."""

    affinities: dict[str, float]
    specialty: list[str]
    weakness: list[str]
    sample_sizes: dict[str, int]
