"""
Shared test fixtures and configuration.
"""

from datetime import date

import pytest

from cyclecast.models.form import FormEngine
from cyclecast.models.rating import RatingEngine
from cyclecast.models.sampling import RandomSubgroupSampler
from cyclecast.predictors.race import PredictionEngine
from cyclecast.types import RaceResult, RiderPredictionInput, RiderSkill
from cyclecast.utils.config_schema import CyclecastConfig, FormConfig, RatingConfig


@pytest.fixture
def rating_config():
    return RatingConfig()


@pytest.fixture
def rating_engine(rating_config):
    """Rating engine with a seeded sub-group sampler."""
    return RatingEngine(rating_config, sampler=RandomSubgroupSampler(seed=42))


@pytest.fixture
def form_engine():
    return FormEngine(FormConfig())


@pytest.fixture
def prediction_engine():
    return PredictionEngine(CyclecastConfig(), seed=42)


@pytest.fixture
def reference_date():
    return date(2025, 6, 30)


@pytest.fixture
def sample_skills():
    """Skill table for a handful of riders with varied certainty."""
    return {
        "pogacar": RiderSkill("pogacar", mean=1900.0, variance=80.0**2),
        "vingegaard": RiderSkill("vingegaard", mean=1850.0, variance=90.0**2),
        "evenepoel": RiderSkill("evenepoel", mean=1800.0, variance=120.0**2),
        "rookie": RiderSkill("rookie", mean=1500.0, variance=350.0**2),
    }


@pytest.fixture
def small_race():
    """Five placed finishers plus a DNF and an unplaced rider."""
    return [
        RaceResult("pogacar", 1),
        RaceResult("vingegaard", 2),
        RaceResult("evenepoel", 3),
        RaceResult("rookie", 4),
        RaceResult("domestique", 5),
        RaceResult("crasher", None, dnf=True),
        RaceResult("unplaced", None),
    ]


@pytest.fixture
def large_race():
    """Sixty placed finishers, r01 winning."""
    return [RaceResult(f"r{i:02d}", i) for i in range(1, 61)]


@pytest.fixture
def make_input():
    """Factory for prediction inputs with neutral form, profile and rumours."""

    def _make(rider_id: str, mean: float = 1500.0, variance: float = 350.0**2, **kwargs):
        return RiderPredictionInput(
            rider_id=rider_id, skill_mean=mean, skill_variance=variance, **kwargs
        )

    return _make
