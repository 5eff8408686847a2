"""Pydantic schemas for configuration validation."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RatingConfig(BaseModel):
    """Skill rating (TrueSkill-style) parameters."""

    initial_mean: float = Field(default=1500.0)
    initial_sigma: float = Field(gt=0.0, default=350.0)
    beta: float = Field(gt=0.0, default=175.0)  # performance noise within one race
    tau: float = Field(gt=0.0, default=3.5)  # dynamics; tau**2 is the variance floor
    draw_margin: float = Field(ge=0.0, default=0.0)
    subgroup_size: int = Field(ge=2, le=200, default=30)
    num_subgroups: int = Field(ge=1, le=10_000, default=100)
    dynamics_period_days: float = Field(gt=0.0, default=30.0)
    max_dynamics_periods: float = Field(ge=0.0, default=5.0)

    @model_validator(mode="after")
    def validate_floor_below_initial(self) -> "RatingConfig":
        if self.tau >= self.initial_sigma:
            raise ValueError("tau must be smaller than initial_sigma")
        return self

    @property
    def initial_variance(self) -> float:
        return self.initial_sigma**2

    @property
    def min_variance(self) -> float:
        return self.tau**2


class FormConfig(BaseModel):
    """Recent form parameters."""

    half_life_days: float = Field(gt=0.0, default=21.0)
    window_days: float = Field(gt=0.0, le=365.0, default=90.0)
    trend_threshold: float = Field(ge=0.0, le=2.0, default=0.15)
    dnf_score: float = Field(ge=-1.0, le=1.0, default=-0.5)
    multiplier_spread: float = Field(ge=0.0, le=0.5, default=0.2)


class ProfileConfig(BaseModel):
    """Profile affinity parameters."""

    min_races_for_confidence: int = Field(ge=1, default=3)
    default_affinity: float = Field(ge=0.0, le=1.0, default=0.5)
    specialty_threshold: float = Field(ge=0.0, le=1.0, default=0.7)
    weakness_threshold: float = Field(ge=0.0, le=1.0, default=0.3)
    multiplier_min: float = Field(gt=0.0, default=0.7)
    multiplier_max: float = Field(gt=0.0, default=1.3)

    @model_validator(mode="after")
    def validate_ordering(self) -> "ProfileConfig":
        if self.weakness_threshold >= self.specialty_threshold:
            raise ValueError("weakness_threshold must be < specialty_threshold")
        if self.multiplier_min >= self.multiplier_max:
            raise ValueError("multiplier_min must be < multiplier_max")
        return self


class PredictionConfig(BaseModel):
    """Race prediction parameters."""

    n_simulations: int = Field(ge=1, le=1_000_000, default=1000)
    n_workers: int = Field(ge=1, le=64, default=1)
    podium_size: int = Field(ge=1, default=3)
    top_n: int = Field(ge=1, default=10)
    max_rumour_impact: float = Field(ge=0.0, le=0.5, default=0.05)
    rumour_full_weight_tips: int = Field(ge=1, default=3)
    confidence_min: float = Field(ge=0.0, le=1.0, default=0.1)
    confidence_max: float = Field(ge=0.0, le=1.0, default=0.95)
    version: int = Field(ge=1, default=1)

    @field_validator("max_rumour_impact")
    @classmethod
    def validate_rumour_cap(cls, v: float) -> float:
        if not 0.0 <= v <= 0.5:
            raise ValueError("max_rumour_impact must be between 0.0 and 0.5")
        return v

    @model_validator(mode="after")
    def validate_confidence_bounds(self) -> "PredictionConfig":
        if self.confidence_min > self.confidence_max:
            raise ValueError("confidence_min must be <= confidence_max")
        if self.podium_size > self.top_n:
            raise ValueError("podium_size must be <= top_n")
        return self


class CyclecastConfig(BaseModel):
    """Top-level configuration."""

    model_config = ConfigDict(extra="allow")  # Allow extra fields for extensibility

    rating: RatingConfig = Field(default_factory=RatingConfig)
    form: FormConfig = Field(default_factory=FormConfig)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    prediction: PredictionConfig = Field(default_factory=PredictionConfig)


def validate_config(config_dict: dict) -> CyclecastConfig:
    """
    Validate configuration dictionary against schema.

    Args:
        config_dict: Raw configuration dictionary from YAML

    Returns:
        Validated configuration object

    Raises:
        ValidationError: If configuration is invalid
    """
    return CyclecastConfig(**config_dict)
