"""Statistical models: skill rating, recent form and profile affinity."""

from .form import FormEngine, describe_form, form_multiplier
from .profile import calculate_profile_affinities, profile_affinity_multiplier
from .rating import RatingEngine, calculate_elo
from .sampling import RandomSubgroupSampler, SubgroupSampler

__all__ = [
    "FormEngine",
    "RandomSubgroupSampler",
    "RatingEngine",
    "SubgroupSampler",
    "calculate_elo",
    "calculate_profile_affinities",
    "describe_form",
    "form_multiplier",
    "profile_affinity_multiplier",
]
