"""Sub-group samplers used by the rating engine for large fields."""

import logging
from typing import Protocol

import numpy as np

from cyclecast.utils.validation_helpers import validate_positive_int

logger = logging.getLogger(__name__)


class SubgroupSampler(Protocol):
    """Draws sub-groups of finishers from a field sorted by finishing position.

    Implementations return index arrays into the sorted field. Each array is
    sorted ascending so finish order is kept inside a sub-group.
    """

    def sample(
        self, n_finishers: int, subgroup_size: int, num_subgroups: int
    ) -> list[np.ndarray]: ...


class RandomSubgroupSampler:
    """Uniform sampling without replacement, driven by a numpy Generator."""

    def __init__(self, seed: int | None = None, rng: np.random.Generator | None = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def sample(
        self, n_finishers: int, subgroup_size: int, num_subgroups: int
    ) -> list[np.ndarray]:
        validate_positive_int(n_finishers, "n_finishers", min_val=2)
        validate_positive_int(subgroup_size, "subgroup_size", min_val=2)
        validate_positive_int(num_subgroups, "num_subgroups")

        size = min(subgroup_size, n_finishers)
        groups = [
            np.sort(self.rng.choice(n_finishers, size=size, replace=False))
            for _ in range(num_subgroups)
        ]
        logger.debug(f"Sampled {num_subgroups} sub-groups of {size} from {n_finishers} finishers")
        return groups
