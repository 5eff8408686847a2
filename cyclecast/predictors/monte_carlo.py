"""Monte Carlo finishing-probability simulation over a whole start list."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from cyclecast.types.prediction_types import FinishProbabilities
from cyclecast.types.rating_types import RiderSkill
from cyclecast.utils.validation_helpers import validate_positive_int

logger = logging.getLogger(__name__)


def _run_shard(
    rng: np.random.Generator,
    n_trials: int,
    means: np.ndarray,
    spreads: np.ndarray,
    podium_size: int,
    top_n: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Simulate ``n_trials`` races, return win/podium/top-N counts per rider."""
    n_riders = len(means)
    performances = means + spreads * rng.standard_normal((n_trials, n_riders))
    # Column k of ``order`` holds the rider finishing in position k + 1
    order = np.argsort(-performances, axis=1)

    wins = np.bincount(order[:, 0], minlength=n_riders)
    podiums = np.bincount(order[:, :podium_size].ravel(), minlength=n_riders)
    top_ns = np.bincount(order[:, :top_n].ravel(), minlength=n_riders)
    return wins, podiums, top_ns


def simulate_finish_probabilities(
    skills: Sequence[RiderSkill],
    n_trials: int = 1000,
    beta: float = 175.0,
    rng: np.random.Generator | None = None,
    n_workers: int = 1,
    podium_size: int = 3,
    top_n: int = 10,
) -> list[FinishProbabilities]:
    """
    Estimate win, podium and top-N probabilities in one shared batch.

    Each trial samples every rider's performance as
    mean + sqrt(variance + beta^2) * N(0, 1) and ranks the whole field, so
    cost is O(riders x trials). With ``n_workers > 1`` the trials are split
    into shards run on a thread pool, each with an independent child
    generator; counts are summed, so the result does not depend on shard
    order.

    Returns:
        Probabilities aligned with ``skills``.
    """
    validate_positive_int(n_trials, "n_trials")
    validate_positive_int(n_workers, "n_workers")
    if not skills:
        return []

    rng = rng if rng is not None else np.random.default_rng()
    means = np.array([s.mean for s in skills], dtype=float)
    spreads = np.sqrt(np.array([s.variance for s in skills], dtype=float) + beta**2)

    shard_sizes = [len(chunk) for chunk in np.array_split(np.arange(n_trials), n_workers)]
    shard_sizes = [size for size in shard_sizes if size > 0]

    if len(shard_sizes) == 1:
        shards = [_run_shard(rng, n_trials, means, spreads, podium_size, top_n)]
    else:
        child_rngs = rng.spawn(len(shard_sizes))
        with ThreadPoolExecutor(max_workers=len(shard_sizes)) as pool:
            shards = list(
                pool.map(
                    lambda args: _run_shard(args[0], args[1], means, spreads, podium_size, top_n),
                    zip(child_rngs, shard_sizes, strict=True),
                )
            )

    wins = sum(shard[0] for shard in shards)
    podiums = sum(shard[1] for shard in shards)
    top_ns = sum(shard[2] for shard in shards)

    logger.debug(
        f"Simulated {n_trials} trials for {len(skills)} riders across {len(shard_sizes)} shard(s)"
    )
    return [
        FinishProbabilities(
            win=float(wins[i] / n_trials),
            podium=float(podiums[i] / n_trials),
            top10=float(top_ns[i] / n_trials),
        )
        for i in range(len(skills))
    ]
