"""
Bayesian skill rating engine for cycling results.

This module implements a TrueSkill-style rating: each rider's ability is a
Normal(mean, variance) belief, and a finishing order is decomposed into
pairwise winner/loser comparisons. Every comparison applies the
truncated-Gaussian update with a zero draw margin (there are no draws in a
race). Fields larger than one sub-group are handled by averaging updates
over randomly sampled 30-rider sub-groups, which bounds the cost of a race
independently of field size.

Ratings are compared and displayed with the conservative estimate
mean - 3 * sigma.
"""

import logging
import math
from collections.abc import Iterable, Mapping, MutableMapping

import numpy as np
from scipy.stats import norm

from cyclecast.models.sampling import RandomSubgroupSampler, SubgroupSampler
from cyclecast.types.rating_types import RaceResult, RiderSkill, SkillUpdate
from cyclecast.utils import config_loader
from cyclecast.utils.config_schema import RatingConfig
from cyclecast.utils.validation_helpers import is_finite_number, is_valid_position

logger = logging.getLogger(__name__)

# Below this CDF value v() switches to its asymptote -x
CDF_FLOOR = 1e-10


def calculate_elo(mean: float, variance: float) -> float:
    """Conservative rating: mean minus three standard deviations."""
    return mean - 3.0 * math.sqrt(variance)


def v_function(t, epsilon=0.0):
    """Mean correction of a Gaussian truncated below at epsilon (winner side)."""
    x = np.asarray(t, dtype=float) - epsilon
    cdf = norm.cdf(x)
    safe = cdf >= CDF_FLOOR
    v = np.where(safe, norm.pdf(x) / np.where(safe, cdf, 1.0), -x)
    return v if v.ndim else float(v)


def w_function(t, epsilon=0.0):
    """Variance correction matching v_function."""
    v = v_function(t, epsilon)
    return v * (v + t - epsilon)


class RatingEngine:
    """
    Rating updates from race finishing order.

    Model:
        Skill ~ Normal(mean, variance), Performance ~ Normal(skill, beta^2)
        Update Rule: pairwise truncated-Gaussian (TrueSkill, two players).

    The engine is stateless between calls. ``process_race`` borrows the
    caller's skill mapping for one call, writes the new skills back into it
    and returns one SkillUpdate per finisher.
    """

    def __init__(
        self,
        config: RatingConfig | None = None,
        sampler: SubgroupSampler | None = None,
    ):
        self.config = config if config is not None else config_loader.get_model().rating
        self.sampler = sampler if sampler is not None else RandomSubgroupSampler()

    @property
    def min_variance(self) -> float:
        return self.config.min_variance

    def create_initial_skill(self, rider_id: str) -> RiderSkill:
        """Default belief for a rider with no rating history."""
        return RiderSkill(
            rider_id=rider_id,
            mean=self.config.initial_mean,
            variance=self.config.initial_variance,
        )

    def apply_dynamics(self, skill: RiderSkill, days_since_last_race: float) -> RiderSkill:
        """Inflate variance for inactivity, capped at the initial variance."""
        periods = max(days_since_last_race, 0.0) / self.config.dynamics_period_days
        increase = self.min_variance * min(periods, self.config.max_dynamics_periods)
        variance = min(skill.variance + increase, self.config.initial_variance)
        return RiderSkill(rider_id=skill.rider_id, mean=skill.mean, variance=variance)

    def update_pairwise(
        self, winner: RiderSkill, loser: RiderSkill
    ) -> tuple[RiderSkill, RiderSkill]:
        """Update both skills after ``winner`` finished ahead of ``loser``."""
        w_mean, w_var, l_mean, l_var = self._pairwise(
            np.array([winner.mean]),
            np.array([winner.variance]),
            np.array([loser.mean]),
            np.array([loser.variance]),
        )
        return (
            RiderSkill(winner.rider_id, float(w_mean[0]), float(w_var[0])),
            RiderSkill(loser.rider_id, float(l_mean[0]), float(l_var[0])),
        )

    def _pairwise(
        self,
        winner_mean: np.ndarray,
        winner_var: np.ndarray,
        loser_mean: np.ndarray,
        loser_var: np.ndarray,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Vectorized pairwise update over aligned winner/loser arrays."""
        beta = self.config.beta
        c = np.sqrt(2.0 * beta**2 + winner_var + loser_var)
        t = (winner_mean - loser_mean) / c
        epsilon = self.config.draw_margin / c

        v = v_function(t, epsilon)
        w = w_function(t, epsilon)

        new_winner_mean = winner_mean + (winner_var / c) * v
        new_winner_var = winner_var * (1.0 - w * winner_var / c**2)

        new_loser_mean = loser_mean - (loser_var / c) * v
        new_loser_var = loser_var * (1.0 - w * loser_var / c**2)

        floor = self.min_variance
        return (
            new_winner_mean,
            np.maximum(new_winner_var, floor),
            new_loser_mean,
            np.maximum(new_loser_var, floor),
        )

    def _valid_finishers(
        self, results: Iterable[RaceResult], skills: Mapping[str, RiderSkill]
    ) -> list[RaceResult]:
        """Filter to placed, well-formed finishers sorted by position."""
        finishers = []
        seen: set[str] = set()

        for result in results:
            rider_id = getattr(result, "rider_id", None)
            if not isinstance(rider_id, str) or not rider_id:
                logger.warning(f"Skipping result without rider id: {result!r}")
                continue
            if rider_id in seen:
                logger.warning(f"Skipping duplicate result for rider {rider_id}")
                continue
            seen.add(rider_id)

            if result.dnf or result.position is None:
                continue
            if not is_valid_position(result.position):
                logger.warning(f"Skipping rider {rider_id}: invalid position {result.position!r}")
                continue

            skill = skills.get(rider_id)
            if skill is not None and not (
                is_finite_number(skill.mean)
                and is_finite_number(skill.variance)
                and skill.variance > 0
            ):
                logger.warning(f"Skipping rider {rider_id}: degenerate skill state {skill!r}")
                continue

            finishers.append(result)

        finishers.sort(key=lambda r: r.position)
        return finishers

    def process_race(
        self,
        results: Iterable[RaceResult],
        skills: MutableMapping[str, RiderSkill],
    ) -> list[SkillUpdate]:
        """
        Update skills from one race's finishing order.

        Every comparison is computed against the pre-race skills. A rider's
        mean and variance deltas are averaged over the comparisons it took
        part in and applied once, so a rider's update has the magnitude of a
        single pairwise comparison whatever the field size.

        Args:
            results: Finishing order; DNF and unplaced riders are ignored
            skills: Caller-owned skill table, updated in place. Riders
                missing from it are initialized with the default skill.

        Returns:
            One SkillUpdate per finisher in finish order; empty when fewer
            than two valid finishers remain (``skills`` is then untouched).
        """
        finishers = self._valid_finishers(results, skills)
        n = len(finishers)
        if n < 2:
            logger.debug(f"Need at least 2 finishers to update ratings, got {n}")
            return []

        before = [
            skills.get(r.rider_id) or self.create_initial_skill(r.rider_id) for r in finishers
        ]
        means = np.array([s.mean for s in before], dtype=float)
        variances = np.array([s.variance for s in before], dtype=float)

        mean_delta = np.zeros(n)
        var_delta = np.zeros(n)
        counts = np.zeros(n, dtype=int)

        if n <= self.config.subgroup_size:
            groups = [np.arange(n)]
        else:
            groups = self.sampler.sample(n, self.config.subgroup_size, self.config.num_subgroups)

        for group in groups:
            winners_idx, losers_idx = np.triu_indices(len(group), k=1)
            w_idx = np.asarray(group)[winners_idx]
            l_idx = np.asarray(group)[losers_idx]

            new_w_mean, new_w_var, new_l_mean, new_l_var = self._pairwise(
                means[w_idx], variances[w_idx], means[l_idx], variances[l_idx]
            )

            np.add.at(mean_delta, w_idx, new_w_mean - means[w_idx])
            np.add.at(var_delta, w_idx, new_w_var - variances[w_idx])
            np.add.at(mean_delta, l_idx, new_l_mean - means[l_idx])
            np.add.at(var_delta, l_idx, new_l_var - variances[l_idx])
            np.add.at(counts, w_idx, 1)
            np.add.at(counts, l_idx, 1)

        updates = []
        for idx, old in enumerate(before):
            if counts[idx] == 0:
                # Large field and never sampled: keep the prior as is
                skills.setdefault(old.rider_id, old)
                continue

            new_mean = float(old.mean + mean_delta[idx] / counts[idx])
            new_variance = old.variance + var_delta[idx] / counts[idx]
            new_variance = float(max(new_variance, self.min_variance))
            new = RiderSkill(rider_id=old.rider_id, mean=new_mean, variance=new_variance)
            skills[old.rider_id] = new

            updates.append(
                SkillUpdate(
                    rider_id=old.rider_id,
                    old_mean=old.mean,
                    old_variance=old.variance,
                    new_mean=new.mean,
                    new_variance=new.variance,
                    rating_delta=calculate_elo(new.mean, new.variance)
                    - calculate_elo(old.mean, old.variance),
                )
            )

        logger.debug(
            f"Processed race with {n} finishers over {len(groups)} group(s), "
            f"{len(updates)} updates"
        )
        return updates

    def win_probability(self, rider_a: RiderSkill, rider_b: RiderSkill) -> float:
        """Probability that rider_a finishes ahead of rider_b."""
        c = math.sqrt(2.0 * self.config.beta**2 + rider_a.variance + rider_b.variance)
        return float(norm.cdf((rider_a.mean - rider_b.mean) / c))

    def expected_position(
        self, skill: RiderSkill, all_skills: Mapping[str, RiderSkill]
    ) -> float:
        """1 + expected number of riders finishing ahead of ``skill``."""
        ahead = sum(
            self.win_probability(other, skill)
            for other_id, other in all_skills.items()
            if other_id != skill.rider_id
        )
        return 1.0 + ahead
