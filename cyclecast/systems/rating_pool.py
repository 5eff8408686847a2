"""
Rating pool: the skill table for one (discipline, age category).

Holds rider skills between races, applies inactivity dynamics before each
update, tracks race counts and keeps an audit trail of rating changes. A
pool serializes its own updates, and a race id is only ever processed once,
so feeding races in chronological order is the only ordering the caller has
to guarantee.
"""

import logging
import threading
from collections.abc import Iterable
from datetime import date

import pandas as pd

from cyclecast.models.form import days_between
from cyclecast.models.rating import RatingEngine, calculate_elo
from cyclecast.types.rating_types import (
    RaceResult,
    RatingHistoryRecord,
    RiderPoolRecord,
    RiderSkill,
    SkillUpdate,
)
from cyclecast.utils.validation_helpers import is_valid_position

logger = logging.getLogger(__name__)


def from_persisted(rider_id: str, mean: float, sigma: float) -> RiderSkill:
    """Skill from stored (mean, standard deviation)."""
    return RiderSkill(rider_id=rider_id, mean=mean, variance=sigma**2)


def to_persisted(skill: RiderSkill) -> tuple[float, float]:
    """(mean, standard deviation) for storage."""
    return skill.mean, skill.sigma


class RatingPool:
    """
    Stateful skill table for one rating pool.

    State: {rider_id: RiderPoolRecord}; history of RatingHistoryRecord.
    """

    def __init__(
        self,
        discipline: str,
        age_category: str = "elite",
        engine: RatingEngine | None = None,
    ):
        self.discipline = discipline
        self.age_category = age_category
        self.engine = engine if engine is not None else RatingEngine()
        self.records: dict[str, RiderPoolRecord] = {}
        self.history: list[RatingHistoryRecord] = []
        self._processed_races: set[str] = set()
        self._lock = threading.Lock()

    @property
    def key(self) -> tuple[str, str]:
        return self.discipline, self.age_category

    def load(
        self,
        rider_id: str,
        mean: float,
        sigma: float,
        races_total: int = 0,
        wins_total: int = 0,
        podiums_total: int = 0,
        last_race_date: date | None = None,
    ) -> None:
        """Seed the pool with persisted state (sigma is a standard deviation)."""
        skill = from_persisted(rider_id, mean, sigma)
        if skill.variance < self.engine.min_variance:
            logger.warning(f"Raising stored variance for {rider_id} to the floor")
            skill = RiderSkill(rider_id, mean, self.engine.min_variance)
        self.records[rider_id] = RiderPoolRecord(
            skill=skill,
            races_total=races_total,
            wins_total=wins_total,
            podiums_total=podiums_total,
            last_race_date=last_race_date,
        )

    def get_skill(self, rider_id: str) -> RiderSkill:
        """Current skill, or the default skill for an unrated rider."""
        record = self.records.get(rider_id)
        if record is None:
            return self.engine.create_initial_skill(rider_id)
        return record.skill

    def is_processed(self, race_id: str) -> bool:
        return race_id in self._processed_races

    def process_race(
        self,
        race_id: str,
        results: Iterable[RaceResult],
        race_date: date | None = None,
    ) -> list[SkillUpdate] | None:
        """
        Apply one race to the pool.

        Returns:
            The engine's skill updates, or None when the race was already
            processed or had fewer than two valid finishers.
        """
        results = list(results)

        with self._lock:
            if race_id in self._processed_races:
                logger.info(f"Race {race_id} already processed for pool {self.key}, skipping")
                return None

            skills = self._skills_for_race(results, race_date)
            updates = self.engine.process_race(results, skills)
            if not updates:
                logger.debug(f"Race {race_id} produced no rating updates")
                return None

            # First row per rider, matching the engine's duplicate handling
            positions: dict[str, int | None] = {}
            for r in results:
                position = r.position if not r.dnf and is_valid_position(r.position) else None
                positions.setdefault(r.rider_id, position)
            for update in updates:
                self._record_update(race_id, update, positions.get(update.rider_id), race_date)

            self._processed_races.add(race_id)
            logger.info(f"Race {race_id}: updated {len(updates)} riders in pool {self.key}")
            return updates

    def _skills_for_race(
        self, results: list[RaceResult], race_date: date | None
    ) -> dict[str, RiderSkill]:
        """Working copy of skills with inactivity dynamics applied."""
        skills = {}
        for result in results:
            record = self.records.get(getattr(result, "rider_id", None))
            if record is None:
                continue
            skill = record.skill
            if race_date is not None and record.last_race_date is not None:
                days = days_between(race_date, record.last_race_date)
                skill = self.engine.apply_dynamics(skill, days)
            skills[result.rider_id] = skill
        return skills

    def _record_update(
        self,
        race_id: str,
        update: SkillUpdate,
        position: int | None,
        race_date: date | None,
    ) -> None:
        new_skill = RiderSkill(update.rider_id, update.new_mean, update.new_variance)
        record = self.records.get(update.rider_id)
        if record is None:
            record = RiderPoolRecord(skill=new_skill)
            self.records[update.rider_id] = record

        record.skill = new_skill
        record.races_total += 1
        if position == 1:
            record.wins_total += 1
        if position is not None and position <= 3:
            record.podiums_total += 1
        if race_date is not None:
            record.last_race_date = race_date

        self.history.append(
            RatingHistoryRecord(
                rider_id=update.rider_id,
                race_id=race_id,
                discipline=self.discipline,
                age_category=self.age_category,
                rating_before=calculate_elo(update.old_mean, update.old_variance),
                rating_after=calculate_elo(update.new_mean, update.new_variance),
                rating_change=update.rating_delta,
                race_position=position,
            )
        )

    def get_current_ratings(self) -> pd.DataFrame:
        """Return current ratings as a DataFrame, best conservative rating first."""
        data = [
            {
                "rider_id": rider_id,
                "rating": round(calculate_elo(r.skill.mean, r.skill.variance), 2),
                "mean": round(r.skill.mean, 2),
                "sigma": round(r.skill.sigma, 2),
                "races_total": r.races_total,
                "wins_total": r.wins_total,
                "podiums_total": r.podiums_total,
                "last_race_date": r.last_race_date,
            }
            for rider_id, r in self.records.items()
        ]
        columns = [
            "rider_id",
            "rating",
            "mean",
            "sigma",
            "races_total",
            "wins_total",
            "podiums_total",
            "last_race_date",
        ]
        frame = pd.DataFrame(data, columns=columns)
        return frame.sort_values("rating", ascending=False).reset_index(drop=True)

    def get_history_df(self) -> pd.DataFrame:
        """Export update history for visualization."""
        return pd.DataFrame([vars(r) for r in self.history])
