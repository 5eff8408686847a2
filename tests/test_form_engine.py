"""
Tests for recent form calculation.
"""

import math
from datetime import date, datetime, timedelta, timezone

import pytest

from cyclecast.models.form import (
    days_since_last_race,
    describe_form,
    form_multiplier,
    performance_score,
    race_weight_for_category,
)
from cyclecast.types import FormScore, RecentResult


def result(reference, days_ago, position, field_size=150, weight=1.0, profile="flat", dnf=False):
    return RecentResult(
        date=reference - timedelta(days=days_ago),
        position=position,
        field_size=field_size,
        race_weight=weight,
        profile_type=profile,
        dnf=dnf,
    )


@pytest.mark.unit
class TestPerformanceScore:
    @pytest.mark.parametrize(
        "position,expected",
        [
            (1, 1.0),
            (2, 0.8),
            (3, 0.65),
            (4, 0.5),
            (5, 0.5),
            (6, 0.35),
            (10, 0.35),
            (11, 0.2),
            (20, 0.2),
        ],
    )
    def test_top_positions(self, position, expected):
        assert performance_score(position, 150, False) == expected

    def test_linear_tail(self):
        # Middle of a 41-rider field scores zero, last place -1
        assert performance_score(21, 41, False) == pytest.approx(0.0)
        assert performance_score(41, 41, False) == pytest.approx(-1.0)

    def test_dnf(self):
        assert performance_score(None, 150, True) == -0.5
        assert performance_score(None, 150, False) == -0.5
        assert performance_score(3, 150, True) == -0.5


@pytest.mark.unit
class TestFormMultiplier:
    @pytest.mark.parametrize(
        "score,expected",
        [(0.0, 1.0), (1.0, 1.2), (-1.0, 0.8), (0.5, 1.1), (5.0, 1.2), (-3.0, 0.8)],
    )
    def test_values(self, score, expected):
        assert form_multiplier(score) == pytest.approx(expected)

    def test_engine_uses_configured_spread(self, form_engine):
        assert form_engine.form_multiplier(1.0) == pytest.approx(1.2)


@pytest.mark.unit
class TestCalculateForm:
    def test_empty_history(self, form_engine, reference_date):
        form = form_engine.calculate_form([], reference_date)
        assert form == FormScore(overall=0.0, races_count=0, trend="stable")
        assert form.last_race_date is None

    def test_results_outside_window_ignored(self, form_engine, reference_date):
        old = result(reference_date, 100, 1)
        form = form_engine.calculate_form([old], reference_date)

        assert form.overall == 0.0
        assert form.races_count == 0
        assert form.trend == "stable"
        assert form.last_race_date == old.date

    def test_future_results_ignored(self, form_engine, reference_date):
        form = form_engine.calculate_form([result(reference_date, -5, 1)], reference_date)
        assert form.races_count == 0

    def test_single_result_trend_is_stable(self, form_engine, reference_date):
        form = form_engine.calculate_form([result(reference_date, 5, 1)], reference_date)
        assert form.overall == pytest.approx(1.0)
        assert form.trend == "stable"

    def test_single_win(self, form_engine, reference_date):
        win = result(reference_date, 0, 1)
        form = form_engine.calculate_form([win], reference_date)

        assert form.overall == pytest.approx(1.0)
        assert form.races_count == 1
        assert form.last_race_date == win.date
        assert form.trend == "stable"

    def test_time_decay(self, form_engine, reference_date):
        results = [
            result(reference_date, 0, 1),
            result(reference_date, 21, None, dnf=True),
        ]
        form = form_engine.calculate_form(results, reference_date)

        # Weights 1.0 and 0.5: (1.0 - 0.25) / 1.5
        assert form.overall == pytest.approx(0.5)
        assert form.last_race_date == results[0].date

    def test_race_weight(self, form_engine, reference_date):
        results = [
            result(reference_date, 0, 1, weight=1.0),
            result(reference_date, 0, 150, weight=0.0),
        ]
        form = form_engine.calculate_form(results, reference_date)
        assert form.overall == pytest.approx(1.0)
        assert form.races_count == 2

    def test_by_profile(self, form_engine, reference_date):
        results = [
            result(reference_date, 2, 1, profile="flat"),
            result(reference_date, 4, None, profile="mountain", dnf=True),
        ]
        form = form_engine.calculate_form(results, reference_date)

        assert form.by_profile["flat"] == pytest.approx(1.0)
        assert form.by_profile["mountain"] == pytest.approx(-0.5)
        assert "tt" not in form.by_profile

    def test_improving_trend(self, form_engine, reference_date):
        results = [
            result(reference_date, 1, 1),
            result(reference_date, 2, 1),
            result(reference_date, 30, 50, field_size=100),
            result(reference_date, 40, 50, field_size=100),
        ]
        assert form_engine.calculate_form(results, reference_date).trend == "improving"

    def test_declining_trend(self, form_engine, reference_date):
        results = [
            result(reference_date, 1, 50, field_size=100),
            result(reference_date, 2, 50, field_size=100),
            result(reference_date, 30, 1),
            result(reference_date, 40, 1),
        ]
        assert form_engine.calculate_form(results, reference_date).trend == "declining"

    def test_stable_trend(self, form_engine, reference_date):
        results = [result(reference_date, d, 3) for d in (1, 10, 20, 30)]
        assert form_engine.calculate_form(results, reference_date).trend == "stable"

    def test_input_order_does_not_matter(self, form_engine, reference_date):
        results = [
            result(reference_date, 40, 50, field_size=100),
            result(reference_date, 1, 1),
            result(reference_date, 30, 50, field_size=100),
            result(reference_date, 2, 1),
        ]
        forward = form_engine.calculate_form(results, reference_date)
        backward = form_engine.calculate_form(list(reversed(results)), reference_date)
        assert forward.overall == pytest.approx(backward.overall)
        assert forward.trend == backward.trend == "improving"

    def test_malformed_results_skipped(self, form_engine, reference_date):
        results = [
            result(reference_date, 1, 1, weight=-1.0),
            result(reference_date, 1, 1, field_size=0),
            result(reference_date, 1, 0),
            result(reference_date, 3, 2),
        ]
        form = form_engine.calculate_form(results, reference_date)
        assert form.races_count == 1
        assert form.overall == pytest.approx(0.8)

    def test_accepts_aware_datetimes(self, form_engine):
        reference = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)
        results = [result(date(2025, 6, 30), 1, 1)]
        form = form_engine.calculate_form(results, reference)
        assert form.races_count == 1


@pytest.mark.unit
class TestDescribeForm:
    def test_no_data(self):
        assert describe_form(FormScore.empty()) == "No recent race data"

    def test_recent_race(self, reference_date):
        form = FormScore(
            overall=0.4,
            races_count=3,
            last_race_date=reference_date - timedelta(days=3),
            trend="improving",
        )
        assert describe_form(form, reference_date) == "Good form (improving) - raced 3d ago"

    def test_weeks_and_months(self, reference_date):
        weeks = FormScore(
            overall=0.7, races_count=2, last_race_date=reference_date - timedelta(days=14)
        )
        months = FormScore(
            overall=-0.5, races_count=1, last_race_date=reference_date - timedelta(days=75)
        )
        assert describe_form(weeks, reference_date) == "Excellent form - last race 2w ago"
        assert describe_form(months, reference_date) == "Poor form - hasn't raced in 2+ months"


@pytest.mark.unit
class TestHelpers:
    def test_days_since_never_raced(self):
        assert days_since_last_race(None) == math.inf

    def test_days_since_last_race(self, reference_date):
        assert days_since_last_race(reference_date - timedelta(days=9), reference_date) == 9

    def test_race_weight_for_category(self):
        assert race_weight_for_category("1.UWT") == 1.0
        assert race_weight_for_category("2.1") == 0.7
        assert race_weight_for_category("Kermesse") == 0.5
        assert race_weight_for_category(None) == 0.5
