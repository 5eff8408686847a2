"""
Tests for race prediction scoring, ranking, confidence and reasoning.
"""

import pytest

from cyclecast.predictors.race import PredictionEngine, predictions_to_frame, top_predictions
from cyclecast.types import FormScore
from cyclecast.utils.config_schema import CyclecastConfig
from cyclecast.utils.constants import REASON_FALLBACK


@pytest.fixture
def startlist(make_input):
    return [
        make_input("pogacar", 1900.0, 80.0**2, rider_name="Tadej Pogačar"),
        make_input("vingegaard", 1850.0, 90.0**2, rider_name="Jonas Vingegaard"),
        make_input("evenepoel", 1800.0, 120.0**2, rider_name="Remco Evenepoel"),
        make_input("roglic", 1750.0, 110.0**2),
        make_input("rookie"),
    ]


@pytest.mark.unit
class TestFinalScore:
    def test_neutral_rider(self, prediction_engine, make_input):
        scores = prediction_engine.calculate_final_score(make_input("a"))

        assert scores.conservative_skill == pytest.approx(450.0)
        assert scores.form_multiplier == 1.0
        assert scores.profile_multiplier == pytest.approx(1.0)
        assert scores.rumour_modifier == 0.0
        assert scores.final_score == pytest.approx(450.0)

    def test_conservative_skill_floor(self, prediction_engine, make_input):
        scores = prediction_engine.calculate_final_score(make_input("a", mean=1000.0))
        assert scores.conservative_skill == 1.0
        assert scores.final_score == pytest.approx(1.0)

    def test_form_and_profile_multiply(self, prediction_engine, make_input):
        rider = make_input(
            "a",
            form=FormScore(overall=0.5, races_count=4),
            profile_affinity=1.0,
            profile_sample_size=5,
        )
        scores = prediction_engine.calculate_final_score(rider)
        assert scores.form_multiplier == pytest.approx(1.1)
        assert scores.profile_multiplier == pytest.approx(1.3)
        assert scores.final_score == pytest.approx(450.0 * 1.1 * 1.3)

    @pytest.mark.parametrize(
        "score,tips,expected",
        [
            (1.0, 0, 0.0),
            (1.0, 1, 0.05 / 3),
            (1.0, 3, 0.05),
            (1.0, 6, 0.05),
            (-1.0, 3, -0.05),
            (2.0, 3, 0.05),
        ],
    )
    def test_rumour_gating(self, prediction_engine, make_input, score, tips, expected):
        rider = make_input("a", rumour_score=score, rumour_tip_count=tips)
        scores = prediction_engine.calculate_final_score(rider)
        assert scores.rumour_modifier == pytest.approx(expected)
        assert scores.final_score == pytest.approx(450.0 * (1.0 + expected))

    def test_injected_affinity_curve(self, make_input):
        engine = PredictionEngine(CyclecastConfig(), seed=1, affinity_curve=lambda a, n: 1.25)
        scores = engine.calculate_final_score(make_input("a"))
        assert scores.profile_multiplier == 1.25


@pytest.mark.unit
class TestConfidence:
    def test_no_data_hits_floor(self, prediction_engine, make_input):
        assert prediction_engine.calculate_confidence(make_input("a")) == pytest.approx(0.1)

    def test_rich_data_hits_ceiling(self, prediction_engine, make_input):
        rider = make_input(
            "a",
            variance=50.0**2,
            form=FormScore(overall=0.2, races_count=5),
            profile_sample_size=10,
            rumour_tip_count=3,
        )
        assert prediction_engine.calculate_confidence(rider) == pytest.approx(0.95)

    def test_moderate_data(self, prediction_engine, make_input):
        rider = make_input(
            "a",
            variance=150.0**2,
            form=FormScore(overall=0.2, races_count=3),
            profile_sample_size=5,
        )
        assert prediction_engine.calculate_confidence(rider) == pytest.approx(0.7)


@pytest.mark.unit
class TestReasoning:
    def test_fallback(self, prediction_engine, make_input):
        rider = make_input("a")
        scores = prediction_engine.calculate_final_score(rider)
        assert prediction_engine.generate_reasoning(rider, scores, 0.05) == REASON_FALLBACK

    def test_favourite_in_form(self, prediction_engine, make_input):
        rider = make_input("a", form=FormScore(overall=0.6, races_count=4, trend="improving"))
        scores = prediction_engine.calculate_final_score(rider)
        assert (
            prediction_engine.generate_reasoning(rider, scores, 0.3)
            == "Excellent recent form, form trending upward, race favorite."
        )

    def test_profile_and_rumours(self, prediction_engine, make_input):
        rider = make_input(
            "a",
            form=FormScore(overall=-0.8, races_count=4, trend="declining"),
            profile_affinity=0.0,
            profile_sample_size=6,
            rumour_score=-1.0,
            rumour_tip_count=3,
        )
        scores = prediction_engine.calculate_final_score(rider)
        assert prediction_engine.generate_reasoning(rider, scores, 0.12) == (
            "Poor recent form, form trending down, weak profile match, "
            "concerning community reports, strong contender."
        )

    def test_rumours_need_tips(self, prediction_engine, make_input):
        rider = make_input("a", rumour_score=1.0, rumour_tip_count=1)
        scores = prediction_engine.calculate_final_score(rider)
        assert "community" not in prediction_engine.generate_reasoning(rider, scores, 0.0)


@pytest.mark.unit
class TestGenerateRacePredictions:
    def test_empty_startlist(self, prediction_engine):
        result = prediction_engine.generate_race_predictions("race-1", [])
        assert result.race_id == "race-1"
        assert result.predictions == []
        assert result.version == 1

    def test_positions_are_a_permutation(self, prediction_engine, startlist):
        result = prediction_engine.generate_race_predictions("race-1", startlist, "mountain")

        positions = [p.predicted_position for p in result.predictions]
        assert positions == list(range(1, len(startlist) + 1))
        scores = [p.final_score for p in result.predictions]
        assert scores == sorted(scores, reverse=True)
        assert result.race_profile == "mountain"

    def test_probabilities_are_valid(self, prediction_engine, startlist):
        result = prediction_engine.generate_race_predictions("race-1", startlist)

        for p in result.predictions:
            assert 0.0 <= p.win_probability <= 1.0
            assert 0.0 <= p.podium_probability <= 1.0
            assert 0.0 <= p.top10_probability <= 1.0
            assert 0.1 <= p.confidence <= 0.95
            assert p.reasoning
        assert sum(p.win_probability for p in result.predictions) == pytest.approx(1.0)

    def test_two_rider_race(self, prediction_engine, make_input):
        riders = [
            make_input("a", 1700.0, 100.0**2),
            make_input("b", 1500.0, 100.0**2),
        ]
        result = prediction_engine.generate_race_predictions("race-2", riders)
        a, b = result.predictions

        assert a.rider_id == "a"
        assert a.predicted_position == 1
        assert a.win_probability > b.win_probability
        for p in (a, b):
            assert p.podium_probability == 1.0
            assert p.top10_probability == 1.0

    def test_ties_keep_startlist_order(self, prediction_engine, make_input):
        riders = [make_input(rid) for rid in ("c", "a", "b")]
        result = prediction_engine.generate_race_predictions("race-3", riders)
        assert [p.rider_id for p in result.predictions] == ["c", "a", "b"]

    def test_malformed_entries_skipped(self, prediction_engine, make_input):
        riders = [
            make_input("a"),
            make_input("a", 1900.0),
            make_input("nan", float("nan")),
            make_input("negative", variance=-1.0),
            make_input("", 1800.0),
            make_input("b", 1600.0),
        ]
        result = prediction_engine.generate_race_predictions("race-4", riders)
        assert [p.rider_id for p in result.predictions] == ["b", "a"]

    def test_malformed_context_skipped(self, prediction_engine, make_input, caplog):
        riders = [
            make_input("a"),
            make_input("no_form", form=None),
            make_input("nan_form", form=FormScore(overall=float("nan"))),
            make_input("nan_affinity", profile_affinity=float("nan")),
            make_input("text_rumour", rumour_score="high"),
            make_input("float_tips", rumour_tip_count=2.5),
            make_input("bool_samples", profile_sample_size=True),
        ]
        result = prediction_engine.generate_race_predictions("race-5", riders)

        assert [p.rider_id for p in result.predictions] == ["a"]
        assert result.predictions[0].predicted_position == 1
        assert "Skipping rider no_form" in caplog.text

    def test_invalid_race_profile(self, prediction_engine, startlist):
        with pytest.raises(ValueError, match="race_profile"):
            prediction_engine.generate_race_predictions("race-1", startlist, "gravel")

    def test_seeded_engines_agree(self, startlist):
        first = PredictionEngine(CyclecastConfig(), seed=9).generate_race_predictions(
            "race-1", startlist
        )
        second = PredictionEngine(CyclecastConfig(), seed=9).generate_race_predictions(
            "race-1", startlist
        )
        assert [p.win_probability for p in first.predictions] == [
            p.win_probability for p in second.predictions
        ]


@pytest.mark.unit
class TestResultHelpers:
    def test_top_predictions(self, prediction_engine, startlist):
        result = prediction_engine.generate_race_predictions("race-1", startlist)
        top = top_predictions(result, n=2)
        assert [p.predicted_position for p in top] == [1, 2]

    def test_predictions_to_frame(self, prediction_engine, startlist):
        result = prediction_engine.generate_race_predictions("race-1", startlist)
        df = predictions_to_frame(result)

        assert len(df) == len(startlist)
        assert {"rider_id", "win_probability", "conservative_skill", "reasoning"} <= set(
            df.columns
        )
        assert df["predicted_position"].tolist() == list(range(1, len(startlist) + 1))
