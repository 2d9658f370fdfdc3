"""
Tests for ensemble voting and strategy weight learning.
"""
import pytest

from eurojackpot.draws import InsufficientHistory
from eurojackpot.models.ensemble import (
    combine,
    learn_strategy_weights,
    predict,
    run_strategies,
    tally_votes,
)
from eurojackpot.models.strategies import STRATEGIES, frequency_gap, weighted_recency
from eurojackpot.prediction import Prediction


def _p(main, euro=(1, 2), source=""):
    return Prediction(tuple(main), tuple(euro), source=source)


class TestVoting:

    def test_rank_weights(self):
        vote = tally_votes({"a": _p([7, 8, 9, 10, 11], (3, 4))}, "main")
        assert vote.votes[7] == 5 and vote.votes[11] == 1 and vote.votes[1] == 0
        euro = tally_votes({"a": _p([7, 8, 9, 10, 11], (3, 4))}, "euro")
        assert euro.votes[3] == 2 and euro.votes[4] == 1

    def test_consensus_first_pick_beats_single_first_pick(self):
        predictions = {
            "a": _p([7, 1, 2, 3, 4]),
            "b": _p([7, 20, 1, 22, 23]),
            "c": _p([7, 30, 31, 1, 33]),
            "d": _p([40, 7, 20, 1, 44]),
        }
        vote = tally_votes(predictions, "main")
        assert vote.votes[7] == 19
        assert vote.votes[7] > vote.votes[40]
        assert vote.strategy_counts[7] == 4
        prediction, _ = combine(predictions)
        assert prediction.main[0] == 7

    def test_ties_go_to_more_strategies_then_lower_number(self):
        predictions = {
            "a": _p([10, 2, 3, 4, 5]),
            "b": _p([9, 20, 21, 22, 12]),
            "c": _p([30, 31, 32, 33, 12]),
            "d": _p([8, 11, 34, 35, 36]),
        }
        vote = tally_votes(predictions, "main")
        ranking = vote.ranking()
        # 8, 9, 10 and 30 each have 5 votes from a single strategy
        assert ranking[:4] == [8, 9, 10, 30]
        # 12 has 1 + 1 votes from two strategies; 4, 22, 33 and 35 have 2 from one
        assert vote.votes[12] == vote.votes[35] == 2
        assert vote.strategy_counts[12] == 2
        assert ranking.index(12) < min(ranking.index(n) for n in (4, 22, 33, 35))

    def test_strategy_weights_scale_votes(self):
        predictions = {"a": _p([1, 2, 3, 4, 5]), "b": _p([6, 7, 8, 9, 10])}
        vote = tally_votes(predictions, "main", {"a": 0.5})
        assert vote.votes[1] == 2.5
        assert vote.votes[6] == 5
        prediction, _ = combine(predictions, {"a": 0.5})
        assert prediction.main[0] == 6

    def test_combine_needs_predictions(self):
        with pytest.raises(ValueError):
            combine({})


class TestEnsemblePredict:

    def test_predict(self, history):
        result = predict(history)
        assert set(result["strategy_predictions"]) == set(STRATEGIES)
        assert set(result["weights"].values()) == {1.0}
        p = result["prediction"]
        assert p.source == "Ensemble"
        assert len(set(p.main)) == 5 and len(set(p.euro)) == 2
        assert result["votes"]["main"].ranking()[:5] == list(p.main)

    def test_deterministic(self, history):
        assert predict(history)["prediction"] == predict(history.copy())["prediction"]

    def test_short_window_strategies_are_skipped(self, history):
        def needs_more(df, penalty=None):
            raise InsufficientHistory(len(df), 10_000)

        results = run_strategies(history, {"Short": needs_more, "FrequencyGap": frequency_gap})
        assert list(results) == ["FrequencyGap"]

    def test_other_errors_propagate(self, history):
        def broken(df, penalty=None):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            run_strategies(history, {"Broken": broken})


class TestLearnWeights:

    def test_weights_sum_to_one(self, history):
        strategies = {"FrequencyGap": frequency_gap, "WeightedRecency": weighted_recency}
        weights = learn_strategy_weights(history, strategies, validation_size=8, min_history=30)
        assert set(weights) == set(strategies)
        assert sum(weights.values()) == pytest.approx(1.0)
        assert all(w > 0 for w in weights.values())

    def test_floor_for_strategies_without_tests(self, history):
        def never(df, penalty=None):
            raise InsufficientHistory(len(df), 10_000)

        weights = learn_strategy_weights(
            history, {"Never": never, "FrequencyGap": frequency_gap},
            validation_size=5, min_history=30,
        )
        assert sum(weights.values()) == pytest.approx(1.0)
        assert 0 < weights["Never"] <= weights["FrequencyGap"]
