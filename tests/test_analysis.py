"""
Tests for the feature analyzers, the normaliser and the history summary.
"""
import math

import pytest

from conftest import make_history
from eurojackpot.analysis import (
    ANALYZERS,
    NEVER_DRAWN_GAP_SCORE,
    cluster,
    frequency_counts,
    frequency_long,
    frequency_medium,
    frequency_short,
    gap,
    gap_statistics,
    history_summary,
    momentum,
    pattern,
    position,
    run_analyzers,
)
from eurojackpot.draws import ALL_EURO, ALL_MAIN, InsufficientHistory
from eurojackpot.normalize import (
    clamp,
    normalize_all,
    normalize_gap,
    normalize_momentum,
    normalize_position,
    normalize_scores,
)


def _filler(exclude, k=5):
    return [n for n in range(11, 51) if n not in exclude][:k]


class TestFrequency:

    def test_counts_and_rates(self, forced_seven):
        counts = frequency_counts(forced_seven, "main")
        # Draw 0 is {1..5}; 7 is in every older draw
        assert counts[7] == 59
        assert frequency_long(forced_seven)[7] == pytest.approx(59 / 60)
        assert frequency_short(forced_seven)[7] == pytest.approx(14 / 15)
        assert frequency_medium(forced_seven)[7] == pytest.approx(49 / 50)

    def test_short_window_uses_available_draws(self):
        df = make_history([((1, 2, 3, 4, 5), (1, 2)), ((1, 6, 7, 8, 9), (1, 3))])
        assert frequency_short(df)[1] == pytest.approx(1.0)
        assert frequency_short(df)[6] == pytest.approx(0.5)
        assert frequency_short(df, "euro")[1] == pytest.approx(1.0)

    def test_empty_window_has_zero_rates(self, history):
        empty = history.iloc[0:0]
        assert set(frequency_long(empty).values()) == {0.0}

    def test_all_numbers_scored(self, history):
        assert sorted(frequency_long(history)) == ALL_MAIN
        assert sorted(frequency_long(history, "euro")) == ALL_EURO


class TestMomentum:

    def test_rising_number_positive(self):
        tickets = [((1, 2, 3, 4, 5), (1, 2)), ((1, 12, 13, 14, 15), (1, 2))]
        df = make_history(tickets)
        m = momentum(df)
        assert m[1] > 0
        assert m[50] == 0

    def test_fading_number_negative(self, forced_seven):
        # 7 is in all 35 older draws but decays in the recent window
        assert momentum(forced_seven)[7] < 0


class TestGap:

    def _history_with_ten_at(self, rows, n_draws):
        tickets = []
        for i in range(n_draws):
            main = [10] + _filler({10}, 4) if i in rows else _filler({10}, 5)
            tickets.append((main, (1, 2)))
        return make_history(tickets)

    def test_zero_std_treated_as_one(self):
        # 10 in rows 6, 8, 10: gaps 2, 2 (std 0), current gap 6
        df = self._history_with_ten_at({6, 8, 10}, 11)
        stats = gap_statistics(df)[10]
        assert stats["std_gap"] == 0
        assert gap(df)[10] == pytest.approx(1 + (6 - 2) / 1 * 0.5)
        assert all(math.isfinite(v) for v in gap(df).values())

    def test_not_overdue_scores_one(self):
        df = self._history_with_ten_at({0, 3, 6}, 9)
        assert gap(df)[10] == pytest.approx(1.0)

    def test_single_appearance(self):
        df = self._history_with_ten_at({4}, 9)
        assert gap(df)[10] == pytest.approx(4 / 10)

    def test_never_drawn_constant_is_mid_range(self):
        df = self._history_with_ten_at(set(), 9)
        assert gap(df)[10] == NEVER_DRAWN_GAP_SCORE
        normalized = normalize_gap(NEVER_DRAWN_GAP_SCORE)
        assert 25 < normalized < 75
        assert normalized < 100


class TestPatternPositionCluster:

    def test_pattern_requires_a_draw(self, history):
        with pytest.raises(InsufficientHistory):
            pattern(history.iloc[0:0])

    def test_pattern_credits_followers(self):
        tickets = [
            ((1, 2, 3, 4, 5), (1, 2)),
            ((30, 31, 32, 33, 34), (1, 2)),
            ((1, 2, 40, 41, 42), (1, 2)),
            ((20, 21, 22, 23, 24), (1, 2)),
        ]
        scores = pattern(make_history(tickets))
        # Row 2 shares {1, 2} with row 0, so row 1 (the draw after it) is credited
        assert scores[30] > scores[20]
        assert scores[40] > 0

    def test_position_entropy(self):
        tickets = [((1, 2, 3, 4, 5), (1, 2)), ((6, 7, 8, 9, 10), (1, 2))]
        df = make_history(tickets)
        scores = position(df)
        assert scores[1] == 0.0
        assert scores[50] == 0.0

    def test_position_entropy_two_slots(self):
        df = make_history([((1, 2, 3, 4, 5), (1, 2)), ((6, 7, 8, 9, 49), (1, 2)),
                           ((2, 4, 6, 8, 10), (1, 2))])
        # 2 sits in slot 1 then slot 0
        assert position(df)[2] == pytest.approx(1.0)

    def test_cluster_counts_decades(self):
        df = make_history([((1, 2, 3, 14, 45), (1, 2)), ((4, 15, 26, 37, 48), (1, 2))])
        scores = cluster(df)
        # decade 1-10: 4 numbers over 2 draws
        assert scores[7] == pytest.approx(200.0)
        assert scores[20] == pytest.approx(100.0)


class TestRegistry:

    def test_pool_support(self, history):
        main = run_analyzers(history, "main")
        euro = run_analyzers(history, "euro")
        assert set(main) == set(ANALYZERS)
        assert set(euro) == {"freq_short", "freq_medium", "freq_long", "momentum", "gap", "order_pattern"}
        assert all(sorted(s) == ALL_EURO for s in euro.values())

    def test_normalized_scores_in_range(self, history, forced_seven):
        for df in (history, forced_seven, history.iloc[:3]):
            for pool in ("main", "euro"):
                for name, scores in normalize_all(run_analyzers(df, pool)).items():
                    for v in scores.values():
                        assert 0.0 <= v <= 100.0, (name, v)

    def test_analyzers_do_not_mutate_window(self, history):
        before = history.copy()
        run_analyzers(history, "main")
        run_analyzers(history, "euro")
        assert history.equals(before)


class TestNormalize:

    def test_clamp_handles_nan_and_inf(self):
        assert clamp(float("nan")) == 0.0
        assert clamp(float("inf")) == 0.0
        assert clamp(250) == 100.0
        assert clamp(-3) == 0.0

    def test_mappings(self):
        assert normalize_momentum(0.0) == pytest.approx(50.0)
        assert normalize_momentum(-1.0) == 0.0
        assert normalize_gap(1.0) == pytest.approx(40.0)
        assert normalize_gap(0) == 0.0
        assert normalize_gap(10) == 100.0
        assert normalize_position(math.log2(5)) == pytest.approx(100.0)

    def test_unknown_analyzer(self):
        with pytest.raises(KeyError):
            normalize_scores("nope", {1: 1.0})


class TestHistorySummary:

    def test_summary(self):
        df = make_history([((1, 2, 20, 40, 50), (1, 2)), ((3, 4, 5, 6, 7), (3, 4))])
        s = history_summary(df)
        assert s["total_draws"] == 2
        assert s["sum_range"] == {"min": 25, "max": 113, "mean": 69.0}
        assert s["range_mix"]["low"] == pytest.approx(3.5)
        assert s["range_mix"]["high"] == pytest.approx(1.0)
        assert s["even_ratio"] == pytest.approx(6 / 10)
        assert 40 in s["hot_numbers"]
        assert 10 in s["cold_numbers"] and 1 not in s["cold_numbers"]

    def test_summary_requires_draws(self, history):
        with pytest.raises(InsufficientHistory):
            history_summary(history.iloc[0:0])
