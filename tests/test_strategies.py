"""
Tests for the independent strategies.
"""
import pytest

from conftest import make_history
from eurojackpot.config import NO_PENALTY, RepeatPenalty
from eurojackpot.draws import ALL_EURO, ALL_MAIN, EURO_COLS, MAIN_COLS, InsufficientHistory
from eurojackpot.models.strategies import (
    STRATEGIES,
    balance_targets,
    consecutive_pattern,
    delta_frequencies,
    delta_system,
    gap_overdue,
    hot_cold_mix,
    markov_chain,
    nearest_draws,
    nearest_neighbors,
    positional,
    positional_counts,
    stat_balance,
    top_pairs,
    transition_counts,
    weighted_recency,
)


ALL_STRATEGIES = sorted(STRATEGIES)
# Every newest-draw member scores above zero in these before the penalty
POSITIVE_SCORE_STRATEGIES = sorted(set(STRATEGIES) - {"StatBalance", "NearestNeighbors"})
SHORT_WINDOW_STRATEGIES = sorted(set(STRATEGIES) - {"WeightedScoring"})


def _latest(df):
    latest = df.iloc[0]
    return [int(latest[c]) for c in MAIN_COLS], [int(latest[c]) for c in EURO_COLS]


@pytest.mark.parametrize("name", ALL_STRATEGIES)
class TestEveryStrategy:

    def test_valid_ticket(self, name, history):
        p = STRATEGIES[name](history)
        assert len(set(p.main)) == 5 and set(p.main) <= set(ALL_MAIN)
        assert len(set(p.euro)) == 2 and set(p.euro) <= set(ALL_EURO)
        assert p.source == name

    def test_deterministic(self, name, history):
        assert STRATEGIES[name](history) == STRATEGIES[name](history.copy())

    def test_penalty_scales_latest_draw_only(self, name, history):
        penalty = RepeatPenalty()
        penalized = STRATEGIES[name](history, penalty)
        plain = STRATEGIES[name](history, NO_PENALTY)
        main, euro = _latest(history)

        for n in ALL_MAIN:
            factor = penalty.main if n in main else 1.0
            assert penalized.main_scores[n] == pytest.approx(plain.main_scores[n] * factor)
        for n in ALL_EURO:
            factor = penalty.euro if n in euro else 1.0
            assert penalized.euro_scores[n] == pytest.approx(plain.euro_scores[n] * factor)

    def test_empty_window_raises(self, name, history):
        with pytest.raises(InsufficientHistory):
            STRATEGIES[name](history.iloc[0:0])


@pytest.mark.parametrize("name", POSITIVE_SCORE_STRATEGIES)
def test_latest_draw_members_score_lower(name, history):
    penalized = STRATEGIES[name](history, RepeatPenalty())
    plain = STRATEGIES[name](history, NO_PENALTY)
    main, euro = _latest(history)
    for n in main:
        assert 0 < penalized.main_scores[n] < plain.main_scores[n]
    for n in euro:
        assert 0 < penalized.euro_scores[n] < plain.euro_scores[n]


@pytest.mark.parametrize("name", SHORT_WINDOW_STRATEGIES)
def test_single_draw_window(name, history):
    p = STRATEGIES[name](history.iloc[:1].reset_index(drop=True))
    assert len(set(p.main)) == 5 and len(set(p.euro)) == 2


def test_engine_strategy_needs_minimum_history(history):
    with pytest.raises(InsufficientHistory) as info:
        STRATEGIES["WeightedScoring"](history.iloc[:49].reset_index(drop=True))
    assert info.value.required == 50
    assert len(STRATEGIES["WeightedScoring"](history.iloc[:50].reset_index(drop=True)).main) == 5


class TestRepeatPenalty:

    def test_penalty_is_the_only_differentiator(self):
        # Draw 0 outweighs draw 1 only through recency, so the penalty flips the pick
        df = make_history([((1, 2, 3, 4, 5), (1, 2)), ((6, 7, 8, 9, 10), (3, 4))])
        assert weighted_recency(df, NO_PENALTY).numbers == (1, 2, 3, 4, 5)
        assert weighted_recency(df, NO_PENALTY).euro_numbers == (1, 2)
        assert weighted_recency(df).numbers == (6, 7, 8, 9, 10)
        assert weighted_recency(df).euro_numbers == (3, 4)


class TestStrategyDetails:

    def test_balance_targets(self):
        df = make_history([((2, 4, 20, 36, 38), (1, 2))])
        t = balance_targets(df)
        assert t == {"even": 5, "low": 2, "mid": 1, "high": 2, "sum": 100.0}

    def test_stat_balance_seed_changes_ticket_scores(self, history):
        a = stat_balance(history, seed=1)
        b = stat_balance(history, seed=2)
        assert a.main_scores != b.main_scores

    def test_hot_cold_mix_takes_three_hot_and_two_cold(self):
        # Newest 30 draws use 1-25 only, the 70 before them 26-50 only
        tickets = []
        for i in range(100):
            base = 1 if i < 30 else 26
            tickets.append(([(5 * i + k) % 25 + base for k in range(5)], (1, 2)))
        p = hot_cold_mix(make_history(tickets))
        # 1-5 are penalised as the newest draw; ties go to the lower number
        assert p.numbers == (6, 7, 8, 26, 27)

    def test_gap_overdue_scores_rarely_seen_numbers(self):
        df = make_history([((1, 2, 3, 4, 5), (1, 2)), ((1, 2, 3, 4, 6), (1, 2))])
        p = gap_overdue(df, NO_PENALTY)
        # Numbers seen at most once get the fixed overdue score
        assert p.main_scores[50] == 10.0
        assert p.main_scores[1] == 1.0
        assert p.euro_scores[12] == 5.0

    def test_top_pairs(self):
        df = make_history([
            ((1, 2, 3, 4, 5), (1, 2)),
            ((1, 2, 10, 11, 12), (1, 2)),
            ((1, 2, 20, 21, 22), (1, 2)),
        ])
        pairs = top_pairs(df, limit=3)
        assert pairs[0] == ((1, 2), 3)
        assert all(count == 1 for _, count in pairs[1:])

    def test_consecutive_pattern_prefers_pair_members(self):
        df = make_history([
            ((1, 2, 3, 4, 5), (1, 2)),
            ((30, 31, 10, 11, 12), (1, 2)),
            ((30, 31, 20, 21, 22), (1, 2)),
            ((30, 31, 40, 41, 42), (3, 4)),
        ])
        p = consecutive_pattern(df)
        assert {30, 31} <= set(p.main)


class TestMarkovChain:

    def test_transition_counts(self):
        df = make_history([((1, 2, 3, 4, 5), (1, 2)), ((6, 7, 8, 9, 10), (3, 4))])
        counts = transition_counts(df)
        # 6-10 were followed by 1-5, never the other way round
        assert counts[6, 1] == 1 and counts[10, 5] == 1
        assert counts[1, 6] == 0
        assert transition_counts(df, "euro")[3, 2] == 1

    def test_follower_of_latest_draw_ranks_first(self, forced_seven):
        assert markov_chain(forced_seven).main[0] == 7

    def test_single_draw_is_uniform(self):
        df = make_history([((1, 2, 3, 4, 5), (1, 2))])
        p = markov_chain(df, NO_PENALTY)
        assert len(set(p.main_scores.values())) == 1


class TestNearestNeighbors:

    def _history(self):
        return make_history([
            ((1, 2, 3, 4, 5), (1, 2)),
            ((1, 2, 3, 40, 41), (1, 3)),
            ((10, 11, 12, 13, 14), (5, 6)),
            ((1, 2, 3, 4, 45), (7, 8)),
            ((20, 21, 22, 23, 24), (9, 10)),
        ])

    def test_nearest_draws_by_jaccard(self):
        df = self._history()
        assert nearest_draws(df, k=2) == [3, 1]
        # equal similarity goes to the more recent draw
        assert nearest_draws(df) == [3, 1, 2, 4]

    def test_scores_count_followers(self):
        p = nearest_neighbors(self._history(), NO_PENALTY)
        # followers of rows 3, 1, 2, 4 are rows 2, 0, 1, 3
        assert p.main_scores[10] == 1.0
        assert p.main_scores[1] == 3.0
        assert p.main_scores[50] == 0.0


class TestPositional:

    def test_positional_counts(self):
        df = make_history([((1, 2, 3, 4, 5), (1, 2)), ((1, 6, 7, 8, 9), (1, 2))])
        counts = positional_counts(df)
        assert counts[1, 0] == 2
        assert counts[2, 1] == 1 and counts[6, 1] == 1
        assert counts[50].sum() == 0

    def test_one_pick_per_slot(self):
        tickets = [((40, 42, 44, 46, 48), (1, 2))] + [((3, 8, 13, 18, 23), (3, 4))] * 3
        p = positional(make_history(tickets))
        assert p.numbers == (3, 8, 13, 18, 23)

    def test_forced_number(self, forced_seven):
        assert 7 in positional(forced_seven).numbers


class TestDeltaSystem:

    def test_delta_frequencies(self):
        df = make_history([((1, 2, 4, 8, 16), (1, 2)), ((1, 3, 5, 7, 9), (1, 2))])
        assert delta_frequencies(df) == {1: 1, 2: 5, 4: 1, 8: 1}

    def test_chain_follows_common_delta(self):
        tickets = [((40, 42, 44, 46, 48), (1, 2))] + [((3, 8, 13, 18, 23), (3, 4))] * 3
        p = delta_system(make_history(tickets))
        assert list(p.main) == [3, 8, 13, 18, 23]

    def test_chain_steps_to_the_best_landing_number(self):
        # deltas 1, 7, 20, 20; from opener 1 the chain takes 20 twice, then
        # ties between deltas 1 and 7 go to the lower landing number
        p = delta_system(make_history([((1, 2, 9, 29, 49), (1, 2))]), NO_PENALTY)
        assert list(p.main) == [1, 21, 41, 42, 43]
