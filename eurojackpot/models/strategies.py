"""
Independent Prediction Strategies for Eurojackpot

Every strategy has the same signature::

    strategy(df, penalty=RepeatPenalty()) -> Prediction

where ``df`` is a newest-first history window. Each one builds a score per
pool member, multiplies the score of the newest draw's members by the
repeat penalty (main 0.3, euro 0.2 by default) and takes the top 5 + 2.

Strategies:
- FrequencyGap:       frequency blended with draws since last seen
- StatBalance:        seeded sampling of tickets matching the recent
                      even/odd, low/mid/high and sum profile
- HotColdMix:         3 hot numbers (newest 10 draws) + 2 cold numbers
                      (absent from newest 30, present in newest 100)
- WeightedRecency:    exponentially decayed appearance weight
- GapOverdue:         current gap beyond the mean historical gap
- ConsecutivePattern: members of the most frequent co-occurring pairs
- OrderPattern:       order-pattern totals with position-aware selection
- MarkovChain:        transition probabilities from the newest draw
- NearestNeighbors:   what followed the draws most similar to the newest
- Positional:         best number per sorted slot
- DeltaSystem:        chain of the most common consecutive differences
- WeightedScoring:    the multi-factor engine (weighted_scoring)
"""
from itertools import combinations

import numpy as np

from eurojackpot.config import RepeatPenalty
from eurojackpot.draws import (
    ALL_MAIN,
    EURO_COLS,
    MAIN_COLS,
    MAIN_PICK,
    MAIN_POOL,
    InsufficientHistory,
    pool_matrix,
    pool_numbers,
    pool_size,
    presence_matrix,
)
from eurojackpot.models import weighted_scoring
from eurojackpot.order_patterns import (
    DEFAULT_RECENT_DRAWS,
    score_euro_numbers,
    score_main_numbers,
)
from eurojackpot.prediction import (
    apply_repeat_penalty,
    make_prediction,
    prediction_from_scores,
    rank_numbers,
)


def _require_latest(df):
    if len(df) == 0:
        raise InsufficientHistory(0, 1)


def _latest(df, pool):
    cols = MAIN_COLS if pool == "main" else EURO_COLS
    return [int(df.iloc[0][c]) for c in cols]


def _presence(df, pool, window=None):
    matrix = pool_matrix(df, pool)
    if window is not None:
        matrix = matrix[:window]
    return presence_matrix(matrix, pool_size(pool))


def _counts(presence, pool):
    totals = presence.sum(axis=0)
    return {n: int(totals[n]) for n in pool_numbers(pool)}


def _penalized(df, pool, scores, penalty):
    return apply_repeat_penalty(scores, _latest(df, pool), penalty.for_pool(pool))


def _finish(df, main_scores, euro_scores, penalty, source, main_tiebreak=None, euro_tiebreak=None):
    return prediction_from_scores(
        _penalized(df, "main", main_scores, penalty),
        _penalized(df, "euro", euro_scores, penalty),
        source,
        main_tiebreak,
        euro_tiebreak,
    )


def _frequency_scores(df, pool, window):
    presence = _presence(df, pool, window)
    return {n: float(c) for n, c in _counts(presence, pool).items()}


# ===================================================================
# Frequency / gap hybrid
# ===================================================================

FREQUENCY_GAP_WINDOW = 50
FREQUENCY_GAP_WEIGHTS = (0.4, 0.6)


def _frequency_gap_pool(df, pool):
    presence = _presence(df, pool, FREQUENCY_GAP_WINDOW)
    n_draws = presence.shape[0]
    freq_w, gap_w = FREQUENCY_GAP_WEIGHTS

    scores = {}
    for n in pool_numbers(pool):
        hits = np.flatnonzero(presence[:, n])
        last_seen = int(hits[0]) if hits.size else n_draws
        scores[n] = hits.size / n_draws * freq_w + last_seen / n_draws * gap_w
    return scores


def frequency_gap(df, penalty=RepeatPenalty()):
    """Moderately frequent numbers that have rested a while score highest."""
    _require_latest(df)
    return _finish(
        df,
        _frequency_gap_pool(df, "main"),
        _frequency_gap_pool(df, "euro"),
        penalty,
        "FrequencyGap",
    )


# ===================================================================
# Statistical balance
# ===================================================================

STAT_BALANCE_WINDOW = 30
STAT_BALANCE_SAMPLES = 1000
STAT_BALANCE_SEED = 42

LOW_NUMBERS = list(range(1, 18))
MID_NUMBERS = list(range(18, 35))
HIGH_NUMBERS = list(range(35, 51))


def _round_half_up(x):
    return int(np.floor(x + 0.5))


def balance_targets(df):
    """
    Even count, low/mid/high counts and mean sum of the newest 30 draws,
    scaled to a 5-number ticket.
    """
    matrix = pool_matrix(df, "main")[:STAT_BALANCE_WINDOW]
    values = matrix.ravel()

    even = _round_half_up(MAIN_PICK * (values % 2 == 0).mean())
    low = _round_half_up(MAIN_PICK * (values <= 17).mean())
    mid = min(MAIN_PICK - low, _round_half_up(MAIN_PICK * ((values >= 18) & (values <= 34)).mean()))
    return {
        "even": even,
        "low": low,
        "mid": mid,
        "high": MAIN_PICK - low - mid,
        "sum": float(matrix.sum(axis=1).mean()),
    }


def _balance_scores(targets, seed):
    """
    Sample tickets with the target low/mid/high split, keep those within one
    of the target even count, and credit each member with the ticket's
    closeness to the target sum.
    """
    rng = np.random.default_rng(seed)
    scores = {n: 0.0 for n in ALL_MAIN}

    for _ in range(STAT_BALANCE_SAMPLES):
        ticket = np.concatenate([
            rng.choice(LOW_NUMBERS, size=targets["low"], replace=False),
            rng.choice(MID_NUMBERS, size=targets["mid"], replace=False),
            rng.choice(HIGH_NUMBERS, size=targets["high"], replace=False),
        ]).astype(int)
        if abs(int((ticket % 2 == 0).sum()) - targets["even"]) > 1:
            continue
        closeness = 1.0 / (1.0 + abs(int(ticket.sum()) - targets["sum"]))
        for n in ticket.tolist():
            scores[n] += closeness
    return scores


def stat_balance(df, penalty=RepeatPenalty(), seed=STAT_BALANCE_SEED):
    """Numbers that keep showing up in well-balanced sampled tickets."""
    _require_latest(df)
    main = _balance_scores(balance_targets(df), seed)
    euro = _frequency_scores(df, "euro", STAT_BALANCE_WINDOW)
    return _finish(df, main, euro, penalty, "StatBalance")


# ===================================================================
# Hot / cold mix
# ===================================================================

HOT_WINDOW = 10
COLD_EXCLUDE_WINDOW = 30
COLD_WINDOW = 100
HOT_PICKS = 3


def hot_cold_mix(df, penalty=RepeatPenalty()):
    """
    Three of the hottest numbers plus two of the most established cold ones.

    Hot numbers are scored by hits in the newest 10 draws (ties on the
    newest 100), cold numbers by hits in the newest 100. When there are not
    enough cold numbers the ticket is filled from the remaining hot ones.
    """
    _require_latest(df)
    hot_counts = _counts(_presence(df, "main", HOT_WINDOW), "main")
    recent_counts = _counts(_presence(df, "main", COLD_EXCLUDE_WINDOW), "main")
    long_counts = _counts(_presence(df, "main", COLD_WINDOW), "main")

    hot = {n: float(c) for n, c in hot_counts.items() if c > 0}
    hot = _penalized(df, "main", hot, penalty)
    cold = {
        n: float(long_counts[n])
        for n in ALL_MAIN
        if recent_counts[n] == 0 and long_counts[n] > 0
    }

    picks = rank_numbers(hot, long_counts)[:HOT_PICKS]
    picks += rank_numbers(cold)[:MAIN_PICK - len(picks)]

    scores = {n: 0.0 for n in ALL_MAIN}
    scores.update(hot)
    scores.update(cold)
    for n in rank_numbers(scores, long_counts):
        if len(picks) >= MAIN_PICK:
            break
        if n not in picks:
            picks.append(n)

    euro_long = _frequency_scores(df, "euro", COLD_WINDOW)
    euro = {
        n: c + euro_long[n] / COLD_WINDOW
        for n, c in _frequency_scores(df, "euro", HOT_WINDOW).items()
    }
    euro = _penalized(df, "euro", euro, penalty)

    return make_prediction(
        picks,
        rank_numbers(euro),
        scores,
        euro,
        "HotColdMix",
    )


# ===================================================================
# Weighted recency
# ===================================================================

RECENCY_WINDOW = 30
RECENCY_DECAY = 10.0


def _recency_pool(df, pool):
    presence = _presence(df, pool, RECENCY_WINDOW).astype(float)
    weights = np.exp(-np.arange(presence.shape[0]) / RECENCY_DECAY)
    totals = weights @ presence
    return {n: float(totals[n]) for n in pool_numbers(pool)}


def weighted_recency(df, penalty=RepeatPenalty()):
    """Appearances weighted by exp(-i / 10) over the newest 30 draws."""
    _require_latest(df)
    return _finish(
        df,
        _recency_pool(df, "main"),
        _recency_pool(df, "euro"),
        penalty,
        "WeightedRecency",
    )


# ===================================================================
# Gap overdue
# ===================================================================

OVERDUE_WINDOW = 200
UNSEEN_OVERDUE_SCORE = {"main": 10.0, "euro": 5.0}


def _overdue_pool(df, pool):
    presence = _presence(df, pool, OVERDUE_WINDOW)
    scores = {}
    for n in pool_numbers(pool):
        hits = np.flatnonzero(presence[:, n])
        if hits.size < 2:
            scores[n] = UNSEEN_OVERDUE_SCORE[pool]
        else:
            scores[n] = 1.0 + max(0.0, float(hits[0] - np.diff(hits).mean()))
    return scores


def gap_overdue(df, penalty=RepeatPenalty()):
    """
    1 + how far each number's current gap exceeds its mean gap over the
    newest 200 draws. Numbers seen at most once get a fixed score.
    """
    _require_latest(df)
    return _finish(
        df,
        _overdue_pool(df, "main"),
        _overdue_pool(df, "euro"),
        penalty,
        "GapOverdue",
    )


# ===================================================================
# Consecutive / co-occurrence pattern
# ===================================================================

PAIR_WINDOW = 100
TOP_PAIRS = 10


def top_pairs(df, window=PAIR_WINDOW, limit=TOP_PAIRS):
    """The *limit* most frequent main-number pairs as [((a, b), count), ...]."""
    counts = {}
    for row in pool_matrix(df, "main")[:window].tolist():
        for pair in combinations(row, 2):
            counts[pair] = counts.get(pair, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:limit]


def consecutive_pattern(df, penalty=RepeatPenalty()):
    """
    Members of the most frequent pairs, filled by plain frequency.

    A number's score is the summed count of the top pairs it belongs to
    plus its appearance rate, so before the repeat penalty pair members
    always outrank the rest.
    """
    _require_latest(df)
    window = min(PAIR_WINDOW, len(df))
    freq = _frequency_scores(df, "main", PAIR_WINDOW)

    main = {n: freq[n] / window for n in ALL_MAIN}
    for (a, b), count in top_pairs(df):
        main[a] += count
        main[b] += count

    euro = _frequency_scores(df, "euro", PAIR_WINDOW)
    return _finish(df, main, euro, penalty, "ConsecutivePattern", freq)


# ===================================================================
# Order pattern
# ===================================================================

ORDER_CANDIDATES = 10


def order_pattern(df, penalty=RepeatPenalty()):
    """
    Position-aware pick from the 10 best order-pattern candidates.

    Slots 0-4 are filled in turn with the best unused candidate preferring
    that slot; slots nobody prefers are filled by score afterwards.
    """
    _require_latest(df)
    full_main = pool_matrix(df, "main")
    recent_main = full_main[:DEFAULT_RECENT_DRAWS]
    recent_euro = pool_matrix(df, "euro")[:DEFAULT_RECENT_DRAWS]

    main_results = score_main_numbers(recent_main, full_main)
    main = _penalized(df, "main", {s.number: s.total for s in main_results}, penalty)
    preferred = {s.number: s.preferred_position for s in main_results}
    euro = _penalized(
        df, "euro", {s.number: s.total for s in score_euro_numbers(recent_euro)}, penalty
    )

    candidates = rank_numbers(main)[:ORDER_CANDIDATES]
    picks = []
    for slot in range(MAIN_PICK):
        for n in candidates:
            if n not in picks and preferred[n] == slot:
                picks.append(n)
                break
    for n in candidates:
        if len(picks) >= MAIN_PICK:
            break
        if n not in picks:
            picks.append(n)

    return make_prediction(
        rank_numbers({n: main[n] for n in picks}),
        rank_numbers(euro),
        main,
        euro,
        "OrderPattern",
    )


# ===================================================================
# Markov chain
# ===================================================================

MARKOV_SMOOTHING = 0.1


def transition_counts(df, pool="main"):
    """
    (pool + 1, pool + 1) array; ``T[a, b]`` counts how often *b* was drawn
    in the draw right after one containing *a*. Row and column 0 are unused.
    """
    presence = _presence(df, pool).astype(float)
    # rows are newest first, so row i + 1 is followed by row i
    return presence[1:].T @ presence[:-1]


def _markov_pool(df, pool):
    counts = transition_counts(df, pool)[1:, 1:] + MARKOV_SMOOTHING
    probs = counts / counts.sum(axis=1, keepdims=True)
    scores = probs[[n - 1 for n in _latest(df, pool)]].mean(axis=0)
    return {n: float(scores[n - 1]) for n in pool_numbers(pool)}


def markov_chain(df, penalty=RepeatPenalty()):
    """
    First-order transition probabilities (Laplace smoothed) averaged over
    the newest draw's numbers.
    """
    _require_latest(df)
    return _finish(
        df,
        _markov_pool(df, "main"),
        _markov_pool(df, "euro"),
        penalty,
        "MarkovChain",
        _counts(_presence(df, "main"), "main"),
        _counts(_presence(df, "euro"), "euro"),
    )


# ===================================================================
# Nearest neighbours
# ===================================================================

KNN_NEIGHBORS = 5


def nearest_draws(df, pool="main", k=KNN_NEIGHBORS):
    """
    Row indices of the *k* older draws most similar (Jaccard) to the newest
    one. Ties go to the more recent draw.
    """
    matrix = pool_matrix(df, pool)
    latest = set(matrix[0].tolist())
    similarities = []
    for i in range(1, len(matrix)):
        row = set(matrix[i].tolist())
        similarities.append((len(row & latest) / len(row | latest), i))
    similarities.sort(key=lambda s: (-s[0], s[1]))
    return [i for _, i in similarities[:k]]


def _neighbor_pool(df, pool):
    matrix = pool_matrix(df, pool)
    scores = {n: 0.0 for n in pool_numbers(pool)}
    for i in nearest_draws(df, pool):
        for n in matrix[i - 1].tolist():
            scores[n] += 1.0
    return scores


def nearest_neighbors(df, penalty=RepeatPenalty()):
    """Numbers drawn right after the 5 draws most like the newest one."""
    _require_latest(df)
    return _finish(
        df,
        _neighbor_pool(df, "main"),
        _neighbor_pool(df, "euro"),
        penalty,
        "NearestNeighbors",
        _counts(_presence(df, "main"), "main"),
        _counts(_presence(df, "euro"), "euro"),
    )


# ===================================================================
# Positional
# ===================================================================

def positional_counts(df):
    """(51, 5) array: how often each main number sat in each sorted slot."""
    matrix = pool_matrix(df, "main")
    counts = np.zeros((MAIN_POOL + 1, MAIN_PICK))
    slots = np.broadcast_to(np.arange(MAIN_PICK), matrix.shape)
    np.add.at(counts, (matrix, slots), 1)
    return counts


def positional(df, penalty=RepeatPenalty()):
    """
    Slot by slot, the unused number that most often occupied that sorted
    slot. A number's score is its best slot count.
    """
    _require_latest(df)
    counts = positional_counts(df)
    counts[_latest(df, "main")] *= penalty.main
    freq = _counts(_presence(df, "main"), "main")

    picks = []
    for slot in range(MAIN_PICK):
        slot_scores = {n: float(counts[n, slot]) for n in ALL_MAIN if n not in picks}
        picks.append(rank_numbers(slot_scores, freq)[0])

    main = {n: float(counts[n].max()) for n in ALL_MAIN}
    euro = _penalized(df, "euro", _frequency_scores(df, "euro", None), penalty)
    return make_prediction(
        rank_numbers({n: main[n] for n in picks}, freq),
        rank_numbers(euro),
        main,
        euro,
        "Positional",
    )


# ===================================================================
# Delta system
# ===================================================================

DELTA_TOP = 8
DELTA_OPENER_MAX = 10


def delta_frequencies(df):
    """Counts of the differences between consecutive sorted main numbers."""
    deltas = np.diff(pool_matrix(df, "main"), axis=1).ravel()
    values, counts = np.unique(deltas, return_counts=True)
    return {int(v): int(c) for v, c in zip(values, counts)}


def delta_system(df, penalty=RepeatPenalty()):
    """
    Chain the most common deltas from a typical opening number.

    The chain starts at the number in 1-10 that most often opened a draw,
    then steps by whichever of the 8 commonest deltas lands on the best
    number (delta count, scaled by the repeat penalty for newest-draw
    members). Slots the chain cannot reach are filled by frequency.
    """
    _require_latest(df)
    factor = {n: penalty.main for n in _latest(df, "main")}
    freq = _counts(_presence(df, "main"), "main")
    main = _penalized(df, "main", {n: float(c) for n, c in freq.items()}, penalty)

    first = pool_matrix(df, "main")[:, 0]
    openers = {
        n: float((first == n).sum()) * factor.get(n, 1.0)
        for n in range(1, DELTA_OPENER_MAX + 1)
    }
    current = rank_numbers(openers, freq)[0]
    picks = [current]

    top = sorted(delta_frequencies(df).items(), key=lambda kv: (-kv[1], kv[0]))[:DELTA_TOP]
    while len(picks) < MAIN_PICK:
        steps = {
            current + d: c * factor.get(current + d, 1.0)
            for d, c in top
            if current + d <= MAIN_POOL
        }
        if not steps:
            break
        current = rank_numbers(steps)[0]
        picks.append(current)

    for n in rank_numbers(main, freq):
        if len(picks) >= MAIN_PICK:
            break
        if n not in picks:
            picks.append(n)

    euro = _penalized(df, "euro", _frequency_scores(df, "euro", None), penalty)
    return make_prediction(picks, rank_numbers(euro), main, euro, "DeltaSystem")


# ===================================================================
# Registry
# ===================================================================

def weighted_engine(df, penalty=RepeatPenalty()):
    """The multi-factor engine with the default profile."""
    return weighted_scoring.predict_strategy(df, penalty)


STRATEGIES = {
    "WeightedScoring": weighted_engine,
    "FrequencyGap": frequency_gap,
    "StatBalance": stat_balance,
    "HotColdMix": hot_cold_mix,
    "WeightedRecency": weighted_recency,
    "GapOverdue": gap_overdue,
    "ConsecutivePattern": consecutive_pattern,
    "OrderPattern": order_pattern,
    "MarkovChain": markov_chain,
    "NearestNeighbors": nearest_neighbors,
    "Positional": positional,
    "DeltaSystem": delta_system,
}
