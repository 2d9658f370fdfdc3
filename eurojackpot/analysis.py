"""
Eurojackpot Feature Analyzers

Each analyzer is a pure function ``(df, pool) -> {number: raw_score}`` over a
newest-first history window. They score the full pool (1-50 for main
numbers, 1-12 for euro numbers), never read rows outside the window they
are given, and never depend on each other.

Analyzers are registered in ANALYZERS so the scoring engine can iterate
over them instead of calling each one by name.

Numbers range 1-50 (main) and 1-12 (euro).
"""
from collections import Counter
from typing import Callable, NamedTuple, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from eurojackpot.draws import (
    ALL_MAIN,
    MAIN_PICK,
    InsufficientHistory,
    main_matrix,
    pool_matrix,
    pool_numbers,
    pool_size,
    presence_matrix,
)
from eurojackpot.order_patterns import (
    DEFAULT_RECENT_DRAWS,
    score_euro_numbers,
    score_main_numbers,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SHORT_WINDOW = 15
MEDIUM_WINDOW = 50

MOMENTUM_RECENT = 15
MOMENTUM_OLDER_END = 50
MOMENTUM_DECAY = 0.1
MOMENTUM_OLDER_FACTOR = 0.7

PATTERN_MIN_SIMILARITY = 2
PATTERN_SIMILARITY_WEIGHT = 0.6
PATTERN_PAIR_WINDOW = 50
PATTERN_PAIR_WEIGHT = 10

# Gap score for a number never seen in the window. Normalises to ~51,
# mid-range, so an absent record is not mistaken for "very overdue".
NEVER_DRAWN_GAP_SCORE = 1.2
SINGLE_GAP_DIVISOR = {"main": 10.0, "euro": 5.0}

DECADE_SIZE = 10
LOW_BOUND = 17   # 1-17 low, 18-34 mid, 35-50 high
MID_BOUND = 34


def _presence(df, pool):
    return presence_matrix(pool_matrix(df, pool), pool_size(pool))


def _as_dict(values, pool):
    """Map a (pool_size + 1,) array indexed by number to {number: float}."""
    return {n: float(values[n]) for n in pool_numbers(pool)}


def _require_draws(df, required=1):
    if len(df) < required:
        raise InsufficientHistory(len(df), required)


# ===================================================================
# 1. Frequency (short / medium / long)
# ===================================================================

def frequency_counts(df: pd.DataFrame, pool="main", window=None) -> dict:
    """Raw appearance counts within the newest *window* draws (all if None)."""
    presence = _presence(df, pool)
    if window is not None:
        presence = presence[:window]
    return {n: int(c) for n, c in zip(pool_numbers(pool), presence.sum(axis=0)[1:])}


def _frequency_rate(df, pool, window):
    available = len(df)
    counts = _presence(df, pool)[:window].sum(axis=0).astype(float)
    denominator = min(window, available) if window is not None else available
    if denominator == 0:
        return {n: 0.0 for n in pool_numbers(pool)}
    return _as_dict(counts / denominator, pool)


def frequency_short(df: pd.DataFrame, pool="main") -> dict:
    """Appearance rate over the newest 15 draws."""
    return _frequency_rate(df, pool, SHORT_WINDOW)


def frequency_medium(df: pd.DataFrame, pool="main") -> dict:
    """Appearance rate over the newest 50 draws."""
    return _frequency_rate(df, pool, MEDIUM_WINDOW)


def frequency_long(df: pd.DataFrame, pool="main") -> dict:
    """Appearance rate over the whole window."""
    return _frequency_rate(df, pool, None)


# ===================================================================
# 2. Momentum
# ===================================================================

def momentum(df: pd.DataFrame, pool="main") -> dict:
    """
    Linearly decayed recent rate minus 0.7x the older rate.

    The newest 15 draws count with weight 1.0, 0.9, 0.8, ... ; draws 15-49
    form the older window. Positive values mean a number is drawn more
    often lately, negative values mean it is fading. An empty older window
    contributes a rate of zero.
    """
    presence = _presence(df, pool).astype(float)
    recent = presence[:MOMENTUM_RECENT]
    older = presence[MOMENTUM_RECENT:MOMENTUM_OLDER_END]

    if len(recent):
        weights = 1.0 - MOMENTUM_DECAY * np.arange(len(recent))
        recent_rate = weights @ recent / len(recent)
    else:
        recent_rate = np.zeros(presence.shape[1])

    older_rate = older.mean(axis=0) if len(older) else np.zeros(presence.shape[1])
    return _as_dict(recent_rate - MOMENTUM_OLDER_FACTOR * older_rate, pool)


# ===================================================================
# 3. Pattern (similarity look-ahead + pair co-occurrence)
# ===================================================================

def pattern(df: pd.DataFrame, pool="main") -> dict:
    """
    Credit numbers that followed draws resembling the newest draw.

    For every older draw i sharing at least two numbers with draw 0, each
    number of draw i-1 (the draw that came next) earns similarity * 0.6.
    Numbers that co-occurred with draw 0's members within draws 1-49 also
    earn 10x their per-draw co-occurrence rate.
    """
    _require_draws(df)
    matrix = pool_matrix(df, pool)
    presence = presence_matrix(matrix, pool_size(pool))
    n_draws = len(matrix)

    latest = presence[0]
    similarity = presence[:, latest].sum(axis=1)

    follow = np.zeros(presence.shape[1])
    for i in range(1, n_draws - 1):
        if similarity[i] >= PATTERN_MIN_SIMILARITY:
            follow[presence[i - 1]] += similarity[i] * PATTERN_SIMILARITY_WEIGHT

    pair_window = presence[1:PATTERN_PAIR_WINDOW]
    pair = np.zeros(presence.shape[1])
    denominator = min(PATTERN_PAIR_WINDOW, n_draws)
    for member in matrix[0]:
        with_member = pair_window[pair_window[:, member]]
        pair += with_member.sum(axis=0) / denominator

    return _as_dict(follow + pair * PATTERN_PAIR_WEIGHT, pool)


# ===================================================================
# 4. Gap / overdue
# ===================================================================

def gap_statistics(df: pd.DataFrame, pool="main") -> dict:
    """
    Per-number gap history.

    Returns {number: {'appearances', 'current_gap', 'mean_gap', 'std_gap'}}
    where gaps are counted in draws between successive appearances. Numbers
    with fewer than two appearances have NaN mean/std.
    """
    presence = _presence(df, pool)
    result = {}
    for n in pool_numbers(pool):
        idx = np.flatnonzero(presence[:, n])
        gaps = np.diff(idx)
        result[n] = {
            "appearances": int(idx.size),
            "current_gap": int(idx[0]) if idx.size else len(df),
            "mean_gap": float(gaps.mean()) if gaps.size else float("nan"),
            "std_gap": float(gaps.std()) if gaps.size else float("nan"),
        }
    return result


def gap(df: pd.DataFrame, pool="main") -> dict:
    """
    Overdue score: ``1 + max(0, (current - mean) / std) * 0.5``.

    A zero standard deviation is treated as 1. Numbers seen once score their
    single gap / 10 (main) or / 5 (euro); numbers never seen get a fixed
    moderate constant.
    """
    scores = {}
    for n, s in gap_statistics(df, pool).items():
        if s["appearances"] > 1:
            std = s["std_gap"] or 1.0
            deviation = (s["current_gap"] - s["mean_gap"]) / std
            scores[n] = 1.0 + max(0.0, deviation * 0.5)
        elif s["appearances"] == 1:
            scores[n] = s["current_gap"] / SINGLE_GAP_DIVISOR[pool]
        else:
            scores[n] = NEVER_DRAWN_GAP_SCORE
    return scores


# ===================================================================
# 5. Position entropy (main only)
# ===================================================================

def position_histograms(df: pd.DataFrame) -> dict:
    """{number: 5-bin count of the sorted slot it occupied}."""
    matrix = main_matrix(df)
    hist = {n: np.zeros(MAIN_PICK, dtype=int) for n in ALL_MAIN}
    for slot in range(MAIN_PICK):
        for n, c in Counter(matrix[:, slot].tolist()).items():
            hist[n][slot] += c
    return hist


def position(df: pd.DataFrame, pool="main") -> dict:
    """Shannon entropy (bits) of each number's sorted-slot histogram."""
    scores = {}
    for n, counts in position_histograms(df).items():
        if counts.sum() == 0:
            scores[n] = 0.0
        else:
            scores[n] = float(stats.entropy(counts, base=2))
    return scores


# ===================================================================
# 6. Decade cluster (main only)
# ===================================================================

def decade_of(number):
    return (number - 1) // DECADE_SIZE


def cluster(df: pd.DataFrame, pool="main") -> dict:
    """Appearances of a number's decade (1-10, 11-20, ...) per draw, x100."""
    if len(df) == 0:
        return {n: 0.0 for n in ALL_MAIN}
    decades = Counter(decade_of(n) for n in main_matrix(df).ravel().tolist())
    return {n: decades.get(decade_of(n), 0) / len(df) * 100 for n in ALL_MAIN}


# ===================================================================
# 7. Order pattern
# ===================================================================

def order_pattern(df: pd.DataFrame, pool="main") -> dict:
    """Total order-pattern score (see eurojackpot.order_patterns)."""
    _require_draws(df)
    full = pool_matrix(df, pool)
    recent = full[:DEFAULT_RECENT_DRAWS]
    if pool == "main":
        scores = score_main_numbers(recent, full)
    else:
        scores = score_euro_numbers(recent)
    return {s.number: s.total for s in scores}


# ===================================================================
# Registry
# ===================================================================

class Analyzer(NamedTuple):
    name: str
    func: Callable
    pools: Tuple[str, ...]


ANALYZERS = {
    a.name: a
    for a in [
        Analyzer("freq_short", frequency_short, ("main", "euro")),
        Analyzer("freq_medium", frequency_medium, ("main", "euro")),
        Analyzer("freq_long", frequency_long, ("main", "euro")),
        Analyzer("momentum", momentum, ("main", "euro")),
        Analyzer("pattern", pattern, ("main",)),
        Analyzer("gap", gap, ("main", "euro")),
        Analyzer("position", position, ("main",)),
        Analyzer("cluster", cluster, ("main",)),
        Analyzer("order_pattern", order_pattern, ("main", "euro")),
    ]
}


def run_analyzers(df: pd.DataFrame, pool="main", names=None) -> dict:
    """
    Run every registered analyzer that supports *pool*.

    Returns {analyzer_name: {number: raw_score}}.
    """
    names = names or list(ANALYZERS)
    raw = {}
    for name in names:
        analyzer = ANALYZERS[name]
        if pool in analyzer.pools:
            raw[name] = analyzer.func(df, pool)
    return raw


# ===================================================================
# History summary
# ===================================================================

def history_summary(df: pd.DataFrame) -> dict:
    """
    Descriptive statistics of a history window.

    Returns
    -------
    dict with keys:
        total_draws  : int
        sum_range    : dict {min, max, mean} of main-number sums
        range_mix    : dict mean count per draw of low (1-17),
                       mid (18-34) and high (35-50) numbers
        even_ratio   : float share of even main numbers
        hot_numbers  : list of numbers drawn in the newest 10 draws
        cold_numbers : list of numbers absent from the newest 20 draws
    """
    _require_draws(df)
    matrix = main_matrix(df)
    sums = matrix.sum(axis=1)

    low = (matrix <= LOW_BOUND).sum(axis=1)
    high = (matrix > MID_BOUND).sum(axis=1)
    mid = MAIN_PICK - low - high

    hot = sorted(set(matrix[:10].ravel().tolist()))
    seen_recent = set(matrix[:20].ravel().tolist())
    cold = [n for n in ALL_MAIN if n not in seen_recent]

    return {
        "total_draws": len(df),
        "sum_range": {
            "min": int(sums.min()),
            "max": int(sums.max()),
            "mean": float(sums.mean()),
        },
        "range_mix": {
            "low": float(low.mean()),
            "mid": float(mid.mean()),
            "high": float(high.mean()),
        },
        "even_ratio": float((matrix % 2 == 0).mean()),
        "hot_numbers": hot,
        "cold_numbers": cold,
    }
