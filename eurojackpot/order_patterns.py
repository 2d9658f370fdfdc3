"""
Order Pattern Analysis for Eurojackpot

Looks at the ORDER of drawn numbers rather than the numbers themselves.
Every draw is viewed sorted ascending, and each candidate is scored on:

- Position:    how consistently it lands in the same sorted slot
- Gap pattern: the spacing to its lower and upper neighbours
- Sequence:    participation in consecutive runs and arithmetic progressions
- Transition:  how its slot index moves between consecutive draws

Main numbers combine these 0.35 / 0.30 / 0.20 / 0.15, euro numbers
0.40 / 0.30 / 0.20 / 0.10.
"""
from collections import Counter
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

from eurojackpot.draws import (
    ALL_EURO,
    ALL_MAIN,
    EURO_POOL,
    MAIN_PICK,
    MAIN_POOL,
    InsufficientHistory,
    euro_matrix,
    main_matrix,
)

DEFAULT_RECENT_DRAWS = 30

MAIN_ORDER_WEIGHTS = {"position": 0.35, "gap_pattern": 0.30, "sequence": 0.20, "transition": 0.15}
EURO_ORDER_WEIGHTS = {"position": 0.40, "gap_pattern": 0.30, "sequence": 0.20, "transition": 0.10}

# Transition score for numbers that never reappeared in the window
NEUTRAL_TRANSITION = 50.0
DEFAULT_GAP_PATTERN = [10, 10, 10, 10]


class OrderPatternScore(NamedTuple):
    number: int
    position: float
    gap_pattern: float
    sequence: float
    transition: float
    total: float
    preferred_position: int


def _std(values):
    """Population standard deviation, 0 for an empty list."""
    if len(values) == 0:
        return 0.0
    return float(np.std(values))


def _mean(values):
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def _round_half_up(x):
    return int(np.floor(x + 0.5))


def _slot_matrix(matrix, pool_size):
    """
    (n_draws, pool_size + 1) array: sorted slot of each number per draw,
    -1 where the number was not drawn.
    """
    slots = np.full((matrix.shape[0], pool_size + 1), -1, dtype=int)
    if matrix.size:
        rows = np.repeat(np.arange(matrix.shape[0]), matrix.shape[1])
        cols = np.tile(np.arange(matrix.shape[1]), matrix.shape[0])
        slots[rows, matrix.ravel()] = cols
    return slots


def _slot_counts(slots, num, n_slots):
    col = slots[:, num]
    return np.bincount(col[col >= 0], minlength=n_slots)


def preferred_position(slots, num, n_slots=MAIN_PICK):
    """Most frequent sorted slot of *num*, lowest slot on ties, 0 if never drawn."""
    return int(np.argmax(_slot_counts(slots, num, n_slots)))


# ===================================================================
# Main numbers
# ===================================================================

def _main_position_score(num, slots):
    counts = _slot_counts(slots, num, MAIN_PICK)
    total = counts.sum()
    if total == 0:
        return 0.0

    consistency = counts.max() / total
    expected_slot = int(np.floor(num / MAIN_POOL * MAIN_PICK))
    actual_slot = int(np.argmax(counts))
    match_bonus = 20.0 if abs(expected_slot - actual_slot) <= 1 else 0.0
    return consistency * 60 + match_bonus + total / slots.shape[0] * 20


def _neighbour_gaps(num, recent):
    before, after = [], []
    for row in recent:
        hits = np.flatnonzero(row == num)
        if hits.size == 0:
            continue
        idx = hits[0]
        if idx > 0:
            before.append(num - row[idx - 1])
        if idx < len(row) - 1:
            after.append(row[idx + 1] - num)
    return before, after


def _main_gap_pattern_score(num, recent):
    before, after = _neighbour_gaps(num, recent)
    if not before and not after:
        return 0.0

    avg_before, avg_after = _mean(before), _mean(after)
    consistency = max(0.0, 30 - (_std(before) + _std(after)) / 2)
    reasonable = 3 < avg_before < 15 or 3 < avg_after < 15
    score = consistency + (20.0 if reasonable else 0.0)

    # Would inserting num into the newest draw reproduce a typical gap?
    latest = recent[0]
    for lo, hi in zip(latest[:-1], latest[1:]):
        if lo < num < hi:
            if abs((num - lo) - avg_before) < 3 or abs((hi - num) - avg_after) < 3:
                score += 25
    return score


def _main_sequence_score(num, recent):
    participation = 0
    consecutive = 0

    for row in recent:
        hits = np.flatnonzero(row == num)
        if hits.size == 0:
            continue
        idx = hits[0]
        members = set(row.tolist())
        in_sequence = False

        if idx > 0 and row[idx - 1] == num - 1:
            in_sequence = True
            consecutive += 1
        if idx < len(row) - 1 and row[idx + 1] == num + 1:
            in_sequence = True
            consecutive += 1
        for step in range(2, 11):
            if num - step in members and num + step in members:
                in_sequence = True
        if in_sequence:
            participation += 1

    latest = set(recent[0].tolist())
    bonus = 0.0
    for drawn in latest:
        if num in (drawn - 1, drawn + 1):
            bonus += 20
        # num, drawn, 2*drawn - num form a progression
        other = 2 * drawn - num
        if drawn != num and other != drawn and other in latest:
            bonus += 10

    n = recent.shape[0]
    return participation / n * 100 + consecutive / n * 50 + bonus


def _transition_counts(num, slots):
    current = slots[:-1, num]
    previous = slots[1:, num]
    drawn = current >= 0
    moves = np.where(previous >= 0, current - previous, current)[drawn]
    return Counter(moves.tolist()), int(drawn.sum())


def _main_transition_score(num, slots_all, latest_members):
    counts, total = _transition_counts(num, slots_all)
    if total == 0:
        return NEUTRAL_TRANSITION

    dominant, dominant_count = counts.most_common(1)[0]
    score = dominant_count / total * 100
    if num not in latest_members and dominant >= 0:
        score += 20
    return score


def score_main_numbers(recent, full):
    """Order-pattern scores for 1-50, best first."""
    slots_recent = _slot_matrix(recent, MAIN_POOL)
    slots_all = _slot_matrix(full, MAIN_POOL)
    latest = set(recent[0].tolist())
    w = MAIN_ORDER_WEIGHTS

    scores = []
    for num in ALL_MAIN:
        position = _main_position_score(num, slots_recent)
        gap = _main_gap_pattern_score(num, recent)
        sequence = _main_sequence_score(num, recent)
        transition = _main_transition_score(num, slots_all, latest)
        total = (
            position * w["position"]
            + gap * w["gap_pattern"]
            + sequence * w["sequence"]
            + transition * w["transition"]
        )
        scores.append(OrderPatternScore(
            num, position, gap, sequence, transition, total,
            preferred_position(slots_recent, num, MAIN_PICK),
        ))
    return sorted(scores, key=lambda s: (-s.total, s.number))


# ===================================================================
# Euro numbers
# ===================================================================

def _euro_position_score(num, slots):
    counts = _slot_counts(slots, num, 2)
    total = counts.sum()
    if total == 0:
        return 0.0
    return counts.max() / total * 70 + total / slots.shape[0] * 30


def _euro_gap_score(num, recent):
    gaps = [abs(int(row[0]) - int(row[1])) for row in recent if num in row]
    if not gaps:
        return 0.0

    avg = _mean(gaps)
    match = 0.0
    for euro in recent[0]:
        if abs(abs(num - int(euro)) - avg) < 2:
            match += 40
    return max(0.0, 30 - _std(gaps)) + match


def _euro_sequence_score(num, recent):
    consecutive = sum(
        1 for row in recent if abs(int(row[0]) - int(row[1])) == 1 and num in row
    )
    bonus = sum(30.0 for euro in recent[0] if abs(num - int(euro)) == 1)
    return consecutive / recent.shape[0] * 100 + bonus


def _euro_transition_score(num, recent):
    window = recent[:10]
    hits = sum(1 for row in window if num in row)
    return hits / window.shape[0] * 100


def score_euro_numbers(recent):
    """Order-pattern scores for 1-12, best first."""
    slots_recent = _slot_matrix(recent, EURO_POOL)
    w = EURO_ORDER_WEIGHTS

    scores = []
    for num in ALL_EURO:
        position = _euro_position_score(num, slots_recent)
        gap = _euro_gap_score(num, recent)
        sequence = _euro_sequence_score(num, recent)
        transition = _euro_transition_score(num, recent)
        total = (
            position * w["position"]
            + gap * w["gap_pattern"]
            + sequence * w["sequence"]
            + transition * w["transition"]
        )
        scores.append(OrderPatternScore(
            num, position, gap, sequence, transition, total,
            preferred_position(slots_recent, num, 2),
        ))
    return sorted(scores, key=lambda s: (-s.total, s.number))


# ===================================================================
# Insights
# ===================================================================

def _draw_gaps(recent):
    return np.diff(recent, axis=1)


def common_gap_pattern(recent):
    """
    Average of the distinct intra-draw gap sequences in *recent*, rounded.
    """
    unique = {}
    for gaps in _draw_gaps(recent):
        unique.setdefault(tuple(int(g) for g in gaps), gaps)
    if not unique:
        return list(DEFAULT_GAP_PATTERN)

    avg = np.mean(np.array(list(unique.values()), dtype=float), axis=0)
    return [_round_half_up(g) for g in avg[:4]]


def sequence_tendency(recent):
    """
    'ascending' when gaps widen across most draws, 'mixed' when they
    mostly narrow, otherwise 'balanced'.
    """
    ascending = mixed = 0
    for gaps in _draw_gaps(recent):
        steps = np.diff(gaps)
        increasing = int((steps > 0).sum())
        decreasing = int((steps < 0).sum())
        if increasing > decreasing:
            ascending += 1
        elif increasing < decreasing:
            mixed += 1

    if ascending > mixed * 1.5:
        return "ascending"
    if mixed > ascending * 1.5:
        return "mixed"
    return "balanced"


def pattern_insights(recent):
    slots = _slot_matrix(recent, MAIN_POOL)
    all_gaps = _draw_gaps(recent)
    return {
        "common_gap_pattern": common_gap_pattern(recent),
        "preferred_positions": {n: preferred_position(slots, n) for n in ALL_MAIN},
        "sequence_tendency": sequence_tendency(recent),
        "avg_gap": float(all_gaps.mean()) if all_gaps.size else 0.0,
    }


def analyze_order_patterns(df: pd.DataFrame, recent_draws: Optional[int] = DEFAULT_RECENT_DRAWS) -> dict:
    """
    Run the full order-pattern analysis on a newest-first history.

    Parameters
    ----------
    df : pd.DataFrame
        History window, row 0 = newest draw.
    recent_draws : int
        Number of newest draws used for the position, gap and sequence
        scores. Main-number transitions always use the whole window.

    Returns
    -------
    dict with:
        'main_scores': list of OrderPatternScore for 1-50, best first
        'euro_scores': list of OrderPatternScore for 1-12, best first
        'insights': dict of common_gap_pattern, preferred_positions,
                    sequence_tendency, avg_gap
    """
    if len(df) == 0:
        raise InsufficientHistory(0, 1)

    full_main = main_matrix(df)
    full_euro = euro_matrix(df)
    n_recent = min(recent_draws or len(df), len(df))
    recent_main = full_main[:n_recent]
    recent_euro = full_euro[:n_recent]

    return {
        "main_scores": score_main_numbers(recent_main, full_main),
        "euro_scores": score_euro_numbers(recent_euro),
        "insights": pattern_insights(recent_main),
    }
