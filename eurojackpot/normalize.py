"""
Score normalisation

Maps each analyzer's raw output onto a common 0-100 scale so frequencies,
entropies and deviation scores can be combined linearly. Every mapping is
a pure function of the raw value.
"""
import math

import numpy as np

SCORE_MIN = 0.0
SCORE_MAX = 100.0

POSITION_MAX_ENTROPY = math.log2(5)


def clamp(value, lo=SCORE_MIN, hi=SCORE_MAX):
    if value is None or not np.isfinite(value):
        return lo
    return float(min(hi, max(lo, value)))


def normalize_frequency(value):
    """Appearance rate (0-1) to percent."""
    return clamp(value * 100)


def normalize_momentum(value):
    return clamp((value + 0.5) * 100)


def normalize_pattern(value):
    return clamp(value * 10)


def normalize_gap(value):
    """
    Power curve so 'very overdue' separates from 'somewhat overdue'.
    Negative raw values never occur; they clamp to 0.
    """
    if value is None or not np.isfinite(value) or value <= 0:
        return SCORE_MIN
    return clamp(math.pow(value, 1.3) * 40)


def normalize_position(value):
    """Entropy in bits; log2(5) is the most positionally flexible."""
    return clamp(value / POSITION_MAX_ENTROPY * 100)


def normalize_cluster(value):
    return clamp(value)


def normalize_order_pattern(value):
    return clamp(value * 1.1)


NORMALIZERS = {
    "freq_short": normalize_frequency,
    "freq_medium": normalize_frequency,
    "freq_long": normalize_frequency,
    "momentum": normalize_momentum,
    "pattern": normalize_pattern,
    "gap": normalize_gap,
    "position": normalize_position,
    "cluster": normalize_cluster,
    "order_pattern": normalize_order_pattern,
}


def normalize_scores(name, raw_scores):
    """Normalise one analyzer's {number: raw} output to {number: 0-100}."""
    try:
        func = NORMALIZERS[name]
    except KeyError:
        raise KeyError(f"no normaliser registered for analyzer {name!r}") from None
    return {n: func(v) for n, v in raw_scores.items()}


def normalize_all(raw):
    """{analyzer: {number: raw}} -> {analyzer: {number: 0-100}}."""
    return {name: normalize_scores(name, scores) for name, scores in raw.items()}
