"""
Backtesting Engine for Eurojackpot Predictor

Walk-forward validation over a newest-first history. For every index i from
the configured minimum history up to the last draw, draw i-1 is the target
and only draws i, i+1, ... (strictly older) are handed to the strategy.
Never uses future data.

Scoring per target:
    score = main_matches * 10 + euro_matches * 5 [+ 0.5 * proximity]
"""
from typing import Callable, List, NamedTuple, Optional

import numpy as np
from joblib import Parallel, delayed
from loguru import logger
from scipy import stats

from eurojackpot.config import (
    EURO_MATCH_POINTS,
    MAIN_MATCH_POINTS,
    PROXIMITY_BANDS,
    PROXIMITY_FACTOR,
)
from eurojackpot.draws import (
    ALL_EURO,
    ALL_MAIN,
    EURO_PICK,
    MAIN_PICK,
    Draw,
    InsufficientHistory,
    row_to_draw,
)
from eurojackpot.prediction import Prediction

PROGRESS_EVERY = 10
BASELINE_SEED = 0


class BacktestRecord(NamedTuple):
    target: Draw
    prediction: Optional[Prediction]
    main_matches: int
    euro_matches: int
    proximity: float
    score: float


class BacktestRun(NamedTuple):
    name: str
    records: List[BacktestRecord]
    summary: dict


def count_matches(predicted, actual):
    """Count how many numbers match between a predicted set and an actual draw."""
    return len(set(predicted) & set(actual))


def calculate_proximity(predicted, actual, bands=PROXIMITY_BANDS):
    """
    Near-miss score: every predicted number earns the points of the first
    band its distance to the closest actual number falls into.

    Default bands: exact 10, within 2 -> 5, within 5 -> 3, within 10 -> 1.
    """
    total = 0.0
    for p in predicted:
        distance = min(abs(p - a) for a in actual)
        for max_distance, points in bands:
            if distance <= max_distance:
                total += points
                break
    return total


def composite_score(main_matches, euro_matches, proximity=0.0):
    return main_matches * MAIN_MATCH_POINTS + euro_matches * EURO_MATCH_POINTS + proximity * PROXIMITY_FACTOR


def score_prediction(prediction, target, use_proximity=False, bands=PROXIMITY_BANDS):
    """Compare one Prediction (or None) with the draw that actually followed."""
    if prediction is None:
        return BacktestRecord(target, None, 0, 0, 0.0, 0.0)

    main = count_matches(prediction.main, target.numbers)
    euro = count_matches(prediction.euro, target.euro_numbers)
    proximity = calculate_proximity(prediction.main, target.numbers, bands) if use_proximity else 0.0
    return BacktestRecord(target, prediction, main, euro, proximity, composite_score(main, euro, proximity))


def _target_indices(df, min_history, max_targets=None):
    if min_history < 1:
        raise ValueError(f"min_history must be at least 1, got {min_history}")
    indices = range(min_history, len(df))
    if max_targets is not None:
        indices = indices[:max_targets]
    return indices


def _evaluate_target(df, i, predict_fn, min_history, use_proximity, bands):
    target = row_to_draw(df, i - 1)
    window = df.iloc[i:].reset_index(drop=True)
    try:
        if len(window) < min_history:
            raise InsufficientHistory(len(window), min_history)
        prediction = predict_fn(window)
    except InsufficientHistory as e:
        logger.debug(f"[Backtest] Skipping {target.date}: {e}")
        prediction = None
    return score_prediction(prediction, target, use_proximity, bands)


def iter_backtest(df, predict_fn: Callable, min_history, use_proximity=False,
                  bands=PROXIMITY_BANDS, max_targets=None, name="strategy"):
    """
    Yield one BacktestRecord per target, newest target first.

    Parameters
    ----------
    df : pd.DataFrame
        Full newest-first history.
    predict_fn : callable
        ``predict_fn(window) -> Prediction``.
    min_history : int
        First target index; the run covers len(df) - min_history targets.
        Targets whose window holds fewer than min_history draws get a
        record with no prediction.
    max_targets : int, optional
        Stop after this many targets.
    """
    indices = _target_indices(df, min_history, max_targets)
    total = len(indices)
    for k, i in enumerate(indices):
        if k % PROGRESS_EVERY == 0:
            logger.info(f"[Backtest] {name}: target {k + 1}/{total}")
        yield _evaluate_target(df, i, predict_fn, min_history, use_proximity, bands)


def random_baseline(records, seed=BASELINE_SEED, use_proximity=False, bands=PROXIMITY_BANDS):
    """Score one seeded random ticket per target."""
    rng = np.random.default_rng(seed)
    baseline = []
    for r in records:
        main = tuple(int(n) for n in rng.choice(ALL_MAIN, size=MAIN_PICK, replace=False))
        euro = tuple(int(n) for n in rng.choice(ALL_EURO, size=EURO_PICK, replace=False))
        baseline.append(score_prediction(Prediction(main, euro, source="Random"), r.target, use_proximity, bands))
    return baseline


def run_backtest(df, predict_fn: Callable, min_history, name="strategy", use_proximity=False,
                 bands=PROXIMITY_BANDS, max_targets=None, n_jobs=1, seed=BASELINE_SEED,
                 verbose=False) -> BacktestRun:
    """
    Run walk-forward backtesting for one strategy.

    Args:
        df: Full newest-first history
        predict_fn: Strategy under test, ``predict_fn(window) -> Prediction``
        min_history: Index of the first target and the smallest window a
            strategy is given (required)
        name: Label used in logs and the summary
        use_proximity: Add the near-miss bonus to the composite score
        max_targets: Limit the run to the newest targets
        n_jobs: joblib workers; 1 runs in-process
        seed: Random baseline seed
        verbose: Print the summary report

    Returns:
        BacktestRun with records in strictly decreasing target date order
    """
    indices = _target_indices(df, min_history, max_targets)
    logger.info(f"[Backtest] {name}: {len(indices)} targets, min history {min_history}, n_jobs={n_jobs}")

    if n_jobs == 1:
        records = list(iter_backtest(df, predict_fn, min_history, use_proximity, bands, max_targets, name))
    else:
        records = Parallel(n_jobs=n_jobs)(
            delayed(_evaluate_target)(df, i, predict_fn, min_history, use_proximity, bands) for i in indices
        )

    summary = compute_summary(name, records, seed, use_proximity, bands)
    run = BacktestRun(name, records, summary)
    if verbose:
        print_summary(run)
    return run


def compute_summary(name, records, seed=BASELINE_SEED, use_proximity=False, bands=PROXIMITY_BANDS):
    """Compute aggregate backtest metrics over the records that have a prediction."""
    tested = [r for r in records if r.prediction is not None]
    summary = {
        "name": name,
        "total_targets": len(records),
        "total_tests": len(tested),
        "skipped": len(records) - len(tested),
    }
    if not tested:
        return summary

    main = np.array([r.main_matches for r in tested])
    euro = np.array([r.euro_matches for r in tested])
    scores = np.array([r.score for r in tested])

    summary.update({
        "avg_main_matches": float(main.mean()),
        "avg_euro_matches": float(euro.mean()),
        "avg_score": float(scores.mean()),
        "avg_proximity": float(np.mean([r.proximity for r in tested])),
        "main_distribution": {m: int((main == m).sum()) for m in range(MAIN_PICK + 1)},
        "euro_distribution": {m: int((euro == m).sum()) for m in range(EURO_PICK + 1)},
        "main_at_least_2": int((main >= 2).sum()),
        "main_at_least_3": int((main >= 3).sum()),
        "main_at_least_4": int((main >= 4).sum()),
        "main_exact_5": int((main == MAIN_PICK).sum()),
        "euro_exact_2": int((euro == EURO_PICK).sum()),
        # First record wins ties, so the newest target is reported.
        "best": max(tested, key=lambda r: r.score),
    })

    baseline = random_baseline(tested, seed, use_proximity, bands)
    baseline_scores = np.array([r.score for r in baseline])
    summary["random"] = {
        "avg_main_matches": float(np.mean([r.main_matches for r in baseline])),
        "avg_euro_matches": float(np.mean([r.euro_matches for r in baseline])),
        "avg_score": float(baseline_scores.mean()),
    }

    if len(tested) > 1:
        t_stat, p_value = stats.ttest_ind(scores, baseline_scores, equal_var=False)
        summary["significance"] = {
            "t_statistic": float(t_stat),
            "p_value": float(p_value),
            "significant_at_005": bool(p_value < 0.05),
            "mean_diff": float(scores.mean() - baseline_scores.mean()),
        }

    return summary


def print_summary(run):
    """Print a formatted backtest report."""
    s = run.summary
    print(f"\n{'='*60}")
    print(f"BACKTEST RESULTS: {run.name}")
    print(f"{'='*60}")
    print(f"  Targets: {s['total_targets']} (tested {s['total_tests']}, skipped {s['skipped']})")
    if not s["total_tests"]:
        print(f"{'='*60}")
        return

    print(f"  Average main matches: {s['avg_main_matches']:.3f} / {MAIN_PICK}")
    print(f"  Average euro matches: {s['avg_euro_matches']:.3f} / {EURO_PICK}")
    print(f"  Average score: {s['avg_score']:.2f}")
    print(f"  Average proximity: {s['avg_proximity']:.2f}")
    for m, count in s["main_distribution"].items():
        print(f"    {m} main matches: {count} ({100 * count / s['total_tests']:.1f}%)")
    print(f"  >=3 main: {s['main_at_least_3']} | >=4 main: {s['main_at_least_4']} | "
          f"5 main: {s['main_exact_5']} | 2 euro: {s['euro_exact_2']}")

    best = s["best"]
    print(f"  Best: {best.target.date} predicted {list(best.prediction.numbers)} + "
          f"{list(best.prediction.euro_numbers)}, actual {list(best.target.numbers)} + "
          f"{list(best.target.euro_numbers)} ({best.score:.1f} pts)")

    rs = s["random"]
    print(f"\nRANDOM BASELINE:")
    print(f"  Average main matches: {rs['avg_main_matches']:.3f} / {MAIN_PICK}")
    print(f"  Average score: {rs['avg_score']:.2f}")

    sig = s.get("significance")
    if sig:
        print(f"\nSTATISTICAL SIGNIFICANCE (strategy vs random, Welch t-test):")
        print(f"  t-statistic: {sig['t_statistic']:.4f}")
        print(f"  p-value: {sig['p_value']:.6f}")
        print(f"  Mean difference: {sig['mean_diff']:.3f}")
        if sig["significant_at_005"]:
            print("  Significant at p < 0.05")
        else:
            print("  Not statistically significant")

    print(f"{'='*60}")


if __name__ == "__main__":
    import sys
    import os
    sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
    from eurojackpot.draws import load_data
    from eurojackpot.models.strategies import STRATEGIES

    df = load_data()
    run_backtest(df, STRATEGIES["WeightedScoring"], min_history=50, name="WeightedScoring",
                 use_proximity=True, max_targets=100, verbose=True)
