"""
Ensemble Model for Eurojackpot Prediction

Runs every registered strategy and merges their tickets by rank-weighted
vote. A strategy's i-th pick (best first) earns

    votes = pick_size - i + 1     (5, 4, 3, 2, 1 main; 2, 1 euro)

optionally multiplied by that strategy's weight (default 1.0). Candidates
are ranked by total votes, then by the number of distinct strategies that
picked them, then ascending.

Strategy weights can be learned from a validation backtest with
learn_strategy_weights.
"""
from typing import Dict, NamedTuple

from loguru import logger

from eurojackpot.backtester import run_backtest
from eurojackpot.config import RepeatPenalty
from eurojackpot.draws import InsufficientHistory, pool_numbers, pool_pick
from eurojackpot.models.strategies import STRATEGIES
from eurojackpot.prediction import make_prediction

MODEL_NAME = "Ensemble"

VALIDATION_SIZE = 100
VALIDATION_MIN_HISTORY = 30
MIN_STRATEGY_WEIGHT = 0.1


class EnsembleVote(NamedTuple):
    """Vote totals and distinct-strategy counts for one pool."""

    votes: Dict[int, float]
    strategy_counts: Dict[int, int]

    def ranking(self):
        return sorted(
            self.votes,
            key=lambda n: (-self.votes[n], -self.strategy_counts[n], n),
        )


def tally_votes(predictions, pool="main", weights=None) -> EnsembleVote:
    """
    Sum rank-weighted votes for one pool.

    Parameters
    ----------
    predictions : dict of {strategy_name: Prediction}
    pool : str
        'main' or 'euro'.
    weights : dict of {strategy_name: weight}, optional
        Missing strategies weigh 1.0.
    """
    weights = weights or {}
    pick = pool_pick(pool)
    votes = {n: 0.0 for n in pool_numbers(pool)}
    counts = {n: 0 for n in pool_numbers(pool)}

    for name, prediction in predictions.items():
        weight = weights.get(name, 1.0)
        ranked = prediction.main if pool == "main" else prediction.euro
        for i, n in enumerate(ranked):
            votes[n] += (pick - i) * weight
            counts[n] += 1

    return EnsembleVote(votes, counts)


def combine(predictions, weights=None):
    """Merge strategy predictions into the consensus Prediction."""
    if not predictions:
        raise ValueError("ensemble needs at least one strategy prediction")

    main_vote = tally_votes(predictions, "main", weights)
    euro_vote = tally_votes(predictions, "euro", weights)
    prediction = make_prediction(
        main_vote.ranking(),
        euro_vote.ranking(),
        main_vote.votes,
        euro_vote.votes,
        MODEL_NAME,
    )
    return prediction, {"main": main_vote, "euro": euro_vote}


def run_strategies(df, strategies=None, penalty=RepeatPenalty()):
    """
    Run each strategy on the window.

    Strategies whose window is too short are left out with a warning; any
    other error propagates.
    """
    strategies = strategies or STRATEGIES
    results = {}
    for name, strategy in strategies.items():
        try:
            results[name] = strategy(df, penalty)
        except InsufficientHistory as e:
            logger.warning(f"[Ensemble] {name} skipped: {e}")
            continue
        logger.debug(f"[Ensemble] {name}: {list(results[name].numbers)} "
                     f"+ {list(results[name].euro_numbers)}")
    return results


def predict(df, strategies=None, weights=None, penalty=RepeatPenalty()):
    """
    Run ensemble prediction combining all strategies.

    Returns
    -------
    dict with:
        'prediction': consensus Prediction
        'strategy_predictions': dict of {name: Prediction}
        'votes': dict of {'main': EnsembleVote, 'euro': EnsembleVote}
        'weights': strategy weights used (1.0 where not given)
    """
    predictions = run_strategies(df, strategies, penalty)
    logger.info(f"[Ensemble] Collected predictions from {len(predictions)} strategies")

    prediction, votes = combine(predictions, weights)
    used = {name: (weights or {}).get(name, 1.0) for name in predictions}

    logger.info(f"[Ensemble] Consensus: {list(prediction.numbers)} + {list(prediction.euro_numbers)}")
    return {
        "prediction": prediction,
        "strategy_predictions": predictions,
        "votes": votes,
        "weights": used,
    }


def _strategy_fn(strategy, penalty):
    def predict_fn(window):
        return strategy(window, penalty)
    return predict_fn


def learn_strategy_weights(df, strategies=None, validation_size=VALIDATION_SIZE,
                           min_history=VALIDATION_MIN_HISTORY, penalty=RepeatPenalty()):
    """
    Derive strategy weights from a walk-forward validation run.

    Each strategy is backtested over the newest *validation_size* targets
    starting at *min_history*; its raw weight is

        max(0.1, avg_score + 2 * (#targets with >=3 main) + (#targets with >=2 main))

    and the weights are normalised to sum to 1.
    """
    strategies = strategies or STRATEGIES
    raw = {}
    for name, strategy in strategies.items():
        run = run_backtest(df, _strategy_fn(strategy, penalty), min_history,
                           name=name, max_targets=validation_size)
        s = run.summary
        if s["total_tests"] == 0:
            raw[name] = MIN_STRATEGY_WEIGHT
            continue
        raw[name] = max(
            MIN_STRATEGY_WEIGHT,
            s["avg_score"] + 2 * s["main_at_least_3"] + s["main_at_least_2"],
        )
        logger.info(f"[Ensemble] {name}: avg score {s['avg_score']:.2f}, "
                    f">=3 main {s['main_at_least_3']}, raw weight {raw[name]:.2f}")

    total = sum(raw.values())
    return {name: w / total for name, w in raw.items()}


if __name__ == "__main__":
    import sys
    import os
    sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
    from eurojackpot.draws import load_data

    df = load_data()
    result = predict(df)

    print(f"\n{'='*70}")
    print("FINAL ENSEMBLE PREDICTION")
    print(f"{'='*70}")
    p = result["prediction"]
    print(f"Main: {list(p.numbers)}  Euro: {list(p.euro_numbers)}")
    for name, sp in result["strategy_predictions"].items():
        print(f"  {name}: {list(sp.numbers)} + {list(sp.euro_numbers)}")
    print(f"{'='*70}")
