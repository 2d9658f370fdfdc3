"""
Weighted Scoring Model for Eurojackpot Prediction

Scores all 50 main numbers and all 12 euro numbers with every registered
analyzer, normalises each analyzer to 0-100 and combines them through a
WeightProfile:

    final_score(n) = sum(weight[a] * normalized[a][n])

The top 5 main / top 2 euro numbers by final score form the prediction.
Ties go to the number with the higher long-term frequency, then to the
lower number.
"""

from loguru import logger

from eurojackpot.analysis import frequency_counts, run_analyzers
from eurojackpot.config import DEFAULT_MIN_HISTORY, DEFAULT_PROFILE, RepeatPenalty
from eurojackpot.draws import EURO_COLS, MAIN_COLS, InsufficientHistory, pool_numbers
from eurojackpot.normalize import normalize_all
from eurojackpot.prediction import (
    CandidateScore,
    apply_repeat_penalty,
    make_prediction,
    rank_numbers,
)

MODEL_NAME = "WeightedScoring"


def score_pool(df, pool, weights):
    """
    Score every number of one pool.

    Parameters
    ----------
    df : pd.DataFrame
        Newest-first history window.
    pool : str
        'main' or 'euro'.
    weights : Mapping[str, float]
        Analyzer name -> relative weight. Analyzers without a weight are
        skipped entirely.

    Returns
    -------
    list of CandidateScore, ranked best first.
    """
    names = [name for name, w in weights.items() if w > 0]
    raw = run_analyzers(df, pool, names)
    normalized = normalize_all(raw)
    long_counts = frequency_counts(df, pool)

    candidates = {}
    for n in pool_numbers(pool):
        components = {name: normalized[name][n] for name in normalized}
        final = sum(weights[name] * s for name, s in components.items())
        candidates[n] = CandidateScore(n, components, final, long_counts[n])

    order = rank_numbers(
        {n: c.final_score for n, c in candidates.items()},
        long_counts,
    )
    return [candidates[n] for n in order]


def predict(df, profile=DEFAULT_PROFILE, min_history=DEFAULT_MIN_HISTORY):
    """
    Main prediction function. Scores both pools and returns rankings.

    Parameters
    ----------
    df : pd.DataFrame
        History window, row 0 = newest draw.
    profile : WeightProfile
        Analyzer weights for both pools.
    min_history : int
        Smallest window accepted; shorter windows raise InsufficientHistory.

    Returns
    -------
    dict with:
        'prediction': Prediction (top 5 main + top 2 euro)
        'main_rankings': list of CandidateScore, best first
        'euro_rankings': list of CandidateScore, best first
        'profile': name and version of the profile used
    """
    if len(df) < min_history:
        raise InsufficientHistory(len(df), min_history)

    logger.debug(f"[WeightedScoring] Scoring {len(df)} draws with profile "
                 f"{profile.name} v{profile.version}")

    main_rankings = score_pool(df, "main", profile.main)
    euro_rankings = score_pool(df, "euro", profile.euro)

    prediction = make_prediction(
        [c.number for c in main_rankings],
        [c.number for c in euro_rankings],
        {c.number: c.final_score for c in main_rankings},
        {c.number: c.final_score for c in euro_rankings},
        MODEL_NAME,
    )

    logger.debug(f"[WeightedScoring] Top 5: {list(prediction.numbers)} "
                 f"+ {list(prediction.euro_numbers)}")

    return {
        "prediction": prediction,
        "main_rankings": main_rankings,
        "euro_rankings": euro_rankings,
        "profile": f"{profile.name} v{profile.version}",
    }


def predict_strategy(df, penalty=RepeatPenalty(), profile=DEFAULT_PROFILE, min_history=DEFAULT_MIN_HISTORY):
    """
    The weighted engine as an ensemble strategy: final scores of the
    newest draw's numbers are scaled by the repeat penalty before selection.
    """
    result = predict(df, profile, min_history)
    main = {c.number: c.final_score for c in result["main_rankings"]}
    euro = {c.number: c.final_score for c in result["euro_rankings"]}
    main_ties = {c.number: c.long_frequency for c in result["main_rankings"]}
    euro_ties = {c.number: c.long_frequency for c in result["euro_rankings"]}

    latest = df.iloc[0]
    main = apply_repeat_penalty(main, [int(latest[c]) for c in MAIN_COLS], penalty.main)
    euro = apply_repeat_penalty(euro, [int(latest[c]) for c in EURO_COLS], penalty.euro)

    return make_prediction(
        rank_numbers(main, main_ties),
        rank_numbers(euro, euro_ties),
        main,
        euro,
        MODEL_NAME,
    )


if __name__ == "__main__":
    import sys
    import os
    sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
    from eurojackpot.draws import load_data

    df = load_data()
    result = predict(df)
    p = result["prediction"]
    print(f"\nFinal prediction: {list(p.numbers)} + {list(p.euro_numbers)}")
    print("Top 10 main rankings:")
    for i, c in enumerate(result["main_rankings"][:10]):
        print(f"  {i+1:2d}. Number {c.number:2d} -> score {c.final_score:.2f}")
