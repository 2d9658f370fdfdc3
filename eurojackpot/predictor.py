"""
Prediction Pipeline for Eurojackpot

Runs every strategy, merges them with the ensemble vote, checks the
consensus ticket for novelty and attaches the order-pattern insights that
explain it.
"""
from datetime import date, timedelta

from loguru import logger

from eurojackpot.analysis import history_summary
from eurojackpot.config import RepeatPenalty
from eurojackpot.models import ensemble
from eurojackpot.novelty import check_novelty, ticket_stats
from eurojackpot.order_patterns import analyze_order_patterns

# Tuesday and Friday
DRAW_WEEKDAYS = (1, 4)


def next_draw_date(today=None):
    """The next Tuesday or Friday strictly after *today*."""
    today = today or date.today()
    current = today + timedelta(days=1)
    while current.weekday() not in DRAW_WEEKDAYS:
        current += timedelta(days=1)
    return current


def generate_prediction(df, strategies=None, weights=None, penalty=RepeatPenalty(), today=None):
    """
    Produce the consensus ticket for the next draw.

    Parameters
    ----------
    df : pd.DataFrame
        Full newest-first history.
    strategies : dict of {name: callable}, optional
        Defaults to every registered strategy.
    weights : dict of {name: weight}, optional
        Ensemble vote weights, e.g. from ensemble.learn_strategy_weights.
    penalty : RepeatPenalty
        Multipliers for the newest draw's numbers.

    Returns
    -------
    dict with:
        'prediction': consensus Prediction
        'strategy_predictions': dict of {name: Prediction}
        'votes': dict of {'main': EnsembleVote, 'euro': EnsembleVote}
        'weights': strategy weights used
        'novelty': NoveltyResult against the full history
        'ticket': ticket_stats of the consensus ticket
        'insights': order-pattern insights of the newest 30 draws
        'history': history_summary of the window
        'next_draw': date of the next draw
    """
    result = ensemble.predict(df, strategies, weights, penalty)
    prediction = result["prediction"]

    novelty = check_novelty(prediction, df)
    if novelty.exists:
        logger.warning(f"[Predictor] Ticket {list(prediction.numbers)} + "
                       f"{list(prediction.euro_numbers)} was already drawn on {novelty.draw_date}")
    elif novelty.recent_match:
        logger.info(f"[Predictor] Partial repeat of recent draws: {novelty.recent_match}")

    result.update({
        "novelty": novelty,
        "ticket": ticket_stats(prediction),
        "insights": analyze_order_patterns(df)["insights"],
        "history": history_summary(df),
        "next_draw": next_draw_date(today),
    })
    return result


def format_prediction(result):
    """Human-readable report lines for a generate_prediction result."""
    p = result["prediction"]
    lines = [
        f"Next draw: {result['next_draw'].strftime('%A %Y-%m-%d')}",
        f"Main numbers: {' '.join(f'{n:2d}' for n in p.numbers)}",
        f"Euro numbers: {' '.join(f'{n:2d}' for n in p.euro_numbers)}",
        "",
        "Strategies:",
    ]
    for name, sp in result["strategy_predictions"].items():
        lines.append(f"  {name:<20} {list(sp.numbers)} + {list(sp.euro_numbers)} "
                     f"(weight {result['weights'][name]:.3f})")

    votes = result["votes"]["main"]
    lines.append("")
    lines.append("Top main votes:")
    for n in votes.ranking()[:10]:
        lines.append(f"  {n:2d}: {votes.votes[n]:.2f} votes from {votes.strategy_counts[n]} strategies")

    novelty = result["novelty"]
    lines.append("")
    if novelty.exists:
        lines.append(f"Already drawn on {novelty.draw_date}")
    else:
        lines.append("Never drawn before")
    if novelty.recent_match:
        lines.append(f"Recent repeat: {novelty.recent_match}")

    insights = result["insights"]
    lines.append(f"Common gap pattern: {insights['common_gap_pattern']}, "
                 f"tendency: {insights['sequence_tendency']}")
    return lines
