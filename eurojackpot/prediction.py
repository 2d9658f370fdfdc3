"""
Prediction records and candidate ranking shared by every model.
"""
from typing import Dict, NamedTuple, Optional, Tuple

from eurojackpot.draws import EURO_PICK, MAIN_PICK, pool_numbers


class CandidateScore(NamedTuple):
    """One pool member with its per-analyzer scores and combined score."""

    number: int
    components: Dict[str, float]
    final_score: float
    long_frequency: int


class Prediction(NamedTuple):
    """
    5 main + 2 euro numbers.

    ``main`` and ``euro`` are ranked best first; ``numbers`` and
    ``euro_numbers`` give the ascending display order.
    """

    main: Tuple[int, ...]
    euro: Tuple[int, ...]
    main_scores: Optional[Dict[int, float]] = None
    euro_scores: Optional[Dict[int, float]] = None
    source: str = ""

    @property
    def numbers(self):
        return tuple(sorted(self.main))

    @property
    def euro_numbers(self):
        return tuple(sorted(self.euro))

    def as_dict(self):
        return {
            "source": self.source,
            "numbers": list(self.numbers),
            "euro_numbers": list(self.euro_numbers),
            "main_ranked": list(self.main),
            "euro_ranked": list(self.euro),
        }


def rank_numbers(scores, tiebreak=None):
    """
    Order {number: score} best first.

    Ties go to the higher *tiebreak* value (e.g. long-term frequency), then
    to the lower number, so the order is fully deterministic.
    """
    tiebreak = tiebreak or {}
    return sorted(scores, key=lambda n: (-scores[n], -tiebreak.get(n, 0), n))


def apply_repeat_penalty(scores, latest, factor):
    """Multiply the score of every number in *latest* by *factor*."""
    latest = set(latest)
    return {n: (s * factor if n in latest else s) for n, s in scores.items()}


def make_prediction(main_ranked, euro_ranked, main_scores=None, euro_scores=None, source=""):
    """
    Take the top 5 / top 2 of already ranked candidate lists.

    Raises ValueError when a model cannot fill the ticket; that is a bug in
    the model, never an expected state.
    """
    main = tuple(int(n) for n in list(main_ranked)[:MAIN_PICK])
    euro = tuple(int(n) for n in list(euro_ranked)[:EURO_PICK])

    valid_main, valid_euro = set(pool_numbers("main")), set(pool_numbers("euro"))
    if len(set(main)) != MAIN_PICK or not set(main) <= valid_main:
        raise ValueError(f"{source}: invalid main selection {main}")
    if len(set(euro)) != EURO_PICK or not set(euro) <= valid_euro:
        raise ValueError(f"{source}: invalid euro selection {euro}")
    return Prediction(main, euro, main_scores, euro_scores, source)


def prediction_from_scores(main_scores, euro_scores, source="", main_tiebreak=None, euro_tiebreak=None):
    """Rank two score maps and build the Prediction from their tops."""
    return make_prediction(
        rank_numbers(main_scores, main_tiebreak),
        rank_numbers(euro_scores, euro_tiebreak),
        main_scores,
        euro_scores,
        source,
    )
