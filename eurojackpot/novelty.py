"""
Novelty checks for generated tickets.

A ticket equal to a past draw is a legal outcome of a random process, so it
is reported as a flag, never rejected.
"""
from typing import NamedTuple, Optional

from eurojackpot.draws import euro_matrix, main_matrix

EURO_RECENT_LOOKBACK = 3
MAIN_RECENT_LOOKBACK = 5


class NoveltyResult(NamedTuple):
    exists: bool
    draw_date: Optional[object] = None
    recent_match: Optional[str] = None


def check_novelty(prediction, df) -> NoveltyResult:
    """
    Scan the whole history for a draw with identical main and euro sets.

    ``recent_match`` additionally notes a partial repeat of the newest
    draws: 'euro_last_draw' when the euro pair equals the newest draw's,
    'euro_recent' when it equals one of the newest 3, 'main_recent' when
    the main set equals one of the newest 5.
    """
    main = tuple(sorted(prediction.main))
    euro = tuple(sorted(prediction.euro))
    mains = [tuple(r) for r in main_matrix(df).tolist()]
    euros = [tuple(r) for r in euro_matrix(df).tolist()]

    exists, draw_date = False, None
    for i, (m, e) in enumerate(zip(mains, euros)):
        if m == main and e == euro:
            exists, draw_date = True, df.iloc[i]["date"]
            break

    recent_match = None
    if euros and euros[0] == euro:
        recent_match = "euro_last_draw"
    elif euro in euros[:EURO_RECENT_LOOKBACK]:
        recent_match = "euro_recent"
    elif main in mains[:MAIN_RECENT_LOOKBACK]:
        recent_match = "main_recent"

    return NoveltyResult(exists, draw_date, recent_match)


def ticket_stats(prediction):
    """Sum, odd/even, low/mid/high and decade spread of a ticket's main numbers."""
    numbers = sorted(prediction.main)
    odd = sum(1 for n in numbers if n % 2 == 1)
    low = sum(1 for n in numbers if n <= 17)
    high = sum(1 for n in numbers if n >= 35)

    groups = {}
    for n in numbers:
        lo = (n - 1) // 10 * 10 + 1
        g = f"{lo}-{lo + 9}"
        groups[g] = groups.get(g, 0) + 1

    return {
        "numbers": numbers,
        "euro_numbers": sorted(prediction.euro),
        "sum": sum(numbers),
        "odd": odd,
        "even": len(numbers) - odd,
        "low": low,
        "mid": len(numbers) - low - high,
        "high": high,
        "groups": groups,
    }
