"""Shared fixtures: synthetic newest-first histories."""
import numpy as np
import pandas as pd
import pytest

from eurojackpot.draws import ALL_EURO, Draw, draws_to_frame, generate_synthetic_data


def make_history(tickets, end="2024-12-27"):
    """
    Build a history from [(main, euro), ...] given newest first.
    Dates are three days apart ending at *end*.
    """
    dates = pd.date_range(end=end, periods=len(tickets), freq="3D")[::-1]
    draws = [
        Draw(d.date(), tuple(sorted(main)), tuple(sorted(euro)))
        for d, (main, euro) in zip(dates, tickets)
    ]
    return draws_to_frame(draws)


def make_forced_seven_history(n_draws=60, seed=11):
    """
    Draw 0 is {1,2,3,4,5} + {1,2}; every older draw contains 7 plus four
    random main numbers.
    """
    rng = np.random.default_rng(seed)
    others = [n for n in range(1, 51) if n != 7]
    tickets = [((1, 2, 3, 4, 5), (1, 2))]
    for _ in range(n_draws - 1):
        main = [7] + [int(n) for n in rng.choice(others, size=4, replace=False)]
        euro = [int(n) for n in rng.choice(ALL_EURO, size=2, replace=False)]
        tickets.append((main, euro))
    return make_history(tickets)


@pytest.fixture
def history():
    return generate_synthetic_data(120, seed=7)


@pytest.fixture
def short_history():
    return generate_synthetic_data(12, seed=3)


@pytest.fixture
def forced_seven():
    return make_forced_seven_history()
