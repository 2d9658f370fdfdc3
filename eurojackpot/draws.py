"""
Eurojackpot Draw History

Draw records, ingestion-time validation and the DataFrame layout every
analyzer and model in this package reads.

History layout:
    date, n1-n5 (main numbers, ascending), e1-e2 (euro numbers, ascending)

Rows are ordered newest first: row 0 is the most recent draw. Main numbers
range 1-50, euro numbers 1-12.
"""
import os
from datetime import date, timedelta
from typing import NamedTuple, Tuple

import numpy as np
import pandas as pd
from loguru import logger

DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
CSV_PATH = os.path.join(DATA_DIR, "eurojackpot_results.csv")

MAIN_POOL = 50
EURO_POOL = 12
MAIN_PICK = 5
EURO_PICK = 2

MAIN_COLS = [f"n{i}" for i in range(1, MAIN_PICK + 1)]
EURO_COLS = [f"e{i}" for i in range(1, EURO_PICK + 1)]
COLUMNS = ["date"] + MAIN_COLS + EURO_COLS

ALL_MAIN = list(range(1, MAIN_POOL + 1))
ALL_EURO = list(range(1, EURO_POOL + 1))


class InvalidDraw(ValueError):
    """A draw breaks the uniqueness or range rules of its pool."""


class InsufficientHistory(Exception):
    """Fewer draws are available than a computation requires."""

    def __init__(self, available, required):
        self.available = available
        self.required = required
        super().__init__(
            f"need at least {required} draws of history, got {available}"
        )


class Draw(NamedTuple):
    """One historical result. Both number tuples are stored ascending."""

    date: date
    numbers: Tuple[int, ...]
    euro_numbers: Tuple[int, ...]


def _check_pool(values, pick, pool, label):
    if len(values) != pick:
        raise InvalidDraw(f"{label}: expected {pick} numbers, got {len(values)}")
    if len(set(values)) != pick:
        raise InvalidDraw(f"{label}: duplicate numbers in {sorted(values)}")
    for n in values:
        if not 1 <= n <= pool:
            raise InvalidDraw(f"{label}: {n} outside 1-{pool}")


def validate_draw(draw_date, numbers, euro_numbers) -> Draw:
    """Build a Draw, rejecting anything outside the pool rules."""
    try:
        main = [int(n) for n in numbers]
        euro = [int(n) for n in euro_numbers]
    except (TypeError, ValueError) as e:
        raise InvalidDraw(f"non-integer number in draw {draw_date}: {e}") from e

    _check_pool(main, MAIN_PICK, MAIN_POOL, "main numbers")
    _check_pool(euro, EURO_PICK, EURO_POOL, "euro numbers")

    if draw_date is None or pd.isna(draw_date):
        raise InvalidDraw("draw has no date")
    draw_date = pd.Timestamp(draw_date).date()
    return Draw(draw_date, tuple(sorted(main)), tuple(sorted(euro)))


def draws_to_frame(draws) -> pd.DataFrame:
    """
    Convert an iterable of Draw records into the history DataFrame.

    Draws may arrive in any order; the result is sorted newest first.
    Duplicate dates are rejected.
    """
    rows = []
    for d in draws:
        d = validate_draw(d.date, d.numbers, d.euro_numbers)
        rows.append([pd.Timestamp(d.date), *d.numbers, *d.euro_numbers])

    df = pd.DataFrame(rows, columns=COLUMNS)
    return _finalize_frame(df)


def frame_to_draws(df: pd.DataFrame) -> list:
    """Return the rows of a history DataFrame as Draw records, in row order."""
    main = df[MAIN_COLS].to_numpy(dtype=int)
    euro = df[EURO_COLS].to_numpy(dtype=int)
    dates = pd.to_datetime(df["date"])
    return [
        Draw(ts.date(), tuple(int(n) for n in m), tuple(int(n) for n in e))
        for ts, m, e in zip(dates, main, euro)
    ]


def row_to_draw(df: pd.DataFrame, idx: int) -> Draw:
    """Return row *idx* of a history DataFrame as a Draw."""
    row = df.iloc[idx]
    return Draw(
        pd.Timestamp(row["date"]).date(),
        tuple(int(row[c]) for c in MAIN_COLS),
        tuple(int(row[c]) for c in EURO_COLS),
    )


def _finalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    df["date"] = pd.to_datetime(df["date"])
    if df["date"].duplicated().any():
        dupes = df.loc[df["date"].duplicated(), "date"].dt.date.tolist()
        raise InvalidDraw(f"duplicate draw dates: {dupes}")
    df = df.sort_values("date", ascending=False).reset_index(drop=True)
    for col in MAIN_COLS + EURO_COLS:
        df[col] = df[col].astype(int)
    return df


def load_data(path=CSV_PATH) -> pd.DataFrame:
    """
    Load and validate a draw history CSV.

    The file needs a ``date`` column plus five main and two euro number
    columns (``n1``-``n5``, ``e1``-``e2``). Every row is validated; the first
    bad row raises InvalidDraw naming its line.
    """
    raw = pd.read_csv(path)
    missing = [c for c in COLUMNS if c not in raw.columns]
    if missing:
        raise InvalidDraw(f"{path}: missing columns {missing}")

    rows = []
    for idx, row in raw.iterrows():
        try:
            d = validate_draw(
                row["date"],
                [row[c] for c in MAIN_COLS],
                [row[c] for c in EURO_COLS],
            )
        except InvalidDraw as e:
            raise InvalidDraw(f"{path}, row {idx + 2}: {e}") from e
        rows.append([pd.Timestamp(d.date), *d.numbers, *d.euro_numbers])

    df = _finalize_frame(pd.DataFrame(rows, columns=COLUMNS))
    logger.info(f"[Draws] Loaded {len(df)} draws from {path}")
    if len(df):
        logger.info(
            f"[Draws] Date range: {df['date'].min().date()} to {df['date'].max().date()}"
        )
    return df


def save_data(df: pd.DataFrame, path=CSV_PATH):
    """Write a history DataFrame back to CSV."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    out = df[COLUMNS].copy()
    out["date"] = pd.to_datetime(out["date"]).dt.strftime("%Y-%m-%d")
    out.to_csv(path, index=False)
    logger.info(f"[Draws] Saved {len(out)} draws to {path}")


def generate_synthetic_data(n_draws, seed=42, end_date=None) -> pd.DataFrame:
    """
    Generate a valid synthetic history of *n_draws* draws.

    Draws fall on Tuesdays and Fridays counting back from *end_date*
    (default 2024-12-27). Numbers are sampled uniformly without
    replacement from a seeded generator, so the same seed always yields the
    same history.
    """
    rng = np.random.default_rng(seed)
    if end_date is None:
        end_date = date(2024, 12, 27)

    dates = []
    current = pd.Timestamp(end_date).date()
    while len(dates) < n_draws:
        # Tuesday (1) and Friday (4)
        if current.weekday() in (1, 4):
            dates.append(current)
        current -= timedelta(days=1)

    rows = []
    for d in dates:
        main = sorted(int(n) for n in rng.choice(ALL_MAIN, size=MAIN_PICK, replace=False))
        euro = sorted(int(n) for n in rng.choice(ALL_EURO, size=EURO_PICK, replace=False))
        rows.append([pd.Timestamp(d), *main, *euro])

    return _finalize_frame(pd.DataFrame(rows, columns=COLUMNS))


# ---------------------------------------------------------------------------
# Array views used by the analyzers
# ---------------------------------------------------------------------------

def main_matrix(df: pd.DataFrame) -> np.ndarray:
    """(n_draws, 5) int array of main numbers, rows newest first, ascending."""
    return np.sort(df[MAIN_COLS].to_numpy(dtype=int), axis=1)


def euro_matrix(df: pd.DataFrame) -> np.ndarray:
    """(n_draws, 2) int array of euro numbers, rows newest first, ascending."""
    return np.sort(df[EURO_COLS].to_numpy(dtype=int), axis=1)


def pool_matrix(df: pd.DataFrame, pool: str) -> np.ndarray:
    if pool == "main":
        return main_matrix(df)
    if pool == "euro":
        return euro_matrix(df)
    raise ValueError(f"unknown pool {pool!r}")


def pool_numbers(pool: str) -> list:
    return ALL_MAIN if pool == "main" else ALL_EURO


def pool_pick(pool: str) -> int:
    return MAIN_PICK if pool == "main" else EURO_PICK


def pool_size(pool: str) -> int:
    return MAIN_POOL if pool == "main" else EURO_POOL


def presence_matrix(matrix: np.ndarray, pool_size_: int) -> np.ndarray:
    """
    Boolean (n_draws, pool_size + 1) array; ``P[i, n]`` is True when number
    *n* was drawn in row *i*. Column 0 is unused so numbers index directly.
    """
    presence = np.zeros((matrix.shape[0], pool_size_ + 1), dtype=bool)
    if matrix.size:
        rows = np.repeat(np.arange(matrix.shape[0]), matrix.shape[1])
        presence[rows, matrix.ravel()] = True
    return presence
