"""
Scoring configuration

Default analyzer weights, repeat penalties and backtest constants. Weights
are relative: a profile does not need to sum to 1.

Main-number weights (profile v1):
- Order pattern:     30%
- Short frequency:   18%
- Medium frequency:  12%
- Momentum:          12%
- Gap / overdue:     10%
- Pattern:            9%
- Long frequency:     6%
- Position entropy:   2%
- Decade cluster:     1%

Euro-number weights (profile v1):
- Order pattern:     30%
- Short frequency:   24%
- Medium frequency:  14%
- Momentum:          12%
- Gap / overdue:     12%
- Long frequency:     8%
"""
import json
from types import MappingProxyType
from typing import Mapping, NamedTuple


MAIN_WEIGHTS = {
    "order_pattern": 0.30,
    "freq_short": 0.18,
    "freq_medium": 0.12,
    "freq_long": 0.06,
    "momentum": 0.12,
    "pattern": 0.09,
    "gap": 0.10,
    "position": 0.02,
    "cluster": 0.01,
}

EURO_WEIGHTS = {
    "order_pattern": 0.30,
    "freq_short": 0.24,
    "freq_medium": 0.14,
    "freq_long": 0.08,
    "momentum": 0.12,
    "gap": 0.12,
}

# Multipliers for numbers present in the newest draw
MAIN_REPEAT_PENALTY = 0.3
EURO_REPEAT_PENALTY = 0.2

# Minimum window the weighted scoring engine accepts
DEFAULT_MIN_HISTORY = 50

# Backtest composite score
MAIN_MATCH_POINTS = 10
EURO_MATCH_POINTS = 5
PROXIMITY_FACTOR = 0.5
# (max distance, points), checked in order
PROXIMITY_BANDS = ((0, 10), (2, 5), (5, 3), (10, 1))


class WeightProfile(NamedTuple):
    """Immutable analyzer -> weight mapping for both pools."""

    name: str
    version: int
    main: Mapping[str, float]
    euro: Mapping[str, float]

    def for_pool(self, pool):
        return self.main if pool == "main" else self.euro


class RepeatPenalty(NamedTuple):
    main: float = MAIN_REPEAT_PENALTY
    euro: float = EURO_REPEAT_PENALTY

    def for_pool(self, pool):
        return self.main if pool == "main" else self.euro


NO_PENALTY = RepeatPenalty(1.0, 1.0)


def make_profile(name, version, main, euro) -> WeightProfile:
    """Validate weights and freeze them into a WeightProfile."""
    for pool, weights in (("main", main), ("euro", euro)):
        for key, w in weights.items():
            if w < 0:
                raise ValueError(f"{pool} weight for {key!r} is negative: {w}")
    return WeightProfile(
        name=name,
        version=int(version),
        main=MappingProxyType({k: float(v) for k, v in main.items()}),
        euro=MappingProxyType({k: float(v) for k, v in euro.items()}),
    )


DEFAULT_PROFILE = make_profile("default", 1, MAIN_WEIGHTS, EURO_WEIGHTS)


def load_weight_profile(path) -> WeightProfile:
    """
    Load a profile from JSON::

        {"name": "...", "version": 2,
         "main": {"freq_short": 0.2, ...}, "euro": {...}}

    Pools missing from the file keep the default weights.
    """
    with open(path, "r") as f:
        data = json.load(f)
    return make_profile(
        data.get("name", "custom"),
        data.get("version", 1),
        data.get("main", MAIN_WEIGHTS),
        data.get("euro", EURO_WEIGHTS),
    )


def profile_to_dict(profile: WeightProfile) -> dict:
    return {
        "name": profile.name,
        "version": profile.version,
        "main": dict(profile.main),
        "euro": dict(profile.euro),
    }
