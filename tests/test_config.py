"""
Tests for weight profiles and repeat penalties.
"""
import json

import pytest

from eurojackpot.analysis import ANALYZERS
from eurojackpot.config import (
    DEFAULT_PROFILE,
    EURO_WEIGHTS,
    MAIN_WEIGHTS,
    NO_PENALTY,
    RepeatPenalty,
    load_weight_profile,
    make_profile,
    profile_to_dict,
)


class TestWeightProfile:

    def test_default_weights(self):
        assert sum(MAIN_WEIGHTS.values()) == pytest.approx(1.0)
        assert sum(EURO_WEIGHTS.values()) == pytest.approx(1.0)
        assert set(MAIN_WEIGHTS) <= set(ANALYZERS)
        assert dict(DEFAULT_PROFILE.for_pool("euro")) == EURO_WEIGHTS

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            make_profile("bad", 1, {"gap": -0.1}, {})

    def test_profile_is_immutable(self):
        with pytest.raises(TypeError):
            DEFAULT_PROFILE.main["gap"] = 1.0

    def test_make_profile_copies_input(self):
        weights = {"gap": 1.0}
        profile = make_profile("gap", 2, weights, weights)
        weights["gap"] = 5.0
        assert profile.main["gap"] == 1.0

    def test_load_from_json(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({"name": "tuned", "version": 3, "main": {"gap": 0.7, "cluster": 0.3}}))
        profile = load_weight_profile(str(path))
        assert (profile.name, profile.version) == ("tuned", 3)
        assert dict(profile.main) == {"gap": 0.7, "cluster": 0.3}
        assert dict(profile.euro) == EURO_WEIGHTS

    def test_profile_to_dict(self):
        data = profile_to_dict(DEFAULT_PROFILE)
        assert data["name"] == "default"
        assert data["main"] == MAIN_WEIGHTS
        json.dumps(data)


class TestRepeatPenalty:

    def test_defaults(self):
        penalty = RepeatPenalty()
        assert penalty.for_pool("main") == 0.3
        assert penalty.for_pool("euro") == 0.2
        assert NO_PENALTY.for_pool("main") == NO_PENALTY.for_pool("euro") == 1.0
