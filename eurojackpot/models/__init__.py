"""
Eurojackpot Prediction Models

Available models:
- weighted_scoring: Multi-factor engine combining normalised analyzer scores
- strategies: Independent heuristic strategies sharing one signature
- ensemble: Rank-weighted vote over all strategies
"""

from . import weighted_scoring
from . import strategies
from . import ensemble

__all__ = [
    "weighted_scoring",
    "strategies",
    "ensemble",
]
