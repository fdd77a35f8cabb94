"""
Feed Scoring Module.

Pure, synchronous scoring for the cleaner video feed: eight factor
functions, the weight profiles that combine them, and the scorer that
applies both to a candidate.

Quick start::

    from scoring import FeedScorer, ViewerContext, get_weights

    ctx = ViewerContext(user_id="abc", location=GeoPoint(37.77, -122.42))
    score, factors = FeedScorer().score_item(item, ctx, get_weights("balanced"))
"""

from scoring.context import (
    BudgetRange,
    GeoPoint,
    InteractionHistory,
    RankingFactors,
    SortPreference,
    ViewerContext,
)
from scoring.constants.factor_thresholds import NEUTRAL_SCORE
from scoring.scorer import FeedScorer
from scoring.weights import WeightProfile, get_weights

__all__ = [
    "BudgetRange",
    "GeoPoint",
    "InteractionHistory",
    "RankingFactors",
    "SortPreference",
    "ViewerContext",
    "NEUTRAL_SCORE",
    "FeedScorer",
    "WeightProfile",
    "get_weights",
]
