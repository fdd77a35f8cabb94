"""
FeedScorer -- combines the eight factor functions into one ranking score.

Usage::

    from scoring.scorer import FeedScorer
    from scoring.weights import get_weights

    scorer = FeedScorer()
    weights = get_weights("proximity")

    score, factors = scorer.score_item(item, ctx, weights)

    # Batch, stable-sorted descending
    ranked = scorer.rank_items(items, ctx, weights)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

from scoring.context import RankingFactors, ViewerContext
from scoring.factors import (
    availability_score,
    engagement_score,
    personal_interaction_score,
    price_match_score,
    proximity_score,
    rating_score,
    recency_score,
    service_relevance_score,
)
from scoring.weights import WeightProfile

if TYPE_CHECKING:
    from feed.models import ContentItem


class FeedScorer:
    """
    Computes factor breakdowns and weighted scores for content items.

    Stateless and synchronous: everything it needs is already on the item
    or the ViewerContext.
    """

    def compute_factors(self, item: ContentItem, ctx: ViewerContext) -> RankingFactors:
        provider = item.provider
        return RankingFactors(
            proximity=proximity_score(ctx.location, provider.location),
            engagement=engagement_score(
                item.view_count, item.like_count, item.comment_count,
            ),
            recency=recency_score(item.created_at, ctx.now),
            personal_interaction=personal_interaction_score(
                provider.id, ctx.interactions,
            ),
            service_relevance=service_relevance_score(
                provider.specialties, ctx.preferred_services,
            ),
            cleaner_rating=rating_score(provider.rating_average),
            availability=availability_score(provider.is_available),
            price_match=price_match_score(provider.hourly_rate, ctx.budget_range),
        )

    def score_item(
        self, item: ContentItem, ctx: ViewerContext, weights: WeightProfile,
    ) -> Tuple[float, RankingFactors]:
        factors = self.compute_factors(item, ctx)
        return weights.combine(factors), factors

    def rank_items(
        self,
        items: List[ContentItem],
        ctx: ViewerContext,
        weights: WeightProfile,
    ) -> List[Tuple[ContentItem, float, RankingFactors]]:
        """
        Score every item and sort descending by score.

        Python's sort is stable, so equal scores keep the input order.
        """
        scored = []
        for item in items:
            score, factors = self.score_item(item, ctx, weights)
            scored.append((item, score, factors))
        scored.sort(key=lambda entry: entry[1], reverse=True)
        return scored

    def explain_item(
        self, item: ContentItem, ctx: ViewerContext, weights: WeightProfile,
    ) -> dict:
        """
        Return detailed breakdown of scoring for debugging / admin UI.
        """
        factors = self.compute_factors(item, ctx).as_dict()
        weight_map = weights.as_dict()
        contributions = {
            name: round(factors[name] * weight, 4)
            for name, weight in weight_map.items()
        }
        return {
            "profile": weights.name,
            "factors": {name: round(value, 4) for name, value in factors.items()},
            "weights": weight_map,
            "contributions": contributions,
            "total": round(weights.combine(RankingFactors(**factors)), 4),
        }
