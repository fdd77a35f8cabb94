"""
Feed ranking factor functions.

Eight pure functions, one per ranking dimension.  Each returns a float in
``[0, 1]`` and never raises on missing data: absent inputs fall back to
``NEUTRAL_SCORE`` (or the factor's documented fixed value).

Degrades gracefully:
- No viewer location or provider coordinates -> proximity neutral
- No specialties or no preferred services -> relevance neutral
- No rating -> rating neutral
- No budget or no hourly rate -> price neutral
"""

import math
from datetime import datetime, timezone
from typing import Iterable, Optional

from scoring.context import BudgetRange, GeoPoint, InteractionHistory
from scoring.constants.factor_thresholds import (
    AVAILABLE_SCORE,
    COMMENT_RATE_WEIGHT,
    CONTENT_INTERACTION_SCORE,
    EARTH_RADIUS_KM,
    ENGAGEMENT_RATE_CEILING,
    IN_BUDGET_SCORE,
    LIKE_RATE_WEIGHT,
    MAX_RATING,
    NEUTRAL_SCORE,
    OVER_BUDGET_PENALTY,
    PROXIMITY_MAX_DISTANCE_KM,
    RECENCY_FLOOR,
    RECENCY_STEPS,
    UNAVAILABLE_SCORE,
    UNDER_BUDGET_SCORE,
)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


# ── Factors ───────────────────────────────────────────────────────

def proximity_score(
    viewer: Optional[GeoPoint], provider: Optional[GeoPoint],
) -> float:
    """1.0 at 0 km falling linearly to 0.0 at 50 km and beyond."""
    if viewer is None or provider is None:
        return NEUTRAL_SCORE
    distance = haversine_km(viewer, provider)
    return clamp((PROXIMITY_MAX_DISTANCE_KM - distance) / PROXIMITY_MAX_DISTANCE_KM)


def engagement_score(view_count: int, like_count: int, comment_count: int) -> float:
    """
    Blended like/comment rate per view, normalised so that a 10% blended
    rate (or better) scores 1.0.
    """
    if view_count <= 0:
        return 0.0
    like_rate = like_count / view_count
    comment_rate = comment_count / view_count
    blended = like_rate * LIKE_RATE_WEIGHT + comment_rate * COMMENT_RATE_WEIGHT
    return clamp(blended / ENGAGEMENT_RATE_CEILING)


def recency_score(created_at: datetime, now: Optional[datetime] = None) -> float:
    """Step function over content age: 1 day / 1 week / 1 month / older."""
    now = _as_utc(now or datetime.now(timezone.utc))
    hours = (now - _as_utc(created_at)).total_seconds() / 3600.0
    for max_hours, score in RECENCY_STEPS:
        if hours <= max_hours:
            return score
    return RECENCY_FLOOR


def personal_interaction_score(provider_id: str, history: InteractionHistory) -> float:
    """
    Prior bookings dominate: the average rating the viewer gave this
    provider (unrated bookings count as 0), scaled to [0, 1].  Without
    bookings, any content interaction earns a flat 0.3.
    """
    ratings = history.booking_ratings.get(provider_id)
    if ratings:
        average = sum(r or 0.0 for r in ratings) / len(ratings)
        return clamp(average / MAX_RATING)
    if provider_id in history.interacted_providers:
        return CONTENT_INTERACTION_SCORE
    return 0.0


def service_relevance_score(
    specialties: Iterable[str], preferred_services: Iterable[str],
) -> float:
    """Share of the viewer's preferred services the provider covers."""
    offered = _normalize_tags(specialties)
    preferred = _normalize_tags(preferred_services)
    if not offered or not preferred:
        return NEUTRAL_SCORE
    return clamp(len(offered & preferred) / max(len(preferred), 1))


def rating_score(rating_average: Optional[float]) -> float:
    # 0 is what an unrated provider carries, so it reads as "no rating"
    if not rating_average or rating_average < 0:
        return NEUTRAL_SCORE
    return clamp(rating_average / MAX_RATING)


def availability_score(is_available: bool) -> float:
    return AVAILABLE_SCORE if is_available else UNAVAILABLE_SCORE


def price_match_score(
    hourly_rate: Optional[float], budget: Optional[BudgetRange],
) -> float:
    """
    In budget -> 1.0, under budget -> 0.8, over budget -> penalty that
    doubles the fractional overage, floored at 0.
    """
    if budget is None or not hourly_rate or hourly_rate < 0:
        return NEUTRAL_SCORE
    if budget.min <= hourly_rate <= budget.max:
        return IN_BUDGET_SCORE
    if hourly_rate < budget.min:
        return UNDER_BUDGET_SCORE
    if budget.max <= 0:
        return 0.0
    overage = (hourly_rate - budget.max) / budget.max
    return clamp(1.0 - overage * OVER_BUDGET_PENALTY)


# ── Helpers ───────────────────────────────────────────────────────

def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the database are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize_tags(tags: Optional[Iterable[str]]) -> set:
    if not tags:
        return set()
    return {t.strip().lower() for t in tags if isinstance(t, str) and t.strip()}
