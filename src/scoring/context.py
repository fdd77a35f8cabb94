"""
Viewer context dataclasses for feed scoring.

Defines the types every factor function operates on.  A ViewerContext is
built once per feed request by the ranker and passed unchanged to the
scorer for each candidate.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set


class SortPreference(str, Enum):
    """Caller intent selecting the weight profile."""
    BALANCED = "balanced"
    PROXIMITY = "proximity"
    ENGAGEMENT = "engagement"
    PRICE = "price"


@dataclass(frozen=True)
class GeoPoint:
    """WGS84 coordinates in decimal degrees."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class BudgetRange:
    """Hourly budget in whole currency units, inclusive on both ends."""
    min: float
    max: float


@dataclass
class RankingFactors:
    """The eight independent sub-scores, each in [0, 1]."""
    proximity: float
    engagement: float
    recency: float
    personal_interaction: float
    service_relevance: float
    cleaner_rating: float
    availability: float
    price_match: float

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class InteractionHistory:
    """
    What the viewer has done with the candidate providers so far.

    ``booking_ratings`` maps provider id to the rating given on each prior
    booking (None when the booking was never rated).  ``interacted_providers``
    holds providers whose content the viewer liked, viewed or shared.
    """
    booking_ratings: Dict[str, List[Optional[float]]] = field(default_factory=dict)
    interacted_providers: Set[str] = field(default_factory=set)


@dataclass
class ViewerContext:
    """
    Everything about the viewer that scoring needs.  Built once per request.
    """
    user_id: str
    location: Optional[GeoPoint] = None
    preferred_services: List[str] = field(default_factory=list)
    budget_range: Optional[BudgetRange] = None
    interactions: InteractionHistory = field(default_factory=InteractionHistory)
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
