"""
Pydantic models for the feed ranking pipeline.

These are the read-boundary contracts: every row coming back from the
store is validated into one of these before the ranker touches it.
Values the factor functions can absorb (ratings above 5, odd rates,
unusable coordinates or distances) are passed through or blanked, never
rejected: a quirky row must not take a post out of the feed.

Models cover:
- Provider and content snapshots (joined at read time)
- Remote ranked-feed rows
- Booking history and the derived preference profile
- Feed request options and the ranked output item
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from scoring.context import BudgetRange, GeoPoint, RankingFactors, SortPreference
from scoring.weights import resolve_sort_preference

COORDINATE_LIMITS = {"latitude": 90.0, "longitude": 180.0}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _finite_or_none(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _distance_or_none(value: Any) -> Optional[float]:
    """Negative or non-numeric distances read as unknown."""
    distance = _finite_or_none(value)
    if distance is None or distance < 0:
        return None
    return distance


# =============================================================================
# Snapshots
# =============================================================================

class Provider(BaseModel):
    """Cleaner profile joined onto each content item."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = "Provider"
    avatar_url: str = ""
    # Unbounded: rating_score / price_match_score clamp or neutralise
    rating_average: Optional[float] = None
    total_jobs: int = Field(default=0, ge=0)
    hourly_rate: Optional[float] = None
    is_available: bool = True
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    specialties: List[str] = Field(default_factory=list)
    distance_km: Optional[float] = Field(default=None, ge=0)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _unusable_coordinate_is_absent(cls, v, info: ValidationInfo):
        value = _finite_or_none(v)
        if value is None or abs(value) > COORDINATE_LIMITS[info.field_name]:
            return None
        return value

    @field_validator("distance_km", mode="before")
    @classmethod
    def _unusable_distance_is_absent(cls, v):
        return _distance_or_none(v)

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, v):
        return v or "Provider"

    @field_validator("avatar_url", mode="before")
    @classmethod
    def _default_avatar(cls, v):
        return v or ""

    @field_validator("total_jobs", mode="before")
    @classmethod
    def _default_jobs(cls, v):
        return 0 if v is None else v

    @field_validator("is_available", mode="before")
    @classmethod
    def _default_available(cls, v):
        return True if v is None else v

    @field_validator("specialties", mode="before")
    @classmethod
    def _default_specialties(cls, v):
        return v or []

    @property
    def location(self) -> Optional[GeoPoint]:
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class ContentItem(BaseModel):
    """A cleaner video post plus its owning provider."""
    model_config = ConfigDict(extra="ignore")

    id: str
    provider_id: str
    title: str = ""
    description: str = ""
    media_url: str = ""
    thumbnail_url: str = ""

    # Package pricing (only meaningful when is_bookable)
    package_type: Optional[Literal["fixed", "estimate", "hourly"]] = None
    base_price_cents: Optional[int] = Field(default=None, ge=0)
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    is_bookable: Optional[bool] = None

    view_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=_utcnow)
    provider: Provider

    @field_validator("title", "description", "media_url", "thumbnail_url", mode="before")
    @classmethod
    def _default_text(cls, v):
        return v or ""

    @field_validator("view_count", "like_count", "comment_count", mode="before")
    @classmethod
    def _default_counter(cls, v):
        return 0 if v is None else v

    @field_validator("created_at", mode="before")
    @classmethod
    def _default_created(cls, v):
        return v or _utcnow()


class RankedItem(ContentItem):
    """
    A content item with its ranking score.

    ``ranking_factors`` is None for items ranked remotely; the RPC only
    returns the final score.
    """
    ranking_score: float
    ranking_factors: Optional[RankingFactors] = None


# =============================================================================
# Store rows
# =============================================================================

class RankedFeedRow(BaseModel):
    """One row of the remote ranked-feed function, in rank order."""
    model_config = ConfigDict(extra="ignore")

    content_id: str
    rank_score: float = 0.0
    distance_km: Optional[float] = None

    @field_validator("rank_score", mode="before")
    @classmethod
    def _default_score(cls, v):
        return 0.0 if v is None else v

    @field_validator("distance_km", mode="before")
    @classmethod
    def _unusable_distance_is_absent(cls, v):
        return _distance_or_none(v)


class BookingRecord(BaseModel):
    """A past booking as far as preference building cares."""
    model_config = ConfigDict(extra="ignore")

    service_type: Optional[str] = None
    rating_given: Optional[float] = None


# =============================================================================
# Viewer profile
# =============================================================================

class UserPreferenceProfile(BaseModel):
    """Derived per request from booking history, never persisted."""
    preferred_services: List[str] = Field(default_factory=list)
    booking_count: int = 0
    budget_range: Optional[BudgetRange] = None
    profile: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Request
# =============================================================================

class FeedOptions(BaseModel):
    """Caller options for a ranked feed request."""
    limit: int = 20
    sort_preference: SortPreference = SortPreference.BALANCED
    service_filter: Optional[List[str]] = None
    budget_range: Optional[BudgetRange] = None

    @field_validator("sort_preference", mode="before")
    @classmethod
    def _resolve_sort(cls, v):
        return resolve_sort_preference(v)

    @model_validator(mode="after")
    def _check_budget(self):
        budget = self.budget_range
        if budget is not None and budget.min > budget.max:
            raise ValueError("budget_range.min must not exceed budget_range.max")
        return self
