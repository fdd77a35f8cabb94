"""
Feed data access.

``FeedStore`` is the read-only contract the ranker depends on.
``SupabaseFeedStore`` implements it over the Supabase async client:

- ``get_ranked_cleaner_feed`` RPC for the server-ranked candidate list
- ``content_posts`` joined to ``users`` / ``cleaner_profiles`` for hydration
- ``bookings``, ``customer_profiles`` and ``content_interactions`` for the
  viewer's history

Every row is validated into a ``feed.models`` type here.  Transport and
schema failures surface as ``FeedStoreError``; a single malformed row in
an otherwise good batch is skipped with a warning.
"""

import asyncio
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Protocol, Sequence, TypeVar

from pydantic import ValidationError
from supabase import AsyncClient

from core.logging import get_logger
from feed.models import BookingRecord, ContentItem, Provider, RankedFeedRow
from scoring.context import InteractionHistory

logger = get_logger(__name__)

T = TypeVar("T")


class FeedStoreError(Exception):
    """Raised when a feed read fails (transport error or bad response shape)."""
    pass


CONTENT_SELECT = """
    id,
    user_id,
    title,
    description,
    media_url,
    thumbnail_url,
    view_count,
    like_count,
    comment_count,
    created_at,
    base_price_cents,
    package_type,
    is_bookable,
    estimated_hours,
    cleaner:users!content_posts_user_id_fkey!inner(
        id,
        name,
        avatar_url,
        role,
        cleaner_profiles(
            rating_average,
            hourly_rate,
            is_available,
            total_jobs,
            specialties,
            latitude,
            longitude
        )
    )
"""


class FeedStore(Protocol):
    """Read operations the feed ranker needs.  Implementations never write."""

    async def ranked_feed_rpc(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        limit: int,
        include_unverified: bool,
    ) -> List[RankedFeedRow]: ...

    async def fetch_content_by_ids(self, content_ids: Sequence[str]) -> List[ContentItem]: ...

    async def fetch_recent_content(self, limit: int) -> List[ContentItem]: ...

    async def fetch_booking_history(self, user_id: str, limit: int = 10) -> List[BookingRecord]: ...

    async def fetch_customer_profile(self, user_id: str) -> Optional[Dict[str, Any]]: ...

    async def fetch_interaction_history(
        self, user_id: str, provider_ids: Sequence[str],
    ) -> InteractionHistory: ...


# =============================================================================
# Row mapping (pure, no I/O)
# =============================================================================

def _first(value: Any) -> Dict[str, Any]:
    """PostgREST embeds one-to-one relations as an object or a 1-element list."""
    if isinstance(value, list):
        return value[0] if value else {}
    return value or {}


def provider_from_row(user: Dict[str, Any], distance_km: Optional[float] = None) -> Provider:
    profile = _first(user.get("cleaner_profiles"))
    return Provider(
        id=user["id"],
        name=user.get("name"),
        avatar_url=user.get("avatar_url"),
        rating_average=profile.get("rating_average"),
        total_jobs=profile.get("total_jobs"),
        hourly_rate=profile.get("hourly_rate"),
        is_available=profile.get("is_available"),
        latitude=profile.get("latitude"),
        longitude=profile.get("longitude"),
        specialties=profile.get("specialties"),
        distance_km=distance_km,
    )


def content_item_from_row(row: Dict[str, Any], distance_km: Optional[float] = None) -> ContentItem:
    """
    Build a ContentItem from a ``content_posts`` row with the embedded
    ``cleaner`` relation.  Raises ValidationError / KeyError on bad shapes.
    """
    user = _first(row.get("cleaner")) or {"id": row["user_id"]}
    return ContentItem(
        id=row["id"],
        provider_id=row.get("user_id") or user["id"],
        title=row.get("title"),
        description=row.get("description"),
        media_url=row.get("media_url"),
        thumbnail_url=row.get("thumbnail_url"),
        package_type=row.get("package_type"),
        base_price_cents=row.get("base_price_cents"),
        estimated_hours=row.get("estimated_hours"),
        is_bookable=row.get("is_bookable"),
        view_count=row.get("view_count"),
        like_count=row.get("like_count"),
        comment_count=row.get("comment_count"),
        created_at=row.get("created_at"),
        provider=provider_from_row(user, distance_km),
    )


def _map_rows(rows: Iterable[Dict[str, Any]], mapper, kind: str) -> list:
    mapped = []
    for row in rows:
        try:
            mapped.append(mapper(row))
        except (ValidationError, KeyError, TypeError) as e:
            logger.warning(
                "Skipping malformed row",
                kind=kind,
                row_id=row.get("id") if isinstance(row, dict) else None,
                error=str(e),
            )
    return mapped


# =============================================================================
# Supabase implementation
# =============================================================================

class SupabaseFeedStore:
    """FeedStore backed by the Supabase async client."""

    def __init__(self, client: AsyncClient, rpc_name: str = "get_ranked_cleaner_feed"):
        self.client = client
        self.rpc_name = rpc_name

    async def _execute(self, operation: str, query) -> List[Dict[str, Any]]:
        try:
            response = await query.execute()
        except Exception as e:
            raise FeedStoreError(f"{operation} failed: {e}") from e
        data = response.data
        if data is None:
            return []
        if not isinstance(data, list):
            raise FeedStoreError(f"{operation} returned {type(data).__name__}, expected list")
        return data

    async def ranked_feed_rpc(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        limit: int,
        include_unverified: bool,
    ) -> List[RankedFeedRow]:
        rows = await self._execute(
            "ranked_feed_rpc",
            self.client.rpc(self.rpc_name, {
                "p_lat": latitude,
                "p_lng": longitude,
                "p_radius_km": radius_km,
                "p_limit": limit,
                "p_include_unverified": include_unverified,
            }),
        )
        return _map_rows(rows, RankedFeedRow.model_validate, "ranked_feed_row")

    async def fetch_content_by_ids(self, content_ids: Sequence[str]) -> List[ContentItem]:
        if not content_ids:
            return []
        rows = await self._execute(
            "fetch_content_by_ids",
            self.client.table("content_posts")
            .select(CONTENT_SELECT)
            .in_("id", list(content_ids)),
        )
        return _map_rows(rows, content_item_from_row, "content_post")

    async def fetch_recent_content(self, limit: int) -> List[ContentItem]:
        rows = await self._execute(
            "fetch_recent_content",
            self.client.table("content_posts")
            .select(CONTENT_SELECT)
            .eq("cleaner.role", "cleaner")
            .order("created_at", desc=True)
            .limit(limit),
        )
        return _map_rows(rows, content_item_from_row, "content_post")

    async def fetch_booking_history(self, user_id: str, limit: int = 10) -> List[BookingRecord]:
        rows = await self._execute(
            "fetch_booking_history",
            self.client.table("bookings")
            .select("service_type, rating_given")
            .eq("customer_id", user_id)
            .order("created_at", desc=True)
            .limit(limit),
        )
        return _map_rows(rows, BookingRecord.model_validate, "booking")

    async def fetch_customer_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._execute(
            "fetch_customer_profile",
            self.client.table("customer_profiles")
            .select("*")
            .eq("user_id", user_id)
            .limit(1),
        )
        return rows[0] if rows else None

    async def fetch_interaction_history(
        self, user_id: str, provider_ids: Sequence[str],
    ) -> InteractionHistory:
        history = InteractionHistory()
        if not provider_ids:
            return history
        ids = list(provider_ids)

        bookings = await self._execute(
            "fetch_provider_bookings",
            self.client.table("bookings")
            .select("cleaner_id, rating_given")
            .eq("customer_id", user_id)
            .eq("status", "completed")
            .in_("cleaner_id", ids),
        )
        for row in bookings:
            cleaner_id = row.get("cleaner_id")
            if cleaner_id:
                history.booking_ratings.setdefault(cleaner_id, []).append(row.get("rating_given"))

        interactions = await self._execute(
            "fetch_content_interactions",
            self.client.table("content_interactions")
            .select("content_post_id, post:content_posts!inner(user_id)")
            .eq("user_id", user_id)
            .in_("post.user_id", ids),
        )
        for row in interactions:
            owner = _first(row.get("post")).get("user_id")
            if owner:
                history.interacted_providers.add(owner)

        return history


# =============================================================================
# Guarded reads
# =============================================================================

async def safe_read(operation: str, awaitable: Awaitable[T], timeout: float, default: T) -> T:
    """
    Await a store read under a timeout, logging and returning ``default``
    on any failure.  Cancellation is not swallowed.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Feed read timed out", operation=operation, timeout_s=timeout)
    except Exception as e:
        logger.warning(
            "Feed read failed",
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
        )
    return default
