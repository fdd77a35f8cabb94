"""
Ranked video feed endpoint.

Thin controller over ``feed.ranker.FeedRanker``.  Data-path failures are
never turned into 5xx responses: the ranker degrades to an empty feed,
which clients render as a neutral empty state.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from config.database import SupabaseClientError, get_supabase_client
from config.settings import Settings, get_settings
from core.logging import get_logger
from feed.models import FeedOptions, RankedItem
from feed.ranker import FeedPath, FeedRanker
from feed.store import FeedStore, SupabaseFeedStore
from scoring.context import GeoPoint


logger = get_logger(__name__)

router = APIRouter(prefix="/api/feed", tags=["Feed"])


class FeedResponse(BaseModel):
    user_id: str
    path: FeedPath
    count: int
    items: List[RankedItem]


async def get_feed_store(settings: Settings = Depends(get_settings)) -> Optional[FeedStore]:
    """FastAPI dependency: Supabase-backed store, or None if unconfigured."""
    try:
        client = await get_supabase_client(settings)
    except SupabaseClientError as e:
        logger.error("Feed store unavailable", error=str(e))
        return None
    return SupabaseFeedStore(client, rpc_name=settings.feed_rpc_name)


@router.get("/ranked", response_model=FeedResponse)
async def ranked_feed(
    user_id: str = Query(..., min_length=1, description="Viewer id"),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    limit: Optional[int] = Query(default=None, ge=1, description="Defaults to FEED_DEFAULT_LIMIT, capped at FEED_MAX_LIMIT"),
    sort: str = Query(default="balanced", description="balanced | proximity | engagement | price"),
    services: Optional[List[str]] = Query(default=None, description="Only providers offering these services"),
    budget_min: Optional[float] = Query(default=None, ge=0),
    budget_max: Optional[float] = Query(default=None, ge=0),
    store: Optional[FeedStore] = Depends(get_feed_store),
    settings: Settings = Depends(get_settings),
) -> FeedResponse:
    """
    Ranked cleaner videos for a viewer.

    ``lat`` and ``lng`` must both be present to enable server-side
    proximity ranking; a partial pair is ignored.
    """
    budget = None
    if budget_min is not None and budget_max is not None:
        if budget_min > budget_max:
            raise HTTPException(status_code=422, detail="budget_min must not exceed budget_max")
        budget = {"min": budget_min, "max": budget_max}

    if store is None:
        return FeedResponse(user_id=user_id, path=FeedPath.EMPTY, count=0, items=[])

    location = GeoPoint(latitude=lat, longitude=lng) if lat is not None and lng is not None else None
    options = FeedOptions(
        limit=limit or settings.feed_default_limit,
        sort_preference=sort,
        service_filter=services,
        budget_range=budget,
    )

    feed = await FeedRanker(store, settings=settings).rank(user_id, location, options)
    return FeedResponse(
        user_id=user_id,
        path=feed.path,
        count=len(feed.items),
        items=feed.items,
    )
