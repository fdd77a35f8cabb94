"""
Feed ranker -- orders cleaner videos for a viewer.

Resolution order:

**Server-ranked** (only when the viewer location is known)
    1. Ranked-feed RPC with strict provider qualification
    2. Same RPC including unverified providers (cold start)
    RPC order is authoritative and never re-sorted here.

**Local**
    3. Preference profile + recent content batch (read concurrently),
       interaction history for the batch's providers, then synchronous
       scoring with the selected weight profile.

Every read runs under a timeout; failures are logged and treated as "no
data from this path".  Nothing raises out of ``get_ranked_feed``: total
failure is an empty list.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from config.settings import Settings, get_settings
from core.logging import get_logger
from feed.models import ContentItem, FeedOptions, RankedFeedRow, RankedItem
from feed.preferences import PreferenceProfileBuilder
from feed.store import FeedStore, SupabaseFeedStore, safe_read
from scoring.context import GeoPoint, InteractionHistory, ViewerContext
from scoring.factors import haversine_km
from scoring.scorer import FeedScorer
from scoring.weights import get_weights

logger = get_logger(__name__)


class FeedPath(str, Enum):
    """Which path produced the feed."""
    RPC_STRICT = "rpc_strict"
    RPC_RELAXED = "rpc_relaxed"
    LOCAL = "local"
    EMPTY = "empty"


class RankedFeed(BaseModel):
    items: List[RankedItem]
    path: FeedPath


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedRanker:
    """
    Stateless between calls; safe to share across concurrent requests.
    """

    def __init__(
        self,
        store: FeedStore,
        settings: Optional[Settings] = None,
        scorer: Optional[FeedScorer] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.scorer = scorer or FeedScorer()
        self.clock = clock
        self.timeout = self.settings.feed_read_timeout_seconds
        self.preferences = PreferenceProfileBuilder(
            store,
            history_limit=self.settings.feed_history_limit,
            timeout=self.timeout,
        )

    # ── Public API ────────────────────────────────────────────────

    async def get_ranked_feed(
        self,
        user_id: str,
        viewer_location: Optional[GeoPoint] = None,
        options: Union[FeedOptions, Dict[str, Any], None] = None,
    ) -> List[RankedItem]:
        feed = await self.rank(user_id, viewer_location, options)
        return feed.items

    async def rank(
        self,
        user_id: str,
        viewer_location: Optional[GeoPoint] = None,
        options: Union[FeedOptions, Dict[str, Any], None] = None,
    ) -> RankedFeed:
        options = self._resolve_options(options)
        limit = min(options.limit, self.settings.feed_max_limit)
        if limit <= 0:
            return RankedFeed(items=[], path=FeedPath.EMPTY)

        try:
            feed = await self._rank(user_id, viewer_location, options, limit)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "Feed ranking failed",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            feed = RankedFeed(items=[], path=FeedPath.EMPTY)

        logger.info(
            "Feed served",
            user_id=user_id,
            path=feed.path.value,
            count=len(feed.items),
            limit=limit,
            sort_preference=options.sort_preference.value,
        )
        return feed

    # ── Paths ─────────────────────────────────────────────────────

    async def _rank(
        self,
        user_id: str,
        viewer_location: Optional[GeoPoint],
        options: FeedOptions,
        limit: int,
    ) -> RankedFeed:
        if viewer_location is not None:
            for include_unverified, path in (
                (False, FeedPath.RPC_STRICT),
                (True, FeedPath.RPC_RELAXED),
            ):
                items = await self._rank_remotely(viewer_location, limit, include_unverified)
                if items:
                    return RankedFeed(items=items[:limit], path=path)

        items = await self._rank_locally(user_id, viewer_location, options, limit)
        if items:
            return RankedFeed(items=items, path=FeedPath.LOCAL)
        return RankedFeed(items=[], path=FeedPath.EMPTY)

    async def _rank_remotely(
        self, location: GeoPoint, limit: int, include_unverified: bool,
    ) -> List[RankedItem]:
        rows: List[RankedFeedRow] = await safe_read(
            "ranked_feed_rpc",
            self.store.ranked_feed_rpc(
                location.latitude,
                location.longitude,
                self.settings.feed_radius_km,
                limit,
                include_unverified,
            ),
            self.timeout,
            [],
        )
        if not rows:
            return []

        content_ids = list(dict.fromkeys(row.content_id for row in rows))
        hydrated: List[ContentItem] = await safe_read(
            "fetch_content_by_ids",
            self.store.fetch_content_by_ids(content_ids),
            self.timeout,
            [],
        )
        by_id = {item.id: item for item in hydrated}

        items: List[RankedItem] = []
        seen = set()
        for row in rows:
            item = by_id.get(row.content_id)
            if item is None or row.content_id in seen:
                continue
            seen.add(row.content_id)
            try:
                items.append(_to_ranked(
                    item, row.rank_score, None, distance_km=row.distance_km,
                ))
            except ValidationError as e:
                logger.warning(
                    "Skipping unusable RPC row",
                    content_id=row.content_id,
                    error=str(e),
                )

        if len(items) < len(rows):
            logger.debug(
                "Dropped unhydrated RPC rows",
                rows=len(rows),
                hydrated=len(items),
            )
        return items

    async def _rank_locally(
        self,
        user_id: str,
        viewer_location: Optional[GeoPoint],
        options: FeedOptions,
        limit: int,
    ) -> List[RankedItem]:
        batch_size = limit * self.settings.feed_candidate_multiplier
        profile, candidates = await asyncio.gather(
            self.preferences.build(user_id),
            safe_read(
                "fetch_recent_content",
                self.store.fetch_recent_content(batch_size),
                self.timeout,
                [],
            ),
        )

        candidates = filter_by_services(candidates, options.service_filter)
        if not candidates:
            return []

        provider_ids = list(dict.fromkeys(item.provider.id for item in candidates))
        interactions: InteractionHistory = await safe_read(
            "fetch_interaction_history",
            self.store.fetch_interaction_history(user_id, provider_ids),
            self.timeout,
            InteractionHistory(),
        )

        ctx = ViewerContext(
            user_id=user_id,
            location=viewer_location,
            preferred_services=profile.preferred_services,
            budget_range=options.budget_range or profile.budget_range,
            interactions=interactions,
            now=self.clock(),
        )
        weights = get_weights(options.sort_preference)

        ranked = self.scorer.rank_items(candidates, ctx, weights)
        items = []
        for item, score, factors in ranked[:limit]:
            distance = None
            if viewer_location is not None and item.provider.location is not None:
                distance = haversine_km(viewer_location, item.provider.location)
            items.append(_to_ranked(item, score, factors, distance_km=distance))
        return items

    # ── Helpers ───────────────────────────────────────────────────

    def _resolve_options(self, options: Union[FeedOptions, Dict[str, Any], None]) -> FeedOptions:
        if isinstance(options, FeedOptions):
            return options
        data = {"limit": self.settings.feed_default_limit}
        if options:
            data.update(options)
        try:
            return FeedOptions.model_validate(data)
        except ValidationError as e:
            # Model-level errors (empty loc) come from the budget range check
            invalid = {err["loc"][0] if err["loc"] else "budget_range" for err in e.errors()}
            logger.warning(
                "Ignoring invalid feed options",
                fields=sorted(str(f) for f in invalid),
                error=str(e),
            )
        kept = {key: value for key, value in data.items() if key not in invalid}
        kept.setdefault("limit", self.settings.feed_default_limit)
        try:
            return FeedOptions.model_validate(kept)
        except ValidationError:
            return FeedOptions(limit=self.settings.feed_default_limit)


def filter_by_services(
    items: List[ContentItem], service_filter: Optional[List[str]],
) -> List[ContentItem]:
    """
    Keep items whose provider offers at least one of the requested
    services.  Providers without specialty data are kept.
    """
    wanted = {s.strip().lower() for s in service_filter or [] if s and s.strip()}
    if not wanted:
        return items
    kept = []
    for item in items:
        offered = {s.strip().lower() for s in item.provider.specialties if s}
        if not offered or offered & wanted:
            kept.append(item)
    return kept


def _to_ranked(item: ContentItem, score: float, factors, distance_km: Optional[float] = None) -> RankedItem:
    data = item.model_dump()
    if distance_km is not None:
        data["provider"]["distance_km"] = distance_km
    return RankedItem(**data, ranking_score=score, ranking_factors=factors)


# ── Module-level entry point ──────────────────────────────────────

async def get_ranked_feed(
    user_id: str,
    viewer_location: Optional[GeoPoint] = None,
    options: Union[FeedOptions, Dict[str, Any], None] = None,
    *,
    store: Optional[FeedStore] = None,
    settings: Optional[Settings] = None,
) -> List[RankedItem]:
    """
    Ranked feed for ``user_id``.  Uses the shared Supabase client unless a
    store is supplied.  Never raises for data-path failures.
    """
    settings = settings or get_settings()
    if store is None:
        from config.database import SupabaseClientError, get_supabase_client
        try:
            client = await get_supabase_client(settings)
        except SupabaseClientError as e:
            logger.error("Feed store unavailable", error=str(e))
            return []
        store = SupabaseFeedStore(client, rpc_name=settings.feed_rpc_name)
    return await FeedRanker(store, settings=settings).get_ranked_feed(
        user_id, viewer_location, options,
    )
