"""
Cleaner video feed ranking.

    from feed import get_ranked_feed, FeedOptions
    from scoring import GeoPoint

    items = await get_ranked_feed(
        user_id,
        GeoPoint(37.7749, -122.4194),
        FeedOptions(limit=20, sort_preference="proximity"),
    )
"""

from feed.models import (
    BookingRecord,
    ContentItem,
    FeedOptions,
    Provider,
    RankedFeedRow,
    RankedItem,
    UserPreferenceProfile,
)
from feed.preferences import PreferenceProfileBuilder
from feed.ranker import FeedPath, FeedRanker, RankedFeed, get_ranked_feed
from feed.store import FeedStore, FeedStoreError, SupabaseFeedStore

__all__ = [
    "BookingRecord",
    "ContentItem",
    "FeedOptions",
    "Provider",
    "RankedFeedRow",
    "RankedItem",
    "UserPreferenceProfile",
    "PreferenceProfileBuilder",
    "FeedPath",
    "FeedRanker",
    "RankedFeed",
    "get_ranked_feed",
    "FeedStore",
    "FeedStoreError",
    "SupabaseFeedStore",
]
