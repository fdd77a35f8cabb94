"""
Pytest configuration and shared fixtures for the feed ranking tests.
"""
import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Settings require these; never point tests at a real project
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-key")

from feed.models import BookingRecord, ContentItem, Provider, RankedFeedRow  # noqa: E402
from scoring.context import InteractionHistory  # noqa: E402


FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
SF = (37.7749, -122.4194)


# ============================================================================
# Fake store
# ============================================================================

class FakeFeedStore:
    """
    In-memory FeedStore.

    Each read returns the configured data.  Put an exception instance in
    ``errors[operation]`` to make that read raise, or a number of seconds
    in ``delays[operation]`` to make it hang.
    """

    def __init__(
        self,
        strict_rows: Optional[List[RankedFeedRow]] = None,
        relaxed_rows: Optional[List[RankedFeedRow]] = None,
        content: Optional[List[ContentItem]] = None,
        bookings: Optional[List[BookingRecord]] = None,
        profile: Optional[dict] = None,
        interactions: Optional[InteractionHistory] = None,
    ):
        self.strict_rows = strict_rows or []
        self.relaxed_rows = relaxed_rows or []
        self.content = content or []
        self.bookings = bookings or []
        self.profile = profile
        self.interactions = interactions or InteractionHistory()
        self.errors: Dict[str, Exception] = {}
        self.delays: Dict[str, float] = {}
        self.calls: List[tuple] = []

    async def _enter(self, operation: str, *args):
        self.calls.append((operation, *args))
        if operation in self.delays:
            await asyncio.sleep(self.delays[operation])
        if operation in self.errors:
            raise self.errors[operation]

    def called(self, operation: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == operation]

    async def ranked_feed_rpc(self, latitude, longitude, radius_km, limit, include_unverified):
        await self._enter("ranked_feed_rpc", include_unverified, limit)
        return list(self.relaxed_rows if include_unverified else self.strict_rows)

    async def fetch_content_by_ids(self, content_ids):
        await self._enter("fetch_content_by_ids", tuple(content_ids))
        wanted = set(content_ids)
        return [item for item in self.content if item.id in wanted]

    async def fetch_recent_content(self, limit):
        await self._enter("fetch_recent_content", limit)
        return list(self.content[:limit])

    async def fetch_booking_history(self, user_id, limit=10):
        await self._enter("fetch_booking_history", user_id, limit)
        return list(self.bookings[:limit])

    async def fetch_customer_profile(self, user_id):
        await self._enter("fetch_customer_profile", user_id)
        return self.profile

    async def fetch_interaction_history(self, user_id, provider_ids):
        await self._enter("fetch_interaction_history", user_id, tuple(provider_ids))
        return self.interactions


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

def build_item(
    item_id: str,
    provider_id: Optional[str] = None,
    *,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    views: int = 1000,
    likes: int = 50,
    comments: int = 10,
    rating: Optional[float] = 4.5,
    hourly_rate: Optional[float] = 40,
    available: bool = True,
    specialties: Optional[List[str]] = None,
    age_hours: float = 12,
) -> ContentItem:
    provider_id = provider_id or f"cleaner-{item_id}"
    return ContentItem(
        id=item_id,
        provider_id=provider_id,
        title=f"Video {item_id}",
        media_url=f"https://cdn.example.com/{item_id}.mp4",
        view_count=views,
        like_count=likes,
        comment_count=comments,
        created_at=FIXED_NOW - timedelta(hours=age_hours),
        provider=Provider(
            id=provider_id,
            name=f"Cleaner {provider_id}",
            rating_average=rating,
            hourly_rate=hourly_rate,
            is_available=available,
            latitude=latitude,
            longitude=longitude,
            specialties=specialties or [],
        ),
    )


@pytest.fixture
def make_item():
    """Factory for ContentItem snapshots."""
    return build_item


@pytest.fixture
def fake_store() -> FakeFeedStore:
    return FakeFeedStore()


@pytest.fixture
def fake_store_cls():
    return FakeFeedStore


@pytest.fixture
def test_settings():
    from config.settings import get_settings_for_testing
    return get_settings_for_testing(feed_read_timeout_seconds=0.2)


@pytest.fixture
def sample_post_row() -> dict:
    """content_posts row as returned by Supabase with the cleaner embed."""
    return {
        "id": "post-001",
        "user_id": "cleaner-001",
        "title": "Deep kitchen clean",
        "description": None,
        "media_url": "https://cdn.example.com/post-001.mp4",
        "thumbnail_url": None,
        "view_count": 200,
        "like_count": 12,
        "comment_count": None,
        "created_at": "2025-05-30T09:15:00+00:00",
        "base_price_cents": 12000,
        "package_type": "fixed",
        "is_bookable": True,
        "estimated_hours": 3,
        "cleaner": {
            "id": "cleaner-001",
            "name": "Maria",
            "avatar_url": None,
            "role": "cleaner",
            "cleaner_profiles": [{
                "rating_average": 4.8,
                "hourly_rate": 45,
                "is_available": None,
                "total_jobs": 87,
                "specialties": ["deep_clean", "kitchen"],
                "latitude": 37.78,
                "longitude": -122.41,
            }],
        },
    }


# ============================================================================
# Fixtures: Mock Services
# ============================================================================

@pytest.fixture
def mock_supabase_client():
    """
    Mock Supabase async client.

    Query builders are chainable MagicMocks; ``execute`` is awaitable.
    Set ``client.rpc.return_value.execute.return_value.data`` and
    ``client.table.return_value.execute.return_value.data`` in tests.
    """
    client = MagicMock()

    rpc_query = MagicMock()
    rpc_query.execute = AsyncMock(return_value=MagicMock(data=[]))
    client.rpc.return_value = rpc_query

    table_query = MagicMock()
    for method in ("select", "eq", "in_", "order", "limit"):
        getattr(table_query, method).return_value = table_query
    table_query.execute = AsyncMock(return_value=MagicMock(data=[]))
    client.table.return_value = table_query

    return client


# ============================================================================
# Fixtures: FastAPI Test Client
# ============================================================================

@pytest.fixture
def app(fake_store, test_settings):
    """FastAPI application wired to the fake store."""
    from api.app import create_app
    from api.routes.feed import get_feed_store
    from config.settings import get_settings

    application = create_app()
    application.dependency_overrides[get_feed_store] = lambda: fake_store
    application.dependency_overrides[get_settings] = lambda: test_settings
    return application


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def fixed_now() -> datetime:
    """Clock value every factory-built item is aged against."""
    return FIXED_NOW
