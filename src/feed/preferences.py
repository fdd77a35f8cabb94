"""
Viewer preference profile builder.

Reads the viewer's customer profile and most recent bookings and derives
the preferred service categories (top 3 by booking frequency) used by the
service-relevance factor, plus an optional budget for price matching.

Best-effort: either read failing just leaves the corresponding part of
the profile empty.
"""

import asyncio
from collections import Counter
from typing import Any, Dict, List, Optional

from core.logging import get_logger
from feed.models import BookingRecord, UserPreferenceProfile
from feed.store import FeedStore, safe_read
from scoring.context import BudgetRange

logger = get_logger(__name__)

MAX_PREFERRED_SERVICES = 3


class PreferenceProfileBuilder:
    """Builds a UserPreferenceProfile from the store.  Stateless."""

    def __init__(self, store: FeedStore, history_limit: int = 10, timeout: float = 5.0):
        self.store = store
        self.history_limit = history_limit
        self.timeout = timeout

    async def build(self, user_id: str) -> UserPreferenceProfile:
        profile, bookings = await asyncio.gather(
            safe_read(
                "fetch_customer_profile",
                self.store.fetch_customer_profile(user_id),
                self.timeout,
                None,
            ),
            safe_read(
                "fetch_booking_history",
                self.store.fetch_booking_history(user_id, self.history_limit),
                self.timeout,
                [],
            ),
        )
        result = build_profile(profile, bookings)
        logger.debug(
            "Built preference profile",
            user_id=user_id,
            booking_count=result.booking_count,
            preferred_services=result.preferred_services,
        )
        return result


# ── Pure helpers (no I/O, easily testable) ────────────────────────

def build_profile(
    profile: Optional[Dict[str, Any]], bookings: List[BookingRecord],
) -> UserPreferenceProfile:
    return UserPreferenceProfile(
        preferred_services=top_services(bookings),
        booking_count=len(bookings),
        budget_range=extract_budget(profile),
        profile=dict(profile or {}),
    )


def top_services(bookings: List[BookingRecord], limit: int = MAX_PREFERRED_SERVICES) -> List[str]:
    """
    Most frequently booked service types.

    ``bookings`` arrive newest first; ties keep that order, so the more
    recently booked service wins.
    """
    services = [b.service_type for b in bookings if b.service_type]
    counts = Counter(services)
    first_seen = list(dict.fromkeys(services))
    return sorted(first_seen, key=lambda s: -counts[s])[:limit]


def extract_budget(profile: Optional[Dict[str, Any]]) -> Optional[BudgetRange]:
    """
    Read an hourly budget from the customer profile.

    Accepts ``budget_range: {min, max}`` or flat ``budget_min`` /
    ``budget_max`` columns.  Anything incomplete or inverted is ignored.
    """
    if not profile:
        return None
    nested = profile.get("budget_range")
    if isinstance(nested, dict):
        low, high = nested.get("min"), nested.get("max")
    else:
        low, high = profile.get("budget_min"), profile.get("budget_max")
    try:
        low, high = float(low), float(high)
    except (TypeError, ValueError):
        return None
    if low < 0 or high < low:
        return None
    return BudgetRange(min=low, max=high)
