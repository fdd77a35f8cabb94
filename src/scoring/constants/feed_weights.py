"""
Weight profiles for the feed ranking score, keyed by sort preference.

The values are kept exactly as tuned; they are not renormalized.
"""

from scoring.context import SortPreference

# fmt: off
FEED_WEIGHTS: dict = {
    SortPreference.BALANCED: {
        "proximity": 0.25, "engagement": 0.15, "recency": 0.15,
        "personal_interaction": 0.10, "service_relevance": 0.15,
        "cleaner_rating": 0.10, "availability": 0.05, "price_match": 0.05,
    },
    SortPreference.PROXIMITY: {
        "proximity": 0.40, "engagement": 0.10, "recency": 0.10,
        "personal_interaction": 0.10, "service_relevance": 0.10,
        "cleaner_rating": 0.10, "availability": 0.05, "price_match": 0.05,
    },
    SortPreference.ENGAGEMENT: {
        "proximity": 0.15, "engagement": 0.30, "recency": 0.20,
        "personal_interaction": 0.15, "service_relevance": 0.10,
        "cleaner_rating": 0.05, "availability": 0.03, "price_match": 0.02,
    },
    SortPreference.PRICE: {
        "proximity": 0.20, "engagement": 0.10, "recency": 0.10,
        "personal_interaction": 0.10, "service_relevance": 0.15,
        "cleaner_rating": 0.10, "availability": 0.05, "price_match": 0.20,
    },
}
# fmt: on

DEFAULT_SORT_PREFERENCE = SortPreference.BALANCED
