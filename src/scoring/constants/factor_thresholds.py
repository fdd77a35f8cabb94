"""
Thresholds and fixed values used by the feed factor functions.
"""

# Score used whenever the data needed for a factor is missing.
NEUTRAL_SCORE = 0.5

# ── Proximity ─────────────────────────────────────────────────────
EARTH_RADIUS_KM = 6371.0
PROXIMITY_MAX_DISTANCE_KM = 50.0

# ── Engagement ────────────────────────────────────────────────────
LIKE_RATE_WEIGHT = 0.6
COMMENT_RATE_WEIGHT = 0.4
ENGAGEMENT_RATE_CEILING = 0.1          # 10% blended rate scores 1.0

# ── Recency (step function, hours -> score) ───────────────────────
# Checked in order; anything older than the last bound gets RECENCY_FLOOR.
RECENCY_STEPS = (
    (24.0, 1.0),      # one day
    (168.0, 0.8),     # one week
    (720.0, 0.6),     # one month
)
RECENCY_FLOOR = 0.4

# ── Personal interaction ──────────────────────────────────────────
MAX_RATING = 5.0
CONTENT_INTERACTION_SCORE = 0.3

# ── Availability ──────────────────────────────────────────────────
AVAILABLE_SCORE = 1.0
UNAVAILABLE_SCORE = 0.3

# ── Price match ───────────────────────────────────────────────────
IN_BUDGET_SCORE = 1.0
UNDER_BUDGET_SCORE = 0.8
OVER_BUDGET_PENALTY = 2.0              # multiplies the fractional overage
