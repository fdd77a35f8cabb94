"""
Weight profile selection.

``get_weights`` is a pure lookup from sort preference to the eight factor
weights.  Unknown or missing preferences fall back to ``balanced``.
"""

from dataclasses import dataclass, fields
from typing import Dict, Union

from scoring.context import RankingFactors, SortPreference
from scoring.constants.feed_weights import DEFAULT_SORT_PREFERENCE, FEED_WEIGHTS


@dataclass(frozen=True)
class WeightProfile:
    """Named set of non-negative weights, one per ranking factor."""
    name: str
    proximity: float
    engagement: float
    recency: float
    personal_interaction: float
    service_relevance: float
    cleaner_rating: float
    availability: float
    price_match: float

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "name"}

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())

    def combine(self, factors: RankingFactors) -> float:
        """Weighted sum of the factor scores."""
        values = factors.as_dict()
        return sum(weight * values[name] for name, weight in self.as_dict().items())


def resolve_sort_preference(
    preference: Union[str, SortPreference, None],
) -> SortPreference:
    """Map free-form caller input onto a SortPreference (default balanced)."""
    if isinstance(preference, SortPreference):
        return preference
    if isinstance(preference, str):
        try:
            return SortPreference(preference.strip().lower())
        except ValueError:
            pass
    return DEFAULT_SORT_PREFERENCE


def get_weights(preference: Union[str, SortPreference, None] = None) -> WeightProfile:
    resolved = resolve_sort_preference(preference)
    return WeightProfile(name=resolved.value, **FEED_WEIGHTS[resolved])


def all_weight_profiles() -> Dict[str, WeightProfile]:
    return {p.value: get_weights(p) for p in SortPreference}


__all__ = [
    "WeightProfile",
    "get_weights",
    "resolve_sort_preference",
    "all_weight_profiles",
]
