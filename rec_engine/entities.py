"""
Domain records shared by the recommenders.

Products and user profiles are immutable reference data loaded once at
startup. RecommendedItem, Neighbor and HybridRecommendation are ephemeral
results produced per recommendation call.
"""

import math
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from .exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class Product:
    """Catalog entry."""
    id: int
    name: str
    category: str
    price: float
    tags: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable of tags, store a frozenset
        object.__setattr__(self, "tags", frozenset(self.tags))

    def __str__(self) -> str:
        return (f"Product{{id={self.id}, name='{self.name}', "
                f"category='{self.category}', price={self.price:.2f}}}")


@dataclass(frozen=True)
class UserProfile:
    """
    Declared preferences of a user, used by content-based filtering.

    Raises:
        InvalidConfigurationError: If the price range is inverted or not finite
    """
    id: int
    name: str
    preferred_categories: FrozenSet[str]
    price_range_min: float
    price_range_max: float

    def __post_init__(self):
        object.__setattr__(self, "preferred_categories", frozenset(self.preferred_categories))

        if not (math.isfinite(self.price_range_min) and math.isfinite(self.price_range_max)):
            raise InvalidConfigurationError(
                f"Price range of user {self.id} must be finite, "
                f"got [{self.price_range_min}, {self.price_range_max}]"
            )
        if self.price_range_min > self.price_range_max:
            raise InvalidConfigurationError(
                f"price_range_min ({self.price_range_min}) exceeds "
                f"price_range_max ({self.price_range_max}) for user {self.id}"
            )

    @property
    def price_midpoint(self) -> float:
        return (self.price_range_min + self.price_range_max) / 2

    @property
    def price_half_range(self) -> float:
        return (self.price_range_max - self.price_range_min) / 2


@dataclass(frozen=True)
class RecommendedItem:
    """An item and its predicted score."""
    item_id: int
    score: float


@dataclass(frozen=True)
class Neighbor:
    """A user in a target user's neighborhood."""
    user_id: int
    similarity: float


@dataclass(frozen=True)
class HybridRecommendation:
    """Merged hybrid entry; content-based entries carry no score."""
    source: str
    item_id: int
    score: Optional[float] = None
