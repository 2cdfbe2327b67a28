"""
Similarity Module

Pairwise similarity between users and between items, computed from the
current state of a RatingStore:
- User similarity: Pearson correlation over co-rated items
- Item similarity: log-likelihood ratio (G-test) over rating co-occurrence

Both return None when the similarity is undefined (too little overlap,
zero variance, no co-occurrence). Callers treat None as "no relationship".
"""

import logging
from typing import Dict, Optional, Tuple

import numpy as np
from scipy.special import xlogy

from . import config
from .rating_store import RatingStore

logger = logging.getLogger(__name__)


# ============================================================================
# Pearson correlation (users)
# ============================================================================

def user_similarity(store: RatingStore, user_a: int, user_b: int,
                    min_co_rated: int = config.NEIGHBORHOOD_CONFIG["min_co_rated_items"]
                    ) -> Optional[float]:
    """
    Pearson correlation between two users over the items both have rated.

    r = sum((x - mean_x) * (y - mean_y)) / sqrt(sum((x - mean_x)^2) * sum((y - mean_y)^2))

    Args:
        store: Rating store
        user_a: First user
        user_b: Second user
        min_co_rated: Minimum number of co-rated items for a defined result

    Returns:
        Correlation in [-1, 1], or None if fewer than min_co_rated items are
        shared or either rating vector has zero variance

    Example:
        >>> store = RatingStore.from_triples([(1, 1, 5), (1, 2, 4), (2, 1, 4), (2, 2, 2)])
        >>> user_similarity(store, 1, 2)
        1.0
    """
    # Canonical order keeps the result bit-identical under argument swap
    if user_b < user_a:
        user_a, user_b = user_b, user_a

    ratings_a = store.ratings_of_user(user_a)
    ratings_b = store.ratings_of_user(user_b)

    co_rated = sorted(ratings_a.keys() & ratings_b.keys())
    if len(co_rated) < max(min_co_rated, 2):
        return None

    x = np.array([ratings_a[item_id] for item_id in co_rated], dtype=np.float64)
    y = np.array([ratings_b[item_id] for item_id in co_rated], dtype=np.float64)

    x_centered = x - x.mean()
    y_centered = y - y.mean()

    denominator = np.sqrt(np.sum(x_centered ** 2) * np.sum(y_centered ** 2))
    if denominator == 0 or not np.isfinite(denominator):
        return None

    correlation = np.sum(x_centered * y_centered) / denominator
    return float(np.clip(correlation, -1.0, 1.0))


# ============================================================================
# Log-likelihood ratio (items)
# ============================================================================

def _unnormalized_entropy(*counts: float) -> float:
    """xlogx(sum) - sum(xlogx(k)), with 0 * log(0) = 0."""
    counts = np.asarray(counts, dtype=np.float64)
    total = counts.sum()
    return float(xlogy(total, total) - np.sum(xlogy(counts, counts)))


def log_likelihood_ratio(k11: int, k12: int, k21: int, k22: int) -> float:
    """
    G-test statistic for a 2x2 contingency table.

    Table layout:
                    rated J     not rated J
        rated I       k11          k21
        not rated I   k12          k22

    Returns:
        LLR >= 0; larger values mean stronger non-random co-occurrence
    """
    row_entropy = _unnormalized_entropy(k11 + k12, k21 + k22)
    column_entropy = _unnormalized_entropy(k11 + k21, k12 + k22)
    matrix_entropy = _unnormalized_entropy(k11, k12, k21, k22)

    # Round-off can push an independent table slightly below zero
    if row_entropy + column_entropy < matrix_entropy:
        return 0.0
    return 2.0 * (row_entropy + column_entropy - matrix_entropy)


def item_similarity(store: RatingStore, item_i: int, item_j: int) -> Optional[float]:
    """
    Log-likelihood similarity between two items.

    Uses only the presence of ratings, not their values. The raw LLR is
    mapped to [0, 1) with 1 - 1 / (1 + LLR).

    Args:
        store: Rating store
        item_i: First item
        item_j: Second item

    Returns:
        Similarity in [0, 1), or None if either item has no raters or no user
        rated both
    """
    if item_j < item_i:
        item_i, item_j = item_j, item_i

    preferring_i = store.num_users_with_rating_for(item_i)
    preferring_j = store.num_users_with_rating_for(item_j)
    if preferring_i == 0 or preferring_j == 0:
        return None

    preferring_both = store.num_users_with_rating_for(item_i, item_j)
    if preferring_both == 0:
        return None

    n_users = store.num_users

    llr = log_likelihood_ratio(
        preferring_both,
        preferring_j - preferring_both,
        preferring_i - preferring_both,
        n_users - preferring_i - preferring_j + preferring_both,
    )
    return 1.0 - 1.0 / (1.0 + llr)


# ============================================================================
# Store-bound similarity objects
# ============================================================================

class _PairSimilarity:
    """Binds a similarity function to a store, with an optional pair memo."""

    def __init__(self, store: RatingStore, cache: bool = False):
        self.store = store
        self.cache = cache
        self._memo: Dict[Tuple[int, int], Optional[float]] = {}

    def _compute(self, a: int, b: int) -> Optional[float]:
        raise NotImplementedError

    def __call__(self, a: int, b: int) -> Optional[float]:
        if not self.cache:
            return self._compute(a, b)

        key = (a, b) if a <= b else (b, a)
        if key not in self._memo:
            self._memo[key] = self._compute(*key)
        return self._memo[key]

    def clear_cache(self) -> None:
        """Drop memoized pairs (call after the store changes)."""
        self._memo.clear()


class UserSimilarity(_PairSimilarity):
    """Pearson user similarity bound to a store."""

    def __init__(self, store: RatingStore, cache: bool = False,
                 min_co_rated: int = config.NEIGHBORHOOD_CONFIG["min_co_rated_items"]):
        super().__init__(store, cache=cache)
        self.min_co_rated = min_co_rated

    def _compute(self, a: int, b: int) -> Optional[float]:
        return user_similarity(self.store, a, b, min_co_rated=self.min_co_rated)


class ItemSimilarity(_PairSimilarity):
    """Log-likelihood item similarity bound to a store."""

    def _compute(self, a: int, b: int) -> Optional[float]:
        return item_similarity(self.store, a, b)
