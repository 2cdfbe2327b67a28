"""
Recommendation Models

Implementation of the four recommenders served by the engine:
- UserBasedRecommender: weighted average over a threshold neighborhood
- ItemBasedRecommender: similarity-weighted average over the user's rated items
- ContentBasedRecommender: category + price-range heuristic over the catalog
- HybridRecommender: priority merge of the three, deduplicated by item

All recommend() calls are read-only. Results are ranked by score descending
with ties broken by ascending item id, so the top-k list for a smaller k is
always a prefix of the list for a larger k.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

from . import config
from .entities import HybridRecommendation, Product, RecommendedItem, UserProfile
from .exceptions import InvalidConfigurationError
from .neighborhood import ThresholdNeighborhood
from .rating_store import RatingStore
from .similarity import ItemSimilarity, UserSimilarity

logger = logging.getLogger(__name__)

USER_BASED = "User-Based"
ITEM_BASED = "Item-Based"
CONTENT_BASED = "Content-Based"


def check_n_recommendations(n: int) -> None:
    """
    Raises:
        InvalidConfigurationError: If n is not a non-negative integer
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidConfigurationError(f"n must be an integer, got {type(n).__name__}")
    if n < 0:
        raise InvalidConfigurationError(f"n must be non-negative, got {n}")


def top_n(scores: Mapping[int, float], n: int) -> List[RecommendedItem]:
    """Take the n best (item_id, score) pairs: score desc, item_id asc."""
    ranked = sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))
    return [RecommendedItem(item_id, score) for item_id, score in ranked[:n]]


# ============================================================================
# Collaborative filtering
# ============================================================================

class UserBasedRecommender:
    """
    User-based collaborative filtering.

    Prediction formula: p(u, i) = sum(sim(u, v) * r(v, i)) / sum(sim(u, v))
    over neighbors v of u who rated i.
    """

    def __init__(self, store: RatingStore,
                 neighborhood: Optional[ThresholdNeighborhood] = None,
                 threshold: float = config.NEIGHBORHOOD_CONFIG["threshold"]):
        """
        Initialize user-based recommender.

        Args:
            store: Rating store
            neighborhood: Neighborhood selector; built from Pearson similarity
                and `threshold` when omitted
            threshold: Minimum neighbor similarity (ignored if neighborhood given)
        """
        self.store = store
        if neighborhood is None:
            neighborhood = ThresholdNeighborhood(store, UserSimilarity(store), threshold=threshold)
        self.neighborhood = neighborhood

    def recommend(self, user_id: int, n: int) -> List[RecommendedItem]:
        """
        Recommend up to n unrated items for user_id.

        Args:
            user_id: User identifier
            n: Maximum number of recommendations

        Returns:
            RecommendedItems sorted by predicted score (descending). Empty for
            unknown users or users without neighbors.
        """
        check_n_recommendations(n)

        neighbors = self.neighborhood.neighbors_of(user_id)
        if not neighbors:
            return []

        rated = self.store.ratings_of_user(user_id)
        weighted_sums = defaultdict(float)
        weight_totals = defaultdict(float)

        for neighbor in neighbors:
            for item_id, value in self.store.ratings_of_user(neighbor.user_id).items():
                if item_id in rated:
                    continue
                weighted_sums[item_id] += neighbor.similarity * value
                weight_totals[item_id] += neighbor.similarity

        scores = {
            item_id: weighted_sums[item_id] / total
            for item_id, total in weight_totals.items()
            if total > 0
        }
        logger.debug(f"User {user_id}: {len(neighbors)} neighbors, {len(scores)} scored candidates")
        return top_n(scores, n)

    def estimate_preference(self, user_id: int, item_id: int) -> Optional[float]:
        """
        Predicted rating of user_id for item_id.

        Returns:
            The actual rating if the user already rated the item, otherwise the
            neighborhood estimate, or None if no neighbor rated it
        """
        existing = self.store.rating(user_id, item_id)
        if existing is not None:
            return existing

        weighted_sum = 0.0
        total = 0.0
        for neighbor in self.neighborhood.neighbors_of(user_id):
            value = self.store.rating(neighbor.user_id, item_id)
            if value is None:
                continue
            weighted_sum += neighbor.similarity * value
            total += neighbor.similarity

        if total <= 0:
            return None
        return weighted_sum / total

    def get_model_info(self) -> dict:
        return {
            'algorithm': 'User-Based CF (Pearson, threshold neighborhood)',
            'threshold': self.neighborhood.threshold,
            'total_users': self.store.num_users,
            'total_items': self.store.num_items,
        }


class ItemBasedRecommender:
    """
    Item-based collaborative filtering.

    Prediction formula: p(u, c) = sum(sim(c, r) * r(u, r)) / sum(sim(c, r))
    over items r rated by u with a defined similarity to c.
    """

    def __init__(self, store: RatingStore,
                 similarity: Optional[Callable[[int, int], Optional[float]]] = None):
        self.store = store
        self.similarity = similarity if similarity is not None else ItemSimilarity(store)

    def _estimate(self, candidate_id: int, rated: Mapping[int, float]) -> Optional[float]:
        weighted_sum = 0.0
        total = 0.0
        for item_id in sorted(rated):
            sim = self.similarity(candidate_id, item_id)
            if sim is None:
                continue
            weighted_sum += sim * rated[item_id]
            total += sim

        if total <= 0:
            return None
        return weighted_sum / total

    def recommend(self, user_id: int, n: int) -> List[RecommendedItem]:
        """
        Recommend up to n unrated items for user_id.

        Returns:
            RecommendedItems sorted by predicted score (descending). Empty for
            unknown users.
        """
        check_n_recommendations(n)

        rated = self.store.ratings_of_user(user_id)
        if not rated:
            logger.debug(f"User {user_id} has no ratings: no item-based candidates")
            return []

        scores = {}
        for candidate_id in self.store.all_item_ids():
            if candidate_id in rated:
                continue
            estimate = self._estimate(candidate_id, rated)
            if estimate is not None:
                scores[candidate_id] = estimate

        return top_n(scores, n)

    def estimate_preference(self, user_id: int, item_id: int) -> Optional[float]:
        rated = self.store.ratings_of_user(user_id)
        if item_id in rated:
            return rated[item_id]
        return self._estimate(item_id, rated)

    def most_similar_items(self, item_id: int, n: int) -> List[RecommendedItem]:
        """Items ranked by similarity to item_id (the item itself excluded)."""
        check_n_recommendations(n)

        scores = {}
        for other_id in self.store.all_item_ids():
            if other_id == item_id:
                continue
            sim = self.similarity(item_id, other_id)
            if sim is not None:
                scores[other_id] = sim
        return top_n(scores, n)

    def get_model_info(self) -> dict:
        return {
            'algorithm': 'Item-Based CF (log-likelihood similarity)',
            'total_users': self.store.num_users,
            'total_items': self.store.num_items,
        }


# ============================================================================
# Content-based filtering
# ============================================================================

class ContentBasedRecommender:
    """
    Scores catalog products against a user's declared preferences.

    A product is a candidate iff its category is preferred and its price lies
    in the user's price range (inclusive). Candidates score:

        category_weight + (1 - |price - midpoint| / half_range) * price_weight

    so prices near the middle of the range rank first.
    """

    def __init__(self, catalog: Union[Mapping[int, Product], Iterable[Product]],
                 profiles: Union[Mapping[int, UserProfile], Iterable[UserProfile]],
                 category_weight: float = config.CONTENT_CONFIG["category_weight"],
                 price_weight: float = config.CONTENT_CONFIG["price_weight"]):
        self.catalog = _index_by_id(catalog)
        self.profiles = _index_by_id(profiles)
        self.category_weight = category_weight
        self.price_weight = price_weight

    @staticmethod
    def is_suitable(product: Product, profile: UserProfile) -> bool:
        category_match = product.category in profile.preferred_categories
        price_match = profile.price_range_min <= product.price <= profile.price_range_max
        return category_match and price_match

    def content_score(self, product: Product, profile: UserProfile) -> float:
        score = 0.0

        if product.category in profile.preferred_categories:
            score += self.category_weight

        half_range = profile.price_half_range
        if half_range == 0:
            # Degenerate range: only the exact price is in range
            if product.price == profile.price_midpoint:
                score += self.price_weight
            return score

        distance = abs(product.price - profile.price_midpoint)
        score += (1.0 - distance / half_range) * self.price_weight
        return score

    def score_products(self, user_id: int, n: int) -> List[RecommendedItem]:
        """Top-n suitable products for user_id, with their content scores."""
        check_n_recommendations(n)

        profile = self.profiles.get(user_id)
        if profile is None:
            logger.debug(f"No profile for user {user_id}: no content-based recommendations")
            return []

        scores = {
            product.id: self.content_score(product, profile)
            for product in self.catalog.values()
            if self.is_suitable(product, profile)
        }
        return top_n(scores, n)

    def recommend(self, user_id: int, n: int) -> List[int]:
        """Top-n suitable product ids for user_id."""
        return [item.item_id for item in self.score_products(user_id, n)]

    def get_model_info(self) -> dict:
        return {
            'algorithm': 'Content-Based (category + price range)',
            'category_weight': self.category_weight,
            'price_weight': self.price_weight,
            'total_products': len(self.catalog),
            'total_users': len(self.profiles),
        }


# ============================================================================
# Hybrid
# ============================================================================

class HybridRecommender:
    """
    Merges user-based, item-based and content-based recommendations.

    Each source is asked for n // 2 items. Sources are merged in fixed
    priority (user-based, item-based, content-based); the first source to
    propose an item keeps it. The merged list is truncated to n.
    """

    def __init__(self, user_based: UserBasedRecommender,
                 item_based: ItemBasedRecommender,
                 content_based: ContentBasedRecommender,
                 catalog: Optional[Union[Mapping[int, Product], Iterable[Product]]] = None,
                 skip_unknown_products: bool = config.HYBRID_CONFIG["skip_unknown_products"]):
        """
        Args:
            user_based: User-based CF recommender
            item_based: Item-based CF recommender
            content_based: Content-based recommender
            catalog: Product catalog; when given (and skip_unknown_products is
                set) collaborative items missing from it are dropped
            skip_unknown_products: See catalog
        """
        self.user_based = user_based
        self.item_based = item_based
        self.content_based = content_based
        self.catalog = _index_by_id(catalog) if catalog is not None else None
        self.skip_unknown_products = skip_unknown_products

    def _is_displayable(self, item_id: int) -> bool:
        if self.catalog is None or not self.skip_unknown_products:
            return True
        return item_id in self.catalog

    def recommend(self, user_id: int, n: int) -> List[HybridRecommendation]:
        """
        Hybrid recommendations for user_id.

        Returns:
            Up to n HybridRecommendations, no item repeated. Content-based
            entries have score None.
        """
        check_n_recommendations(n)
        per_source = n // 2

        sources = [
            (USER_BASED, [(item.item_id, item.score)
                          for item in self.user_based.recommend(user_id, per_source)]),
            (ITEM_BASED, [(item.item_id, item.score)
                          for item in self.item_based.recommend(user_id, per_source)]),
            (CONTENT_BASED, [(item_id, None)
                             for item_id in self.content_based.recommend(user_id, per_source)]),
        ]

        merged = []
        seen = set()
        for source, entries in sources:
            for item_id, score in entries:
                if item_id in seen:
                    continue
                if source != CONTENT_BASED and not self._is_displayable(item_id):
                    logger.debug(f"Skipping {source} item {item_id}: not in catalog")
                    continue
                merged.append(HybridRecommendation(source, item_id, score))
                seen.add(item_id)

        return merged[:n]

    def get_model_info(self) -> dict:
        return {
            'algorithm': 'Hybrid (user-based > item-based > content-based)',
            'sources': [USER_BASED, ITEM_BASED, CONTENT_BASED],
        }


def _index_by_id(records) -> Dict[int, object]:
    """Accept a mapping keyed by id or an iterable of records with .id."""
    if isinstance(records, Mapping):
        return dict(records)
    return {record.id: record for record in records}
