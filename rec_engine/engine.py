"""
Recommendation Engine Facade

Wires the rating store, catalog and profiles into the four recommenders:
1. User-based collaborative filtering
2. Item-based collaborative filtering
3. Content-based filtering
4. Hybrid combiner

Data is loaded once before construction; the engine itself does no I/O.
"""

import logging
from typing import Dict, List, Optional

from . import config
from .data_io import load_catalog_json, load_profiles_json, load_rating_store
from .entities import HybridRecommendation, Product, RecommendedItem, UserProfile
from .model import (
    ContentBasedRecommender,
    HybridRecommender,
    ItemBasedRecommender,
    UserBasedRecommender,
)
from .neighborhood import ThresholdNeighborhood
from .rating_store import RatingStore
from .sample_data import sample_catalog, sample_profiles, sample_ratings
from .similarity import ItemSimilarity, UserSimilarity

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """
    Facade over all recommenders for one snapshot of catalog, profiles and ratings.

    Example:
        >>> engine = RecommendationEngine.from_sample_data()
        >>> engine.content_based(2, 5)
        [6, 8]
    """

    def __init__(self, catalog: Dict[int, Product],
                 profiles: Dict[int, UserProfile],
                 store: RatingStore,
                 threshold: float = config.NEIGHBORHOOD_CONFIG["threshold"]):
        self.catalog = dict(catalog)
        self.profiles = dict(profiles)
        self.store = store

        self.user_similarity = UserSimilarity(store)
        self.item_similarity = ItemSimilarity(store)
        self.neighborhood = ThresholdNeighborhood(store, self.user_similarity, threshold=threshold)

        self.user_based_recommender = UserBasedRecommender(store, neighborhood=self.neighborhood)
        self.item_based_recommender = ItemBasedRecommender(store, similarity=self.item_similarity)
        self.content_based_recommender = ContentBasedRecommender(self.catalog, self.profiles)
        self.hybrid_recommender = HybridRecommender(
            self.user_based_recommender,
            self.item_based_recommender,
            self.content_based_recommender,
            catalog=self.catalog,
        )

        logger.info(
            f"Recommendation engines initialized: {len(self.catalog)} products, "
            f"{len(self.profiles)} profiles, {len(store)} ratings, threshold={threshold}"
        )

    @classmethod
    def from_sample_data(cls, **kwargs) -> "RecommendationEngine":
        """Engine over the built-in sample catalog, profiles and ratings."""
        store = RatingStore.from_triples(sample_ratings())
        return cls(sample_catalog(), sample_profiles(), store, **kwargs)

    @classmethod
    def from_files(cls, ratings_path=None, catalog_path=None, profiles_path=None,
                   **kwargs) -> "RecommendationEngine":
        """
        Engine over data files (paths default to config.*_PATH).

        Raises:
            FileNotFoundError: If any file is missing
        """
        ratings_path = ratings_path or config.RATINGS_PATH
        catalog_path = catalog_path or config.CATALOG_PATH
        profiles_path = profiles_path or config.PROFILES_PATH

        return cls(
            load_catalog_json(catalog_path),
            load_profiles_json(profiles_path),
            load_rating_store(ratings_path),
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    def user_based(self, user_id: int, n: int) -> List[RecommendedItem]:
        return self.user_based_recommender.recommend(user_id, n)

    def item_based(self, user_id: int, n: int) -> List[RecommendedItem]:
        return self.item_based_recommender.recommend(user_id, n)

    def content_based(self, user_id: int, n: int) -> List[int]:
        return self.content_based_recommender.recommend(user_id, n)

    def hybrid(self, user_id: int, n: int) -> List[HybridRecommendation]:
        return self.hybrid_recommender.recommend(user_id, n)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def product(self, product_id: int) -> Optional[Product]:
        return self.catalog.get(product_id)

    def profile(self, user_id: int) -> Optional[UserProfile]:
        return self.profiles.get(user_id)

    def describe(self) -> dict:
        """Counts and settings, for health checks and reports."""
        return {
            'total_products': len(self.catalog),
            'total_profiles': len(self.profiles),
            'total_users': self.store.num_users,
            'total_items': self.store.num_items,
            'total_ratings': len(self.store),
            'threshold': self.neighborhood.threshold,
        }
