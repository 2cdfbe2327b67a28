"""
Rating Store

Holds (user, item, rating) observations in two mirrored indices:
- user_id -> {item_id: rating}
- item_id -> {user_id: rating}

Every write updates both indices under a single lock so readers never
observe one index ahead of the other.
"""

import logging
import math
import threading
from typing import Dict, Iterable, Iterator, Tuple

import pandas as pd

from .exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class _IdView:
    """Restartable view over the keys of one index (new iterator per call)."""

    def __init__(self, store: "RatingStore", index_name: str):
        self._store = store
        self._index_name = index_name

    def __iter__(self) -> Iterator[int]:
        with self._store._lock:
            ids = list(getattr(self._store, self._index_name).keys())
        return iter(ids)

    def __len__(self) -> int:
        with self._store._lock:
            return len(getattr(self._store, self._index_name))


class RatingStore:
    """
    In-memory rating store with per-user and per-item lookups.

    Example:
        >>> store = RatingStore()
        >>> store.add_rating(1, 4, 5.0)
        >>> store.ratings_of_user(1)
        {4: 5.0}
        >>> store.ratings_of_item(4)
        {1: 5.0}
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._user_index: Dict[int, Dict[int, float]] = {}
        self._item_index: Dict[int, Dict[int, float]] = {}
        self._n_ratings = 0

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_triples(cls, triples: Iterable[Tuple[int, int, float]]) -> "RatingStore":
        """Build a store from (user_id, item_id, rating) triples."""
        store = cls()
        for user_id, item_id, value in triples:
            store.add_rating(user_id, item_id, value)
        return store

    @classmethod
    def from_dataframe(cls, ratings_df: pd.DataFrame) -> "RatingStore":
        """
        Build a store from a DataFrame.

        Args:
            ratings_df: DataFrame with columns: user_id, item_id, rating

        Returns:
            Populated RatingStore (later rows overwrite earlier duplicates)
        """
        triples = zip(ratings_df["user_id"].astype(int),
                      ratings_df["item_id"].astype(int),
                      ratings_df["rating"].astype(float))
        store = cls.from_triples(triples)
        logger.info(f"Built rating store: {store.num_users} users, "
                    f"{store.num_items} items, {len(store)} ratings")
        return store

    def to_dataframe(self) -> pd.DataFrame:
        """Export all ratings as a DataFrame sorted by (user_id, item_id)."""
        with self._lock:
            rows = [(user_id, item_id, value)
                    for user_id, items in self._user_index.items()
                    for item_id, value in items.items()]
        df = pd.DataFrame(rows, columns=["user_id", "item_id", "rating"])
        return df.sort_values(["user_id", "item_id"]).reset_index(drop=True)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def add_rating(self, user_id: int, item_id: int, value: float) -> None:
        """
        Insert or overwrite the rating of user_id for item_id.

        Raises:
            InvalidConfigurationError: If value is not a finite number
        """
        value = float(value)
        if not math.isfinite(value):
            raise InvalidConfigurationError(
                f"Rating for user {user_id}, item {item_id} must be finite, got {value}"
            )

        with self._lock:
            user_ratings = self._user_index.setdefault(user_id, {})
            if item_id not in user_ratings:
                self._n_ratings += 1
            user_ratings[item_id] = value
            self._item_index.setdefault(item_id, {})[user_id] = value

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def ratings_of_user(self, user_id: int) -> Dict[int, float]:
        """Ratings given by user_id as {item_id: rating}; empty if unknown."""
        with self._lock:
            return dict(self._user_index.get(user_id, {}))

    def ratings_of_item(self, item_id: int) -> Dict[int, float]:
        """Ratings received by item_id as {user_id: rating}; empty if unknown."""
        with self._lock:
            return dict(self._item_index.get(item_id, {}))

    def rating(self, user_id: int, item_id: int):
        """Single rating or None."""
        with self._lock:
            return self._user_index.get(user_id, {}).get(item_id)

    def all_user_ids(self) -> _IdView:
        return _IdView(self, "_user_index")

    def all_item_ids(self) -> _IdView:
        return _IdView(self, "_item_index")

    def has_user(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._user_index

    def has_item(self, item_id: int) -> bool:
        with self._lock:
            return item_id in self._item_index

    def num_users_with_rating_for(self, *item_ids: int) -> int:
        """Number of users who rated every one of item_ids."""
        if not item_ids:
            return 0
        with self._lock:
            raters = [self._item_index.get(item_id, {}).keys() for item_id in item_ids]
            common = set(raters[0])
            for other in raters[1:]:
                common &= other
            return len(common)

    @property
    def num_users(self) -> int:
        with self._lock:
            return len(self._user_index)

    @property
    def num_items(self) -> int:
        with self._lock:
            return len(self._item_index)

    def __len__(self) -> int:
        with self._lock:
            return self._n_ratings

    def __repr__(self) -> str:
        return f"RatingStore(users={self.num_users}, items={self.num_items}, ratings={len(self)})"
