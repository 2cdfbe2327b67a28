"""
Neighborhood Selection

Threshold neighborhood: every other user whose similarity to the target
user is at least `threshold`.
"""

import logging
import math
from typing import Callable, List, Optional

from . import config
from .entities import Neighbor
from .exceptions import InvalidConfigurationError
from .rating_store import RatingStore
from .similarity import UserSimilarity

logger = logging.getLogger(__name__)


class ThresholdNeighborhood:
    """
    Selects neighbors by a minimum similarity.

    Args:
        store: Rating store
        similarity: Callable (user_a, user_b) -> similarity or None.
            Defaults to Pearson correlation over the store.
        threshold: Minimum similarity for a neighbor (inclusive)
    """

    def __init__(self, store: RatingStore,
                 similarity: Optional[Callable[[int, int], Optional[float]]] = None,
                 threshold: float = config.NEIGHBORHOOD_CONFIG["threshold"]):
        _check_threshold(threshold)
        self.store = store
        self.similarity = similarity if similarity is not None else UserSimilarity(store)
        self.threshold = threshold

    def neighbors_of(self, user_id: int, threshold: Optional[float] = None) -> List[Neighbor]:
        """
        Users similar enough to user_id.

        Args:
            user_id: Target user (never part of the result)
            threshold: Overrides the configured threshold for this call

        Returns:
            Neighbors sorted by similarity descending, ties by user_id ascending.
            Empty for an unknown user.
        """
        if threshold is None:
            threshold = self.threshold
        else:
            _check_threshold(threshold)

        if not self.store.has_user(user_id):
            logger.debug(f"Unknown user {user_id}: empty neighborhood")
            return []

        neighbors = []
        for other_id in self.store.all_user_ids():
            if other_id == user_id:
                continue
            sim = self.similarity(user_id, other_id)
            if sim is None or sim < threshold:
                continue
            neighbors.append(Neighbor(other_id, sim))

        neighbors.sort(key=lambda n: (-n.similarity, n.user_id))
        return neighbors


def _check_threshold(threshold: float) -> None:
    if not isinstance(threshold, (int, float)) or not math.isfinite(threshold):
        raise InvalidConfigurationError(f"Neighborhood threshold must be a finite number, got {threshold!r}")
