"""
Tests for rec_engine.neighborhood.ThresholdNeighborhood
"""

import math

import pytest

from rec_engine.entities import Neighbor
from rec_engine.exceptions import InvalidConfigurationError
from rec_engine.neighborhood import ThresholdNeighborhood
from rec_engine.rating_store import RatingStore


def test_default_threshold_is_point_one(sample_store):
    assert ThresholdNeighborhood(sample_store).threshold == pytest.approx(0.1)


def test_sample_neighborhoods(sample_store):
    hood = ThresholdNeighborhood(sample_store)
    assert hood.neighbors_of(1) == [Neighbor(3, pytest.approx(0.5))]
    assert hood.neighbors_of(2) == [Neighbor(4, pytest.approx(0.5))]


def test_target_and_sub_threshold_users_excluded(sample_store):
    hood = ThresholdNeighborhood(sample_store)
    for user_id in sample_store.all_user_ids():
        for threshold in (-1.0, 0.0, 0.1, 0.5, 0.9):
            neighbors = hood.neighbors_of(user_id, threshold)
            assert user_id not in [n.user_id for n in neighbors]
            assert all(n.similarity >= threshold for n in neighbors)


def test_threshold_above_similarity_empties_neighborhood(sample_store):
    hood = ThresholdNeighborhood(sample_store, threshold=0.6)
    assert hood.neighbors_of(1) == []


def test_unknown_user_has_no_neighbors(sample_store):
    assert ThresholdNeighborhood(sample_store).neighbors_of(999) == []


def test_order_similarity_desc_then_user_id():
    # User 1 correlates perfectly with users 2 and 4, less with user 3
    store = RatingStore.from_triples([
        (1, 1, 1.0), (1, 2, 2.0), (1, 3, 3.0),
        (4, 1, 1.0), (4, 2, 2.0), (4, 3, 3.0),
        (2, 1, 2.0), (2, 2, 3.0), (2, 3, 4.0),
        (3, 1, 1.0), (3, 2, 3.0), (3, 3, 2.5),
    ])
    neighbors = ThresholdNeighborhood(store).neighbors_of(1)
    assert [n.user_id for n in neighbors] == [2, 4, 3]


def test_custom_similarity_callable(sample_store):
    hood = ThresholdNeighborhood(sample_store, similarity=lambda a, b: 1.0 / (a + b))
    neighbors = hood.neighbors_of(1, threshold=0.25)
    assert [n.user_id for n in neighbors] == [2, 3]


@pytest.mark.parametrize("bad_threshold", [math.nan, math.inf, "0.1"])
def test_invalid_threshold_rejected(sample_store, bad_threshold):
    with pytest.raises(InvalidConfigurationError):
        ThresholdNeighborhood(sample_store, threshold=bad_threshold)
    with pytest.raises(InvalidConfigurationError):
        ThresholdNeighborhood(sample_store).neighbors_of(1, threshold=bad_threshold)
