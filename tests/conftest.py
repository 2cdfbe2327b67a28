"""
Pytest configuration and shared fixtures

This file contains fixtures that are available to all test files.
"""

import pytest
import pandas as pd

from rec_engine.engine import RecommendationEngine
from rec_engine.rating_store import RatingStore
from rec_engine.sample_data import sample_catalog, sample_profiles, sample_ratings

# ---------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------

@pytest.fixture
def catalog():
    """The 8-product sample catalog keyed by product id."""
    return sample_catalog()


@pytest.fixture
def profiles():
    """Alice, Bob, Charlie and Diana keyed by user id."""
    return sample_profiles()


@pytest.fixture
def sample_store():
    """
    Rating store with the 16 sample ratings (4 users x 4 ratings).

    Pearson neighborhoods on this data: Alice <-> Charlie and Bob <-> Diana,
    both with similarity 0.5. Every other pair shares fewer than 2 items.
    """
    return RatingStore.from_triples(sample_ratings())


@pytest.fixture
def empty_store():
    return RatingStore()


@pytest.fixture
def engine():
    """Engine over the sample catalog, profiles and ratings."""
    return RecommendationEngine.from_sample_data()


# ---------------------------------------------------
# DataFrame fixtures
# ---------------------------------------------------

@pytest.fixture
def tiny_ratings_df():
    """
    Tiny ratings DataFrame (3 users, 3 items) for unit tests
    """
    return pd.DataFrame({
        'user_id': [1, 1, 2, 2, 3],
        'item_id': [1, 2, 1, 3, 2],
        'rating': [5.0, 3.0, 4.0, 5.0, 2.0]
    })


@pytest.fixture
def sample_ratings_df():
    return pd.DataFrame(sample_ratings(), columns=['user_id', 'item_id', 'rating'])


# ---------------------------------------------------
# Utility fixture: temporary directory
# ---------------------------------------------------

@pytest.fixture
def tmp_output_dir(tmp_path):
    """
    Create a temporary output directory for tests that write files.
    Automatically cleaned up after test.
    """
    out_dir = tmp_path / "outputs"
    out_dir.mkdir()
    return out_dir
