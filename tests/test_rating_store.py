"""
Tests for rec_engine.rating_store.RatingStore
---------------------------------------------
Covers:
- add_rating() insert/overwrite on both indices
- ratings_of_user() / ratings_of_item() for known and unknown ids
- all_user_ids() / all_item_ids() restartability
- DataFrame round trip
"""

import math
import threading

import pytest
import pandas as pd

from rec_engine.exceptions import InvalidConfigurationError
from rec_engine.rating_store import RatingStore


# -------------------------------------------------------------------
# Write path
# -------------------------------------------------------------------

class TestAddRating:
    """Tests for add_rating()"""

    def test_insert_updates_both_indices(self):
        store = RatingStore()
        store.add_rating(1, 10, 4.0)
        assert store.ratings_of_user(1) == {10: 4.0}
        assert store.ratings_of_item(10) == {1: 4.0}
        assert len(store) == 1

    def test_overwrite_keeps_single_rating(self):
        """A later write for the same pair replaces the value in both indices."""
        store = RatingStore()
        store.add_rating(1, 10, 4.0)
        store.add_rating(1, 10, 2.0)
        assert store.ratings_of_user(1) == {10: 2.0}
        assert store.ratings_of_item(10) == {1: 2.0}
        assert len(store) == 1

    def test_integer_values_stored_as_float(self):
        store = RatingStore()
        store.add_rating(1, 10, 5)
        assert isinstance(store.rating(1, 10), float)

    @pytest.mark.parametrize("bad_value", [math.nan, math.inf, -math.inf])
    def test_non_finite_rating_rejected(self, bad_value):
        store = RatingStore()
        with pytest.raises(InvalidConfigurationError):
            store.add_rating(1, 10, bad_value)
        assert len(store) == 0
        assert store.ratings_of_item(10) == {}

    def test_concurrent_writes_keep_indices_consistent(self):
        store = RatingStore()

        def writer(user_id):
            for item_id in range(50):
                store.add_rating(user_id, item_id, float(item_id % 5 + 1))

        threads = [threading.Thread(target=writer, args=(u,)) for u in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 8 * 50
        for item_id in store.all_item_ids():
            for user_id, value in store.ratings_of_item(item_id).items():
                assert store.ratings_of_user(user_id)[item_id] == value

    def test_len_waits_for_lock(self):
        store = RatingStore.from_triples([(1, 1, 5.0)])
        sizes = []
        reader = threading.Thread(target=lambda: sizes.append(len(store)))

        with store._lock:
            reader.start()
            reader.join(timeout=0.2)
            assert reader.is_alive()
            assert sizes == []

        reader.join()
        assert sizes == [1]


# -------------------------------------------------------------------
# Read path
# -------------------------------------------------------------------

class TestReadPath:
    """Tests for lookups"""

    def test_unknown_user_and_item_are_empty(self, sample_store):
        assert sample_store.ratings_of_user(999) == {}
        assert sample_store.ratings_of_item(999) == {}
        assert sample_store.rating(999, 1) is None
        assert not sample_store.has_user(999)
        assert not sample_store.has_item(999)
        assert sample_store.has_item(7)

    def test_returned_mappings_are_copies(self, sample_store):
        ratings = sample_store.ratings_of_user(1)
        ratings[42] = 1.0
        assert 42 not in sample_store.ratings_of_user(1)

    def test_sample_counts(self, sample_store):
        assert sample_store.num_users == 4
        assert sample_store.num_items == 8
        assert len(sample_store) == 16

    def test_id_views_are_restartable(self, sample_store):
        users = sample_store.all_user_ids()
        assert sorted(users) == [1, 2, 3, 4]
        # Second pass over the same view yields the same ids
        assert sorted(users) == [1, 2, 3, 4]
        assert len(sample_store.all_item_ids()) == 8

    def test_num_users_with_rating_for(self, sample_store):
        # Item 1 rated by Alice, Bob and Charlie; item 2 by Alice and Charlie
        assert sample_store.num_users_with_rating_for(1) == 3
        assert sample_store.num_users_with_rating_for(1, 2) == 2
        assert sample_store.num_users_with_rating_for(7, 3) == 0
        assert sample_store.num_users_with_rating_for() == 0


# -------------------------------------------------------------------
# DataFrame conversion
# -------------------------------------------------------------------

class TestDataFrameConversion:

    def test_from_dataframe(self, tiny_ratings_df):
        store = RatingStore.from_dataframe(tiny_ratings_df)
        assert store.num_users == 3
        assert store.num_items == 3
        assert store.ratings_of_item(1) == {1: 5.0, 2: 4.0}

    def test_to_dataframe_sorted(self, tiny_ratings_df):
        store = RatingStore.from_dataframe(tiny_ratings_df.iloc[::-1])
        df = store.to_dataframe()
        assert list(df.columns) == ["user_id", "item_id", "rating"]
        expected = tiny_ratings_df.sort_values(["user_id", "item_id"]).reset_index(drop=True)
        pd.testing.assert_frame_equal(df, expected, check_dtype=False)
