"""
Tests for rec_engine.data_io module

Covers:
- Writing and loading the ratings file
- Ratings quality checks (clean_ratings)
- Catalog / profile JSON loading and error handling
"""

import json
import pytest
import pandas as pd

from rec_engine.data_io import (
    RatingsQualityReport,
    clean_ratings,
    load_catalog_json,
    load_profiles_json,
    load_rating_store,
    load_ratings_csv,
    save_catalog_json,
    save_profiles_json,
    write_ratings_csv,
)
from rec_engine.exceptions import DataFormatError, InvalidConfigurationError
from rec_engine.sample_data import sample_ratings

# ---------------------------------------------------------------------
# Ratings file
# ---------------------------------------------------------------------

class TestRatingsFile:
    """Tests for write_ratings_csv / load_ratings_csv"""

    def test_written_format(self, tmp_output_dir):
        """One `userId,itemId,rating` line per rating, one decimal place."""
        path = tmp_output_dir / "ratings.csv"
        write_ratings_csv(sample_ratings()[:2], path)
        assert path.read_text().splitlines() == ["1,1,5.0", "1,2,4.0"]

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "ratings.csv"
        write_ratings_csv([(1, 1, 3.0)], path)
        assert path.exists()

    def test_load_schema(self, tmp_output_dir):
        path = tmp_output_dir / "ratings.csv"
        write_ratings_csv(sample_ratings(), path)
        df = load_ratings_csv(path)
        assert list(df.columns) == ["user_id", "item_id", "rating"]
        assert len(df) == 16

    def test_any_numeric_text_accepted(self, tmp_path):
        path = tmp_path / "ratings.csv"
        path.write_text("1,2,5\n1, 3, 4.25\n2,3,3.0\n")
        df = load_ratings_csv(path)
        assert df["rating"].tolist() == [5.0, 4.25, 3.0]

    def test_load_nonexistent_file(self, tmp_path):
        """A non-existent path should raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_ratings_csv(tmp_path / "no_such_file.csv")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "ratings.csv"
        path.write_text("")
        df = load_ratings_csv(path)
        assert df.empty
        assert list(df.columns) == ["user_id", "item_id", "rating"]

    def test_load_rating_store(self, tmp_path):
        path = tmp_path / "ratings.csv"
        write_ratings_csv(sample_ratings(), path)
        store = load_rating_store(path)
        assert store.num_users == 4
        assert store.ratings_of_user(2) == {3: 5.0, 6: 4.0, 8: 5.0, 1: 2.0}


# ---------------------------------------------------------------------
# Quality checks
# ---------------------------------------------------------------------

class TestCleanRatings:
    """Tests for clean_ratings()"""

    def test_clean_input_untouched(self, tiny_ratings_df):
        df, report = clean_ratings(tiny_ratings_df)
        assert isinstance(report, RatingsQualityReport)
        assert report.is_valid
        assert report.retention_rate == 1.0
        assert len(df) == len(tiny_ratings_df)

    def test_drops_unparseable_rows(self, tmp_path):
        path = tmp_path / "ratings.csv"
        path.write_text("1,1,5.0\nx,2,4.0\n1,3,\n2,1,abc\n2,2,3.0\n")
        df, report = clean_ratings(load_ratings_csv(path))
        assert len(df) == 2
        assert report.dropped_missing == 3
        assert not report.is_valid
        assert "CLEANED" in str(report)

    def test_drops_infinite_ratings(self, tmp_path):
        path = tmp_path / "ratings.csv"
        path.write_text("1,1,5.0\n1,2,inf\n1,3,-inf\n2,1,4.0\n")
        df, report = clean_ratings(load_ratings_csv(path))
        assert df["rating"].tolist() == [5.0, 4.0]
        assert report.dropped_non_finite == 2
        assert report.total_rows == 4

    def test_skips_lines_with_extra_fields(self, tmp_path):
        path = tmp_path / "ratings.csv"
        path.write_text("1,1,5.0\n1,2,4.0,9\n2,1,4.0\n")
        raw = load_ratings_csv(path)
        assert raw["item_id"].tolist() == [1, 1]

        df, report = clean_ratings(raw)
        assert len(df) == 2
        assert report.dropped_malformed == 1
        assert report.total_rows == 3
        assert not report.is_valid

    def test_load_rating_store_survives_bad_rows(self, tmp_path):
        path = tmp_path / "ratings.csv"
        path.write_text("1,1,5.0\n1,2,inf\n1,3,4.0,9\n2,1,4.0\n")
        store = load_rating_store(path)
        assert len(store) == 2
        assert store.ratings_of_user(1) == {1: 5.0}

    def test_drops_non_integer_ids(self):
        raw = pd.DataFrame({"user_id": [1.0, 1.5], "item_id": [2.0, 2.0], "rating": [4.0, 4.0]})
        df, report = clean_ratings(raw)
        assert df["user_id"].tolist() == [1]
        assert report.dropped_non_integer_ids == 1

    def test_last_duplicate_wins(self):
        raw = pd.DataFrame({"user_id": [1, 1, 2], "item_id": [5, 5, 5], "rating": [1.0, 4.0, 2.0]})
        df, report = clean_ratings(raw)
        assert report.duplicates_overwritten == 1
        assert df[(df.user_id == 1) & (df.item_id == 5)]["rating"].item() == 4.0

    def test_output_dtypes(self, tiny_ratings_df):
        df, _ = clean_ratings(tiny_ratings_df.astype(float))
        assert str(df["user_id"].dtype) == "int64"
        assert str(df["item_id"].dtype) == "int64"
        assert str(df["rating"].dtype) == "float64"


# ---------------------------------------------------------------------
# Catalog and profiles
# ---------------------------------------------------------------------

class TestCatalogAndProfiles:
    """Tests for load_catalog_json / load_profiles_json"""

    def test_catalog_save_and_load(self, tmp_path, catalog):
        path = tmp_path / "catalog.json"
        save_catalog_json(catalog, path)
        loaded = load_catalog_json(path)
        assert loaded == catalog

    def test_profiles_save_and_load(self, tmp_path, profiles):
        path = tmp_path / "profiles.json"
        save_profiles_json(profiles, path)
        loaded = load_profiles_json(path)
        assert loaded == profiles

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog_json(tmp_path / "missing.json")
        with pytest.raises(FileNotFoundError):
            load_profiles_json(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("{not json")
        with pytest.raises(DataFormatError):
            load_catalog_json(path)

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"id": 1}))
        with pytest.raises(DataFormatError):
            load_catalog_json(path)

    def test_missing_field(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"id": 1, "name": "No price", "category": "Books"}]))
        with pytest.raises(DataFormatError):
            load_catalog_json(path)

    def test_inverted_price_range(self, tmp_path):
        path = tmp_path / "profiles.json"
        path.write_text(json.dumps([{
            "id": 1, "name": "Broken", "preferred_categories": ["Books"],
            "price_range_min": 50, "price_range_max": 10,
        }]))
        with pytest.raises(InvalidConfigurationError):
            load_profiles_json(path)

    def test_tags_optional(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"id": 3, "name": "Pen", "category": "Office", "price": "1.5"}]))
        product = load_catalog_json(path)[3]
        assert product.tags == frozenset()
        assert product.price == 1.5
