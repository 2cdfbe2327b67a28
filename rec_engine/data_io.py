"""
Data I/O Module with Data Quality Checks

Handles data loading for the engine:
- Ratings file (userId,itemId,rating per line, no header)
- Product catalog and user profiles (JSON lists of records)
- Ratings quality checks (missing / non-numeric fields, duplicate pairs)
"""

import json
import logging
import os
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd

from . import config
from .entities import Product, UserProfile
from .exceptions import DataFormatError
from .rating_store import RatingStore

logger = logging.getLogger(__name__)

RATING_COLUMNS = config.RATINGS_FILE_CONFIG["columns"]


# ============================================================================
# Ratings file
# ============================================================================

def write_ratings_csv(triples: Iterable[Tuple[int, int, float]], path) -> None:
    """
    Write ratings to a delimited text file, one `userId,itemId,rating` per line.

    Args:
        triples: (user_id, item_id, rating) triples
        path: Output file path (parent directories are created)

    Example:
        >>> write_ratings_csv([(1, 1, 5.0), (1, 2, 4.0)], "data/ratings.csv")
        # data/ratings.csv:
        # 1,1,5.0
        # 1,2,4.0
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(list(triples), columns=RATING_COLUMNS)
    df.to_csv(
        output_path,
        sep=config.RATINGS_FILE_CONFIG["delimiter"],
        header=False,
        index=False,
        float_format=config.RATINGS_FILE_CONFIG["float_format"],
    )
    logger.info(f"Wrote {len(df)} ratings to {output_path}")


def load_ratings_csv(path) -> pd.DataFrame:
    """
    Load ratings from a delimited text file.

    Any numeric text is accepted for the rating ("5", "5.0", "4.25").
    Unparseable fields become NaN; use clean_ratings() to drop them.
    Lines with too many fields are skipped and counted in
    `df.attrs["malformed_lines"]`.

    Args:
        path: Path to the ratings file

    Returns:
        DataFrame with columns: user_id, item_id, rating

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Ratings file not found: {path}")

    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", pd.errors.ParserWarning)
            df = pd.read_csv(
                path,
                sep=config.RATINGS_FILE_CONFIG["delimiter"],
                header=None,
                names=RATING_COLUMNS,
                dtype=str,
                index_col=False,
                skipinitialspace=True,
                skip_blank_lines=True,
                on_bad_lines="warn",
            )
    except pd.errors.EmptyDataError:
        logger.warning(f"Ratings file is empty: {path}")
        return pd.DataFrame({col: pd.Series(dtype="float64") for col in RATING_COLUMNS})

    for col in RATING_COLUMNS:
        df[col] = pd.to_numeric(df[col].str.strip(), errors="coerce")

    # pandas reports skipped lines as "Skipping line N: expected 3 fields, saw 4"
    malformed_lines = sum(
        str(w.message).count("Skipping line")
        for w in caught if issubclass(w.category, pd.errors.ParserWarning)
    )
    if malformed_lines:
        logger.warning(f"Skipped {malformed_lines} malformed lines in {path}")
    df.attrs["malformed_lines"] = malformed_lines

    logger.info(f"Loaded {len(df)} rating rows from {path}")
    return df


@dataclass
class RatingsQualityReport:
    """Container for ratings quality check results."""
    total_rows: int
    valid_rows: int
    dropped_malformed: int = 0
    dropped_missing: int = 0
    dropped_non_finite: int = 0
    dropped_non_integer_ids: int = 0
    duplicates_overwritten: int = 0
    warnings: List[str] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_valid(self) -> bool:
        return self.valid_rows == self.total_rows

    @property
    def retention_rate(self) -> float:
        return self.valid_rows / self.total_rows if self.total_rows else 1.0

    def __str__(self):
        status = "✓ VALID" if self.is_valid else "✗ CLEANED"
        report = [f"{status} - ratings {self.valid_rows}/{self.total_rows} rows kept"]
        if self.warnings:
            report.append(f"  Warnings: {', '.join(self.warnings)}")
        return "\n".join(report)


def clean_ratings(ratings_df: pd.DataFrame) -> Tuple[pd.DataFrame, RatingsQualityReport]:
    """
    Drop invalid rating rows and resolve duplicates.

    - Lines skipped by load_ratings_csv() for having too many fields are counted
    - Rows with a missing/non-numeric user_id, item_id or rating are dropped
    - Rows with an infinite rating are dropped
    - Rows whose ids are not whole numbers are dropped
    - For duplicated (user_id, item_id) pairs the last row wins

    Args:
        ratings_df: DataFrame with user_id, item_id, rating

    Returns:
        Tuple of (clean DataFrame with int ids and float ratings, report)
    """
    dropped_malformed = ratings_df.attrs.get("malformed_lines", 0)
    total = len(ratings_df) + dropped_malformed
    warnings = []
    if dropped_malformed:
        warnings.append(f"{dropped_malformed} lines with too many fields")

    df = ratings_df.dropna(subset=RATING_COLUMNS)
    dropped_missing = len(ratings_df) - len(df)
    if dropped_missing:
        warnings.append(f"{dropped_missing} rows with missing or non-numeric fields")

    finite = np.isfinite(df["rating"])
    dropped_non_finite = int((~finite).sum())
    df = df[finite]
    if dropped_non_finite:
        warnings.append(f"{dropped_non_finite} rows with infinite ratings")

    whole_ids = (df["user_id"] % 1 == 0) & (df["item_id"] % 1 == 0)
    dropped_non_integer = int((~whole_ids).sum())
    df = df[whole_ids]
    if dropped_non_integer:
        warnings.append(f"{dropped_non_integer} rows with non-integer ids")

    before_dedup = len(df)
    df = df.drop_duplicates(subset=["user_id", "item_id"], keep="last")
    duplicates = before_dedup - len(df)
    if duplicates:
        warnings.append(f"{duplicates} duplicate (user, item) pairs overwritten")

    df = df.astype({"user_id": "int64", "item_id": "int64", "rating": "float64"}).reset_index(drop=True)

    report = RatingsQualityReport(
        total_rows=total,
        valid_rows=len(df),
        dropped_malformed=dropped_malformed,
        dropped_missing=dropped_missing,
        dropped_non_finite=dropped_non_finite,
        dropped_non_integer_ids=dropped_non_integer,
        duplicates_overwritten=duplicates,
        warnings=warnings,
    )
    if warnings:
        logger.warning(f"Ratings quality: {'; '.join(warnings)}")
    return df, report


def build_rating_store(ratings_df: pd.DataFrame) -> RatingStore:
    """Build a RatingStore from a cleaned ratings DataFrame."""
    return RatingStore.from_dataframe(ratings_df)


def load_rating_store(path) -> RatingStore:
    """Load, clean and index a ratings file."""
    df, report = clean_ratings(load_ratings_csv(path))
    logger.info(str(report))
    return build_rating_store(df)


# ============================================================================
# Catalog and profiles
# ============================================================================

def _read_json_records(path, entity_type: str) -> List[Dict]:
    if not os.path.exists(path):
        raise FileNotFoundError(f"{entity_type.capitalize()} file not found: {path}")

    with open(path) as f:
        try:
            records = json.load(f)
        except json.JSONDecodeError as e:
            raise DataFormatError(f"Invalid JSON in {entity_type} file {path}: {e}") from e

    if not isinstance(records, list):
        raise DataFormatError(f"{entity_type.capitalize()} file must contain a JSON list, got {type(records).__name__}")
    return records


def _parse_product(record: Dict) -> Product:
    try:
        return Product(
            id=int(record["id"]),
            name=str(record["name"]),
            category=str(record["category"]),
            price=float(record["price"]),
            tags=record.get("tags", []),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataFormatError(f"Invalid product record {record!r}: {e}") from e


def _parse_profile(record: Dict) -> UserProfile:
    try:
        fields = dict(
            id=int(record["id"]),
            name=str(record["name"]),
            preferred_categories=record.get("preferred_categories", []),
            price_range_min=float(record["price_range_min"]),
            price_range_max=float(record["price_range_max"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataFormatError(f"Invalid profile record {record!r}: {e}") from e
    # Inverted ranges surface as InvalidConfigurationError
    return UserProfile(**fields)


def load_catalog_json(path) -> Dict[int, Product]:
    """
    Load the product catalog.

    Expected format:
        [{"id": 1, "name": "MacBook Pro", "category": "Electronics",
          "price": 1299.99, "tags": ["laptop", "apple"]}, ...]

    Returns:
        Dict of {product_id: Product}

    Raises:
        FileNotFoundError: If the file doesn't exist
        DataFormatError: If a record is malformed
    """
    catalog = {}
    for record in _read_json_records(path, "catalog"):
        product = _parse_product(record)
        if product.id in catalog:
            logger.warning(f"Duplicate product id {product.id} in {path}, keeping last")
        catalog[product.id] = product

    logger.info(f"Loaded {len(catalog)} products from {path}")
    return catalog


def load_profiles_json(path) -> Dict[int, UserProfile]:
    """
    Load user profiles.

    Expected format:
        [{"id": 1, "name": "Alice", "preferred_categories": ["Books"],
          "price_range_min": 10.0, "price_range_max": 500.0}, ...]

    Returns:
        Dict of {user_id: UserProfile}
    """
    profiles = {}
    for record in _read_json_records(path, "profiles"):
        profile = _parse_profile(record)
        profiles[profile.id] = profile

    logger.info(f"Loaded {len(profiles)} user profiles from {path}")
    return profiles


def save_catalog_json(catalog: Dict[int, Product], path) -> None:
    records = [
        {"id": p.id, "name": p.name, "category": p.category,
         "price": p.price, "tags": sorted(p.tags)}
        for p in sorted(catalog.values(), key=lambda p: p.id)
    ]
    _write_json(records, path)


def save_profiles_json(profiles: Dict[int, UserProfile], path) -> None:
    records = [
        {"id": u.id, "name": u.name,
         "preferred_categories": sorted(u.preferred_categories),
         "price_range_min": u.price_range_min, "price_range_max": u.price_range_max}
        for u in sorted(profiles.values(), key=lambda u: u.id)
    ]
    _write_json(records, path)


def _write_json(records: List[Dict], path) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(records, f, indent=2, ensure_ascii=False)
