"""
Configuration file for the Recommendation Engine

Contains all tunables, paths, and constants used across the engine.
"""

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

# .env in the working directory (or a parent) fills in unset variables
load_dotenv(find_dotenv(usecwd=True))

# ============================================================================
# PATHS
# ============================================================================

# Base directories
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("REC_DATA_DIR", PROJECT_ROOT / "data"))

# Data paths
RATINGS_PATH = DATA_DIR / "ratings.csv"
CATALOG_PATH = DATA_DIR / "catalog.json"
PROFILES_PATH = DATA_DIR / "profiles.json"

# ============================================================================
# RATINGS FILE FORMAT
# ============================================================================

RATINGS_FILE_CONFIG = {
    "delimiter": ",",
    "columns": ["user_id", "item_id", "rating"],
    "float_format": "%.1f",  # One decimal place, e.g. "1,4,5.0"
}

# ============================================================================
# USER-BASED COLLABORATIVE FILTERING
# ============================================================================

NEIGHBORHOOD_CONFIG = {
    "threshold": float(os.getenv("NEIGHBORHOOD_THRESHOLD", "0.1")),  # Min Pearson similarity
    "min_co_rated_items": 2,  # Fewer co-rated items -> similarity undefined
}

# ============================================================================
# CONTENT-BASED FILTERING
# ============================================================================

CONTENT_CONFIG = {
    "category_weight": 10.0,  # Bonus for a preferred category
    "price_weight": 5.0,  # Max bonus for a price at the middle of the range
}

# ============================================================================
# HYBRID COMBINER
# ============================================================================

HYBRID_CONFIG = {
    "skip_unknown_products": True,  # Drop CF items missing from the catalog
}

# ============================================================================
# EVALUATION CONFIGURATION
# ============================================================================

EVALUATION_CONFIG = {
    "k_values": [1, 3, 5],  # K values for precision@k, recall@k
    "relevance_threshold": 3.5,  # Ratings >= threshold count as relevant
    "n_inference_samples": 100,  # Number of samples for inference time measurement
}

# ============================================================================
# SERVING CONFIGURATION
# ============================================================================

SERVING_CONFIG = {
    "host": "0.0.0.0",
    "port": int(os.getenv("PORT", 8082)),
    "debug": False,
    "default_recommendations": 5,
    "max_recommendations": 100,
}
