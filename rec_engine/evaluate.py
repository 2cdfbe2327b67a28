"""
Model Evaluation Module

Offline evaluation metrics for the recommenders:
- Precision@K
- Recall@K
- Catalog coverage
- Inference time/throughput

Any recommender with recommend(user_id, n) works; results may be
RecommendedItem / HybridRecommendation objects or plain item ids.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from . import config

logger = logging.getLogger(__name__)


def split_ratings(ratings_df: pd.DataFrame,
                  test_size: float = 0.2,
                  random_state: int = 42) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Randomly split ratings into train and test sets.

    Args:
        ratings_df: DataFrame with user_id, item_id, rating
        test_size: Proportion of data to use for testing
        random_state: Random seed for reproducibility

    Returns:
        Tuple of (train_df, test_df)
    """
    train_df, test_df = train_test_split(
        ratings_df,
        test_size=test_size,
        random_state=random_state
    )
    return train_df.copy(), test_df.copy()


def _item_ids(recommendations: Iterable) -> List[int]:
    return [getattr(rec, "item_id", rec) for rec in recommendations]


def _relevant_items_by_user(test_df: pd.DataFrame, relevance_threshold: float) -> Dict[int, set]:
    filtered = test_df[
        (test_df['rating'].notna()) &
        (test_df['rating'] >= relevance_threshold)
    ]
    return defaultdict(
        set,
        filtered.groupby('user_id')['item_id'].apply(set).to_dict()
    )


def evaluate_precision_at_k(recommender, test_df: pd.DataFrame, k: int = 5,
                            relevance_threshold: float = config.EVALUATION_CONFIG["relevance_threshold"]) -> float:
    """
    Calculate Precision@K.

    Precision@K = (# of relevant items in top-K) / K

    Args:
        recommender: Object with recommend(user_id, n)
        test_df: Held-out ratings with user_id, item_id, rating
        k: Number of recommendations to consider
        relevance_threshold: Ratings at or above this count as relevant

    Returns:
        Average Precision@K across users with at least one relevant item
    """
    precision_scores = []

    for user_id, relevant_items in _relevant_items_by_user(test_df, relevance_threshold).items():
        recommendations = _item_ids(recommender.recommend(int(user_id), k))
        relevant_in_recs = len(set(recommendations) & relevant_items)
        precision_scores.append(relevant_in_recs / k)

    if len(precision_scores) == 0:
        return 0.0

    return float(np.mean(precision_scores))


def evaluate_recall_at_k(recommender, test_df: pd.DataFrame, k: int = 5,
                         relevance_threshold: float = config.EVALUATION_CONFIG["relevance_threshold"]) -> float:
    """
    Calculate Recall@K.

    Recall@K = (# of relevant items in top-K) / (total # of relevant items)
    """
    recall_scores = []

    for user_id, relevant_items in _relevant_items_by_user(test_df, relevance_threshold).items():
        recommendations = _item_ids(recommender.recommend(int(user_id), k))
        relevant_in_recs = len(set(recommendations) & relevant_items)
        recall_scores.append(relevant_in_recs / len(relevant_items))

    if len(recall_scores) == 0:
        return 0.0

    return float(np.mean(recall_scores))


def evaluate_catalog_coverage(recommender, user_ids: Iterable[int],
                              catalog_size: int, k: int = 5) -> float:
    """
    Share of the catalog that appears in at least one user's top-K.

    Returns:
        Coverage in [0, 1]; 0.0 for an empty catalog
    """
    if catalog_size <= 0:
        return 0.0

    unique_items = set()
    for user_id in user_ids:
        unique_items.update(_item_ids(recommender.recommend(user_id, k)))

    return len(unique_items) / catalog_size


def measure_inference_time(recommender, user_ids: List[int],
                           n_samples: int = 100,
                           n_recommendations: int = 5,
                           random_state: int = 42) -> Dict[str, float]:
    """
    Measure inference performance.

    Args:
        recommender: Object with recommend(user_id, n)
        user_ids: Users to sample requests from
        n_samples: Number of recommendation requests to time
        n_recommendations: Number of recommendations per request

    Returns:
        Dict with:
        - mean_time_ms: Average inference time in milliseconds
        - p95_time_ms: 95th percentile latency
        - requests_per_second: Throughput
    """
    if not user_ids:
        return {'mean_time_ms': 0.0, 'p95_time_ms': 0.0, 'requests_per_second': 0.0}

    rng = np.random.default_rng(random_state)
    user_sample = rng.choice(user_ids, size=n_samples, replace=True)

    latencies = []
    for user_id in user_sample:
        start_time = time.perf_counter()
        recommender.recommend(int(user_id), n_recommendations)
        end_time = time.perf_counter()
        latencies.append((end_time - start_time) * 1000)

    latencies = np.array(latencies)

    mean_time_ms = float(np.mean(latencies))
    p95_time_ms = float(np.percentile(latencies, 95))
    requests_per_second = 1000 / mean_time_ms if mean_time_ms > 0 else 0.0

    return {
        'mean_time_ms': mean_time_ms,
        'p95_time_ms': p95_time_ms,
        'requests_per_second': float(requests_per_second)
    }


def generate_evaluation_report(recommender, test_df: pd.DataFrame,
                               eval_config: dict = None,
                               catalog_size: int = None) -> Dict:
    """
    Generate evaluation report with all metrics.

    Args:
        recommender: Object with recommend(user_id, n) (and optionally get_model_info())
        test_df: Held-out ratings
        eval_config: Evaluation configuration (k_values, n_inference_samples, ...)
        catalog_size: Number of recommendable items, enables coverage

    Returns:
        Dict with precision@k, recall@k, coverage (if catalog_size),
        inference_time and model_info
    """
    eval_config = {**config.EVALUATION_CONFIG, **(eval_config or {})}
    k_values = eval_config['k_values']
    threshold = eval_config['relevance_threshold']
    user_ids = sorted(int(u) for u in test_df['user_id'].unique())

    report = {}

    logger.info(f"Calculating Precision@K / Recall@K for K={k_values}")
    report['precision@k'] = {
        k: evaluate_precision_at_k(recommender, test_df, k=k, relevance_threshold=threshold)
        for k in k_values
    }
    report['recall@k'] = {
        k: evaluate_recall_at_k(recommender, test_df, k=k, relevance_threshold=threshold)
        for k in k_values
    }
    for k in k_values:
        logger.info(f"  Precision@{k}: {report['precision@k'][k]:.4f}  "
                    f"Recall@{k}: {report['recall@k'][k]:.4f}")

    if catalog_size:
        report['coverage'] = evaluate_catalog_coverage(
            recommender, user_ids, catalog_size, k=max(k_values)
        )
        logger.info(f"  Coverage@{max(k_values)}: {report['coverage']:.4f}")

    latency_stats = measure_inference_time(
        recommender,
        user_ids,
        n_samples=eval_config['n_inference_samples'],
        n_recommendations=max(k_values),
    )
    report['inference_time'] = latency_stats
    logger.info(f"  Mean latency: {latency_stats['mean_time_ms']:.2f} ms, "
                f"P95: {latency_stats['p95_time_ms']:.2f} ms")

    if hasattr(recommender, 'get_model_info'):
        report['model_info'] = recommender.get_model_info()
    else:
        report['model_info'] = {'algorithm': type(recommender).__name__}

    return report
