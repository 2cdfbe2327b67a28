"""
Recommendation Engine Package for Product Recommendations

This package contains modular components for:
- Rating storage (user/item indexed ratings)
- Similarity computation (Pearson correlation, log-likelihood ratio)
- Neighborhood selection
- Recommenders (user-based CF, item-based CF, content-based, hybrid)
- Data loading (ratings CSV, catalog/profile JSON)
- Offline evaluation (precision@k, recall@k, coverage, latency)
- Serving (Flask API)
"""

__version__ = "1.0.0"
