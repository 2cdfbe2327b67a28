"""
Sample catalog, user profiles and ratings used for demos and tests.
"""

from typing import Dict, List, Tuple

from .entities import Product, UserProfile


def sample_catalog() -> Dict[int, Product]:
    products = [
        Product(1, "MacBook Pro", "Electronics", 1299.99, {"laptop", "apple", "professional"}),
        Product(2, "iPhone 15", "Electronics", 999.99, {"phone", "apple", "mobile"}),
        Product(3, "Nike Air Max", "Footwear", 129.99, {"shoes", "nike", "sports"}),
        Product(4, "The Great Gatsby", "Books", 12.99, {"fiction", "classic", "literature"}),
        Product(5, "Wireless Headphones", "Electronics", 199.99, {"audio", "wireless", "headphones"}),
        Product(6, "Running Shorts", "Clothing", 29.99, {"sports", "clothing", "running"}),
        Product(7, "Coffee Maker", "Appliances", 79.99, {"coffee", "appliance", "kitchen"}),
        Product(8, "Yoga Mat", "Sports", 24.99, {"yoga", "fitness", "exercise"}),
    ]
    return {product.id: product for product in products}


def sample_profiles() -> Dict[int, UserProfile]:
    profiles = [
        UserProfile(1, "Alice", {"Electronics", "Books"}, 10.0, 500.0),
        UserProfile(2, "Bob", {"Sports", "Clothing"}, 20.0, 200.0),
        UserProfile(3, "Charlie", {"Electronics", "Appliances"}, 50.0, 1500.0),
        UserProfile(4, "Diana", {"Books", "Sports"}, 15.0, 300.0),
    ]
    return {profile.id: profile for profile in profiles}


def sample_ratings() -> List[Tuple[int, int, float]]:
    """(user_id, item_id, rating) triples."""
    return [
        (1, 1, 5.0),  # Alice: MacBook Pro
        (1, 2, 4.0),
        (1, 4, 5.0),
        (1, 5, 4.0),

        (2, 3, 5.0),  # Bob: Nike Air Max
        (2, 6, 4.0),
        (2, 8, 5.0),
        (2, 1, 2.0),  # Bob doesn't like expensive electronics

        (3, 1, 5.0),  # Charlie: MacBook Pro
        (3, 2, 4.0),
        (3, 5, 5.0),
        (3, 7, 4.0),

        (4, 4, 5.0),  # Diana: The Great Gatsby
        (4, 8, 4.0),
        (4, 3, 3.0),
        (4, 6, 3.0),
    ]
