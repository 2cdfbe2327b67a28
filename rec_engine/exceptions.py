"""
Exception types raised by the recommendation engine.

Unknown users/items and undefined similarities are not errors: recommenders
recover from them locally and return empty or partial results.
"""


class RecommendationError(Exception):
    """Base class for all engine errors."""


class InvalidConfigurationError(RecommendationError, ValueError):
    """Rejected argument or record (negative n, inverted price range, ...)."""


class DataFormatError(RecommendationError, ValueError):
    """A catalog, profile or ratings record could not be parsed."""


class EngineNotLoadedError(RecommendationError):
    """The serving layer was asked for recommendations before an engine was loaded."""
