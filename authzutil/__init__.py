"""Key matchers, matcher-expression helpers and LRU caches for access-control policy engines."""

__version__ = "0.1.0"

__all__ = ["lru", "operators", "util"]