"""
Query cache for aggregate results.
"""

from .backends import CacheBackend, InMemoryCacheBackend, RedisCacheBackend
from .query_cache import QueryCacheService, get_query_cache

__all__ = [
    "CacheBackend",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "QueryCacheService",
    "get_query_cache",
]
