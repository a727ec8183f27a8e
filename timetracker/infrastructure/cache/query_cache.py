"""
Query cache with TTL and tag based invalidation.
Wraps expensive aggregate queries; entry changes invalidate by tag.
"""

import logging
from typing import Any, Callable, Dict, Iterable, Optional

from timetracker.config import settings
from .backends import CacheBackend, InMemoryCacheBackend, RedisCacheBackend

logger = logging.getLogger(__name__)

# Tag membership outlives the members it points to
TAG_TTL = 86400


class QueryCacheService:
    """
    Caches query results under a common prefix.

    Keys can be tagged; invalidating a tag removes every key carrying it.
    """

    def __init__(
        self,
        backend: CacheBackend,
        prefix: str = "query_",
        default_ttl: int = 300
    ):
        self.backend = backend
        self.prefix = prefix
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.prefix}tag_{tag}"

    @staticmethod
    def entity_tag(entity: str, entity_id: Any) -> str:
        return f"{entity}:{entity_id}"

    def remember(
        self,
        key: str,
        callback: Callable[[], Any],
        ttl: Optional[int] = None,
        tags: Iterable[str] = ()
    ) -> Any:
        """Return the cached value or compute, store and tag it."""
        hit, value = self.backend.get(self._key(key))
        if hit:
            logger.debug(f"Cache HIT: {key}")
            return value

        logger.debug(f"Cache MISS: {key}")
        value = callback()
        self.set(key, value, ttl)
        if tags:
            self.tag(key, *tags)
        return value

    def get(self, key: str, default: Any = None) -> Any:
        hit, value = self.backend.get(self._key(key))
        return value if hit else default

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ttl = ttl if ttl is not None else self.default_ttl
        stored = self.backend.set(self._key(key), value, ttl)
        if stored:
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return stored

    def has(self, key: str) -> bool:
        hit, _ = self.backend.get(self._key(key))
        return hit

    def delete(self, key: str) -> bool:
        return self.backend.delete(self._key(key)) > 0

    def clear(self, pattern: Optional[str] = None) -> int:
        """Delete all keys matching the pattern (fnmatch syntax), or everything."""
        keys = self.backend.keys(self._key(pattern or "*"))
        deleted = self.backend.delete(*keys) if keys else 0
        logger.debug(f"Cache CLEAR: {pattern or '*'} ({deleted} keys)")
        return deleted

    def tag(self, key: str, *tags: str) -> None:
        full_key = self._key(key)
        for tag in tags:
            hit, members = self.backend.get(self._tag_key(tag))
            members = set(members) if hit and members else set()
            members.add(full_key)
            self.backend.set(self._tag_key(tag), sorted(members), TAG_TTL)

    def invalidate_tag(self, tag: str) -> int:
        """Remove every key carrying the tag."""
        hit, members = self.backend.get(self._tag_key(tag))
        keys = list(members) if hit and members else []
        deleted = self.backend.delete(*keys, self._tag_key(tag))
        logger.debug(f"Cache INVALIDATE tag {tag} ({len(keys)} keys)")
        return deleted

    def invalidate_entity(self, entity: str, entity_id: Any) -> int:
        """Invalidate everything cached for one entity and entity wide aggregates."""
        return self.invalidate_tag(self.entity_tag(entity, entity_id)) + self.invalidate_tag(entity)

    def warm_up(self, items: Dict[str, Callable[[], Any]], ttl: Optional[int] = None) -> int:
        """Pre-populate keys that are not cached yet."""
        warmed = 0
        for key, callback in items.items():
            if not self.has(key):
                self.set(key, callback(), ttl)
                warmed += 1
        return warmed

    def get_stats(self) -> Dict[str, Any]:
        tag_keys = self.backend.keys(self._tag_key("*"))
        all_keys = self.backend.keys(self._key("*"))
        return {
            "backend": self.backend.name,
            "prefix": self.prefix,
            "default_ttl": self.default_ttl,
            "keys": len(all_keys) - len(tag_keys),
            "tag_count": len(tag_keys),
        }


def create_cache_backend() -> CacheBackend:
    """Backend selected by configuration."""
    if settings.cache_backend == "redis":
        return RedisCacheBackend(url=settings.redis_url)
    return InMemoryCacheBackend()


# Singleton instance
_query_cache: Optional[QueryCacheService] = None


def get_query_cache() -> QueryCacheService:
    """Get singleton query cache instance."""
    global _query_cache
    if _query_cache is None:
        _query_cache = QueryCacheService(
            create_cache_backend(),
            prefix=settings.cache_prefix,
            default_ttl=settings.cache_ttl,
        )
    return _query_cache
