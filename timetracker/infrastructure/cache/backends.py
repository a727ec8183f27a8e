"""
Storage backends for the query cache.
Values must be JSON serializable so both backends behave the same.
"""

import fnmatch
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import redis

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Key/value store with per key expiry."""

    name = "abstract"

    @abstractmethod
    def get(self, key: str) -> Tuple[bool, Any]:
        """Return (hit, value)."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> bool:
        pass

    @abstractmethod
    def delete(self, *keys: str) -> int:
        pass

    @abstractmethod
    def keys(self, pattern: str = "*") -> List[str]:
        pass


class InMemoryCacheBackend(CacheBackend):
    """Per process cache pool for development, tests and single worker setups."""

    name = "memory"

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._items: Dict[str, Tuple[float, str]] = {}

    def get(self, key: str) -> Tuple[bool, Any]:
        item = self._items.get(key)
        if item is None:
            return False, None

        expires_at, payload = item
        if expires_at <= self._clock():
            del self._items[key]
            return False, None
        return True, json.loads(payload)

    def set(self, key: str, value: Any, ttl: int) -> bool:
        self._items[key] = (self._clock() + ttl, json.dumps(value))
        return True

    def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self._items.pop(key, None) is not None:
                deleted += 1
        return deleted

    def keys(self, pattern: str = "*") -> List[str]:
        now = self._clock()
        return [
            key for key, (expires_at, _) in list(self._items.items())
            if expires_at > now and fnmatch.fnmatchcase(key, pattern)
        ]


class RedisCacheBackend(CacheBackend):
    """Redis cache wrapper with automatic serialization."""

    name = "redis"

    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = None):
        self._client = client
        self._url = url

    def _get_client(self) -> Optional[redis.Redis]:
        """Lazy load Redis client"""
        if self._client is None:
            try:
                self._client = redis.Redis.from_url(self._url, decode_responses=True)
            except (redis.RedisError, ValueError) as e:
                logger.warning(f"Redis cache unavailable: {e}")
                return None
        return self._client

    def get(self, key: str) -> Tuple[bool, Any]:
        client = self._get_client()
        if not client:
            return False, None

        try:
            value = client.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache get error for {key}: {e}")
            return False, None

        if value is None:
            return False, None
        return True, json.loads(value)

    def set(self, key: str, value: Any, ttl: int) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value))
            return True
        except redis.RedisError as e:
            logger.error(f"Cache set error for {key}: {e}")
            return False

    def delete(self, *keys: str) -> int:
        client = self._get_client()
        if not client or not keys:
            return 0

        try:
            return client.delete(*keys)
        except redis.RedisError as e:
            logger.error(f"Cache delete error for {keys}: {e}")
            return 0

    def keys(self, pattern: str = "*") -> List[str]:
        client = self._get_client()
        if not client:
            return []

        try:
            return list(client.scan_iter(match=pattern))
        except redis.RedisError as e:
            logger.error(f"Cache scan error for {pattern}: {e}")
            return []
