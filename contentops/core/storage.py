"""
Key/value persistence adapters

Durable string-keyed storage with get/set/remove semantics. Values are
already-serialized strings; the services own the serialization format.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the persistence backend cannot complete a read or write"""


class KeyValueStore(ABC):
    """Abstract key/value persistence collaborator"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent"""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value"""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete key; absent keys are ignored"""

    async def close(self) -> None:
        """Release backend resources"""


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store for tests and ephemeral sessions"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class RedisKeyValueStore(KeyValueStore):
    """
    Redis-backed store. Values survive process restarts; no TTL is applied.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        key_prefix: str = "",
        client: Optional["redis.Redis"] = None
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.connection_pool: Optional["redis.ConnectionPool"] = None
        self.redis_client = client

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def _ensure_client(self) -> "redis.Redis":
        if self.redis_client is None:
            self.connection_pool = redis.ConnectionPool.from_url(
                self.redis_url,
                encoding='utf-8',
                decode_responses=True,
                max_connections=10,
                socket_connect_timeout=5,
                socket_timeout=10
            )
            self.redis_client = redis.Redis(connection_pool=self.connection_pool)
        return self.redis_client

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._ensure_client().get(self._key(key))
        except redis.RedisError as e:
            raise StorageError(f"Redis read failed for '{key}': {e}") from e
        if isinstance(value, bytes):
            return value.decode('utf-8')
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self._ensure_client().set(self._key(key), value)
        except redis.RedisError as e:
            raise StorageError(f"Redis write failed for '{key}': {e}") from e

    async def remove(self, key: str) -> None:
        try:
            await self._ensure_client().delete(self._key(key))
        except redis.RedisError as e:
            raise StorageError(f"Redis delete failed for '{key}': {e}") from e

    async def close(self) -> None:
        """Close Redis connections gracefully"""
        if self.redis_client is not None:
            try:
                await self.redis_client.aclose()
            except redis.RedisError as e:
                logger.error(f"Error closing Redis client: {e}")
            self.redis_client = None

        if self.connection_pool is not None:
            try:
                await self.connection_pool.disconnect()
            except redis.RedisError as e:
                logger.error(f"Error closing Redis connection pool: {e}")
            self.connection_pool = None
