"""Durable key-value stores for operation state."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import asyncio
import json
import logging

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Key-value store partitioned in named collections."""

    @abstractmethod
    async def get(self, collection: str, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    async def set(self, collection: str, key: str, value: Any) -> None:
        pass

    @abstractmethod
    async def set_if_not_exists(self, collection: str, key: str, value: Any) -> bool:
        """Atomically set a value unless the key is already set.

        Returns:
            Whether the value was set.
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, key: str) -> None:
        pass

    @abstractmethod
    async def get_all(self, collection: str) -> Dict[str, Any]:
        pass

    async def close(self) -> None:
        pass


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, collection: str, key: str, default: Any = None) -> Any:
        return self._collections.get(collection, {}).get(key, default)

    async def set(self, collection: str, key: str, value: Any) -> None:
        async with self._lock:
            self._collections.setdefault(collection, {})[key] = value

    async def set_if_not_exists(self, collection: str, key: str, value: Any) -> bool:
        async with self._lock:
            values = self._collections.setdefault(collection, {})
            if key in values:
                return False
            values[key] = value
            return True

    async def delete(self, collection: str, key: str) -> None:
        async with self._lock:
            self._collections.get(collection, {}).pop(key, None)

    async def get_all(self, collection: str) -> Dict[str, Any]:
        return dict(self._collections.get(collection, {}))


_read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
    reraise=True,
)


class RedisKeyValueStore(KeyValueStore):
    """Store keeping each collection in a Redis hash of JSON values."""

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None):
        if client is None:
            if redis_url is None:
                raise ValueError("Either a Redis URL or a client is required")
            client = redis.from_url(redis_url, decode_responses=True)
        self.redis_client = client

    @_read_retry
    async def get(self, collection: str, key: str, default: Any = None) -> Any:
        value = await self.redis_client.hget(collection, key)
        if value is None:
            return default
        return json.loads(value)

    async def set(self, collection: str, key: str, value: Any) -> None:
        await self.redis_client.hset(collection, key, json.dumps(value))

    async def set_if_not_exists(self, collection: str, key: str, value: Any) -> bool:
        result = await self.redis_client.hsetnx(collection, key, json.dumps(value))
        return bool(result)

    async def delete(self, collection: str, key: str) -> None:
        await self.redis_client.hdel(collection, key)

    @_read_retry
    async def get_all(self, collection: str) -> Dict[str, Any]:
        values = await self.redis_client.hgetall(collection)
        return {key: json.loads(value) for key, value in values.items()}

    async def close(self) -> None:
        await self.redis_client.aclose()
        logger.info("Closed Redis connection")
