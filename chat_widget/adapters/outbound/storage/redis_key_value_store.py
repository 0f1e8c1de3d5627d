"""Redis key-value store adapter."""

from typing import Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from chat_widget.application.errors import StorageUnavailable
from chat_widget.application.ports.key_value_store import KeyValueStore


class RedisKeyValueStore(KeyValueStore):
    """Redis adapter for the key-value store."""

    KEY_PREFIX = "chat_widget:storage:"

    def __init__(self, redis_url: str) -> None:
        """
        Initialize Redis key-value store.

        Args:
            redis_url: Redis connection URL
        """
        self._redis_url = redis_url
        self._client: Optional[aioredis.Redis] = None

    async def _get_client(self) -> aioredis.Redis:
        """
        Get or create Redis client.

        Returns:
            Redis client instance
        """
        if self._client is None:
            self._client = await aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def _make_key(self, key: str) -> str:
        """
        Make namespaced Redis key.

        Args:
            key: Storage key

        Returns:
            Redis key string
        """
        return f"{self.KEY_PREFIX}{key}"

    async def get(self, key: str) -> Optional[str]:
        """
        Get a value.

        Args:
            key: Storage key

        Returns:
            Stored value, or None if not found
        """
        try:
            client = await self._get_client()
            return await client.get(self._make_key(key))
        except (RedisError, OSError) as e:
            raise StorageUnavailable(f"Redis read failed for {key!r}: {e}") from e

    async def set_many(self, items: dict[str, str]) -> None:
        """
        Store several keys with a single MSET.

        Args:
            items: Mapping of key to value
        """
        if not items:
            return
        try:
            client = await self._get_client()
            await client.mset({self._make_key(k): v for k, v in items.items()})
        except (RedisError, OSError) as e:
            raise StorageUnavailable(f"Redis write failed: {e}") from e

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None
