"""Durable key-value store port."""

from abc import ABC, abstractmethod
from typing import Optional

class KeyValueStore(ABC):
    """Port interface for the durable local key-value store."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get the value stored under a key.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if the key is absent

        Raises:
            StorageUnavailable: If the store cannot be read
        """
        pass

    @abstractmethod
    async def set_many(self, items: dict[str, str]) -> None:
        """
        Store several keys in a single write.

        Either every key is written or none is.

        Args:
            items: Mapping of key to value

        Raises:
            StorageUnavailable: If the store cannot be written
        """
        pass

    async def close(self) -> None:
        """Release connections held by the store. Stores without any do nothing."""
        pass
