"""In-memory key-value store adapter."""

from typing import Optional

from chat_widget.application.ports.key_value_store import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory implementation of the key-value store (lost on exit)."""

    def __init__(self) -> None:
        """Initialize in-memory store."""
        self._storage: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        """Get a value."""
        return self._storage.get(key)

    async def set_many(self, items: dict[str, str]) -> None:
        """Store several keys."""
        self._storage.update(items)
