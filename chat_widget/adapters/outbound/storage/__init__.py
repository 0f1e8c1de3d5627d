"""Key-value store adapters."""

from chat_widget.adapters.outbound.storage.in_memory_key_value_store import (
    InMemoryKeyValueStore,
)
from chat_widget.adapters.outbound.storage.json_file_key_value_store import (
    JsonFileKeyValueStore,
)
from chat_widget.adapters.outbound.storage.redis_key_value_store import RedisKeyValueStore
from chat_widget.adapters.outbound.storage.sql_key_value_store import SqlKeyValueStore

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "RedisKeyValueStore",
    "SqlKeyValueStore",
]
