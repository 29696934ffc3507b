"""State and local entity storage."""

from .key_value import KeyValueStore, MemoryKeyValueStore, RedisKeyValueStore
from .entity_store import EntityStore
from .memory import MemoryEntityStore
from .mongo import MongoEntityStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "EntityStore",
    "MemoryEntityStore",
    "MongoEntityStore",
]
