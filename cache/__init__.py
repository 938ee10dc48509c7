"""
cache package marker.
"""

from cache.status_cache import CACHE_STORE_KEY, StatusCache
from cache.store import InMemoryStore, JsonFileStore, KeyValueStore

__all__ = [
    "CACHE_STORE_KEY",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "StatusCache",
]
