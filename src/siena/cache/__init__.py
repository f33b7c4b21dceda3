"""Cache subsystem — content-addressed variant files plus an in-memory index."""

from siena.cache.gc import collect_garbage
from siena.cache.index import CacheIndex
from siena.cache.keys import hash_image
from siena.cache.stats import CacheStats, DirectoryStats

__all__ = [
    "CacheIndex",
    "CacheStats",
    "DirectoryStats",
    "collect_garbage",
    "hash_image",
]
