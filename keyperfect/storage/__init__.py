"""Storage package exports."""

from .durable_store import DurableStore, StoreError
from .file_store import FileDurableStore
from .memory_store import InMemoryDurableStore
from .snapshot_cache import CachedSnapshot, SnapshotCache

__all__ = ["DurableStore", "StoreError", "FileDurableStore", "InMemoryDurableStore", "CachedSnapshot", "SnapshotCache"]
