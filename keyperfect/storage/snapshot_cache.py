"""Cache of read-only server data (leaderboards, tournaments) for offline viewing."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import msgspec

from keyperfect.storage.durable_store import DurableStore

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "cache."


class CachedSnapshot(msgspec.Struct, rename="camel", frozen=True):
  """A cached payload and the time it was captured (epoch milliseconds)."""

  data: Any
  cached_at: int

  def age_seconds(self, now_ms: int) -> float:
    return max(now_ms - self.cached_at, 0) / 1000.0


def _now_ms() -> int:
  return time.time_ns() // 1_000_000


class SnapshotCache:
  """Best-effort named snapshots stored under ``cache.<name>``."""

  def __init__(self, *, store: DurableStore, clock_ms: Callable[[], int] = _now_ms) -> None:
    self._store = store
    self._clock_ms = clock_ms

  @staticmethod
  def key_for(name: str) -> str:
    return f"{CACHE_KEY_PREFIX}{name}"

  async def put(self, name: str, data: Any) -> CachedSnapshot:
    """Cache a payload; store failures are logged and the snapshot is still returned."""
    snapshot = CachedSnapshot(data=data, cached_at=self._clock_ms())
    # Encoding errors are caller bugs and propagate before any I/O happens.
    encoded = msgspec.json.encode(snapshot).decode("utf-8")
    try:
      await self._store.write(self.key_for(name), encoded)
    except Exception as exc:  # noqa: BLE001
      logger.warning("Failed to cache snapshot name=%s error=%s", name, exc)
    return snapshot

  async def get(self, name: str) -> CachedSnapshot | None:
    """Return a cached snapshot, or None when it is missing or unreadable."""
    try:
      raw = await self._store.read(self.key_for(name))
    except Exception as exc:  # noqa: BLE001
      logger.warning("Failed to read cached snapshot name=%s error=%s", name, exc)
      return None
    if raw is None:
      return None
    try:
      return msgspec.json.decode(raw, type=CachedSnapshot)
    except msgspec.DecodeError as exc:
      logger.warning("Discarding malformed cached snapshot name=%s error=%s", name, exc)
      return None

  async def delete(self, name: str) -> None:
    try:
      await self._store.delete(self.key_for(name))
    except Exception as exc:  # noqa: BLE001
      logger.warning("Failed to delete cached snapshot name=%s error=%s", name, exc)
