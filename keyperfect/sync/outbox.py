"""Durable outbox for actions produced while offline.

The in-memory queue is the source of truth; every mutation rewrites the whole
queue to the store. A failed write is logged and repaired by the next
mutation's write. Delivery is at-least-once and ordered per drain: a failed
item stays queued but does not stop later items from being attempted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

import msgspec

from keyperfect.network.monitor import NetworkMonitor
from keyperfect.storage.durable_store import DurableStore
from keyperfect.sync.contracts import SyncTarget
from keyperfect.sync.models import DrainResult, SyncQueueItem, decode_queue, encode_queue, validate_action
from keyperfect.utils.ids import generate_item_id

logger = logging.getLogger(__name__)

OUTBOX_QUEUE_KEY = "sync.outbox.queue"
OUTBOX_LAST_SYNC_KEY = "sync.outbox.last_sync"
DEFAULT_DELIVERY_TIMEOUT_SECONDS = 30.0


def _now_ms() -> int:
  return time.time_ns() // 1_000_000


class SyncOutbox:
  """Own the pending-action queue and drain it to a sync target when online."""

  def __init__(self, *, store: DurableStore, monitor: NetworkMonitor, target: SyncTarget, delivery_timeout_seconds: float | None = DEFAULT_DELIVERY_TIMEOUT_SECONDS, clock_ms: Callable[[], int] = _now_ms) -> None:
    self._store = store
    self._monitor = monitor
    self._target = target
    self._delivery_timeout_seconds = delivery_timeout_seconds
    self._clock_ms = clock_ms
    self._queue: list[SyncQueueItem] = []
    self._is_syncing = False
    self._last_sync_at: int | None = None
    self._loaded = False

  @property
  def items(self) -> tuple[SyncQueueItem, ...]:
    return tuple(self._queue)

  @property
  def pending_count(self) -> int:
    return len(self._queue)

  @property
  def is_syncing(self) -> bool:
    return self._is_syncing

  @property
  def last_sync_at(self) -> int | None:
    """Epoch milliseconds of the last drain that delivered something."""
    return self._last_sync_at

  async def load(self) -> int:
    """Restore the persisted queue; unreadable state degrades to empty.

    Persisted items go first, followed by in-memory items the store does not
    have yet (for example after a failed write), so loading never drops work.
    Mutating operations call this once on their own when the caller did not.
    """
    persisted = await self._read_queue()
    known = {item.id for item in persisted}
    self._queue = persisted + [item for item in self._queue if item.id not in known]
    last_sync_at = await self._read_last_sync()
    if last_sync_at is not None:
      self._last_sync_at = last_sync_at
    self._loaded = True
    if self._queue:
      logger.info("Loaded %d pending sync items", len(self._queue))
    return len(self._queue)

  async def enqueue(self, action: str, data: Any) -> SyncQueueItem:
    """Append an action to the queue and persist the queue."""
    validate_action(action)
    try:
      encoded = msgspec.json.encode(data)
    except (msgspec.EncodeError, TypeError) as exc:
      raise TypeError(f"Sync payload for {action} is not JSON-encodable: {exc}") from exc
    # Detach from the caller's objects so later mutation cannot change a queued item.
    data = msgspec.json.decode(encoded)

    await self._ensure_loaded()
    created_at = self._clock_ms()
    item = SyncQueueItem(id=self._unique_id(created_at), action=action, data=data, timestamp=created_at)
    self._queue.append(item)
    logger.info("Queued sync item id=%s action=%s pending=%d", item.id, item.action, len(self._queue))
    await self._persist_queue()
    return item

  async def process_queue(self) -> DrainResult:
    """Attempt delivery of every queued item once, in FIFO order."""
    if not self._monitor.state.connected:
      return DrainResult(skipped_reason="offline")
    if self._is_syncing:
      logger.debug("Drain already in progress; skipping")
      return DrainResult(skipped_reason="busy")
    await self._ensure_loaded()
    if not self._queue:
      return DrainResult(skipped_reason="empty")

    self._is_syncing = True
    try:
      # Iterate a snapshot so items enqueued mid-drain wait for the next pass.
      batch = list(self._queue)
      succeeded: list[str] = []
      failed: list[str] = []
      for item in batch:
        if await self._deliver(item):
          succeeded.append(item.id)
        else:
          failed.append(item.id)

      # Rebuild from the live queue to keep anything enqueued during the drain.
      delivered = set(succeeded)
      self._queue = [item for item in self._queue if item.id not in delivered]
      await self._persist_queue()

      if succeeded:
        self._last_sync_at = self._clock_ms()
        await self._write_last_sync(self._last_sync_at)

      logger.info("Drain finished attempted=%d succeeded=%d failed=%d pending=%d", len(batch), len(succeeded), len(failed), len(self._queue))
      return DrainResult(attempted=len(batch), succeeded_ids=tuple(succeeded), failed_ids=tuple(failed))
    finally:
      self._is_syncing = False

  async def clear_queue(self) -> None:
    """Drop every pending item and persist the empty queue."""
    await self._ensure_loaded()
    dropped = len(self._queue)
    self._queue = []
    await self._persist_queue()
    if dropped:
      logger.info("Cleared %d pending sync items", dropped)

  async def _ensure_loaded(self) -> None:
    if not self._loaded:
      await self.load()

  async def _deliver(self, item: SyncQueueItem) -> bool:
    try:
      if self._delivery_timeout_seconds is None:
        accepted = await self._target.deliver(item)
      else:
        accepted = await asyncio.wait_for(self._target.deliver(item), timeout=self._delivery_timeout_seconds)
    except TimeoutError:
      logger.warning("Sync delivery timed out id=%s action=%s timeout=%.1fs", item.id, item.action, self._delivery_timeout_seconds)
      return False
    except Exception as exc:  # noqa: BLE001
      logger.error("Sync delivery failed id=%s action=%s error=%s", item.id, item.action, exc, exc_info=True)
      return False

    if not accepted:
      logger.warning("Sync target rejected id=%s action=%s", item.id, item.action)
    return bool(accepted)

  def _unique_id(self, created_at: int) -> str:
    existing = {item.id for item in self._queue}
    item_id = generate_item_id(created_at)
    while item_id in existing:
      item_id = generate_item_id(created_at)
    return item_id

  async def _persist_queue(self) -> None:
    try:
      await self._store.write(OUTBOX_QUEUE_KEY, encode_queue(self._queue))
    except Exception as exc:  # noqa: BLE001
      # Memory stays authoritative; the next mutation rewrites the full queue.
      logger.error("Failed to persist sync queue pending=%d: %s", len(self._queue), exc)

  async def _read_queue(self) -> list[SyncQueueItem]:
    try:
      raw = await self._store.read(OUTBOX_QUEUE_KEY)
    except Exception as exc:  # noqa: BLE001
      logger.warning("Failed to read sync queue; starting empty: %s", exc)
      return []
    if raw is None:
      return []
    try:
      items, dropped = decode_queue(raw)
    except msgspec.DecodeError as exc:
      logger.warning("Discarding malformed sync queue: %s", exc)
      return []
    if dropped:
      logger.warning("Dropped %d malformed sync items while loading the queue", dropped)
    return items

  async def _read_last_sync(self) -> int | None:
    try:
      raw = await self._store.read(OUTBOX_LAST_SYNC_KEY)
    except Exception as exc:  # noqa: BLE001
      logger.warning("Failed to read last sync time: %s", exc)
      return None
    if raw is None:
      return None
    try:
      return int(raw.strip())
    except ValueError:
      logger.warning("Ignoring malformed last sync time: %r", raw)
      return None

  async def _write_last_sync(self, value: int) -> None:
    try:
      await self._store.write(OUTBOX_LAST_SYNC_KEY, str(value))
    except Exception as exc:  # noqa: BLE001
      logger.warning("Failed to persist last sync time: %s", exc)
