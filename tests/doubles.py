"""Test doubles for the store, clock and sync target collaborators."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from keyperfect.storage.durable_store import StoreError
from keyperfect.storage.memory_store import InMemoryDurableStore
from keyperfect.sync.models import SyncQueueItem


class FakeClock:
  """Controllable wall clock."""

  def __init__(self, start: datetime) -> None:
    self.now = start

  def __call__(self) -> datetime:
    return self.now

  def ms(self) -> int:
    return int(self.now.timestamp() * 1000)

  def advance(self, **kwargs: float) -> None:
    self.now = self.now + timedelta(**kwargs)


class RecordingStore(InMemoryDurableStore):
  """In-memory store that counts calls and can be told to fail."""

  def __init__(self, initial: dict[str, str] | None = None) -> None:
    super().__init__(initial)
    self.writes: list[tuple[str, str]] = []
    self.deletes: list[str] = []
    self.fail_reads = False
    self.fail_writes = False
    self.fail_deletes = False

  async def read(self, key: str) -> str | None:
    if self.fail_reads:
      raise StoreError("read unavailable")
    return await super().read(key)

  async def write(self, key: str, value: str) -> None:
    if self.fail_writes:
      raise StoreError("disk full")
    self.writes.append((key, value))
    await super().write(key, value)

  async def delete(self, key: str) -> None:
    if self.fail_deletes:
      raise StoreError("delete unavailable")
    self.deletes.append(key)
    await super().delete(key)

  def writes_for(self, key: str) -> list[str]:
    return [value for written_key, value in self.writes if written_key == key]


class ScriptedTarget:
  """Sync target whose verdict per action is scripted by the test."""

  def __init__(self, *, reject_actions: set[str] | None = None, raise_actions: set[str] | None = None, hang_actions: set[str] | None = None) -> None:
    self.reject_actions = reject_actions or set()
    self.raise_actions = raise_actions or set()
    self.hang_actions = hang_actions or set()
    self.delivered: list[SyncQueueItem] = []
    self.gate: asyncio.Event | None = None

  async def deliver(self, item: SyncQueueItem) -> bool:
    self.delivered.append(item)
    if self.gate is not None:
      await self.gate.wait()
    if item.action in self.hang_actions:
      await asyncio.sleep(3600)
    if item.action in self.raise_actions:
      raise ConnectionError("backend unavailable")
    return item.action not in self.reject_actions

