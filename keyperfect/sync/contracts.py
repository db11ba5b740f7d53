"""Contracts between the outbox and whatever delivers its items."""

from __future__ import annotations

from typing import Protocol

from keyperfect.sync.models import SyncQueueItem


class SyncTarget(Protocol):
  """Delivery contract for queued actions.

  Delivery is at-least-once: the same item may be delivered again after a lost
  acknowledgment, so implementations must be idempotent per ``item.id``.
  """

  async def deliver(self, item: SyncQueueItem) -> bool:
    """Deliver one item and return True once the backend accepted it."""


class SyncActionHandler(Protocol):
  """Handler for a single action kind."""

  async def handle(self, item: SyncQueueItem) -> bool:
    """Deliver one item of the handler's action kind."""
