"""Dependency-injected routing of outbox items to per-action handlers."""

from __future__ import annotations

from collections.abc import Mapping

from keyperfect.sync.contracts import SyncActionHandler
from keyperfect.sync.models import SYNC_ACTIONS, SyncQueueItem, validate_action


class SyncHandlerRegistry:
  """Registry mapping sync actions to handlers; usable as a ``SyncTarget``."""

  def __init__(self, handlers: Mapping[str, SyncActionHandler]) -> None:
    for action in handlers:
      validate_action(action)
    self._handlers = dict(handlers)

  @property
  def missing_actions(self) -> tuple[str, ...]:
    """Actions that have no handler yet."""
    return tuple(action for action in SYNC_ACTIONS if action not in self._handlers)

  def resolve(self, action: str) -> SyncActionHandler:
    """Resolve the handler for an action."""
    handler = self._handlers.get(action)
    if handler is None:
      raise ValueError(f"No sync handler registered for action: {action}")
    return handler

  async def deliver(self, item: SyncQueueItem) -> bool:
    handler = self.resolve(item.action)
    return await handler.handle(item)
