"""Sync outbox exports."""

from .contracts import SyncActionHandler, SyncTarget
from .coordinator import SyncCoordinator
from .dispatch import SyncHandlerRegistry
from .models import SYNC_ACTIONS, DrainResult, SyncAction, SyncQueueItem
from .outbox import OUTBOX_LAST_SYNC_KEY, OUTBOX_QUEUE_KEY, SyncOutbox

__all__ = ["OUTBOX_LAST_SYNC_KEY", "OUTBOX_QUEUE_KEY", "SYNC_ACTIONS", "DrainResult", "SyncAction", "SyncActionHandler", "SyncCoordinator", "SyncHandlerRegistry", "SyncOutbox", "SyncQueueItem", "SyncTarget"]
