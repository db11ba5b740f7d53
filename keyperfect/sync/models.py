"""Domain models for the durable sync outbox."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, get_args

import msgspec

SyncAction = Literal["save_stats", "save_settings", "complete_daily"]
SYNC_ACTIONS: tuple[str, ...] = get_args(SyncAction)

DrainSkipReason = Literal["offline", "busy", "empty"]


class SyncQueueItem(msgspec.Struct, frozen=True):
  """An immutable state-changing action waiting for delivery."""

  id: str
  action: SyncAction
  data: Any
  timestamp: int


@dataclass(frozen=True)
class DrainResult:
  """Outcome of one pass over the outbox."""

  attempted: int = 0
  succeeded_ids: tuple[str, ...] = ()
  failed_ids: tuple[str, ...] = ()
  skipped_reason: DrainSkipReason | None = None

  @property
  def processed_count(self) -> int:
    return len(self.succeeded_ids)

  @property
  def failed_count(self) -> int:
    return len(self.failed_ids)

  @property
  def skipped(self) -> bool:
    return self.skipped_reason is not None


def validate_action(action: str) -> SyncAction:
  """Reject actions outside the closed taxonomy."""
  if action not in SYNC_ACTIONS:
    raise ValueError(f"Unsupported sync action: {action}")
  return action  # type: ignore[return-value]


def encode_queue(items: list[SyncQueueItem]) -> str:
  return msgspec.json.encode(items).decode("utf-8")


def decode_queue(raw: str) -> tuple[list[SyncQueueItem], int]:
  """Decode a stored queue, skipping individual malformed items.

  Returns the valid items and the number of dropped ones. Raises
  ``msgspec.DecodeError`` when the payload is not a JSON array at all.
  """
  raw_items = msgspec.json.decode(raw, type=list[msgspec.Raw])
  items: list[SyncQueueItem] = []
  dropped = 0
  seen_ids: set[str] = set()
  for raw_item in raw_items:
    try:
      item = msgspec.json.decode(raw_item, type=SyncQueueItem)
    except msgspec.DecodeError:
      dropped += 1
      continue
    # Duplicate ids would break removal by id; keep the first occurrence.
    if item.id in seen_ids:
      dropped += 1
      continue
    seen_ids.add(item.id)
    items.append(item)
  return items, dropped
