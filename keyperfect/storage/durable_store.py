"""Storage contract for the durable key/value store used by the offline core."""

from __future__ import annotations

from typing import Protocol


class StoreError(Exception):
  """Raised by store implementations when a read, write or delete fails."""


class DurableStore(Protocol):
  """Asynchronous key to string persistence primitive.

  Implementations raise :class:`StoreError` for I/O failures. A missing key is
  not an error: ``read`` returns ``None`` and ``delete`` is a no-op.
  """

  async def read(self, key: str) -> str | None:
    """Return the stored value for a key, if present."""

  async def write(self, key: str, value: str) -> None:
    """Store a value, replacing any previous value for the key."""

  async def delete(self, key: str) -> None:
    """Remove a key."""
