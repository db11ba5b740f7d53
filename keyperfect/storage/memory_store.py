"""In-process durable store used for tests and the ``memory`` backend."""

from __future__ import annotations

from collections.abc import Mapping


class InMemoryDurableStore:
  """Dictionary-backed store; state lives only as long as the instance."""

  def __init__(self, initial: Mapping[str, str] | None = None) -> None:
    self._values: dict[str, str] = dict(initial or {})

  async def read(self, key: str) -> str | None:
    return self._values.get(key)

  async def write(self, key: str, value: str) -> None:
    self._values[key] = value

  async def delete(self, key: str) -> None:
    self._values.pop(key, None)

  def snapshot(self) -> dict[str, str]:
    """Return a copy of every stored key, for inspection."""
    return dict(self._values)
