"""File-backed durable store: one JSON document per key inside a data directory."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from keyperfect.storage.durable_store import StoreError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


class FileDurableStore:
  """Persist each key as ``<root>/<key>.json``.

  Writes go to a temporary file in the same directory and are moved into place
  with ``os.replace`` so a crash mid-write leaves the previous value intact.
  Blocking file I/O runs in the thread pool to keep the event loop free.
  """

  def __init__(self, root: str | Path) -> None:
    self._root = Path(root).expanduser()

  @property
  def root(self) -> Path:
    return self._root

  def path_for(self, key: str) -> Path:
    """Resolve the file path for a key, rejecting keys that could escape the root."""
    # Dots are allowed for namespacing, but never a bare "." or "..".
    if not _KEY_PATTERN.match(key) or set(key) == {"."}:
      raise ValueError(f"Invalid store key: {key!r}")
    return self._root / f"{key}.json"

  async def read(self, key: str) -> str | None:
    path = self.path_for(key)
    try:
      return await run_in_threadpool(self._read_sync, path)
    except (OSError, UnicodeDecodeError) as exc:
      raise StoreError(f"Failed to read {key}: {exc}") from exc

  async def write(self, key: str, value: str) -> None:
    path = self.path_for(key)
    try:
      await run_in_threadpool(self._write_sync, path, value)
    except OSError as exc:
      raise StoreError(f"Failed to write {key}: {exc}") from exc

  async def delete(self, key: str) -> None:
    path = self.path_for(key)
    try:
      await run_in_threadpool(path.unlink, missing_ok=True)
    except OSError as exc:
      raise StoreError(f"Failed to delete {key}: {exc}") from exc

  @staticmethod
  def _read_sync(path: Path) -> str | None:
    try:
      return path.read_text(encoding="utf-8")
    except FileNotFoundError:
      return None

  def _write_sync(self, path: Path, value: str) -> None:
    self._root.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=self._root)
    try:
      with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(value)
        handle.flush()
        os.fsync(handle.fileno())
      os.replace(tmp_name, path)
    except BaseException:
      # Never leave half-written temp files behind.
      Path(tmp_name).unlink(missing_ok=True)
      raise
    logger.debug("Wrote %d chars to %s", len(value), path)
