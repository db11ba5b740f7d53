"""Crash-tolerant checkpointing for the active practice session.

State machine::

    NoSession -> (save_session) -> PendingUnpersisted
    PendingUnpersisted -> (threshold reached | force_save) -> Persisted
    Persisted -> (check_for_session on next start) -> Resumable | Expired
    Resumable -> (resume_session) -> Consumed
    Expired -> (deleted on read) -> NoSession
    any -> (clear_session) -> NoSession

Writes are batched: only every ``save_interval``-th ``save_session`` call hits
the store, so a crash can lose at most ``save_interval - 1`` answers. Call
``force_save`` whenever the session is about to be abandoned.

Not safe for concurrent use from several threads; the journal is driven from
one event loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import msgspec

from keyperfect.session.models import SESSION_MAX_AGE, PracticeSessionRecord, decode_session, encode_session
from keyperfect.storage.durable_store import DurableStore

logger = logging.getLogger(__name__)

SESSION_JOURNAL_KEY = "session.journal"
SAVE_INTERVAL = 5


def utc_now() -> datetime:
  return datetime.now(UTC)


class SessionJournal:
  """Checkpoint progress for the single active practice session."""

  def __init__(self, *, store: DurableStore, save_interval: int = SAVE_INTERVAL, max_age: timedelta = SESSION_MAX_AGE, clock: Callable[[], datetime] = utc_now) -> None:
    if save_interval < 1:
      raise ValueError("save_interval must be at least 1.")
    self._store = store
    self._save_interval = save_interval
    self._max_age = max_age
    self._clock = clock
    self._saved_session: PracticeSessionRecord | None = None
    self._has_unfinished_session = False
    self._pending_session: PracticeSessionRecord | None = None
    self._unsaved_count = 0

  @property
  def saved_session(self) -> PracticeSessionRecord | None:
    """Resumable record found by the last ``check_for_session``."""
    return self._saved_session

  @property
  def has_unfinished_session(self) -> bool:
    return self._has_unfinished_session

  @property
  def pending_session(self) -> PracticeSessionRecord | None:
    """Latest record handed to ``save_session``, persisted or not."""
    return self._pending_session

  @property
  def unsaved_count(self) -> int:
    """Number of ``save_session`` calls since the last successful persist."""
    return self._unsaved_count

  async def check_for_session(self) -> PracticeSessionRecord | None:
    """Load the stored checkpoint and offer it for resumption when still valid."""
    try:
      raw = await self._store.read(SESSION_JOURNAL_KEY)
    except Exception as exc:  # noqa: BLE001
      # An unreadable checkpoint must never block startup; treat it as absent.
      logger.warning("Failed to read session checkpoint: %s", exc)
      return None

    if raw is None:
      return None

    try:
      record = decode_session(raw)
    except msgspec.DecodeError as exc:
      logger.warning("Discarding malformed session checkpoint: %s", exc)
      await self._delete_stored()
      return None

    if not record.is_resumable(now=self._clock(), max_age=self._max_age):
      logger.info("Discarding stale session checkpoint attempts=%d last_update_time=%s", record.attempts, record.last_update_time.isoformat())
      await self._delete_stored()
      self._saved_session = None
      self._has_unfinished_session = False
      return None

    self._saved_session = record
    self._has_unfinished_session = True
    logger.info("Found resumable session mode=%s attempts=%d score=%d", record.mode, record.attempts, record.score)
    return record

  async def save_session(self, record: PracticeSessionRecord) -> None:
    """Stage a checkpoint and persist it once the batching threshold is reached."""
    self._pending_session = record.touched(self._clock())
    self._unsaved_count += 1

    if self._unsaved_count < self._save_interval:
      return

    # Keep the counter on failure so the next answer retries the write.
    if await self._persist(self._pending_session):
      self._unsaved_count = 0

  async def force_save(self) -> None:
    """Persist the pending checkpoint immediately, closing the batching window."""
    if self._pending_session is None:
      return
    if await self._persist(self._pending_session):
      self._unsaved_count = 0

  def resume_session(self) -> PracticeSessionRecord | None:
    """Consume the resume offer; a second call returns None."""
    if not self._has_unfinished_session or self._saved_session is None:
      return None
    self._has_unfinished_session = False
    return self._saved_session

  async def clear_session(self) -> None:
    """Forget the session in memory and in the store."""
    await self._delete_stored()
    self._saved_session = None
    self._has_unfinished_session = False
    self._pending_session = None
    self._unsaved_count = 0

  async def _persist(self, record: PracticeSessionRecord) -> bool:
    try:
      await self._store.write(SESSION_JOURNAL_KEY, encode_session(record))
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to persist session checkpoint attempts=%d: %s", record.attempts, exc)
      return False
    logger.debug("Persisted session checkpoint attempts=%d score=%d", record.attempts, record.score)
    return True

  async def _delete_stored(self) -> None:
    try:
      await self._store.delete(SESSION_JOURNAL_KEY)
    except Exception as exc:  # noqa: BLE001
      logger.warning("Failed to delete session checkpoint: %s", exc)
