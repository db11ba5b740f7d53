"""Domain models for practice session checkpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Literal

import msgspec
from msgspec import structs

PracticeMode = Literal["notes", "chords", "mixed"]

SESSION_MAX_AGE = timedelta(hours=24)


def as_utc(value: datetime) -> datetime:
  """Treat naive timestamps as UTC so comparisons never mix naive and aware values."""
  if value.tzinfo is None:
    return value.replace(tzinfo=UTC)
  return value


class PracticeSessionRecord(msgspec.Struct, rename="camel", frozen=True):
  """Checkpoint of the single in-progress practice session on this device."""

  mode: PracticeMode
  selected_items: list[str]
  difficulty: int
  score: int
  attempts: int
  streak: int
  start_time: datetime
  last_update_time: datetime

  def is_resumable(self, *, now: datetime, max_age: timedelta = SESSION_MAX_AGE) -> bool:
    """A session is resumable once an answer was given and it is younger than ``max_age``."""
    if self.attempts <= 0:
      return False
    return as_utc(now) - as_utc(self.last_update_time) < max_age

  def touched(self, now: datetime) -> PracticeSessionRecord:
    """Return a copy stamped with a new ``last_update_time``."""
    return structs.replace(self, last_update_time=now)


def encode_session(record: PracticeSessionRecord) -> str:
  return msgspec.json.encode(record).decode("utf-8")


def decode_session(raw: str) -> PracticeSessionRecord:
  """Decode a stored checkpoint; raises ``msgspec.DecodeError`` on malformed payloads."""
  return msgspec.json.decode(raw, type=PracticeSessionRecord)
