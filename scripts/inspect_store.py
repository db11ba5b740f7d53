from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path

import msgspec

from keyperfect.config import get_settings
from keyperfect.session.journal import SESSION_JOURNAL_KEY
from keyperfect.session.models import decode_session
from keyperfect.storage.durable_store import DurableStore
from keyperfect.storage.file_store import FileDurableStore
from keyperfect.sync.models import decode_queue
from keyperfect.sync.outbox import OUTBOX_LAST_SYNC_KEY, OUTBOX_QUEUE_KEY


def _format_ms(value: int) -> str:
  return datetime.fromtimestamp(value / 1000, tz=UTC).isoformat(timespec="seconds")


async def describe_session(store: DurableStore) -> list[str]:
  """Render the stored session checkpoint without mutating it."""
  raw = await store.read(SESSION_JOURNAL_KEY)
  if raw is None:
    return ["Session: none"]
  try:
    record = decode_session(raw)
  except msgspec.DecodeError as exc:
    return [f"Session: malformed ({exc})"]

  resumable = record.is_resumable(now=datetime.now(UTC))
  return [
    f"Session: mode={record.mode} attempts={record.attempts} score={record.score} streak={record.streak} difficulty={record.difficulty}",
    f"  items: {', '.join(record.selected_items) or '(none)'}",
    f"  started: {record.start_time.isoformat()}",
    f"  last update: {record.last_update_time.isoformat()} ({'resumable' if resumable else 'expired'})",
  ]


async def describe_outbox(store: DurableStore) -> list[str]:
  """Render the stored outbox queue in delivery order."""
  lines: list[str] = []
  raw = await store.read(OUTBOX_QUEUE_KEY)
  if raw is None:
    lines.append("Outbox: empty")
  else:
    try:
      items, dropped = decode_queue(raw)
    except msgspec.DecodeError as exc:
      return [f"Outbox: malformed ({exc})"]
    lines.append(f"Outbox: {len(items)} pending" + (f" ({dropped} malformed skipped)" if dropped else ""))
    for position, item in enumerate(items, start=1):
      lines.append(f"  {position}. {item.id} {item.action} queued={_format_ms(item.timestamp)} data={json.dumps(item.data, sort_keys=True)}")

  last_sync = await store.read(OUTBOX_LAST_SYNC_KEY)
  if last_sync and last_sync.strip().isdigit():
    lines.append(f"Last sync: {_format_ms(int(last_sync.strip()))}")
  return lines


async def inspect(data_dir: Path, *, section: str) -> int:
  store = FileDurableStore(data_dir)
  lines: list[str] = []
  if section in {"session", "all"}:
    lines.extend(await describe_session(store))
  if section in {"outbox", "all"}:
    lines.extend(await describe_outbox(store))
  for line in lines:
    print(line)
  return 0


def main(argv: list[str] | None = None) -> None:
  """Print the persisted session checkpoint and sync outbox of a data directory."""
  parser = argparse.ArgumentParser(description="Inspect KeyPerfect offline state on disk.")
  parser.add_argument("section", nargs="?", choices=("session", "outbox", "all"), default="all")
  parser.add_argument("--data-dir", type=Path, default=None, help="Store directory (defaults to KEYPERFECT_DATA_DIR).")
  args = parser.parse_args(argv)

  data_dir = args.data_dir or Path(get_settings().data_dir)
  if not data_dir.is_dir():
    print(f"Error: data directory {data_dir} does not exist.")
    sys.exit(1)

  sys.exit(asyncio.run(inspect(data_dir, section=args.section)))


if __name__ == "__main__":
  main()
