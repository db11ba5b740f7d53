"""Wiring of the offline core from settings."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta

from keyperfect.config import Settings
from keyperfect.core.logging import initialize_logging
from keyperfect.network.monitor import ManualNetworkMonitor, NetworkMonitor, ProbeNetworkMonitor
from keyperfect.session.journal import SessionJournal
from keyperfect.session.models import PracticeSessionRecord
from keyperfect.storage.durable_store import DurableStore
from keyperfect.storage.file_store import FileDurableStore
from keyperfect.storage.memory_store import InMemoryDurableStore
from keyperfect.storage.snapshot_cache import SnapshotCache
from keyperfect.sync.contracts import SyncTarget
from keyperfect.sync.coordinator import SyncCoordinator
from keyperfect.sync.outbox import SyncOutbox

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> DurableStore:
  """Factory to get the configured durable store."""
  if settings.store_backend == "memory":
    return InMemoryDurableStore()
  return FileDurableStore(settings.data_dir)


def build_monitor(settings: Settings) -> NetworkMonitor:
  """Probe a host when one is configured; otherwise platform glue pushes state."""
  if settings.network_probe_host:
    return ProbeNetworkMonitor(host=settings.network_probe_host, port=settings.network_probe_port, interval_seconds=settings.network_probe_interval_seconds, timeout_seconds=settings.network_probe_timeout_seconds)
  return ManualNetworkMonitor()


@dataclass
class OfflineCore:
  """Explicitly constructed journal, outbox and their collaborators."""

  store: DurableStore
  monitor: NetworkMonitor
  journal: SessionJournal
  outbox: SyncOutbox
  coordinator: SyncCoordinator
  cache: SnapshotCache

  async def start(self) -> PracticeSessionRecord | None:
    """Restore persisted state and begin reacting to connectivity.

    Returns the resumable practice session, if any.
    """
    await self.outbox.load()
    session = await self.journal.check_for_session()
    if isinstance(self.monitor, ProbeNetworkMonitor):
      self.monitor.start()
    self.coordinator.start()
    return session

  async def shutdown(self) -> None:
    """Close the batching window and let running drains finish."""
    await self.journal.force_save()
    await self.coordinator.aclose()
    if isinstance(self.monitor, ProbeNetworkMonitor):
      await self.monitor.stop()
    logger.info("Offline core stopped pending_sync=%d", self.outbox.pending_count)


def build_offline_core(settings: Settings, *, target: SyncTarget, store: DurableStore | None = None, monitor: NetworkMonitor | None = None) -> OfflineCore:
  """Build the offline core; ``store`` and ``monitor`` override the settings-driven defaults."""
  store = store if store is not None else build_store(settings)
  monitor = monitor if monitor is not None else build_monitor(settings)
  journal = SessionJournal(store=store, save_interval=settings.session_save_interval, max_age=timedelta(hours=settings.session_max_age_hours))
  outbox = SyncOutbox(store=store, monitor=monitor, target=target, delivery_timeout_seconds=settings.sync_delivery_timeout_seconds)
  coordinator = SyncCoordinator(monitor=monitor, outbox=outbox)
  cache = SnapshotCache(store=store)
  return OfflineCore(store=store, monitor=monitor, journal=journal, outbox=outbox, coordinator=coordinator, cache=cache)


@asynccontextmanager
async def offline_core_lifespan(settings: Settings, *, target: SyncTarget, store: DurableStore | None = None, monitor: NetworkMonitor | None = None) -> AsyncIterator[OfflineCore]:
  """Run the offline core for the lifetime of the host app.

  Logging is initialized before anything else so restore and drain logs land in
  the configured file. The host reads ``journal.saved_session`` for the resume
  offer found at startup.
  """
  initialize_logging(settings)
  core = build_offline_core(settings, target=target, store=store, monitor=monitor)
  await core.start()
  logger.info("Offline core started pending_sync=%d resumable_session=%s", core.outbox.pending_count, core.journal.has_unfinished_session)
  try:
    yield core
  finally:
    await core.shutdown()
