"""Glue that drains the outbox whenever the device comes online."""

from __future__ import annotations

import asyncio
import logging

from keyperfect.network.monitor import NetworkMonitor, NetworkState, Unsubscribe
from keyperfect.sync.models import DrainResult
from keyperfect.sync.outbox import SyncOutbox

logger = logging.getLogger(__name__)


class SyncCoordinator:
  """Schedule an outbox drain on every transition to connected.

  Notifications must arrive on the event loop thread. Rapid flapping simply
  schedules more drains; the outbox ignores overlapping ones.
  """

  def __init__(self, *, monitor: NetworkMonitor, outbox: SyncOutbox) -> None:
    self._monitor = monitor
    self._outbox = outbox
    self._unsubscribe: Unsubscribe | None = None
    self._tasks: set[asyncio.Task[DrainResult]] = set()

  @property
  def started(self) -> bool:
    return self._unsubscribe is not None

  @property
  def in_flight(self) -> int:
    return len(self._tasks)

  def start(self) -> None:
    """Subscribe to connectivity changes and drain right away if already online."""
    if self._unsubscribe is not None:
      return
    self._unsubscribe = self._monitor.subscribe(self._on_network_change)
    if self._monitor.state.connected:
      self.schedule_drain()

  def stop(self) -> None:
    unsubscribe, self._unsubscribe = self._unsubscribe, None
    if unsubscribe is not None:
      unsubscribe()

  async def aclose(self) -> None:
    """Stop listening and wait for drains that are already running."""
    self.stop()
    if self._tasks:
      await asyncio.gather(*self._tasks, return_exceptions=True)

  def schedule_drain(self) -> asyncio.Task[DrainResult]:
    """Run ``process_queue`` in the background on the running loop."""
    task = asyncio.get_running_loop().create_task(self._outbox.process_queue(), name="sync-outbox-drain")
    self._tasks.add(task)
    task.add_done_callback(self._on_drain_done)
    return task

  def _on_network_change(self, state: NetworkState) -> None:
    if not state.connected:
      return
    logger.info("Connectivity restored; draining %d pending sync items", self._outbox.pending_count)
    self.schedule_drain()

  def _on_drain_done(self, task: asyncio.Task[DrainResult]) -> None:
    """Log background drain exceptions to avoid silent sync failures."""
    self._tasks.discard(task)
    if task.cancelled():
      return
    try:
      _ = task.result()
    except Exception as exc:  # noqa: BLE001
      logger.error("Background outbox drain failed: %s", exc, exc_info=True)
