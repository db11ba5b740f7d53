"""Connectivity collaborators for the offline core.

The core only needs two things from the platform: the current ``connected``
flag and a notification whenever connectivity changes. ``NetworkMonitor`` is
that contract. ``ManualNetworkMonitor`` lets platform glue (or a test) push
state in, and ``ProbeNetworkMonitor`` derives state from periodic TCP connects
for desktop and development runtimes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkState:
  """Snapshot of device connectivity; ``None`` means unknown."""

  connected: bool
  reachable: bool | None = None
  transport: str | None = None


NetworkHandler = Callable[[NetworkState], None]
Unsubscribe = Callable[[], None]


class NetworkMonitor(Protocol):
  """Observer contract for connectivity changes."""

  @property
  def state(self) -> NetworkState:
    """Return the current connectivity snapshot."""

  def subscribe(self, handler: NetworkHandler) -> Unsubscribe:
    """Invoke ``handler`` on every state transition until unsubscribed."""


class ManualNetworkMonitor:
  """Monitor whose state is pushed in through :meth:`update`."""

  def __init__(self, initial: NetworkState | None = None) -> None:
    self._state = initial or NetworkState(connected=False)
    self._handlers: list[NetworkHandler] = []

  @property
  def state(self) -> NetworkState:
    return self._state

  @property
  def subscriber_count(self) -> int:
    return len(self._handlers)

  def subscribe(self, handler: NetworkHandler) -> Unsubscribe:
    self._handlers.append(handler)

    def _unsubscribe() -> None:
      # Idempotent so callers can unsubscribe from cleanup paths freely.
      if handler in self._handlers:
        self._handlers.remove(handler)

    return _unsubscribe

  def update(self, state: NetworkState) -> bool:
    """Record a new state and notify subscribers if it changed."""
    if state == self._state:
      return False
    previous = self._state
    self._state = state
    logger.info("Network state changed connected=%s->%s reachable=%s transport=%s", previous.connected, state.connected, state.reachable, state.transport)
    # Iterate over a copy so handlers may unsubscribe while being notified.
    for handler in list(self._handlers):
      try:
        handler(state)
      except Exception as exc:  # noqa: BLE001
        logger.error("Network change handler failed: %s", exc, exc_info=True)
    return True


class ProbeNetworkMonitor(ManualNetworkMonitor):
  """Derive connectivity from TCP connects to a known host on a fixed interval."""

  def __init__(self, *, host: str, port: int = 443, interval_seconds: float = 30.0, timeout_seconds: float = 5.0, transport: str | None = None) -> None:
    super().__init__()
    self._host = host
    self._port = port
    self._interval_seconds = interval_seconds
    self._timeout_seconds = timeout_seconds
    self._transport = transport
    self._task: asyncio.Task[None] | None = None

  @property
  def running(self) -> bool:
    return self._task is not None and not self._task.done()

  async def probe(self) -> NetworkState:
    """Run one probe, publish the result and return it."""
    try:
      _, writer = await asyncio.wait_for(asyncio.open_connection(self._host, self._port), timeout=self._timeout_seconds)
    except (OSError, TimeoutError) as exc:
      logger.debug("Connectivity probe to %s:%s failed: %s", self._host, self._port, exc)
      state = NetworkState(connected=False, reachable=False, transport=None)
    else:
      writer.close()
      with contextlib.suppress(OSError):
        await writer.wait_closed()
      state = NetworkState(connected=True, reachable=True, transport=self._transport)
    self.update(state)
    return state

  def start(self) -> None:
    """Start probing in a background task on the running loop."""
    if self.running:
      return
    self._task = asyncio.get_running_loop().create_task(self._run(), name="network-probe")
    logger.info("ProbeNetworkMonitor started host=%s port=%s interval=%.0fs", self._host, self._port, self._interval_seconds)

  async def stop(self) -> None:
    task, self._task = self._task, None
    if task is None:
      return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
      await task

  async def _run(self) -> None:
    while True:
      await self.probe()
      await asyncio.sleep(self._interval_seconds)
