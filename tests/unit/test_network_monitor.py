import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from keyperfect.network.monitor import ManualNetworkMonitor, NetworkState, ProbeNetworkMonitor

ONLINE = NetworkState(connected=True, reachable=True, transport="wifi")


def test_manual_monitor_defaults_to_disconnected():
  assert ManualNetworkMonitor().state == NetworkState(connected=False)


def test_update_notifies_only_on_change():
  monitor = ManualNetworkMonitor()
  seen = []
  monitor.subscribe(seen.append)

  assert monitor.update(ONLINE) is True
  assert monitor.update(ONLINE) is False

  assert seen == [ONLINE]
  assert monitor.state == ONLINE


def test_unsubscribe_is_idempotent():
  monitor = ManualNetworkMonitor()
  seen = []
  unsubscribe = monitor.subscribe(seen.append)

  unsubscribe()
  unsubscribe()
  monitor.update(ONLINE)

  assert seen == []
  assert monitor.subscriber_count == 0


def test_failing_handler_does_not_block_other_subscribers():
  monitor = ManualNetworkMonitor()
  seen = []
  monitor.subscribe(MagicMock(side_effect=RuntimeError("handler bug")))
  monitor.subscribe(seen.append)

  monitor.update(ONLINE)

  assert seen == [ONLINE]


def test_handler_may_unsubscribe_while_notified():
  monitor = ManualNetworkMonitor()
  calls = []

  def once(state):
    calls.append(state)
    unsubscribe()

  unsubscribe = monitor.subscribe(once)
  monitor.update(ONLINE)
  monitor.update(NetworkState(connected=False))

  assert calls == [ONLINE]


@pytest.mark.anyio
async def test_probe_publishes_connected_when_host_answers():
  writer = MagicMock()
  writer.wait_closed = AsyncMock()
  monitor = ProbeNetworkMonitor(host="sync.example.test", transport="wifi")

  with patch("keyperfect.network.monitor.asyncio.open_connection", AsyncMock(return_value=(MagicMock(), writer))):
    state = await monitor.probe()

  assert state == NetworkState(connected=True, reachable=True, transport="wifi")
  assert monitor.state == state
  writer.close.assert_called_once()


@pytest.mark.anyio
async def test_probe_publishes_disconnected_on_connection_error():
  monitor = ProbeNetworkMonitor(host="sync.example.test")
  monitor.update(ONLINE)

  with patch("keyperfect.network.monitor.asyncio.open_connection", AsyncMock(side_effect=ConnectionRefusedError())):
    state = await monitor.probe()

  assert state.connected is False
  assert state.reachable is False


@pytest.mark.anyio
async def test_start_and_stop_manage_background_probe():
  monitor = ProbeNetworkMonitor(host="sync.example.test", interval_seconds=0.01)

  with patch("keyperfect.network.monitor.asyncio.open_connection", AsyncMock(side_effect=OSError("unreachable"))):
    monitor.start()
    assert monitor.running is True
    await asyncio.sleep(0.05)
    await monitor.stop()

  assert monitor.running is False
  assert monitor.state.reachable is False
