"""Shared fixtures for the offline core tests."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from keyperfect.network.monitor import ManualNetworkMonitor, NetworkState
from tests.doubles import FakeClock, RecordingStore, ScriptedTarget


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
  return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def store() -> RecordingStore:
  return RecordingStore()


@pytest.fixture
def offline_monitor() -> ManualNetworkMonitor:
  return ManualNetworkMonitor(NetworkState(connected=False, reachable=False, transport="none"))


@pytest.fixture
def target() -> ScriptedTarget:
  return ScriptedTarget()
