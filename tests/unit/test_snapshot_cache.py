import pytest
from keyperfect.storage.snapshot_cache import CachedSnapshot, SnapshotCache


@pytest.mark.anyio
async def test_put_then_get_returns_cached_payload(store, clock):
  cache = SnapshotCache(store=store, clock_ms=clock.ms)
  leaderboard = [{"name": "ana", "score": 120}, {"name": "ben", "score": 90}]

  await cache.put("leaderboard", leaderboard)
  clock.advance(seconds=90)
  snapshot = await cache.get("leaderboard")

  assert snapshot is not None
  assert snapshot.data == leaderboard
  assert snapshot.age_seconds(clock.ms()) == 90.0
  assert '"cachedAt"' in store.snapshot()["cache.leaderboard"]


@pytest.mark.anyio
async def test_get_missing_or_malformed_snapshot_returns_none(store, clock):
  cache = SnapshotCache(store=store, clock_ms=clock.ms)
  await store.write("cache.tournament", "[1, 2")

  assert await cache.get("leaderboard") is None
  assert await cache.get("tournament") is None


@pytest.mark.anyio
async def test_store_failures_are_best_effort(store, clock):
  cache = SnapshotCache(store=store, clock_ms=clock.ms)
  store.fail_writes = True
  store.fail_reads = True
  store.fail_deletes = True

  snapshot = await cache.put("leaderboard", {"top": []})
  assert snapshot == CachedSnapshot(data={"top": []}, cached_at=clock.ms())
  assert await cache.get("leaderboard") is None
  await cache.delete("leaderboard")


@pytest.mark.anyio
async def test_delete_removes_snapshot(store, clock):
  cache = SnapshotCache(store=store, clock_ms=clock.ms)
  await cache.put("tournament", {"round": 2})

  await cache.delete("tournament")

  assert await cache.get("tournament") is None
