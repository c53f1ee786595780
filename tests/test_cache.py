import unittest

from tracker.cache import MetadataCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeFetcher:
    def __init__(self):
        self.calls = 0
        self.fail = False

    async def __call__(self, key):
        self.calls += 1
        if self.fail:
            raise ConnectionError("transport down")
        return {"id": key, "version": self.calls}


class TestMetadataCache(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = MetadataCache(ttl=30, timer=self.clock)
        self.fetch = FakeFetcher()

    async def test_fresh_entry_is_served_without_fetch(self):
        first = await self.cache.get("g1", self.fetch)
        self.clock.now += 10
        second = await self.cache.get("g1", self.fetch)
        self.assertEqual(self.fetch.calls, 1)
        self.assertIs(first, second)

    async def test_expired_entry_is_refreshed(self):
        await self.cache.get("g1", self.fetch)
        self.clock.now += 31
        data = await self.cache.get("g1", self.fetch)
        self.assertEqual(self.fetch.calls, 2)
        self.assertEqual(data["version"], 2)

    async def test_stale_entry_served_when_refresh_fails(self):
        await self.cache.get("g1", self.fetch)
        self.clock.now += 31
        self.fetch.fail = True
        with self.assertLogs(level="WARNING") as logs:
            data = await self.cache.get("g1", self.fetch)
        self.assertEqual(data["version"], 1)
        self.assertTrue(any("stale" in line for line in logs.output))
        # still stale-serving on the next failure, and still retrying
        data = await self.cache.get("g1", self.fetch)
        self.assertEqual(data["version"], 1)
        self.assertEqual(self.fetch.calls, 3)

    async def test_failure_without_prior_entry_propagates(self):
        self.fetch.fail = True
        with self.assertLogs(level="ERROR"):
            with self.assertRaises(ConnectionError):
                await self.cache.get("g1", self.fetch)

    async def test_per_call_ttl_can_shorten_freshness(self):
        await self.cache.get("g1", self.fetch)
        self.clock.now += 5
        await self.cache.get("g1", self.fetch, ttl=2)
        self.assertEqual(self.fetch.calls, 2)

    async def test_invalidate_forces_refetch_but_keeps_fallback(self):
        await self.cache.get("g1", self.fetch)
        self.cache.invalidate("g1")
        self.assertNotIn("g1", self.cache)
        self.fetch.fail = True
        with self.assertLogs(level="WARNING"):
            data = await self.cache.get("g1", self.fetch)
        self.assertEqual(data["version"], 1)


if __name__ == '__main__':
    unittest.main()
