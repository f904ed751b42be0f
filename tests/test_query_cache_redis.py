import fnmatch
import unittest
from unittest.mock import patch

import redis

from evalforms.client.query_cache import InMemoryQueryCache, RedisQueryCache, build_query_cache


class _FakeRedis:
    def __init__(self, fail_ping: bool = False):
        self.data = {}
        self.expiry = {}
        self.fail_ping = fail_ping

    def ping(self):
        if self.fail_ping:
            raise redis.ConnectionError("connection refused")
        return True

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    def scan_iter(self, match=None):
        return iter([key for key in list(self.data) if match is None or fnmatch.fnmatchcase(key, match)])

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed


class RedisQueryCacheTests(unittest.TestCase):
    def setUp(self):
        self.redis = _FakeRedis()
        self.cache = RedisQueryCache(self.redis)

    def test_values_round_trip_under_namespace_with_ttl(self):
        self.cache.set("/templates?status=active", [{"id": "t1"}], ttl_seconds=120)
        self.assertIn("evalforms:query:/templates?status=active", self.redis.data)
        self.assertEqual(self.redis.expiry["evalforms:query:/templates?status=active"], 120)
        self.assertEqual(self.cache.get("/templates?status=active"), [{"id": "t1"}])
        self.assertIsNone(self.cache.get("/templates"))

    def test_unreadable_entry_is_a_miss(self):
        self.redis.data["evalforms:query:/submissions"] = "{broken"
        self.assertIsNone(self.cache.get("/submissions"))

    def test_invalidate_removes_only_matching_prefix(self):
        self.cache.set("/submissions?page=1", {"total": 0}, ttl_seconds=60)
        self.cache.set("/submissions/s1", {"id": "s1"}, ttl_seconds=60)
        self.cache.set("/templates", [], ttl_seconds=60)
        self.redis.data["other-app:/submissions"] = "[]"

        self.assertEqual(self.cache.invalidate("/submissions"), 2)
        self.assertIsNone(self.cache.get("/submissions/s1"))
        self.assertEqual(self.cache.get("/templates"), [])
        self.assertIn("other-app:/submissions", self.redis.data)

        self.cache.clear()
        self.assertEqual(list(self.redis.data), ["other-app:/submissions"])


class BuildQueryCacheTests(unittest.TestCase):
    def test_memory_backend_by_default(self):
        self.assertIsInstance(build_query_cache("memory"), InMemoryQueryCache)

    def test_redis_backend_when_reachable(self):
        with patch("evalforms.client.query_cache.redis.Redis.from_url", return_value=_FakeRedis()):
            self.assertIsInstance(build_query_cache("redis"), RedisQueryCache)

    def test_falls_back_to_memory_when_redis_is_down(self):
        with patch("evalforms.client.query_cache.redis.Redis.from_url", return_value=_FakeRedis(fail_ping=True)):
            with self.assertLogs("evalforms.client.cache", level="WARNING"):
                cache = build_query_cache("redis")
        self.assertIsInstance(cache, InMemoryQueryCache)
