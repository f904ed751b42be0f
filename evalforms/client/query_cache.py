from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any, Mapping, Protocol
from urllib.parse import urlencode

import redis

from evalforms.core.config import settings

_LOG = logging.getLogger("evalforms.client.cache")


def request_signature(path: str, params: Mapping[str, Any] | None = None) -> str:
    """Cache key for a GET: path plus its non-empty query params in sorted order."""
    clean = sorted((str(key), str(value)) for key, value in (params or {}).items() if value is not None and value != "")
    query = urlencode(clean)
    return f"{path}?{query}" if query else path


class QueryCache(Protocol):
    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        ...

    def invalidate(self, prefix: str) -> int:
        ...

    def clear(self) -> None:
        ...


class InMemoryQueryCache:
    def __init__(self):
        self._data: dict[str, tuple[Any, datetime]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Any | None:
        now = datetime.now(timezone.utc)
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= now:
                self._data.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=max(int(ttl_seconds), 1))
        with self._lock:
            self._data[key] = (value, expires_at)

    def invalidate(self, prefix: str) -> int:
        with self._lock:
            keys = [key for key in self._data if key.startswith(prefix)]
            for key in keys:
                del self._data[key]
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class RedisQueryCache:
    def __init__(self, client: redis.Redis, namespace: str = "evalforms:query:"):
        self.client = client
        self.namespace = namespace

    def get(self, key: str) -> Any | None:
        raw = self.client.get(self.namespace + key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return None

    def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        self.client.set(self.namespace + key, json.dumps(value), ex=int(max(ttl_seconds, 1)))

    def invalidate(self, prefix: str) -> int:
        removed = 0
        # Keys are compared literally; SCAN glob syntax only narrows the candidates.
        for raw_key in self.client.scan_iter(match=self.namespace + "*"):
            key = raw_key.decode() if isinstance(raw_key, bytes) else str(raw_key)
            if key[len(self.namespace):].startswith(prefix):
                removed += int(self.client.delete(key))
        return removed

    def clear(self) -> None:
        self.invalidate("")


def build_query_cache(backend: str | None = None) -> QueryCache:
    kind = str(backend or settings.CLIENT_CACHE_BACKEND or "memory").strip().lower()
    if kind != "redis":
        return InMemoryQueryCache()
    try:
        client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=0.4,
            socket_connect_timeout=0.4,
        )
        client.ping()
        return RedisQueryCache(client)
    except redis.RedisError:
        _LOG.warning("Redis query cache unavailable; fallback to in-memory cache")
        return InMemoryQueryCache()
