"""Redis cache backend implementing ICacheBackend."""

from __future__ import annotations

import redis

from sitepay.core.exceptions import CacheError


class RedisCacheBackend:
    """Production ICacheBackend backed by Redis.

    Keys are namespaced with ``key_prefix`` so several environments can share
    one Redis database without reading each other's payroll config.
    """

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0,
                 decode_responses: bool = True, key_prefix: str = "sitepay:") -> None:
        self._client = redis.Redis(
            host=host, port=port, db=db, decode_responses=decode_responses,
        )
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(self._key(key))
        except Exception as exc:
            raise CacheError(f"Redis GET failed for key={self._key(key)!r}: {exc}") from exc

    def setex(self, key: str, ttl: int, value: str) -> None:
        try:
            self._client.setex(self._key(key), ttl, value)
        except Exception as exc:
            raise CacheError(f"Redis SETEX failed for key={self._key(key)!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except Exception as exc:
            raise CacheError(f"Redis DELETE failed for key={self._key(key)!r}: {exc}") from exc

    def ping(self) -> bool:
        """Round-trip to the server. Used by /ready."""
        try:
            return bool(self._client.ping())
        except Exception as exc:
            raise CacheError(f"Redis PING failed: {exc}") from exc
