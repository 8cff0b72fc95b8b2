"""Payroll config: the server copy when reachable, the last cached copy otherwise."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from sitepay.core.exceptions import CacheError, ConfigUnavailableError
from sitepay.core.protocols import ICacheBackend, IPayrollConfigStore
from sitepay.models.records import PayrollConfig

logger = logging.getLogger(__name__)

CACHE_KEY = "payroll_config"


class CachedPayrollConfigStore:
    """IPayrollConfigStore that refreshes a Redis copy on every successful server read."""

    def __init__(self, server: IPayrollConfigStore, cache: ICacheBackend, ttl: int = 86400) -> None:
        self._server = server
        self._cache = cache
        self._ttl = ttl

    async def get_config(self) -> PayrollConfig:
        try:
            config = await self._server.get_config()
        except Exception as server_exc:
            logger.warning("Payroll config server read failed (%s); trying cached copy", server_exc)
            return self._cached(server_exc)

        try:
            self._cache.setex(CACHE_KEY, self._ttl, config.model_dump_json(by_alias=True))
        except CacheError as exc:
            logger.warning("Could not refresh cached payroll config: %s", exc)
        return config

    def _cached(self, server_exc: Exception) -> PayrollConfig:
        try:
            raw = self._cache.get(CACHE_KEY)
        except CacheError as exc:
            raise ConfigUnavailableError(f"Server and cache both failed: {server_exc}; {exc}") from exc
        if raw is None:
            raise ConfigUnavailableError(f"Server read failed and no cached copy: {server_exc}") from server_exc
        try:
            return PayrollConfig.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigUnavailableError(f"Cached payroll config is unreadable: {exc}") from exc
