"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from sitepay.core.config import AppSettings
from sitepay.core.protocols import (
    IAdvancePaymentStore,
    ICacheBackend,
    ICompanyDirectory,
    IPayrollConfigStore,
    IReportStore,
    ITeamDirectory,
    IWorkerDirectory,
)
from sitepay.persistence.config_store import CachedPayrollConfigStore
from sitepay.persistence.dynamodb_backend import (
    DynamoDBAdvancePaymentStore,
    DynamoDBDirectory,
    DynamoDBPayrollConfigStore,
    DynamoDBReportStore,
    DynamoDBTables,
)
from sitepay.persistence.memory_backend import (
    MemoryAdvancePaymentStore,
    MemoryCacheBackend,
    MemoryCompanyDirectory,
    MemoryPayrollConfigStore,
    MemoryReportStore,
    MemoryTeamDirectory,
    MemoryWorkerDirectory,
)
from sitepay.persistence.redis_backend import RedisCacheBackend


class Persistence(NamedTuple):
    reports: IReportStore
    workers: IWorkerDirectory
    teams: ITeamDirectory
    companies: ICompanyDirectory
    advances: IAdvancePaymentStore
    config_store: IPayrollConfigStore
    cache: ICacheBackend


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings."""
    if settings is None:
        settings = AppSettings()

    if settings.backend == "memory":
        cache = MemoryCacheBackend()
        return Persistence(
            reports=MemoryReportStore(),
            workers=MemoryWorkerDirectory(),
            teams=MemoryTeamDirectory(),
            companies=MemoryCompanyDirectory(),
            advances=MemoryAdvancePaymentStore(),
            config_store=CachedPayrollConfigStore(
                MemoryPayrollConfigStore(), cache, ttl=settings.payroll.config_cache_ttl,
            ),
            cache=cache,
        )

    cache = RedisCacheBackend(
        host=settings.redis.host,
        port=settings.redis.port,
        db=settings.redis.db,
        decode_responses=settings.redis.decode_responses,
        key_prefix=settings.redis.key_prefix,
    )
    tables = DynamoDBTables(
        table_suffix=settings.dynamodb.table_suffix,
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
    )
    directory = DynamoDBDirectory(tables)
    return Persistence(
        reports=DynamoDBReportStore(tables),
        workers=directory,
        teams=directory,
        companies=directory,
        advances=DynamoDBAdvancePaymentStore(tables),
        config_store=CachedPayrollConfigStore(
            DynamoDBPayrollConfigStore(tables), cache, ttl=settings.payroll.config_cache_ttl,
        ),
        cache=cache,
    )
