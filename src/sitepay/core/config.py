"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration for the report, directory, advance and config tables."""

    model_config = {"env_prefix": "SITEPAY_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "ap-northeast-2"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = {"env_prefix": "SITEPAY_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    decode_responses: bool = True
    key_prefix: str = "sitepay:"


class PayrollDefaultsConfig(BaseSettings):
    """Payroll config handling. Statutory rate defaults live on the PayrollConfig model."""

    model_config = {"env_prefix": "SITEPAY_PAYROLL_"}

    other_deduction_label: str = "기타 공제"
    config_cache_ttl: int = 86400  # cached copy is only read when the server copy fails


class ExportConfig(BaseSettings):
    """Bank transfer file field settings."""

    model_config = {"env_prefix": "SITEPAY_EXPORT_"}

    deposit_display: str = ""
    withdrawal_suffix: str = ""
    max_deposit_display_length: int = 10
    max_withdrawal_display_length: int = 14


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "SITEPAY_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    backend: Literal["memory", "dynamodb"] = "memory"

    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
    payroll: PayrollDefaultsConfig = PayrollDefaultsConfig()
    export: ExportConfig = ExportConfig()
