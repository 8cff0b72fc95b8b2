"""sitepay exception hierarchy."""

from __future__ import annotations


class SitePayError(Exception):
    """Base exception for all sitepay errors."""


class SettlementRunError(SitePayError):
    """Error during a settlement run."""


class DirectoryFetchError(SettlementRunError):
    """A reference directory could not be fetched; the whole run is aborted."""

    def __init__(self, directory: str, message: str) -> None:
        self.directory = directory
        super().__init__(f"Fetching {directory} failed: {message}")


class StaleRunError(SettlementRunError):
    """A newer run was started while this one was in flight."""

    def __init__(self, generation: int, current: int) -> None:
        self.generation = generation
        self.current = current
        super().__init__(f"Run {generation} superseded by run {current}")


class ConfigUnavailableError(SitePayError):
    """Payroll config could not be read from the server or the cache."""


class CacheError(SitePayError):
    """Redis cache operation failed."""


class StoreError(SitePayError):
    """A backing store (DynamoDB) query failed."""


class RowNotFoundError(SitePayError):
    """No transfer row with the requested key in the latest result."""

    def __init__(self, row_key: str) -> None:
        self.row_key = row_key
        super().__init__(f"No transfer row {row_key!r}")


class NoSettlementResultError(SitePayError):
    """No settlement run has completed yet."""
