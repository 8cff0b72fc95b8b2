"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sitepay.api.routes import health, settlement
from sitepay.core.config import AppSettings
from sitepay.core.exceptions import (
    DirectoryFetchError,
    NoSettlementResultError,
    RowNotFoundError,
    StaleRunError,
)
from sitepay.core.log_config import configure_logging
from sitepay.persistence import Persistence, create_persistence
from sitepay.settlement.orchestrator.settlement_run import SettlementRunner


def build_runner(persistence: Persistence, settings: AppSettings) -> SettlementRunner:
    return SettlementRunner(
        reports=persistence.reports,
        workers=persistence.workers,
        teams=persistence.teams,
        companies=persistence.companies,
        advances=persistence.advances,
        config_store=persistence.config_store,
        settings=settings,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings = getattr(app.state, "settings", None) or AppSettings()
    configure_logging(settings.log_level)
    app.state.settings = settings
    if getattr(app.state, "persistence", None) is None:
        app.state.persistence = create_persistence(settings)
    app.state.runner = build_runner(app.state.persistence, settings)
    yield


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(settings: AppSettings | None = None, persistence: Persistence | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="SitePay Settlement Engine",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.persistence = persistence

    @app.exception_handler(DirectoryFetchError)
    async def _directory_fetch(request: Request, exc: DirectoryFetchError) -> JSONResponse:
        return _error(502, exc)

    @app.exception_handler(StaleRunError)
    async def _stale_run(request: Request, exc: StaleRunError) -> JSONResponse:
        return _error(409, exc)

    @app.exception_handler(RowNotFoundError)
    async def _row_not_found(request: Request, exc: RowNotFoundError) -> JSONResponse:
        return _error(404, exc)

    @app.exception_handler(NoSettlementResultError)
    async def _no_result(request: Request, exc: NoSettlementResultError) -> JSONResponse:
        return _error(404, exc)

    app.include_router(health.router)
    app.include_router(settlement.router, prefix="/settlements")
    return app
