"""Health check endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from sitepay.core.exceptions import CacheError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request) -> dict[str, str]:
    runner = request.app.state.runner
    status = runner.status.value if runner.status else "idle"
    # A cache outage is reported but does not fail readiness.
    try:
        request.app.state.persistence.cache.ping()
        cache = "ok"
    except CacheError as exc:
        logger.warning("Cache ping failed: %s", exc)
        cache = "unavailable"
    return {
        "status": "ready",
        "environment": request.app.state.settings.environment,
        "lastRun": status,
        "cache": cache,
    }
