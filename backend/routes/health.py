"""Health and readiness check routes."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from config import settings
from dependencies import get_cache
from errors import CacheError
from services.cache import CacheStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api")
async def root() -> dict:
    return {"message": "Vidzly Backend Active."}


@router.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> str:
    return "OK"


@router.get("/ready")
async def ready() -> dict:
    """Lightweight readiness check — no external calls."""
    return {"status": "ok", "service": "vidzly-backend", "commit": settings.git_sha}


@router.get("/health")
async def health(cache: CacheStore | None = Depends(get_cache)) -> dict:
    """Deep health check that verifies cache connectivity."""
    result = {"status": "ok", "service": "vidzly-backend", "commit": settings.git_sha, "cache": "disabled"}
    if cache is None:
        return result

    try:
        await cache.ping()
        result["cache"] = "connected"
    except CacheError as e:
        logger.exception("Cache health check failed")
        result["cache"] = "error"
        result["cache_error"] = str(e)

    return result
