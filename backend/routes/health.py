"""Health and readiness check routes."""

from fastapi import APIRouter, Request

from config import settings
from services.cache import CacheAsideGuard

router = APIRouter()


def _cache_state(guard: CacheAsideGuard, now: int) -> dict:
    entry = guard.entry
    if entry is None:
        return {"state": "cold"}
    return {
        "state": "fresh" if guard.is_fresh(now) else "stale",
        "age_ms": now - entry.fetched_at_millis,
    }


@router.get("/ready")
async def ready() -> dict:
    """Lightweight readiness check — no external calls."""
    return {"status": "ok", "service": "portfolio-api", "commit": settings.git_sha}


@router.get("/health")
async def health(request: Request) -> dict:
    """Config and cache state. Never calls upstream APIs."""
    state = request.app.state
    now = state.clock()
    missing = state.settings.validate()
    return {
        "status": "degraded" if missing else "ok",
        "service": "portfolio-api",
        "commit": state.settings.git_sha,
        "missing_config": missing,
        "caches": {
            "patreon": _cache_state(state.patron_proxy.guard, now),
            "discord": _cache_state(state.server_proxy.guard, now),
        },
    }
