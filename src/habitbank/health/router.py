"""Health, readiness, version and configuration-status endpoints."""

from fastapi import APIRouter, Depends

from habitbank.auth.schemas import EnvStatusResponse
from habitbank.config import get_settings
from habitbank.errors import StoreError
from habitbank.store.base import KeyValueStore
from habitbank.store.client import get_store
from habitbank.store.memory import MemoryStore

router = APIRouter()


def _is_set(value: str) -> str:
    return "Is set" if value else "Not set"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe. Returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    store: KeyValueStore = Depends(get_store),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe. Checks store connectivity."""
    checks: dict[str, object] = {}
    try:
        await store.ping()
        checks["store"] = "ok"
    except StoreError as exc:
        checks["store"] = f"error: {exc.message}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/api/env-status", response_model=EnvStatusResponse)
async def env_status(
    store: KeyValueStore = Depends(get_store),  # noqa: B008
) -> EnvStatusResponse:
    """Report which auth settings are present, without their values."""
    settings = get_settings()
    return EnvStatusResponse(
        admin_email=_is_set(settings.admin_email),
        google_client_id=_is_set(settings.google_client_id),
        google_client_secret=_is_set(settings.google_client_secret),
        jwt_secret=_is_set(settings.jwt_secret),
        store_backend="memory" if isinstance(store, MemoryStore) else "redis",
    )
