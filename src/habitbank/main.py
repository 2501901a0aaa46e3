"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from habitbank.admin.router import router as admin_router
from habitbank.auth.router import router as auth_router
from habitbank.config import get_settings
from habitbank.health.router import router as health_router
from habitbank.ledger.habits_router import router as habits_router
from habitbank.ledger.rewards_router import router as rewards_router
from habitbank.middleware import setup_middleware
from habitbank.store.client import close_store, init_store


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    await init_store(get_settings())
    yield
    await close_store()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Habit Bank API",
        description="Log daily habits, earn credits, redeem rewards",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(habits_router)
    app.include_router(rewards_router)
    app.include_router(admin_router)

    return app


app = create_app()
