"""Middleware registration."""

from fastapi import FastAPI

from habitbank.config import Settings
from habitbank.middleware.cors import setup_cors
from habitbank.middleware.error_handler import setup_error_handlers
from habitbank.middleware.logging import setup_logging
from habitbank.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette executes middleware in reverse-add order (last added = outermost),
    so CORS is added last to wrap every response.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
