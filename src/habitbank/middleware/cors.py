"""CORS for the browser front-end."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habitbank.config import Settings

# Sessions travel as Bearer tokens; the only cookie is the OAuth state nonce on /api/auth.
_ALLOWED_HEADERS = ["Authorization", "Content-Type", "X-Request-Id"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=_ALLOWED_HEADERS,
        expose_headers=["X-Request-Id"],
        max_age=600,
    )
