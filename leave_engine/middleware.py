from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from leave_engine.config import Settings

# Dev auth travels in these headers; browsers must be allowed to send them.
AUTH_HEADERS = ("X-Organization-Id", "X-User-Id", "X-Role")


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure CORS for the leave portal frontends."""
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", *AUTH_HEADERS],
    )
