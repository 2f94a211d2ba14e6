"""FastAPI application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from carry.api import routes
from carry.config import AppSettings


def create_app(
    settings: AppSettings, service: Any, lifespan: Any = None
) -> FastAPI:
    """Create and configure the API application.

    Args:
        settings: Application settings, exposed to handlers via app.state.
        service: SpreadService (or a stand-in with the same coroutines).
        lifespan: Optional async context manager for startup/shutdown.
            Used by main.py to run the background poll loop.

    Returns:
        FastAPI app with the /api router mounted.
    """
    app = FastAPI(title="OKX x Gate APR Spread", lifespan=lifespan)
    app.state.settings = settings
    app.state.service = service
    app.include_router(routes.router, prefix="/api")
    return app
