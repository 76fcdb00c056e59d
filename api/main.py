from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import _load_config
from api.errors import ApiError, api_error_handler, barreplay_error_handler
from api.routes import get_api_router
from barreplay import __version__
from barreplay.core.exceptions import BarreplayError
from barreplay.core.logging import configure_logging
from barreplay.strategies import discover


def create_app() -> FastAPI:
    start = time.monotonic()
    config = _load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = start

        # Expose config in app state for dependency injection + tests.
        app.state.config = getattr(app.state, "config", None) or config
        configure_logging(app.state.config.logging)
        discover()

        yield

    openapi_tags = [
        {"name": "health", "description": "Liveness and version metadata."},
        {"name": "strategies", "description": "Built-in decision functions."},
        {"name": "indicators", "description": "Indicator catalogue and one-off computation."},
        {"name": "backtest", "description": "Candle replay runs and parameter sweeps."},
    ]

    app = FastAPI(
        title="barreplay API",
        description="Replay candles through a trading strategy and report the outcome.",
        version=__version__,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(BarreplayError, barreplay_error_handler)

    # CORS: only enable if origins explicitly configured
    if config.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api.cors_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.include_router(get_api_router(), prefix="/api/v1")
    return app


# Module-level app for uvicorn (e.g. `uvicorn api.main:app`).
app = create_app()
