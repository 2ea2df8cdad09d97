"""
FastAPI application entry point.

Usage:
    uvicorn voiceover.main:app --host 127.0.0.1 --port 8000

The API holds the user's ElevenLabs key; bind it to localhost.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from voiceover import __version__
from voiceover.api.dependencies import get_app, reset_dependencies
from voiceover.api.routes import router
from voiceover.core.logging import configure_logging


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Build the application state (and fetch voices) before serving.
    get_app()
    yield
    reset_dependencies()


def create_app(build_on_startup: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        build_on_startup: Build the application state when the server
            starts instead of on the first request.
    """
    configure_logging()

    app = FastAPI(title="voiceover", version=__version__, lifespan=lifespan if build_on_startup else None)
    app.include_router(router)
    return app


app = create_app()
