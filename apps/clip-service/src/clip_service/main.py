"""
Clip Service - FastAPI Application

Exposes trim and concatenate operations over HTTP, plus engine status,
health and Prometheus metrics.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from clip_service.api import clips, engine
from clip_service.engine.context import create_context
from clip_service.logging_config import configure_logging
from clip_service.operations import VideoOperations

configure_logging()
logger = logging.getLogger(__name__)

SERVICE_VERSION = "0.1.0"


def create_app(operations: VideoOperations | None = None) -> FastAPI:
    """Build the application.

    Args:
        operations: Operations bound to an engine context. A fresh context is
            created from the environment when omitted.

    Returns:
        Configured FastAPI application
    """
    operations = operations or VideoOperations(create_context())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info("Clip service starting...")
        yield
        logger.info("Clip service shutting down...")
        await app.state.operations.context.close()

    app = FastAPI(
        title="Clip Service API",
        description="Trims and concatenates video buffers with ffmpeg",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.operations = operations

    app.include_router(clips.router, prefix="/v1/clips", tags=["clips"])
    app.include_router(engine.router, prefix="/v1/engine", tags=["engine"])

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse({"status": "ok", "service": "clip-service"})

    @app.get("/")
    async def root() -> JSONResponse:
        """Root endpoint."""
        return JSONResponse(
            {
                "service": "clip-service",
                "version": SERVICE_VERSION,
                "status": "running",
            }
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
