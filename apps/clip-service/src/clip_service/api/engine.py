"""
Engine status endpoints.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from clip_service.engine.context import EngineContext
from clip_service.errors import LoadError
from clip_service.models.state import EngineStatus

router = APIRouter()
logger = logging.getLogger(__name__)


def _context(request: Request) -> EngineContext:
    return request.app.state.operations.context


@router.get("/status", response_model=EngineStatus)
async def engine_status(request: Request) -> EngineStatus:
    """Current engine and operation state."""
    return _context(request).publisher.snapshot()


@router.post("/load", response_model=EngineStatus)
async def load_engine(request: Request) -> EngineStatus:
    """
    Load the engine if it is not loaded yet.

    Raises:
        HTTPException: 503 if loading fails
    """
    context = _context(request)
    try:
        await context.ensure_loaded()
    except LoadError as e:
        logger.error(f"Engine load requested but failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message,
        ) from e
    return context.publisher.snapshot()
