"""
Clip API endpoints.

Runs trim/concat on base64 JSON payloads and returns the produced video as an
attachment, so a client can save it under the requested file name.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response

from clip_service.errors import (
    ClipServiceError,
    ExecutionError,
    InvalidArgumentError,
    LoadError,
    NotInitializedError,
)
from clip_service.models.requests import ConcatRequest, TrimRequest
from clip_service.operations import VideoOperations

router = APIRouter()
logger = logging.getLogger(__name__)

VIDEO_MEDIA_TYPE = "video/mp4"


def get_operations(request: Request) -> VideoOperations:
    """Operations instance attached to the application."""
    return request.app.state.operations


def video_attachment(data: bytes, filename: str) -> Response:
    """Wrap produced bytes as a downloadable file."""
    return Response(
        content=data,
        media_type=VIDEO_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def to_http_exception(error: ClipServiceError) -> HTTPException:
    """Map a clip service error to an HTTP error response."""
    # ExecutionError is almost always bad or mismatched input media
    if isinstance(error, (InvalidArgumentError, ExecutionError)):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, (LoadError, NotInitializedError)):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=error.message)


@router.post("/trim", status_code=status.HTTP_200_OK)
async def trim_clip(
    body: TrimRequest,
    operations: VideoOperations = Depends(get_operations),
) -> Response:
    """
    Trim a single video.

    Args:
        body: Source video and time range

    Returns:
        Trimmed video as an attachment

    Raises:
        HTTPException: If the operation fails
    """
    logger.info(
        "Trim request received",
        extra={
            "size_bytes": len(body.video),
            "start_seconds": body.start_seconds,
            "duration_seconds": body.duration_seconds,
            "output_name": body.filename,
        },
    )
    try:
        data = await operations.trim_video(
            body.video,
            body.start_seconds,
            body.duration_seconds,
            body.filename,
        )
    except ClipServiceError as e:
        logger.error(f"Trim request failed: {e}")
        raise to_http_exception(e) from e

    return video_attachment(data, body.filename)


@router.post("/concat", status_code=status.HTTP_200_OK)
async def concat_clips(
    body: ConcatRequest,
    operations: VideoOperations = Depends(get_operations),
) -> Response:
    """
    Concatenate videos in order, optionally trimming the result.

    Args:
        body: Source videos and optional trim range

    Returns:
        Concatenated video as an attachment

    Raises:
        HTTPException: If the operation fails
    """
    logger.info(
        "Concat request received",
        extra={
            "video_count": len(body.videos),
            "trim_start": body.trim_start,
            "trim_duration": body.trim_duration,
            "output_name": body.filename,
        },
    )
    try:
        data = await operations.concatenate_videos(
            body.videos,
            body.trim_start,
            body.trim_duration,
            body.filename,
        )
    except ClipServiceError as e:
        logger.error(f"Concat request failed: {e}")
        raise to_http_exception(e) from e

    return video_attachment(data, body.filename)
