"""
Clip service: trim and concatenate video buffers with ffmpeg.

Typical use:
    context = create_context()
    operations = VideoOperations(context)
    clip = await operations.trim_video(data, 5, 10, "clip.mp4")
"""

from clip_service.engine import EngineContext, create_context
from clip_service.errors import (
    ClipServiceError,
    ExecutionError,
    InvalidArgumentError,
    LoadError,
    NotInitializedError,
    StagedFileNotFoundError,
    StagedIOError,
)
from clip_service.operations import VideoOperations

__version__ = "0.1.0"

__all__ = [
    "ClipServiceError",
    "EngineContext",
    "ExecutionError",
    "InvalidArgumentError",
    "LoadError",
    "NotInitializedError",
    "StagedFileNotFoundError",
    "StagedIOError",
    "VideoOperations",
    "create_context",
]
