"""
Codec engine module.

Components:
- FFmpegEngine: ffmpeg subprocess engine with a scratch-directory filesystem
- ResourceLoader: binary resolution and version probe
- EnginePublisher: observable engine/operation state and event fan-out
- EngineLifecycle: lazy construction and single-flight loading
- StagedFilesystem, StagingScope: staged file access and guaranteed cleanup
- EngineContext: explicit bundle of the above
"""

from clip_service.engine.context import EngineContext, create_context
from clip_service.engine.ffmpeg_engine import FFmpegEngine
from clip_service.engine.lifecycle import EngineLifecycle
from clip_service.engine.publisher import EnginePublisher
from clip_service.engine.resources import EngineResources, ResourceLoader
from clip_service.engine.staging import StagedFilesystem, StagingScope

__all__ = [
    "EngineContext",
    "EngineLifecycle",
    "EnginePublisher",
    "EngineResources",
    "FFmpegEngine",
    "ResourceLoader",
    "StagedFilesystem",
    "StagingScope",
    "create_context",
]
