"""
Configuration module for clip service.

Pydantic-based configuration models loaded from environment variables.

Exports:
    EngineConfig: FFmpeg engine configuration (CLIP_ENGINE_ prefix)
"""

from clip_service.config.engine_config import EngineConfig

__all__ = [
    "EngineConfig",
]
