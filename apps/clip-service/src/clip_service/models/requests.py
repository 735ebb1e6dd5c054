"""
Request models for the clip API.

Video payloads travel as base64 strings inside JSON bodies and are decoded
during validation.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# Plain file name: no directories, no leading dot
VALID_FILENAME_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]*$")


def _decode_video(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        value = value.decode("ascii")
    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"video payload is not valid base64: {e}") from e
    if not data:
        raise ValueError("video payload cannot be empty")
    return data


def _validate_filename(value: str) -> str:
    if not VALID_FILENAME_PATTERN.match(value):
        raise ValueError(f"filename must be a plain file name, got {value}")
    return value


class TrimRequest(BaseModel):
    """Trim a single video."""

    video: bytes = Field(..., description="Base64-encoded source video")
    start_seconds: float = Field(..., ge=0.0, description="Start offset in seconds")
    duration_seconds: float = Field(..., ge=0.0, description="Duration in seconds")
    filename: str = Field(default="output.mp4", description="Output file name")

    @field_validator("video", mode="before")
    @classmethod
    def decode_video(cls, v: str | bytes) -> bytes:
        """Decode the base64 payload."""
        return _decode_video(v)

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Output name must stay inside the engine workspace."""
        return _validate_filename(v)

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "video": "AAAAHGZ0eXBpc29t...",
                "start_seconds": 5,
                "duration_seconds": 10,
                "filename": "clip.mp4",
            }
        }


class ConcatRequest(BaseModel):
    """Concatenate videos in order, optionally trimming the joined result."""

    videos: list[bytes] = Field(..., description="Base64-encoded source videos, in order")
    trim_start: Optional[float] = Field(
        default=None, ge=0.0, description="Trim start on the concatenated timeline"
    )
    trim_duration: Optional[float] = Field(
        default=None, ge=0.0, description="Trim duration in seconds"
    )
    filename: str = Field(default="output.mp4", description="Output file name")

    @field_validator("videos", mode="before")
    @classmethod
    def decode_videos(cls, v: list[str | bytes]) -> list[bytes]:
        """Decode each base64 payload, preserving order."""
        if not isinstance(v, list):
            raise ValueError("videos must be a list")
        return [_decode_video(item) for item in v]

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Output name must stay inside the engine workspace."""
        return _validate_filename(v)
