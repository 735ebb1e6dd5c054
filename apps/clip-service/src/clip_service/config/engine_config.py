"""
FFmpeg engine configuration from environment variables.

- Environment variables use the CLIP_ENGINE_ prefix
- base_path plays the role of the engine's resource location: when set, the
  binary is resolved inside it instead of on PATH
- Validation via Pydantic Field constraints
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class EngineConfig(BaseSettings):
    """Codec engine configuration.

    Attributes:
        base_path: Directory holding the ffmpeg binary. None means search PATH.
        binary_name: Executable name looked up in base_path or PATH.
        workspace_dir: Parent directory for the engine's scratch workspace.
            None uses the system temp directory.
        probe_args: Arguments used to verify the binary during load.
        log_tail_lines: Number of stderr lines kept for ExecutionError context.
    """

    base_path: Path | None = Field(
        default=None,
        description="Directory containing the ffmpeg binary",
    )
    binary_name: str = Field(
        default="ffmpeg",
        min_length=1,
        description="Name of the ffmpeg executable",
    )
    workspace_dir: Path | None = Field(
        default=None,
        description="Parent directory for staged files",
    )
    probe_args: list[str] = Field(
        default_factory=lambda: ["-version"],
        description="Arguments passed to the binary to verify it runs",
    )
    log_tail_lines: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Stderr lines retained for error reporting",
    )

    model_config = {
        "env_prefix": "CLIP_ENGINE_",
        "case_sensitive": False,
    }

    @field_validator("binary_name")
    @classmethod
    def validate_binary_name(cls, v: str) -> str:
        """Binary name must be a bare executable name, not a path."""
        if "/" in v or "\\" in v:
            raise ValueError(f"binary_name must not contain path separators, got {v}")
        return v
