"""
Engine resource resolution.

Locates the ffmpeg binary in the configured base location (or on PATH when
no base location is set) and verifies it by running a version probe. Failure
here is the dominant cause of LoadError.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from clip_service.config import EngineConfig
from clip_service.errors import LoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineResources:
    """Resolved engine binary.

    Attributes:
        binary_path: Absolute path to the ffmpeg executable
        version: First line of the probe output (e.g. "ffmpeg version 6.1.1")
    """

    binary_path: Path
    version: str


class ResourceLoader:
    """Resolves and verifies the ffmpeg binary described by EngineConfig."""

    def __init__(self, config: EngineConfig) -> None:
        self._config = config

    def resolve_binary(self) -> Path:
        """Find the ffmpeg executable.

        Returns:
            Path to the executable

        Raises:
            LoadError: If the binary is missing or not executable
        """
        name = self._config.binary_name
        base_path = self._config.base_path

        if base_path is not None:
            candidate = base_path / name
            if not candidate.is_file():
                raise LoadError(
                    f"{name} not found in {base_path}",
                    details={"base_path": str(base_path)},
                )
            if not os.access(candidate, os.X_OK):
                raise LoadError(
                    f"{candidate} is not executable",
                    details={"base_path": str(base_path)},
                )
            return candidate.resolve()

        found = shutil.which(name)
        if found is None:
            raise LoadError(f"{name} not found in PATH")
        return Path(found)

    async def fetch(self) -> EngineResources:
        """Resolve the binary and run the version probe.

        Raises:
            LoadError: If resolution fails or the probe exits unsuccessfully
        """
        binary = self.resolve_binary()
        cmd = [str(binary), *self._config.probe_args]
        logger.info(f"Probing FFmpeg binary: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise LoadError(
                f"Failed to run {binary}: {e}",
                details={"binary_path": str(binary)},
            ) from e

        if process.returncode != 0:
            raise LoadError(
                f"FFmpeg probe exited with code {process.returncode}",
                details={
                    "binary_path": str(binary),
                    "stderr": stderr.decode(errors="replace").strip(),
                },
            )

        lines = stdout.decode(errors="replace").strip().splitlines()
        version = lines[0] if lines else "unknown"
        logger.info(f"FFmpeg resources ready: {binary} ({version})")
        return EngineResources(binary_path=binary, version=version)
