"""
FFmpeg codec engine.

Runs ffmpeg as an asyncio subprocess against a private scratch directory that
serves as the engine's virtual filesystem. Callers address files in it by
plain name only.

Each exec():
1. Prepends the binary and process flags (-y, -nostdin, -progress pipe:1)
2. Streams stderr lines to log observers, keeping a tail for error reports
3. Parses -progress key=value output from stdout into progress events
4. Kills and reaps ffmpeg if reading its output fails
5. Raises ExecutionError on nonzero exit

Progress is measured against the -t value when present. Otherwise the first
"Duration:" line is used, except for the concat demuxer: its Duration line
describes the first input (or N/A), not the joined timeline, so concat runs
only report completion.
"""

from __future__ import annotations

import asyncio
import logging
import re
import tempfile
from collections import deque
from collections.abc import Callable, Sequence
from pathlib import Path

from clip_service.engine.resources import EngineResources
from clip_service.errors import (
    ExecutionError,
    LoadError,
    NotInitializedError,
    StagedFileNotFoundError,
    StagedIOError,
)
from clip_service.models.events import EngineLogEvent, EngineProgressEvent, LogSource

logger = logging.getLogger(__name__)

LogCallback = Callable[[EngineLogEvent], None]
ProgressCallback = Callable[[EngineProgressEvent], None]

# Flags applied to every command; output overwrite is safe inside the workspace
PROCESS_FLAGS = ["-hide_banner", "-nostdin", "-nostats", "-y", "-progress", "pipe:1"]

DURATION_PATTERN = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")
VALID_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]*$")


def parse_duration_line(line: str) -> float | None:
    """Extract the media duration in seconds from an ffmpeg "Duration:" line."""
    match = DURATION_PATTERN.search(line)
    if match is None:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def expected_duration(args: Sequence[str]) -> float | None:
    """Duration requested with -t, if any."""
    for flag, value in zip(args, args[1:]):
        if flag == "-t":
            try:
                return float(value)
            except ValueError:
                return None
    return None


def uses_concat_demuxer(args: Sequence[str]) -> bool:
    """True if the command reads its input through -f concat."""
    return any(flag == "-f" and value == "concat" for flag, value in zip(args, args[1:]))


class _RunProgress:
    """Mutable progress bookkeeping for one exec() call."""

    def __init__(self, total_seconds: float | None, infer_total: bool = True) -> None:
        self.total_seconds = total_seconds
        self.infer_total = infer_total
        self.time_seconds = 0.0


class FFmpegEngine:
    """Codec engine backed by the ffmpeg executable.

    Attributes:
        _workspace_parent: Directory in which the scratch directory is created
        _temp_dir: Scratch directory holding staged files (None until loaded)
        _binary: Resolved ffmpeg path (None until loaded)
    """

    def __init__(self, workspace_dir: Path | None = None, log_tail_lines: int = 20) -> None:
        self._workspace_parent = workspace_dir
        self._log_tail_lines = log_tail_lines
        self._temp_dir: tempfile.TemporaryDirectory | None = None
        self._binary: Path | None = None
        self._log_callbacks: list[LogCallback] = []
        self._progress_callbacks: list[ProgressCallback] = []

    @property
    def loaded(self) -> bool:
        """True once load() succeeded."""
        return self._binary is not None and self._temp_dir is not None

    @property
    def workspace(self) -> Path:
        """Scratch directory backing the virtual filesystem."""
        if self._temp_dir is None:
            raise NotInitializedError()
        return Path(self._temp_dir.name)

    def on_log(self, callback: LogCallback) -> None:
        """Register a log line observer."""
        self._log_callbacks.append(callback)

    def on_progress(self, callback: ProgressCallback) -> None:
        """Register a progress observer."""
        self._progress_callbacks.append(callback)

    async def load(self, resources: EngineResources) -> None:
        """Bind the engine to its binary and create the workspace.

        Raises:
            LoadError: If the workspace cannot be created
        """
        if self.loaded:
            return

        try:
            if self._workspace_parent is not None:
                self._workspace_parent.mkdir(parents=True, exist_ok=True)
            self._temp_dir = tempfile.TemporaryDirectory(
                prefix="clip_engine_",
                dir=self._workspace_parent,
            )
        except OSError as e:
            raise LoadError(f"Failed to create engine workspace: {e}") from e

        self._binary = resources.binary_path
        self._emit_log("info", f"Loaded {resources.version}")
        logger.info(f"🎬 FFmpeg engine loaded, workspace={self._temp_dir.name}")

    def _path_for(self, name: str) -> Path:
        if not VALID_NAME_PATTERN.match(name):
            raise StagedIOError(name, f"Invalid staged file name: '{name}'")
        return self.workspace / name

    async def write_file(self, name: str, data: bytes | str) -> None:
        """Write a named file into the workspace."""
        path = self._path_for(name)
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        try:
            await asyncio.to_thread(path.write_bytes, payload)
        except OSError as e:
            raise StagedIOError(name, f"Failed to write '{name}': {e}") from e

    async def read_file(self, name: str) -> bytes:
        """Read a named file from the workspace."""
        path = self._path_for(name)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as e:
            raise StagedFileNotFoundError(name) from e
        except OSError as e:
            raise StagedIOError(name, f"Failed to read '{name}': {e}") from e

    async def delete_file(self, name: str) -> None:
        """Delete a named file from the workspace."""
        path = self._path_for(name)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError as e:
            raise StagedFileNotFoundError(name) from e
        except OSError as e:
            raise StagedIOError(name, f"Failed to delete '{name}': {e}") from e

    async def exec(self, args: Sequence[str]) -> int:
        """Run ffmpeg with the given arguments inside the workspace.

        Args:
            args: ffmpeg arguments without the binary

        Returns:
            Process exit code (always 0; failures raise)

        Raises:
            NotInitializedError: If the engine is not loaded
            ExecutionError: If ffmpeg exits with a nonzero status
        """
        if not self.loaded:
            raise NotInitializedError()

        cmd = [str(self._binary), *PROCESS_FLAGS, *args]
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(self.workspace),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionError(list(args), -1, [str(e)]) from e

        tail: deque[str] = deque(maxlen=self._log_tail_lines)
        run = _RunProgress(expected_duration(args), infer_total=not uses_concat_demuxer(args))

        try:
            await asyncio.gather(
                self._pump_stderr(process.stderr, tail, run),
                self._pump_progress(process.stdout, run),
            )
        except BaseException:
            if process.returncode is None:
                logger.warning("Reading FFmpeg output failed, killing process")
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            await process.wait()
            raise
        returncode = await process.wait()

        if returncode != 0:
            raise ExecutionError(list(args), returncode, list(tail))
        return returncode

    async def _pump_stderr(
        self,
        stream: asyncio.StreamReader,
        tail: deque[str],
        run: _RunProgress,
    ) -> None:
        while True:
            raw = await stream.readline()
            if not raw:
                break
            line = raw.decode(errors="replace").rstrip()
            if not line:
                continue
            tail.append(line)
            if run.total_seconds is None and run.infer_total:
                run.total_seconds = parse_duration_line(line)
            self._emit_log("stderr", line)

    async def _pump_progress(self, stream: asyncio.StreamReader, run: _RunProgress) -> None:
        while True:
            raw = await stream.readline()
            if not raw:
                break
            key, _, value = raw.decode(errors="replace").strip().partition("=")

            # out_time_ms is reported in microseconds as well
            if key in ("out_time_us", "out_time_ms"):
                try:
                    run.time_seconds = max(0.0, int(value) / 1_000_000)
                except ValueError:
                    continue
                if run.total_seconds:
                    self._emit_progress(run.time_seconds / run.total_seconds, run.time_seconds)
            elif key == "progress" and value == "end":
                self._emit_progress(1.0, run.time_seconds)

    def _emit_log(self, source: LogSource, message: str) -> None:
        event = EngineLogEvent(type=source, message=message)
        for callback in list(self._log_callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Log observer failed: {e}")

    def _emit_progress(self, fraction: float, time_seconds: float) -> None:
        event = EngineProgressEvent(progress=min(max(fraction, 0.0), 1.0), time=time_seconds)
        for callback in list(self._progress_callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Progress observer failed: {e}")

    def shutdown(self) -> None:
        """Remove the workspace and forget the binary."""
        if self._temp_dir is not None:
            try:
                self._temp_dir.cleanup()
            except OSError as e:
                logger.warning(f"Error cleaning up engine workspace: {e}")
            self._temp_dir = None
        self._binary = None
        logger.info("FFmpeg engine shut down")
