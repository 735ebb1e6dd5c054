"""
Staged filesystem adapter.

Moves named byte buffers in and out of the engine workspace. Deletion is
best-effort: failures are logged and counted but never raised, so cleanup can
never mask an operation's own result.

StagingScope tracks every name an operation stages (or expects the engine to
produce) and releases all of them when the scope exits, whatever the exit
path.
"""

from __future__ import annotations

import logging
from types import TracebackType

from clip_service.engine.ffmpeg_engine import FFmpegEngine
from clip_service.engine.lifecycle import EngineLifecycle
from clip_service.errors import StagedFileNotFoundError, StagedIOError
from clip_service.metrics import ClipMetrics

logger = logging.getLogger(__name__)


class StagedFilesystem:
    """Named-buffer access to the engine workspace."""

    def __init__(self, lifecycle: EngineLifecycle, metrics: ClipMetrics | None = None) -> None:
        self._lifecycle = lifecycle
        self._metrics = metrics or ClipMetrics()

    def _engine_for(self, name: str) -> FFmpegEngine:
        engine = self._lifecycle.engine
        if engine is None or not engine.loaded:
            raise StagedIOError(name, f"Cannot access '{name}': engine not loaded")
        return engine

    async def write_staged(self, name: str, data: bytes | str) -> None:
        """Copy data into the workspace under name.

        Raises:
            StagedIOError: If the engine is not loaded or the write fails
        """
        engine = self._engine_for(name)
        try:
            await engine.write_file(name, data)
        except StagedIOError:
            raise
        except OSError as e:
            raise StagedIOError(name, f"Failed to write '{name}': {e}") from e

        size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
        self._metrics.record_staged_bytes("write", size)
        logger.debug(f"Staged {name} ({size} bytes)")

    async def read_staged(self, name: str) -> bytes:
        """Return the bytes stored under name.

        Raises:
            StagedFileNotFoundError: If name does not exist
            StagedIOError: If the engine is not loaded or the read fails
        """
        engine = self._engine_for(name)
        try:
            data = await engine.read_file(name)
        except StagedIOError:
            raise
        except FileNotFoundError as e:
            raise StagedFileNotFoundError(name) from e
        except OSError as e:
            raise StagedIOError(name, f"Failed to read '{name}': {e}") from e

        self._metrics.record_staged_bytes("read", len(data))
        return data

    async def delete_staged(self, name: str) -> bool:
        """Delete name from the workspace, best-effort.

        Returns:
            True if the file was deleted, False otherwise
        """
        try:
            engine = self._engine_for(name)
            await engine.delete_file(name)
        except StagedFileNotFoundError:
            logger.debug(f"Staged file {name} already absent")
            return False
        except Exception as e:
            self._metrics.record_cleanup_failure()
            logger.warning(
                f"Failed to delete staged file {name}: {e}",
                extra={"staged_name": name, "error": str(e)},
            )
            return False
        return True

    def scope(self, log_context: dict[str, str] | None = None) -> StagingScope:
        """Open a staging scope for one operation."""
        return StagingScope(self, log_context)


class StagingScope:
    """Per-operation release list for staged files.

    Usage:
        async with staging.scope() as scope:
            await scope.write("input.mp4", data)
            scope.track("output.mp4")
            ...
        # every tracked name has been deleted here
    """

    def __init__(
        self,
        staging: StagedFilesystem,
        log_context: dict[str, str] | None = None,
    ) -> None:
        self._staging = staging
        self._log_context = log_context or {}
        self._names: list[str] = []

    @property
    def names(self) -> list[str]:
        """Names still awaiting release, in creation order."""
        return list(self._names)

    def track(self, name: str) -> None:
        """Register a name for release without writing it (engine outputs)."""
        if name not in self._names:
            self._names.append(name)

    async def write(self, name: str, data: bytes | str) -> None:
        """Register name, then stage data under it."""
        # Registered first: a partial write still gets cleaned up
        self.track(name)
        await self._staging.write_staged(name, data)

    async def read(self, name: str) -> bytes:
        return await self._staging.read_staged(name)

    async def release(self, name: str) -> None:
        """Delete name now and stop tracking it."""
        if name in self._names:
            self._names.remove(name)
        await self._staging.delete_staged(name)

    async def release_all(self) -> None:
        """Delete every tracked name."""
        names, self._names = self._names, []
        for name in names:
            await self._staging.delete_staged(name)
        if names:
            logger.debug(
                f"Released {len(names)} staged files",
                extra={**self._log_context, "staged_names": names},
            )

    async def __aenter__(self) -> StagingScope:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.release_all()
