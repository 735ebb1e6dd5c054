"""
Engine lifecycle manager.

Owns the single FFmpegEngine of a context and guarantees it is initialized at
most once per successful attempt:
- The engine instance is constructed lazily on the first load attempt and
  reused by later attempts
- Concurrent ensure_loaded() callers share one in-flight attempt (single-flight)
- A failed attempt is recorded on the publisher and discarded, so the next
  call retries from scratch
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from clip_service.config import EngineConfig
from clip_service.engine.ffmpeg_engine import FFmpegEngine
from clip_service.engine.publisher import EnginePublisher
from clip_service.engine.resources import ResourceLoader
from clip_service.errors import LoadError, NotInitializedError
from clip_service.metrics import ClipMetrics
from clip_service.models.state import EngineState

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], FFmpegEngine]

_STATE_VALUES = {
    EngineState.NOT_LOADED: 0,
    EngineState.LOADING: 1,
    EngineState.LOADED: 2,
    EngineState.FAILED: 3,
}


class EngineLifecycle:
    """Lazily constructs and loads the codec engine.

    Thread-safety: the transition from "no attempt" to "attempt started" is
    guarded by an asyncio.Lock; later callers await the same attempt task.
    """

    def __init__(
        self,
        config: EngineConfig,
        publisher: EnginePublisher,
        loader: ResourceLoader | None = None,
        engine_factory: EngineFactory | None = None,
        metrics: ClipMetrics | None = None,
    ) -> None:
        self._config = config
        self._publisher = publisher
        self._loader = loader or ResourceLoader(config)
        self._engine_factory = engine_factory or self._default_engine_factory
        self._metrics = metrics or ClipMetrics()
        self._engine: FFmpegEngine | None = None
        self._attempt: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    def _default_engine_factory(self) -> FFmpegEngine:
        return FFmpegEngine(
            workspace_dir=self._config.workspace_dir,
            log_tail_lines=self._config.log_tail_lines,
        )

    @property
    def engine(self) -> FFmpegEngine | None:
        """Engine instance, or None before the first load attempt."""
        return self._engine

    @property
    def loading(self) -> bool:
        """True while a load attempt is in flight."""
        return self._attempt is not None

    def require_engine(self) -> FFmpegEngine:
        """Return the loaded engine.

        Raises:
            NotInitializedError: If no successful load has happened
        """
        if self._engine is None or not self._publisher.loaded:
            raise NotInitializedError()
        return self._engine

    async def ensure_loaded(self) -> None:
        """Load the engine if needed (idempotent, single-flight).

        Raises:
            LoadError: If the attempt this caller joined failed
        """
        if self._publisher.loaded:
            return

        async with self._lock:
            if self._publisher.loaded:
                return
            if self._attempt is None:
                self._publisher.mark_loading()
                self._metrics.set_engine_state(_STATE_VALUES[EngineState.LOADING])
                self._attempt = asyncio.create_task(self._load())
            attempt = self._attempt

        # Shielded so a cancelled caller does not cancel the shared attempt
        await asyncio.shield(attempt)

    async def _load(self) -> None:
        try:
            if self._engine is None:
                logger.info("Constructing FFmpeg engine")
                self._engine = self._engine_factory()
                self._engine.on_log(self._publisher.handle_log)
                self._engine.on_progress(self._publisher.handle_progress)

            resources = await self._loader.fetch()
            await self._engine.load(resources)

        except Exception as e:
            reason = str(e) or "Failed to load FFmpeg"
            self._publisher.mark_failed(reason)
            self._metrics.record_engine_load("failed")
            self._metrics.set_engine_state(_STATE_VALUES[EngineState.FAILED])
            logger.error(f"FFmpeg load error: {reason}", extra={"error": reason})
            if isinstance(e, LoadError):
                raise
            raise LoadError(f"Failed to load FFmpeg: {reason}") from e

        else:
            self._publisher.mark_loaded()
            self._metrics.record_engine_load("success")
            self._metrics.set_engine_state(_STATE_VALUES[EngineState.LOADED])
            logger.info("FFmpeg loaded successfully")

        finally:
            self._attempt = None

    async def shutdown(self) -> None:
        """Wait for an in-flight attempt, then release the engine workspace."""
        attempt = self._attempt
        if attempt is not None:
            await asyncio.gather(attempt, return_exceptions=True)
        if self._engine is not None:
            self._engine.shutdown()
