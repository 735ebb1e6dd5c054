"""
Engine context.

Bundles everything that used to be process-wide state (engine handle,
lifecycle fields, progress slot) into one object owned by whoever assembles
the service, and passed explicitly to the operations that need it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from clip_service.config import EngineConfig
from clip_service.engine.lifecycle import EngineFactory, EngineLifecycle
from clip_service.engine.publisher import EnginePublisher
from clip_service.engine.resources import ResourceLoader
from clip_service.engine.staging import StagedFilesystem
from clip_service.metrics import ClipMetrics

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    """Shared engine state for one service instance.

    Attributes:
        config: Engine configuration
        publisher: Observable engine/operation state
        lifecycle: Engine construction and single-flight loading
        staging: Staged filesystem adapter
        metrics: Prometheus metrics
    """

    config: EngineConfig
    publisher: EnginePublisher
    lifecycle: EngineLifecycle
    staging: StagedFilesystem
    metrics: ClipMetrics

    async def ensure_loaded(self) -> None:
        await self.lifecycle.ensure_loaded()

    async def close(self) -> None:
        """Release the engine workspace."""
        await self.lifecycle.shutdown()
        logger.info("Engine context closed")


def create_context(
    config: EngineConfig | None = None,
    *,
    loader: ResourceLoader | None = None,
    engine_factory: EngineFactory | None = None,
    metrics: ClipMetrics | None = None,
) -> EngineContext:
    """Assemble an engine context.

    Args:
        config: Engine configuration (read from the environment if omitted)
        loader: Resource loader override
        engine_factory: Engine constructor override
        metrics: Metrics override

    Returns:
        EngineContext with an unloaded engine
    """
    config = config or EngineConfig()
    metrics = metrics or ClipMetrics()
    publisher = EnginePublisher()
    lifecycle = EngineLifecycle(
        config,
        publisher,
        loader=loader,
        engine_factory=engine_factory,
        metrics=metrics,
    )
    staging = StagedFilesystem(lifecycle, metrics=metrics)
    return EngineContext(
        config=config,
        publisher=publisher,
        lifecycle=lifecycle,
        staging=staging,
        metrics=metrics,
    )
