"""
Unit tests for EngineLifecycle.

Tests lazy construction, single-flight loading, failure recording and retry.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from clip_service.config import EngineConfig
from clip_service.engine.lifecycle import EngineLifecycle
from clip_service.engine.publisher import EnginePublisher
from clip_service.engine.resources import EngineResources
from clip_service.errors import LoadError, NotInitializedError
from clip_service.models.state import EngineState
from tests.fakes import FakeEngine


@pytest.fixture
def publisher() -> EnginePublisher:
    return EnginePublisher()


@pytest.fixture
def lifecycle(
    engine_config: EngineConfig,
    publisher: EnginePublisher,
    mock_loader: MagicMock,
    engine_factory: MagicMock,
) -> EngineLifecycle:
    return EngineLifecycle(
        engine_config,
        publisher,
        loader=mock_loader,
        engine_factory=engine_factory,
    )


class TestEnsureLoaded:
    """Tests for ensure_loaded."""

    @pytest.mark.asyncio
    async def test_first_call_constructs_and_loads(
        self,
        lifecycle: EngineLifecycle,
        publisher: EnginePublisher,
        fake_engine: FakeEngine,
        engine_factory: MagicMock,
    ) -> None:
        await lifecycle.ensure_loaded()

        engine_factory.assert_called_once()
        assert fake_engine.load_calls == 1
        assert lifecycle.engine is fake_engine
        assert publisher.loaded
        assert not publisher.loading
        assert publisher.state is EngineState.LOADED
        assert publisher.error is None

    @pytest.mark.asyncio
    async def test_registers_publisher_observers(
        self, lifecycle: EngineLifecycle, publisher: EnginePublisher, fake_engine: FakeEngine
    ) -> None:
        await lifecycle.ensure_loaded()

        assert publisher.handle_log in fake_engine.log_callbacks
        assert publisher.handle_progress in fake_engine.progress_callbacks

    @pytest.mark.asyncio
    async def test_is_idempotent(
        self,
        lifecycle: EngineLifecycle,
        fake_engine: FakeEngine,
        mock_loader: MagicMock,
    ) -> None:
        await lifecycle.ensure_loaded()
        await lifecycle.ensure_loaded()
        await lifecycle.ensure_loaded()

        assert fake_engine.load_calls == 1
        mock_loader.fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_attempt(
        self,
        lifecycle: EngineLifecycle,
        publisher: EnginePublisher,
        fake_engine: FakeEngine,
        engine_factory: MagicMock,
        mock_loader: MagicMock,
        engine_resources: EngineResources,
    ) -> None:
        """N concurrent calls produce one construction and one resource fetch."""

        async def slow_fetch() -> EngineResources:
            await asyncio.sleep(0.01)
            return engine_resources

        mock_loader.fetch = AsyncMock(side_effect=slow_fetch)

        results = await asyncio.gather(*[lifecycle.ensure_loaded() for _ in range(5)])

        assert results == [None] * 5
        engine_factory.assert_called_once()
        mock_loader.fetch.assert_awaited_once()
        assert fake_engine.load_calls == 1
        assert publisher.loaded

    @pytest.mark.asyncio
    async def test_loading_flag_set_while_in_flight(
        self,
        lifecycle: EngineLifecycle,
        publisher: EnginePublisher,
        mock_loader: MagicMock,
        engine_resources: EngineResources,
    ) -> None:
        release = asyncio.Event()

        async def gated_fetch() -> EngineResources:
            await release.wait()
            return engine_resources

        mock_loader.fetch = AsyncMock(side_effect=gated_fetch)

        task = asyncio.create_task(lifecycle.ensure_loaded())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert publisher.loading
        assert lifecycle.loading
        assert publisher.state is EngineState.LOADING

        release.set()
        await task

        assert not publisher.loading
        assert not lifecycle.loading

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_failure(
        self,
        lifecycle: EngineLifecycle,
        publisher: EnginePublisher,
        mock_loader: MagicMock,
    ) -> None:
        """Every caller attached to a failing attempt gets the same failure."""

        async def failing_fetch() -> EngineResources:
            await asyncio.sleep(0.01)
            raise LoadError("ffmpeg not found in PATH")

        mock_loader.fetch = AsyncMock(side_effect=failing_fetch)

        results = await asyncio.gather(
            *[lifecycle.ensure_loaded() for _ in range(3)],
            return_exceptions=True,
        )

        assert all(isinstance(r, LoadError) for r in results)
        assert {str(r) for r in results} == {"ffmpeg not found in PATH"}
        mock_loader.fetch.assert_awaited_once()
        assert not publisher.loaded
        assert not publisher.loading
        assert publisher.state is EngineState.FAILED
        assert publisher.error == "ffmpeg not found in PATH"

    @pytest.mark.asyncio
    async def test_failed_load_can_be_retried(
        self,
        lifecycle: EngineLifecycle,
        publisher: EnginePublisher,
        fake_engine: FakeEngine,
        engine_factory: MagicMock,
        mock_loader: MagicMock,
        engine_resources: EngineResources,
    ) -> None:
        """A later call starts a fresh attempt and clears the error on success."""
        mock_loader.fetch = AsyncMock(
            side_effect=[LoadError("network unreachable"), engine_resources]
        )

        with pytest.raises(LoadError):
            await lifecycle.ensure_loaded()

        assert not publisher.loaded
        assert publisher.error == "network unreachable"

        await lifecycle.ensure_loaded()

        assert publisher.loaded
        assert publisher.error is None
        assert mock_loader.fetch.await_count == 2
        # Engine instance is constructed once and reused by the retry
        engine_factory.assert_called_once()
        assert fake_engine.load_calls == 1

    @pytest.mark.asyncio
    async def test_error_persists_while_retry_in_flight(
        self,
        lifecycle: EngineLifecycle,
        publisher: EnginePublisher,
        mock_loader: MagicMock,
        engine_resources: EngineResources,
    ) -> None:
        """The previous failure stays visible until the retry succeeds."""
        release = asyncio.Event()
        calls = 0

        async def fail_then_gate() -> EngineResources:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise LoadError("network unreachable")
            await release.wait()
            return engine_resources

        mock_loader.fetch = AsyncMock(side_effect=fail_then_gate)

        with pytest.raises(LoadError):
            await lifecycle.ensure_loaded()

        retry = asyncio.create_task(lifecycle.ensure_loaded())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert publisher.loading
        assert publisher.error == "network unreachable"

        release.set()
        await retry

        assert publisher.loaded
        assert publisher.error is None

    @pytest.mark.asyncio
    async def test_unexpected_failure_wrapped_in_load_error(
        self,
        lifecycle: EngineLifecycle,
        publisher: EnginePublisher,
        fake_engine: FakeEngine,
    ) -> None:
        fake_engine.load = AsyncMock(side_effect=RuntimeError("workspace unavailable"))

        with pytest.raises(LoadError, match="workspace unavailable") as exc_info:
            await lifecycle.ensure_loaded()

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert publisher.error == "workspace unavailable"


class TestRequireEngine:
    """Tests for require_engine."""

    def test_raises_before_load(self, lifecycle: EngineLifecycle) -> None:
        with pytest.raises(NotInitializedError):
            lifecycle.require_engine()

    @pytest.mark.asyncio
    async def test_raises_after_failed_load(
        self, lifecycle: EngineLifecycle, mock_loader: MagicMock
    ) -> None:
        mock_loader.fetch.side_effect = LoadError("boom")

        with pytest.raises(LoadError):
            await lifecycle.ensure_loaded()

        with pytest.raises(NotInitializedError):
            lifecycle.require_engine()

    @pytest.mark.asyncio
    async def test_returns_engine_after_load(
        self, lifecycle: EngineLifecycle, fake_engine: FakeEngine
    ) -> None:
        await lifecycle.ensure_loaded()

        assert lifecycle.require_engine() is fake_engine
