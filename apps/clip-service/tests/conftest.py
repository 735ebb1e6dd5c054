"""
Pytest fixtures for clip service tests.

Includes fixtures for:
- FakeEngine: in-memory stand-in for FFmpegEngine (no ffmpeg required)
- Resource loader mocks
- Engine context and VideoOperations wired to the fake engine
- FastAPI test client
- Sample video payloads
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from clip_service.config import EngineConfig
from clip_service.engine.context import EngineContext, create_context
from clip_service.engine.resources import EngineResources
from clip_service.main import create_app
from clip_service.operations import VideoOperations
from tests.fakes import FakeEngine


# =============================================================================
# Engine context
# =============================================================================


@pytest.fixture
def engine_config(tmp_path: Path) -> EngineConfig:
    """Engine configuration pointing at a temporary workspace."""
    return EngineConfig(workspace_dir=tmp_path / "workspace")


@pytest.fixture
def engine_resources() -> EngineResources:
    """Resources returned by the mocked loader."""
    return EngineResources(binary_path=Path("/usr/bin/ffmpeg"), version="ffmpeg version 6.1.1")


@pytest.fixture
def mock_loader(engine_resources: EngineResources) -> MagicMock:
    """Resource loader whose fetch() succeeds."""
    loader = MagicMock()
    loader.fetch = AsyncMock(return_value=engine_resources)
    return loader


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def engine_factory(fake_engine: FakeEngine) -> MagicMock:
    """Engine constructor returning the shared fake engine."""
    return MagicMock(return_value=fake_engine)


@pytest.fixture
def context(
    engine_config: EngineConfig,
    mock_loader: MagicMock,
    engine_factory: MagicMock,
) -> EngineContext:
    """Engine context wired to the fake engine."""
    return create_context(engine_config, loader=mock_loader, engine_factory=engine_factory)


@pytest.fixture
def operations(context: EngineContext) -> VideoOperations:
    return VideoOperations(context)


@pytest.fixture
def client(operations: VideoOperations) -> Iterator[TestClient]:
    """FastAPI test client bound to the fake engine, with lifespan events."""
    with TestClient(create_app(operations)) as test_client:
        yield test_client


# =============================================================================
# Sample payloads
# =============================================================================


@pytest.fixture
def sample_video() -> bytes:
    """Bytes shaped like the start of an MP4 file."""
    return b"\x00\x00\x00\x1cftypisom" + b"\x00" * 100


@pytest.fixture
def sample_videos() -> list[bytes]:
    """Three distinguishable video payloads."""
    return [b"video-A;", b"video-B;", b"video-C;"]
