"""
Unit tests for logging configuration.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from clip_service.logging_config import FOCUSED_MODULES, configure_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    saved_level = root.level
    saved_handlers = list(root.handlers)
    saved_module_levels = {name: logging.getLogger(name).level for name in FOCUSED_MODULES}
    yield
    root.handlers = saved_handlers
    root.setLevel(saved_level)
    for name, level in saved_module_levels.items():
        logging.getLogger(name).setLevel(level)


class TestConfigureLogging:
    def test_level_from_argument(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LOG_FOCUS", raising=False)

        configure_logging("debug")

        assert logging.getLogger().level == logging.DEBUG

    def test_level_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        monkeypatch.delenv("LOG_FOCUS", raising=False)

        configure_logging()

        assert logging.getLogger().level == logging.ERROR

    def test_focus_mode(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_FOCUS", "1")

        configure_logging("DEBUG")

        assert logging.getLogger().level == logging.WARNING
        for module in FOCUSED_MODULES:
            assert logging.getLogger(module).level == logging.DEBUG
