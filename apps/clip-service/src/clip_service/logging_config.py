"""
Logging configuration for the clip service.

Usage:
  LOG_LEVEL sets the level (default INFO).
  Set LOG_FOCUS=1 to keep only the engine lifecycle and clip operations at
  LOG_LEVEL; every other module is raised to WARNING to reduce noise.

Modules included in focused logging:
  - clip_service.engine.lifecycle (engine loading)
  - clip_service.engine.publisher (ffmpeg log lines and progress, at DEBUG)
  - clip_service.operations.video_operations (trim/concat)

Example:
  LOG_LEVEL=DEBUG LOG_FOCUS=1 python -m clip_service
"""

import logging
import os

FOCUSED_MODULES = [
    "clip_service.engine.lifecycle",
    "clip_service.engine.publisher",
    "clip_service.operations.video_operations",
]


def configure_logging(level: str | None = None) -> None:
    """Configure root logging, optionally focused on engine and operations.

    Args:
        level: Log level override; defaults to LOG_LEVEL or INFO
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_focus = os.getenv("LOG_FOCUS", "0") == "1"

    log_format = "%(asctime)s.%(msecs)03d | %(name)s | %(levelname)s | %(message)s"
    date_format = "%H:%M:%S"

    logging.basicConfig(
        level=log_level if not log_focus else logging.WARNING,
        format=log_format,
        datefmt=date_format,
        force=True,
    )

    if not log_focus:
        return

    for module in FOCUSED_MODULES:
        logging.getLogger(module).setLevel(log_level)

    logging.getLogger().warning(
        f"Focused logging enabled: {', '.join(FOCUSED_MODULES)} at {log_level}"
    )
