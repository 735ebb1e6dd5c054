"""
Error types for the clip service.

Every failure surfaced by the engine lifecycle, the staged filesystem or the
clip operations derives from ClipServiceError. Operations re-raise these
unchanged; there is no retry logic anywhere in the service, retry policy
belongs to the caller.

Taxonomy:
- LoadError: engine failed to initialize (binary resolution, probe or load)
- NotInitializedError: engine used before a successful load
- StagedIOError: staged write/read failure (StagedFileNotFoundError if absent)
- ExecutionError: ffmpeg command exited unsuccessfully
- InvalidArgumentError: empty input list, invalid time values
"""

from __future__ import annotations

from typing import Any


class ClipServiceError(Exception):
    """Base class for all clip service errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class LoadError(ClipServiceError):
    """Raised when the codec engine fails to initialize."""


class NotInitializedError(ClipServiceError):
    """Raised when an engine call is made before a successful load."""

    def __init__(self, message: str = "FFmpeg engine not initialized") -> None:
        super().__init__(message)


class StagedIOError(ClipServiceError):
    """Raised when a staged file cannot be written or read."""

    def __init__(self, name: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.name = name


class StagedFileNotFoundError(StagedIOError):
    """Raised when a staged file does not exist in the engine workspace."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"Staged file not found: '{name}'")


class ExecutionError(ClipServiceError):
    """Raised when an ffmpeg command exits with a nonzero status.

    Attributes:
        args_list: Arguments passed to the engine (without the binary)
        returncode: Process exit code
        log_tail: Last stderr lines emitted before exit
    """

    def __init__(
        self,
        args_list: list[str],
        returncode: int,
        log_tail: list[str] | None = None,
    ) -> None:
        self.args_list = list(args_list)
        self.returncode = returncode
        self.log_tail = list(log_tail or [])
        message = f"FFmpeg exited with code {returncode}"
        if self.log_tail:
            message = f"{message}: {self.log_tail[-1]}"
        super().__init__(
            message,
            details={"returncode": returncode, "log_tail": self.log_tail},
        )


class InvalidArgumentError(ClipServiceError, ValueError):
    """Raised when an operation receives arguments it cannot act on."""
