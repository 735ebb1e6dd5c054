"""
Engine event models.

The engine emits two kinds of events while it runs a command:
- EngineLogEvent: one line of ffmpeg output
- EngineProgressEvent: fraction of the expected duration processed so far

Both are delivered to observers registered on the engine and fanned out to
subscribers by the publisher.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

LogSource = Literal["stdout", "stderr", "info"]


@dataclass(frozen=True)
class EngineLogEvent:
    """A single log line emitted by the engine.

    Attributes:
        type: Stream the line came from ("info" for engine-generated lines).
        message: Line content without trailing newline.
    """

    type: LogSource
    message: str


@dataclass(frozen=True)
class EngineProgressEvent:
    """Progress of the running engine command.

    Attributes:
        progress: Fraction processed, 0.0 to 1.0.
        time: Media time reached, in seconds.
    """

    progress: float
    time: float

    @property
    def percent(self) -> float:
        """Progress rescaled to 0-100."""
        return self.progress * 100


EngineEvent = Union[EngineLogEvent, EngineProgressEvent]
