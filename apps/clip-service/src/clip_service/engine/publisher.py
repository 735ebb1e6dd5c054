"""
Progress and state publisher.

Holds the observable scalars of the engine context (loaded, loading, last
error, progress, current operation label) and fans engine log/progress events
out to subscribers.

There is exactly one progress/label slot per context. VideoOperations
serializes operations, so the slot always belongs to the running operation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from clip_service.models.events import EngineEvent, EngineLogEvent, EngineProgressEvent
from clip_service.models.state import EngineState, EngineStatus

logger = logging.getLogger(__name__)

Subscriber = Callable[[EngineEvent], None]


class EnginePublisher:
    """Observable engine and operation state.

    Read access is through properties; the lifecycle manager and the
    orchestrator drive the mutators.
    """

    def __init__(self) -> None:
        self._state = EngineState.NOT_LOADED
        self._loading = False
        self._error: str | None = None
        self._progress = 0.0
        self._current_operation: str | None = None
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def loaded(self) -> bool:
        return self._state is EngineState.LOADED

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def current_operation(self) -> str | None:
        return self._current_operation

    # Lifecycle transitions

    def mark_loading(self) -> None:
        """Start an attempt; the last failure stays visible until a load succeeds."""
        self._state = EngineState.LOADING
        self._loading = True

    def mark_loaded(self) -> None:
        self._state = EngineState.LOADED
        self._loading = False
        self._error = None

    def mark_failed(self, reason: str) -> None:
        self._state = EngineState.FAILED
        self._loading = False
        self._error = reason

    # Operation slot

    def begin_operation(self, label: str) -> None:
        self._current_operation = label
        self._progress = 0.0

    def set_operation_label(self, label: str) -> None:
        self._current_operation = label

    def end_operation(self) -> None:
        self._current_operation = None
        self._progress = 0.0

    # Engine observers

    def handle_log(self, event: EngineLogEvent) -> None:
        """Forward an engine log line to logging and subscribers."""
        logger.debug(f"[FFmpeg] {event.message}")
        self._notify(event)

    def handle_progress(self, event: EngineProgressEvent) -> None:
        """Rescale an engine progress fraction to 0-100 and publish it."""
        fraction = min(max(event.progress, 0.0), 1.0)
        self._progress = fraction * 100
        logger.debug(f"[FFmpeg Progress] {self._progress:.1f}% (time: {event.time:.2f})")
        self._notify(event)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an event subscriber.

        Returns:
            Callable that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, event: EngineEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Engine event subscriber failed: {e}")

    def snapshot(self) -> EngineStatus:
        """Current state as an immutable model."""
        return EngineStatus(
            state=self._state,
            loaded=self.loaded,
            loading=self._loading,
            error=self._error,
            progress=self._progress,
            current_operation=self._current_operation,
        )
