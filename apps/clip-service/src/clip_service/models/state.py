"""
State models for the engine lifecycle and clip operations.

- EngineState: lifecycle of the single engine instance
- OperationPhase: per-call state machine of a trim/concat operation
- OperationRecord: bookkeeping for one operation call
- EngineStatus: read-only snapshot of the publisher
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class EngineState(str, Enum):
    """Lifecycle state of the codec engine."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class OperationPhase(str, Enum):
    """Phase of a single clip operation.

    Transitions:
        idle -> staging -> executing -> reading -> cleaning_up -> done
        any phase before done -> failed
    """

    IDLE = "idle"
    STAGING = "staging"
    EXECUTING = "executing"
    READING = "reading"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"


@dataclass
class OperationRecord:
    """Bookkeeping for one trim or concat call.

    Attributes:
        operation: Operation name ("trim" or "concat").
        label: Human-readable label published while the operation runs.
        operation_id: Generated identifier used to correlate log lines.
        phase: Current phase of the state machine.
        started_at: Monotonic start time.
    """

    operation: str
    label: str
    operation_id: str = field(default_factory=lambda: uuid4().hex[:12])
    phase: OperationPhase = OperationPhase.IDLE
    started_at: float = field(default_factory=time.monotonic)

    def advance(self, phase: OperationPhase) -> None:
        """Move to the given phase."""
        self.phase = phase

    @property
    def elapsed_seconds(self) -> float:
        """Seconds since the operation started."""
        return time.monotonic() - self.started_at

    def log_context(self) -> dict[str, str]:
        """Correlation fields for structured log records."""
        return {
            "operation": self.operation,
            "operation_id": self.operation_id,
            "phase": self.phase.value,
        }


class EngineStatus(BaseModel):
    """Snapshot of engine and operation state."""

    state: EngineState = Field(..., description="Engine lifecycle state")
    loaded: bool = Field(..., description="Engine finished loading")
    loading: bool = Field(..., description="A load attempt is in flight")
    error: str | None = Field(default=None, description="Last load error message")
    progress: float = Field(..., ge=0.0, le=100.0, description="Operation progress (0-100)")
    current_operation: str | None = Field(
        default=None, description="Label of the running operation"
    )
