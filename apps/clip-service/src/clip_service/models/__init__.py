"""
Data models for clip service.

Exports:
    EngineLogEvent, EngineProgressEvent: Engine observer events
    EngineState, OperationPhase: Lifecycle and operation state enums
    OperationRecord: Per-call operation bookkeeping
    EngineStatus: Publisher snapshot
    TrimRequest, ConcatRequest: API request bodies
"""

from clip_service.models.events import EngineEvent, EngineLogEvent, EngineProgressEvent
from clip_service.models.requests import ConcatRequest, TrimRequest
from clip_service.models.state import EngineState, EngineStatus, OperationPhase, OperationRecord

__all__ = [
    "ConcatRequest",
    "EngineEvent",
    "EngineLogEvent",
    "EngineProgressEvent",
    "EngineState",
    "EngineStatus",
    "OperationPhase",
    "OperationRecord",
    "TrimRequest",
]
