"""
Clip operations: trim and concatenate.

Each call walks the same state machine:
    idle -> staging -> executing -> reading -> cleaning_up -> done | failed

Guarantees:
- Every staged file (inputs, manifest, intermediate, output) is released
  before the call returns, on success and on failure
- Progress returns to 0 and the operation label to None on every exit
- Errors are re-raised unchanged; nothing is retried
- Calls on one VideoOperations run one at a time, in arrival order, so
  the fixed staged names and the single progress slot are never shared
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from clip_service.commands import build_concat_args, build_concat_manifest, build_trim_args
from clip_service.engine.context import EngineContext
from clip_service.engine.staging import StagingScope
from clip_service.errors import InvalidArgumentError
from clip_service.models.state import OperationPhase, OperationRecord

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_NAME = "output.mp4"
TRIM_INPUT_NAME = "input.mp4"
CONCAT_MANIFEST_NAME = "concat.txt"
CONCAT_INTERMEDIATE_NAME = "temp_concat.mp4"

TRIM_LABEL = "Trimming video..."
CONCAT_LABEL = "Concatenating videos..."
CONCAT_TRIM_LABEL = "Trimming concatenated video..."


def concat_input_name(index: int) -> str:
    """Staged name of the index-th concat input."""
    return f"input{index}.mp4"


def _check_output_name(output_name: str, reserved: set[str]) -> None:
    if not output_name:
        raise InvalidArgumentError("Output name cannot be empty")
    if output_name in reserved:
        raise InvalidArgumentError(
            f"Output name '{output_name}' collides with a staged input name",
            details={"reserved": sorted(reserved)},
        )


class VideoOperations:
    """Trim and concatenate video buffers through the engine context."""

    def __init__(self, context: EngineContext) -> None:
        self._context = context
        self._operation_lock = asyncio.Lock()

    @property
    def context(self) -> EngineContext:
        return self._context

    async def trim_video(
        self,
        source: bytes,
        start_seconds: float,
        duration_seconds: float,
        output_name: str = DEFAULT_OUTPUT_NAME,
    ) -> bytes:
        """Cut [start, start + duration) out of a video with stream copy.

        Args:
            source: Source video bytes
            start_seconds: Start offset in seconds
            duration_seconds: Duration in seconds (zero is passed through)
            output_name: Staged output name, also the container hint for ffmpeg

        Returns:
            Trimmed video bytes

        Raises:
            InvalidArgumentError: Negative/non-finite times or a reserved output name
            LoadError: Engine failed to load
            StagedIOError: Staging failed
            ExecutionError: ffmpeg failed
        """
        _check_output_name(output_name, {TRIM_INPUT_NAME})
        args = build_trim_args(start_seconds, duration_seconds, TRIM_INPUT_NAME, output_name)

        await self._context.ensure_loaded()

        record = OperationRecord(operation="trim", label=TRIM_LABEL)
        async with self._operation(record) as scope:
            engine = self._context.lifecycle.require_engine()

            record.advance(OperationPhase.STAGING)
            await scope.write(TRIM_INPUT_NAME, source)
            scope.track(output_name)

            record.advance(OperationPhase.EXECUTING)
            await engine.exec(args)

            record.advance(OperationPhase.READING)
            data = await scope.read(output_name)

        return data

    async def concatenate_videos(
        self,
        sources: Sequence[bytes],
        trim_start: float | None = None,
        trim_duration: float | None = None,
        output_name: str = DEFAULT_OUTPUT_NAME,
    ) -> bytes:
        """Join videos in list order, optionally trimming the joined timeline.

        All inputs must share codec parameters; mismatches surface as
        ExecutionError from ffmpeg.

        Args:
            sources: Video buffers in playback order
            trim_start: Start offset on the concatenated timeline
            trim_duration: Duration of the trimmed result
            output_name: Staged output name

        Returns:
            Concatenated (and optionally trimmed) video bytes

        Raises:
            InvalidArgumentError: Empty input list, incomplete trim range,
                invalid times or a reserved output name
            LoadError: Engine failed to load
            StagedIOError: Staging failed
            ExecutionError: ffmpeg failed
        """
        if not sources:
            raise InvalidArgumentError("At least one video is required for concatenation")
        if (trim_start is None) != (trim_duration is None):
            raise InvalidArgumentError(
                "trim_start and trim_duration must be given together",
                details={"trim_start": trim_start, "trim_duration": trim_duration},
            )

        input_names = [concat_input_name(i) for i in range(len(sources))]
        _check_output_name(
            output_name,
            {*input_names, CONCAT_MANIFEST_NAME, CONCAT_INTERMEDIATE_NAME},
        )

        trim_requested = trim_start is not None
        concat_output = CONCAT_INTERMEDIATE_NAME if trim_requested else output_name
        concat_args = build_concat_args(CONCAT_MANIFEST_NAME, concat_output)
        trim_args = (
            build_trim_args(trim_start, trim_duration, CONCAT_INTERMEDIATE_NAME, output_name)
            if trim_requested
            else None
        )

        await self._context.ensure_loaded()

        record = OperationRecord(operation="concat", label=CONCAT_LABEL)
        async with self._operation(record) as scope:
            engine = self._context.lifecycle.require_engine()

            record.advance(OperationPhase.STAGING)
            for name, data in zip(input_names, sources):
                await scope.write(name, data)
            await scope.write(CONCAT_MANIFEST_NAME, build_concat_manifest(input_names))
            scope.track(concat_output)

            record.advance(OperationPhase.EXECUTING)
            await engine.exec(concat_args)

            if trim_args is not None:
                self._context.publisher.set_operation_label(CONCAT_TRIM_LABEL)
                scope.track(output_name)
                await engine.exec(trim_args)
                await scope.release(CONCAT_INTERMEDIATE_NAME)

            record.advance(OperationPhase.READING)
            data = await scope.read(output_name)

        return data

    @asynccontextmanager
    async def _operation(self, record: OperationRecord) -> AsyncIterator[StagingScope]:
        """Serialize, publish, stage and clean up one operation."""
        publisher = self._context.publisher
        metrics = self._context.metrics

        async with self._operation_lock:
            publisher.begin_operation(record.label)
            logger.info(f"Starting {record.operation}", extra=record.log_context())

            try:
                async with self._context.staging.scope(record.log_context()) as scope:
                    try:
                        yield scope
                    finally:
                        record.advance(OperationPhase.CLEANING_UP)

            except Exception as e:
                record.advance(OperationPhase.FAILED)
                metrics.record_operation(record.operation, "failed", record.elapsed_seconds)
                logger.error(
                    f"{record.operation.capitalize()} failed: {e}",
                    extra={**record.log_context(), "error": str(e)},
                    exc_info=True,
                )
                raise

            else:
                record.advance(OperationPhase.DONE)
                metrics.record_operation(record.operation, "success", record.elapsed_seconds)
                logger.info(
                    f"{record.operation.capitalize()} finished in {record.elapsed_seconds:.2f}s",
                    extra=record.log_context(),
                )

            finally:
                publisher.end_operation()
