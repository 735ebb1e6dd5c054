"""
Prometheus metrics for the clip service.

- Operation counters and duration histograms (trim/concat)
- Engine load attempts by outcome
- Staged bytes by direction
- Cleanup failures
- Engine state gauge
"""

from __future__ import annotations

import logging
from typing import ClassVar

from prometheus_client import Counter, Gauge, Histogram

logger = logging.getLogger(__name__)


class ClipMetrics:
    """Prometheus metrics for engine lifecycle and clip operations.

    All metrics use the 'clip_service_' prefix for namespace isolation.

    Note: Metrics are class-level singletons to avoid Prometheus
    "Duplicated timeseries" errors when creating multiple instances.
    """

    NAMESPACE = "clip_service"
    SUBSYSTEM = "engine"

    _operations: ClassVar[Counter | None] = None
    _operation_duration: ClassVar[Histogram | None] = None
    _engine_loads: ClassVar[Counter | None] = None
    _engine_state: ClassVar[Gauge | None] = None
    _staged_bytes: ClassVar[Counter | None] = None
    _cleanup_failures: ClassVar[Counter | None] = None
    _metrics_initialized: ClassVar[bool] = False

    def __init__(self) -> None:
        self._ensure_metrics_initialized()

    @classmethod
    def _ensure_metrics_initialized(cls) -> None:
        """Initialize all Prometheus metrics (once per class)."""
        if cls._metrics_initialized:
            return

        prefix = f"{cls.NAMESPACE}_{cls.SUBSYSTEM}"

        cls._operations = Counter(
            f"{prefix}_operations_total",
            "Total clip operations",
            ["operation", "status"],  # operation: trim|concat, status: success|failed
        )

        cls._operation_duration = Histogram(
            f"{prefix}_operation_duration_seconds",
            "Clip operation duration in seconds",
            ["operation"],
            buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
        )

        cls._engine_loads = Counter(
            f"{prefix}_loads_total",
            "Engine load attempts",
            ["status"],  # status: success|failed
        )

        cls._engine_state = Gauge(
            f"{prefix}_state",
            "Engine state (0=not_loaded, 1=loading, 2=loaded, 3=failed)",
        )

        cls._staged_bytes = Counter(
            f"{prefix}_staged_bytes_total",
            "Bytes moved through the staged filesystem",
            ["direction"],  # direction: write|read
        )

        cls._cleanup_failures = Counter(
            f"{prefix}_cleanup_failures_total",
            "Staged file deletions that failed",
        )

        cls._metrics_initialized = True

    @property
    def operations(self) -> Counter:
        return self._operations

    @property
    def operation_duration(self) -> Histogram:
        return self._operation_duration

    @property
    def engine_loads(self) -> Counter:
        return self._engine_loads

    @property
    def engine_state(self) -> Gauge:
        return self._engine_state

    @property
    def staged_bytes(self) -> Counter:
        return self._staged_bytes

    @property
    def cleanup_failures(self) -> Counter:
        return self._cleanup_failures

    def record_operation(self, operation: str, status: str, duration_seconds: float) -> None:
        """Record a finished operation.

        Args:
            operation: "trim" or "concat"
            status: "success" or "failed"
            duration_seconds: Wall time of the operation
        """
        self.operations.labels(operation=operation, status=status).inc()
        self.operation_duration.labels(operation=operation).observe(duration_seconds)

    def record_engine_load(self, status: str) -> None:
        """Record a load attempt outcome ("success" or "failed")."""
        self.engine_loads.labels(status=status).inc()

    def set_engine_state(self, state_value: int) -> None:
        """Set engine state gauge (0=not_loaded, 1=loading, 2=loaded, 3=failed)."""
        self.engine_state.set(state_value)

    def record_staged_bytes(self, direction: str, size_bytes: int) -> None:
        """Record bytes written to or read from the staged filesystem."""
        self.staged_bytes.labels(direction=direction).inc(size_bytes)

    def record_cleanup_failure(self) -> None:
        """Record a failed staged file deletion."""
        self.cleanup_failures.inc()
