"""
Metrics module for Prometheus observability.

Components:
- ClipMetrics: Prometheus metric definitions and helpers
"""

from __future__ import annotations

from clip_service.metrics.prometheus import ClipMetrics

__all__ = [
    "ClipMetrics",
]
