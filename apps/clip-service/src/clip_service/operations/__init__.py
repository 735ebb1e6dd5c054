"""
Clip operation orchestration.

Exports:
    VideoOperations: trim and concatenate workflows
"""

from clip_service.operations.video_operations import (
    CONCAT_INTERMEDIATE_NAME,
    CONCAT_MANIFEST_NAME,
    DEFAULT_OUTPUT_NAME,
    TRIM_INPUT_NAME,
    VideoOperations,
    concat_input_name,
)

__all__ = [
    "CONCAT_INTERMEDIATE_NAME",
    "CONCAT_MANIFEST_NAME",
    "DEFAULT_OUTPUT_NAME",
    "TRIM_INPUT_NAME",
    "VideoOperations",
    "concat_input_name",
]
