"""
FFmpeg argument builders for clip operations.

Arguments are returned without the binary name; the engine prepends it along
with its own process flags.

Trim:
    -ss <start> -i <input> -t <duration> -c copy -avoid_negative_ts make_zero <output>
    -ss before -i: fast input seek
    -c copy: stream copy, no re-encode
    -avoid_negative_ts make_zero: shift timestamps so none are negative after seeking

Concat:
    -f concat -safe 0 -i <manifest> -c copy <output>
    -f concat: concat demuxer reading an ordered manifest
    -safe 0: accept arbitrary file names in the manifest
    Inputs must share codec parameters; mismatches fail inside ffmpeg.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from clip_service.errors import InvalidArgumentError


def format_seconds(value: float) -> str:
    """Encode a time value as a decimal-second string.

    Whole numbers drop the fractional part (5 -> "5", 2.5 -> "2.5").

    Raises:
        InvalidArgumentError: If value is negative, NaN or infinite
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"Time value must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidArgumentError(f"Time value must be finite, got {value!r}")
    if value < 0:
        raise InvalidArgumentError(f"Time value cannot be negative, got {value!r}")

    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def build_trim_args(
    start_seconds: float,
    duration_seconds: float,
    input_name: str,
    output_name: str,
) -> list[str]:
    """Build arguments that cut [start, start + duration) with stream copy.

    A zero duration is passed through; ffmpeg decides what it produces.
    """
    return [
        "-ss", format_seconds(start_seconds),
        "-i", input_name,
        "-t", format_seconds(duration_seconds),
        "-c", "copy",
        "-avoid_negative_ts", "make_zero",
        output_name,
    ]


def build_concat_args(manifest_name: str, output_name: str) -> list[str]:
    """Build arguments that join the manifest's inputs with stream copy."""
    return [
        "-f", "concat",
        "-safe", "0",
        "-i", manifest_name,
        "-c", "copy",
        output_name,
    ]


def _quote_manifest_entry(name: str) -> str:
    # concat demuxer quoting: close quote, escaped quote, reopen
    return "'" + name.replace("'", "'\\''") + "'"


def build_concat_manifest(names: Sequence[str]) -> str:
    """Render the concat demuxer manifest, one entry per line, in order."""
    if not names:
        raise InvalidArgumentError("Concat manifest needs at least one input")
    return "\n".join(f"file {_quote_manifest_entry(name)}" for name in names)
