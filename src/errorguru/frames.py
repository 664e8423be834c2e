"""Conversion of raw stack frames into report frames."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from errorguru.stacktrace import UNKNOWN_FUNCTION, RawStackFrame

MAX_FRAMES = 20

# Public capture entrypoints; their own frame is noise at the top of a stack.
CAPTURE_MARKERS: tuple[str, ...] = (
    "captureMessage",
    "captureException",
    "capture_message",
    "capture_exception",
)
WRAPPER_MARKERS: tuple[str, ...] = ("sentryWrapped",)


def _contains_marker(function: str | None, markers: Sequence[str]) -> bool:
    name = function or ""
    return any(marker in name for marker in markers)


def prepare_frames(
    frames: Sequence[RawStackFrame],
    *,
    max_frames: int = MAX_FRAMES,
) -> list[dict[str, Any]]:
    """Trim, cap and reverse innermost-first *frames* into report frames.

    The result is ordered oldest call first and holds at most *max_frames*
    entries, those closest to the throw site.
    """
    if not frames:
        return []

    local = list(frames)
    drop_first = _contains_marker(local[0].function, CAPTURE_MARKERS)
    drop_last = _contains_marker(local[-1].function, WRAPPER_MARKERS)
    if drop_first:
        local = local[1:]
    if drop_last and local:
        local = local[:-1]
    if not local:
        return []

    default_filename = local[0].url
    prepared: list[dict[str, Any]] = []
    for frame in local[:max_frames]:
        out: dict[str, Any] = {
            "filename": frame.url or default_filename,
            "function": frame.function or UNKNOWN_FUNCTION,
            "in_app": True,
        }
        if frame.line is not None:
            out["lineno"] = frame.line
        if frame.column is not None:
            out["colno"] = frame.column
        prepared.append(out)

    prepared.reverse()
    return prepared
