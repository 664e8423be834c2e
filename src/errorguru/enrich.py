"""Report enrichment: exception base, mechanism tags and initial frames.

All helpers mutate and return the report they are given, and never
overwrite a value that is already set.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from errorguru.stacktrace import UNKNOWN_FUNCTION


def add_exception_base(report: dict[str, Any]) -> dict[str, Any]:
    """Ensure ``report["exception"]["values"][0]`` exists."""
    exception = report.setdefault("exception", {})
    values = exception.setdefault("values", [])
    if not values:
        values.append({})
    return report


def first_exception(report: dict[str, Any]) -> dict[str, Any]:
    return add_exception_base(report)["exception"]["values"][0]


def add_exception_type_value(
    report: dict[str, Any],
    value: str | None = None,
    type_: str | None = None,
) -> dict[str, Any]:
    """Fill the exception ``value`` and ``type`` unless already present."""
    record = first_exception(report)
    record["value"] = record.get("value") or value or ""
    record["type"] = record.get("type") or type_ or "Error"
    return report


def add_exception_mechanism(
    report: dict[str, Any],
    mechanism: Mapping[str, Any],
) -> dict[str, Any]:
    """Merge *mechanism* into the exception record; first write wins.

    The record is created when missing, with ``type`` defaulting to
    ``"Error"`` and ``value`` to the report message.
    """
    add_exception_type_value(report, report.get("message"))
    target = first_exception(report).setdefault("mechanism", {})
    for key, val in mechanism.items():
        target.setdefault(key, val)
    return report


def _to_number(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def enhance_event_with_initial_frame(
    report: dict[str, Any],
    url: str | None = None,
    line: int | str | None = None,
    column: int | str | None = None,
    *,
    location: str = "",
) -> dict[str, Any]:
    """Add a single frame built from a known location, unless frames exist.

    Used when only the file, line and column of a failure are known.  An
    empty *url* falls back to *location*, the page the capture happened on.
    """
    record = first_exception(report)
    frames = record.setdefault("stacktrace", {}).setdefault("frames", [])
    if not frames:
        frames.append(
            {
                "colno": _to_number(column),
                "filename": url if isinstance(url, str) and url else location,
                "function": UNKNOWN_FUNCTION,
                "in_app": True,
                "lineno": _to_number(line),
            }
        )
    return report
