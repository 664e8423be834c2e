"""Classification of captured values into error reports.

:func:`event_from_unknown_input` is the single entry point: it maps any
thrown or rejected value onto one :class:`~errorguru.inspection.InputKind`
and builds the matching report shape.  Every branch yields a valid report;
nothing raises to the caller.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from errorguru.enrich import (
    add_exception_mechanism,
    add_exception_type_value,
    enhance_event_with_initial_frame,
)
from errorguru.frames import prepare_frames
from errorguru.inspection import (
    InputKind,
    class_tag,
    classify_input,
    get_field,
    has_field,
    to_text,
)
from errorguru.stacktrace import ParsedStackTrace, compute_stack_trace
from errorguru.summary import extract_exception_keys, normalize_to_size

log = structlog.get_logger(__name__)

UNRECOVERABLE = "Unrecoverable error caught"
DOM_CODE_TAG = "DOMException.code"
UNCLASSIFIABLE = "<unknown>"

_ERROR_TYPES_RE = re.compile(
    r"^(?:[Uu]ncaught (?:exception: )?)?"
    r"(?:((?:Eval|Internal|Range|Reference|Syntax|Type|URI|)Error): )?(.*)$",
    re.IGNORECASE,
)


def exception_from_stacktrace(stacktrace: ParsedStackTrace) -> dict[str, Any]:
    """Build an exception record from a parsed stack trace."""
    frames = prepare_frames(stacktrace.frames)

    exception: dict[str, Any] = {
        "type": stacktrace.name,
        "value": stacktrace.message,
    }
    if frames:
        exception["stacktrace"] = {"frames": frames}
    if not exception["type"] and not exception["value"]:
        exception["value"] = UNRECOVERABLE

    return exception


def event_from_stacktrace(stacktrace: ParsedStackTrace) -> dict[str, Any]:
    return {"exception": {"values": [exception_from_stacktrace(stacktrace)]}}


def _synthetic_frames(synthetic_exception: Any) -> list[dict[str, Any]]:
    return prepare_frames(compute_stack_trace(synthetic_exception).frames)


def event_from_string(message: str, synthetic_exception: Any = None) -> dict[str, Any]:
    """Build a message-only report, with the capture-site stack if supplied."""
    report: dict[str, Any] = {"message": message}
    if synthetic_exception is not None:
        report["stacktrace"] = {"frames": _synthetic_frames(synthetic_exception)}
    return report


def event_from_plain_object(
    value: Any,
    synthetic_exception: Any = None,
    rejection: bool = False,
) -> dict[str, Any]:
    """Build a report for a non-error object or event."""
    if classify_input(value) is InputKind.GENERIC_EVENT:
        type_ = class_tag(value)
    else:
        type_ = "UnhandledRejection" if rejection else "Error"
    kind = "promise rejection" if rejection else "exception"

    report: dict[str, Any] = {
        "exception": {
            "values": [
                {
                    "type": type_,
                    "value": f"Non-Error {kind} captured with keys: {extract_exception_keys(value)}",
                }
            ]
        },
        "extra": {"__serialized__": normalize_to_size(value)},
    }

    if synthetic_exception is not None:
        report["stacktrace"] = {"frames": _synthetic_frames(synthetic_exception)}

    return report


def event_from_rejection_with_primitive(reason: Any) -> dict[str, Any]:
    return {
        "exception": {
            "values": [
                {
                    "type": "UnhandledRejection",
                    "value": "Non-Error promise rejection captured with value: " + to_text(reason),
                }
            ]
        }
    }


def _event_from_dom(value: Any, kind: InputKind, synthetic_exception: Any) -> dict[str, Any]:
    default_name = "DOMError" if kind is InputKind.PLATFORM_ERROR else "DOMException"
    name = get_field(value, "name") or default_name
    message = get_field(value, "message")
    text = f"{name}: {message}" if message else str(name)

    report = event_from_string(text, synthetic_exception)
    add_exception_type_value(report, text)

    if has_field(value, "code"):
        try:
            report["tags"] = {**report.get("tags", {}), DOM_CODE_TAG: to_text(get_field(value, "code"))}
        except Exception:
            log.debug("Could not attach DOM exception code", exc_info=True)

    return report


def event_from_unknown_input(
    value: Any,
    synthetic_exception: Any = None,
    rejection: bool = False,
) -> dict[str, Any]:
    """Classify *value* and build the matching report.

    Parameters
    ----------
    value:
        The thrown error or rejection reason, in any shape.
    synthetic_exception:
        An error created at the capture site, used only for its stack when
        *value* carries none of its own.
    rejection:
        ``True`` when *value* is the reason of an unhandled rejection.
    """
    try:
        return _event_from_kind(value, synthetic_exception, rejection)
    except Exception:
        log.warning("Could not classify captured value", exc_info=True)
        report: dict[str, Any] = {"message": UNCLASSIFIABLE}
        add_exception_type_value(report, UNCLASSIFIABLE)
        return add_exception_mechanism(report, {"synthetic": True})


def _event_from_kind(value: Any, synthetic_exception: Any, rejection: bool) -> dict[str, Any]:
    kind = classify_input(value, rejection=rejection)

    if kind is InputKind.WRAPPED_ERROR_EVENT:
        return event_from_stacktrace(compute_stack_trace(get_field(value, "error")))

    if kind in (InputKind.PLATFORM_ERROR, InputKind.PLATFORM_EXCEPTION):
        return _event_from_dom(value, kind, synthetic_exception)

    if kind is InputKind.ERROR_LIKE:
        return event_from_stacktrace(compute_stack_trace(value))

    if kind in (InputKind.GENERIC_EVENT, InputKind.PLAIN_OBJECT):
        report = event_from_plain_object(value, synthetic_exception, rejection)
        return add_exception_mechanism(report, {"synthetic": True})

    if kind is InputKind.PRIMITIVE:
        return event_from_rejection_with_primitive(value)

    text = to_text(value)
    report = event_from_string(text, synthetic_exception)
    add_exception_type_value(report, text)
    return add_exception_mechanism(report, {"synthetic": True})


def event_from_incomplete_onerror(
    message: str,
    url: str | None = None,
    line: int | str | None = None,
    column: int | str | None = None,
    *,
    location: str = "",
) -> dict[str, Any]:
    """Build a report for an error event that carries only a message and location."""
    name = None
    groups = _ERROR_TYPES_RE.match(message)
    if groups:
        name, message = groups.group(1), groups.group(2)

    report: dict[str, Any] = {
        "exception": {"values": [{"type": name or "Error", "value": message}]},
    }
    return enhance_event_with_initial_frame(report, url, line, column, location=location)
