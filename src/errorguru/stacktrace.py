"""Stack trace extraction from error-like values.

Parses the textual ``stacktrace`` (Opera) and ``stack`` (V8, WinJS, Gecko)
properties produced by browser runtimes, and the ``__traceback__`` of live
Python exceptions, into :class:`RawStackFrame` lists ordered innermost
first.

Line grammars live in ordered tables of :class:`Grammar` entries.  Each
line is matched against the table top-to-bottom and the first grammar whose
pattern matches builds the frame, so dialects can be added by extending the
table alone.
"""

from __future__ import annotations

import re
import traceback
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from errorguru.inspection import get_field
from errorguru.summary import extract_message

log = structlog.get_logger(__name__)

UNKNOWN_FUNCTION = "?"

_CHROME = re.compile(
    r"^\s*at (?:(.*?) ?\()?((?:file|https?|blob|chrome-extension|address|native|eval|webpack"
    r"|<anonymous>|[-a-z]+:|.*bundle|\/).*?)(?::(\d+))?(?::(\d+))?\)?\s*$",
    re.IGNORECASE,
)
_CHROME_EVAL = re.compile(r"\((\S*)(?::(\d+))(?::(\d+))\)")
_GECKO = re.compile(
    r"^\s*(.*?)(?:\((.*?)\))?(?:^|@)?((?:file|https?|blob|chrome|webpack|resource|moz-extension"
    r"|capacitor).*?:\/.*?|\[native code\]|[^@]*(?:bundle|\d+\.js)|\/[\w\-. /=]+)"
    r"(?::(\d+))?(?::(\d+))?\s*$",
    re.IGNORECASE,
)
_GECKO_EVAL = re.compile(r"(\S+) line (\d+)(?: > eval line \d+)* > eval", re.IGNORECASE)
_WINJS = re.compile(
    r"^\s*at (?:((?:\[object object\])?.+) )?\(?((?:file|ms-appx|https?|webpack|blob):.*?)"
    r":(\d+)(?::(\d+))?\)?\s*$",
    re.IGNORECASE,
)
_OPERA10 = re.compile(r" line (\d+).*script (?:in )?(\S+)(?:: in function (\S+))?$", re.IGNORECASE)
_OPERA11 = re.compile(
    r" line (\d+), column (\d+)\s*(?:in (?:<anonymous function: ([^>]+)>|([^)]+))\((.*)\))?"
    r" in (.*):\s*$",
    re.IGNORECASE,
)
_REACT_MINIFIED = re.compile(r"Minified React error #\d+;", re.IGNORECASE)

_ADDRESS_PREFIX = "address at "
_SAFARI_EXTENSION = "safari-extension"
_SAFARI_WEB_EXTENSION = "safari-web-extension"


@dataclass
class RawStackFrame:
    """A single call site recovered from a stack trace."""

    url: str
    function: str = UNKNOWN_FUNCTION
    arguments: list[str] = field(default_factory=list)
    line: int | None = None
    column: int | None = None


@dataclass
class ParsedStackTrace:
    """Frames parsed from an error, innermost call first.

    ``failed`` is ``True`` (with no frames) when no grammar matched.
    """

    name: str
    message: str
    frames: list[RawStackFrame] = field(default_factory=list)
    failed: bool = False


@dataclass(frozen=True)
class Grammar:
    """A stack-line dialect and the function that turns a match into a frame.

    ``extract`` receives the match, the line index and the error itself.
    """

    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str], int, Any], RawStackFrame]


def _to_int(text: str | None) -> int | None:
    return int(text) if text else None


def _chrome_frame(parts: re.Match[str], _index: int, _ex: Any) -> RawStackFrame:
    location = parts.group(2) or ""
    line, column = parts.group(3), parts.group(4)
    is_native = location.startswith("native")

    if location.startswith("eval"):
        submatch = _CHROME_EVAL.search(location)
        if submatch:
            location, line, column = submatch.group(1), submatch.group(2), submatch.group(3)

    url = location[len(_ADDRESS_PREFIX) :] if location.startswith(_ADDRESS_PREFIX) else location
    func = parts.group(1) or UNKNOWN_FUNCTION

    is_safari_extension = _SAFARI_EXTENSION in func
    is_safari_web_extension = _SAFARI_WEB_EXTENSION in func
    if is_safari_extension or is_safari_web_extension:
        func = func.split("@")[0] if "@" in func else UNKNOWN_FUNCTION
        scheme = _SAFARI_EXTENSION if is_safari_extension else _SAFARI_WEB_EXTENSION
        url = f"{scheme}:{url}"

    return RawStackFrame(
        url=url,
        function=func,
        arguments=[parts.group(2)] if is_native else [],
        line=_to_int(line),
        column=_to_int(column),
    )


def _winjs_frame(parts: re.Match[str], _index: int, _ex: Any) -> RawStackFrame:
    return RawStackFrame(
        url=parts.group(2),
        function=parts.group(1) or UNKNOWN_FUNCTION,
        line=int(parts.group(3)),
        column=_to_int(parts.group(4)),
    )


def _gecko_frame(parts: re.Match[str], index: int, ex: Any) -> RawStackFrame:
    func, args, url = parts.group(1), parts.group(2), parts.group(3)
    line, column = parts.group(4), parts.group(5)
    column_number = None

    submatch = _GECKO_EVAL.search(url) if " > eval" in url else None
    if submatch:
        func = func or "eval"
        url, line, column = submatch.group(1), submatch.group(2), None
    elif index == 0 and not column:
        # Firefox only reports the column of the throw site on the error.
        column_number = get_field(ex, "columnNumber")

    return RawStackFrame(
        url=url,
        function=func or UNKNOWN_FUNCTION,
        arguments=args.split(",") if args else [],
        line=_to_int(line),
        column=int(column_number) + 1 if isinstance(column_number, int) else _to_int(column),
    )


def _opera10_frame(parts: re.Match[str], _index: int, _ex: Any) -> RawStackFrame:
    return RawStackFrame(
        url=parts.group(2),
        function=parts.group(3) or UNKNOWN_FUNCTION,
        line=int(parts.group(1)),
    )


def _opera11_frame(parts: re.Match[str], _index: int, _ex: Any) -> RawStackFrame:
    return RawStackFrame(
        url=parts.group(6),
        function=parts.group(3) or parts.group(4) or UNKNOWN_FUNCTION,
        arguments=parts.group(5).split(",") if parts.group(5) else [],
        line=int(parts.group(1)),
        column=int(parts.group(2)),
    )


STACK_GRAMMARS: tuple[Grammar, ...] = (
    Grammar("chrome", _CHROME, _chrome_frame),
    Grammar("winjs", _WINJS, _winjs_frame),
    Grammar("gecko", _GECKO, _gecko_frame),
)

OPERA_GRAMMARS: tuple[Grammar, ...] = (
    Grammar("opera10", _OPERA10, _opera10_frame),
    Grammar("opera11", _OPERA11, _opera11_frame),
)


def _error_name(ex: Any) -> str:
    # NameError, AttributeError and ImportError use ``name`` for the missing identifier.
    if isinstance(ex, BaseException):
        return type(ex).__name__
    name = get_field(ex, "name")
    return str(name) if name else "<unknown>"


def _match_lines(
    ex: Any,
    lines: Sequence[str],
    grammars: Sequence[Grammar],
    step: int = 1,
) -> list[RawStackFrame]:
    frames: list[RawStackFrame] = []
    for index in range(0, len(lines), step):
        for grammar in grammars:
            parts = grammar.pattern.search(lines[index])
            if parts:
                frames.append(grammar.extract(parts, index, ex))
                break
    return frames


def _frames_from_stacktrace_prop(ex: Any) -> list[RawStackFrame]:
    text = get_field(ex, "stacktrace")
    if not text or not isinstance(text, str):
        return []
    return _match_lines(ex, text.split("\n"), OPERA_GRAMMARS, step=2)


def _frames_from_stack_prop(ex: Any, grammars: Sequence[Grammar]) -> list[RawStackFrame]:
    text = get_field(ex, "stack")
    if not text or not isinstance(text, str):
        return []
    return _match_lines(ex, text.split("\n"), grammars)


def _frames_from_traceback(ex: Any) -> list[RawStackFrame]:
    summary = get_field(ex, "stack_summary")
    if summary is None:
        tb = getattr(ex, "__traceback__", None)
        if tb is None:
            return []
        summary = traceback.extract_tb(tb)

    frames = []
    for fs in reversed(summary):
        colno = getattr(fs, "colno", None)
        frames.append(
            RawStackFrame(
                url=fs.filename,
                function=fs.name or UNKNOWN_FUNCTION,
                line=fs.lineno,
                column=colno + 1 if colno is not None else None,
            )
        )
    return frames


def _pop_size(ex: Any) -> int:
    frames_to_pop = get_field(ex, "framesToPop")
    if isinstance(frames_to_pop, int) and not isinstance(frames_to_pop, bool):
        return max(frames_to_pop, 0)
    message = get_field(ex, "message")
    if isinstance(message, str) and _REACT_MINIFIED.search(message):
        return 1
    return 0


def compute_stack_trace(
    ex: Any,
    grammars: Sequence[Grammar] = STACK_GRAMMARS,
) -> ParsedStackTrace:
    """Parse the stack carried by *ex*.

    Sources are tried in order: the Opera ``stacktrace`` text, the ``stack``
    text against *grammars*, then a Python traceback.  Never raises; when no
    source yields a frame the result has ``failed=True`` and no frames.
    """
    extractors: tuple[Callable[[], list[RawStackFrame]], ...] = (
        lambda: _frames_from_stacktrace_prop(ex),
        lambda: _frames_from_stack_prop(ex, grammars),
        lambda: _frames_from_traceback(ex),
    )

    frames: list[RawStackFrame] = []
    for extract in extractors:
        try:
            frames = extract()
        except Exception:
            log.debug("Stack extraction failed", exc_info=True)
            frames = []
        if frames:
            break

    pop_size = _pop_size(ex)
    if pop_size:
        frames = frames[pop_size:]

    if not frames:
        log.debug("No stack grammar matched", error_type=type(ex).__name__)
        return ParsedStackTrace(
            name=_error_name(ex),
            message=extract_message(ex),
            failed=True,
        )

    return ParsedStackTrace(name=_error_name(ex), message=extract_message(ex), frames=frames)
