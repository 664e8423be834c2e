"""Capture-site registration.

Turns unhandled errors and unhandled rejections into reports and forwards
them to a dispatcher:

- :func:`report_from_error_event` / :func:`report_from_rejection_event`
  handle browser ``error`` and ``unhandledrejection`` event payloads.
- :class:`CaptureHooks` installs the Python equivalents: ``sys.excepthook``
  and ``threading.excepthook`` report as ``onerror``, an asyncio loop's
  exception handler reports as ``onunhandledrejection``.
- :func:`named_callbacks` decorates scheduling callables so that callbacks
  they receive carry a ``scheduler(callback)`` name in later stacks.
"""

from __future__ import annotations

import asyncio
import functools
import sys
import threading
import types
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from errorguru.dispatch import Dispatch
from errorguru.enrich import add_exception_mechanism, enhance_event_with_initial_frame
from errorguru.events import (
    event_from_incomplete_onerror,
    event_from_rejection_with_primitive,
    event_from_unknown_input,
)
from errorguru.inspection import get_field, has_field, is_primitive

log = structlog.get_logger(__name__)

ONERROR = {"handled": False, "type": "onerror"}
ONUNHANDLEDREJECTION = {"handled": False, "type": "onunhandledrejection"}

ANONYMOUS = "<anonymous>"
_WRAPPED_ATTR = "__errorguru_scheduler__"

F = TypeVar("F", bound=Callable[..., Any])


def report_from_error_event(event: Any, *, location: str = "") -> dict[str, Any]:
    """Build the ``onerror`` report for a browser error event payload."""
    inner = get_field(event, "error")
    message = get_field(event, "message")
    filename = get_field(event, "filename")
    lineno = get_field(event, "lineno")
    colno = get_field(event, "colno")

    if inner is None and isinstance(message, str):
        report = event_from_incomplete_onerror(message, filename, lineno, colno, location=location)
    else:
        report = enhance_event_with_initial_frame(
            event_from_unknown_input(inner or message, None, False),
            filename,
            lineno,
            colno,
            location=location,
        )
    return add_exception_mechanism(report, ONERROR)


def _rejection_reason(event: Any) -> Any:
    if is_primitive(event) or isinstance(event, BaseException):
        return event
    if has_field(event, "reason"):
        return get_field(event, "reason")
    detail = get_field(event, "detail")
    if not is_primitive(detail) and has_field(detail, "reason"):
        return get_field(detail, "reason")
    return event


def report_from_rejection_event(event: Any) -> dict[str, Any]:
    """Build the ``onunhandledrejection`` report for a browser rejection event payload."""
    return report_from_rejection_reason(_rejection_reason(event))


def report_from_rejection_reason(reason: Any) -> dict[str, Any]:
    """Build the ``onunhandledrejection`` report for a bare rejection reason."""
    if is_primitive(reason):
        report = event_from_rejection_with_primitive(reason)
    else:
        report = event_from_unknown_input(reason, None, True)
    return add_exception_mechanism(report, ONUNHANDLEDREJECTION)


class CaptureHooks:
    """Report unhandled errors of the running process to *dispatch*.

    Parameters
    ----------
    dispatch:
        Callable receiving every finished report.
    location:
        Fallback filename for frames synthesized from partial locations.

    Previously installed hooks keep running after ours.  Failures while
    building or dispatching a report are logged and never propagate.
    """

    def __init__(self, dispatch: Dispatch, *, location: str = "") -> None:
        self._dispatch = dispatch
        self._location = location
        self._installed = False
        self._previous_excepthook: Callable[..., Any] | None = None
        self._previous_threading_hook: Callable[..., Any] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous_loop_handler: Callable[..., Any] | None = None

    # -- capture ------------------------------------------------------------

    def _send(self, build: Callable[[], dict[str, Any]]) -> None:
        try:
            self._dispatch(build())
        except Exception:
            log.exception("Failed to report captured error")

    def capture_error(self, value: Any) -> None:
        """Report *value* as an unhandled error."""
        self._send(
            lambda: add_exception_mechanism(
                event_from_unknown_input(value, None, False),
                ONERROR,
            )
        )

    def capture_error_event(self, event: Any) -> None:
        """Report a browser ``error`` event payload."""
        self._send(lambda: report_from_error_event(event, location=self._location))

    def capture_rejection(self, reason: Any) -> None:
        """Report *reason* as an unhandled rejection."""
        self._send(lambda: report_from_rejection_reason(reason))

    def capture_rejection_event(self, event: Any) -> None:
        """Report a browser ``unhandledrejection`` event payload."""
        self._send(lambda: report_from_rejection_event(event))

    # -- hook callbacks -----------------------------------------------------

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_traceback: Any,
    ) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            self.capture_error(exc_value)
        previous = self._previous_excepthook or sys.__excepthook__
        previous(exc_type, exc_value, exc_traceback)

    def _threading_excepthook(self, args: Any) -> None:
        if args.exc_type is not SystemExit and args.exc_value is not None:
            self.capture_error(args.exc_value)
        previous = self._previous_threading_hook or threading.__excepthook__
        previous(args)

    def _loop_exception_handler(
        self,
        loop: asyncio.AbstractEventLoop,
        context: dict[str, Any],
    ) -> None:
        exception = context.get("exception")
        self.capture_rejection(exception if exception is not None else context.get("message"))
        if self._previous_loop_handler is not None:
            self._previous_loop_handler(loop, context)
        else:
            loop.default_exception_handler(context)

    # -- installation -------------------------------------------------------

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> CaptureHooks:
        """Install the process hooks, and the handler on *loop* if given."""
        if self._installed:
            msg = "Capture hooks are already installed. Call uninstall() first."
            raise RuntimeError(msg)

        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._excepthook
        self._previous_threading_hook = threading.excepthook
        threading.excepthook = self._threading_excepthook

        if loop is not None:
            self._loop = loop
            self._previous_loop_handler = loop.get_exception_handler()
            loop.set_exception_handler(self._loop_exception_handler)

        self._installed = True
        return self

    def uninstall(self) -> None:
        """Restore the hooks that were active before :meth:`install`."""
        if not self._installed:
            return
        sys.excepthook = self._previous_excepthook or sys.__excepthook__
        threading.excepthook = self._previous_threading_hook or threading.__excepthook__
        if self._loop is not None:
            self._loop.set_exception_handler(self._previous_loop_handler)
            self._loop = None
        self._installed = False


def get_function_name(fn: Any) -> str:
    name = getattr(fn, "__name__", "")
    if not isinstance(name, str) or not name or name == "<lambda>":
        return ANONYMOUS
    return name


def _rename(fn: Any, name: str) -> None:
    for attr in ("__name__", "__qualname__"):
        try:
            setattr(fn, attr, name)
        except (AttributeError, TypeError):
            return
    if isinstance(fn, types.FunctionType):
        # Tracebacks read the code object's name, not __name__.
        changes = {"co_name": name}
        if hasattr(fn.__code__, "co_qualname"):
            changes["co_qualname"] = name
        fn.__code__ = fn.__code__.replace(**changes)


def named_callbacks(name: str) -> Callable[[F], F]:
    """Decorate a scheduling callable so its callback is renamed ``name(inner)``.

    The first callable positional argument is the callback.  Applying the
    decorator twice, or scheduling the same callback again, does not nest
    names.  The scheduler itself is not modified::

        call_later = named_callbacks("call_later")(loop.call_later)
        call_later(1.0, refresh)  # frames now read "call_later(refresh)"
    """

    def decorator(scheduler: F) -> F:
        if getattr(scheduler, _WRAPPED_ATTR, None) == name:
            return scheduler

        @functools.wraps(scheduler)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for arg in args:
                if callable(arg):
                    current = get_function_name(arg)
                    if not current.startswith(f"{name}("):
                        _rename(arg, f"{name}({current})")
                    break
            return scheduler(*args, **kwargs)

        setattr(wrapper, _WRAPPED_ATTR, name)
        return wrapper  # type: ignore[return-value]

    return decorator
