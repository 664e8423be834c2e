"""Structlog processor that turns ``exc_info`` into an error report.

Usage::

    structlog.configure(
        processors=[..., ErrorReportProcessor(), structlog.processors.JSONRenderer()],
    )

    log.exception("payment failed")  # event dict gains an ``error_report``
"""

from __future__ import annotations

import sys
from typing import Any

from errorguru.dispatch import Dispatch
from errorguru.enrich import add_exception_mechanism
from errorguru.events import event_from_unknown_input


class ErrorReportProcessor:
    """Replace ``exc_info`` with a normalized error report.

    Parameters
    ----------
    key:
        Event-dict key the report is stored under.
    dispatch:
        Optional callable that also receives every report built.
    """

    def __init__(
        self,
        *,
        key: str = "error_report",
        dispatch: Dispatch | None = None,
    ) -> None:
        self._key = key
        self._dispatch = dispatch

    def __call__(
        self,
        _logger: Any,
        _method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        exc_info = event_dict.get("exc_info")
        if not exc_info:
            return event_dict

        if exc_info is True:
            exc_info = sys.exc_info()
        if isinstance(exc_info, tuple):
            exc_info = exc_info[1] if len(exc_info) == 3 else None
        if not isinstance(exc_info, BaseException):
            return event_dict

        report = event_from_unknown_input(exc_info)
        add_exception_mechanism(report, {"handled": True, "type": "logging"})

        if self._dispatch is not None:
            self._dispatch(report)

        event_dict[self._key] = report
        event_dict.pop("exc_info", None)
        return event_dict
