"""Report dispatchers.

A dispatcher is any callable accepting one finished report.  Delivery to a
collector is the dispatcher's business; the capture pipeline only hands
reports over.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeAlias

import orjson
import structlog

from errorguru.config import ClientConfig

Dispatch: TypeAlias = Callable[[dict[str, Any]], None]


def serialize_report(report: dict[str, Any]) -> bytes:
    """Serialize *report* to JSON; unknown values are rendered with ``str``."""
    return orjson.dumps(report, default=str)


class LogDispatcher:
    """Emit each report as a structured log event.

    Parameters
    ----------
    config:
        The client configuration; its project and environment are bound to
        every event.
    logger_name:
        Name of the structlog logger used for output.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        logger_name: str = "errorguru.reports",
    ) -> None:
        self._config = config
        self._logger_name = logger_name

    def __call__(self, report: dict[str, Any]) -> None:
        values = report.get("exception", {}).get("values") or [{}]
        log = structlog.get_logger(self._logger_name)
        log.error(
            "Error report captured",
            project=self._config.project,
            environment=self._config.environment,
            error_type=values[0].get("type"),
            error_value=values[0].get("value", report.get("message")),
            report=serialize_report(report).decode(),
        )
