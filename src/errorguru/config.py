"""Client configuration and logging setup.

:class:`ClientConfig` is the immutable value built once at startup (usually
from a DSN of the form ``https://<key>@<endpoint>/<project>``) and passed by
reference to dispatchers.  The capture pipeline itself reads no
configuration.

:func:`configure_logging` routes structlog and stdlib records through one
root handler: JSON lines rendered with orjson, or console output.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import orjson
import structlog
from structlog.contextvars import merge_contextvars

DSN_ENV = "ERRORGURU_DSN"
ENVIRONMENT_ENV = "ERRORGURU_ENVIRONMENT"
LOCATION_ENV = "ERRORGURU_LOCATION"


@dataclass(frozen=True)
class ClientConfig:
    """Immutable credentials and endpoint of the report collector.

    Parameters
    ----------
    key:
        Public key used to authenticate reports.
    endpoint:
        Collector host, e.g. ``o1.ingest.example.io``.
    project:
        Project identifier on the collector.
    environment:
        Environment name attached to dispatched reports.
    location:
        Default page location for frames synthesized from partial
        locations.
    """

    key: str
    endpoint: str
    project: str
    environment: str = "production"
    location: str = ""

    def __post_init__(self) -> None:
        for name in ("key", "endpoint", "project"):
            if not getattr(self, name):
                msg = f"{name} must not be empty"
                raise ValueError(msg)

    @property
    def base_url(self) -> str:
        return f"https://{self.endpoint}/api/{self.project}"

    @property
    def store_url(self) -> str:
        return f"{self.base_url}/store/?sentry_version=7&sentry_key={self.key}"

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> ClientConfig:
        """Parse ``https://<key>@<endpoint>/<project>``."""
        parts = urlsplit(dsn)
        project = parts.path.strip("/")
        if not parts.username or not parts.hostname or not project:
            msg = f"Invalid DSN: {dsn!r}"
            raise ValueError(msg)
        endpoint = parts.hostname if parts.port is None else f"{parts.hostname}:{parts.port}"
        return cls(key=parts.username, endpoint=endpoint, project=project, **kwargs)

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build the config from environment variables.

        Reads ``ERRORGURU_DSN`` (required), ``ERRORGURU_ENVIRONMENT``
        (default ``"production"``) and ``ERRORGURU_LOCATION``.
        """
        dsn = os.environ.get(DSN_ENV)
        if not dsn:
            msg = f"{DSN_ENV} is not set"
            raise ValueError(msg)
        return cls.from_dsn(
            dsn,
            environment=os.environ.get(ENVIRONMENT_ENV, "production"),
            location=os.environ.get(LOCATION_ENV, ""),
        )


def _orjson_serializer(obj: object, **_kw: object) -> str:
    return orjson.dumps(obj, default=str).decode()


def _to_logging_level(level_name: str) -> int:
    upper_level = level_name.upper()
    if upper_level == "WARN":
        return logging.WARNING
    result: int = getattr(logging, upper_level, logging.INFO)
    return result


def _stream_isatty(stream: Any) -> bool:
    """Check if *stream* is connected to a terminal."""
    try:
        result: bool = stream.isatty()
        return result
    except (AttributeError, ValueError):
        return False


def _build_shared_processors() -> list[structlog.types.Processor]:
    """Build the processor chain shared by structlog and stdlib records."""
    return [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _build_formatter_processors(
    renderer: structlog.types.Processor,
    *,
    json_mode: bool = True,
) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if json_mode:
        processors.append(structlog.processors.format_exc_info)
    processors.append(renderer)
    return processors


def configure_logging(
    *,
    level: str = "INFO",
    json_logs: bool = True,
    stream: Any = None,
    clear_handlers: bool = True,
) -> None:
    """Configure structlog and the root logger for errorguru's diagnostics.

    Records from structlog and from plain :mod:`logging` share one
    :class:`structlog.stdlib.ProcessorFormatter` on a root stream handler.

    Parameters
    ----------
    level:
        Minimum log level (e.g. ``"DEBUG"``, ``"INFO"``).
    json_logs:
        ``True`` for JSON output, ``False`` for console output.
    stream:
        Output stream.  Defaults to ``sys.stdout``.
    clear_handlers:
        If ``True`` (default), remove existing root logger handlers first.
    """
    if stream is None:
        stream = sys.stdout

    shared_processors = _build_shared_processors()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(_to_logging_level(level)),
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(serializer=_orjson_serializer)
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=_stream_isatty(stream))
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=_build_formatter_processors(renderer, json_mode=json_logs),
        foreign_pre_chain=shared_processors,
    )

    root = logging.getLogger()
    if clear_handlers:
        root.handlers.clear()
    root.setLevel(_to_logging_level(level))

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_logging() -> None:
    """Configure logging from ``LOG_LEVEL`` and ``JSON_LOGS`` (``"0"`` = console)."""
    configure_logging(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        json_logs=os.environ.get("JSON_LOGS", "1") != "0",
    )
