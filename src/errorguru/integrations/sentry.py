"""Sentry SDK hand-off.

Provides a dispatcher that passes finished reports to an initialized
``sentry_sdk`` client, which owns transport and retries.

Usage::

    import sentry_sdk
    from errorguru.integrations.sentry import SentryDispatcher

    sentry_sdk.init(dsn=...)
    hooks = CaptureHooks(SentryDispatcher(tag_keys=frozenset({"release"})))
"""

from __future__ import annotations

from typing import Any


class SentryDispatcher:
    """Dispatcher that forwards reports with ``sentry_sdk.capture_event``.

    A no-op when ``sentry-sdk`` is not installed.

    Parameters
    ----------
    platform:
        Value for the report's ``platform`` field when unset.
    level:
        Value for the report's ``level`` field when unset.
    tag_keys:
        Report keys promoted to Sentry tags.
    """

    def __init__(
        self,
        *,
        platform: str = "javascript",
        level: str = "error",
        tag_keys: frozenset[str] | None = None,
    ) -> None:
        self._platform = platform
        self._level = level
        self._tag_keys = tag_keys or frozenset()

    def __call__(self, report: dict[str, Any]) -> None:
        try:
            import sentry_sdk
        except ImportError:
            return

        event = dict(report)
        event.setdefault("platform", self._platform)
        event.setdefault("level", self._level)

        tags = dict(event.get("tags") or {})
        for key in self._tag_keys:
            if key in event:
                tags[key] = str(event[key])
        if tags:
            event["tags"] = tags

        sentry_sdk.capture_event(event)
