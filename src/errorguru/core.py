"""Client facade for manual captures.

A :class:`Client` pairs an immutable :class:`~errorguru.config.ClientConfig`
with a dispatcher::

    from errorguru import Client

    client = Client.from_dsn("https://key@o1.ingest.example.io/42")
    try:
        handler()
    except Exception as exc:
        client.capture_exception(exc)

Both capture methods record the call site as a synthetic stack, used when
the captured value carries no stack of its own.
"""

from __future__ import annotations

import asyncio
import traceback
from dataclasses import dataclass
from typing import Any

from errorguru.config import ClientConfig
from errorguru.dispatch import Dispatch, LogDispatcher
from errorguru.enrich import add_exception_mechanism
from errorguru.events import event_from_string, event_from_unknown_input
from errorguru.hooks import CaptureHooks


class SyntheticException(Exception):
    """An error created at the capture site only to carry its stack."""

    def __init__(self, message: str, stack_summary: traceback.StackSummary) -> None:
        super().__init__(message)
        self.stack_summary = stack_summary


@dataclass(frozen=True)
class Client:
    """Capture errors and messages and hand the reports to *dispatch*."""

    config: ClientConfig
    dispatch: Dispatch

    @classmethod
    def from_dsn(cls, dsn: str, dispatch: Dispatch | None = None, **kwargs: Any) -> Client:
        """Build a client from a DSN; reports are logged unless *dispatch* is given."""
        config = ClientConfig.from_dsn(dsn, **kwargs)
        return cls(config=config, dispatch=dispatch or LogDispatcher(config))

    def _send(self, report: dict[str, Any]) -> dict[str, Any]:
        report.setdefault("environment", self.config.environment)
        self.dispatch(report)
        return report

    def capture_exception(self, value: Any, *, handled: bool = True) -> dict[str, Any]:
        """Report *value*, any thrown or rejected value, and return the report."""
        synthetic = SyntheticException("capture_exception", traceback.extract_stack())
        report = event_from_unknown_input(value, synthetic, False)
        add_exception_mechanism(report, {"handled": handled, "type": "generic"})
        return self._send(report)

    def capture_message(self, message: str, *, level: str = "info") -> dict[str, Any]:
        """Report a plain *message* with the caller's stack."""
        synthetic = SyntheticException(message, traceback.extract_stack())
        report = event_from_string(message, synthetic)
        report["level"] = level
        return self._send(report)

    def install_hooks(self, loop: asyncio.AbstractEventLoop | None = None) -> CaptureHooks:
        """Report unhandled errors of this process (and *loop*) through this client."""
        return CaptureHooks(self._send, location=self.config.location).install(loop)
