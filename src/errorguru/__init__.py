"""errorguru — normalize captured errors and rejections into error reports."""

from errorguru.config import ClientConfig, configure_logging, setup_logging
from errorguru.core import Client, SyntheticException
from errorguru.dispatch import LogDispatcher, serialize_report
from errorguru.enrich import add_exception_mechanism, enhance_event_with_initial_frame
from errorguru.events import (
    event_from_incomplete_onerror,
    event_from_rejection_with_primitive,
    event_from_string,
    event_from_unknown_input,
)
from errorguru.exceptions import ErrorReportProcessor
from errorguru.frames import prepare_frames
from errorguru.hooks import (
    CaptureHooks,
    named_callbacks,
    report_from_error_event,
    report_from_rejection_event,
    report_from_rejection_reason,
)
from errorguru.inspection import InputKind, classify_input
from errorguru.stacktrace import (
    STACK_GRAMMARS,
    Grammar,
    ParsedStackTrace,
    RawStackFrame,
    compute_stack_trace,
)
from errorguru.summary import extract_exception_keys, extract_message, normalize_to_size

__version__ = "0.1.0"

__all__ = [
    "STACK_GRAMMARS",
    "CaptureHooks",
    "Client",
    "ClientConfig",
    "ErrorReportProcessor",
    "Grammar",
    "InputKind",
    "LogDispatcher",
    "ParsedStackTrace",
    "RawStackFrame",
    "SyntheticException",
    "add_exception_mechanism",
    "classify_input",
    "compute_stack_trace",
    "configure_logging",
    "enhance_event_with_initial_frame",
    "event_from_incomplete_onerror",
    "event_from_rejection_with_primitive",
    "event_from_string",
    "event_from_unknown_input",
    "extract_exception_keys",
    "extract_message",
    "named_callbacks",
    "normalize_to_size",
    "prepare_frames",
    "report_from_error_event",
    "report_from_rejection_event",
    "report_from_rejection_reason",
    "serialize_report",
    "setup_logging",
]
