"""Runtime shape inspection for captured values.

Captured values come either from a browser shim as decoded JSON mappings
(optionally tagged with their runtime class under ``"[[Class]]"``) or from
live Python code.  Everything here works on both forms and never raises.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import Enum, auto
from typing import Any

TYPE_TAG_KEY = "[[Class]]"

_ERROR_TAGS: frozenset[str] = frozenset({"Error", "Exception", "DOMException"})

_MISSING = object()


class InputKind(Enum):
    """Closed set of input shapes, in classification order."""

    WRAPPED_ERROR_EVENT = auto()
    PLATFORM_ERROR = auto()
    PLATFORM_EXCEPTION = auto()
    ERROR_LIKE = auto()
    GENERIC_EVENT = auto()
    PLAIN_OBJECT = auto()
    PRIMITIVE = auto()
    OTHER = auto()


def get_field(value: Any, name: str, default: Any = None) -> Any:
    """Return ``value[name]`` for mappings, ``value.name`` otherwise."""
    if value is None:
        return default
    if isinstance(value, Mapping):
        return value.get(name, default)
    try:
        return getattr(value, name, default)
    except Exception:
        return default


def has_field(value: Any, name: str) -> bool:
    """Return ``True`` if *value* exposes *name* as an item or attribute."""
    return get_field(value, name, _MISSING) is not _MISSING


def own_keys(value: Any) -> list[str]:
    """Return the own enumerable keys of *value* (the class tag excluded)."""
    if isinstance(value, Mapping):
        return [str(k) for k in value if k != TYPE_TAG_KEY]
    try:
        return [k for k in vars(value) if not k.startswith("_")]
    except TypeError:
        return []


def own_items(value: Any) -> list[tuple[str, Any]]:
    """Return (key, value) pairs for the own enumerable keys of *value*."""
    if isinstance(value, Mapping):
        return [(str(k), v) for k, v in value.items() if k != TYPE_TAG_KEY]
    return [(key, get_field(value, key)) for key in own_keys(value)]


def class_tag(value: Any) -> str:
    """Return the runtime class name of *value*, e.g. ``ErrorEvent``."""
    if value is None:
        return "Null"
    if isinstance(value, Mapping):
        tag = value.get(TYPE_TAG_KEY)
        return tag if isinstance(tag, str) and tag else "Object"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, (int, float)):
        return "Number"
    if isinstance(value, str):
        return "String"
    if isinstance(value, (list, tuple)):
        return "Array"
    if callable(value) and not isinstance(value, type):
        return "Function"
    return type(value).__name__


def get_type(value: Any) -> str:
    """Return an ``Object.prototype.toString``-style tag, e.g. ``[object Error]``."""
    return f"[object {class_tag(value)}]"


def is_error(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, BaseException):
        return True
    tag = class_tag(value)
    if tag in _ERROR_TAGS:
        return True
    return isinstance(value, Mapping) and tag.endswith("Error") and tag != "DOMError"


def is_error_event(value: Any) -> bool:
    return value is not None and class_tag(value) == "ErrorEvent"


def is_dom_error(value: Any) -> bool:
    return value is not None and class_tag(value) == "DOMError"


def is_dom_exception(value: Any) -> bool:
    return value is not None and class_tag(value) == "DOMException"


def is_event(value: Any) -> bool:
    return isinstance(value, Mapping) and class_tag(value).endswith("Event")


def is_plain_object(value: Any) -> bool:
    return isinstance(value, Mapping) and class_tag(value) == "Object"


def is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (str, bytes, int, float, complex))


def is_element(value: Any) -> bool:
    return isinstance(get_field(value, "tagName"), str)


def classify_input(value: Any, *, rejection: bool = False) -> InputKind:
    """Map *value* onto exactly one :class:`InputKind`.

    Predicates are evaluated in a fixed precedence; the first match wins.
    ``PRIMITIVE`` is only produced for rejection reasons, every other
    unmatched value is ``OTHER``.
    """
    if is_error_event(value) and is_error(get_field(value, "error")):
        return InputKind.WRAPPED_ERROR_EVENT
    if is_dom_error(value):
        return InputKind.PLATFORM_ERROR
    if is_dom_exception(value):
        return InputKind.PLATFORM_EXCEPTION
    if is_error(value):
        return InputKind.ERROR_LIKE
    if is_event(value):
        return InputKind.GENERIC_EVENT
    if is_plain_object(value):
        return InputKind.PLAIN_OBJECT
    if rejection and is_primitive(value):
        return InputKind.PRIMITIVE
    return InputKind.OTHER


def to_text(value: Any) -> str:
    """Coerce *value* to text the way the browser runtime would."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    if isinstance(value, Mapping):
        return get_type(value)
    return str(value)
