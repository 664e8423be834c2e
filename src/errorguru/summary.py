"""Message extraction and size-bounded summaries of non-error objects.

Provides:
- :func:`extract_message`: a human-readable message for any value.
- :func:`extract_exception_keys`: a compact digest of an object's keys.
- :func:`normalize_to_size`: a shallow, truncated snapshot of an object.
"""

from __future__ import annotations

from typing import Any

from errorguru.inspection import (
    get_field,
    get_type,
    is_element,
    is_error,
    is_event,
    own_items,
)

NO_MESSAGE = "No error message"
NO_KEYS = "[object has no keys]"
ELLIPSIS = "<...>"

MAX_KEYS_LENGTH = 20
MAX_STRING_LENGTH = 25

_MAX_TRAVERSE_HEIGHT = 5
_MAX_OUTPUT_LEN = 80
_SEPARATOR = " > "


def extract_message(ex: Any) -> str:
    """Return the message of *ex*, unwrapping nested ``error.message`` payloads."""
    try:
        message = get_field(ex, "message")
        if message is None and isinstance(ex, BaseException):
            message = str(ex)
        if not message:
            return NO_MESSAGE
        nested = get_field(get_field(message, "error"), "message")
        if not isinstance(message, str) and isinstance(nested, str):
            return nested
        return str(message)
    except Exception:
        return NO_MESSAGE


def truncate(value: Any) -> str:
    safe = str(value)
    if len(safe) > MAX_STRING_LENGTH:
        return safe[:MAX_KEYS_LENGTH] + ELLIPSIS
    return safe


def _element_as_string(elem: Any) -> str:
    tag_name = get_field(elem, "tagName")
    if not elem or not tag_name:
        return ""

    out = str(tag_name).lower()

    elem_id = get_field(elem, "id")
    if elem_id:
        out += "#" + str(elem_id)

    class_name = get_field(elem, "className")
    if class_name and not isinstance(class_name, str):
        # SVG elements expose className as an SVGAnimatedString.
        class_name = get_field(class_name, "baseVal")
    if class_name:
        out += "." + ".".join(str(class_name).split())

    return out


def html_tree_as_string(elem: Any) -> str:
    """Describe *elem* and its ancestors as ``div#app > span.label``."""
    try:
        parts: list[str] = []
        length = 0
        current = elem
        height = 0
        while current and height < _MAX_TRAVERSE_HEIGHT:
            height += 1
            next_str = _element_as_string(current)
            if next_str == "html" or (
                height > 1
                and length + len(parts) * len(_SEPARATOR) + len(next_str) >= _MAX_OUTPUT_LEN
            ):
                break
            parts.append(next_str)
            length += len(next_str)
            current = get_field(current, "parentNode")
        return _SEPARATOR.join(reversed(parts))
    except Exception:
        return "<unknown>"


def _describe_target(target: Any) -> str:
    try:
        return html_tree_as_string(target) if is_element(target) else get_type(target)
    except Exception:
        return "<unknown>"


def get_walk_source(value: Any) -> dict[str, Any]:
    """Return the properties of *value* that are worth summarizing."""
    if is_error(value):
        source: dict[str, Any] = {
            "message": get_field(value, "message"),
            "name": get_field(value, "name"),
            "stack": get_field(value, "stack"),
        }
        source.update(own_items(value))
        return source

    if is_event(value):
        source = {
            "type": get_field(value, "type"),
            "target": _describe_target(get_field(value, "target")),
            "currentTarget": _describe_target(get_field(value, "currentTarget")),
        }
        if get_type(value) == "[object CustomEvent]":
            source["detail"] = get_field(value, "detail")
        for key, item in own_items(value):
            source.setdefault(key, item)
        return source

    return dict(own_items(value))


def extract_exception_keys(value: Any) -> str:
    """Return a sorted, comma-joined key digest of at most 25 characters."""
    keys = sorted(get_walk_source(value))

    if not keys:
        return NO_KEYS

    if len(keys[0]) > MAX_KEYS_LENGTH:
        return keys[0][:MAX_KEYS_LENGTH] + ELLIPSIS

    for included in range(len(keys), 0, -1):
        serialized = ", ".join(keys[:included])
        if len(serialized) > MAX_KEYS_LENGTH:
            continue
        if included == len(keys):
            return serialized
        return serialized + ELLIPSIS

    return ", ".join(keys)[:MAX_KEYS_LENGTH] + ELLIPSIS


def _is_object_typed(value: Any) -> bool:
    return not isinstance(value, (str, bytes, bool, int, float))


def normalize_to_size(value: Any) -> dict[str, Any]:
    """Return a shallow snapshot with long strings cut and nested objects tagged."""
    normalized: dict[str, Any] = {}
    for key, item in own_items(value):
        if isinstance(item, str):
            normalized[key] = truncate(item)
        elif isinstance(item, bytes):
            normalized[key] = truncate(item.decode("utf-8", "replace"))
        elif _is_object_typed(item):
            normalized[key] = get_type(item)
        else:
            normalized[key] = item
    return normalized
