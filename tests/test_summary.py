"""Tests for errorguru.summary."""

from __future__ import annotations

from errorguru.summary import (
    NO_KEYS,
    NO_MESSAGE,
    extract_exception_keys,
    extract_message,
    get_walk_source,
    html_tree_as_string,
    normalize_to_size,
    truncate,
)


def _button() -> dict:
    return {
        "tagName": "BUTTON",
        "id": "go",
        "className": "btn  primary",
        "parentNode": {"tagName": "DIV", "parentNode": {"tagName": "HTML"}},
    }


class TestExtractMessage:
    def test_plain_message(self) -> None:
        assert extract_message({"message": "boom"}) == "boom"

    def test_nested_error_message(self) -> None:
        assert extract_message({"message": {"error": {"message": "inner"}}}) == "inner"

    def test_python_exception(self) -> None:
        assert extract_message(ValueError("bad")) == "bad"

    def test_missing_or_empty(self) -> None:
        assert extract_message({}) == NO_MESSAGE
        assert extract_message({"message": ""}) == NO_MESSAGE
        assert extract_message(ValueError()) == NO_MESSAGE
        assert extract_message(None) == NO_MESSAGE

    def test_unprintable_message(self) -> None:
        class Unprintable:
            def __str__(self) -> str:
                raise RuntimeError("no")

        assert extract_message({"message": Unprintable()}) == NO_MESSAGE


class TestTruncate:
    def test_short_values_unchanged(self) -> None:
        assert truncate("x" * 25) == "x" * 25
        assert truncate(12) == "12"

    def test_long_values_cut(self) -> None:
        assert truncate("x" * 26) == "x" * 20 + "<...>"


class TestHtmlTree:
    def test_path_stops_at_html(self) -> None:
        assert html_tree_as_string(_button()) == "div > button#go.btn.primary"

    def test_svg_class_name(self) -> None:
        elem = {"tagName": "circle", "className": {"baseVal": "dot"}}
        assert html_tree_as_string(elem) == "circle.dot"

    def test_depth_is_bounded(self) -> None:
        elem: dict = {"tagName": "span"}
        for _ in range(10):
            elem = {"tagName": "span", "parentNode": elem}
        assert html_tree_as_string(elem).count("span") == 5


class TestWalkSource:
    def test_error_fields_come_first(self) -> None:
        source = get_walk_source({"[[Class]]": "Error", "message": "m", "code": 5})
        assert source == {"message": "m", "name": None, "stack": None, "code": 5}

    def test_event_target_described(self) -> None:
        event = {"[[Class]]": "MouseEvent", "type": "click", "target": _button(), "currentTarget": None}
        source = get_walk_source(event)

        assert source["type"] == "click"
        assert source["target"] == "div > button#go.btn.primary"
        assert source["currentTarget"] == "[object Null]"

    def test_custom_event_detail(self) -> None:
        source = get_walk_source({"[[Class]]": "CustomEvent", "type": "x", "detail": {"id": 1}})
        assert source["detail"] == {"id": 1}

    def test_plain_object(self) -> None:
        assert get_walk_source({"[[Class]]": "Object", "b": 2}) == {"b": 2}


class TestExtractExceptionKeys:
    def test_no_keys(self) -> None:
        assert extract_exception_keys({}) == NO_KEYS

    def test_short_key_list_is_verbatim(self) -> None:
        assert extract_exception_keys({"ccc": 3, "a": 1, "bb": 2}) == "a, bb, ccc"

    def test_largest_fitting_prefix(self) -> None:
        value = {"delta": 4, "charlie": 3, "bravo": 2, "alpha": 1}
        assert extract_exception_keys(value) == "alpha, bravo<...>"

    def test_long_first_key(self) -> None:
        assert extract_exception_keys({"k" * 30: 1}) == "k" * 20 + "<...>"

    def test_event_keys(self) -> None:
        event = {"[[Class]]": "MouseEvent", "type": "click", "target": _button(), "currentTarget": None}
        assert extract_exception_keys(event) == "currentTarget<...>"


class TestNormalizeToSize:
    def test_shallow_snapshot(self) -> None:
        value = {
            "text": "y" * 40,
            "count": 3,
            "flag": True,
            "when": {"[[Class]]": "Date"},
            "items": [1, 2],
            "callback": print,
            "missing": None,
        }
        assert normalize_to_size(value) == {
            "text": "y" * 20 + "<...>",
            "count": 3,
            "flag": True,
            "when": "[object Date]",
            "items": "[object Array]",
            "callback": "[object Function]",
            "missing": "[object Null]",
        }

    def test_python_object_attributes(self) -> None:
        class Payload:
            def __init__(self) -> None:
                self.code = 7
                self.data = b"raw bytes"

        assert normalize_to_size(Payload()) == {"code": 7, "data": "raw bytes"}
