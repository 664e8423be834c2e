"""Shared fixtures for errorguru tests."""

from __future__ import annotations

import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_logging() -> None:  # type: ignore[misc]
    """Reset root logger handlers and level after each test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level

    yield  # type: ignore[misc]

    root.handlers[:] = original_handlers
    root.setLevel(original_level)


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:  # type: ignore[misc]
    """Reset structlog configuration after each test."""
    yield  # type: ignore[misc]
    structlog.reset_defaults()


@pytest.fixture
def chrome_error() -> dict:
    """A V8 ``TypeError`` as sent by the browser shim."""
    return {
        "[[Class]]": "Error",
        "name": "TypeError",
        "message": "Cannot read property 'x' of undefined",
        "stack": (
            "TypeError: Cannot read property 'x' of undefined\n"
            "    at foo (http://example.com/app.js:10:15)\n"
            "    at bar (http://example.com/app.js:20:5)\n"
            "    at http://example.com/app.js:30:1"
        ),
    }


@pytest.fixture
def gecko_error() -> dict:
    """A Firefox ``Error`` as sent by the browser shim."""
    return {
        "[[Class]]": "Error",
        "name": "Error",
        "message": "boom",
        "stack": (
            "foo@http://example.com/app.js:10:15\n"
            "bar@http://example.com/app.js:20:5\n"
            "@http://example.com/app.js:30:1"
        ),
    }


def _raise_name_error() -> None:
    undefined_thing  # type: ignore[name-defined]  # noqa: B018, F821


def _raise_attribute_error() -> None:
    object().missing_attr  # type: ignore[attr-defined]  # noqa: B018


def _raise_import_error() -> None:
    import no_such_module_xyz  # type: ignore[import-not-found]  # noqa: F401


@pytest.fixture(
    params=[
        (_raise_name_error, "NameError"),
        (_raise_attribute_error, "AttributeError"),
        (_raise_import_error, "ModuleNotFoundError"),
    ],
    ids=["name", "attribute", "import"],
)
def identifier_error(request: pytest.FixtureRequest) -> tuple[BaseException, str]:
    """A raised exception whose ``name`` attribute holds the missing identifier."""
    raiser, expected_type = request.param
    try:
        raiser()
    except Exception as exc:
        return exc, expected_type
    pytest.fail(f"{raiser.__name__} did not raise")
