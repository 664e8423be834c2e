"""Tests for errorguru.config."""

from __future__ import annotations

import dataclasses
import io
import logging
from unittest.mock import patch

import orjson
import pytest
import structlog

from errorguru.config import (
    ClientConfig,
    _stream_isatty,
    _to_logging_level,
    configure_logging,
    setup_logging,
)


class TestClientConfig:
    def test_from_dsn(self) -> None:
        config = ClientConfig.from_dsn("https://abc@o1.ingest.example.io/42")

        assert config.key == "abc"
        assert config.endpoint == "o1.ingest.example.io"
        assert config.project == "42"
        assert config.environment == "production"
        assert config.store_url == "https://o1.ingest.example.io/api/42/store/?sentry_version=7&sentry_key=abc"

    def test_from_dsn_keeps_port(self) -> None:
        config = ClientConfig.from_dsn("https://abc@localhost:9000/7", location="http://localhost/")

        assert config.endpoint == "localhost:9000"
        assert config.location == "http://localhost/"
        assert config.base_url == "https://localhost:9000/api/7"

    @pytest.mark.parametrize("dsn", ["not a dsn", "https://o1.ingest.example.io/42", "https://abc@host/"])
    def test_invalid_dsn(self, dsn: str) -> None:
        with pytest.raises(ValueError, match="Invalid DSN"):
            ClientConfig.from_dsn(dsn)

    def test_empty_fields_rejected(self) -> None:
        with pytest.raises(ValueError, match="project must not be empty"):
            ClientConfig(key="abc", endpoint="host", project="")

    def test_immutable(self) -> None:
        config = ClientConfig(key="abc", endpoint="host", project="1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.environment = "dev"  # type: ignore[misc]

    def test_from_env(self) -> None:
        env = {
            "ERRORGURU_DSN": "https://abc@host/3",
            "ERRORGURU_ENVIRONMENT": "staging",
            "ERRORGURU_LOCATION": "https://example.com",
        }
        with patch.dict("os.environ", env, clear=True):
            config = ClientConfig.from_env()

        assert config == ClientConfig(
            key="abc", endpoint="host", project="3", environment="staging", location="https://example.com"
        )

    def test_from_env_requires_dsn(self) -> None:
        with patch.dict("os.environ", {}, clear=True), pytest.raises(ValueError, match="ERRORGURU_DSN"):
            ClientConfig.from_env()


class TestToLoggingLevel:
    def test_standard_levels(self) -> None:
        assert _to_logging_level("DEBUG") == logging.DEBUG
        assert _to_logging_level("error") == logging.ERROR

    def test_warn_alias(self) -> None:
        assert _to_logging_level("WARN") == logging.WARNING

    def test_unknown_defaults_to_info(self) -> None:
        assert _to_logging_level("CUSTOM") == logging.INFO


class TestStreamIsatty:
    def test_non_tty_stream(self) -> None:
        assert _stream_isatty(io.StringIO()) is False

    def test_no_isatty_method(self) -> None:
        assert _stream_isatty(object()) is False


class TestConfigureLogging:
    def test_json_output(self) -> None:
        buf = io.StringIO()
        configure_logging(level="DEBUG", json_logs=True, stream=buf)

        structlog.get_logger("test").info("hello", attempt=2)
        line = orjson.loads(buf.getvalue())

        assert line["event"] == "hello"
        assert line["level"] == "info"
        assert line["attempt"] == 2
        assert "timestamp" in line

    def test_console_output(self) -> None:
        buf = io.StringIO()
        configure_logging(json_logs=False, stream=buf)

        structlog.get_logger("test").info("hello")
        assert "hello" in buf.getvalue()

    def test_level_filtering(self) -> None:
        buf = io.StringIO()
        configure_logging(level="WARNING", stream=buf)

        log = structlog.get_logger("test")
        log.info("should not appear")
        assert buf.getvalue() == ""

        log.warning("should appear")
        assert "should appear" in buf.getvalue()

    def test_exception_rendered_in_json(self) -> None:
        buf = io.StringIO()
        configure_logging(stream=buf)

        try:
            raise ValueError("boom")
        except ValueError:
            structlog.get_logger("test").exception("failed")

        line = orjson.loads(buf.getvalue())
        assert "ValueError: boom" in line["exception"]

    def test_stdlib_records_share_the_renderer(self) -> None:
        buf = io.StringIO()
        configure_logging(stream=buf)

        logging.getLogger("legacy").warning("disk at %d%%", 91)
        line = orjson.loads(buf.getvalue())

        assert line["event"] == "disk at 91%"
        assert line["logger"] == "legacy"
        assert line["level"] == "warning"

    def test_sets_root_logger_level(self) -> None:
        configure_logging(level="ERROR", stream=io.StringIO())
        assert logging.getLogger().level == logging.ERROR

    def test_keeps_existing_handlers(self) -> None:
        existing = logging.NullHandler()
        logging.getLogger().addHandler(existing)

        configure_logging(stream=io.StringIO(), clear_handlers=False)
        assert existing in logging.getLogger().handlers


class TestSetupLogging:
    def test_reads_environment(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.dict("os.environ", {"LOG_LEVEL": "ERROR", "JSON_LOGS": "1"}, clear=True):
            setup_logging()

        log = structlog.get_logger("test")
        log.warning("hidden")
        log.error("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert orjson.loads(out)["event"] == "shown"

    def test_console_mode(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.dict("os.environ", {"JSON_LOGS": "0"}, clear=True):
            setup_logging()

        structlog.get_logger("test").info("plain")
        out = capsys.readouterr().out
        assert "plain" in out
        assert not out.startswith("{")
