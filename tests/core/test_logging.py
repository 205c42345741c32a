"""Tests for appjson.core.logging module."""

import structlog

from appjson.core.logging import LogContext, bind_context, clear_context, configure_logging, get_logger


class TestLogContext:
    def test_binds_and_unbinds(self):
        clear_context()
        with LogContext(app="api", attempt="42"):
            bound = structlog.contextvars.get_contextvars()
            assert bound == {"app": "api", "attempt": "42"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_drops_none_values(self):
        clear_context()
        with LogContext(app="api", attempt=None):
            assert structlog.contextvars.get_contextvars() == {"app": "api"}

    def test_keeps_outer_context(self):
        clear_context()
        bind_context(service="appjson")
        with LogContext(app="api"):
            pass
        assert structlog.contextvars.get_contextvars() == {"service": "appjson"}
        clear_context()


class TestConfigureLogging:
    def test_json_output_goes_to_stderr(self, capsys):
        configure_logging(level="INFO", json_format=True)
        get_logger("appjson.test").info("document.staged", app="api")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "document.staged" in captured.err
        assert '"app": "api"' in captured.err

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        get_logger("appjson.test").info("quiet.event")
        assert "quiet.event" not in capsys.readouterr().err
