"""Unit tests for logging formatters and setup."""

import json
import logging

import pytest

from webview_console.logging_setup import (
    JSONFormatter,
    TextFormatter,
    log_with_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    package = logging.getLogger("webview_console")
    handlers, level, package_level = list(root.handlers), root.level, package.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    package.setLevel(package_level)


def make_record(level=logging.INFO, message="Bridge attached"):
    return logging.LogRecord(
        "webview_console.bridge", level, __file__, 10, message, (), None
    )


@pytest.mark.unit
class TestFormatters:
    def test_json_formatter(self):
        record = make_record()
        record.extra = {"webview": 3, "severities": ["log", "warn"]}

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "webview_console.bridge"
        assert data["message"] == "Bridge attached"
        assert data["extra"] == {"webview": 3, "severities": ["log", "warn"]}
        assert "location" not in data

    def test_json_formatter_debug_location(self):
        data = json.loads(JSONFormatter().format(make_record(logging.DEBUG)))

        assert data["location"]["line"] == 10

    def test_text_formatter(self):
        line = TextFormatter().format(make_record(logging.WARNING, "slow"))

        assert "[WARNING] webview_console.bridge: slow" in line

    def test_text_formatter_appends_context(self):
        record = make_record()
        record.extra = {"webview": 3}

        line = TextFormatter().format(record)

        assert line.endswith("Bridge attached (webview=3)")


@pytest.mark.unit
class TestSetupLogging:
    def test_unknown_level_name_is_info(self, restore_root_logger):
        setup_logging(level="chatty")

        assert logging.getLogger().level == logging.INFO

    @pytest.mark.parametrize("kwargs,expected", [
        ({}, logging.INFO),
        ({"level": "warning"}, logging.WARNING),
        ({"level": "DEBUG", "quiet": True}, logging.ERROR),
        ({"verbose": True}, logging.DEBUG),
    ])
    def test_levels(self, restore_root_logger, kwargs, expected):
        setup_logging(**kwargs)

        root = logging.getLogger()
        assert root.level == expected
        assert len(root.handlers) == 1
        assert logging.getLogger("webview_console").level == expected

    def test_json_format_installs_json_formatter(self, restore_root_logger):
        setup_logging(format_type="json")

        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)


@pytest.mark.unit
def test_log_with_context_attaches_extra(caplog):
    logger = logging.getLogger("webview_console.tests")

    with caplog.at_level(logging.INFO, logger="webview_console.tests"):
        log_with_context(logger, logging.INFO, "Console bridge installed", webview=7)
        log_with_context(logger, logging.DEBUG, "hidden", webview=7)

    assert [r.getMessage() for r in caplog.records] == ["Console bridge installed"]
    assert caplog.records[0].extra == {"webview": 7}
