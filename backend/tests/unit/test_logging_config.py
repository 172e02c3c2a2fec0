"""
Unit tests for setup_logging and the request-id hooks.

setup_logging may run once per app (tests build many apps), so it must
replace only the handlers it installed itself.
"""

import json
import logging
import re

import pytest
from flask import Flask, g

from identsoft.core.logging_config import (
    _OWNED_HANDLER_FLAG,
    ConsoleFormatter,
    JSONFormatter,
    setup_logging,
)

pytestmark = pytest.mark.logging


@pytest.fixture
def clean_logging():
    """Restore the root logger's handlers and level after the test."""
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    yield root_logger

    for handler in root_logger.handlers[:]:
        if handler not in original_handlers:
            handler.close()
            root_logger.removeHandler(handler)
    for handler in original_handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


def _owned(root_logger):
    return [h for h in root_logger.handlers if getattr(h, _OWNED_HANDLER_FLAG, False)]


def _record(**extra):
    record = logging.LogRecord(
        "identsoft.services.ledger_service",
        logging.WARNING,
        __file__,
        10,
        "Invoice over-paid",
        None,
        None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSetupLogging:
    def test_repeated_setup_keeps_one_console_handler(self, clean_logging):
        foreign = logging.NullHandler()
        clean_logging.addHandler(foreign)

        setup_logging(log_level="INFO")
        setup_logging(log_level="DEBUG")

        assert len(_owned(clean_logging)) == 1
        assert foreign in clean_logging.handlers
        assert clean_logging.level == logging.DEBUG

    def test_json_format_selects_json_formatter(self, clean_logging):
        setup_logging(log_level=logging.INFO, use_json_format=True)

        (handler,) = _owned(clean_logging)
        assert isinstance(handler.formatter, JSONFormatter)

    def test_unknown_level_name_falls_back_to_info(self, clean_logging):
        setup_logging(log_level="chatty")

        assert clean_logging.level == logging.INFO


class TestFormatters:
    def test_json_formatter_includes_context(self):
        line = JSONFormatter().format(_record(context={"invoice_id": 12}))

        entry = json.loads(line)
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "identsoft.services.ledger_service"
        assert entry["message"] == "Invoice over-paid"
        assert entry["context"] == {"invoice_id": 12}
        assert "+00:00" in entry["timestamp"]

    def test_json_formatter_without_context(self):
        entry = json.loads(JSONFormatter().format(_record()))

        assert "context" not in entry

    def test_console_formatter_appends_context_without_mutating_record(self):
        record = _record(context={"invoice_id": 12})

        line = ConsoleFormatter("%(levelname)s | %(message)s").format(record)

        assert line.endswith('| {"invoice_id": 12}')
        assert record.levelname == "WARNING"


class TestRequestId:
    @pytest.fixture
    def hooked_client(self, clean_logging):
        app = Flask(__name__)
        setup_logging(app=app, log_level="INFO")

        @app.route("/ping")
        def ping():
            return {"request_id": g.request_id}

        return app.test_client()

    def test_generated_when_header_missing(self, hooked_client):
        response = hooked_client.get("/ping")

        request_id = response.headers["X-Request-ID"]
        assert re.fullmatch(r"[0-9a-f]{32}", request_id)
        assert response.get_json()["request_id"] == request_id

    def test_incoming_header_is_reused(self, hooked_client):
        response = hooked_client.get("/ping", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert response.get_json()["request_id"] == "abc123"

    def test_each_request_gets_its_own_id(self, hooked_client):
        first = hooked_client.get("/ping").headers["X-Request-ID"]
        second = hooked_client.get("/ping").headers["X-Request-ID"]

        assert first != second
