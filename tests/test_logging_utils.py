"""
Tests for logging configuration helpers.
"""

import json
import logging
import sys

import pytest

from kitchen_common.config import KitchenSettings
from kitchen_common.logging_utils import (
    JsonFormatter,
    configure_from_settings,
    configure_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.captureWarnings(False)


def make_record(message="Restocked %s", args=("flour",), **extra):
    record = logging.LogRecord(
        name="kitchen_common.ledger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for structured output."""

    def test_fields(self):
        payload = json.loads(JsonFormatter().format(make_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "kitchen_common.ledger"
        assert payload["message"] == "Restocked flour"
        assert "timestamp" in payload
        assert "ingredient" not in payload

    def test_ingredient_extra(self):
        record = make_record(ingredient="flour", recipe="Bread")
        payload = json.loads(JsonFormatter().format(record))
        assert payload["ingredient"] == "flour"
        assert payload["recipe"] == "Bread"

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()
        payload = json.loads(JsonFormatter().format(record))
        assert "ValueError: boom" in payload["exc_info"]


class TestConfigureLogging:
    """Tests for root logger setup."""

    def test_plain(self):
        configure_logging("debug", "plain")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_json(self):
        configure_logging("WARNING", "json")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("chatty")
        assert logging.getLogger().level == logging.INFO

    def test_from_settings(self):
        configure_from_settings(KitchenSettings(log_level="ERROR", log_format="json"))
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
