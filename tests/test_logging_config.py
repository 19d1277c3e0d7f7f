"""Tests for logging configuration."""

import json
import logging
from unittest.mock import patch

import structlog

from aws_ip_lookup.logging_config import configure_logging, json_formatter
from aws_ip_lookup.settings import Settings


class TestLogging:
    """Test cases for configure_logging."""

    def test_text_format(self):
        with patch("aws_ip_lookup.logging_config.logging.basicConfig") as basic_config:
            configure_logging(Settings(log_level="WARNING"))

        kwargs = basic_config.call_args.kwargs
        assert kwargs["level"] == logging.WARNING
        assert kwargs["force"] is True
        assert not isinstance(kwargs["handlers"][0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_json_format(self):
        with patch("aws_ip_lookup.logging_config.logging.basicConfig") as basic_config:
            configure_logging(Settings(log_format="json", log_level="DEBUG"))

        kwargs = basic_config.call_args.kwargs
        assert kwargs["level"] == logging.DEBUG
        assert isinstance(kwargs["handlers"][0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_json_formatter_output(self):
        record = logging.LogRecord("aws_ip_lookup.cache", logging.INFO, __file__, 1, "populated %d", (3,), None)

        payload = json.loads(json_formatter().format(record))

        assert payload["logger"] == "aws_ip_lookup.cache"
        assert payload["level"] == "info"
        assert payload["event"] == "populated 3"
        assert "timestamp" in payload
