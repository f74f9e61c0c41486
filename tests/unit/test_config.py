"""
Unit tests for ExchangeConfig.
"""

import json
import logging

import pytest

from httpexchange.config import DEFAULT_METHODS, ExchangeConfig


class TestExchangeConfig:
    """Tests for configuration loading and validation."""

    def test_defaults(self):
        """Test default values."""
        config = ExchangeConfig()

        assert config.protocol_version == "1.1"
        assert config.allowed_methods == DEFAULT_METHODS
        assert config.strict_status_codes is False
        assert config.upload_chunk_size == 4096
        config.validate()

    def test_from_env(self, monkeypatch):
        """Test loading from environment variables."""
        monkeypatch.setenv("HTTP_EXCHANGE_PROTOCOL_VERSION", "2")
        monkeypatch.setenv("HTTP_EXCHANGE_METHODS", "get, post")
        monkeypatch.setenv("HTTP_EXCHANGE_STRICT_STATUS", "true")
        monkeypatch.setenv("HTTP_EXCHANGE_CHUNK_SIZE", "1024")
        monkeypatch.setenv("HTTP_EXCHANGE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("HTTP_EXCHANGE_LOG_FORMAT", "json")

        config = ExchangeConfig.from_env()

        assert config.protocol_version == "2"
        assert config.allowed_methods == frozenset({"GET", "POST"})
        assert config.strict_status_codes is True
        assert config.upload_chunk_size == 1024
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_from_env_defaults(self, monkeypatch):
        """Test that unset variables keep the defaults."""
        for name in ("HTTP_EXCHANGE_METHODS", "HTTP_EXCHANGE_STRICT_STATUS"):
            monkeypatch.delenv(name, raising=False)

        config = ExchangeConfig.from_env()

        assert config.allowed_methods == DEFAULT_METHODS
        assert config.strict_status_codes is False

    @pytest.mark.parametrize("kwargs", [
        {"protocol_version": "3"},
        {"allowed_methods": frozenset()},
        {"allowed_methods": frozenset({"get"})},
        {"upload_chunk_size": 0},
        {"log_format": "xml"},
        {"log_level": "LOUD"},
    ])
    def test_validate_rejects(self, kwargs):
        """Test invalid configuration values."""
        with pytest.raises(ValueError):
            ExchangeConfig(**kwargs).validate()

    def test_configure_logging_json(self):
        """Test the JSON log formatter."""
        ExchangeConfig(log_level="DEBUG", log_format="json").configure_logging()
        logger = logging.getLogger("httpexchange")

        assert logger.level == logging.DEBUG
        record = logging.LogRecord("httpexchange.x", logging.INFO, "", 0, "hi", None, None)
        line = json.loads(logger.handlers[0].format(record))

        assert line["message"] == "hi"
        assert line["level"] == "INFO"
        logger.handlers = []
        logger.setLevel(logging.NOTSET)
