"""
=============================================================================
EXCHANGE CONFIGURATION
=============================================================================

Centralized configuration for message construction and validation.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Explicit ExchangeConfig(...) passed to constructors            │
    │   2. Environment variables via ExchangeConfig.from_env()            │
    │   3. Defaults defined in the dataclass                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every message (and uploaded file) keeps a reference to the config it was
built with, so derived copies validate with the same rules.

=============================================================================
USAGE
=============================================================================

    # Development: defaults
    config = ExchangeConfig()

    # Locked-down deployment
    config = ExchangeConfig(
        allowed_methods=frozenset({"GET", "POST"}),
        strict_status_codes=True,
    )

    request = ServerRequest.from_wsgi(environ, config=config)

=============================================================================
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet


DEFAULT_METHODS = frozenset({
    "GET",      # Retrieve resource
    "HEAD",     # GET without body
    "POST",     # Create resource / submit data
    "PUT",      # Replace resource
    "PATCH",    # Partial update
    "DELETE",   # Delete resource
    "OPTIONS",  # Allowed methods (CORS preflight)
    "TRACE",    # Echo request
    "CONNECT",  # Tunnel
})

PROTOCOL_VERSIONS = frozenset({"1.0", "1.1", "2.0", "2"})


@dataclass
class ExchangeConfig:
    """
    Configuration for requests, responses and uploaded files.

    Example:
        config = ExchangeConfig.from_env()
        config.validate()
        config.configure_logging()
    """

    # ─────────────────────────────────────────────────────────────────────
    # MESSAGES
    # ─────────────────────────────────────────────────────────────────────

    protocol_version: str = "1.1"
    """
    Protocol version used when the environment does not report one
    (no SERVER_PROTOCOL) and for responses built without an explicit one.
    """

    allowed_methods: FrozenSet[str] = field(default_factory=lambda: DEFAULT_METHODS)
    """
    Methods accepted by Request.with_method(), compared case-insensitively.
    Construction from the environment never validates the method.
    """

    strict_status_codes: bool = False
    """
    False - any integer status code 100-599 is accepted.
    True  - only codes with a registered reason phrase are accepted.
    """

    # ─────────────────────────────────────────────────────────────────────
    # UPLOADS
    # ─────────────────────────────────────────────────────────────────────

    upload_chunk_size: int = 4096
    """
    Buffer size in bytes for copying an uploaded stream to its target
    when the file cannot simply be renamed.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Log format: 'json' or 'text'."""

    @classmethod
    def from_env(cls) -> "ExchangeConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_EXCHANGE_PROTOCOL_VERSION  Default protocol (default: 1.1)
        HTTP_EXCHANGE_METHODS           Comma separated allowlist
        HTTP_EXCHANGE_STRICT_STATUS     "1"/"true" to restrict status codes
        HTTP_EXCHANGE_CHUNK_SIZE        Upload copy buffer (default: 4096)
        HTTP_EXCHANGE_LOG_LEVEL         Logging level (default: INFO)
        HTTP_EXCHANGE_LOG_FORMAT        text or json (default: text)

        =====================================================================
        """
        methods = os.getenv("HTTP_EXCHANGE_METHODS")
        allowed = (
            frozenset(m.strip().upper() for m in methods.split(",") if m.strip())
            if methods
            else DEFAULT_METHODS
        )
        return cls(
            protocol_version=os.getenv("HTTP_EXCHANGE_PROTOCOL_VERSION", "1.1"),
            allowed_methods=allowed,
            strict_status_codes=os.getenv("HTTP_EXCHANGE_STRICT_STATUS", "").lower()
            in ("1", "true", "yes", "on"),
            upload_chunk_size=int(os.getenv("HTTP_EXCHANGE_CHUNK_SIZE", "4096")),
            log_level=os.getenv("HTTP_EXCHANGE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_EXCHANGE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value.
        """
        if self.protocol_version not in PROTOCOL_VERSIONS:
            raise ValueError(
                f"Invalid protocol_version: {self.protocol_version}. "
                f"Must be one of: {', '.join(sorted(PROTOCOL_VERSIONS))}."
            )
        if not self.allowed_methods:
            raise ValueError("allowed_methods must not be empty")
        if any(m != m.upper() for m in self.allowed_methods):
            raise ValueError("allowed_methods must be upper-case")
        if self.upload_chunk_size < 1:
            raise ValueError("upload_chunk_size must be >= 1")
        if self.log_format not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log_level: {self.log_level}")

    def configure_logging(self) -> None:
        """Configure the httpexchange logger hierarchy from this config."""
        level = getattr(logging, self.log_level.upper(), logging.INFO)

        handler = logging.StreamHandler()
        if self.log_format == "json":
            handler.setFormatter(_JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            ))

        logger = logging.getLogger("httpexchange")
        logger.handlers = [handler]
        logger.setLevel(level)


class _JSONFormatter(logging.Formatter):
    """One JSON object per log line, for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps({
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with dataclass
# 2. Environment variable support
# 3. Validation at startup (fail-fast)
# 4. Logging setup for the package's logger namespace
# =============================================================================
