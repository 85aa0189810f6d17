"""Public observability primitives: structured logging setup."""

from flexlm_options.observability.logging import (
    DEFAULT_LOGGER_NAME,
    configure_logging,
    get_logger,
)

__all__ = ["DEFAULT_LOGGER_NAME", "configure_logging", "get_logger"]
