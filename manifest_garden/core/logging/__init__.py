"""Queue-backed structured logging for the garden engine."""

from manifest_garden.core.logging.logger import (
    JSONFormatter,
    LogContext,
    LoggerConfig,
    clear_log_context,
    get_log_context,
    get_logger,
    get_logging_health,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "JSONFormatter",
    "LogContext",
    "LoggerConfig",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "get_logging_health",
    "set_log_context",
    "setup_logging",
    "shutdown_logging",
]
