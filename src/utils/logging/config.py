"""
Logging configuration for tablesync.

Provides setup functions for configuring application-wide logging
with support for file rotation, console output, and JSON formatting.
Statement logging (every query sent to either database) goes through the
``tablesync.sql`` logger and is switched on separately from the level.
"""

import logging
import logging.handlers
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter

SQL_LOGGER = "tablesync.sql"

_TRUTHY = ("true", "1", "yes")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in _TRUTHY


def _file_formatter(json_format: bool, app_name: str) -> logging.Formatter:
    if json_format:
        return JSONFormatter(include_timestamp=True, include_hostname=True, app_name=app_name)
    return logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _console_formatter(json_format: bool, app_name: str) -> logging.Formatter:
    if json_format:
        return JSONFormatter(include_timestamp=True, include_hostname=True, app_name=app_name)
    return ConsoleFormatter(use_colors=True)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    log_sql: bool = False,
    app_name: str = "tablesync",
    max_bytes: int = 100 * 1024 * 1024,  # 100MB
    backup_count: int = 5,
) -> None:
    """
    Configure logging for the application

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, file logging is disabled)
        console_output: Whether to output to console
        json_format: Use JSON format for both console and file logs
        log_sql: Emit every statement sent to a database, whatever the level
        app_name: Application name for log context
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated log files to keep
    """
    # Convert level string to logging level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Handlers must pass statement records through even above DEBUG
    handler_level = min(numeric_level, logging.DEBUG) if log_sql else numeric_level

    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    root_logger.handlers.clear()

    # Console handler
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(handler_level)
        console_handler.setFormatter(_console_formatter(json_format, app_name))
        root_logger.addHandler(console_handler)

    # File handler with rotation
    if log_file:
        # Ensure log directory exists
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(handler_level)
        file_handler.setFormatter(_file_formatter(json_format, app_name))
        root_logger.addHandler(file_handler)

    # Statement logger follows the root level unless asked for explicitly
    logging.getLogger(SQL_LOGGER).setLevel(logging.DEBUG if log_sql else logging.NOTSET)

    # Set levels for noisy third-party libraries
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    # Log startup message
    logger = logging.getLogger(__name__)
    logger.debug(
        f"Logging initialized: level={level}, file={log_file or 'none'}, "
        f"console={console_output}, json={json_format}, sql={log_sql}"
    )


def configure_from_env(level: str | None = None, log_sql: bool = False) -> None:
    """
    Configure logging from environment variables

    Environment variables:
        LOG_LEVEL: Log level (default: INFO)
        LOG_FILE: Log file path (default: none)
        LOG_JSON: Use JSON format (default: false)
        LOG_CONSOLE: Enable console output (default: true)
        LOG_SQL: Log every statement sent to a database (default: false)

    Args:
        level: Explicit level that takes precedence over LOG_LEVEL
        log_sql: Force statement logging on (the CLI's --debug)
    """
    setup_logging(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE"),
        console_output=_env_flag("LOG_CONSOLE", "true"),
        json_format=_env_flag("LOG_JSON"),
        log_sql=log_sql or _env_flag("LOG_SQL"),
    )
