"""
Structured logging configuration for tablesync

Provides JSON-formatted or colored console logging with contextual
information for every table being synchronized.

Usage:
    from utils.logging import setup_logging, ContextLogger

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", log_file="/var/log/tablesync/sync.log")

    # Log with context
    logger = ContextLogger(__name__, table="public.users")
    logger.info("Copying table", rows=1200)
"""

from .config import configure_from_env, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
