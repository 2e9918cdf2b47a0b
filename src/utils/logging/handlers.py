"""
Logger wrappers that carry contextual fields.

Provides ContextLogger for attaching the same context (for example the
table being synchronized) to every message a component emits.
"""

import logging
from typing import Any


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that merges a fixed context into every record

    Usage:
        logger = ContextLogger("tablesync.task", table="public.users")
        logger.info("Copying rows", rows=1200)
        # Output includes both table and rows
    """

    def __init__(self, name: str, **context: Any):
        super().__init__(logging.getLogger(name), dict(context))

    def process(self, msg, kwargs):
        # Unknown keyword arguments become record context
        reserved = {"exc_info", "stack_info", "stacklevel", "extra"}
        call_context = {k: kwargs.pop(k) for k in list(kwargs) if k not in reserved}
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {}), **call_context}
        return msg, kwargs

