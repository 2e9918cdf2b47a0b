"""Report sink that writes user-facing output through logging."""

import logging

logger = logging.getLogger("tablesync.report")


class LoggingReportSink:
    """Warnings go to WARNING, progress lines to INFO."""

    def __init__(self, log: logging.Logger | None = None):
        self.logger = log or logger

    def warn(self, text: str) -> None:
        self.logger.warning(text)

    def log(self, text: str) -> None:
        self.logger.info(text)
