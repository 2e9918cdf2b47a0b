"""Collects task outcomes and produces the run-level result."""

import logging

from .errors import SyncFailedError
from .interfaces import ReportSink, SyncTask
from .models import TaskResult

logger = logging.getLogger(__name__)


class FailureAggregator:
    """
    Accumulates notices and failed tables as tasks settle.

    Args:
        sink: Where notices are emitted as warnings
        fail_fast: Stop the run after the first failure
    """

    def __init__(self, sink: ReportSink, fail_fast: bool = False):
        self.sink = sink
        self.fail_fast = fail_fast
        self.notices: list[str] = []
        self.failed_tables: list[str] = []

    def record(self, task: SyncTask, result: TaskResult) -> None:
        """Record one settled task, in completion order."""
        self.notices.extend(result.notices)
        if not result.succeeded:
            self.failed_tables.append(str(task.table))
            logger.debug(f"Table {task.table} failed: {result.summary}")

    @property
    def halted(self) -> bool:
        """True once fail-fast has been triggered; no new tasks may start."""
        return self.fail_fast and bool(self.failed_tables)

    def emit_notices(self) -> None:
        for notice in self.notices:
            self.sink.warn(notice)
        self.notices = []

    def error(self) -> SyncFailedError:
        return SyncFailedError(self.failed_tables)

    def raise_if_failed(self) -> None:
        if self.failed_tables:
            raise self.error()
