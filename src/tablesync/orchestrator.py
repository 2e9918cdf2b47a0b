"""
Top-level sync run.

TableSync.perform() checks the destination tables exist, loads column and
trigger metadata, reports notes, then runs the tasks through the scheduler
inside the integrity-relaxation transaction and reports the outcome.
"""

import logging
from collections.abc import Sequence

from utils.tracing import trace_operation

from .aggregator import FailureAggregator
from .config import RunOptions
from .deferral import ConstraintDeferralManager, select_deferral_mode
from .interfaces import DataSource, ReportSink, Resolver, SyncTask
from .metadata import MetadataProbe
from .models import TaskResult
from .progress import ProgressListener, create_progress
from .report import LoggingReportSink
from .scheduler import TaskScheduler, select_strategy

logger = logging.getLogger(__name__)


class TableSync:
    """
    One sync run over a fixed set of tasks.

    Args:
        source: Database rows are read from
        destination: Database rows are written to
        tasks: One task per table, in dispatch order
        opts: Run options
        resolver: Supplies table-level notes and the destination existence check
        sink: Where warnings and progress lines go (defaults to logging)
        progress: Progress listener (defaults to spinners on a TTY, lines otherwise)
        fork_available: Override platform detection for the worker pool
    """

    def __init__(
        self,
        source: DataSource,
        destination: DataSource,
        tasks: Sequence[SyncTask],
        opts: RunOptions,
        resolver: Resolver,
        sink: ReportSink | None = None,
        progress: ProgressListener | None = None,
        fork_available: bool | None = None,
    ):
        self.source = source
        self.destination = destination
        self.tasks = list(tasks)
        self.opts = opts
        self.resolver = resolver
        self.sink = sink or LoggingReportSink()
        self.progress = progress
        self.fork_available = fork_available

    @property
    def tables(self):
        return [task.table for task in self.tasks]

    def perform(self) -> list[tuple[SyncTask, TaskResult]]:
        """
        Run the sync.

        Returns:
            (task, result) pairs in completion order

        Raises:
            PreflightError: A destination table is missing
            MetadataQueryError: A catalog query failed
            SyncFailedError: One or more tables failed
        """
        with trace_operation("table_sync", table_count=len(self.tasks)):
            self.resolver.confirm_tables_exist(self.destination, self.tables, "destination")

            self.add_columns()

            if self.opts.needs_triggers:
                self.add_triggers()

            self.show_notes()

            # Tables without shared columns were reported by show_notes()
            return self.run_tasks([task for task in self.tasks if task.shared_fields])

    def add_columns(self) -> None:
        source_columns = MetadataProbe(self.source).columns_of(self.tables)
        destination_columns = MetadataProbe(self.destination).columns_of(self.tables)

        for task in self.tasks:
            task.from_columns = source_columns.get(task.table, [])
            task.to_columns = destination_columns.get(task.table, [])

    def add_triggers(self) -> None:
        destination_triggers = MetadataProbe(self.destination).triggers_of(self.tables)

        for task in self.tasks:
            task.to_triggers = destination_triggers.get(task.table, [])

    def show_notes(self) -> None:
        for note in self.resolver.notes:
            self.sink.warn(note)

        for task in self.tasks:
            for note in task.notes:
                self.sink.warn(f"{task.table}: {note}")

        if self.opts.defer_constraints:
            constraints = MetadataProbe(self.destination).non_deferrable_constraints_of(self.tables)
            names = [name for task in self.tasks for name in constraints.get(task.table, [])]
            if names:
                self.sink.warn(f"Non-deferrable constraints: {', '.join(names)}")

    def run_tasks(self, tasks: list[SyncTask]) -> list[tuple[SyncTask, TaskResult]]:
        mode = select_deferral_mode(self.opts, MetadataProbe(self.destination).is_managed_hosting)
        strategy = select_strategy(self.opts, mode, self.sink, self.fork_available)
        logger.info(f"Integrity mode: {mode.value}, execution: {strategy.name}")

        aggregator = FailureAggregator(self.sink, fail_fast=self.opts.fail_fast)
        progress = self.progress or create_progress(self.sink, in_batches=self.opts.in_batches)
        scheduler = TaskScheduler(strategy, progress, aggregator)
        manager = ConstraintDeferralManager(self.source, self.destination, mode)

        try:
            results = manager.run(tasks, lambda: scheduler.run(tasks))
        finally:
            aggregator.emit_notices()

        aggregator.raise_if_failed()
        return results
