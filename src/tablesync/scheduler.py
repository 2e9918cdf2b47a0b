"""
Per-table task dispatch.

A run uses one execution strategy for its whole duration:

- SequentialStrategy: tasks run one by one on the coordinating thread
- ThreadPoolStrategy: a bounded pool of OS threads (platforms without fork)
- ProcessPoolStrategy: a bounded pool of forked OS processes

Dispatch is lazy: at most ``max_workers`` tasks are in flight and the next
task is only submitted after one settles. That keeps fail-fast exact for
every strategy: once a failure is seen nothing new is dispatched, while
tasks already running finish normally.
"""

import logging
import multiprocessing
import os
import time
from collections import deque
from collections.abc import Sequence
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)

from utils.tracing import add_span_attributes, trace_operation

from .aggregator import FailureAggregator
from .config import RunOptions
from .interfaces import ReportSink, SyncTask
from .metrics import ACTIVE_WORKERS, TASK_TIME, TASKS_PROCESSED
from .models import DeferralMode, TaskResult
from .progress import ProgressListener

logger = logging.getLogger(__name__)

DEFAULT_THREAD_WORKERS = 4


def run_task(task: SyncTask) -> TaskResult:
    """
    Worker entry point: refresh stale connections, then copy the table.

    Module-level so process pools can pickle it. Exceptions never escape:
    they become a FAILURE result for this task only.

    In a pool process the task arrives as a fresh copy with its own
    connections, which are closed before returning.
    """
    with trace_operation("sync_table", table=task.table):
        try:
            task.source.reconnect_if_needed()
            task.destination.reconnect_if_needed()
            result = task.perform()
            add_span_attributes(status=result.status.value)
            return result
        except Exception as e:
            logger.error(f"Unexpected error syncing {task.table}: {e}", exc_info=True)
            return TaskResult.failure(str(e) or type(e).__name__)
        finally:
            if multiprocessing.parent_process() is not None:
                task.source.close()
                task.destination.close()


class _InlineExecutor(Executor):
    """Executor that runs each submission immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class ExecutionStrategy:
    """Chooses the executor and how many tasks may be in flight."""

    name = "base"
    max_workers = 1

    def executor(self) -> Executor:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(max_workers={self.max_workers})"


class SequentialStrategy(ExecutionStrategy):
    name = "sequential"

    def executor(self) -> Executor:
        return _InlineExecutor()


class ThreadPoolStrategy(ExecutionStrategy):
    name = "threads"

    def __init__(self, max_workers: int):
        self.max_workers = max_workers

    def executor(self) -> Executor:
        return ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="tablesync")


class ProcessPoolStrategy(ExecutionStrategy):
    name = "processes"

    def __init__(self, max_workers: int):
        self.max_workers = max_workers

    def executor(self) -> Executor:
        return ProcessPoolExecutor(
            max_workers=self.max_workers,
            mp_context=multiprocessing.get_context("fork"),
        )


def supports_fork() -> bool:
    return hasattr(os, "fork")


def select_strategy(
    opts: RunOptions,
    mode: DeferralMode,
    sink: ReportSink,
    fork_available: bool | None = None,
) -> ExecutionStrategy:
    """
    Pick the execution strategy for a run.

    Debug tracing, batch mode and any integrity relaxation force sequential
    execution: relaxed or deferred state lives on the coordinator's single
    destination connection and cannot be shared with concurrent workers.
    """
    jobs = opts.jobs
    if opts.debug or opts.in_batches or mode is not DeferralMode.NONE:
        if jobs:
            sink.warn("--jobs ignored")
        return SequentialStrategy()

    if fork_available is None:
        fork_available = supports_fork()

    if not fork_available:
        return ThreadPoolStrategy(jobs or DEFAULT_THREAD_WORKERS)

    # Process pools are opt-in
    if jobs:
        return ProcessPoolStrategy(jobs)
    return SequentialStrategy()


class TaskScheduler:
    """
    Runs every task under one strategy and feeds results to the progress
    listener and the failure aggregator.
    """

    def __init__(
        self,
        strategy: ExecutionStrategy,
        progress: ProgressListener,
        aggregator: FailureAggregator,
    ):
        self.strategy = strategy
        self.progress = progress
        self.aggregator = aggregator

    def run(self, tasks: Sequence[SyncTask]) -> list[tuple[SyncTask, TaskResult]]:
        """
        Dispatch ``tasks`` in order and wait for all dispatched ones to settle.

        Returns:
            (task, result) pairs in completion order

        Raises:
            SyncFailedError: If fail-fast was triggered, after in-flight
                tasks have finished
        """
        logger.info(f"Syncing {len(tasks)} table(s) using {self.strategy!r}")

        pending = deque(tasks)
        in_flight: dict[Future, tuple[SyncTask, float]] = {}
        completed: list[tuple[SyncTask, TaskResult]] = []

        with self.progress, self.strategy.executor() as executor:
            while pending or in_flight:
                while pending and len(in_flight) < self.strategy.max_workers and not self.aggregator.halted:
                    task = pending.popleft()
                    self.progress.start(task)
                    started_at = time.monotonic()
                    in_flight[executor.submit(run_task, task)] = (task, started_at)
                    ACTIVE_WORKERS.inc()

                if not in_flight:
                    break

                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    task, started_at = in_flight.pop(future)
                    ACTIVE_WORKERS.dec()
                    elapsed = round(time.monotonic() - started_at, 1)
                    result = self._result_of(future, task)
                    self._settle(task, result, elapsed)
                    completed.append((task, result))

        if pending:
            skipped = ", ".join(str(task.table) for task in pending)
            logger.warning(f"Fail-fast: not starting {len(pending)} table(s): {skipped}")

        if self.aggregator.halted:
            raise self.aggregator.error()

        return completed

    @staticmethod
    def _result_of(future: Future, task: SyncTask) -> TaskResult:
        try:
            return future.result()
        except Exception as e:
            # Worker process died or the result could not be unpickled
            logger.error(f"Worker for {task.table} failed: {e}")
            return TaskResult.failure(str(e) or type(e).__name__)

    def _settle(self, task: SyncTask, result: TaskResult, elapsed: float) -> None:
        status = "success" if result.succeeded else "failure"
        TASKS_PROCESSED.labels(status=status).inc()
        TASK_TIME.observe(elapsed)
        self.progress.finish(task, result, elapsed)
        self.aggregator.record(task, result)
