"""
Progress reporting for sync tasks.

The scheduler talks to a ProgressListener; SpinnerProgress renders one live
rich spinner per table on a terminal, LineProgress writes one line per start
and one per finish through the report sink (non-TTY output, batch mode).
"""

import sys
from typing import Any

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text

from .interfaces import ReportSink, SyncTask
from .models import TaskResult

SUCCESS_MARK = "✔"
FAILURE_MARK = "✖"
START_MARK = "⠋"


def display_item(task: SyncTask) -> str:
    """Table name, followed by the task's custom predicate if it has one."""
    parts = [str(task.table)]
    if task.opts.get("sql"):
        parts.append(task.opts["sql"])
    return " ".join(parts)


def finish_text(result: TaskResult, elapsed: float) -> str:
    """``(<first line of message>)`` when there is a message, else ``- <elapsed>s``."""
    summary = result.summary
    if summary is not None:
        return f"({summary})"
    return f"- {round(elapsed, 1)}s"


class ProgressListener:
    """Receives start/finish events; usable as a context manager."""

    def __enter__(self) -> "ProgressListener":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def start(self, task: SyncTask) -> None:
        raise NotImplementedError

    def finish(self, task: SyncTask, result: TaskResult, elapsed: float) -> None:
        raise NotImplementedError


class LineProgress(ProgressListener):
    """One log line per event."""

    def __init__(self, sink: ReportSink):
        self.sink = sink

    def start(self, task: SyncTask) -> None:
        self.sink.log(f"{START_MARK} {display_item(task)}")

    def finish(self, task: SyncTask, result: TaskResult, elapsed: float) -> None:
        mark = SUCCESS_MARK if result.succeeded else FAILURE_MARK
        self.sink.log(" ".join([mark, display_item(task), finish_text(result, elapsed)]))


class _StatusColumn(SpinnerColumn):
    """Spinner while running, then the task's success/failure mark."""

    def render(self, task):
        if task.finished:
            return Text(task.fields.get("mark", ""), style=task.fields.get("mark_style", ""))
        return super().render(task)


class SpinnerProgress(ProgressListener):
    """One live spinner row per task."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)
        self.progress = Progress(
            _StatusColumn(spinner_name="dots"),
            TextColumn("{task.description}", markup=False),
            console=self.console,
        )
        self._rows: dict[SyncTask, Any] = {}

    def __enter__(self) -> "SpinnerProgress":
        self.progress.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.progress.stop()

    def start(self, task: SyncTask) -> None:
        self._rows[task] = self.progress.add_task(display_item(task), total=1)

    def finish(self, task: SyncTask, result: TaskResult, elapsed: float) -> None:
        row = self._rows.pop(task)
        self.progress.update(
            row,
            completed=1,
            description=f"{display_item(task)} {finish_text(result, elapsed)}",
            mark=SUCCESS_MARK if result.succeeded else FAILURE_MARK,
            mark_style="green" if result.succeeded else "red",
        )


def create_progress(sink: ReportSink, in_batches: bool = False, interactive: bool | None = None) -> ProgressListener:
    """Spinners on a terminal, log lines otherwise or in batch mode."""
    if interactive is None:
        interactive = sys.stderr.isatty()
    if interactive and not in_batches:
        return SpinnerProgress()
    return LineProgress(sink)
