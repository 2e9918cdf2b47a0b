"""
Unit tests for tablesync.progress

Spinner rows are checked through the rich Progress task state rather
than rendered terminal output.
"""

import io

from rich.console import Console

from fakes import FakeTask, RecordingSink
from tablesync.models import TaskResult
from tablesync.progress import (
    FAILURE_MARK,
    START_MARK,
    SUCCESS_MARK,
    LineProgress,
    SpinnerProgress,
    create_progress,
    display_item,
    finish_text,
)


class TestDisplayItem:
    def test_table_only(self):
        assert display_item(FakeTask("users")) == "public.users"

    def test_includes_predicate(self):
        task = FakeTask("users", opts={"sql": "WHERE id > 100"})

        assert display_item(task) == "public.users WHERE id > 100"


class TestFinishText:
    def test_elapsed_when_no_message(self):
        assert finish_text(TaskResult.success(), 1.26) == "- 1.3s"

    def test_first_line_of_message(self):
        result = TaskResult.failure('relation "users" does not exist\nLINE 1: SELECT ...')

        assert finish_text(result, 0.4) == '(relation "users" does not exist)'

    def test_message_on_success(self):
        assert finish_text(TaskResult.success("skipped"), 0.0) == "(skipped)"


class TestLineProgress:
    def test_start_and_finish_lines(self):
        sink = RecordingSink()
        progress = LineProgress(sink)
        task = FakeTask("users")

        with progress:
            progress.start(task)
            progress.finish(task, TaskResult.success(), 0.5)

        assert sink.lines == [
            f"{START_MARK} public.users",
            f"{SUCCESS_MARK} public.users - 0.5s",
        ]

    def test_failure_line(self):
        sink = RecordingSink()
        progress = LineProgress(sink)
        task = FakeTask("users")

        progress.finish(task, TaskResult.failure("permission denied\ndetail"), 0.1)

        assert sink.lines == [f"{FAILURE_MARK} public.users (permission denied)"]


class TestSpinnerProgress:
    def make_progress(self):
        console = Console(file=io.StringIO(), force_terminal=False)
        return SpinnerProgress(console=console)

    def test_one_row_per_task(self):
        progress = self.make_progress()
        tasks = [FakeTask("users"), FakeTask("orders")]

        with progress:
            for task in tasks:
                progress.start(task)

            rows = progress.progress.tasks
            assert [row.description for row in rows] == ["public.users", "public.orders"]
            assert not any(row.finished for row in rows)

    def test_finish_marks_row(self):
        progress = self.make_progress()
        ok, bad = FakeTask("users"), FakeTask("orders")

        with progress:
            progress.start(ok)
            progress.start(bad)
            progress.finish(bad, TaskResult.failure("boom"), 0.2)
            progress.finish(ok, TaskResult.success(), 1.0)

        users, orders = progress.progress.tasks
        assert users.finished and orders.finished
        assert users.description == "public.users - 1.0s"
        assert users.fields["mark"] == SUCCESS_MARK
        assert orders.description == "public.orders (boom)"
        assert orders.fields["mark"] == FAILURE_MARK


class TestCreateProgress:
    def test_lines_when_not_interactive(self):
        assert isinstance(create_progress(RecordingSink(), interactive=False), LineProgress)

    def test_lines_in_batch_mode(self):
        assert isinstance(create_progress(RecordingSink(), in_batches=True, interactive=True), LineProgress)

    def test_spinners_on_terminal(self):
        assert isinstance(create_progress(RecordingSink(), interactive=True), SpinnerProgress)
