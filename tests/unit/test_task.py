"""
Unit tests for tablesync.task

Covers column comparison notes, trigger classification, failure capture
in perform() and the statements issued by the default copier.
"""

import psycopg2
import pytest

from fakes import FakeDataSource
from tablesync.errors import TaskError
from tablesync.models import Column, TableRef, TaskStatus, TriggerDescriptor
from tablesync.task import Task, copy_table


def make_task(from_columns=(), to_columns=(), opts=None, copier=None, source=None, destination=None):
    task = Task(
        source or FakeDataSource("source"),
        destination or FakeDataSource("destination"),
        TableRef("public", "users"),
        opts=opts,
        copier=copier,
    )
    task.from_columns = [Column(*c) for c in from_columns]
    task.to_columns = [Column(*c) for c in to_columns]
    return task


class TestSharedFields:
    def test_destination_order(self):
        task = make_task(
            from_columns=[("email", "text"), ("id", "integer")],
            to_columns=[("id", "integer"), ("name", "text"), ("email", "text")],
        )

        assert task.shared_fields == ["id", "email"]

    def test_no_overlap(self):
        task = make_task(from_columns=[("a", "text")], to_columns=[("b", "text")])

        assert task.shared_fields == []


class TestNotes:
    def test_no_fields_to_copy(self):
        task = make_task(from_columns=[("a", "text")], to_columns=[])

        assert task.notes == ["No fields to copy"]

    def test_matching_tables_have_no_notes(self):
        columns = [("id", "integer"), ("email", "text")]

        assert make_task(columns, columns).notes == []

    def test_extra_missing_and_type_differences(self):
        task = make_task(
            from_columns=[("id", "integer"), ("legacy", "text"), ("score", "integer")],
            to_columns=[("id", "bigint"), ("score", "integer"), ("created_at", "timestamp")],
        )

        assert task.notes == [
            "Extra columns: created_at",
            "Missing columns: legacy",
            "Different column types: id (integer -> bigint)",
        ]


class TestTriggers:
    def test_classification(self):
        task = make_task()
        task.to_triggers = [
            TriggerDescriptor("RI_ConstraintTrigger_c_1", True, True, True),
            TriggerDescriptor("audit", False, True, False),
            TriggerDescriptor("audit_disabled", False, False, False),
            TriggerDescriptor("internal_other", True, True, False),
        ]

        assert [t.name for t in task.integrity_triggers] == ["RI_ConstraintTrigger_c_1"]
        assert [t.name for t in task.user_triggers] == ["audit"]


class TestPerform:
    def test_success_with_copier_notices(self, destination):
        task = make_task(
            [("id", "integer")], [("id", "integer")],
            destination=destination,
            copier=lambda t: ["rows skipped"],
        )

        result = task.perform()

        assert result.status is TaskStatus.SUCCESS
        assert result.notices == ["rows skipped"]
        assert destination.statements == ["BEGIN", "COMMIT"]

    def test_database_error_captured(self, destination):
        def copier(task):
            raise psycopg2.DataError('invalid input syntax for type integer: "x"\n')

        task = make_task([("id", "integer")], [("id", "integer")], destination=destination, copier=copier)

        result = task.perform()

        assert result.status is TaskStatus.FAILURE
        assert result.message == 'invalid input syntax for type integer: "x"'
        assert destination.statements == ["BEGIN", "ROLLBACK"]

    def test_task_error_captured(self):
        task = make_task(from_columns=[("a", "text")], to_columns=[("b", "text")])

        result = task.perform()

        assert result.status is TaskStatus.FAILURE
        assert "No fields to copy" in result.message

    def test_unexpected_errors_propagate(self):
        def copier(task):
            raise RuntimeError("bug")

        task = make_task([("id", "integer")], [("id", "integer")], copier=copier)

        with pytest.raises(RuntimeError):
            task.perform()

    def test_user_triggers_disabled_around_copy(self, destination):
        task = make_task(
            [("id", "integer")], [("id", "integer")],
            opts={"disable_user_triggers": True},
            destination=destination,
            copier=lambda t: t.destination.execute("-- copy"),
        )
        task.to_triggers = [
            TriggerDescriptor("audit", False, True, False),
            TriggerDescriptor("RI_1", True, True, True),
        ]

        task.perform()

        assert destination.statements == [
            "BEGIN",
            'ALTER TABLE "public"."users" DISABLE TRIGGER "audit"',
            "-- copy",
            'ALTER TABLE "public"."users" ENABLE TRIGGER "audit"',
            "COMMIT",
        ]


class TestCopyTable:
    def make(self, opts=None):
        source = FakeDataSource("source")
        source.copy_out_data = b"1\ta@example.com\n"
        destination = FakeDataSource("destination")
        task = make_task(
            [("id", "integer"), ("email", "text")],
            [("id", "integer"), ("email", "text")],
            opts=opts,
            source=source,
            destination=destination,
        )
        return task, source, destination

    def test_truncate_then_copy(self):
        task, source, destination = self.make()

        assert copy_table(task) == []

        assert source.statements == ['COPY (SELECT "id", "email" FROM "public"."users") TO STDOUT']
        assert destination.statements == [
            'TRUNCATE "public"."users"',
            'COPY "public"."users" ("id", "email") FROM STDIN',
        ]
        assert destination.copied_in[0][1] == b"1\ta@example.com\n"

    def test_delete_instead_of_truncate(self):
        task, source, destination = self.make(opts={"delete": True})

        copy_table(task)

        assert destination.statements[0] == 'DELETE FROM "public"."users"'

    def test_predicate_limits_source_and_destination(self):
        task, source, destination = self.make(opts={"sql": "WHERE id > 100", "delete": True})

        copy_table(task)

        assert source.statements == ['COPY (SELECT "id", "email" FROM "public"."users" WHERE id > 100) TO STDOUT']
        assert destination.statements[0] == 'DELETE FROM "public"."users" WHERE id > 100'

    def test_no_shared_fields(self):
        task = make_task([("a", "text")], [("b", "text")])

        with pytest.raises(TaskError):
            copy_table(task)
