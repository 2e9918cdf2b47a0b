"""
Unit tests for tablesync.resolver
"""

import pytest

from fakes import FakeDataSource
from tablesync.config import RunOptions
from tablesync.errors import PreflightError
from tablesync.models import TableRef
from tablesync.resolver import TableResolver
from tablesync.task import Task


class TestTableResolver:
    def test_bare_names_get_default_schema(self):
        resolver = TableResolver(["users", "sales.orders"])

        assert resolver.tables == [TableRef("public", "users"), TableRef("sales", "orders")]
        assert resolver.notes == []

    def test_duplicates_dropped_with_note(self):
        resolver = TableResolver(["users", "public.users", "orders"])

        assert resolver.tables == [TableRef("public", "users"), TableRef("public", "orders")]
        assert resolver.notes == ["Table listed more than once: public.users"]

    def test_invalid_name_rejected(self):
        with pytest.raises(ValueError):
            TableResolver(["a.b.c"])


class TestBuildTasks:
    def test_one_task_per_table(self, source, destination):
        resolver = TableResolver(["users", "orders"])

        tasks = resolver.build_tasks(source, destination, RunOptions())

        assert all(isinstance(task, Task) for task in tasks)
        assert [str(task.table) for task in tasks] == ["public.users", "public.orders"]
        assert tasks[0].source is source
        assert tasks[0].destination is destination
        assert tasks[0].opts == {"disable_user_triggers": False, "delete": False}

    @pytest.mark.parametrize("opts", [
        RunOptions(disable_integrity=True),
        RunOptions(disable_integrity_v2=True),
        RunOptions(defer_constraints=True),
        RunOptions(defer_constraints_v2=True),
    ])
    def test_delete_used_while_integrity_relaxed(self, opts, source, destination):
        tasks = TableResolver(["users"]).build_tasks(source, destination, opts)

        assert tasks[0].opts["delete"] is True

    def test_predicate_and_trigger_options(self, source, destination):
        opts = RunOptions(disable_user_triggers=True)

        tasks = TableResolver(["users"]).build_tasks(source, destination, opts, sql="WHERE id > 1")

        assert tasks[0].opts["sql"] == "WHERE id > 1"
        assert tasks[0].opts["disable_user_triggers"] is True


class TestConfirmTablesExist:
    def test_all_present(self):
        resolver = TableResolver(["users"])

        resolver.confirm_tables_exist(FakeDataSource(), resolver.tables, "destination")

    def test_first_missing_table_reported(self):
        resolver = TableResolver(["users", "orders", "items"])
        destination = FakeDataSource(existing_tables={TableRef("public", "users")})

        with pytest.raises(PreflightError, match="^Table not found in destination: public.orders$"):
            resolver.confirm_tables_exist(destination, resolver.tables, "destination")
