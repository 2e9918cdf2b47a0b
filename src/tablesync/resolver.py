"""
Table resolution: turns user-supplied table names into sync tasks and
checks that the destination has every table before a run starts.
"""

import logging
from collections.abc import Sequence

from .config import RunOptions
from .errors import PreflightError
from .interfaces import DataSource
from .models import TableRef
from .task import Task

logger = logging.getLogger(__name__)


class TableResolver:
    """
    Args:
        table_names: ``schema.table`` or bare table names (schema ``public``)
        default_schema: Schema applied to bare names
    """

    def __init__(self, table_names: Sequence[str], default_schema: str = "public"):
        self._notes: list[str] = []
        self.tables: list[TableRef] = []

        seen = set()
        for name in table_names:
            table = TableRef.parse(name, default_schema)
            if table in seen:
                self._notes.append(f"Table listed more than once: {table}")
                continue
            seen.add(table)
            self.tables.append(table)

    @property
    def notes(self) -> list[str]:
        return list(self._notes)

    def build_tasks(
        self,
        source: DataSource,
        destination: DataSource,
        opts: RunOptions,
        sql: str | None = None,
    ) -> list[Task]:
        """One task per resolved table, carrying the task-level options."""
        task_opts = {
            "disable_user_triggers": opts.disable_user_triggers,
            # TRUNCATE cannot run while foreign keys are relaxed or deferred
            "delete": opts.relaxes_integrity or opts.defers_constraints,
        }
        if sql:
            task_opts["sql"] = sql

        return [Task(source, destination, table, opts=task_opts) for table in self.tables]

    def confirm_tables_exist(
        self, data_source: DataSource, tables: Sequence[TableRef], description: str
    ) -> None:
        """
        Raises:
            PreflightError: For the first table missing from ``data_source``
        """
        for table in tables:
            if not data_source.table_exists(table):
                raise PreflightError(f"Table not found in {description}: {table}")
        logger.debug(f"All {len(tables)} table(s) exist in {description}")
