"""
Per-table sync task.

A Task knows its table, both data sources, the column and trigger metadata
filled in by the orchestrator, and task-local options. The row transfer is
delegated to a copier callable; copy_table() is the default one.
"""

import logging
import tempfile
from collections.abc import Callable
from typing import Any

import psycopg2

from utils.logging import ContextLogger
from utils.sql_safety import quote_ident, quote_ident_full

from .errors import TaskError
from .interfaces import DataSource, TransactionHandle
from .models import Column, TableRef, TaskResult, TriggerDescriptor

logger = logging.getLogger(__name__)

# Rows buffered in memory before spilling to a temporary file
COPY_BUFFER_BYTES = 64 * 1024 * 1024


class Task:
    """
    Sync one table.

    Recognized ``opts``:
        sql: Predicate appended to the source query (e.g. ``WHERE id > 100``);
            only matching destination rows are replaced
        disable_user_triggers: Disable enabled user triggers while copying
        delete: Empty the destination with DELETE instead of TRUNCATE
            (needed while integrity is relaxed or deferred)
    """

    def __init__(
        self,
        source: DataSource,
        destination: DataSource,
        table: TableRef,
        opts: dict[str, Any] | None = None,
        copier: Callable[["Task"], list[str] | None] | None = None,
    ):
        self.source = source
        self.destination = destination
        self.table = table
        self.opts = dict(opts or {})
        self.copier = copier or copy_table
        self.from_columns: list[Column] = []
        self.to_columns: list[Column] = []
        self.to_triggers: list[TriggerDescriptor] = []

    def __repr__(self) -> str:
        return f"Task(table={self.table})"

    @property
    def from_fields(self) -> list[str]:
        return [c.name for c in self.from_columns]

    @property
    def to_fields(self) -> list[str]:
        return [c.name for c in self.to_columns]

    @property
    def shared_fields(self) -> list[str]:
        """Columns present on both sides, in destination order."""
        from_fields = set(self.from_fields)
        return [name for name in self.to_fields if name in from_fields]

    @property
    def notes(self) -> list[str]:
        if not self.shared_fields:
            return ["No fields to copy"]

        notes = []
        from_fields = set(self.from_fields)
        to_fields = set(self.to_fields)

        extra = [name for name in self.to_fields if name not in from_fields]
        if extra:
            notes.append(f"Extra columns: {', '.join(extra)}")

        missing = [name for name in self.from_fields if name not in to_fields]
        if missing:
            notes.append(f"Missing columns: {', '.join(missing)}")

        from_types = {c.name: c.type for c in self.from_columns}
        to_types = {c.name: c.type for c in self.to_columns}
        different = [
            f"{name} ({from_types[name]} -> {to_types[name]})"
            for name in self.shared_fields
            if from_types[name] != to_types[name]
        ]
        if different:
            notes.append(f"Different column types: {', '.join(different)}")

        return notes

    @property
    def integrity_triggers(self) -> list[TriggerDescriptor]:
        return [t for t in self.to_triggers if t.is_integrity]

    @property
    def user_triggers(self) -> list[TriggerDescriptor]:
        return [t for t in self.to_triggers if t.is_user and t.is_enabled]

    def perform(self) -> TaskResult:
        """
        Copy the table inside a destination transaction.

        Database and copy errors are captured into a FAILURE result.
        """
        log = ContextLogger(__name__, table=str(self.table))
        log.debug("Starting table copy")

        try:
            with self.destination.transaction() as tx:
                disabled = self._disable_user_triggers(tx) if self.opts.get("disable_user_triggers") else []
                notices = self.copier(self) or []
                for trigger in disabled:
                    tx.execute(self._alter_trigger(trigger, "ENABLE"))
        except (TaskError, psycopg2.Error) as e:
            log.debug(f"Table copy failed: {e}")
            return TaskResult.failure(str(e).strip() or type(e).__name__)

        log.debug("Table copy finished")
        return TaskResult.success(notices=notices)

    def _disable_user_triggers(self, tx: TransactionHandle) -> list[TriggerDescriptor]:
        triggers = self.user_triggers
        for trigger in triggers:
            tx.execute(self._alter_trigger(trigger, "DISABLE"))
        return triggers

    def _alter_trigger(self, trigger: TriggerDescriptor, op: str) -> str:
        return f"ALTER TABLE {quote_ident_full(self.table)} {op} TRIGGER {quote_ident(trigger.name)}"


def copy_table(task: Task) -> list[str]:
    """
    Replace destination rows with source rows over the shared columns.

    Streams ``COPY (SELECT ...) TO STDOUT`` from the source into
    ``COPY ... FROM STDIN`` on the destination through a spooled buffer.
    """
    fields = task.shared_fields
    if not fields:
        raise TaskError(task.table, "No fields to copy")

    table = quote_ident_full(task.table)
    columns = ", ".join(quote_ident(name) for name in fields)
    predicate = task.opts.get("sql")

    select = f"SELECT {columns} FROM {table}"
    if predicate:
        select += f" {predicate}"

    with tempfile.SpooledTemporaryFile(max_size=COPY_BUFFER_BYTES, mode="w+b") as buffer:
        task.source.copy_out(f"COPY ({select}) TO STDOUT", buffer)
        buffer.seek(0)

        if predicate:
            task.destination.execute(f"DELETE FROM {table} {predicate}")
        elif task.opts.get("delete"):
            task.destination.execute(f"DELETE FROM {table}")
        else:
            task.destination.execute(f"TRUNCATE {table}")

        task.destination.copy_in(f"COPY {table} ({columns}) FROM STDIN", buffer)

    logger.debug(f"Copied {task.table} ({len(fields)} columns)")
    return []
