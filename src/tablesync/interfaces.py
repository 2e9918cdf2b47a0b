"""
Capability protocols for the collaborators the orchestrator drives.

Anything that provides these methods can be plugged in; the bundled
implementations live in data_source, task, resolver and report.
"""

from contextlib import AbstractContextManager
from typing import Any, Protocol, Sequence

from .models import Column, TableRef, TaskResult, TriggerDescriptor


class TransactionHandle(Protocol):
    """Statement executor bound to an open transaction."""

    def execute(self, query: str, params: Sequence[Any] | None = None) -> list[dict]: ...


class DataSource(Protocol):
    def execute(self, query: str, params: Sequence[Any] | None = None) -> list[dict]: ...

    def transaction(self) -> AbstractContextManager[TransactionHandle]: ...

    def reconnect_if_needed(self) -> None: ...

    def table_exists(self, table: TableRef) -> bool: ...

    def close(self) -> None: ...

class SyncTask(Protocol):
    table: TableRef
    opts: dict[str, Any]
    source: DataSource
    destination: DataSource
    from_columns: list[Column]
    to_columns: list[Column]
    to_triggers: list[TriggerDescriptor]

    @property
    def shared_fields(self) -> list[str]: ...

    @property
    def notes(self) -> list[str]: ...

    @property
    def integrity_triggers(self) -> list[TriggerDescriptor]: ...

    def perform(self) -> TaskResult: ...


class Resolver(Protocol):
    @property
    def notes(self) -> list[str]: ...

    def confirm_tables_exist(
        self, data_source: DataSource, tables: Sequence[TableRef], description: str
    ) -> None: ...


class ReportSink(Protocol):
    def warn(self, text: str) -> None: ...

    def log(self, text: str) -> None: ...
