"""
Data model shared by the sync components.

All values here are plain dataclasses/enums so they can cross process
boundaries when tasks run in a process pool.
"""

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_SCHEMA = "public"


@dataclass(frozen=True, order=True)
class TableRef:
    """A schema-qualified table; used as a map key everywhere."""

    schema: str
    name: str

    @classmethod
    def parse(cls, value: str, default_schema: str = DEFAULT_SCHEMA) -> "TableRef":
        """
        Parse ``schema.table`` or a bare ``table`` name.

        Raises:
            ValueError: If the value is empty or has more than one dot
        """
        value = value.strip()
        if not value:
            raise ValueError("Table name cannot be empty")

        parts = value.split(".")
        if len(parts) == 1:
            return cls(default_schema, parts[0])
        if len(parts) == 2 and all(parts):
            return cls(parts[0], parts[1])
        raise ValueError(f"Invalid table name: {value!r}")

    def __str__(self) -> str:
        return f"{self.schema}.{self.name}"


@dataclass(frozen=True)
class Column:
    name: str
    type: str


@dataclass(frozen=True)
class TriggerDescriptor:
    name: str
    is_internal: bool
    is_enabled: bool
    tied_to_constraint: bool

    @property
    def is_integrity(self) -> bool:
        """Internal triggers backing a constraint (e.g. foreign keys)."""
        return self.is_internal and self.tied_to_constraint

    @property
    def is_user(self) -> bool:
        return not self.is_internal


@dataclass(frozen=True)
class ConstraintRef:
    table: TableRef
    constraint_name: str

    def __str__(self) -> str:
        return self.constraint_name


class DeferralMode(Enum):
    """How referential integrity is relaxed for the duration of a run."""

    NONE = "none"
    SESSION_REPLICA = "session_replica"
    DISABLE_TRIGGERS = "disable_triggers"
    DEFER_SIMPLE = "defer_simple"
    DEFER_FORCE = "defer_force"


class TaskStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class TaskResult:
    status: TaskStatus
    message: str | None = None
    notices: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, message: str | None = None, notices: list[str] | None = None) -> "TaskResult":
        return cls(TaskStatus.SUCCESS, message, list(notices or []))

    @classmethod
    def failure(cls, message: str, notices: list[str] | None = None) -> "TaskResult":
        return cls(TaskStatus.FAILURE, message, list(notices or []))

    @property
    def succeeded(self) -> bool:
        return self.status is TaskStatus.SUCCESS

    @property
    def summary(self) -> str | None:
        """First line of the message, stripped; None if there is no message."""
        if not self.message:
            return None
        lines = self.message.splitlines()
        return lines[0].strip() if lines else ""
