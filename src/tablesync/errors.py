"""
Error taxonomy for sync runs.

PreflightError and MetadataQueryError abort a run before any task starts.
TaskError is raised inside a single task and captured into its result.
SyncFailedError is raised once at the end of a run with failed tasks.
"""


class SyncError(Exception):
    """Base exception for sync errors."""

    pass


class PreflightError(SyncError):
    """Raised when a required destination table is missing."""

    pass


class MetadataQueryError(SyncError):
    """Raised when a catalog query fails; carries the driver message verbatim."""

    pass


class TaskError(SyncError):
    """Raised when copying a single table fails."""

    def __init__(self, table, message: str):
        super().__init__(message)
        self.table = table


class SyncFailedError(SyncError):
    """Raised when one or more tables failed to sync."""

    def __init__(self, failed_tables: list[str], reason: str | None = None):
        self.failed_tables = list(failed_tables)
        self.reason = reason
        message = failure_message(self.failed_tables)
        if reason:
            message += f" ({reason})"
        super().__init__(message)


def failure_message(failed_tables: list[str]) -> str:
    """
    Build the run-level failure message.

    Example:
        >>> failure_message(["public.a", "public.b"])
        'Sync failed for 2 tables: public.a, public.b'
    """
    count = len(failed_tables)
    noun = "table" if count == 1 else "tables"
    return f"Sync failed for {count} {noun}: {', '.join(failed_tables)}"


def first_line(text: str) -> str:
    """First line of a (driver) message, stripped."""
    lines = text.strip().splitlines()
    return lines[0].strip() if lines else ""
