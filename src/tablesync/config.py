"""
Run configuration.

RunOptions holds the flags that shape a sync run; DatabaseConfig holds the
connection URLs. Both can be built from parsed CLI arguments or from
environment variables.
"""

import argparse
import os
from dataclasses import dataclass, fields
from typing import Any

TRUE_VALUES = ("true", "1", "yes")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() in TRUE_VALUES


@dataclass(frozen=True)
class RunOptions:
    """
    Options recognized by a sync run.

    Attributes:
        jobs: Requested worker count, or None
        fail_fast: Stop dispatching new tables after the first failure
        in_batches: Batch copy mode; forces sequential execution
        debug: Log every statement; forces sequential execution
        disable_user_triggers: Disable non-internal triggers while copying
        disable_integrity: Relax foreign keys (replica role or trigger disabling)
        disable_integrity_v2: Relax foreign keys with session_replication_role
        defer_constraints: Defer deferrable constraints to commit
        defer_constraints_v2: Force non-deferrable foreign keys deferrable for the run
    """

    jobs: int | None = None
    fail_fast: bool = False
    in_batches: bool = False
    debug: bool = False
    disable_user_triggers: bool = False
    disable_integrity: bool = False
    disable_integrity_v2: bool = False
    defer_constraints: bool = False
    defer_constraints_v2: bool = False

    def __post_init__(self):
        if self.jobs is not None and (isinstance(self.jobs, bool) or not isinstance(self.jobs, int) or self.jobs < 1):
            raise ValueError(f"Invalid jobs: {self.jobs!r}. Must be a positive integer.")

    @property
    def relaxes_integrity(self) -> bool:
        return self.disable_integrity or self.disable_integrity_v2

    @property
    def defers_constraints(self) -> bool:
        return self.defer_constraints or self.defer_constraints_v2

    @property
    def needs_triggers(self) -> bool:
        """Whether destination trigger metadata must be loaded."""
        return self.disable_user_triggers or self.disable_integrity

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "RunOptions":
        """Build options from parsed CLI arguments, ignoring unrelated ones."""
        values = {f.name: getattr(args, f.name) for f in fields(cls) if hasattr(args, f.name)}
        return cls(**values)

    @classmethod
    def from_env(cls) -> "RunOptions":
        """
        Build options from environment variables

        Environment variables:
            TABLESYNC_JOBS, TABLESYNC_FAIL_FAST, TABLESYNC_IN_BATCHES,
            TABLESYNC_DEBUG, TABLESYNC_DISABLE_USER_TRIGGERS,
            TABLESYNC_DISABLE_INTEGRITY, TABLESYNC_DISABLE_INTEGRITY_V2,
            TABLESYNC_DEFER_CONSTRAINTS, TABLESYNC_DEFER_CONSTRAINTS_V2
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            env_name = f"TABLESYNC_{f.name.upper()}"
            if f.name == "jobs":
                jobs = os.getenv(env_name)
                values["jobs"] = int(jobs) if jobs else None
            else:
                values[f.name] = _env_flag(env_name)
        return cls(**values)


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection URLs (libpq DSN or postgresql:// URL) for both sides."""

    source_url: str
    destination_url: str

    @classmethod
    def from_args_or_env(cls, args: argparse.Namespace) -> "DatabaseConfig":
        """
        Resolve URLs from --from/--to, falling back to
        TABLESYNC_SOURCE_URL / TABLESYNC_DESTINATION_URL.

        Raises:
            ValueError: If either URL is missing
        """
        source_url = getattr(args, "source_url", None) or os.getenv("TABLESYNC_SOURCE_URL")
        destination_url = getattr(args, "destination_url", None) or os.getenv("TABLESYNC_DESTINATION_URL")

        if not source_url:
            raise ValueError("No source database: pass --from or set TABLESYNC_SOURCE_URL")
        if not destination_url:
            raise ValueError("No destination database: pass --to or set TABLESYNC_DESTINATION_URL")

        return cls(source_url=source_url, destination_url=destination_url)
