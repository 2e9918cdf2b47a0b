"""
Integrity relaxation for the duration of a sync run.

A run picks exactly one DeferralMode. For any mode other than NONE the
whole run executes inside one destination transaction (wrapping one source
transaction): the relaxation is applied first, the tasks run, and on
success the relaxation is undone before commit. If the tasks raise, the
destination transaction rolls back, which discards the relaxation with it,
so no restoration statements are issued on that path.
"""

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

import psycopg2

from utils.sql_safety import quote_ident, quote_ident_full
from utils.tracing import add_span_event, trace_operation

from .config import RunOptions
from .errors import SyncFailedError, first_line
from .interfaces import DataSource, SyncTask, TransactionHandle
from .metadata import MetadataProbe
from .models import ConstraintRef, DeferralMode

logger = logging.getLogger(__name__)

T = TypeVar("T")


def select_deferral_mode(opts: RunOptions, is_managed_hosting: Callable[[], bool]) -> DeferralMode:
    """
    Choose the relaxation mode for a run.

    Both --disable-integrity variants need superuser privileges, but only
    the replica-role variant works on managed platforms such as Amazon RDS,
    so plain --disable-integrity switches to it there. The managed-hosting
    probe is only consulted in that one case.
    """
    if opts.disable_integrity or opts.disable_integrity_v2:
        if opts.disable_integrity_v2 or (opts.disable_integrity and is_managed_hosting()):
            return DeferralMode.SESSION_REPLICA
        return DeferralMode.DISABLE_TRIGGERS

    if opts.defer_constraints or opts.defer_constraints_v2:
        return DeferralMode.DEFER_FORCE if opts.defer_constraints_v2 else DeferralMode.DEFER_SIMPLE

    return DeferralMode.NONE


class ConstraintDeferralManager:
    """Applies one DeferralMode around the body of a run."""

    def __init__(self, source: DataSource, destination: DataSource, mode: DeferralMode):
        self.source = source
        self.destination = destination
        self.mode = mode

    def run(self, tasks: Sequence[SyncTask], body: Callable[[], T]) -> T:
        """
        Execute ``body`` with integrity relaxed for ``tasks``.

        Returns:
            Whatever ``body`` returns

        Raises:
            SyncFailedError: Naming every table, when the relaxation, its
                restoration or the final commit fails (for example a
                deferred foreign key still violated at commit); nothing
                from the run is committed in that case
        """
        if self.mode is DeferralMode.NONE:
            return body()

        with trace_operation("relaxed_integrity_run", mode=self.mode.value, table_count=len(tasks)):
            try:
                with self.destination.transaction() as tx:
                    restore_statements = self._relax(tx, tasks)
                    add_span_event("integrity_relaxed", restore_statements=len(restore_statements))

                    with self.source.transaction():
                        result = body()

                    for statement in restore_statements:
                        tx.execute(statement)
                    add_span_event("integrity_restored")
            except psycopg2.Error as e:
                reason = first_line(str(e)) or type(e).__name__
                logger.error(f"Sync transaction rolled back ({self.mode.value}): {reason}")
                raise SyncFailedError([str(task.table) for task in tasks], reason=reason) from e

        logger.info(f"Committed sync transaction ({self.mode.value})")
        return result

    def _relax(self, tx: TransactionHandle, tasks: Sequence[SyncTask]) -> list[str]:
        """Apply the relaxation; return the statements that undo it, in order."""
        if self.mode is DeferralMode.SESSION_REPLICA:
            # SET LOCAL lasts until the end of the transaction
            tx.execute("SET LOCAL session_replication_role = replica")
            return []

        if self.mode is DeferralMode.DISABLE_TRIGGERS:
            return self._disable_integrity_triggers(tx, tasks)

        if self.mode is DeferralMode.DEFER_SIMPLE:
            tx.execute("SET CONSTRAINTS ALL DEFERRED")
            return []

        if self.mode is DeferralMode.DEFER_FORCE:
            return self._force_deferrable(tx)

        raise ValueError(f"Unsupported deferral mode: {self.mode}")

    def _disable_integrity_triggers(self, tx: TransactionHandle, tasks: Sequence[SyncTask]) -> list[str]:
        restore = []
        for task in tasks:
            for trigger in task.integrity_triggers:
                tx.execute(self._alter_trigger(task, trigger.name, "DISABLE"))
                restore.append(self._alter_trigger(task, trigger.name, "ENABLE"))
        logger.info(f"Disabled {len(restore)} integrity trigger(s)")
        return restore

    def _force_deferrable(self, tx: TransactionHandle) -> list[str]:
        forced = [
            ConstraintRef(table, name)
            for table, names in MetadataProbe(tx).non_deferrable_constraints_of().items()
            for name in names
        ]

        for constraint in forced:
            tx.execute(self._alter_constraint(constraint, "DEFERRABLE"))
        tx.execute("SET CONSTRAINTS ALL DEFERRED")
        logger.info(f"Made {len(forced)} constraint(s) deferrable for this run")

        return ["SET CONSTRAINTS ALL IMMEDIATE"] + [
            self._alter_constraint(constraint, "NOT DEFERRABLE") for constraint in forced
        ]

    @staticmethod
    def _alter_trigger(task: SyncTask, trigger_name: str, op: str) -> str:
        return f"ALTER TABLE {quote_ident_full(task.table)} {op} TRIGGER {quote_ident(trigger_name)}"

    @staticmethod
    def _alter_constraint(constraint: ConstraintRef, deferrability: str) -> str:
        return (
            f"ALTER TABLE {quote_ident_full(constraint.table)} "
            f"ALTER CONSTRAINT {quote_ident(constraint.constraint_name)} {deferrability}"
        )
