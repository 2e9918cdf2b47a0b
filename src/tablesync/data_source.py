"""
PostgreSQL data source backed by psycopg2.

One connection is kept per worker identity (process id, thread id), so a
single PostgresDataSource can be shared by the coordinator, thread-pool
workers and process-pool workers without two workers ever using the same
connection. Connections run in autocommit mode; transactions are explicit
(BEGIN/COMMIT/ROLLBACK) and nested blocks run inside a savepoint of the
outer one.
"""

import logging
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO, Any, Sequence

import psycopg2
import psycopg2.extensions
from psycopg2.extras import RealDictCursor

from utils.retry import retry_database_operation

from .models import TableRef

logger = logging.getLogger(__name__)

# Every statement sent to a database; enabled by --debug or LOG_SQL
sql_logger = logging.getLogger("tablesync.sql")


@dataclass
class _Session:
    """A connection owned by one worker, with its transaction nesting depth."""

    connection: psycopg2.extensions.connection
    depth: int = 0


class Transaction:
    """Handle for an open transaction; statements run on the owning connection."""

    def __init__(self, data_source: "PostgresDataSource"):
        self.data_source = data_source

    def execute(self, query: str, params: Sequence[Any] | None = None) -> list[dict]:
        return self.data_source.execute(query, params)


class PostgresDataSource:
    """
    A source or destination database.

    Args:
        url: libpq connection string or postgresql:// URL
        name: Label used in log messages ("source" / "destination")
        connect_timeout: Seconds to wait when opening a connection
    """

    def __init__(
        self,
        url: str,
        name: str = "database",
        connect_timeout: int = 10,
    ):
        self.url = url
        self.name = name
        self.connect_timeout = connect_timeout
        self._sessions: dict[tuple[int, int], _Session] = {}
        self._lock = threading.Lock()

    def __getstate__(self) -> dict[str, Any]:
        # Live connections never cross a process boundary
        state = self.__dict__.copy()
        state["_sessions"] = {}
        del state["_lock"]
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.__dict__.update(state)
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"PostgresDataSource(name={self.name!r})"

    @staticmethod
    def _concurrent_id() -> tuple[int, int]:
        return (os.getpid(), threading.get_ident())

    @retry_database_operation(max_retries=3, base_delay=0.5)
    def _connect(self) -> psycopg2.extensions.connection:
        conn = psycopg2.connect(
            self.url,
            connect_timeout=self.connect_timeout,
            application_name="tablesync",
        )
        conn.set_session(autocommit=True)
        logger.debug(f"Connected to {self.name} (pid={os.getpid()}, thread={threading.get_ident()})")
        return conn

    def _session(self) -> _Session:
        key = self._concurrent_id()
        with self._lock:
            session = self._sessions.get(key)
        if session is None:
            session = _Session(self._connect())
            with self._lock:
                self._sessions[key] = session
        return session

    @property
    def conn(self) -> psycopg2.extensions.connection:
        """Connection owned by the calling worker."""
        return self._session().connection

    @property
    def in_transaction(self) -> bool:
        with self._lock:
            session = self._sessions.get(self._concurrent_id())
        return session is not None and session.depth > 0

    def execute(self, query: str, params: Sequence[Any] | None = None) -> list[dict]:
        """
        Run a statement and return its rows as dicts (empty for statements
        without a result set).
        """
        sql_logger.debug(f"[{self.name}] {query.strip()}")

        with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(query, params)
            if cursor.description is None:
                return []
            return [dict(row) for row in cursor.fetchall()]

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Open a transaction on the calling worker's connection.

        The outermost block commits on success and rolls back on any
        exception, which also reverts any SET LOCAL / DDL issued inside it.
        A nested block runs inside a savepoint: an error in it is rolled back
        to the savepoint, so the outer transaction stays usable for the
        statements that follow.
        """
        session = self._session()

        if session.depth > 0:
            savepoint = f"tablesync_{session.depth}"
            self.execute(f"SAVEPOINT {savepoint}")
            session.depth += 1
            try:
                yield Transaction(self)
            except BaseException:
                session.depth -= 1
                self._rollback_to(session, savepoint)
                raise
            session.depth -= 1
            self.execute(f"RELEASE SAVEPOINT {savepoint}")
            return

        self.execute("BEGIN")
        session.depth = 1
        try:
            yield Transaction(self)
        except BaseException:
            session.depth = 0
            self._rollback(session)
            raise
        session.depth = 0
        self.execute("COMMIT")

    def _rollback(self, session: _Session) -> None:
        if session.connection.closed:
            return
        try:
            self.execute("ROLLBACK")
        except psycopg2.Error as e:
            logger.error(f"Rollback failed on {self.name}: {e}")

    def _rollback_to(self, session: _Session, savepoint: str) -> None:
        if session.connection.closed:
            return
        try:
            self.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
        except psycopg2.Error as e:
            logger.error(f"Rollback to {savepoint} failed on {self.name}: {e}")

    def reconnect_if_needed(self) -> None:
        """
        Make sure the calling worker has a live connection.

        Workers without a connection get one lazily on first use; an
        existing connection that fails a health check is replaced. A
        connection inside an open transaction is left alone.
        """
        key = self._concurrent_id()
        with self._lock:
            session = self._sessions.get(key)

        if session is None or session.depth > 0:
            return

        if self._is_connection_healthy(session.connection):
            return

        logger.warning(f"Connection to {self.name} went stale, reconnecting")
        self._close_connection(session.connection)
        with self._lock:
            self._sessions[key] = _Session(self._connect())

    @staticmethod
    def _is_connection_healthy(conn: psycopg2.extensions.connection) -> bool:
        if conn is None or conn.closed:
            return False

        try:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            return True
        except (psycopg2.Error, psycopg2.Warning):
            return False

    @staticmethod
    def _close_connection(conn: psycopg2.extensions.connection) -> None:
        if conn is not None and not conn.closed:
            try:
                conn.close()
            except psycopg2.Error as e:
                logger.debug(f"Error closing connection: {e}")

    def close(self) -> None:
        """Close every connection opened by this process."""
        pid = os.getpid()
        with self._lock:
            keys = [key for key in self._sessions if key[0] == pid]
            sessions = [self._sessions.pop(key) for key in keys]
        for session in sessions:
            self._close_connection(session.connection)

    def table_exists(self, table: TableRef) -> bool:
        rows = self.execute(
            """
            SELECT EXISTS (
              SELECT 1 FROM information_schema.tables
              WHERE table_schema = %s AND table_name = %s
            ) AS exists
            """,
            (table.schema, table.name),
        )
        return bool(rows and rows[0]["exists"])

    def copy_out(self, statement: str, stream: IO) -> None:
        """Run ``COPY ... TO STDOUT`` into a file-like object."""
        sql_logger.debug(f"[{self.name}] {statement}")
        with self.conn.cursor() as cursor:
            cursor.copy_expert(statement, stream)

    def copy_in(self, statement: str, stream: IO) -> None:
        """Run ``COPY ... FROM STDIN`` reading from a file-like object."""
        sql_logger.debug(f"[{self.name}] {statement}")
        with self.conn.cursor() as cursor:
            cursor.copy_expert(statement, stream)
