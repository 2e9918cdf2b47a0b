"""
Catalog probes for column, trigger and constraint metadata.

Each map is built from a single query so it reflects one snapshot of the
catalog. Any driver error is fatal to the run and surfaces as
MetadataQueryError carrying the original message.
"""

import logging
from collections.abc import Iterable

import psycopg2

from .errors import MetadataQueryError
from .interfaces import DataSource
from .models import Column, TableRef, TriggerDescriptor

logger = logging.getLogger(__name__)

COLUMNS_QUERY = """
SELECT
  table_schema AS schema,
  table_name AS table,
  column_name AS column,
  data_type AS type
FROM
  information_schema.columns
ORDER BY 1, 2, 3
"""

TRIGGERS_QUERY = """
SELECT
  nspname AS schema,
  relname AS table,
  tgname AS name,
  tgisinternal AS internal,
  tgenabled != 'D' AS enabled,
  tgconstraint != 0 AS integrity
FROM
  pg_trigger
INNER JOIN
  pg_class ON pg_class.oid = pg_trigger.tgrelid
INNER JOIN
  pg_namespace ON pg_namespace.oid = pg_class.relnamespace
"""

NON_DEFERRABLE_CONSTRAINTS_QUERY = """
SELECT
  table_schema AS schema,
  table_name AS table,
  constraint_name
FROM
  information_schema.table_constraints
WHERE
  constraint_type = 'FOREIGN KEY' AND
  is_deferrable = 'NO'
"""

MANAGED_HOSTING_QUERY = "SELECT name, setting FROM pg_settings WHERE name LIKE 'rds.%'"


class MetadataProbe:
    """Read-only catalog queries against one data source."""

    def __init__(self, data_source: DataSource):
        self.data_source = data_source

    def _query(self, query: str) -> list[dict]:
        try:
            return self.data_source.execute(query)
        except psycopg2.Error as e:
            raise MetadataQueryError(str(e).strip()) from e

    @staticmethod
    def _group(rows: list[dict], tables: Iterable[TableRef] | None, build) -> dict:
        wanted = set(tables) if tables is not None else None
        grouped: dict[TableRef, list] = {}
        for row in rows:
            table = TableRef(row["schema"], row["table"])
            if wanted is not None and table not in wanted:
                continue
            grouped.setdefault(table, []).append(build(row))
        return grouped

    def columns_of(self, tables: Iterable[TableRef] | None = None) -> dict[TableRef, list[Column]]:
        """Columns per table, ordered by schema, table and column name."""
        rows = self._query(COLUMNS_QUERY)
        return self._group(rows, tables, lambda r: Column(r["column"], r["type"]))

    def triggers_of(self, tables: Iterable[TableRef] | None = None) -> dict[TableRef, list[TriggerDescriptor]]:
        rows = self._query(TRIGGERS_QUERY)
        return self._group(
            rows,
            tables,
            lambda r: TriggerDescriptor(
                name=r["name"],
                is_internal=bool(r["internal"]),
                is_enabled=bool(r["enabled"]),
                tied_to_constraint=bool(r["integrity"]),
            ),
        )

    def non_deferrable_constraints_of(self, tables: Iterable[TableRef] | None = None) -> dict[TableRef, list[str]]:
        """Foreign-key constraint names that are not deferrable, per table."""
        rows = self._query(NON_DEFERRABLE_CONSTRAINTS_QUERY)
        return self._group(rows, tables, lambda r: r["constraint_name"])

    def is_managed_hosting(self) -> bool:
        """
        True on hosted platforms (Amazon RDS) that expose vendor settings and
        restrict superuser-only statements.
        """
        managed = bool(self._query(MANAGED_HOSTING_QUERY))
        logger.debug(f"Managed hosting platform detected: {managed}")
        return managed
