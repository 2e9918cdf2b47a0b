"""
Command-line argument parser configuration.

Defines the ``sync`` command and its options.
"""

import argparse


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="tablesync",
        description="Copy table contents from a source PostgreSQL database to a destination",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync two tables using URLs from TABLESYNC_SOURCE_URL / TABLESYNC_DESTINATION_URL
  tablesync sync --tables users,orders

  # Four worker processes, stop starting new tables after the first failure
  tablesync sync --tables users,orders,products --jobs 4 --fail-fast

  # Copy tables with foreign keys between them in one transaction
  tablesync sync --tables users,orders --defer-constraints

  # Only replace recent rows
  tablesync sync --tables orders --sql "WHERE created_at > now() - interval '1 day'"
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Logging level (default: LOG_LEVEL or INFO)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    sync_parser = subparsers.add_parser('sync', help='Sync tables')
    sync_parser.add_argument(
        '--tables',
        help='Comma-separated list of tables (schema.table or table)'
    )
    sync_parser.add_argument(
        '--tables-file',
        help='File containing list of tables (one per line)'
    )
    sync_parser.add_argument('--from', dest='source_url', help='Source database URL')
    sync_parser.add_argument('--to', dest='destination_url', help='Destination database URL')
    sync_parser.add_argument(
        '--sql',
        help='Predicate applied to every table, e.g. "WHERE id > 100"'
    )
    sync_parser.add_argument(
        '--jobs',
        type=_positive_int,
        help='Number of tables to sync at a time'
    )
    sync_parser.add_argument(
        '--fail-fast',
        action='store_true',
        help='Stop starting new tables after the first failure'
    )
    sync_parser.add_argument(
        '--in-batches',
        action='store_true',
        help='Batch mode; tables are synced one at a time and progress is logged'
    )
    sync_parser.add_argument(
        '--debug',
        action='store_true',
        help='Log every SQL statement; tables are synced one at a time'
    )
    sync_parser.add_argument(
        '--disable-user-triggers',
        action='store_true',
        help='Disable non-internal triggers on destination tables while copying'
    )
    sync_parser.add_argument(
        '--disable-integrity',
        action='store_true',
        help='Disable foreign key triggers for the run (superuser)'
    )
    sync_parser.add_argument(
        '--disable-integrity-v2',
        action='store_true',
        help='Disable foreign keys with session_replication_role (superuser, works on RDS)'
    )
    sync_parser.add_argument(
        '--defer-constraints',
        action='store_true',
        help='Defer deferrable constraints until the end of the run'
    )
    sync_parser.add_argument(
        '--defer-constraints-v2',
        action='store_true',
        help='Make non-deferrable foreign keys deferrable for the run'
    )
    sync_parser.add_argument(
        '--trace-endpoint',
        help='OTLP collector endpoint for tracing (e.g. localhost:4317)'
    )

    return parser
