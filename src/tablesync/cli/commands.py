"""
CLI command implementations.
"""

import argparse
import logging

from utils.tracing import initialize_tracing, shutdown_tracing

from ..config import DatabaseConfig, RunOptions
from ..data_source import PostgresDataSource
from ..errors import SyncError
from ..orchestrator import TableSync
from ..resolver import TableResolver

logger = logging.getLogger(__name__)


def read_table_names(args: argparse.Namespace) -> list[str]:
    """Table names from --tables-file (one per line, # comments) or --tables."""
    if args.tables_file:
        with open(args.tables_file) as f:
            lines = [line.split("#", 1)[0].strip() for line in f]
        return [line for line in lines if line]
    return [name.strip() for name in args.tables.split(",") if name.strip()]


def cmd_sync(args: argparse.Namespace) -> int:
    """
    Run a sync

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit status
    """
    opts = RunOptions.from_args(args)
    db_config = DatabaseConfig.from_args_or_env(args)
    table_names = read_table_names(args)

    if args.trace_endpoint:
        initialize_tracing(otlp_endpoint=args.trace_endpoint)

    source = PostgresDataSource(db_config.source_url, name="source")
    destination = PostgresDataSource(db_config.destination_url, name="destination")

    resolver = TableResolver(table_names)
    tasks = resolver.build_tasks(source, destination, opts, sql=args.sql)

    logger.info(f"Syncing {len(tasks)} table(s): {', '.join(str(t.table) for t in tasks)}")

    try:
        TableSync(
            source=source,
            destination=destination,
            tasks=tasks,
            opts=opts,
            resolver=resolver,
        ).perform()
    except SyncError as e:
        logger.error(str(e))
        return 1
    finally:
        source.close()
        destination.close()
        shutdown_tracing()

    logger.info("Sync completed")
    return 0
