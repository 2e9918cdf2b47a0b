"""
Command-line interface for tablesync.

Available commands:
- sync: copy the listed tables from the source to the destination
"""

import sys

from utils.logging import configure_from_env

from .commands import cmd_sync, read_table_names
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the tablesync CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_from_env(args.log_level, log_sql=getattr(args, "debug", False))

    if args.command == 'sync':
        if not args.tables and not args.tables_file:
            parser.error("Either --tables or --tables-file is required")
        try:
            status = cmd_sync(args)
        except ValueError as e:
            parser.error(str(e))
        sys.exit(status)

    parser.print_help()
    sys.exit(1)


__all__ = [
    'main',
    'cmd_sync',
    'read_table_names',
    'create_parser',
]


if __name__ == '__main__':
    main()
