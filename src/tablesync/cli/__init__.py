"""
Command-line interface for tablesync.

Available commands:
- run: Execute one sync pass
- schedule: Run sync passes periodically
- tables: Show the resolved table selection
"""

import sys

from .commands import cmd_run, cmd_schedule, cmd_tables, options_from_args
from .credentials import configure_logging, resolve_credentials
from .parser import create_parser

COMMANDS = {
    'run': cmd_run,
    'schedule': cmd_schedule,
    'tables': cmd_tables,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the tablesync CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    command(args)


__all__ = [
    'main',
    'create_parser',
    'options_from_args',
    'configure_logging',
    'resolve_credentials',
    'cmd_run',
    'cmd_schedule',
    'cmd_tables',
]


if __name__ == '__main__':
    main()
