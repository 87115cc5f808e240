"""
Command-line interface for table merging.

Available commands:
- run: Merge table A and table B into table C
- report: Render a saved report
"""

import sys

from utils.logging import setup_logging

from .commands import cmd_report, cmd_run
from .config import config_from_args
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the table-merge CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file, json_format=args.log_json)

    if args.command == 'run':
        sys.exit(cmd_run(args))
    elif args.command == 'report':
        sys.exit(cmd_report(args))
    else:
        parser.print_help()
        sys.exit(1)


__all__ = [
    'main',
    'cmd_run',
    'cmd_report',
    'config_from_args',
    'create_parser',
]


if __name__ == '__main__':
    main()
