"""
Command-line argument parser configuration.

Every merge option can also come from a MERGE_* environment variable; see
``config.py``.
"""

import argparse


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="table-merge",
        description="Reconcile two snapshots of a table into a provenance-tagged result table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Merge two imports keyed by customer code, preferring table A on conflicts
  table-merge run --dsn postgresql://localhost/warehouse \\
      --table-a customers_v1 --table-b customers_v2 --table-c customers_merged \\
      --key-fields code

  # Composite key, ignore audit columns, decide every conflict interactively
  table-merge run --table-a orders_a --table-b orders_b --table-c orders_c \\
      --key-fields order_no,line_no --ignore-a updated_at --ignore-b updated_at \\
      --strategy interactive

  # Save the run report as JSON and render it again later
  table-merge run ... --format json --output report.json
  table-merge report --input report.json
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        help='Emit logs as JSON'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file (rotated)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Merge table A and table B into table C')
    run_parser.add_argument('--dsn', help='PostgreSQL connection string (env: MERGE_DSN)')
    run_parser.add_argument('--table-a', help='Primary table; defines the output schema (env: MERGE_TABLE_A)')
    run_parser.add_argument('--table-b', help='Table compared against A (env: MERGE_TABLE_B)')
    run_parser.add_argument('--table-c', help='Output table, recreated on every run (env: MERGE_TABLE_C)')
    run_parser.add_argument(
        '--key-fields',
        help='Comma-separated key fields identifying the same entity (env: MERGE_KEY_FIELDS)'
    )
    run_parser.add_argument(
        '--ignore-a',
        help='Comma-separated A fields excluded from comparison but still written (env: MERGE_IGNORE_FIELDS_A)'
    )
    run_parser.add_argument(
        '--ignore-b',
        help='Comma-separated B fields excluded from comparison and never written (env: MERGE_IGNORE_FIELDS_B)'
    )
    run_parser.add_argument(
        '--strategy',
        choices=['prefer-a', 'prefer-b', 'interactive'],
        help='How contested fields are resolved (default: prefer-a, env: MERGE_STRATEGY)'
    )
    run_parser.add_argument(
        '--batch-size',
        type=int,
        help='Rows per insert statement (default: 500, env: MERGE_BATCH_SIZE)'
    )
    run_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Report format (default: console)'
    )
    run_parser.add_argument(
        '--output',
        help='Report output path (required for json and csv formats)'
    )
    run_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port while running'
    )
    run_parser.add_argument(
        '--otlp-endpoint',
        help='Export trace spans to this OTLP collector (e.g., localhost:4317)'
    )

    # ========== Report command ==========
    report_parser = subparsers.add_parser('report', help='Render a saved JSON report')
    report_parser.add_argument(
        '--input',
        required=True,
        help='Input JSON report file'
    )
    report_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    report_parser.add_argument(
        '--output',
        help='Output file path (required for json and csv formats)'
    )

    return parser
