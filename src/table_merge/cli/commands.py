"""
CLI command implementations.

- run: execute a merge and report on it
- report: render a report saved by a previous run
"""

import argparse
import logging
from pathlib import Path

from utils.metrics import MergeMetrics, MetricsPublisher
from utils.tracing import initialize_tracing, shutdown_tracing

from ..engine import MergeEngine
from ..errors import ConfigError, MergeError
from ..models import MergeReport
from ..report import (
    export_report_csv,
    export_report_json,
    format_report_console,
    load_report_json,
)
from .config import config_from_args

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _emit_report(report: MergeReport, fmt: str, output: str | None) -> None:
    if fmt == "console":
        text = format_report_console(report)
        if output:
            Path(output).write_text(text + "\n")
            logger.info(f"Report saved to {output}")
        else:
            print(text)
        return

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "json":
        export_report_json(report, str(output_path))
    else:
        export_report_csv(report, str(output_path))
    logger.info(f"Report saved to {output_path}")


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run a merge

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit code
    """
    try:
        config = config_from_args(args)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG

    if args.format != "console" and not args.output:
        logger.error(f"--output is required for {args.format} format")
        return EXIT_CONFIG

    if args.otlp_endpoint:
        initialize_tracing(otlp_endpoint=args.otlp_endpoint)

    metrics = MergeMetrics()
    if args.metrics_port:
        MetricsPublisher(port=args.metrics_port).start()

    try:
        report = MergeEngine(config, metrics=metrics).run()
    except MergeError as e:
        logger.error(f"Merge failed: {e}")
        return EXIT_FAILED
    finally:
        shutdown_tracing()

    _emit_report(report, args.format, args.output)
    return EXIT_OK


def cmd_report(args: argparse.Namespace) -> int:
    """
    Render a report from a previous run's JSON file

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit code
    """
    if args.format != "console" and not args.output:
        logger.error(f"Output file required for {args.format} format")
        return EXIT_CONFIG

    try:
        report = load_report_json(args.input)
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Failed to load report {args.input}: {e}")
        return EXIT_FAILED

    _emit_report(report, args.format, args.output)
    return EXIT_OK
