"""
Report formatting and export utilities.

Renders a ``MergeReport`` as console text, JSON or CSV, and loads a JSON
report back for re-rendering.
"""

import csv
import json

from ..models import MergeReport

REPORT_ROWS = (
    ("Total records in A", "total_a"),
    ("Total records in B", "total_b"),
    ("Records written to C", "total_c"),
    ("Exact matches", "exact_match"),
    ("Only in A", "only_in_a"),
    ("Only in B", "only_in_b"),
    ("Same key, different values", "conflict"),
    ("  resolved toward A", "conflict_use_a"),
    ("  resolved toward B", "conflict_use_b"),
    ("Fields auto-filled from B", "null_auto_filled"),
)


def export_report_json(report: MergeReport, output_path: str) -> None:
    """
    Export report to JSON file

    Args:
        report: Finalized merge report
        output_path: Path to output file
    """
    with open(output_path, 'w') as f:
        json.dump(report.to_dict(), f, indent=2)


def load_report_json(input_path: str) -> MergeReport:
    """Load a report previously written by ``export_report_json``."""
    with open(input_path) as f:
        return MergeReport.from_dict(json.load(f))


def export_report_csv(report: MergeReport, output_path: str) -> None:
    """
    Export report to CSV file, one counter per row

    Args:
        report: Finalized merge report
        output_path: Path to output file
    """
    data = report.to_dict()
    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(["Metric", "Value"])
        for _, name in REPORT_ROWS:
            writer.writerow([name, data[name]])
        writer.writerow(["started_at", data["started_at"] or ""])
        writer.writerow(["finished_at", data["finished_at"] or ""])
        writer.writerow(["duration_seconds", f"{data['duration_seconds']:.3f}"])


def format_report_console(report: MergeReport) -> str:
    """
    Format report for console output

    Returns:
        Formatted string for console display
    """
    data = report.to_dict()
    lines = []

    lines.append("=" * 48)
    lines.append("MERGE REPORT")
    lines.append("=" * 48)
    for label, name in REPORT_ROWS[:3]:
        lines.append(f"{label + ':':<32}{data[name]:>12,}")
    lines.append("-" * 48)
    for label, name in REPORT_ROWS[3:]:
        lines.append(f"{label + ':':<32}{data[name]:>12,}")
    lines.append("-" * 48)
    lines.append(f"Started: {data['started_at'] or '-'}")
    lines.append(f"{'Duration:':<32}{data['duration_seconds']:>11.2f}s")
    lines.append("=" * 48)

    return "\n".join(lines)
