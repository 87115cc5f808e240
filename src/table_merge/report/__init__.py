"""
Merge report rendering.
"""

from .formatters import (
    export_report_csv,
    export_report_json,
    format_report_console,
    load_report_json,
)

__all__ = [
    'format_report_console',
    'export_report_json',
    'export_report_csv',
    'load_report_json',
]
