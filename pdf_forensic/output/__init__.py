"""Output generation modules for PDF forensic analysis.

This package provides the JSON exporter for detection reports.
"""

from pdf_forensic.output.json_export import (
    JSONExporter,
    ParsedReport,
    export_to_json,
    parse_report_json,
)

__all__ = [
    # JSON Export
    "JSONExporter",
    "ParsedReport",
    "export_to_json",
    "parse_report_json",
]
