"""JSON export functionality for detection reports.

This module serializes comparison and single-document reports into the
camelCase report layout (``generatedAt``, ``riskScore``, ``findings`` ...),
and reads an exported comparison report back for verification.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pdf_forensic.models import (
    DetectionReport,
    ExternalSignals,
    ExternalToolsSummary,
    FileReference,
    Finding,
    RiskLevel,
    SingleDocumentReport,
    TamperingAnalysis,
)

REPORT_FORMAT_VERSION = "1.0"

Report = Union[DetectionReport, SingleDocumentReport]


class ForensicJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for forensic report data types.

    Handles serialization of:
    - datetime objects (ISO 8601 format)
    - UUID objects (string representation)
    - Path objects (string representation)
    - Enum values (value extraction)
    - Pydantic models (dict conversion)
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, Path):
            return str(obj)
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        return super().default(obj)


def _timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def file_to_dict(file: FileReference) -> Dict[str, Any]:
    return {
        "name": file.name,
        "path": file.path,
        "size": file.size,
        "sizeFormatted": file.formatted_size,
        "checksum": file.checksum,
    }


def finding_to_dict(finding: Finding) -> Dict[str, Any]:
    """Optional fields are omitted when absent."""
    data: Dict[str, Any] = {
        "category": finding.category.value,
        "severity": finding.severity.value,
        "title": finding.title,
        "description": finding.description,
    }
    if finding.details is not None:
        data["details"] = dict(finding.details)
    if finding.page_number is not None:
        data["pageNumber"] = finding.page_number
    return data


def tampering_to_dict(analysis: TamperingAnalysis) -> Dict[str, Any]:
    return {
        "score": analysis.score,
        "likelihood": analysis.likelihood.value,
        "summary": analysis.summary,
        "indicators": [
            {
                "type": indicator.type.value,
                "category": indicator.category.value,
                "severity": indicator.severity.value,
                "title": indicator.title,
                "description": indicator.description,
                "weight": indicator.weight,
                **({"details": dict(indicator.details)} if indicator.details else {}),
            }
            for indicator in analysis.indicators
        ],
    }


def signals_to_dict(signals: ExternalSignals) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "fonts": sorted({f.name for f in signals.fonts}),
        "embeddedDocuments": [d.filename for d in signals.embedded_documents],
        "gpsLocations": [g.coordinate_string for g in signals.gps_locations],
        "suspiciousFindings": signals.suspicious_findings(),
        "errors": list(signals.errors),
    }
    if signals.object_info is not None:
        data["incrementalUpdates"] = signals.object_info.update_count
        data["freeObjects"] = signals.object_info.free_objects
    if signals.xmp_metadata is not None:
        data["xmpEditHistory"] = len(signals.xmp_metadata.edit_history)
    return data


def external_tools_to_dict(summary: ExternalToolsSummary) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "mutoolAvailable": summary.tools.has_mutool,
        "exiftoolAvailable": summary.tools.has_exiftool,
        "suspiciousFindings": list(summary.suspicious_findings),
    }
    if summary.missing_tools_message:
        data["missingToolsMessage"] = summary.missing_tools_message
    if summary.font_comparison is not None:
        data["addedFonts"] = list(summary.font_comparison.added_fonts)
        data["removedFonts"] = list(summary.font_comparison.removed_fonts)
    if summary.resource_comparison is not None:
        data["pagesWithResourceDifferences"] = list(summary.resource_comparison.pages_with_differences)
    return data


class JSONExporter:
    """Exporter for detection reports to JSON format.

    Keys are sorted and the output is indented by default so that two
    exports of the same report are byte-identical apart from
    ``generatedAt``.
    """

    def __init__(self, indent: int = 2, sort_keys: bool = True):
        """Initialize the JSON exporter.

        Args:
            indent: Number of spaces for indentation (default: 2)
            sort_keys: Whether to sort keys alphabetically (default: True)
        """
        self.indent = indent
        self.sort_keys = sort_keys

    def comparison_to_dict(self, report: DetectionReport, generated_at: Optional[datetime] = None) -> dict:
        data: Dict[str, Any] = {
            "generatedAt": _timestamp(generated_at or datetime.now(timezone.utc)),
            "version": REPORT_FORMAT_VERSION,
            "riskScore": report.risk_score,
            "riskLevel": report.risk_level.value,
            "originalFile": file_to_dict(report.original_file),
            "comparisonFile": file_to_dict(report.comparison_file),
            "textSimilarity": report.text_comparison.overall_similarity,
            "visualSimilarity": report.visual_comparison.average_ssim,
            "findings": [finding_to_dict(f) for f in report.findings],
            "metadata": {
                "pdfMetadataMatch": report.metadata_comparison.pdf_metadata_match,
                "fileInfoMatch": report.metadata_comparison.file_info_match,
                "timestampAnomalies": report.metadata_comparison.timestamp_anomalies,
                "differenceCount": report.metadata_comparison.difference_count,
            },
        }
        if report.tampering_analysis is not None:
            data["tampering"] = tampering_to_dict(report.tampering_analysis)
        if report.external_tools is not None:
            data["externalTools"] = external_tools_to_dict(report.external_tools)
        return data

    def document_to_dict(self, report: SingleDocumentReport, generated_at: Optional[datetime] = None) -> dict:
        metadata = report.metadata
        data: Dict[str, Any] = {
            "generatedAt": _timestamp(generated_at or datetime.now(timezone.utc)),
            "version": REPORT_FORMAT_VERSION,
            "riskScore": report.risk_score,
            "riskLevel": report.risk_level.value,
            "file": file_to_dict(report.file),
            "pageCount": report.page_count,
            "findings": [finding_to_dict(f) for f in report.findings],
            "metadata": {
                "title": metadata.title,
                "author": metadata.author,
                "creator": metadata.creator,
                "producer": metadata.producer,
                "creationDate": metadata.creation_date,
                "modificationDate": metadata.modification_date,
                "pdfVersion": metadata.version,
                "incrementalUpdates": metadata.incremental_updates,
                "hasJavaScript": metadata.has_javascript,
                "hasDigitalSignature": metadata.has_digital_signature,
            },
            "tampering": tampering_to_dict(report.tampering_analysis),
        }
        if report.external_signals is not None:
            data["externalTools"] = signals_to_dict(report.external_signals)
        if report.missing_tools_message:
            data["missingToolsMessage"] = report.missing_tools_message
        return data

    def to_dict(self, report: Report, generated_at: Optional[datetime] = None) -> dict:
        """Convert a comparison or single-document report to a dictionary."""
        if isinstance(report, SingleDocumentReport):
            return self.document_to_dict(report, generated_at)
        return self.comparison_to_dict(report, generated_at)

    def to_json(self, report: Report, generated_at: Optional[datetime] = None) -> str:
        """Convert a report to a JSON string.

        Args:
            report: DetectionReport or SingleDocumentReport
            generated_at: Export time (defaults to now)

        Returns:
            JSON string representation of the report
        """
        return json.dumps(
            self.to_dict(report, generated_at),
            cls=ForensicJSONEncoder,
            indent=self.indent,
            sort_keys=self.sort_keys,
        )

    def to_file(
        self,
        report: Report,
        file_path: Union[str, Path],
        encoding: str = "utf-8",
    ) -> None:
        """Save a report to a JSON file.

        Args:
            report: Report to save
            file_path: Path to the output file
            encoding: File encoding (default: utf-8)
        """
        file_path = Path(file_path)

        # Create parent directories if they don't exist
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding=encoding) as f:
            f.write(self.to_json(report))


def export_to_json(
    report: Report,
    output_path: Optional[Union[str, Path]] = None,
    indent: int = 2,
) -> str:
    """Convenience function to export a report to JSON.

    Args:
        report: Report to export
        output_path: Optional path to save JSON file
        indent: Number of spaces for indentation (default: 2)

    Returns:
        JSON string representation of the report
    """
    exporter = JSONExporter(indent=indent)
    json_str = exporter.to_json(report)

    if output_path:
        exporter.to_file(report, output_path)

    return json_str


@dataclass
class ParsedReport:
    """Fields of an exported comparison report read back from JSON."""
    version: str
    generated_at: str
    risk_score: float
    risk_level: RiskLevel
    original_checksum: str
    comparison_checksum: str
    text_similarity: float
    visual_similarity: float
    findings: List[Finding] = field(default_factory=list)


def parse_report_json(text: str) -> ParsedReport:
    """
    Read an exported comparison report.

    Args:
        text: JSON produced by JSONExporter

    Returns:
        ParsedReport

    Raises:
        ValueError: If the text is not JSON or lacks required keys
    """
    data = json.loads(text)
    try:
        findings = [
            Finding(
                category=item["category"],
                severity=item["severity"],
                title=item["title"],
                description=item["description"],
                details=item.get("details"),
                page_number=item.get("pageNumber"),
            )
            for item in data["findings"]
        ]
        return ParsedReport(
            version=data["version"],
            generated_at=data["generatedAt"],
            risk_score=float(data["riskScore"]),
            risk_level=RiskLevel(data["riskLevel"]),
            original_checksum=data["originalFile"]["checksum"],
            comparison_checksum=data["comparisonFile"]["checksum"],
            text_similarity=float(data["textSimilarity"]),
            visual_similarity=float(data["visualSimilarity"]),
            findings=findings,
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Not a comparison report: missing {e}") from e
