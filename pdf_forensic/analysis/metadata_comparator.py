"""Metadata comparison between two PDF documents.

Compares the document information dictionary, byte-level internals, the
font inventory and file-system information field by field. Each difference
is marked significant or not; significant differences become findings.
Timestamps of the comparison document are checked for anomalies.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from pdf_forensic.models import (
    FileInfo,
    Finding,
    FindingCategory,
    FontInfo,
    MetadataComparisonSummary,
    PDFMetadata,
    Severity,
)

logger = logging.getLogger(__name__)

OBJECT_COUNT_TOLERANCE = 10
FILE_SIZE_TOLERANCE = 1024
CREATION_GAP_SECONDS = 86400
FILESYSTEM_GAP_SECONDS = 3600

HIGH_SEVERITY_FIELDS = {
    "Producer",
    "Creator",
    "Document ID (Permanent)",
    "Document ID (Instance)",
    "Fonts Added",
    "Fonts Removed",
}
MEDIUM_SEVERITY_FIELDS = {
    "PDF Version",
    "Encrypted",
    "Incremental Updates",
    "Contains JavaScript",
    "Digital Signature",
    "XRef Type",
    "Object Count",
    "Font Count",
}
INFO_SEVERITY_FIELDS = {"Was Quarantined", "Downloaded From", "Quarantine Source"}


@dataclass(frozen=True)
class MetadataDifference:
    field: str
    original_value: Optional[str]
    comparison_value: Optional[str]
    is_significant: bool


@dataclass
class TimestampAnalysis:
    original_creation: Optional[datetime] = None
    original_modification: Optional[datetime] = None
    comparison_creation: Optional[datetime] = None
    comparison_modification: Optional[datetime] = None
    has_anomalies: bool = False
    anomaly_description: Optional[str] = None


@dataclass
class MetadataComparisonResult:
    pdf_metadata_match: bool
    file_info_match: bool
    timestamp_analysis: TimestampAnalysis
    differences: List[MetadataDifference] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)

    @property
    def overall_match(self) -> bool:
        return self.pdf_metadata_match and self.file_info_match and not self.timestamp_analysis.has_anomalies

    @property
    def significant_differences(self) -> List[MetadataDifference]:
        return [d for d in self.differences if d.is_significant]

    def to_summary(self) -> MetadataComparisonSummary:
        return MetadataComparisonSummary(
            pdf_metadata_match=self.pdf_metadata_match,
            file_info_match=self.file_info_match,
            timestamp_anomalies=self.timestamp_analysis.has_anomalies,
            difference_count=len(self.differences),
        )


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _field_severity(name: str) -> Severity:
    if name in HIGH_SEVERITY_FIELDS:
        return Severity.HIGH
    if name.startswith("Font '") and name.endswith("Embedding"):
        return Severity.HIGH
    if name.startswith("Font '") and name.endswith("Type"):
        return Severity.MEDIUM
    if name in MEDIUM_SEVERITY_FIELDS:
        return Severity.MEDIUM
    if name in INFO_SEVERITY_FIELDS:
        return Severity.INFO
    return Severity.LOW


class MetadataComparator:
    """Field-by-field comparison of PDFMetadata and FileInfo."""

    def compare(
        self,
        original_metadata: PDFMetadata,
        original_file: FileInfo,
        comparison_metadata: PDFMetadata,
        comparison_file: FileInfo,
        now: Optional[datetime] = None,
    ) -> MetadataComparisonResult:
        """
        Compare two documents' metadata.

        Args:
            original_metadata: Metadata of the reference document
            original_file: File info of the reference document
            comparison_metadata: Metadata of the questioned document
            comparison_file: File info of the questioned document
            now: Reference time for future-date checks (defaults to UTC now)

        Returns:
            MetadataComparisonResult with differences and findings
        """
        pdf_diffs = self.compare_pdf_metadata(original_metadata, comparison_metadata)
        file_diffs = self.compare_file_info(original_file, comparison_file)
        timestamps = self.analyze_timestamps(
            original_metadata, comparison_metadata, comparison_file, now=now
        )

        differences = pdf_diffs + file_diffs
        result = MetadataComparisonResult(
            pdf_metadata_match=not any(d.is_significant for d in pdf_diffs),
            file_info_match=not any(d.is_significant for d in file_diffs),
            timestamp_analysis=timestamps,
            differences=differences,
            findings=self.generate_findings(differences, timestamps),
        )
        logger.debug(
            f"Metadata comparison: {len(differences)} differences, "
            f"{len(result.significant_differences)} significant"
        )
        return result

    def compare_pdf_metadata(self, original: PDFMetadata, comparison: PDFMetadata) -> List[MetadataDifference]:
        diffs = []

        def add(name: str, a, b, significant: bool) -> None:
            if a != b:
                diffs.append(MetadataDifference(name, a, b, significant))

        add("Title", original.title, comparison.title, False)
        add("Author", original.author, comparison.author, True)
        add("Creator", original.creator, comparison.creator, True)
        add("Producer", original.producer, comparison.producer, True)
        add("PDF Version", original.version, comparison.version, True)
        add("Encrypted", _flag(original.is_encrypted), _flag(comparison.is_encrypted), True)

        orig_id = original.document_id
        comp_id = comparison.document_id
        add(
            "Document ID (Permanent)",
            orig_id.permanent if orig_id else None,
            comp_id.permanent if comp_id else None,
            True,
        )
        add(
            "Document ID (Instance)",
            orig_id.changing if orig_id else None,
            comp_id.changing if comp_id else None,
            True,
        )

        add("Linearized", _flag(original.is_linearized), _flag(comparison.is_linearized), False)
        add(
            "Incremental Updates",
            str(original.incremental_updates),
            str(comparison.incremental_updates),
            True,
        )
        if abs(original.object_count - comparison.object_count) > OBJECT_COUNT_TOLERANCE:
            diffs.append(MetadataDifference(
                "Object Count", str(original.object_count), str(comparison.object_count), True
            ))
        add("Contains JavaScript", _flag(original.has_javascript), _flag(comparison.has_javascript), True)
        add(
            "Digital Signature",
            _flag(original.has_digital_signature),
            _flag(comparison.has_digital_signature),
            True,
        )

        diffs.extend(self.compare_fonts(original.fonts, comparison.fonts))

        add("XRef Type", original.xref_type, comparison.xref_type, True)
        add("PDF Conformance", original.pdf_conformance, comparison.pdf_conformance, False)
        return diffs

    def compare_fonts(self, original: List[FontInfo], comparison: List[FontInfo]) -> List[MetadataDifference]:
        diffs = []
        orig_by_name = {}
        for font in original:
            orig_by_name.setdefault(font.name, font)
        comp_by_name = {}
        for font in comparison:
            comp_by_name.setdefault(font.name, font)

        removed = sorted(set(orig_by_name) - set(comp_by_name))
        if removed:
            diffs.append(MetadataDifference("Fonts Removed", ", ".join(removed), None, True))

        added = sorted(set(comp_by_name) - set(orig_by_name))
        if added:
            diffs.append(MetadataDifference("Fonts Added", None, ", ".join(added), True))

        for name in sorted(set(orig_by_name) & set(comp_by_name)):
            orig_font = orig_by_name[name]
            comp_font = comp_by_name[name]

            if orig_font.is_embedded != comp_font.is_embedded:
                diffs.append(MetadataDifference(
                    f"Font '{name}' Embedding",
                    "embedded" if orig_font.is_embedded else "not embedded",
                    "embedded" if comp_font.is_embedded else "not embedded",
                    True,
                ))

            if orig_font.type and comp_font.type and orig_font.type != comp_font.type:
                diffs.append(MetadataDifference(f"Font '{name}' Type", orig_font.type, comp_font.type, True))

            if orig_font.is_subset != comp_font.is_subset:
                diffs.append(MetadataDifference(
                    f"Font '{name}' Subsetting",
                    "subset" if orig_font.is_subset else "full",
                    "subset" if comp_font.is_subset else "full",
                    False,
                ))

        if len(original) != len(comparison):
            diffs.append(MetadataDifference("Font Count", str(len(original)), str(len(comparison)), True))

        return diffs

    def compare_file_info(self, original: FileInfo, comparison: FileInfo) -> List[MetadataDifference]:
        diffs = []

        if original.file_size != comparison.file_size:
            diffs.append(MetadataDifference(
                "File Size",
                original.formatted_size,
                comparison.formatted_size,
                abs(original.file_size - comparison.file_size) > FILE_SIZE_TOLERANCE,
            ))

        if original.was_quarantined != comparison.was_quarantined:
            diffs.append(MetadataDifference(
                "Was Quarantined",
                _flag(original.was_quarantined),
                _flag(comparison.was_quarantined),
                True,
            ))

        if original.quarantine_source != comparison.quarantine_source:
            diffs.append(MetadataDifference(
                "Quarantine Source", original.quarantine_source, comparison.quarantine_source, True
            ))

        orig_download = ", ".join(original.downloaded_from) if original.downloaded_from else None
        comp_download = ", ".join(comparison.downloaded_from) if comparison.downloaded_from else None
        if orig_download != comp_download:
            diffs.append(MetadataDifference("Downloaded From", orig_download, comp_download, True))

        return diffs

    def analyze_timestamps(
        self,
        original: PDFMetadata,
        comparison: PDFMetadata,
        comparison_file: FileInfo,
        now: Optional[datetime] = None,
    ) -> TimestampAnalysis:
        """
        Check the comparison document's dates for anomalies.

        When several checks fire, the description of the last one is kept.
        """
        now = now or datetime.now(timezone.utc)
        analysis = TimestampAnalysis(
            original_creation=original.creation_date,
            original_modification=original.modification_date,
            comparison_creation=comparison.creation_date,
            comparison_modification=comparison.modification_date,
        )

        def anomaly(description: str) -> None:
            analysis.has_anomalies = True
            analysis.anomaly_description = description

        comp_create = comparison.creation_date
        comp_mod = comparison.modification_date

        if comp_create and comp_mod and comp_create > comp_mod:
            anomaly("Creation date is after modification date")

        if comp_create and comp_create > now:
            anomaly("Creation date is in the future")
        if comp_mod and comp_mod > now:
            anomaly("Modification date is in the future")

        if original.creation_date and comp_create:
            gap = abs((original.creation_date - comp_create).total_seconds())
            if gap > CREATION_GAP_SECONDS:
                anomaly("Creation dates differ by more than 1 day")

        if comp_mod and comparison_file.modification_date:
            gap = abs((comp_mod - comparison_file.modification_date).total_seconds())
            if gap > FILESYSTEM_GAP_SECONDS:
                anomaly("PDF metadata date differs from file system date")

        return analysis

    def generate_findings(
        self,
        differences: List[MetadataDifference],
        timestamps: TimestampAnalysis,
    ) -> List[Finding]:
        findings = []

        for diff in differences:
            if not diff.is_significant:
                continue

            title = f"{diff.field} Mismatch"
            description = f"The {diff.field.lower()} differs between documents"

            if diff.field == "Contains JavaScript":
                if diff.comparison_value == "true":
                    title = "JavaScript Added"
                    description = "The comparison document contains JavaScript that the original does not"
                else:
                    title = "JavaScript Removed"
                    description = "JavaScript present in original was removed from comparison"
            elif diff.field == "Digital Signature":
                if diff.comparison_value == "true":
                    title = "Digital Signature Added"
                    description = "The comparison document has a digital signature"
                else:
                    title = "Digital Signature Removed"
                    description = "Digital signature present in original was removed"
            elif diff.field == "Incremental Updates":
                title = "Incremental Update Count Differs"
                description = "Different number of modification layers detected"
            elif diff.field == "Document ID (Permanent)":
                title = "Different Document Origin"
                description = "Documents have different permanent IDs, suggesting different origins"

            findings.append(Finding(
                category=FindingCategory.METADATA,
                severity=_field_severity(diff.field),
                title=title,
                description=description,
                details={
                    "Original": diff.original_value if diff.original_value is not None else "(none)",
                    "Comparison": diff.comparison_value if diff.comparison_value is not None else "(none)",
                },
            ))

        if timestamps.has_anomalies and timestamps.anomaly_description:
            findings.append(Finding(
                category=FindingCategory.TIMESTAMP,
                severity=Severity.HIGH,
                title="Timestamp Anomaly Detected",
                description=timestamps.anomaly_description,
            ))

        return findings
