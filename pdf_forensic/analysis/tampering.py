"""
Single-document tampering analysis.

Derives weighted TamperingIndicators from one document's metadata, file
information, forensic facts and (optional) external tool signals. Each
sub-analysis is a separate method and they always run in the same order:
structure, dates, signatures, hidden content, tool chain, metadata, security.

The analyzer holds no state; analysing the same inputs twice yields the
same indicators.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pdf_forensic.models import (
    ExternalSignals,
    FileInfo,
    ForensicFacts,
    PDFMetadata,
    Severity,
    TamperingAnalysis,
    TamperingIndicator,
    TamperingIndicatorType,
)
from pdf_forensic.parsers.timestamp import format_interval

logger = logging.getLogger(__name__)

MODIFICATION_GAP_SECONDS = 60
LONG_GAP_SECONDS = 86400
FILESYSTEM_GAP_SECONDS = 3600
HIDDEN_DETAIL_LIMIT = 10
LAYER_DETAIL_LIMIT = 5
XMP_DETAIL_LIMIT = 5
GPS_DETAIL_LIMIT = 3

SUSPICIOUS_PRODUCERS = {"pdf", "unknown", "none", ""}


def _display(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


class TamperingAnalyzer:
    """Builds a TamperingAnalysis for one document."""

    def analyze(
        self,
        metadata: PDFMetadata,
        file_info: FileInfo,
        forensics: ForensicFacts,
        external: Optional[ExternalSignals] = None,
        now: Optional[datetime] = None,
    ) -> TamperingAnalysis:
        """
        Run every sub-analysis.

        Args:
            metadata: Document metadata
            file_info: File-system information
            forensics: Forensic facts from the extractor
            external: External tool signals, if gathered
            now: Reference time for future-date checks (defaults to UTC now)

        Returns:
            TamperingAnalysis with indicators in sub-analysis order
        """
        now = now or datetime.now(timezone.utc)
        indicators: List[TamperingIndicator] = []
        indicators.extend(self.analyze_structure(metadata, external))
        indicators.extend(self.analyze_dates(metadata, file_info, external, now))
        indicators.extend(self.analyze_signatures(forensics))
        indicators.extend(self.analyze_hidden_content(forensics))
        indicators.extend(self.analyze_tool_chain(metadata))
        indicators.extend(self.analyze_metadata(metadata, external))
        indicators.extend(self.analyze_security(metadata, external))

        analysis = TamperingAnalysis(indicators=indicators)
        logger.debug(f"Tampering score {analysis.score:.1f} from {len(indicators)} indicators")
        return analysis

    def analyze_structure(
        self,
        metadata: PDFMetadata,
        external: Optional[ExternalSignals],
    ) -> List[TamperingIndicator]:
        indicators = []

        if metadata.incremental_updates > 0:
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.INCREMENTAL_UPDATES,
                severity=Severity.HIGH if metadata.incremental_updates > 3 else Severity.MEDIUM,
                title="Incremental Updates Detected",
                description=(
                    f"Document was modified {metadata.incremental_updates} time(s) "
                    "after initial creation"
                ),
                details={"Update Count": str(metadata.incremental_updates)},
            ))

        object_info = external.object_info if external else None
        if object_info and object_info.free_objects > 0:
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.DELETED_OBJECTS,
                severity=Severity.HIGH if object_info.free_objects > 10 else Severity.MEDIUM,
                title="Deleted Objects Found",
                description=(
                    f"{object_info.free_objects} object(s) were deleted - "
                    "content may be recoverable"
                ),
                details={
                    "Deleted Objects": str(object_info.free_objects),
                    "Total Objects": str(object_info.object_count),
                    "Active Objects": str(object_info.active_objects),
                },
            ))

        if object_info and object_info.update_count > 1:
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.MULTIPLE_XREF_TABLES,
                severity=Severity.MEDIUM,
                title="Multiple Cross-Reference Tables",
                description=(
                    f"Document contains {object_info.update_count} XRef sections "
                    "indicating modifications"
                ),
                details={"XRef Sections": str(object_info.update_count)},
            ))

        return indicators

    def analyze_dates(
        self,
        metadata: PDFMetadata,
        file_info: FileInfo,
        external: Optional[ExternalSignals],
        now: datetime,
    ) -> List[TamperingIndicator]:
        indicators = []
        created = metadata.creation_date
        modified = metadata.modification_date

        if created and modified:
            gap = (modified - created).total_seconds()
            if gap > MODIFICATION_GAP_SECONDS:
                interval = format_interval(gap)
                indicators.append(TamperingIndicator(
                    type=TamperingIndicatorType.DATE_DISCREPANCY,
                    severity=Severity.MEDIUM if gap > LONG_GAP_SECONDS else Severity.LOW,
                    title="Creation/Modification Date Discrepancy",
                    description=f"Document was modified {interval} after creation",
                    details={
                        "Created": _display(created),
                        "Modified": _display(modified),
                        "Time Difference": interval,
                    },
                ))

            if created > now or modified > now:
                indicators.append(TamperingIndicator(
                    type=TamperingIndicatorType.FUTURE_DATE,
                    severity=Severity.HIGH,
                    title="Future Date Detected",
                    description="Document contains dates in the future - possible clock manipulation",
                    details={
                        "Created": _display(created),
                        "Modified": _display(modified),
                        "Current Time": _display(now),
                    },
                ))

        if modified and file_info.modification_date:
            gap = abs((modified - file_info.modification_date).total_seconds())
            if gap > FILESYSTEM_GAP_SECONDS:
                indicators.append(TamperingIndicator(
                    type=TamperingIndicatorType.METADATA_DATE_MISMATCH,
                    severity=Severity.MEDIUM,
                    title="File System / PDF Date Mismatch",
                    description="PDF metadata date doesn't match file system modification date",
                    details={
                        "PDF Modified": _display(modified),
                        "File Modified": _display(file_info.modification_date),
                    },
                ))

        history = external.version_history if external else None
        if history and history.date_discrepancy:
            details: Dict[str, str] = {}
            if history.create_date:
                details["Create Date"] = history.create_date
            if history.modify_date:
                details["Modify Date"] = history.modify_date
            if history.metadata_date:
                details["Metadata Date"] = history.metadata_date
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.METADATA_DATE_MISMATCH,
                severity=Severity.MEDIUM,
                title="Version History Date Discrepancy",
                description="Internal PDF dates are inconsistent",
                details=details,
            ))

        return indicators

    def analyze_signatures(self, forensics: ForensicFacts) -> List[TamperingIndicator]:
        indicators = []
        for sig in forensics.signatures:
            signer = sig.signer_name or "Unknown"
            if not sig.is_valid:
                indicators.append(TamperingIndicator(
                    type=TamperingIndicatorType.INVALID_SIGNATURE,
                    severity=Severity.CRITICAL,
                    title="Invalid Digital Signature",
                    description=(
                        f"Signature by '{signer}' failed validation - "
                        "document was modified after signing"
                    ),
                    details={"Signer": signer, "Status": "INVALID"},
                ))
            if not sig.covers_whole_document:
                indicators.append(TamperingIndicator(
                    type=TamperingIndicatorType.PARTIAL_SIGNATURE,
                    severity=Severity.HIGH,
                    title="Partial Signature Coverage",
                    description=(
                        "Signature does not cover entire document - "
                        "content may have been added after signing"
                    ),
                    details={"Signer": signer, "Coverage": "Partial"},
                ))
        return indicators

    def analyze_hidden_content(self, forensics: ForensicFacts) -> List[TamperingIndicator]:
        indicators = []

        hidden = forensics.hidden_content
        if hidden:
            details = {
                f"Item {i + 1}": f"{item.type.value} on page {item.page_number}"
                for i, item in enumerate(hidden[:HIDDEN_DETAIL_LIMIT])
            }
            if len(hidden) > HIDDEN_DETAIL_LIMIT:
                details["..."] = f"and {len(hidden) - HIDDEN_DETAIL_LIMIT} more"
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.HIDDEN_CONTENT,
                severity=Severity.MEDIUM,
                title="Hidden Content Detected",
                description=f"{len(hidden)} hidden element(s) found in document",
                details=details,
            ))

        hidden_layers = [layer for layer in forensics.layers if not layer.is_visible]
        if hidden_layers:
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.HIDDEN_LAYERS,
                severity=Severity.MEDIUM,
                title="Hidden Layers Present",
                description=f"{len(hidden_layers)} hidden layer(s) may contain concealed content",
                details={
                    f"Layer {i + 1}": layer.name
                    for i, layer in enumerate(hidden_layers[:LAYER_DETAIL_LIMIT])
                },
            ))

        improper = [r for r in forensics.redactions if r.has_hidden_content]
        if improper:
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.IMPROPER_REDACTION,
                severity=Severity.CRITICAL,
                title="Improper Redactions",
                description=(
                    f"{len(improper)} redaction(s) can be reversed - "
                    "hidden content is recoverable"
                ),
                details={f"Page {r.page_number}": "Content recoverable" for r in improper},
            ))

        return indicators

    def analyze_tool_chain(self, metadata: PDFMetadata) -> List[TamperingIndicator]:
        indicators = []
        creator = metadata.creator
        producer = metadata.producer
        if not creator or not producer:
            return indicators

        c = creator.lower()
        p = producer.lower()
        creator_is_word = "word" in c or "microsoft" in c
        producer_is_word = "word" in p or "microsoft" in p
        creator_is_adobe = "adobe" in c or "acrobat" in c or "indesign" in c
        producer_is_adobe = "adobe" in p or "acrobat" in p
        creator_is_office = "libreoffice" in c or "openoffice" in c

        if (
            (creator_is_word and producer_is_adobe)
            or (creator_is_adobe and producer_is_word)
            or (creator_is_office and producer_is_adobe)
        ):
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.MULTIPLE_TOOLS_USED,
                severity=Severity.INFO,
                title="Multiple Creation Tools",
                description="Document was created with one application and processed with another",
                details={"Creator": creator, "Producer": producer},
            ))

        if p in SUSPICIOUS_PRODUCERS or len(producer) < 3:
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.SUSPICIOUS_PRODUCER,
                severity=Severity.MEDIUM,
                title="Suspicious Producer Metadata",
                description="PDF producer field is generic or stripped - may indicate tampering",
                details={"Producer": producer},
            ))

        return indicators

    def analyze_metadata(
        self,
        metadata: PDFMetadata,
        external: Optional[ExternalSignals],
    ) -> List[TamperingIndicator]:
        indicators = []

        xmp = external.xmp_metadata if external else None
        if xmp and xmp.has_edit_history:
            count = len(xmp.edit_history)
            if count > 10:
                severity = Severity.HIGH
            elif count > 5:
                severity = Severity.MEDIUM
            else:
                severity = Severity.INFO

            details = {"Total Edits": str(count)}
            for i, entry in enumerate(xmp.edit_history[:XMP_DETAIL_LIMIT]):
                details[f"Edit {i + 1}"] = f"{entry.action} by {entry.software_agent}"
            if count > XMP_DETAIL_LIMIT:
                details["..."] = f"and {count - XMP_DETAIL_LIMIT} more"

            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.XMP_EDIT_HISTORY,
                severity=severity,
                title="XMP Edit History Present",
                description=f"{count} modification(s) recorded in XMP metadata",
                details=details,
            ))

        if not any([metadata.title, metadata.author, metadata.creator, metadata.producer]):
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.METADATA_STRIPPED,
                severity=Severity.MEDIUM,
                title="Metadata Appears Stripped",
                description="All standard metadata fields are empty - may indicate intentional removal",
            ))

        return indicators

    def analyze_security(
        self,
        metadata: PDFMetadata,
        external: Optional[ExternalSignals],
    ) -> List[TamperingIndicator]:
        indicators = []

        if metadata.has_javascript:
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.JAVASCRIPT,
                severity=Severity.HIGH,
                title="JavaScript Code Present",
                description="Document contains executable JavaScript - potential security risk",
            ))

        if metadata.embedded_file_count > 0:
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.EMBEDDED_FILES,
                severity=Severity.MEDIUM,
                title="Embedded Files Found",
                description=f"{metadata.embedded_file_count} file(s) embedded in document",
                details={"Count": str(metadata.embedded_file_count)},
            ))

        gps = external.gps_locations if external else []
        if gps:
            details = {"Locations Found": str(len(gps))}
            for i, location in enumerate(gps[:GPS_DETAIL_LIMIT]):
                details[f"Location {i + 1}"] = location.coordinate_string
            indicators.append(TamperingIndicator(
                type=TamperingIndicatorType.GPS_DATA,
                severity=Severity.MEDIUM,
                title="GPS Location Data",
                description="Geographic coordinates found in embedded content",
                details=details,
            ))

        return indicators
