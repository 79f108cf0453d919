"""
Pydantic data models for PDF forensic analysis.

This module defines the data structures shared by every stage of the
analysis pipeline: byte-level metadata, file information, per-document
forensic facts, external tool signals, findings, tampering indicators and
the final detection report.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


def format_size(size: int) -> str:
    """Format a byte count the way file browsers do (decimal units)."""
    if size < 1000:
        return f"{size} bytes"
    if size < 1000 ** 2:
        return f"{size / 1000:.0f} KB"
    if size < 1000 ** 3:
        return f"{size / 1000 ** 2:.1f} MB"
    return f"{size / 1000 ** 3:.2f} GB"


# ============================================================================
# Severity, findings and risk
# ============================================================================

class Severity(str, Enum):
    """Finding and indicator severity, in a fixed total order."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INFO = "Info"

    @property
    def weight(self) -> int:
        """Ordering weight used for sorting and risk scoring."""
        return SEVERITY_WEIGHTS[self]

    @property
    def multiplier(self) -> float:
        """Multiplier applied to a tampering indicator's base weight."""
        return SEVERITY_MULTIPLIERS[self]


SEVERITY_WEIGHTS: Dict[Severity, int] = {
    Severity.CRITICAL: 100,
    Severity.HIGH: 75,
    Severity.MEDIUM: 50,
    Severity.LOW: 25,
    Severity.INFO: 0,
}

SEVERITY_MULTIPLIERS: Dict[Severity, float] = {
    Severity.CRITICAL: 1.5,
    Severity.HIGH: 1.2,
    Severity.MEDIUM: 1.0,
    Severity.LOW: 0.6,
    Severity.INFO: 0.3,
}


class FindingCategory(str, Enum):
    """Area of the analysis a finding belongs to."""
    METADATA = "Metadata"
    TEXT = "Text"
    VISUAL = "Visual"
    STRUCTURE = "Structure"
    TIMESTAMP = "Timestamp"
    IMAGES = "Images"
    SIGNATURES = "Signatures"
    SECURITY = "Security"
    HIDDEN = "Hidden Content"
    LINKS = "Links"
    FORENSIC = "Forensic"


class Finding(BaseModel):
    """A single reportable observation produced by an analysis stage."""
    model_config = ConfigDict(frozen=True)

    category: FindingCategory = Field(..., description="Analysis area of the finding")
    severity: Severity = Field(..., description="Severity of the finding")
    title: str = Field(..., description="Short title")
    description: str = Field(..., description="Human-readable description")
    details: Optional[Dict[str, str]] = Field(None, description="Optional key/value evidence")
    page_number: Optional[int] = Field(None, description="1-based page number, if page-specific", ge=0)

    @property
    def weight(self) -> int:
        return self.severity.weight


def sort_by_severity(findings: List[Finding]) -> List[Finding]:
    """Return findings ordered by descending severity weight.

    The sort is stable: findings of equal severity keep their emission order.
    """
    return sorted(findings, key=lambda f: -f.severity.weight)


class RiskLevel(str, Enum):
    """Overall risk classification of a detection report."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    MINIMAL = "Minimal"

    @classmethod
    def from_score(cls, score: float) -> "RiskLevel":
        if score >= 70:
            return cls.HIGH
        if score >= 40:
            return cls.MEDIUM
        if score >= 15:
            return cls.LOW
        return cls.MINIMAL


# ============================================================================
# Tampering indicators
# ============================================================================

class IndicatorCategory(str, Enum):
    """Grouping of tampering indicator types."""
    STRUCTURE = "Structure"
    TIMESTAMPS = "Timestamps"
    SIGNATURES = "Signatures"
    HIDDEN_CONTENT = "Hidden Content"
    TOOL_CHAIN = "Tool Chain"
    METADATA = "Metadata"
    SECURITY = "Security"


class TamperingIndicatorType(str, Enum):
    """Closed set of tampering indicator kinds."""
    # Structure
    INCREMENTAL_UPDATES = "Incremental Updates"
    DELETED_OBJECTS = "Deleted Objects"
    MULTIPLE_XREF_TABLES = "Multiple XRef Tables"
    # Timestamps
    DATE_DISCREPANCY = "Date Discrepancy"
    METADATA_DATE_MISMATCH = "Metadata Date Mismatch"
    FUTURE_DATE = "Future Date"
    SUSPICIOUS_TIMESTAMP = "Suspicious Timestamp"
    # Signatures
    INVALID_SIGNATURE = "Invalid Signature"
    PARTIAL_SIGNATURE = "Partial Signature Coverage"
    SIGNATURE_AFTER_MODIFICATION = "Signature After Modification"
    # Hidden content
    HIDDEN_CONTENT = "Hidden Content"
    HIDDEN_LAYERS = "Hidden Layers"
    IMPROPER_REDACTION = "Improper Redaction"
    RECOVERABLE_CONTENT = "Recoverable Content"
    # Tool chain
    MULTIPLE_TOOLS_USED = "Multiple Tools Used"
    TOOL_MISMATCH = "Tool Mismatch"
    SUSPICIOUS_PRODUCER = "Suspicious Producer"
    # Metadata
    XMP_EDIT_HISTORY = "XMP Edit History"
    METADATA_STRIPPED = "Metadata Stripped"
    INCONSISTENT_METADATA = "Inconsistent Metadata"
    # Security
    JAVASCRIPT = "JavaScript Present"
    EMBEDDED_FILES = "Embedded Files"
    GPS_DATA = "GPS Location Data"

    @property
    def base_weight(self) -> float:
        return INDICATOR_PROFILES[self][0]

    @property
    def category(self) -> IndicatorCategory:
        return INDICATOR_PROFILES[self][1]


_T = TamperingIndicatorType
_C = IndicatorCategory

# (base weight, category) for every indicator type
INDICATOR_PROFILES: Dict[TamperingIndicatorType, Tuple[float, IndicatorCategory]] = {
    _T.INCREMENTAL_UPDATES: (20.0, _C.STRUCTURE),
    _T.DELETED_OBJECTS: (20.0, _C.STRUCTURE),
    _T.MULTIPLE_XREF_TABLES: (18.0, _C.STRUCTURE),
    _T.DATE_DISCREPANCY: (15.0, _C.TIMESTAMPS),
    _T.METADATA_DATE_MISMATCH: (15.0, _C.TIMESTAMPS),
    _T.FUTURE_DATE: (12.0, _C.TIMESTAMPS),
    _T.SUSPICIOUS_TIMESTAMP: (12.0, _C.TIMESTAMPS),
    _T.INVALID_SIGNATURE: (30.0, _C.SIGNATURES),
    _T.PARTIAL_SIGNATURE: (30.0, _C.SIGNATURES),
    _T.SIGNATURE_AFTER_MODIFICATION: (18.0, _C.SIGNATURES),
    _T.HIDDEN_CONTENT: (20.0, _C.HIDDEN_CONTENT),
    _T.HIDDEN_LAYERS: (12.0, _C.HIDDEN_CONTENT),
    _T.IMPROPER_REDACTION: (30.0, _C.HIDDEN_CONTENT),
    _T.RECOVERABLE_CONTENT: (12.0, _C.HIDDEN_CONTENT),
    _T.MULTIPLE_TOOLS_USED: (12.0, _C.TOOL_CHAIN),
    _T.TOOL_MISMATCH: (8.0, _C.TOOL_CHAIN),
    _T.SUSPICIOUS_PRODUCER: (8.0, _C.TOOL_CHAIN),
    _T.XMP_EDIT_HISTORY: (15.0, _C.METADATA),
    _T.METADATA_STRIPPED: (8.0, _C.METADATA),
    _T.INCONSISTENT_METADATA: (12.0, _C.METADATA),
    _T.JAVASCRIPT: (10.0, _C.SECURITY),
    _T.EMBEDDED_FILES: (10.0, _C.SECURITY),
    _T.GPS_DATA: (10.0, _C.SECURITY),
}

_unmapped = set(TamperingIndicatorType) - set(INDICATOR_PROFILES)
if _unmapped:
    raise RuntimeError(f"Indicator types without a weight profile: {sorted(t.name for t in _unmapped)}")


class TamperingLikelihood(str, Enum):
    """Bucketed interpretation of a tampering score."""
    NONE = "No Evidence"
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    VERY_HIGH = "Very High"

    @classmethod
    def from_score(cls, score: float) -> "TamperingLikelihood":
        if score < 5:
            return cls.NONE
        if score < 20:
            return cls.LOW
        if score < 45:
            return cls.MODERATE
        if score < 70:
            return cls.HIGH
        return cls.VERY_HIGH


class TamperingIndicator(BaseModel):
    """Weighted evidence that a document was modified."""
    model_config = ConfigDict(frozen=True)

    type: TamperingIndicatorType = Field(..., description="Indicator kind")
    severity: Severity = Field(..., description="Indicator severity")
    title: str = Field(..., description="Short title")
    description: str = Field(..., description="Human-readable description")
    details: Optional[Dict[str, str]] = Field(None, description="Optional key/value evidence")

    @computed_field
    @property
    def weight(self) -> float:
        return self.type.base_weight * self.severity.multiplier

    @property
    def category(self) -> IndicatorCategory:
        return self.type.category


class TamperingAnalysis(BaseModel):
    """Aggregated tampering indicators with a bounded score."""
    model_config = ConfigDict(frozen=True)

    indicators: List[TamperingIndicator] = Field(default_factory=list)

    @computed_field
    @property
    def score(self) -> float:
        return min(100.0, sum(i.weight for i in self.indicators))

    @computed_field
    @property
    def likelihood(self) -> TamperingLikelihood:
        return TamperingLikelihood.from_score(self.score)

    @computed_field
    @property
    def summary(self) -> str:
        high_count = sum(1 for i in self.indicators if i.severity in (Severity.HIGH, Severity.CRITICAL))
        medium_count = sum(1 for i in self.indicators if i.severity == Severity.MEDIUM)
        if not self.indicators:
            return "No tampering indicators detected. Document appears unmodified."
        if high_count:
            return f"Strong evidence of modification: {high_count} high-severity indicator(s) found."
        if medium_count:
            return (
                f"Document shows signs of editing: {medium_count} indicator(s) "
                "suggest post-creation changes."
            )
        return "Minor indicators present but document may be unmodified."


# ============================================================================
# Document metadata and file information
# ============================================================================

class FontInfo(BaseModel):
    """Font attributes recovered from the raw byte stream."""
    name: str
    base_font: Optional[str] = None
    type: Optional[str] = None
    is_embedded: bool = False
    is_subset: bool = False


class DocumentID(BaseModel):
    """The two halves of a trailer /ID entry."""
    permanent: Optional[str] = None
    changing: Optional[str] = None


class PDFMetadata(BaseModel):
    """Standard document information plus byte-level internals."""
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[List[str]] = None
    creator: Optional[str] = None
    producer: Optional[str] = None
    creation_date: Optional[datetime] = None
    modification_date: Optional[datetime] = None
    version: Optional[str] = None
    is_encrypted: bool = False
    allows_printing: bool = True
    allows_copying: bool = True

    # Byte-level internals
    document_id: Optional[DocumentID] = None
    is_linearized: bool = False
    has_xmp_metadata: bool = False
    incremental_updates: int = Field(0, ge=0, description="max(0, %%EOF count - 2)")
    object_count: int = Field(0, ge=0)
    has_javascript: bool = False
    has_digital_signature: bool = False
    embedded_file_count: int = Field(0, ge=0)
    annotation_count: int = Field(0, ge=0)
    form_field_count: int = Field(0, ge=0)
    fonts: List[FontInfo] = Field(default_factory=list)
    is_tagged_pdf: bool = False
    pdf_conformance: Optional[str] = None
    xref_type: Optional[str] = None


QUARANTINE_ATTRIBUTE = "com.apple.quarantine"
WHERE_FROMS_ATTRIBUTE = "com.apple.metadata:kMDItemWhereFroms"
ORIGIN_URL_ATTRIBUTE = "user.xdg.origin.url"


class FileInfo(BaseModel):
    """File-system level information captured at intake."""
    file_name: str = Field(..., description="Name of the PDF file")
    file_path: str = Field(..., description="Absolute path of the PDF file")
    file_size: int = Field(..., description="File size in bytes", ge=0)
    sha256: str = Field(..., description="SHA-256 of the file", min_length=64, max_length=64)
    creation_date: Optional[datetime] = Field(None, description="File-system creation (or change) time")
    modification_date: Optional[datetime] = Field(None, description="File-system modification time")
    extended_attributes: Dict[str, str] = Field(default_factory=dict)

    @field_validator("sha256")
    @classmethod
    def validate_sha256(cls, v: str) -> str:
        """Validate SHA-256 hash format."""
        if not all(c in "0123456789abcdefABCDEF" for c in v):
            raise ValueError("SHA-256 hash must be hexadecimal")
        return v.lower()

    @property
    def formatted_size(self) -> str:
        return format_size(self.file_size)

    @property
    def was_quarantined(self) -> bool:
        return QUARANTINE_ATTRIBUTE in self.extended_attributes

    @property
    def quarantine_source(self) -> Optional[str]:
        # Quarantine value layout: flags;timestamp;agent;uuid
        value = self.extended_attributes.get(QUARANTINE_ATTRIBUTE)
        if not value:
            return None
        parts = value.split(";")
        return parts[2] if len(parts) > 2 and parts[2] else None

    @property
    def downloaded_from(self) -> Optional[List[str]]:
        urls = []
        for key in (ORIGIN_URL_ATTRIBUTE, WHERE_FROMS_ATTRIBUTE):
            value = self.extended_attributes.get(key)
            if value:
                urls.extend(u for u in value.split("\n") if u)
        return urls or None


# ============================================================================
# Per-document forensic facts
# ============================================================================

class Rect(BaseModel):
    """Axis-aligned rectangle in page units (PyMuPDF orientation)."""
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0


class EmbeddedImage(BaseModel):
    page_number: int = 0
    index: int
    width: int
    height: int
    bits_per_component: int = 8
    color_space: str = "DeviceRGB"
    filter: Optional[str] = None
    data_hash: str


class PDFLink(BaseModel):
    page_number: int
    url: Optional[str] = None
    destination: Optional[str] = None
    action_type: str
    bounds: Optional[Rect] = None


class PDFLayer(BaseModel):
    name: str
    is_visible: bool = True
    is_locked: bool = False
    intent: Optional[str] = None


class DigitalSignature(BaseModel):
    """Structural view of one signature dictionary (no crypto validation)."""
    signer_name: Optional[str] = None
    sign_date: Optional[datetime] = None
    reason: Optional[str] = None
    location: Optional[str] = None
    filter: Optional[str] = None
    byte_range: Optional[List[int]] = None
    is_valid: bool = False
    validation_message: str = ""
    covers_whole_document: bool = False


class HiddenContentType(str, Enum):
    INVISIBLE_TEXT = "Invisible Text"
    WHITE_TEXT = "White Text"
    HIDDEN_LAYER = "Hidden Layer"
    OFF_PAGE_CONTENT = "Off-Page Content"
    COVERED_CONTENT = "Covered Content"
    TINY_TEXT = "Microscopic Text"


class HiddenContent(BaseModel):
    page_number: int
    type: HiddenContentType
    description: str
    bounds: Optional[Rect] = None


class XMPHistoryEntry(BaseModel):
    """One stEvt entry from an embedded XMP edit history."""
    action: str
    when: Optional[datetime] = None
    software_agent: Optional[str] = None
    parameters: Optional[str] = None


class Redaction(BaseModel):
    page_number: int
    bounds: Rect
    is_properly_applied: bool
    has_hidden_content: bool


class SuspiciousType(str, Enum):
    JAVASCRIPT_ACTION = "JavaScript Action"
    LAUNCH_ACTION = "Launch Action"
    ORPHANED_OBJECT = "Orphaned Object"
    HIDDEN_DATA = "Hidden Data"
    TOOL_MISMATCH = "Tool Mismatch"
    MODIFIED_AFTER_SIGNING = "Modified After Signing"
    INCONSISTENT_DATES = "Inconsistent Dates"
    SUSPICIOUS_REDACTION = "Suspicious Redaction"


class SuspiciousElement(BaseModel):
    type: SuspiciousType
    description: str
    page_number: Optional[int] = None
    severity: Severity


class ForensicFacts(BaseModel):
    """Everything the forensic extractor recovered from one document."""
    embedded_images: List[EmbeddedImage] = Field(default_factory=list)
    links: List[PDFLink] = Field(default_factory=list)
    layers: List[PDFLayer] = Field(default_factory=list)
    signatures: List[DigitalSignature] = Field(default_factory=list)
    hidden_content: List[HiddenContent] = Field(default_factory=list)
    xmp_history: List[XMPHistoryEntry] = Field(default_factory=list)
    redactions: List[Redaction] = Field(default_factory=list)
    suspicious_elements: List[SuspiciousElement] = Field(default_factory=list)


# ============================================================================
# External tool signals
# ============================================================================

MISSING_TOOLS_MESSAGE = (
    "Install mutool (from mupdf) and exiftool for enhanced forensic analysis. "
    "Without them, font/object inspection, XMP edit history, GPS data and "
    "attachment extraction are skipped."
)


class ToolAvailability(BaseModel):
    """Resolved paths of the optional external inspection tools."""
    mutool_path: Optional[str] = None
    exiftool_path: Optional[str] = None

    @property
    def has_mutool(self) -> bool:
        return self.mutool_path is not None

    @property
    def has_exiftool(self) -> bool:
        return self.exiftool_path is not None

    @property
    def all_available(self) -> bool:
        return self.has_mutool and self.has_exiftool

    @property
    def missing_tools(self) -> List[str]:
        missing = []
        if not self.has_mutool:
            missing.append("mutool")
        if not self.has_exiftool:
            missing.append("exiftool")
        return missing

    @property
    def missing_tools_message(self) -> Optional[str]:
        return None if self.all_available else MISSING_TOOLS_MESSAGE


class EmbeddedFont(BaseModel):
    name: str
    type: str
    encoding: Optional[str] = None
    embedded: bool = False
    subset: bool = False
    page_number: int = 0


class PageResources(BaseModel):
    page_number: int
    fonts: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    shadings: List[str] = Field(default_factory=list)


class PDFObjectInfo(BaseModel):
    """Cross-reference and trailer facts reported by the object inspector."""
    has_incremental_updates: bool = False
    previous_xref_offsets: List[int] = Field(default_factory=list)
    object_count: int = 0
    active_objects: int = 0
    free_objects: int = 0

    @property
    def update_count(self) -> int:
        return len(self.previous_xref_offsets)

    def suspicious_indicators(self) -> List[str]:
        indicators = []
        if self.has_incremental_updates:
            indicators.append("Document has been modified after initial creation")
        if self.update_count > 3:
            indicators.append(f"Multiple incremental updates detected ({self.update_count})")
        if self.free_objects > 0:
            indicators.append(f"{self.free_objects} deleted objects found")
        return indicators


class XMPEditEntry(BaseModel):
    action: str = ""
    when: str = ""
    software_agent: str = ""
    instance_id: Optional[str] = None


class XMPMetadata(BaseModel):
    namespaces: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    edit_history: List[XMPEditEntry] = Field(default_factory=list)

    @property
    def has_edit_history(self) -> bool:
        return bool(self.edit_history)


class PDFVersionHistory(BaseModel):
    create_date: Optional[str] = None
    modify_date: Optional[str] = None
    metadata_date: Optional[str] = None
    producer: Optional[str] = None
    creator: Optional[str] = None
    pdf_version: Optional[str] = None
    is_linearized: bool = False

    @property
    def date_discrepancy(self) -> bool:
        if self.create_date is None or self.modify_date is None:
            return False
        return self.create_date != self.modify_date

    @property
    def tool_chain(self) -> List[str]:
        tools = []
        if self.creator:
            tools.append(f"Creator: {self.creator}")
        if self.producer:
            tools.append(f"Producer: {self.producer}")
        return tools


class EmbeddedDocument(BaseModel):
    filename: str
    path: str
    size: int = 0
    mime_type: str = "application/octet-stream"


class GPSLocation(BaseModel):
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    timestamp: Optional[str] = None
    source: str = "Unknown"

    @property
    def coordinate_string(self) -> str:
        return f"{self.latitude:.6f}, {self.longitude:.6f}"


class ForensicMetadata(BaseModel):
    groups: Dict[str, Dict[str, str]] = Field(default_factory=dict)


class ExternalSignals(BaseModel):
    """Facts gathered from external tools for one document.

    Absent tools or failed sub-operations leave the corresponding field empty
    and add a line to ``errors``.
    """
    tools: ToolAvailability = Field(default_factory=ToolAvailability)
    fonts: List[EmbeddedFont] = Field(default_factory=list)
    page_resources: List[PageResources] = Field(default_factory=list)
    object_info: Optional[PDFObjectInfo] = None
    xmp_metadata: Optional[XMPMetadata] = None
    version_history: Optional[PDFVersionHistory] = None
    embedded_documents: List[EmbeddedDocument] = Field(default_factory=list)
    gps_locations: List[GPSLocation] = Field(default_factory=list)
    forensic_metadata: Optional[ForensicMetadata] = None
    errors: List[str] = Field(default_factory=list)

    @property
    def has_findings(self) -> bool:
        return bool(
            self.fonts
            or self.page_resources
            or (self.object_info and self.object_info.has_incremental_updates)
            or (self.xmp_metadata and self.xmp_metadata.has_edit_history)
            or self.embedded_documents
            or self.gps_locations
        )

    def suspicious_findings(self) -> List[str]:
        findings = []
        font_names = {f.name for f in self.fonts}
        if len(font_names) > 10:
            findings.append(f"Unusually high number of fonts ({len(font_names)})")
        if self.object_info:
            findings.extend(self.object_info.suspicious_indicators())
        if self.xmp_metadata and self.xmp_metadata.has_edit_history:
            findings.append(f"XMP edit history shows {len(self.xmp_metadata.edit_history)} modifications")
        if self.version_history and self.version_history.date_discrepancy:
            findings.append("Creation and modification dates differ")
        if self.gps_locations:
            findings.append("GPS location data found in embedded content")
        if self.embedded_documents:
            findings.append(f"{len(self.embedded_documents)} embedded document(s) extracted")
        return findings


class FontComparisonResult(BaseModel):
    added_fonts: List[str] = Field(default_factory=list)
    removed_fonts: List[str] = Field(default_factory=list)
    common_fonts: List[str] = Field(default_factory=list)

    @property
    def has_differences(self) -> bool:
        return bool(self.added_fonts or self.removed_fonts)


class ResourceComparisonResult(BaseModel):
    pages_with_differences: List[int] = Field(default_factory=list)
    details: Dict[str, str] = Field(default_factory=dict)

    @property
    def has_differences(self) -> bool:
        return bool(self.pages_with_differences)


class ExternalToolsSummary(BaseModel):
    """External-signal section of a comparison report."""
    tools: ToolAvailability
    missing_tools_message: Optional[str] = None
    original: Optional[ExternalSignals] = None
    comparison: Optional[ExternalSignals] = None
    font_comparison: Optional[FontComparisonResult] = None
    resource_comparison: Optional[ResourceComparisonResult] = None
    suspicious_findings: List[str] = Field(default_factory=list)


# ============================================================================
# Reports
# ============================================================================

class FileReference(BaseModel):
    """Identity of an analysed file inside a report."""
    name: str
    path: str
    size: int = Field(..., ge=0)
    checksum: str = Field(..., description="Lowercase hex SHA-256 of the full file")

    @property
    def formatted_size(self) -> str:
        return format_size(self.size)


class TextComparisonSummary(BaseModel):
    overall_similarity: float = Field(..., ge=0.0, le=1.0)
    page_count: int = 0
    pages_with_differences: int = 0
    total_differences: int = 0


class VisualComparisonSummary(BaseModel):
    average_ssim: float = Field(..., ge=0.0, le=1.0)
    average_pixel_diff: float = Field(..., ge=0.0, le=1.0)
    page_count: int = 0
    pages_with_differences: int = 0


class MetadataComparisonSummary(BaseModel):
    pdf_metadata_match: bool
    file_info_match: bool
    timestamp_anomalies: bool
    difference_count: int = 0


class DetectionReport(BaseModel):
    """Terminal artifact of a two-document comparison run."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    original_file: FileReference
    comparison_file: FileReference
    risk_score: float = Field(..., ge=0.0, le=100.0)
    findings: List[Finding] = Field(default_factory=list)
    text_comparison: TextComparisonSummary
    visual_comparison: VisualComparisonSummary
    metadata_comparison: MetadataComparisonSummary
    external_tools: Optional[ExternalToolsSummary] = None
    tampering_analysis: Optional[TamperingAnalysis] = None

    @computed_field
    @property
    def risk_level(self) -> RiskLevel:
        return RiskLevel.from_score(self.risk_score)

    @property
    def critical_findings(self) -> List[Finding]:
        return [f for f in self.findings if f.severity == Severity.CRITICAL]

    @property
    def high_findings(self) -> List[Finding]:
        return [f for f in self.findings if f.severity == Severity.HIGH]


class SingleDocumentReport(BaseModel):
    """Terminal artifact of a one-document tampering analysis."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    file: FileReference
    page_count: int = 0
    metadata: PDFMetadata
    forensics: ForensicFacts
    external_signals: Optional[ExternalSignals] = None
    tampering_analysis: TamperingAnalysis
    findings: List[Finding] = Field(default_factory=list)
    risk_score: float = Field(..., ge=0.0, le=100.0)
    missing_tools_message: Optional[str] = None

    @computed_field
    @property
    def risk_level(self) -> RiskLevel:
        return RiskLevel.from_score(self.risk_score)
