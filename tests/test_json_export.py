"""Tests for JSON export functionality."""

import json
from datetime import datetime, timezone
from pathlib import Path
from uuid import UUID

import pytest

from pdf_forensic.models import (
    MISSING_TOOLS_MESSAGE,
    DetectionReport,
    FileReference,
    Finding,
    FindingCategory,
    ForensicFacts,
    MetadataComparisonSummary,
    PDFMetadata,
    RiskLevel,
    Severity,
    SingleDocumentReport,
    TamperingAnalysis,
    TextComparisonSummary,
    VisualComparisonSummary,
)
from pdf_forensic.output.json_export import (
    REPORT_FORMAT_VERSION,
    ForensicJSONEncoder,
    JSONExporter,
    export_to_json,
    finding_to_dict,
    parse_report_json,
)

GENERATED = datetime(2024, 6, 1, 12, 30, 5, tzinfo=timezone.utc)


@pytest.fixture
def sample_report():
    """A comparison report with two findings."""
    return DetectionReport(
        original_file=FileReference(name="a.pdf", path="/evidence/a.pdf", size=2048, checksum="a" * 64),
        comparison_file=FileReference(name="b.pdf", path="/evidence/b.pdf", size=4096, checksum="b" * 64),
        risk_score=42.5,
        findings=[
            Finding(
                category=FindingCategory.STRUCTURE,
                severity=Severity.CRITICAL,
                title="Page Count Mismatch",
                description="Original has 1 pages, comparison has 2 pages",
                details={"Original": "1", "Comparison": "2"},
            ),
            Finding(
                category=FindingCategory.TEXT,
                severity=Severity.MEDIUM,
                title="Page 1 Text Differs",
                description="Page 1 has 80.0% text similarity",
                page_number=1,
            ),
        ],
        text_comparison=TextComparisonSummary(overall_similarity=0.8, page_count=1, pages_with_differences=1),
        visual_comparison=VisualComparisonSummary(average_ssim=0.97, average_pixel_diff=0.01, page_count=1),
        metadata_comparison=MetadataComparisonSummary(
            pdf_metadata_match=True, file_info_match=False, timestamp_anomalies=False, difference_count=1
        ),
        tampering_analysis=TamperingAnalysis(),
    )


@pytest.fixture
def document_report():
    """A single-document report with the missing tools advisory."""
    return SingleDocumentReport(
        file=FileReference(name="a.pdf", path="/evidence/a.pdf", size=2048, checksum="a" * 64),
        page_count=3,
        metadata=PDFMetadata(title="Statement", version="1.7"),
        forensics=ForensicFacts(),
        tampering_analysis=TamperingAnalysis(),
        risk_score=0.0,
        missing_tools_message=MISSING_TOOLS_MESSAGE,
    )


class TestForensicJSONEncoder:
    """Tests for ForensicJSONEncoder."""

    def test_encode_special_types(self):
        """Test datetime, UUID, Path and Enum encoding."""
        value = {
            "when": datetime(2024, 1, 2, 3, 4, 5),
            "id": UUID("12345678-1234-5678-1234-567812345678"),
            "path": Path("/evidence/a.pdf"),
            "severity": Severity.HIGH,
        }
        decoded = json.loads(json.dumps(value, cls=ForensicJSONEncoder))
        assert decoded == {
            "when": "2024-01-02T03:04:05",
            "id": "12345678-1234-5678-1234-567812345678",
            "path": "/evidence/a.pdf",
            "severity": "High",
        }

    def test_encode_pydantic_model(self):
        """Test that models are dumped in JSON mode."""
        finding = Finding(category=FindingCategory.TEXT, severity=Severity.LOW, title="t", description="d")
        decoded = json.loads(json.dumps({"f": finding}, cls=ForensicJSONEncoder))
        assert decoded["f"]["severity"] == "Low"

    def test_unknown_type_raises(self):
        """Test that unsupported objects still raise TypeError."""
        with pytest.raises(TypeError):
            json.dumps({"x": object()}, cls=ForensicJSONEncoder)


class TestFindingSerialization:
    """Tests for finding dictionaries."""

    def test_optional_fields_omitted(self):
        """Details and page number are left out when absent."""
        finding = Finding(category=FindingCategory.METADATA, severity=Severity.LOW, title="t", description="d")
        assert finding_to_dict(finding) == {
            "category": "Metadata",
            "severity": "Low",
            "title": "t",
            "description": "d",
        }

    def test_optional_fields_present(self):
        """Details and page number use camelCase keys when present."""
        finding = Finding(
            category=FindingCategory.VISUAL,
            severity=Severity.HIGH,
            title="t",
            description="d",
            details={"SSIM": "0.8"},
            page_number=3,
        )
        data = finding_to_dict(finding)
        assert data["pageNumber"] == 3
        assert data["details"] == {"SSIM": "0.8"}


class TestJSONExporter:
    """Tests for JSONExporter."""

    def test_comparison_keys(self, sample_report):
        """Test the top-level layout of a comparison export."""
        data = JSONExporter().to_dict(sample_report, generated_at=GENERATED)
        assert data["generatedAt"] == "2024-06-01T12:30:05Z"
        assert data["version"] == REPORT_FORMAT_VERSION
        assert data["riskScore"] == 42.5
        assert data["riskLevel"] == "Medium"
        assert data["originalFile"]["sizeFormatted"] == "2 KB"
        assert data["comparisonFile"]["checksum"] == "b" * 64
        assert data["textSimilarity"] == 0.8
        assert data["visualSimilarity"] == 0.97
        assert data["metadata"]["fileInfoMatch"] is False
        assert data["tampering"]["likelihood"] == "No Evidence"
        assert "externalTools" not in data

    def test_findings_order_kept(self, sample_report):
        """Findings are exported in report order."""
        data = JSONExporter().to_dict(sample_report, generated_at=GENERATED)
        assert [f["title"] for f in data["findings"]] == ["Page Count Mismatch", "Page 1 Text Differs"]
        assert "pageNumber" not in data["findings"][0]

    def test_json_is_deterministic(self, sample_report):
        """Two exports with the same timestamp are identical."""
        exporter = JSONExporter()
        assert exporter.to_json(sample_report, GENERATED) == exporter.to_json(sample_report, GENERATED)

    def test_document_report(self, document_report):
        """Single-document exports carry the file, metadata and advisory."""
        data = JSONExporter().to_dict(document_report, generated_at=GENERATED)
        assert data["file"]["name"] == "a.pdf"
        assert data["pageCount"] == 3
        assert data["metadata"]["pdfVersion"] == "1.7"
        assert data["missingToolsMessage"] == MISSING_TOOLS_MESSAGE
        assert "originalFile" not in data

    def test_to_file(self, sample_report, temp_dir):
        """Test writing to a nested path."""
        output = temp_dir / "reports" / "nested" / "report.json"
        JSONExporter().to_file(sample_report, output)
        assert json.loads(output.read_text(encoding="utf-8"))["riskLevel"] == "Medium"

    def test_export_to_json(self, sample_report, temp_dir):
        """Test the convenience function returns and writes the same JSON."""
        output = temp_dir / "report.json"
        text = export_to_json(sample_report, output)
        assert json.loads(text)["riskScore"] == 42.5
        assert output.exists()


class TestParseReport:
    """Tests for reading an exported report back."""

    def test_round_trip(self, sample_report):
        """Scalar fields and findings survive export and parse."""
        parsed = parse_report_json(JSONExporter().to_json(sample_report, GENERATED))
        assert parsed.generated_at == "2024-06-01T12:30:05Z"
        assert parsed.risk_score == 42.5
        assert parsed.risk_level == RiskLevel.MEDIUM
        assert parsed.original_checksum == "a" * 64
        assert parsed.findings == sample_report.findings

    def test_missing_key(self):
        """A JSON object without report keys is rejected."""
        with pytest.raises(ValueError):
            parse_report_json('{"version": "1.0"}')

    def test_not_json(self):
        """Malformed JSON is rejected."""
        with pytest.raises(ValueError):
            parse_report_json("not json")
