"""Tests for metadata comparison."""

from datetime import datetime, timedelta, timezone

import pytest

from pdf_forensic.analysis.metadata_comparator import MetadataComparator
from pdf_forensic.models import DocumentID, FindingCategory, FontInfo, PDFMetadata, Severity

from conftest import make_file_info

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
CREATED = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def base_metadata():
    return PDFMetadata(
        title="Contract",
        author="Legal",
        creator="Writer",
        producer="Writer",
        creation_date=CREATED,
        modification_date=CREATED,
        version="1.7",
        document_id=DocumentID(permanent="AAAA", changing="BBBB"),
        object_count=20,
        fonts=[FontInfo(name="Helvetica", type="Type1")],
        xref_type="table",
    )


def compare(original, comparison, original_file=None, comparison_file=None):
    return MetadataComparator().compare(
        original,
        original_file or make_file_info(),
        comparison,
        comparison_file or make_file_info(),
        now=NOW,
    )


def titles(result):
    return [f.title for f in result.findings]


class TestPDFMetadata:
    """Tests for document information comparison."""

    def test_identical_metadata(self, base_metadata):
        """Identical metadata has no differences or findings."""
        result = compare(base_metadata, base_metadata)
        assert result.differences == []
        assert result.findings == []
        assert result.overall_match

    def test_title_change_is_not_significant(self, base_metadata):
        """A title change is recorded but raises no finding."""
        result = compare(base_metadata, base_metadata.model_copy(update={"title": "Other"}))
        assert [d.field for d in result.differences] == ["Title"]
        assert result.pdf_metadata_match
        assert result.findings == []

    def test_producer_change_is_high(self, base_metadata):
        """A different producer is a high-severity metadata finding."""
        result = compare(base_metadata, base_metadata.model_copy(update={"producer": "Editor Pro"}))
        finding = result.findings[0]
        assert finding.title == "Producer Mismatch"
        assert finding.severity == Severity.HIGH
        assert finding.category == FindingCategory.METADATA
        assert finding.details == {"Original": "Writer", "Comparison": "Editor Pro"}
        assert not result.pdf_metadata_match

    def test_author_change_is_low(self, base_metadata):
        """Fields outside the named severity sets default to low."""
        result = compare(base_metadata, base_metadata.model_copy(update={"author": "Someone"}))
        assert result.findings[0].severity == Severity.LOW

    def test_document_origin(self, base_metadata):
        """A different permanent ID suggests a different origin."""
        changed = base_metadata.model_copy(update={"document_id": DocumentID(permanent="CCCC", changing="BBBB")})
        assert titles(compare(base_metadata, changed)) == ["Different Document Origin"]

    def test_javascript_added(self, base_metadata):
        """JavaScript appearing only in the comparison is reported as added."""
        result = compare(base_metadata, base_metadata.model_copy(update={"has_javascript": True}))
        assert titles(result) == ["JavaScript Added"]
        assert result.findings[0].severity == Severity.MEDIUM

    def test_signature_removed(self, base_metadata):
        """A signature missing from the comparison is reported as removed."""
        signed = base_metadata.model_copy(update={"has_digital_signature": True})
        assert titles(compare(signed, base_metadata)) == ["Digital Signature Removed"]

    def test_incremental_updates(self, base_metadata):
        """Different update counts have their own title."""
        result = compare(base_metadata, base_metadata.model_copy(update={"incremental_updates": 2}))
        assert titles(result) == ["Incremental Update Count Differs"]

    def test_object_count_tolerance(self, base_metadata):
        """Object counts within ten of each other are not reported."""
        near = base_metadata.model_copy(update={"object_count": 30})
        far = base_metadata.model_copy(update={"object_count": 31})
        assert compare(base_metadata, near).differences == []
        assert titles(compare(base_metadata, far)) == ["Object Count Mismatch"]


class TestFonts:
    """Tests for font inventory comparison."""

    def test_added_font(self, base_metadata):
        """An added font yields Fonts Added and Font Count findings."""
        fonts = base_metadata.fonts + [FontInfo(name="Courier", type="Type1")]
        result = compare(base_metadata, base_metadata.model_copy(update={"fonts": fonts}))
        fields = [d.field for d in result.differences]
        assert "Fonts Added" in fields
        assert "Font Count" in fields
        added = next(d for d in result.differences if d.field == "Fonts Added")
        assert added.comparison_value == "Courier"

    def test_embedding_change_is_high(self, base_metadata):
        """A font changing embedding status is high severity."""
        fonts = [FontInfo(name="Helvetica", type="Type1", is_embedded=True)]
        result = compare(base_metadata, base_metadata.model_copy(update={"fonts": fonts}))
        assert result.findings[0].title == "Font 'Helvetica' Embedding Mismatch"
        assert result.findings[0].severity == Severity.HIGH

    def test_type_change_is_medium(self, base_metadata):
        """A font changing type is medium severity."""
        fonts = [FontInfo(name="Helvetica", type="TrueType")]
        result = compare(base_metadata, base_metadata.model_copy(update={"fonts": fonts}))
        assert result.findings[0].severity == Severity.MEDIUM

    def test_subsetting_change_not_significant(self, base_metadata):
        """Subsetting changes are recorded without a finding."""
        fonts = [FontInfo(name="Helvetica", type="Type1", is_subset=True)]
        result = compare(base_metadata, base_metadata.model_copy(update={"fonts": fonts}))
        assert [d.field for d in result.differences] == ["Font 'Helvetica' Subsetting"]
        assert result.findings == []


class TestFileInfo:
    """Tests for file-system comparison."""

    def test_small_size_change_not_significant(self, base_metadata):
        """Size differences up to 1024 bytes are insignificant."""
        result = compare(base_metadata, base_metadata, make_file_info(size=1000), make_file_info(size=2000))
        assert result.file_info_match
        assert result.differences[0].field == "File Size"

    def test_large_size_change(self, base_metadata):
        """Size differences over 1024 bytes are significant and low severity."""
        result = compare(base_metadata, base_metadata, make_file_info(size=1000), make_file_info(size=5000))
        assert not result.file_info_match
        assert result.findings[0].severity == Severity.LOW

    def test_quarantine_difference_is_info(self, base_metadata):
        """Quarantine differences are informational."""
        quarantined = make_file_info(extended_attributes={"com.apple.quarantine": "0081;65a1;Safari;ID"})
        result = compare(base_metadata, base_metadata, make_file_info(), quarantined)
        severities = {f.title: f.severity for f in result.findings}
        assert severities["Was Quarantined Mismatch"] == Severity.INFO
        assert severities["Quarantine Source Mismatch"] == Severity.INFO


class TestTimestamps:
    """Tests for timestamp anomaly detection."""

    def test_creation_after_modification(self, base_metadata):
        """Creation after modification is an anomaly."""
        comparison = base_metadata.model_copy(update={"modification_date": CREATED - timedelta(hours=1)})
        result = compare(base_metadata, comparison)
        assert result.timestamp_analysis.has_anomalies
        assert result.timestamp_analysis.anomaly_description == "Creation date is after modification date"
        finding = result.findings[-1]
        assert finding.category == FindingCategory.TIMESTAMP
        assert finding.severity == Severity.HIGH

    def test_future_date(self, base_metadata):
        """Dates after the reference time are anomalies."""
        future = NOW + timedelta(days=3)
        comparison = base_metadata.model_copy(update={"modification_date": future})
        assert compare(base_metadata, comparison).timestamp_analysis.anomaly_description == (
            "Modification date is in the future"
        )

    def test_last_description_wins(self, base_metadata):
        """When several checks fire the last description is kept."""
        comparison = base_metadata.model_copy(update={
            "creation_date": CREATED + timedelta(days=5),
            "modification_date": CREATED + timedelta(days=4),
        })
        analysis = compare(base_metadata, comparison).timestamp_analysis
        assert analysis.anomaly_description == "Creation dates differ by more than 1 day"

    def test_filesystem_gap(self, base_metadata):
        """A PDF date far from the file's mtime is an anomaly."""
        file_info = make_file_info(modification_date=CREATED + timedelta(hours=2))
        analysis = compare(base_metadata, base_metadata, comparison_file=file_info).timestamp_analysis
        assert analysis.anomaly_description == "PDF metadata date differs from file system date"

    def test_summary(self, base_metadata):
        """to_summary reflects the match flags and difference count."""
        summary = compare(base_metadata, base_metadata.model_copy(update={"title": "x"})).to_summary()
        assert summary.pdf_metadata_match
        assert summary.file_info_match
        assert not summary.timestamp_anomalies
        assert summary.difference_count == 1
