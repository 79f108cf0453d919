"""Tests for the detection engine."""

import fitz
import pytest

from pdf_forensic.config import AnalysisSettings
from pdf_forensic.core.engine import (
    COMPARISON_STAGES,
    SINGLE_DOCUMENT_STAGES,
    AnalysisStage,
    CancellationToken,
    DetectionEngine,
)
from pdf_forensic.external.locator import ToolLocator
from pdf_forensic.models import (
    MISSING_TOOLS_MESSAGE,
    FindingCategory,
    RiskLevel,
    Severity,
    TamperingIndicatorType,
    ToolAvailability,
)
from pdf_forensic.utils.exceptions import AnalysisCancelledError, InvalidInputError


class NoToolsLocator(ToolLocator):
    """Locator that always reports both tools missing."""

    def check(self) -> ToolAvailability:
        return ToolAvailability()


@pytest.fixture
def engine(offline_settings):
    return DetectionEngine(offline_settings)


class TestComparisonRun:
    """Tests for two-document comparison."""

    def test_identical_documents(self, engine, identical_pdfs):
        """Byte-identical documents give an empty, minimal-risk report."""
        original, copy = identical_pdfs
        report = engine.run(original, copy)

        assert report.findings == []
        assert report.risk_score == 0.0
        assert report.risk_level == RiskLevel.MINIMAL
        assert report.text_comparison.overall_similarity == 1.0
        assert report.visual_comparison.average_ssim == pytest.approx(1.0)
        assert report.tampering_analysis.indicators == []
        assert report.external_tools is None
        assert report.original_file.checksum == report.comparison_file.checksum
        assert report.original_file.name == "original.pdf"

    def test_changed_text(self, engine, make_pdf):
        """Altered wording yields text findings and a positive score."""
        original = make_pdf("a.pdf", pages=["Payment is due within 30 days of delivery."])
        altered = make_pdf("b.pdf", pages=["Payment is due within 90 days of delivery, net."])
        report = engine.run(original, altered)

        assert report.text_comparison.overall_similarity < 1.0
        assert any(f.category == FindingCategory.TEXT for f in report.findings)
        assert report.risk_score > 0

    def test_extra_page(self, engine, make_pdf):
        """A page count mismatch is a critical structure finding listed first."""
        original = make_pdf("a.pdf", pages=["Page one"])
        longer = make_pdf("b.pdf", pages=["Page one", "Page two"])
        report = engine.run(original, longer)

        assert report.findings[0].severity == Severity.CRITICAL
        assert "Page Count Mismatch" in [f.title for f in report.findings]

    def test_findings_sorted_by_severity(self, engine, make_pdf):
        """Findings are ordered by descending severity weight."""
        original = make_pdf("a.pdf", pages=["One"], metadata={"author": "A"})
        other = make_pdf("b.pdf", pages=["Completely different words", "More"], metadata={"author": "B"})
        weights = [f.weight for f in engine.run(original, other).findings]
        assert weights == sorted(weights, reverse=True)

    def test_invalid_input(self, engine, sample_pdf, temp_dir):
        """A non-PDF input is rejected before any stage runs."""
        bogus = temp_dir / "notes.pdf"
        bogus.write_bytes(b"this is plain text, not a document")
        with pytest.raises(InvalidInputError):
            engine.run(sample_pdf, bogus)

    def test_missing_input(self, engine, sample_pdf, temp_dir):
        """A missing input is an InvalidInputError."""
        with pytest.raises(InvalidInputError) as exc_info:
            engine.run(temp_dir / "absent.pdf", sample_pdf)
        assert exc_info.value.reason == "File does not exist"


class TestProgress:
    """Tests for progress reporting."""

    def test_stage_sequence(self, engine, identical_pdfs):
        """Stages are reported in order and overall progress never decreases."""
        events = []
        engine.run(*identical_pdfs, progress_callback=lambda s, p, o: events.append((s, p, o)))

        assert events[0] == (AnalysisStage.LOADING, 0.0, 0.0)
        assert events[-1] == (AnalysisStage.EXTERNAL_SIGNALS, 1.0, 1.0)
        overall = [o for _, _, o in events]
        assert overall == sorted(overall)

        seen = []
        for stage, _, _ in events:
            if stage not in seen:
                seen.append(stage)
        assert seen == COMPARISON_STAGES

    def test_overall_formula(self, engine, identical_pdfs):
        """Overall progress is (stage index + stage progress) / stage count."""
        events = []
        engine.run(*identical_pdfs, progress_callback=lambda s, p, o: events.append((s, p, o)))
        for stage, progress, overall in events:
            expected = (COMPARISON_STAGES.index(stage) + progress) / len(COMPARISON_STAGES)
            assert overall == pytest.approx(expected)

    def test_failing_callback_does_not_abort(self, engine, identical_pdfs):
        """Exceptions raised by the callback are logged and ignored."""
        def explode(stage, progress, overall):
            raise RuntimeError("observer broke")

        report = engine.run(*identical_pdfs, progress_callback=explode)
        assert report.risk_score == 0.0


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancelled_before_start(self, engine, identical_pdfs):
        """A token cancelled up front stops the run before loading."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(AnalysisCancelledError) as exc_info:
            engine.run(*identical_pdfs, cancel_token=token)
        assert exc_info.value.stage == "Loading"

    def test_cancelled_between_loads(self, engine, identical_pdfs):
        """Cancelling after the first load stops before the second."""
        token = CancellationToken()

        def on_progress(stage, progress, overall):
            if stage == AnalysisStage.LOADING and progress == 0.5:
                token.cancel()

        with pytest.raises(AnalysisCancelledError) as exc_info:
            engine.run(*identical_pdfs, progress_callback=on_progress, cancel_token=token)
        assert exc_info.value.stage == "Loading"

    def test_cancelled_mid_run(self, engine, identical_pdfs):
        """Cancelling after a stage finishes stops before the next one."""
        token = CancellationToken()
        stages = []

        def on_progress(stage, progress, overall):
            stages.append(stage)
            if stage == AnalysisStage.TEXT and progress == 1.0:
                token.cancel()

        with pytest.raises(AnalysisCancelledError) as exc_info:
            engine.run(*identical_pdfs, progress_callback=on_progress, cancel_token=token)
        assert exc_info.value.stage == "Visual"
        assert AnalysisStage.VISUAL not in stages


class TestSingleDocument:
    """Tests for single-document analysis."""

    def test_clean_document(self, engine, sample_pdf):
        """A freshly written document has no indicators."""
        report = engine.analyze_document(sample_pdf)
        assert report.page_count == 1
        assert report.tampering_analysis.indicators == []
        assert report.findings == []
        assert report.risk_level == RiskLevel.MINIMAL
        assert report.external_signals is None
        assert report.missing_tools_message is None
        assert report.metadata.title == "Quarterly Statement"

    def test_stage_sequence(self, engine, sample_pdf):
        """Single-document runs report their own four stages."""
        stages = []
        engine.analyze_document(sample_pdf, progress_callback=lambda s, p, o: stages.append(s))
        seen = []
        for stage in stages:
            if stage not in seen:
                seen.append(stage)
        assert seen == SINGLE_DOCUMENT_STAGES

    def test_missing_tools_message(self, sample_pdf):
        """With tools enabled but absent the report carries the advisory."""
        engine = DetectionEngine(AnalysisSettings(), locator=NoToolsLocator())
        report = engine.analyze_document(sample_pdf)
        assert report.missing_tools_message == MISSING_TOOLS_MESSAGE
        assert report.external_signals is not None
        assert report.external_signals.errors == []

    def test_unapplied_redaction(self, engine, make_pdf):
        """A redaction annotation left over live text is critical."""
        def redact(doc):
            doc[0].add_redact_annot(fitz.Rect(50, 50, 560, 90))

        path = make_pdf("redacted.pdf", decorate=redact)
        report = engine.analyze_document(path)

        assert "Improper Redaction" in [f.title for f in report.findings]
        types = [i.type for i in report.tampering_analysis.indicators]
        assert TamperingIndicatorType.IMPROPER_REDACTION in types
        assert report.risk_score > 0

    def test_embedded_file(self, engine, make_pdf):
        """Attachments raise the embedded files indicator."""
        path = make_pdf("attached.pdf", decorate=lambda doc: doc.embfile_add("note.txt", b"hello"))
        report = engine.analyze_document(path)
        types = [i.type for i in report.tampering_analysis.indicators]
        assert TamperingIndicatorType.EMBEDDED_FILES in types
