"""Detection engine for PDF documents.

This module provides the analysis workflow. A comparison run loads two
documents and passes them through the metadata, text, visual, structure,
forensic and external-signal stages. A single-document run loads one
document and scores it for tampering.

Only InvalidInputError (raised while loading) and AnalysisCancelledError
(raised between stages) leave the engine. Everything else degrades to
empty facts inside the stage that produced it.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from pdf_forensic.analysis.forensic_comparator import HIDDEN_CONTENT_SEVERITY, ForensicComparator
from pdf_forensic.analysis.forensic_extractor import ForensicExtractor
from pdf_forensic.analysis.metadata_comparator import MetadataComparator
from pdf_forensic.analysis.risk import RiskScorer
from pdf_forensic.analysis.structure_comparator import StructureComparator
from pdf_forensic.analysis.tampering import TamperingAnalyzer
from pdf_forensic.analysis.text_diff import TextComparator
from pdf_forensic.analysis.visual import VisualComparator
from pdf_forensic.config import AnalysisSettings
from pdf_forensic.core.reader import DocumentReader, DocumentSnapshot
from pdf_forensic.external.adapter import ExternalSignalAdapter
from pdf_forensic.external.locator import ToolLocator
from pdf_forensic.external.runner import ToolRunner
from pdf_forensic.models import (
    DetectionReport,
    ExternalSignals,
    ExternalToolsSummary,
    FileReference,
    Finding,
    FindingCategory,
    ForensicFacts,
    Severity,
    SingleDocumentReport,
    sort_by_severity,
)
from pdf_forensic.utils.exceptions import AnalysisCancelledError

logger = logging.getLogger(__name__)


class AnalysisStage(str, Enum):
    """Pipeline stages in execution order."""
    LOADING = "Loading"
    METADATA = "Metadata"
    TEXT = "Text"
    VISUAL = "Visual"
    STRUCTURE = "Structure"
    FORENSIC_EXTRACTION = "Forensic Extraction"
    SECURITY = "Security"
    EXTERNAL_SIGNALS = "External Signals"


COMPARISON_STAGES = list(AnalysisStage)

SINGLE_DOCUMENT_STAGES = [
    AnalysisStage.LOADING,
    AnalysisStage.FORENSIC_EXTRACTION,
    AnalysisStage.EXTERNAL_SIGNALS,
    AnalysisStage.SECURITY,
]

ProgressCallback = Callable[[AnalysisStage, float, float], None]


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a run."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


def file_reference(snapshot: DocumentSnapshot) -> FileReference:
    info = snapshot.file_info
    return FileReference(name=info.file_name, path=info.file_path, size=info.file_size, checksum=info.sha256)


class _RunContext:
    """Progress reporting and cancellation checks for one run."""

    def __init__(
        self,
        stages: Sequence[AnalysisStage],
        progress_callback: Optional[ProgressCallback],
        cancel_token: Optional[CancellationToken],
    ):
        self.stages = list(stages)
        self.progress_callback = progress_callback
        self.cancel_token = cancel_token

    def check_cancelled(self, stage: AnalysisStage) -> None:
        if self.cancel_token is not None and self.cancel_token.is_cancelled:
            logger.info(f"Analysis cancelled before stage '{stage.value}'")
            raise AnalysisCancelledError(stage.value)

    def report(self, stage: AnalysisStage, stage_progress: float) -> None:
        """Report progress to callback if registered."""
        if self.progress_callback is None:
            return
        overall = (self.stages.index(stage) + stage_progress) / len(self.stages)
        try:
            self.progress_callback(stage, stage_progress, overall)
        except Exception as e:
            # A failing observer must not abort the analysis
            logger.warning(f"Progress callback failed at {stage.value}: {e}")

    def begin(self, stage: AnalysisStage) -> None:
        self.check_cancelled(stage)
        logger.info(f"Stage: {stage.value}")
        self.report(stage, 0.0)

    def finish(self, stage: AnalysisStage) -> None:
        self.report(stage, 1.0)


class DetectionEngine:
    """Runs comparison and single-document analyses.

    The engine owns one ToolLocator for its lifetime so tool
    discovery happens at most once. Pass a locator in to share or stub it.
    """

    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        locator: Optional[ToolLocator] = None,
        reader: Optional[DocumentReader] = None,
    ):
        self.settings = settings or AnalysisSettings()
        thresholds = self.settings.thresholds

        self.locator = locator or ToolLocator(
            search_paths=self.settings.tool_search_paths,
            enabled=self.settings.tools_enabled,
        )
        self.reader = reader or DocumentReader(render_dpi=self.settings.render_dpi)
        self.adapter = ExternalSignalAdapter(self.locator, ToolRunner(timeout=self.settings.tool_timeout))

        self.metadata_comparator = MetadataComparator()
        self.text_comparator = TextComparator(
            finding_threshold=thresholds.text_finding_similarity,
            page_finding_threshold=thresholds.page_text_finding_similarity,
        )
        self.visual_comparator = VisualComparator(match_ssim=thresholds.visual_match_ssim)
        self.structure_comparator = StructureComparator(page_size_tolerance=thresholds.page_size_tolerance)
        self.forensic_extractor = ForensicExtractor(coverage_slack=thresholds.signature_coverage_slack)
        self.forensic_comparator = ForensicComparator()
        self.tampering_analyzer = TamperingAnalyzer()
        self.risk_scorer = RiskScorer()

    @property
    def tools_enabled(self) -> bool:
        return self.settings.tools_enabled

    def _gather_external(self, path: Path) -> Optional[ExternalSignals]:
        if not self.tools_enabled:
            logger.debug("External tools disabled")
            return None
        return self.adapter.gather(path)

    def run(
        self,
        original: Union[str, Path],
        comparison: Union[str, Path],
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> DetectionReport:
        """
        Compare a questioned document against a reference document.

        Args:
            original: Path to the reference PDF
            comparison: Path to the questioned PDF
            progress_callback: Called as (stage, stage_progress, overall_progress)
            cancel_token: Polled before every stage and between the two loads

        Returns:
            DetectionReport

        Raises:
            InvalidInputError: If either document cannot be opened
            AnalysisCancelledError: If the token is cancelled during the run
        """
        ctx = _RunContext(COMPARISON_STAGES, progress_callback, cancel_token)

        # Loading
        ctx.begin(AnalysisStage.LOADING)
        orig_snap = self.reader.load(original)
        ctx.report(AnalysisStage.LOADING, 0.5)
        ctx.check_cancelled(AnalysisStage.LOADING)
        comp_snap = self.reader.load(comparison)
        ctx.finish(AnalysisStage.LOADING)
        logger.info(f"Comparing {orig_snap.path.name} ({orig_snap.page_count} pages) "
                    f"with {comp_snap.path.name} ({comp_snap.page_count} pages)")

        # Metadata
        ctx.begin(AnalysisStage.METADATA)
        metadata_result = self.metadata_comparator.compare(
            orig_snap.metadata, orig_snap.file_info,
            comp_snap.metadata, comp_snap.file_info,
        )
        ctx.finish(AnalysisStage.METADATA)

        # Text
        ctx.begin(AnalysisStage.TEXT)
        text_result = self.text_comparator.compare(orig_snap.page_texts, comp_snap.page_texts)
        text_findings = self.text_comparator.generate_findings(text_result)
        ctx.finish(AnalysisStage.TEXT)

        # Visual
        ctx.begin(AnalysisStage.VISUAL)
        visual_result = self.visual_comparator.compare(orig_snap.page_images, comp_snap.page_images)
        visual_findings = self.visual_comparator.generate_findings(visual_result)
        ctx.finish(AnalysisStage.VISUAL)

        # Structure
        ctx.begin(AnalysisStage.STRUCTURE)
        structure_result = self.structure_comparator.compare(orig_snap, comp_snap)
        ctx.finish(AnalysisStage.STRUCTURE)

        # Forensic extraction
        ctx.begin(AnalysisStage.FORENSIC_EXTRACTION)
        orig_facts = self.forensic_extractor.extract(orig_snap)
        ctx.report(AnalysisStage.FORENSIC_EXTRACTION, 0.5)
        comp_facts = self.forensic_extractor.extract(comp_snap)
        ctx.finish(AnalysisStage.FORENSIC_EXTRACTION)

        # Security
        ctx.begin(AnalysisStage.SECURITY)
        forensic_findings = self.forensic_comparator.compare(
            orig_facts, comp_facts, orig_snap.page_texts, comp_snap.page_texts
        )
        ctx.finish(AnalysisStage.SECURITY)

        # External signals and tampering
        ctx.begin(AnalysisStage.EXTERNAL_SIGNALS)
        external_summary: Optional[ExternalToolsSummary] = None
        comp_signals: Optional[ExternalSignals] = None
        if self.tools_enabled:
            orig_signals = self.adapter.gather(orig_snap.path)
            ctx.report(AnalysisStage.EXTERNAL_SIGNALS, 0.5)
            comp_signals = self.adapter.gather(comp_snap.path)
            external_summary = self.adapter.compare(orig_signals, comp_signals)
        tampering = self.tampering_analyzer.analyze(
            comp_snap.metadata, comp_snap.file_info, comp_facts, comp_signals
        )
        ctx.finish(AnalysisStage.EXTERNAL_SIGNALS)

        findings: List[Finding] = []
        findings.extend(metadata_result.findings)
        findings.extend(text_findings)
        findings.extend(visual_findings)
        findings.extend(structure_result.findings)
        findings.extend(forensic_findings)
        findings = sort_by_severity(findings)

        risk_score = self.risk_scorer.comparison_score(
            findings, text_result.similarity, visual_result.average_ssim, tampering
        )

        report = DetectionReport(
            original_file=file_reference(orig_snap),
            comparison_file=file_reference(comp_snap),
            risk_score=risk_score,
            findings=findings,
            text_comparison=text_result.to_summary(),
            visual_comparison=visual_result.to_summary(),
            metadata_comparison=metadata_result.to_summary(),
            external_tools=external_summary,
            tampering_analysis=tampering,
        )
        logger.info(
            f"Comparison complete: risk {report.risk_score:.1f} ({report.risk_level.value}), "
            f"{len(findings)} findings"
        )
        return report

    def document_findings(self, facts: ForensicFacts) -> List[Finding]:
        """Findings for a single document: suspicious elements, hidden content, bad redactions."""
        findings = []

        for element in facts.suspicious_elements:
            findings.append(Finding(
                category=FindingCategory.SECURITY,
                severity=element.severity,
                title=element.type.value,
                description=element.description,
                page_number=element.page_number,
            ))

        for hidden in facts.hidden_content:
            findings.append(Finding(
                category=FindingCategory.HIDDEN,
                severity=HIDDEN_CONTENT_SEVERITY[hidden.type],
                title=hidden.type.value,
                description=hidden.description,
                page_number=hidden.page_number,
            ))

        for redaction in facts.redactions:
            if redaction.has_hidden_content:
                findings.append(Finding(
                    category=FindingCategory.SECURITY,
                    severity=Severity.CRITICAL,
                    title="Improper Redaction",
                    description=(
                        f"Redaction on page {redaction.page_number} covers but does not "
                        "remove content - text can be extracted"
                    ),
                    page_number=redaction.page_number,
                ))

        return findings

    def analyze_document(
        self,
        path: Union[str, Path],
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SingleDocumentReport:
        """
        Analyze one document for signs of tampering.

        Args:
            path: Path to the PDF
            progress_callback: Called as (stage, stage_progress, overall_progress)
            cancel_token: Polled before every stage

        Returns:
            SingleDocumentReport

        Raises:
            InvalidInputError: If the document cannot be opened
            AnalysisCancelledError: If the token is cancelled during the run
        """
        ctx = _RunContext(SINGLE_DOCUMENT_STAGES, progress_callback, cancel_token)

        ctx.begin(AnalysisStage.LOADING)
        snapshot = self.reader.load(path)
        ctx.finish(AnalysisStage.LOADING)

        ctx.begin(AnalysisStage.FORENSIC_EXTRACTION)
        facts = self.forensic_extractor.extract(snapshot)
        ctx.finish(AnalysisStage.FORENSIC_EXTRACTION)

        ctx.begin(AnalysisStage.EXTERNAL_SIGNALS)
        signals = self._gather_external(snapshot.path)
        ctx.finish(AnalysisStage.EXTERNAL_SIGNALS)

        ctx.begin(AnalysisStage.SECURITY)
        tampering = self.tampering_analyzer.analyze(snapshot.metadata, snapshot.file_info, facts, signals)
        findings = sort_by_severity(self.document_findings(facts))
        ctx.finish(AnalysisStage.SECURITY)

        report = SingleDocumentReport(
            file=file_reference(snapshot),
            page_count=snapshot.page_count,
            metadata=snapshot.metadata,
            forensics=facts,
            external_signals=signals,
            tampering_analysis=tampering,
            findings=findings,
            risk_score=self.risk_scorer.single_document_score(findings, tampering),
            missing_tools_message=signals.tools.missing_tools_message if signals is not None else None,
        )
        logger.info(
            f"Analysis of {snapshot.path.name} complete: risk {report.risk_score:.1f} "
            f"({report.risk_level.value}), tampering {tampering.likelihood.value}"
        )
        return report
