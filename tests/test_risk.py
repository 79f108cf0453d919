"""Tests for risk scoring."""

import pytest

from pdf_forensic.analysis.risk import RiskScorer
from pdf_forensic.models import (
    Finding,
    FindingCategory,
    RiskLevel,
    Severity,
    TamperingAnalysis,
    TamperingIndicator,
    TamperingIndicatorType,
)


def finding(severity: Severity) -> Finding:
    return Finding(category=FindingCategory.TEXT, severity=severity, title="t", description="d")


def tampering(*severities: Severity) -> TamperingAnalysis:
    return TamperingAnalysis(indicators=[
        TamperingIndicator(type=TamperingIndicatorType.INCREMENTAL_UPDATES, severity=s, title="t", description="d")
        for s in severities
    ])


class TestComparisonScore:
    """Tests for two-document scores."""

    def test_identical_documents_score_zero(self):
        """No findings and perfect similarity give zero."""
        assert RiskScorer().comparison_score([], 1.0, 1.0) == 0.0

    def test_findings_weighted_by_half(self):
        """Finding weights contribute half their sum."""
        score = RiskScorer().comparison_score([finding(Severity.HIGH), finding(Severity.LOW)], 1.0, 1.0)
        assert score == pytest.approx(50.0)

    def test_text_shortfall(self):
        """Text similarity below 0.95 adds (1 - similarity) x 30."""
        assert RiskScorer().comparison_score([], 0.75, 1.0) == pytest.approx(7.5)
        assert RiskScorer().comparison_score([], 0.96, 1.0) == 0.0

    def test_visual_shortfall(self):
        """Average SSIM below 0.98 adds (1 - ssim) x 40."""
        assert RiskScorer().comparison_score([], 1.0, 0.5) == pytest.approx(20.0)
        assert RiskScorer().comparison_score([], 1.0, 0.985) == 0.0

    def test_tampering_weighted_by_half(self):
        """The comparison document's tampering score contributes half."""
        score = RiskScorer().comparison_score([], 1.0, 1.0, tampering(Severity.MEDIUM))
        assert score == pytest.approx(10.0)

    def test_clamped_to_hundred(self):
        """Large inputs are clamped at 100."""
        findings = [finding(Severity.CRITICAL)] * 3
        score = RiskScorer().comparison_score(findings, 0.0, 0.0, tampering(Severity.CRITICAL))
        assert score == 100.0
        assert RiskScorer().get_risk_level(score) == RiskLevel.HIGH


class TestSingleDocumentScore:
    """Tests for one-document scores."""

    def test_weights(self):
        """Findings count at 0.3 and tampering at 0.5."""
        score = RiskScorer().single_document_score([finding(Severity.MEDIUM)], tampering(Severity.MEDIUM))
        assert score == pytest.approx(50 * 0.3 + 20 * 0.5)

    def test_empty(self):
        """No evidence gives zero."""
        assert RiskScorer().single_document_score([], TamperingAnalysis()) == 0.0


class TestRiskLevel:
    """Tests for risk level buckets."""

    @pytest.mark.parametrize("score,level", [
        (0.0, RiskLevel.MINIMAL),
        (14.9, RiskLevel.MINIMAL),
        (15.0, RiskLevel.LOW),
        (39.9, RiskLevel.LOW),
        (40.0, RiskLevel.MEDIUM),
        (69.9, RiskLevel.MEDIUM),
        (70.0, RiskLevel.HIGH),
        (100.0, RiskLevel.HIGH),
    ])
    def test_thresholds(self, score, level):
        """Scores map onto the four levels at 15, 40 and 70."""
        assert RiskScorer().get_risk_level(score) == level
