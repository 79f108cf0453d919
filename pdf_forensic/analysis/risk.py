"""
Risk scoring for detection reports.

Comparison runs combine finding severity, text and visual similarity
shortfalls and the comparison document's tampering score. Single-document
runs combine finding severity and the tampering score. Both are clamped to
the 0-100 range and bucketed into a RiskLevel.
"""

from typing import List, Optional

from pdf_forensic.models import Finding, RiskLevel, TamperingAnalysis


class RiskScorer:
    """
    Calculates report risk scores.

    Comparison score:
    - 0.5 x the sum of finding severity weights
    - (1 - text similarity) x 30 when text similarity is below 0.95
    - (1 - average SSIM) x 40 when average SSIM is below 0.98
    - 0.5 x the tampering score

    Single-document score:
    - 0.3 x the sum of finding severity weights
    - 0.5 x the tampering score

    Risk level thresholds:
    - HIGH: 70+
    - MEDIUM: 40-70
    - LOW: 15-40
    - MINIMAL: below 15
    """

    FINDING_FACTOR = 0.5
    SINGLE_FINDING_FACTOR = 0.3
    TAMPERING_FACTOR = 0.5

    TEXT_THRESHOLD = 0.95
    TEXT_FACTOR = 30.0
    VISUAL_THRESHOLD = 0.98
    VISUAL_FACTOR = 40.0

    MAX_SCORE = 100.0

    def _clamp(self, score: float) -> float:
        return min(self.MAX_SCORE, max(0.0, score))

    def comparison_score(
        self,
        findings: List[Finding],
        text_similarity: float,
        average_ssim: float,
        tampering: Optional[TamperingAnalysis] = None,
    ) -> float:
        """
        Score a two-document comparison.

        Args:
            findings: All findings of the run
            text_similarity: Overall text similarity in [0, 1]
            average_ssim: Average page SSIM in [0, 1]
            tampering: Tampering analysis of the comparison document

        Returns:
            Risk score in [0, 100]
        """
        score = sum(f.weight for f in findings) * self.FINDING_FACTOR

        if text_similarity < self.TEXT_THRESHOLD:
            score += (1 - text_similarity) * self.TEXT_FACTOR

        if average_ssim < self.VISUAL_THRESHOLD:
            score += (1 - average_ssim) * self.VISUAL_FACTOR

        if tampering is not None:
            score += tampering.score * self.TAMPERING_FACTOR

        return self._clamp(score)

    def single_document_score(self, findings: List[Finding], tampering: TamperingAnalysis) -> float:
        """Score a one-document tampering analysis."""
        score = sum(f.weight for f in findings) * self.SINGLE_FINDING_FACTOR
        score += tampering.score * self.TAMPERING_FACTOR
        return self._clamp(score)

    def get_risk_level(self, score: float) -> RiskLevel:
        return RiskLevel.from_score(score)
