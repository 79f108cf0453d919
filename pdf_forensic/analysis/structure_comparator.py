"""Structural comparison of two loaded documents.

Covers page count, page dimensions, reader-reported fonts, annotation counts
and URI hyperlinks.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Set

from pdf_forensic.core.reader import DocumentSnapshot
from pdf_forensic.models import Finding, FindingCategory, Severity

logger = logging.getLogger(__name__)

PAGE_SIZE_TOLERANCE = 1.0


@dataclass
class FontAnalysis:
    original_fonts: Set[str]
    comparison_fonts: Set[str]

    @property
    def common_fonts(self) -> Set[str]:
        return self.original_fonts & self.comparison_fonts

    @property
    def added_fonts(self) -> Set[str]:
        return self.comparison_fonts - self.original_fonts

    @property
    def removed_fonts(self) -> Set[str]:
        return self.original_fonts - self.comparison_fonts

    @property
    def has_differences(self) -> bool:
        return bool(self.added_fonts or self.removed_fonts)


@dataclass
class AnnotationAnalysis:
    original_count: int
    comparison_count: int

    @property
    def difference_count(self) -> int:
        return abs(self.original_count - self.comparison_count)

    @property
    def has_differences(self) -> bool:
        return self.original_count != self.comparison_count


@dataclass
class LinkAnalysis:
    original_links: List[str]
    comparison_links: List[str]

    @property
    def added_links(self) -> List[str]:
        return sorted(set(self.comparison_links) - set(self.original_links))

    @property
    def removed_links(self) -> List[str]:
        return sorted(set(self.original_links) - set(self.comparison_links))

    @property
    def has_differences(self) -> bool:
        return bool(self.added_links or self.removed_links)


@dataclass
class StructureComparisonResult:
    page_count_match: bool
    page_size_match: bool
    font_analysis: FontAnalysis
    annotation_analysis: AnnotationAnalysis
    link_analysis: LinkAnalysis
    findings: List[Finding] = field(default_factory=list)


def uri_links(snapshot: DocumentSnapshot) -> List[str]:
    return [link.uri for link in snapshot.all_links if link.uri]


class StructureComparator:
    """Compares document structure as seen by the reader."""

    def __init__(self, page_size_tolerance: float = PAGE_SIZE_TOLERANCE):
        self.page_size_tolerance = page_size_tolerance

    def page_sizes_match(self, original: DocumentSnapshot, comparison: DocumentSnapshot) -> bool:
        """Compare dimensions of the pages both documents have."""
        for orig_size, comp_size in zip(original.page_sizes, comparison.page_sizes):
            if (
                abs(orig_size[0] - comp_size[0]) > self.page_size_tolerance
                or abs(orig_size[1] - comp_size[1]) > self.page_size_tolerance
            ):
                return False
        return True

    def compare(self, original: DocumentSnapshot, comparison: DocumentSnapshot) -> StructureComparisonResult:
        """
        Compare the structure of two documents.

        Args:
            original: Reference document
            comparison: Questioned document

        Returns:
            StructureComparisonResult with findings
        """
        findings = []

        page_count_match = original.page_count == comparison.page_count
        if not page_count_match:
            findings.append(Finding(
                category=FindingCategory.STRUCTURE,
                severity=Severity.CRITICAL,
                title="Page Count Mismatch",
                description="Documents have different number of pages",
                details={
                    "Original": f"{original.page_count} pages",
                    "Comparison": f"{comparison.page_count} pages",
                },
            ))

        page_size_match = self.page_sizes_match(original, comparison)
        if not page_size_match:
            findings.append(Finding(
                category=FindingCategory.STRUCTURE,
                severity=Severity.MEDIUM,
                title="Page Size Differences",
                description="One or more pages have different dimensions",
            ))

        fonts = FontAnalysis(set(original.fonts), set(comparison.fonts))
        if fonts.has_differences:
            findings.append(Finding(
                category=FindingCategory.STRUCTURE,
                severity=Severity.HIGH,
                title="Font Differences Detected",
                description="Documents use different fonts",
                details={
                    "Added Fonts": ", ".join(sorted(fonts.added_fonts)),
                    "Removed Fonts": ", ".join(sorted(fonts.removed_fonts)),
                },
            ))

        annotations = AnnotationAnalysis(
            original.metadata.annotation_count, comparison.metadata.annotation_count
        )
        if annotations.has_differences:
            findings.append(Finding(
                category=FindingCategory.STRUCTURE,
                severity=Severity.MEDIUM,
                title="Annotation Count Differs",
                description="Documents have different numbers of annotations",
                details={
                    "Original": str(annotations.original_count),
                    "Comparison": str(annotations.comparison_count),
                },
            ))

        links = LinkAnalysis(uri_links(original), uri_links(comparison))
        if links.has_differences:
            findings.append(Finding(
                category=FindingCategory.STRUCTURE,
                severity=Severity.HIGH,
                title="Link Differences Detected",
                description="Documents have different hyperlinks",
                details={
                    "Added Links": ", ".join(links.added_links),
                    "Removed Links": ", ".join(links.removed_links),
                },
            ))

        logger.debug(f"Structure comparison produced {len(findings)} findings")

        return StructureComparisonResult(
            page_count_match=page_count_match,
            page_size_match=page_size_match,
            font_analysis=fonts,
            annotation_analysis=annotations,
            link_analysis=links,
            findings=findings,
        )
