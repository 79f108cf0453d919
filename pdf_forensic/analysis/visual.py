"""Rendered-page visual comparison.

Pages are rasterised by the document reader; this module converts them to
luminance and measures whole-image structural similarity (SSIM) and mean
absolute pixel difference. A difference image can be produced for display
with Pillow.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np
from PIL import Image, ImageChops, ImageEnhance

from pdf_forensic.models import (
    Finding,
    FindingCategory,
    Severity,
    VisualComparisonSummary,
)

logger = logging.getLogger(__name__)

K1 = 0.01
K2 = 0.03
DYNAMIC_RANGE = 255.0
C1 = (K1 * DYNAMIC_RANGE) ** 2
C2 = (K2 * DYNAMIC_RANGE) ** 2
C3 = C2 / 2

SIGNIFICANT_SSIM = 0.95
SIGNIFICANT_PIXEL_DIFF = 0.05
MATCH_SSIM = 0.98
MATCH_PIXEL_DIFF = 0.01


class DifferenceLevel(str, Enum):
    IDENTICAL = "Identical"
    MINOR = "Minor Differences"
    MODERATE = "Moderate Differences"
    SIGNIFICANT = "Significant Differences"


@dataclass(frozen=True)
class SSIMComponents:
    luminance: float
    contrast: float
    structure: float

    @property
    def combined(self) -> float:
        return self.luminance * self.contrast * self.structure


def luminance(image: np.ndarray) -> np.ndarray:
    """Convert an RGB (or grayscale) uint8 array to float luminance."""
    array = np.asarray(image, dtype=np.float64)
    if array.ndim == 2:
        return array
    return 0.299 * array[..., 0] + 0.587 * array[..., 1] + 0.114 * array[..., 2]


def _same_shape(a: np.ndarray, b: np.ndarray) -> bool:
    return a.shape == b.shape and a.size > 0


def _statistics(a: np.ndarray, b: np.ndarray):
    mean1 = a.mean()
    mean2 = b.mean()
    diff1 = a - mean1
    diff2 = b - mean2
    variance1 = np.mean(diff1 * diff1)
    variance2 = np.mean(diff2 * diff2)
    covariance = np.mean(diff1 * diff2)
    return mean1, mean2, variance1, variance2, covariance


def ssim(image1: np.ndarray, image2: np.ndarray) -> float:
    """
    Whole-image structural similarity.

    Returns:
        SSIM clamped to [0, 1]; 0.0 when the images differ in size
    """
    a = luminance(image1)
    b = luminance(image2)
    if not _same_shape(a, b):
        return 0.0

    mean1, mean2, variance1, variance2, covariance = _statistics(a, b)
    numerator = (2 * mean1 * mean2 + C1) * (2 * covariance + C2)
    denominator = (mean1 * mean1 + mean2 * mean2 + C1) * (variance1 + variance2 + C2)
    return float(max(0.0, min(1.0, numerator / denominator)))


def ssim_components(image1: np.ndarray, image2: np.ndarray) -> SSIMComponents:
    """Split SSIM into its luminance, contrast and structure terms."""
    a = luminance(image1)
    b = luminance(image2)
    if not _same_shape(a, b):
        return SSIMComponents(0.0, 0.0, 0.0)

    mean1, mean2, variance1, variance2, covariance = _statistics(a, b)
    sigma1 = np.sqrt(variance1)
    sigma2 = np.sqrt(variance2)
    return SSIMComponents(
        luminance=float((2 * mean1 * mean2 + C1) / (mean1 * mean1 + mean2 * mean2 + C1)),
        contrast=float((2 * sigma1 * sigma2 + C2) / (variance1 + variance2 + C2)),
        structure=float((covariance + C3) / (sigma1 * sigma2 + C3)),
    )


def pixel_difference(image1: np.ndarray, image2: np.ndarray) -> float:
    """Mean absolute luminance difference normalised to [0, 1]; 1.0 on size mismatch."""
    a = luminance(image1)
    b = luminance(image2)
    if not _same_shape(a, b):
        return 1.0
    return float(np.mean(np.abs(b - a)) / DYNAMIC_RANGE)


def difference_image(image1: np.ndarray, image2: np.ndarray) -> Optional[Image.Image]:
    """Difference blend of two renders, enhanced for visibility."""
    if np.asarray(image1).shape != np.asarray(image2).shape:
        return None
    first = Image.fromarray(np.ascontiguousarray(image1, dtype=np.uint8)).convert("RGB")
    second = Image.fromarray(np.ascontiguousarray(image2, dtype=np.uint8)).convert("RGB")
    diff = ImageChops.difference(first, second)
    diff = ImageEnhance.Contrast(diff).enhance(2.0)
    return ImageEnhance.Brightness(diff).enhance(1.5)


@dataclass
class PageImageResult:
    page_number: int
    ssim: float
    pixel_difference: float
    original_image: Optional[np.ndarray] = field(default=None, repr=False)
    comparison_image: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def has_significant_difference(self) -> bool:
        return self.ssim < SIGNIFICANT_SSIM or self.pixel_difference > SIGNIFICANT_PIXEL_DIFF

    @property
    def difference_level(self) -> DifferenceLevel:
        if self.ssim >= 0.99 and self.pixel_difference < 0.01:
            return DifferenceLevel.IDENTICAL
        if self.ssim >= 0.95 and self.pixel_difference < 0.05:
            return DifferenceLevel.MINOR
        if self.ssim >= 0.85:
            return DifferenceLevel.MODERATE
        return DifferenceLevel.SIGNIFICANT

    def difference_image(self) -> Optional[Image.Image]:
        if self.original_image is None or self.comparison_image is None:
            return None
        return difference_image(self.original_image, self.comparison_image)


@dataclass
class VisualComparisonResult:
    page_results: List[PageImageResult]
    average_ssim: float
    average_pixel_diff: float
    pages_with_differences: List[int]

    @property
    def overall_match(self) -> bool:
        return self.average_ssim >= MATCH_SSIM and self.average_pixel_diff < MATCH_PIXEL_DIFF

    def to_summary(self) -> VisualComparisonSummary:
        return VisualComparisonSummary(
            average_ssim=self.average_ssim,
            average_pixel_diff=min(1.0, self.average_pixel_diff),
            page_count=len(self.page_results),
            pages_with_differences=len(self.pages_with_differences),
        )


class VisualComparator:
    """Compares rendered pages of two documents."""

    def __init__(self, match_ssim: float = MATCH_SSIM):
        self.match_ssim = match_ssim

    def compare(
        self,
        original_images: List[np.ndarray],
        comparison_images: List[np.ndarray],
    ) -> VisualComparisonResult:
        """
        Compare pages pairwise up to the shorter document's page count.

        With no pages to compare the average SSIM is 0 and the average
        pixel difference is 1.
        """
        page_count = min(len(original_images), len(comparison_images))
        page_results = []
        pages_with_differences = []
        total_ssim = 0.0
        total_pixel_diff = 0.0

        for index in range(page_count):
            orig = original_images[index]
            comp = comparison_images[index]
            result = PageImageResult(
                page_number=index + 1,
                ssim=ssim(orig, comp),
                pixel_difference=pixel_difference(orig, comp),
                original_image=orig,
                comparison_image=comp,
            )
            total_ssim += result.ssim
            total_pixel_diff += result.pixel_difference
            page_results.append(result)
            if result.has_significant_difference:
                pages_with_differences.append(result.page_number)

        average_ssim = total_ssim / page_count if page_count else 0.0
        average_pixel_diff = total_pixel_diff / page_count if page_count else 1.0
        logger.debug(f"Average SSIM {average_ssim:.4f} over {page_count} pages")

        return VisualComparisonResult(
            page_results=page_results,
            average_ssim=average_ssim,
            average_pixel_diff=average_pixel_diff,
            pages_with_differences=pages_with_differences,
        )

    def generate_findings(self, result: VisualComparisonResult) -> List[Finding]:
        findings = []

        if result.average_ssim < self.match_ssim:
            if result.average_ssim < 0.85:
                severity = Severity.CRITICAL
            elif result.average_ssim < 0.95:
                severity = Severity.HIGH
            else:
                severity = Severity.MEDIUM

            findings.append(Finding(
                category=FindingCategory.VISUAL,
                severity=severity,
                title="Visual Differences Detected",
                description=f"Average visual similarity is {result.average_ssim * 100:.1f}%",
                details={
                    "Average SSIM": f"{result.average_ssim:.4f}",
                    "Pages with Differences": str(len(result.pages_with_differences)),
                },
            ))

        for page in result.page_results:
            if not page.has_significant_difference:
                continue
            findings.append(Finding(
                category=FindingCategory.VISUAL,
                severity=Severity.HIGH if page.ssim < 0.9 else Severity.MEDIUM,
                title=f"Page {page.page_number} Visual Difference",
                description=(
                    f"SSIM: {page.ssim * 100:.2f}%, "
                    f"Pixel diff: {page.pixel_difference * 100:.2f}%"
                ),
                page_number=page.page_number,
            ))

        return findings
