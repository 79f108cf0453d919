"""Tests for rendered-page visual comparison."""

import numpy as np
import pytest

from pdf_forensic.analysis.visual import (
    DifferenceLevel,
    PageImageResult,
    VisualComparator,
    difference_image,
    luminance,
    pixel_difference,
    ssim,
    ssim_components,
)
from pdf_forensic.models import Severity


def page(value: int, height: int = 40, width: int = 30) -> np.ndarray:
    """A flat RGB page of one gray level."""
    return np.full((height, width, 3), value, dtype=np.uint8)


def noisy_page(seed: int = 1) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(40, 30, 3), dtype=np.uint8)


class TestSSIM:
    """Tests for whole-image SSIM."""

    def test_identical_is_one(self):
        """An image compared with itself scores 1."""
        image = noisy_page()
        assert ssim(image, image) == pytest.approx(1.0)

    def test_size_mismatch_is_zero(self):
        """Images of different size score 0."""
        assert ssim(page(255), page(255, height=41)) == 0.0

    def test_inverted_is_low(self):
        """A white page against a black page scores near 0."""
        assert ssim(page(255), page(0)) < 0.01

    def test_symmetric(self):
        """SSIM does not depend on argument order."""
        a, b = noisy_page(1), noisy_page(2)
        assert ssim(a, b) == pytest.approx(ssim(b, a))

    def test_components_multiply_to_ssim(self):
        """The three components of identical images are all 1."""
        image = noisy_page()
        components = ssim_components(image, image)
        assert components.combined == pytest.approx(1.0)

    def test_grayscale_input(self):
        """Two-dimensional arrays are used as luminance directly."""
        gray = np.full((10, 10), 128, dtype=np.uint8)
        assert luminance(gray).shape == (10, 10)
        assert ssim(gray, gray) == pytest.approx(1.0)


class TestPixelDifference:
    """Tests for mean absolute pixel difference."""

    def test_identical_is_zero(self):
        """Identical images have no pixel difference."""
        assert pixel_difference(page(100), page(100)) == 0.0

    def test_black_and_white_is_one(self):
        """Black against white is the maximum difference."""
        assert pixel_difference(page(0), page(255)) == pytest.approx(1.0)

    def test_size_mismatch_is_one(self):
        """Images of different size count as fully different."""
        assert pixel_difference(page(0), page(0, width=31)) == 1.0


class TestDifferenceImage:
    """Tests for the Pillow difference render."""

    def test_same_size_gives_image(self):
        """Same-size renders produce an RGB image of that size."""
        image = difference_image(page(0), page(255))
        assert image.size == (30, 40)
        assert image.mode == "RGB"

    def test_size_mismatch_gives_none(self):
        """Different sizes have no difference image."""
        assert difference_image(page(0), page(0, height=20)) is None


class TestPageImageResult:
    """Tests for per-page classification."""

    def test_levels(self):
        """Difference levels follow SSIM and pixel difference bands."""
        assert PageImageResult(1, 0.995, 0.001).difference_level == DifferenceLevel.IDENTICAL
        assert PageImageResult(1, 0.96, 0.02).difference_level == DifferenceLevel.MINOR
        assert PageImageResult(1, 0.90, 0.2).difference_level == DifferenceLevel.MODERATE
        assert PageImageResult(1, 0.50, 0.5).difference_level == DifferenceLevel.SIGNIFICANT

    def test_significant_difference(self):
        """Low SSIM or high pixel difference is significant."""
        assert PageImageResult(1, 0.90, 0.0).has_significant_difference
        assert PageImageResult(1, 0.99, 0.06).has_significant_difference
        assert not PageImageResult(1, 0.99, 0.01).has_significant_difference


class TestVisualComparator:
    """Tests for the document-level comparator."""

    def test_identical_documents(self):
        """Identical renders give SSIM 1 and no findings."""
        images = [noisy_page(1), noisy_page(2)]
        comparator = VisualComparator()
        result = comparator.compare(images, list(images))
        assert result.average_ssim == pytest.approx(1.0)
        assert result.average_pixel_diff == 0.0
        assert result.pages_with_differences == []
        assert result.overall_match
        assert comparator.generate_findings(result) == []

    def test_only_shared_pages_compared(self):
        """Pages beyond the shorter document are not compared."""
        result = VisualComparator().compare([page(0)], [page(0), page(255)])
        assert len(result.page_results) == 1

    def test_no_pages(self):
        """With no pages the averages are 0 SSIM and full difference."""
        result = VisualComparator().compare([], [])
        assert result.average_ssim == 0.0
        assert result.average_pixel_diff == 1.0

    def test_changed_page_findings(self):
        """A fully changed page gives a critical overall finding and a page finding."""
        comparator = VisualComparator()
        result = comparator.compare([page(255)], [page(0)])
        findings = comparator.generate_findings(result)
        assert findings[0].severity == Severity.CRITICAL
        assert findings[0].title == "Visual Differences Detected"
        assert findings[1].page_number == 1
        assert findings[1].severity == Severity.HIGH

    def test_summary(self):
        """to_summary keeps the averages within bounds."""
        result = VisualComparator().compare([page(255)], [page(0)])
        summary = result.to_summary()
        assert summary.page_count == 1
        assert summary.pages_with_differences == 1
        assert 0.0 <= summary.average_ssim <= 1.0
