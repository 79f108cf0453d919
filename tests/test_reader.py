"""Tests for the PyMuPDF document reader."""

import fitz
import pytest

from pdf_forensic.core.reader import AnnotationInfo, DocumentReader
from pdf_forensic.models import Rect
from pdf_forensic.utils.exceptions import InvalidInputError


@pytest.fixture
def reader():
    return DocumentReader(render_dpi=36)


class TestLoad:
    """Tests for loading documents into snapshots."""

    def test_snapshot(self, reader, make_pdf):
        """Test per-page text, images, sizes and metadata."""
        path = make_pdf("two.pdf", pages=["First page", "Second page"])
        snapshot = reader.load(path)

        assert snapshot.page_count == 2
        assert "First page" in snapshot.page_texts[0]
        assert "Second page" in snapshot.full_text
        assert snapshot.page_sizes == [(612.0, 792.0), (612.0, 792.0)]
        assert snapshot.page_images[0].ndim == 3
        assert snapshot.page_images[0].shape[2] == 3
        assert snapshot.metadata.title == "Quarterly Statement"
        assert snapshot.metadata.creator == "Writer"
        assert snapshot.metadata.creation_date is not None
        assert snapshot.metadata.version is not None
        assert snapshot.raw_bytes == path.read_bytes()
        assert snapshot.file_info.file_name == "two.pdf"

    def test_malformed_dates(self, reader, make_pdf):
        """Unparseable info dictionary dates load as missing values."""
        path = make_pdf("baddate.pdf", metadata={
            "creationDate": "D:20240101000000+99'00'",
            "modDate": "D:2024139912",
        })
        snapshot = reader.load(path)
        assert snapshot.metadata.creation_date is None
        assert snapshot.metadata.modification_date is None
        assert snapshot.page_count == 1

    def test_fonts(self, reader, sample_pdf):
        """Test that the font used for inserted text is listed."""
        assert reader.load(sample_pdf).fonts

    def test_links(self, reader, make_pdf):
        """Test that URI links are captured with their page number."""
        def add_link(doc):
            doc[0].insert_link({
                "kind": fitz.LINK_URI,
                "from": fitz.Rect(72, 100, 200, 120),
                "uri": "https://example.com/",
            })

        snapshot = reader.load(make_pdf("link.pdf", decorate=add_link))
        links = snapshot.all_links
        assert len(links) == 1
        assert links[0].action_type == "URI"
        assert links[0].uri == "https://example.com/"
        assert links[0].page_number == 1

    def test_not_a_pdf(self, reader, temp_dir):
        """Test that non-PDF content is rejected."""
        path = temp_dir / "fake.pdf"
        path.write_bytes(b"GIF89a not a document")
        with pytest.raises(InvalidInputError):
            reader.load(path)

    def test_missing(self, reader, temp_dir):
        """Test that a missing file is rejected."""
        with pytest.raises(InvalidInputError):
            reader.load(temp_dir / "missing.pdf")


class TestAnnotationInfo:
    """Tests for annotation colour helpers."""

    def test_colours(self):
        """Test stroke-first colour resolution."""
        bounds = Rect(x0=0, y0=0, x1=10, y1=10)
        white = AnnotationInfo(page_number=1, type="Square", bounds=bounds, fill_color=(1.0, 1.0, 1.0))
        black = AnnotationInfo(
            page_number=1, type="Square", bounds=bounds, stroke_color=(0.0, 0.0, 0.0), fill_color=(1.0, 1.0, 1.0)
        )
        plain = AnnotationInfo(page_number=1, type="Text", bounds=bounds)

        assert white.is_white and not white.is_black
        assert black.is_black
        assert not plain.is_white and plain.color is None
