"""Pytest configuration and shared fixtures for PDF Forensic Tool tests."""

import shutil
import stat
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import fitz
import numpy as np
import pytest

from pdf_forensic.config import AnalysisSettings, ToolMode
from pdf_forensic.core.reader import AnnotationInfo, DocumentSnapshot, ImageXObject, LinkInfo
from pdf_forensic.models import FileInfo, PDFMetadata


def pdf_date(value: datetime) -> str:
    """Format a datetime as a PDF date string in UTC."""
    return value.astimezone(timezone.utc).strftime("D:%Y%m%d%H%M%S+00'00'")


def recent_date() -> str:
    """A PDF date one minute in the past, close to any freshly written file's mtime."""
    return pdf_date(datetime.now(timezone.utc) - timedelta(minutes=1))


def build_raw_pdf(body: str = "", eof_markers: int = 1, trailer_extra: str = "") -> bytes:
    """Assemble a minimal uncompressed PDF from raw text.

    The result is not guaranteed to open in a reader; it is meant for the
    byte-level scanners.
    """
    parts = [
        "%PDF-1.7\n",
        "1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n",
        "2 0 obj\n<< /Type /Pages /Kids [3 0 R] /Count 1 >>\nendobj\n",
        "3 0 obj\n<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >>\nendobj\n",
        body,
        "xref\n0 4\n0000000000 65535 f \n",
        f"trailer\n<< /Size 4 /Root 1 0 R {trailer_extra}>>\nstartxref\n9\n",
    ]
    text = "".join(parts) + "%%EOF\n" * eof_markers
    return text.encode("latin-1")


def make_file_info(name: str = "doc.pdf", size: int = 1024, digest: str = "a" * 64, **kwargs) -> FileInfo:
    return FileInfo(
        file_name=name,
        file_path=f"/evidence/{name}",
        file_size=size,
        sha256=digest,
        **kwargs,
    )


def make_snapshot(
    raw_bytes: bytes = b"",
    page_texts: Optional[List[str]] = None,
    annotations: Optional[List[List[AnnotationInfo]]] = None,
    links: Optional[List[List[LinkInfo]]] = None,
    metadata: Optional[PDFMetadata] = None,
    file_info: Optional[FileInfo] = None,
    page_sizes: Optional[List[Tuple[float, float]]] = None,
    fonts: Optional[List[str]] = None,
    images: Optional[List[ImageXObject]] = None,
) -> DocumentSnapshot:
    """Build a DocumentSnapshot directly, without opening a file."""
    page_texts = page_texts if page_texts is not None else [""]
    count = len(page_texts)
    return DocumentSnapshot(
        path=Path("/evidence/doc.pdf"),
        page_count=count,
        page_texts=page_texts,
        page_images=[np.full((20, 10, 3), 255, dtype=np.uint8) for _ in range(count)],
        page_sizes=page_sizes or [(612.0, 792.0)] * count,
        annotations=annotations or [[] for _ in range(count)],
        links=links or [[] for _ in range(count)],
        fonts=fonts or [],
        images=images or [],
        attributes={},
        metadata=metadata or PDFMetadata(),
        file_info=file_info or make_file_info(),
        raw_bytes=raw_bytes,
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_pdf(temp_dir) -> Callable[..., Path]:
    """Factory building real PDFs with PyMuPDF.

    Args (of the returned callable):
        name: File name inside the temp directory
        pages: One text string per page
        metadata: Overrides for the document information dictionary
        decorate: Optional callback receiving the open fitz document
            before it is saved (for annotations, links and so on)
    """

    def factory(
        name: str = "document.pdf",
        pages: Optional[List[str]] = None,
        metadata: Optional[Dict[str, str]] = None,
        decorate: Optional[Callable[[fitz.Document], None]] = None,
    ) -> Path:
        pages = pages if pages is not None else ["The quick brown fox jumps over the lazy dog."]
        doc = fitz.open()
        for text in pages:
            page = doc.new_page(width=612, height=792)
            if text:
                page.insert_text((72, 72), text, fontsize=12)

        date = recent_date()
        info = {
            "title": "Quarterly Statement",
            "author": "Records Office",
            "subject": "",
            "keywords": "",
            "creator": "Writer",
            "producer": "Writer",
            "creationDate": date,
            "modDate": date,
        }
        info.update(metadata or {})
        doc.set_metadata(info)

        if decorate is not None:
            decorate(doc)

        path = temp_dir / name
        doc.save(str(path), garbage=0, deflate=False)
        doc.close()
        return path

    return factory


@pytest.fixture
def sample_pdf(make_pdf) -> Path:
    """A one-page PDF with ordinary metadata."""
    return make_pdf("original.pdf")


@pytest.fixture
def identical_pdfs(sample_pdf, temp_dir):
    """A PDF and a byte-identical copy of it."""
    copy = temp_dir / "copy.pdf"
    shutil.copy(sample_pdf, copy)
    return sample_pdf, copy


@pytest.fixture
def offline_settings() -> AnalysisSettings:
    """Settings with external tools switched off."""
    return AnalysisSettings(tool_mode=ToolMode.OFF)


@pytest.fixture
def fake_tool(temp_dir) -> Callable[..., Path]:
    """Factory writing an executable shell script that stands in for a tool.

    The script prints ``stdout`` and exits with ``exit_code``. With
    ``sleep`` set it sleeps first, for timeout tests.
    """
    bin_dir = temp_dir / "bin"
    bin_dir.mkdir(exist_ok=True)

    def factory(name: str, stdout: str = "", exit_code: int = 0, sleep: float = 0, stderr: str = "") -> Path:
        data_file = bin_dir / f"{name}.out"
        data_file.write_text(stdout, encoding="utf-8")
        lines = ["#!/bin/sh"]
        if sleep:
            lines.append(f"sleep {sleep}")
        lines.append(f"cat '{data_file}'")
        if stderr:
            lines.append(f"echo '{stderr}' >&2")
        lines.append(f"exit {exit_code}")

        script = bin_dir / name
        script.write_text("\n".join(lines) + "\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return factory
