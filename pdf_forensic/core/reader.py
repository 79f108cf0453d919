"""
Document reader built on PyMuPDF.

Opens a PDF once and captures everything later stages need into an
immutable DocumentSnapshot: per-page text, rasterised pages, annotations,
links, reader-reported fonts and image XObjects, the document attribute
dictionary, raw bytes, byte-level metadata and file information.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import fitz
import numpy as np

from pdf_forensic.core.intake import get_file_info
from pdf_forensic.models import FileInfo, PDFMetadata, Rect
from pdf_forensic.parsers.byte_scanner import ByteScanner
from pdf_forensic.parsers.timestamp import parse_pdf_date
from pdf_forensic.utils.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_RENDER_DPI = 150

LINK_KINDS = {
    fitz.LINK_URI: "URI",
    fitz.LINK_GOTO: "GoTo",
    fitz.LINK_NAMED: "Named",
    fitz.LINK_GOTOR: "RemoteGoTo",
    fitz.LINK_LAUNCH: "Launch",
}

Color = Tuple[float, ...]


def _is_color(color: Optional[Color], value: float) -> bool:
    if not color or len(color) < 3:
        return False
    return all(abs(c - value) <= 0.01 for c in color[:3])


@dataclass(frozen=True)
class AnnotationInfo:
    """One page annotation as reported by the reader."""
    page_number: int
    type: str
    bounds: Rect
    stroke_color: Optional[Color] = None
    fill_color: Optional[Color] = None
    contents: str = ""
    covered_text: str = ""

    @property
    def color(self) -> Optional[Color]:
        """Primary colour: stroke when present, else fill."""
        return self.stroke_color or self.fill_color

    @property
    def is_white(self) -> bool:
        return _is_color(self.color, 1.0)

    @property
    def is_black(self) -> bool:
        return _is_color(self.color, 0.0)


@dataclass(frozen=True)
class LinkInfo:
    """One link annotation."""
    page_number: int
    action_type: str
    bounds: Rect
    uri: Optional[str] = None
    destination: Optional[str] = None


@dataclass(frozen=True)
class ImageXObject:
    """An image XObject placed on a page."""
    page_number: int
    xref: int
    width: int
    height: int
    bits_per_component: int
    color_space: str
    filter: Optional[str]
    data_hash: str


@dataclass(frozen=True)
class DocumentSnapshot:
    """Immutable view of one opened document."""
    path: Path
    page_count: int
    page_texts: List[str]
    page_images: List[np.ndarray]
    page_sizes: List[Tuple[float, float]]
    annotations: List[List[AnnotationInfo]]
    links: List[List[LinkInfo]]
    fonts: List[str]
    images: List[ImageXObject]
    attributes: Dict[str, str]
    metadata: PDFMetadata
    file_info: FileInfo
    raw_bytes: bytes = field(repr=False)

    @property
    def all_annotations(self) -> List[AnnotationInfo]:
        return [a for page in self.annotations for a in page]

    @property
    def all_links(self) -> List[LinkInfo]:
        return [link for page in self.links for link in page]

    @property
    def full_text(self) -> str:
        return "\n".join(self.page_texts)


def _rect(r) -> Rect:
    return Rect(x0=float(r.x0), y0=float(r.y0), x1=float(r.x1), y1=float(r.y1))


def _short_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:16]


class DocumentReader:
    """Loads PDFs into DocumentSnapshots."""

    def __init__(self, render_dpi: int = DEFAULT_RENDER_DPI, scanner: Optional[ByteScanner] = None):
        self.render_dpi = render_dpi
        self.scanner = scanner or ByteScanner()

    def load(self, path: Union[str, Path]) -> DocumentSnapshot:
        """
        Open a PDF and capture a snapshot.

        Args:
            path: Path to the PDF

        Returns:
            DocumentSnapshot

        Raises:
            InvalidInputError: If the file is missing, unreadable, not a PDF
                or password protected
        """
        path = Path(path)
        file_info = get_file_info(path)

        try:
            raw_bytes = path.read_bytes()
        except OSError as e:
            raise InvalidInputError(str(path), "File could not be read", e)

        try:
            doc = fitz.open(stream=raw_bytes, filetype="pdf")
        except Exception as e:
            raise InvalidInputError(str(path), "Not a readable PDF document", e)

        try:
            if doc.needs_pass:
                raise InvalidInputError(str(path), "Document is password protected")
            if doc.page_count == 0:
                raise InvalidInputError(str(path), "Document has no pages")
            return self._snapshot(doc, path, raw_bytes, file_info)
        finally:
            doc.close()

    def _snapshot(self, doc, path: Path, raw_bytes: bytes, file_info: FileInfo) -> DocumentSnapshot:
        page_texts = []
        page_images = []
        page_sizes = []
        annotations = []
        links = []
        fonts = set()
        images = []
        annotation_total = 0

        for index, page in enumerate(doc):
            page_number = index + 1
            page_texts.append(page.get_text("text"))
            page_images.append(self._render(page))
            page_sizes.append((float(page.rect.width), float(page.rect.height)))
            annotations.append(self._annotations(page, page_number))
            links.append(self._links(page, page_number))
            annotation_total += len(page.annot_xrefs())

            for font in page.get_fonts():
                # (xref, ext, type, basefont, name, encoding)
                if font[3]:
                    fonts.add(font[3])

            images.extend(self._images(doc, page, page_number))

        attributes = {k: v for k, v in (doc.metadata or {}).items() if v}
        metadata = self._metadata(doc, attributes, raw_bytes, annotation_total)

        logger.debug(f"Loaded {path.name}: {doc.page_count} pages, {annotation_total} annotations")

        return DocumentSnapshot(
            path=path,
            page_count=doc.page_count,
            page_texts=page_texts,
            page_images=page_images,
            page_sizes=page_sizes,
            annotations=annotations,
            links=links,
            fonts=sorted(fonts),
            images=images,
            attributes=attributes,
            metadata=metadata,
            file_info=file_info,
            raw_bytes=raw_bytes,
        )

    def _render(self, page) -> np.ndarray:
        pix = page.get_pixmap(dpi=self.render_dpi, colorspace=fitz.csRGB, alpha=False)
        array = np.frombuffer(pix.samples, dtype=np.uint8)
        return array.reshape(pix.height, pix.width, pix.n)

    def _annotations(self, page, page_number: int) -> List[AnnotationInfo]:
        result = []
        for annot in page.annots():
            colors = annot.colors or {}
            result.append(AnnotationInfo(
                page_number=page_number,
                type=annot.type[1],
                bounds=_rect(annot.rect),
                stroke_color=tuple(colors.get("stroke") or ()) or None,
                fill_color=tuple(colors.get("fill") or ()) or None,
                contents=(annot.info or {}).get("content", "") or "",
                covered_text=page.get_textbox(annot.rect).strip(),
            ))
        return result

    def _links(self, page, page_number: int) -> List[LinkInfo]:
        result = []
        for link in page.get_links():
            kind = link.get("kind")
            destination = None
            if kind == fitz.LINK_GOTO and link.get("page", -1) >= 0:
                destination = f"Page {link['page'] + 1}"
            elif kind == fitz.LINK_NAMED:
                destination = link.get("name") or link.get("nameddest")
            elif kind in (fitz.LINK_GOTOR, fitz.LINK_LAUNCH):
                destination = link.get("file")

            result.append(LinkInfo(
                page_number=page_number,
                action_type=LINK_KINDS.get(kind, "Unknown"),
                bounds=_rect(link["from"]),
                uri=link.get("uri") if kind == fitz.LINK_URI else None,
                destination=destination,
            ))
        return result

    def _images(self, doc, page, page_number: int) -> List[ImageXObject]:
        result = []
        for img in page.get_images(full=True):
            # (xref, smask, width, height, bpc, colorspace, alt_colorspace, name, filter, referencer)
            xref = img[0]
            try:
                data = doc.xref_stream_raw(xref) or b""
            except Exception as e:
                logger.debug(f"Could not read image stream {xref}: {e}")
                data = b""
            result.append(ImageXObject(
                page_number=page_number,
                xref=xref,
                width=int(img[2]),
                height=int(img[3]),
                bits_per_component=int(img[4]) or 8,
                color_space=img[5] or "DeviceRGB",
                filter=img[8] or None,
                data_hash=_short_hash(data),
            ))
        return result

    def _metadata(self, doc, attributes: Dict[str, str], raw_bytes: bytes, annotation_count: int) -> PDFMetadata:
        raw = self.scanner.scan(raw_bytes)

        keywords = None
        if attributes.get("keywords"):
            keywords = [k.strip() for k in attributes["keywords"].split(",") if k.strip()]

        version = raw.version
        if version is None and attributes.get("format", "").startswith("PDF "):
            version = attributes["format"][4:]

        permissions = doc.permissions
        fields = raw.as_metadata_fields()
        fields["version"] = version

        return PDFMetadata(
            title=attributes.get("title"),
            author=attributes.get("author"),
            subject=attributes.get("subject"),
            keywords=keywords,
            creator=attributes.get("creator"),
            producer=attributes.get("producer"),
            creation_date=parse_pdf_date(attributes.get("creationDate")),
            modification_date=parse_pdf_date(attributes.get("modDate")),
            is_encrypted=bool(doc.is_encrypted or attributes.get("encryption")),
            allows_printing=bool(permissions & fitz.PDF_PERM_PRINT),
            allows_copying=bool(permissions & fitz.PDF_PERM_COPY),
            annotation_count=annotation_count,
            **fields,
        )
