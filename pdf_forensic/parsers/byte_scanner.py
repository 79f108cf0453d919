"""Byte-level PDF internals extraction.

This module scans the raw byte stream of a PDF as Latin-1 text and recovers
structural artifacts without building any object model:

- Incremental update count from repeated %%EOF markers
- Approximate object count from "N M obj" headers
- Linearization, XMP, JavaScript, signature, embedded file, form and
  tagged-PDF markers
- PDF/A, PDF/X and PDF/UA conformance claims
- Cross-reference kind (stream or classic table)
- Trailer document identifiers
- Font inventory with type, embedding and subsetting detail

Every scan tolerates malformed input and falls back to an empty value.
Results are deterministic for identical input bytes.
"""

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from pdf_forensic.models import DocumentID, FontInfo

OBJECT_HEADER = re.compile(r"\d+\s+\d+\s+obj")
FIELDS_ARRAY = re.compile(r"/Fields\s*\[")
BASE_FONT = re.compile(r"/BaseFont\s*/([A-Za-z0-9+\-_]+)")
HEADER_VERSION = re.compile(r"^%PDF-(\d\.\d)")

DOCUMENT_ID_PATTERNS = [
    re.compile(r"/ID\s*\[\s*<([0-9A-Fa-f]+)>\s*<([0-9A-Fa-f]+)>\s*\]"),
    re.compile(r"/ID\s*\[\s*\(([^)]+)\)\s*\(([^)]+)\)\s*\]"),
]

# Checked in order; the first subtype found near a font wins
FONT_SUBTYPES = [
    "Type1",
    "TrueType",
    "Type0",
    "Type3",
    "CIDFontType0",
    "CIDFontType2",
    "OpenType",
]

FONT_TYPE_WINDOW = 500
FONT_EMBED_WINDOW = 1000
SUBSET_PREFIX_LENGTH = 6


@dataclass
class RawDocumentInfo:
    """Structural facts recovered from raw bytes."""
    version: Optional[str] = None
    document_id: Optional[DocumentID] = None
    is_linearized: bool = False
    has_xmp_metadata: bool = False
    incremental_updates: int = 0
    object_count: int = 0
    has_javascript: bool = False
    has_digital_signature: bool = False
    embedded_file_count: int = 0
    form_field_count: int = 0
    fonts: List[FontInfo] = field(default_factory=list)
    is_tagged_pdf: bool = False
    pdf_conformance: Optional[str] = None
    xref_type: Optional[str] = None

    def as_metadata_fields(self) -> Dict[str, Any]:
        """Return the fields as keyword arguments for PDFMetadata."""
        fields = asdict(self)
        fields["document_id"] = self.document_id
        fields["fonts"] = list(self.fonts)
        return fields


def decode_latin1(data: bytes) -> str:
    """Decode bytes one-to-one so byte offsets equal string offsets."""
    return data.decode("latin-1")


def count_incremental_updates(content: str) -> int:
    """Number of update sections beyond the original body.

    Linearized files legitimately carry two %%EOF markers, so the first
    two are not counted.
    """
    return max(0, content.count("%%EOF") - 2)


def count_objects(content: str) -> int:
    return len(OBJECT_HEADER.findall(content))


def extract_version(content: str) -> Optional[str]:
    match = HEADER_VERSION.match(content[:16])
    return match.group(1) if match else None


def extract_document_id(content: str) -> Optional[DocumentID]:
    """Extract the /ID pair from the trailer (hex or literal string form)."""
    for pattern in DOCUMENT_ID_PATTERNS:
        match = pattern.search(content)
        if match:
            return DocumentID(permanent=match.group(1), changing=match.group(2))
    return None


def detect_conformance(content: str) -> Optional[str]:
    if "pdfaid:part" in content or "PDF/A" in content:
        return "PDF/A"
    if "pdfxid:GTS_PDFXVersion" in content or "PDF/X" in content:
        return "PDF/X"
    if "PDF/UA" in content:
        return "PDF/UA"
    return None


def detect_xref_type(content: str) -> Optional[str]:
    if "/Type /XRef" in content or "/Type/XRef" in content:
        return "stream"
    if "xref" in content:
        return "table"
    return None


def count_form_fields(content: str) -> int:
    if "/AcroForm" not in content or not FIELDS_ARRAY.search(content):
        return 0
    return content.count("/FT")


def _font_context(content: str, font_name: str, window: int) -> Optional[str]:
    location = content.find(f"/BaseFont /{font_name}")
    if location < 0:
        location = content.find(f"/BaseFont/{font_name}")
    if location < 0:
        return None
    end = location + len("/BaseFont /") + len(font_name)
    return content[max(0, location - window):end + window]


def _font_type(content: str, font_name: str) -> Optional[str]:
    context = _font_context(content, font_name, FONT_TYPE_WINDOW)
    if context is None:
        return None
    for subtype in FONT_SUBTYPES:
        if f"/Subtype /{subtype}" in context or f"/Subtype/{subtype}" in context:
            return subtype
    return None


def _font_embedded(content: str, font_name: str) -> bool:
    context = _font_context(content, font_name, FONT_EMBED_WINDOW)
    return context is not None and "/FontFile" in context


def extract_fonts(content: str) -> List[FontInfo]:
    """Build the font inventory, deduplicated by BaseFont and sorted by name."""
    fonts = []
    seen = set()

    for match in BASE_FONT.finditer(content):
        base_font = match.group(1)
        if base_font in seen:
            continue
        seen.add(base_font)

        # Subset fonts carry a six-letter tag: ABCDEF+Helvetica
        is_subset = base_font.find("+") == SUBSET_PREFIX_LENGTH
        name = base_font[SUBSET_PREFIX_LENGTH + 1:] if is_subset else base_font

        fonts.append(FontInfo(
            name=name,
            base_font=base_font,
            type=_font_type(content, base_font),
            is_embedded=_font_embedded(content, base_font),
            is_subset=is_subset,
        ))

    return sorted(fonts, key=lambda f: (f.name, f.base_font or ""))


class ByteScanner:
    """Runs every byte-level scan over one document's raw bytes."""

    def scan(self, data: bytes) -> RawDocumentInfo:
        """
        Scan raw PDF bytes.

        Args:
            data: Complete file contents

        Returns:
            RawDocumentInfo; empty or malformed input yields defaults
        """
        if not data:
            return RawDocumentInfo()

        content = decode_latin1(data)

        return RawDocumentInfo(
            version=extract_version(content),
            document_id=extract_document_id(content),
            is_linearized="/Linearized" in content,
            has_xmp_metadata="<x:xmpmeta" in content or "<?xpacket" in content,
            incremental_updates=count_incremental_updates(content),
            object_count=count_objects(content),
            has_javascript="/JavaScript" in content or "/JS" in content,
            has_digital_signature="/Sig" in content and "/ByteRange" in content,
            embedded_file_count=content.count("/EmbeddedFile"),
            form_field_count=count_form_fields(content),
            fonts=extract_fonts(content),
            is_tagged_pdf="/MarkInfo" in content and "/Marked true" in content,
            pdf_conformance=detect_conformance(content),
            xref_type=detect_xref_type(content),
        )
