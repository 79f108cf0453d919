"""PDF byte-level parsers for forensic analysis.

Includes:
- Raw byte scanning for structural artifacts (updates, objects, fonts, IDs)
- PDF and XMP date string parsing
"""

from pdf_forensic.parsers.byte_scanner import (
    ByteScanner,
    RawDocumentInfo,
    count_incremental_updates,
    decode_latin1,
    extract_document_id,
    extract_fonts,
)
from pdf_forensic.parsers.timestamp import (
    format_interval,
    parse_pdf_date,
    parse_xmp_date,
)

__all__ = [
    "ByteScanner",
    "RawDocumentInfo",
    "count_incremental_updates",
    "decode_latin1",
    "extract_document_id",
    "extract_fonts",
    "format_interval",
    "parse_pdf_date",
    "parse_xmp_date",
]
