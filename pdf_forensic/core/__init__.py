"""Core modules for PDF forensic analysis.

This package provides file intake and the document reader. The detection
engine lives in ``pdf_forensic.core.engine`` and is imported from there,
since it depends on the analysis package, which in turn depends on the
reader.
"""

from pdf_forensic.core.intake import calculate_sha256, get_file_info, read_extended_attributes
from pdf_forensic.core.reader import (
    AnnotationInfo,
    DocumentReader,
    DocumentSnapshot,
    ImageXObject,
    LinkInfo,
)

__all__ = [
    # Intake
    "calculate_sha256",
    "get_file_info",
    "read_extended_attributes",
    # Reader
    "AnnotationInfo",
    "DocumentReader",
    "DocumentSnapshot",
    "ImageXObject",
    "LinkInfo",
]
