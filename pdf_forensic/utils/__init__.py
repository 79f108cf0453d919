"""
Utility modules for PDF forensic analysis.

This package contains shared utilities: the exception hierarchy and
audit trail logging.
"""

from pdf_forensic.utils.audit import AuditLevel, AuditLogger, get_audit_logger
from pdf_forensic.utils.exceptions import (
    AnalysisCancelledError,
    InvalidInputError,
    PDFForensicError,
    ToolFailedError,
    ToolUnavailableError,
)

__all__ = [
    # Exceptions
    "PDFForensicError",
    "InvalidInputError",
    "AnalysisCancelledError",
    "ToolUnavailableError",
    "ToolFailedError",
    # Audit Logging
    "AuditLevel",
    "AuditLogger",
    "get_audit_logger",
]
