"""PDF Forensic Tool - forensic comparison and tampering detection for PDF documents.

Compares two PDF documents across text, rendered pages, metadata, structure,
signatures and redactions, and scores the combined evidence of tampering.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
