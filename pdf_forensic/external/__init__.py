"""Optional external inspection tools (mutool, exiftool)."""

from pdf_forensic.external.adapter import ExternalSignalAdapter
from pdf_forensic.external.locator import ToolLocator
from pdf_forensic.external.runner import ToolRunner

__all__ = [
    "ExternalSignalAdapter",
    "ToolLocator",
    "ToolRunner",
]
