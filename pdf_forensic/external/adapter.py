"""
External signal adapter.

Runs mutool and exiftool against a document and turns their output into
ExternalSignals. Each sub-operation is independent: a missing tool, a
timeout or unparseable output leaves that fact empty and adds a line to
``ExternalSignals.errors``. Nothing raised here reaches the engine.
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pdf_forensic.external import parsers
from pdf_forensic.external.locator import EXIFTOOL, MUTOOL, ToolLocator
from pdf_forensic.external.runner import ToolRunner
from pdf_forensic.models import (
    ExternalSignals,
    ExternalToolsSummary,
    FontComparisonResult,
    PageResources,
    ResourceComparisonResult,
)
from pdf_forensic.utils.exceptions import ToolFailedError, ToolUnavailableError

logger = logging.getLogger(__name__)

EXTRACTION_DIR_PREFIX = "pdf_forensic_embedded_"


class ExternalSignalAdapter:
    """Gathers and compares facts reported by external inspection tools."""

    def __init__(
        self,
        locator: Optional[ToolLocator] = None,
        runner: Optional[ToolRunner] = None,
    ):
        self.locator = locator or ToolLocator()
        self.runner = runner or ToolRunner()

    def _attempt(self, signals: ExternalSignals, label: str, operation: Callable[[], None]) -> None:
        try:
            operation()
        except ToolUnavailableError as e:
            logger.debug(f"{label} skipped: {e}")
        except (ToolFailedError, ValueError, OSError) as e:
            logger.warning(f"{label} failed: {e}")
            signals.errors.append(f"{label}: {e}")

    def gather(self, path: Path) -> ExternalSignals:
        """
        Collect every external fact available for one document.

        Args:
            path: Path to the PDF file

        Returns:
            ExternalSignals; fields stay empty for missing tools
        """
        path = Path(path)
        tools = self.locator.check()
        signals = ExternalSignals(tools=tools)
        target = str(path)

        mutool = tools.mutool_path
        exiftool = tools.exiftool_path

        if mutool is None:
            logger.debug("mutool unavailable, skipping font and object inspection")
        else:
            def fonts():
                output = self.runner.run(mutool, ["info", "-F", target], MUTOOL)
                signals.fonts = parsers.parse_fonts_output(output)

            def resources():
                output = self.runner.run(mutool, ["info", target], MUTOOL)
                signals.page_resources = parsers.parse_page_resources_output(output)

            def objects():
                trailer = self.runner.run(mutool, ["show", target, "trailer"], MUTOOL)
                xref = self.runner.run(mutool, ["show", target, "xref"], MUTOOL)
                signals.object_info = parsers.parse_object_info(trailer, xref)

            self._attempt(signals, "Font listing", fonts)
            self._attempt(signals, "Page resources", resources)
            self._attempt(signals, "Object inspection", objects)

        if exiftool is None:
            logger.debug("exiftool unavailable, skipping XMP, GPS and attachment extraction")
        else:
            def xmp():
                output = self.runner.run(exiftool, ["-json", "-XMP:all", "-G1", target], EXIFTOOL)
                signals.xmp_metadata = parsers.parse_xmp_metadata(output)

            def versions():
                output = self.runner.run(exiftool, ["-json", "-all", "-G1", target], EXIFTOOL)
                signals.version_history = parsers.parse_version_history(output)

            def gps():
                output = self.runner.run(exiftool, ["-json", "-GPS:all", "-ee", target], EXIFTOOL)
                signals.gps_locations = parsers.parse_gps_data(output)

            def forensic():
                output = self.runner.run(exiftool, ["-json", "-all", "-G1", "-struct", target], EXIFTOOL)
                signals.forensic_metadata = parsers.parse_forensic_metadata(output)

            self._attempt(signals, "XMP metadata", xmp)
            self._attempt(signals, "Version history", versions)
            self._attempt(signals, "Embedded documents", lambda: self._extract_embedded(exiftool, target, signals))
            self._attempt(signals, "GPS data", gps)
            self._attempt(signals, "Forensic metadata", forensic)

        return signals

    def _extract_embedded(self, exiftool: str, target: str, signals: ExternalSignals) -> None:
        """Extract attachments into a scratch directory that is always removed."""
        output_dir = Path(tempfile.mkdtemp(prefix=EXTRACTION_DIR_PREFIX))
        try:
            pattern = str(output_dir / "%f_%t.%s")
            self.runner.run(exiftool, ["-b", "-EmbeddedFile", "-W", pattern, target], EXIFTOOL)
            # Paths point into the scratch directory and do not outlive the run
            signals.embedded_documents = parsers.list_extracted_files(output_dir)
        finally:
            shutil.rmtree(output_dir, ignore_errors=True)

    def compare_fonts(self, original: ExternalSignals, comparison: ExternalSignals) -> FontComparisonResult:
        original_names = {f.name for f in original.fonts}
        comparison_names = {f.name for f in comparison.fonts}
        return FontComparisonResult(
            added_fonts=sorted(comparison_names - original_names),
            removed_fonts=sorted(original_names - comparison_names),
            common_fonts=sorted(original_names & comparison_names),
        )

    def compare_resources(
        self, original: ExternalSignals, comparison: ExternalSignals
    ) -> ResourceComparisonResult:
        """List pages whose font, image or shading counts differ."""
        original_pages: Dict[int, PageResources] = {p.page_number: p for p in original.page_resources}
        comparison_pages: Dict[int, PageResources] = {p.page_number: p for p in comparison.page_resources}
        max_page = max(list(original_pages) + list(comparison_pages) + [0])

        differing: List[int] = []
        details: Dict[str, str] = {}
        for page in range(1, max_page + 1):
            orig = original_pages.get(page, PageResources(page_number=page))
            comp = comparison_pages.get(page, PageResources(page_number=page))

            changes = []
            for label, before, after in (
                ("fonts", len(orig.fonts), len(comp.fonts)),
                ("images", len(orig.images), len(comp.images)),
                ("shadings", len(orig.shadings), len(comp.shadings)),
            ):
                if before != after:
                    changes.append(f"{label} {before} -> {after}")

            if changes:
                differing.append(page)
                details[f"Page {page}"] = ", ".join(changes)

        return ResourceComparisonResult(pages_with_differences=differing, details=details)

    def compare(self, original: ExternalSignals, comparison: ExternalSignals) -> ExternalToolsSummary:
        """
        Build the external-tool section of a comparison report.

        Suspicious findings are taken from the comparison document.
        """
        tools = comparison.tools
        return ExternalToolsSummary(
            tools=tools,
            missing_tools_message=tools.missing_tools_message,
            original=original,
            comparison=comparison,
            font_comparison=self.compare_fonts(original, comparison),
            resource_comparison=self.compare_resources(original, comparison),
            suspicious_findings=comparison.suspicious_findings(),
        )
