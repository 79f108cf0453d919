"""Comparison of per-document forensic facts.

Turns the differences between two ForensicFacts (images, links, layers,
signatures, hidden content, XMP history, redactions, suspicious elements)
into findings, and looks for look-alike character substitutions between the
two documents' page texts.
"""

import logging
from dataclasses import dataclass
from typing import List

from pdf_forensic.models import (
    DigitalSignature,
    EmbeddedImage,
    Finding,
    FindingCategory,
    ForensicFacts,
    HiddenContent,
    HiddenContentType,
    PDFLayer,
    PDFLink,
    Redaction,
    Severity,
    SuspiciousElement,
    XMPHistoryEntry,
)

logger = logging.getLogger(__name__)

URL_SHORTENERS = ("bit.ly", "tinyurl", "goo.gl")

LOOKALIKE_PAIRS = {
    frozenset(pair)
    for pair in [
        ("0", "O"),
        ("1", "l"),
        ("1", "I"),
        ("5", "S"),
        ("8", "B"),
        ("2", "Z"),
        ("6", "G"),
        (".", ","),
        ("0", "o"),
    ]
}

HIDDEN_CONTENT_SEVERITY = {
    HiddenContentType.INVISIBLE_TEXT: Severity.HIGH,
    HiddenContentType.WHITE_TEXT: Severity.HIGH,
    HiddenContentType.HIDDEN_LAYER: Severity.MEDIUM,
    HiddenContentType.OFF_PAGE_CONTENT: Severity.HIGH,
    HiddenContentType.COVERED_CONTENT: Severity.HIGH,
    HiddenContentType.TINY_TEXT: Severity.MEDIUM,
}

CONTEXT_CHARS = 10


@dataclass(frozen=True)
class CharacterDiff:
    """A single position where two page texts disagree."""
    position: int
    original_char: str
    new_char: str
    context: str

    @property
    def is_suspicious_substitution(self) -> bool:
        if frozenset((self.original_char, self.new_char)) in LOOKALIKE_PAIRS:
            return True
        # A digit turning into whitespace (or back) changes how a number reads
        involves_digit = self.original_char.isdigit() or self.new_char.isdigit()
        involves_space = self.original_char.isspace() or self.new_char.isspace()
        return involves_digit and involves_space

    @property
    def substitution_type(self) -> str:
        if self.original_char.isdigit() and self.new_char.isalpha():
            return "Number to Letter"
        if self.original_char.isalpha() and self.new_char.isdigit():
            return "Letter to Number"
        if {self.original_char, self.new_char} == {".", ","}:
            return "Decimal Separator Change"
        return "Character Substitution"


def find_character_differences(original: str, comparison: str) -> List[CharacterDiff]:
    """
    Position-wise character differences for texts of near-equal length.

    Texts whose lengths differ by a tenth of the original or more are
    skipped, since positions no longer line up.
    """
    if abs(len(original) - len(comparison)) >= len(original) // 10:
        return []

    diffs = []
    for i, (a, b) in enumerate(zip(original, comparison)):
        if a == b:
            continue
        start = max(0, i - CONTEXT_CHARS)
        end = min(len(original), i + CONTEXT_CHARS)
        diffs.append(CharacterDiff(position=i, original_char=a, new_char=b, context=original[start:end]))
    return diffs


class ForensicComparator:
    """Produces findings from two documents' forensic facts."""

    def compare(
        self,
        original: ForensicFacts,
        comparison: ForensicFacts,
        original_pages: List[str],
        comparison_pages: List[str],
    ) -> List[Finding]:
        """
        Compare forensic facts of two documents.

        Args:
            original: Facts of the reference document
            comparison: Facts of the questioned document
            original_pages: Page texts of the reference document
            comparison_pages: Page texts of the questioned document

        Returns:
            Findings in emission order
        """
        findings = []
        findings.extend(self.compare_images(original.embedded_images, comparison.embedded_images))
        findings.extend(self.compare_links(original.links, comparison.links))
        findings.extend(self.compare_layers(original.layers, comparison.layers))
        findings.extend(self.compare_signatures(original.signatures, comparison.signatures))
        findings.extend(self.report_hidden_content(original.hidden_content, comparison.hidden_content))
        findings.extend(self.compare_xmp_history(original.xmp_history, comparison.xmp_history))
        findings.extend(self.report_redactions(original.redactions, comparison.redactions))
        findings.extend(self.report_suspicious_elements(
            original.suspicious_elements, comparison.suspicious_elements
        ))
        findings.extend(self.character_substitutions(original_pages, comparison_pages))

        logger.debug(f"Forensic comparison produced {len(findings)} findings")
        return findings

    def compare_images(self, original: List[EmbeddedImage], comparison: List[EmbeddedImage]) -> List[Finding]:
        findings = []
        orig_hashes = {img.data_hash for img in original}
        comp_hashes = {img.data_hash for img in comparison}

        added = comp_hashes - orig_hashes
        removed = orig_hashes - comp_hashes
        if added:
            findings.append(Finding(
                category=FindingCategory.IMAGES,
                severity=Severity.HIGH,
                title="New Images Added",
                description=f"{len(added)} image(s) added in comparison document",
            ))
        if removed:
            findings.append(Finding(
                category=FindingCategory.IMAGES,
                severity=Severity.HIGH,
                title="Images Removed",
                description=f"{len(removed)} image(s) removed from comparison document",
            ))

        pairs = list(zip(original, comparison))
        for index, (orig_img, comp_img) in enumerate(pairs):
            if orig_img.width != comp_img.width or orig_img.height != comp_img.height:
                findings.append(Finding(
                    category=FindingCategory.IMAGES,
                    severity=Severity.MEDIUM,
                    title="Image Dimensions Changed",
                    description=(
                        f"Image {index + 1}: {orig_img.width}x{orig_img.height} -> "
                        f"{comp_img.width}x{comp_img.height}"
                    ),
                    page_number=orig_img.page_number,
                ))

        for index, (orig_img, comp_img) in enumerate(pairs):
            if orig_img.filter != comp_img.filter:
                findings.append(Finding(
                    category=FindingCategory.IMAGES,
                    severity=Severity.LOW,
                    title="Image Compression Changed",
                    description=f"Image {index + 1}: {orig_img.filter or 'none'} -> {comp_img.filter or 'none'}",
                    page_number=orig_img.page_number,
                ))

        return findings

    def compare_links(self, original: List[PDFLink], comparison: List[PDFLink]) -> List[Finding]:
        findings = []
        orig_urls = {link.url for link in original if link.url}
        comp_urls = {link.url for link in comparison if link.url}

        for url in sorted(comp_urls - orig_urls):
            findings.append(Finding(
                category=FindingCategory.LINKS,
                severity=Severity.MEDIUM,
                title="New Link Added",
                description=f"Link added: {url}",
            ))
        for url in sorted(orig_urls - comp_urls):
            findings.append(Finding(
                category=FindingCategory.LINKS,
                severity=Severity.MEDIUM,
                title="Link Removed",
                description=f"Link removed: {url}",
            ))

        for link in comparison:
            if link.url and any(s in link.url.lower() for s in URL_SHORTENERS):
                findings.append(Finding(
                    category=FindingCategory.SECURITY,
                    severity=Severity.MEDIUM,
                    title="Shortened URL Detected",
                    description=f"Document contains shortened URL: {link.url}",
                    page_number=link.page_number,
                ))

        if len(original) != len(comparison):
            findings.append(Finding(
                category=FindingCategory.LINKS,
                severity=Severity.LOW,
                title="Link Count Changed",
                description=f"Links: {len(original)} -> {len(comparison)}",
            ))

        return findings

    def compare_layers(self, original: List[PDFLayer], comparison: List[PDFLayer]) -> List[Finding]:
        findings = []
        orig_names = {layer.name for layer in original}
        comp_names = {layer.name for layer in comparison}

        for name in sorted(comp_names - orig_names):
            findings.append(Finding(
                category=FindingCategory.HIDDEN,
                severity=Severity.HIGH,
                title="New Layer Added",
                description=f"Layer '{name}' added in comparison document",
            ))
        for name in sorted(orig_names - comp_names):
            findings.append(Finding(
                category=FindingCategory.HIDDEN,
                severity=Severity.HIGH,
                title="Layer Removed",
                description=f"Layer '{name}' removed from comparison document",
            ))

        comp_by_name = {}
        for layer in comparison:
            comp_by_name.setdefault(layer.name, layer)
        for orig_layer in original:
            comp_layer = comp_by_name.get(orig_layer.name)
            if comp_layer is None or comp_layer.is_visible == orig_layer.is_visible:
                continue
            before = "visible" if orig_layer.is_visible else "hidden"
            after = "visible" if comp_layer.is_visible else "hidden"
            findings.append(Finding(
                category=FindingCategory.HIDDEN,
                severity=Severity.MEDIUM,
                title="Layer Visibility Changed",
                description=f"Layer '{orig_layer.name}': {before} -> {after}",
            ))

        return findings

    def compare_signatures(
        self,
        original: List[DigitalSignature],
        comparison: List[DigitalSignature],
    ) -> List[Finding]:
        findings = []

        if len(comparison) > len(original):
            findings.append(Finding(
                category=FindingCategory.SIGNATURES,
                severity=Severity.INFO,
                title="Signature Added",
                description=f"Comparison document has {len(comparison) - len(original)} more signature(s)",
            ))
        elif len(comparison) < len(original):
            findings.append(Finding(
                category=FindingCategory.SIGNATURES,
                severity=Severity.CRITICAL,
                title="Signature Removed",
                description=f"{len(original) - len(comparison)} signature(s) removed from comparison document",
            ))

        for sig in comparison:
            if not sig.is_valid:
                findings.append(Finding(
                    category=FindingCategory.SIGNATURES,
                    severity=Severity.CRITICAL,
                    title="Invalid Signature",
                    description=sig.validation_message,
                ))
            if not sig.covers_whole_document:
                findings.append(Finding(
                    category=FindingCategory.SIGNATURES,
                    severity=Severity.HIGH,
                    title="Partial Signature Coverage",
                    description="Signature does not cover entire document - modifications may exist after signing",
                ))

        orig_signers = {s.signer_name for s in original if s.signer_name}
        comp_signers = {s.signer_name for s in comparison if s.signer_name}
        if orig_signers != comp_signers:
            findings.append(Finding(
                category=FindingCategory.SIGNATURES,
                severity=Severity.HIGH,
                title="Different Signers",
                description="Documents signed by different parties",
            ))

        return findings

    def report_hidden_content(
        self,
        original: List[HiddenContent],
        comparison: List[HiddenContent],
    ) -> List[Finding]:
        findings = [
            Finding(
                category=FindingCategory.HIDDEN,
                severity=HIDDEN_CONTENT_SEVERITY[hidden.type],
                title=hidden.type.value,
                description=hidden.description,
                page_number=hidden.page_number,
            )
            for hidden in comparison
        ]

        if len(original) != len(comparison):
            findings.append(Finding(
                category=FindingCategory.HIDDEN,
                severity=Severity.MEDIUM,
                title="Hidden Content Count Differs",
                description=f"Original: {len(original)}, Comparison: {len(comparison)}",
            ))

        return findings

    def compare_xmp_history(
        self,
        original: List[XMPHistoryEntry],
        comparison: List[XMPHistoryEntry],
    ) -> List[Finding]:
        findings = []

        if len(comparison) > len(original):
            findings.append(Finding(
                category=FindingCategory.FORENSIC,
                severity=Severity.MEDIUM,
                title="Additional Modification History",
                description=f"Comparison document has {len(comparison) - len(original)} more modification entries",
            ))

        orig_tools = {e.software_agent for e in original if e.software_agent}
        comp_tools = {e.software_agent for e in comparison if e.software_agent}
        for tool in sorted(comp_tools - orig_tools):
            findings.append(Finding(
                category=FindingCategory.FORENSIC,
                severity=Severity.HIGH,
                title="Modified With New Tool",
                description=f"Document modified with: {tool}",
            ))

        return findings

    def report_redactions(self, original: List[Redaction], comparison: List[Redaction]) -> List[Finding]:
        findings = []

        for redaction in comparison:
            if redaction.has_hidden_content:
                findings.append(Finding(
                    category=FindingCategory.SECURITY,
                    severity=Severity.CRITICAL,
                    title="Improper Redaction",
                    description=(
                        f"Redaction on page {redaction.page_number} covers but does not "
                        "remove content - text can be extracted"
                    ),
                    page_number=redaction.page_number,
                ))

        if len(comparison) > len(original):
            findings.append(Finding(
                category=FindingCategory.FORENSIC,
                severity=Severity.MEDIUM,
                title="Redactions Added",
                description=f"{len(comparison) - len(original)} new redaction(s) in comparison document",
            ))
        elif len(comparison) < len(original):
            findings.append(Finding(
                category=FindingCategory.FORENSIC,
                severity=Severity.HIGH,
                title="Redactions Removed",
                description=f"{len(original) - len(comparison)} redaction(s) removed from comparison document",
            ))

        return findings

    def report_suspicious_elements(
        self,
        original: List[SuspiciousElement],
        comparison: List[SuspiciousElement],
    ) -> List[Finding]:
        findings = [
            Finding(
                category=FindingCategory.SECURITY,
                severity=element.severity,
                title=element.type.value,
                description=element.description,
                page_number=element.page_number,
            )
            for element in comparison
        ]

        orig_types = {e.type for e in original}
        new_types = []
        for element in comparison:
            if element.type not in orig_types and element.type not in new_types:
                new_types.append(element.type)
        for kind in new_types:
            findings.append(Finding(
                category=FindingCategory.FORENSIC,
                severity=Severity.HIGH,
                title="New Suspicious Element",
                description=f"{kind.value} added in comparison document",
            ))

        return findings

    def character_substitutions(self, original_pages: List[str], comparison_pages: List[str]) -> List[Finding]:
        findings = []
        for index, (orig_text, comp_text) in enumerate(zip(original_pages, comparison_pages)):
            for diff in find_character_differences(orig_text or "", comp_text or ""):
                if not diff.is_suspicious_substitution:
                    continue
                findings.append(Finding(
                    category=FindingCategory.TEXT,
                    severity=Severity.HIGH,
                    title="Suspicious Character Change",
                    description=f"'{diff.original_char}' -> '{diff.new_char}' at position {diff.position}",
                    details={"Context": diff.context, "Type": diff.substitution_type},
                    page_number=index + 1,
                ))
        return findings
