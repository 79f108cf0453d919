"""Tests for forensic fact comparison."""

from pdf_forensic.analysis.forensic_comparator import (
    CharacterDiff,
    ForensicComparator,
    find_character_differences,
)
from pdf_forensic.models import (
    DigitalSignature,
    EmbeddedImage,
    FindingCategory,
    ForensicFacts,
    HiddenContent,
    HiddenContentType,
    PDFLayer,
    PDFLink,
    Rect,
    Redaction,
    Severity,
    SuspiciousElement,
    SuspiciousType,
    XMPHistoryEntry,
)


def image(data_hash: str, width: int = 100, height: int = 50, filter_: str = "DCTDecode") -> EmbeddedImage:
    return EmbeddedImage(page_number=1, index=0, width=width, height=height, filter=filter_, data_hash=data_hash)


def titles(findings):
    return [f.title for f in findings]


class TestCompareEmptyFacts:
    """Tests for the degenerate case."""

    def test_empty_facts_no_findings(self):
        """Two empty fact sets with equal texts produce nothing."""
        findings = ForensicComparator().compare(ForensicFacts(), ForensicFacts(), ["same"], ["same"])
        assert findings == []


class TestImages:
    """Tests for image comparison."""

    def test_added_and_removed(self):
        """Hash sets are compared in both directions."""
        findings = ForensicComparator().compare_images([image("a")], [image("b")])
        assert titles(findings) == ["New Images Added", "Images Removed"]

    def test_dimensions_and_compression(self):
        """Paired images report dimension then compression changes."""
        findings = ForensicComparator().compare_images(
            [image("a")], [image("a", width=200, filter_="FlateDecode")]
        )
        assert titles(findings) == ["Image Dimensions Changed", "Image Compression Changed"]
        assert findings[0].description == "Image 1: 100x50 -> 200x50"
        assert findings[1].severity == Severity.LOW


class TestLinks:
    """Tests for link comparison."""

    def test_added_link_and_shortener(self):
        """New links and shortened URLs are reported."""
        comp = [PDFLink(page_number=2, url="https://bit.ly/x", action_type="URI")]
        findings = ForensicComparator().compare_links([], comp)
        assert titles(findings) == ["New Link Added", "Shortened URL Detected", "Link Count Changed"]
        assert findings[1].category == FindingCategory.SECURITY
        assert findings[1].page_number == 2


class TestLayers:
    """Tests for layer comparison."""

    def test_visibility_change(self):
        """A layer switched off is a visibility change."""
        findings = ForensicComparator().compare_layers(
            [PDFLayer(name="Notes")], [PDFLayer(name="Notes", is_visible=False)]
        )
        assert titles(findings) == ["Layer Visibility Changed"]
        assert findings[0].description == "Layer 'Notes': visible -> hidden"

    def test_layer_added(self):
        """New layers are high severity."""
        findings = ForensicComparator().compare_layers([], [PDFLayer(name="Overlay")])
        assert findings[0].severity == Severity.HIGH
        assert findings[0].category == FindingCategory.HIDDEN


class TestSignatures:
    """Tests for signature comparison."""

    def test_removed_signature_is_critical(self):
        """Losing a signature is critical, and the signer sets differ."""
        original = [DigitalSignature(signer_name="Jane", is_valid=True, covers_whole_document=True)]
        findings = ForensicComparator().compare_signatures(original, [])
        assert titles(findings) == ["Signature Removed", "Different Signers"]
        assert findings[0].severity == Severity.CRITICAL

    def test_invalid_partial_signature(self):
        """Invalid and partial signatures in the comparison are reported."""
        sig = DigitalSignature(signer_name="Jane", validation_message="Incomplete signature")
        findings = ForensicComparator().compare_signatures([sig], [sig])
        assert titles(findings) == ["Invalid Signature", "Partial Signature Coverage"]
        assert findings[0].description == "Incomplete signature"


class TestHiddenAndRedactions:
    """Tests for hidden content and redaction reporting."""

    def test_hidden_content_severity(self):
        """Each hidden item in the comparison is reported with its type's severity."""
        hidden = [
            HiddenContent(page_number=1, type=HiddenContentType.WHITE_TEXT, description="white"),
            HiddenContent(page_number=0, type=HiddenContentType.HIDDEN_LAYER, description="layer"),
        ]
        findings = ForensicComparator().report_hidden_content([], hidden)
        assert [f.severity for f in findings] == [Severity.HIGH, Severity.MEDIUM, Severity.MEDIUM]
        assert findings[-1].title == "Hidden Content Count Differs"

    def test_improper_redaction(self):
        """A recoverable redaction is critical."""
        redaction = Redaction(
            page_number=3,
            bounds=Rect(x0=0, y0=0, x1=10, y1=10),
            is_properly_applied=False,
            has_hidden_content=True,
        )
        findings = ForensicComparator().report_redactions([], [redaction])
        assert titles(findings) == ["Improper Redaction", "Redactions Added"]
        assert findings[0].page_number == 3


class TestHistoryAndSuspicious:
    """Tests for XMP history and suspicious elements."""

    def test_new_tool_in_history(self):
        """A software agent only in the comparison history is reported."""
        findings = ForensicComparator().compare_xmp_history(
            [XMPHistoryEntry(action="created", software_agent="Writer")],
            [
                XMPHistoryEntry(action="created", software_agent="Writer"),
                XMPHistoryEntry(action="saved", software_agent="Editor"),
            ],
        )
        assert titles(findings) == ["Additional Modification History", "Modified With New Tool"]

    def test_new_suspicious_type(self):
        """Comparison elements are listed, then types new to the comparison."""
        element = SuspiciousElement(
            type=SuspiciousType.LAUNCH_ACTION, description="launch", severity=Severity.CRITICAL
        )
        findings = ForensicComparator().report_suspicious_elements([], [element, element])
        assert titles(findings) == ["Launch Action", "Launch Action", "New Suspicious Element"]


class TestCharacterSubstitutions:
    """Tests for look-alike character detection."""

    def test_zero_to_letter_o(self):
        """A zero replaced by a capital O is a suspicious number-to-letter change."""
        findings = ForensicComparator().character_substitutions(
            ["Invoice total: 1000 USD"], ["Invoice total: 1O00 USD"]
        )
        assert len(findings) == 1
        assert findings[0].details["Type"] == "Number to Letter"
        assert findings[0].page_number == 1

    def test_decimal_separator(self):
        """A point turned into a comma is a decimal separator change."""
        diff = CharacterDiff(position=0, original_char=".", new_char=",", context="")
        assert diff.is_suspicious_substitution
        assert diff.substitution_type == "Decimal Separator Change"

    def test_ordinary_change_ignored(self):
        """Ordinary letter changes are not suspicious."""
        diff = CharacterDiff(position=0, original_char="a", new_char="e", context="")
        assert not diff.is_suspicious_substitution

    def test_length_mismatch_skipped(self):
        """Texts whose lengths differ too much are not compared by position."""
        assert find_character_differences("short text here", "a much longer text than before") == []
