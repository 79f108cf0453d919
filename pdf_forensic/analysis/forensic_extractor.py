"""
Per-document forensic fact extraction.

Combines the reader's structured view (annotations, links, image XObjects)
with bounded-context pattern searches over the raw bytes to recover:
- Digital signatures and their byte-range coverage
- Optional content groups (layers) and their visibility
- Hidden content (white, microscopic and off-page annotations, hidden layers)
- Redaction marks and whether text remains under them
- XMP edit history
- Suspicious elements (JavaScript, launch actions, orphaned objects,
  creator/producer mismatches)

Every detector returns an empty result when nothing is found.
"""

import logging
import re
from typing import List, Optional

from pdf_forensic.core.reader import DocumentSnapshot
from pdf_forensic.models import (
    DigitalSignature,
    EmbeddedImage,
    ForensicFacts,
    HiddenContent,
    HiddenContentType,
    PDFLayer,
    PDFLink,
    Redaction,
    Severity,
    SuspiciousElement,
    SuspiciousType,
    XMPHistoryEntry,
)
from pdf_forensic.parsers.byte_scanner import decode_latin1
from pdf_forensic.parsers.timestamp import parse_pdf_date, parse_xmp_date

logger = logging.getLogger(__name__)

SIGNATURE_PATTERN = re.compile(r"/Type\s*/Sig\b.*?/Filter\s*/([A-Za-z.]+)", re.DOTALL)
BYTE_RANGE_PATTERN = re.compile(r"/ByteRange\s*\[\s*(\d+)\s+(\d+)\s+(\d+)\s+(\d+)\s*\]")
OCG_PATTERN = re.compile(r"/Type\s*/OCG.*?/Name\s*\(([^)]+)\)", re.DOTALL)
XMP_LIST_ITEM = re.compile(r"<rdf:li\b([^>]*?)(?:/>|>(.*?)</rdf:li>)", re.DOTALL)
OBJECT_DEFINITION = re.compile(r"(\d+)\s+0\s+obj")
OBJECT_REFERENCE = re.compile(r"(\d+)\s+0\s+R")
CREATOR_PATTERN = re.compile(r"/Creator\s*\(([^)]+)\)")
PRODUCER_PATTERN = re.compile(r"/Producer\s*\(([^)]+)\)")

SIGNATURE_WINDOW = 1000
LAYER_WINDOW = 300
COVERAGE_SLACK = 100
TINY_SIZE = 2.0

# Catalog, page tree root and info dictionary are usually never referenced
UNREFERENCED_ALLOWANCE = 3

REDACTION_LOOKALIKE_TYPES = {"Square", "FreeText"}


def context_around(content: str, start: int, end: int, chars: int) -> str:
    return content[max(0, start - chars):end + chars]


def extract_name(key: str, context: str) -> Optional[str]:
    """Value of a name object following key, e.g. /Intent /View -> "View"."""
    match = re.search(re.escape(key) + r"\s*/([A-Za-z0-9]+)", context)
    return match.group(1) if match else None


def extract_pdf_string(key: str, context: str) -> Optional[str]:
    """Value of a literal string following key, e.g. /Reason (Approval)."""
    match = re.search(re.escape(key) + r"\s*\(([^)]+)\)", context)
    return match.group(1) if match else None


def _xmp_field(name: str, attributes: str, body: str) -> Optional[str]:
    match = re.search(rf"<stEvt:{name}>([^<]+)</stEvt:{name}>", body)
    if not match:
        match = re.search(rf'stEvt:{name}="([^"]*)"', attributes)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


class ForensicExtractor:
    """Extracts ForensicFacts from a DocumentSnapshot."""

    def __init__(self, coverage_slack: int = COVERAGE_SLACK):
        self.coverage_slack = coverage_slack

    def extract(self, snapshot: DocumentSnapshot) -> ForensicFacts:
        """
        Run every detector over one document.

        Args:
            snapshot: Loaded document

        Returns:
            ForensicFacts
        """
        content = decode_latin1(snapshot.raw_bytes)
        layers = self.extract_layers(content)

        facts = ForensicFacts(
            embedded_images=self.extract_images(snapshot),
            links=self.extract_links(snapshot),
            layers=layers,
            signatures=self.extract_signatures(content),
            hidden_content=self.detect_hidden_content(snapshot, layers),
            xmp_history=self.extract_xmp_history(content),
            redactions=self.detect_redactions(snapshot),
            suspicious_elements=self.detect_suspicious_elements(
                content, snapshot.metadata.creator, snapshot.metadata.producer
            ),
        )
        logger.debug(
            f"{snapshot.path.name}: {len(facts.signatures)} signatures, "
            f"{len(facts.hidden_content)} hidden items, {len(facts.redactions)} redactions"
        )
        return facts

    # ------------------------------------------------------------------
    # Reader-based detectors
    # ------------------------------------------------------------------

    def extract_images(self, snapshot: DocumentSnapshot) -> List[EmbeddedImage]:
        return [
            EmbeddedImage(
                page_number=image.page_number,
                index=index,
                width=image.width,
                height=image.height,
                bits_per_component=image.bits_per_component,
                color_space=image.color_space,
                filter=image.filter,
                data_hash=image.data_hash,
            )
            for index, image in enumerate(snapshot.images)
        ]

    def extract_links(self, snapshot: DocumentSnapshot) -> List[PDFLink]:
        links = []
        for link in snapshot.all_links:
            url = link.uri
            if url is None and link.action_type == "RemoteGoTo":
                url = link.destination
            links.append(PDFLink(
                page_number=link.page_number,
                url=url,
                destination=link.destination,
                action_type=link.action_type,
                bounds=link.bounds,
            ))
        return links

    def detect_hidden_content(self, snapshot: DocumentSnapshot, layers: List[PDFLayer]) -> List[HiddenContent]:
        hidden = []

        for index, page_annotations in enumerate(snapshot.annotations):
            page_number = index + 1
            page_width, page_height = snapshot.page_sizes[index]

            for annot in page_annotations:
                if annot.contents and annot.is_white:
                    hidden.append(HiddenContent(
                        page_number=page_number,
                        type=HiddenContentType.WHITE_TEXT,
                        description="Annotation with white text",
                        bounds=annot.bounds,
                    ))

            for annot in page_annotations:
                if (annot.bounds.width < TINY_SIZE or annot.bounds.height < TINY_SIZE) and annot.contents:
                    hidden.append(HiddenContent(
                        page_number=page_number,
                        type=HiddenContentType.TINY_TEXT,
                        description="Microscopic annotation with content",
                        bounds=annot.bounds,
                    ))

            for annot in page_annotations:
                b = annot.bounds
                if b.x1 < 0 or b.x0 > page_width or b.y1 < 0 or b.y0 > page_height:
                    hidden.append(HiddenContent(
                        page_number=page_number,
                        type=HiddenContentType.OFF_PAGE_CONTENT,
                        description="Content placed outside visible page area",
                        bounds=b,
                    ))

        for layer in layers:
            if not layer.is_visible:
                hidden.append(HiddenContent(
                    page_number=0,
                    type=HiddenContentType.HIDDEN_LAYER,
                    description=f"Hidden layer: {layer.name}",
                ))

        return hidden

    def detect_redactions(self, snapshot: DocumentSnapshot) -> List[Redaction]:
        """
        Find redaction marks and check whether text survives under them.

        Unapplied Redact annotations and black boxes drawn over text both
        leave the text extractable; applied redactions remove it.
        """
        redactions = []
        for annot in snapshot.all_annotations:
            is_redaction = annot.type == "Redact" or (
                annot.type in REDACTION_LOOKALIKE_TYPES and annot.is_black
            )
            if not is_redaction:
                continue

            has_hidden = bool(annot.covered_text.strip())
            redactions.append(Redaction(
                page_number=annot.page_number,
                bounds=annot.bounds,
                is_properly_applied=not has_hidden,
                has_hidden_content=has_hidden,
            ))
        return redactions

    # ------------------------------------------------------------------
    # Byte-level detectors
    # ------------------------------------------------------------------

    def extract_layers(self, content: str) -> List[PDFLayer]:
        layers = []
        for match in OCG_PATTERN.finditer(content):
            context = context_around(content, match.start(1), match.end(1), LAYER_WINDOW)
            layers.append(PDFLayer(
                name=match.group(1),
                is_visible="/OFF" not in context,
                is_locked="/Locked" in context,
                intent=extract_name("/Intent", context),
            ))
        return layers

    def signature_covers_document(self, context: str, file_length: int) -> bool:
        """
        Whether the declared byte range reaches the end of the file.

        Accepts either the last ByteRange number or the end offset of the
        second range (offset + length) landing within the slack.
        """
        match = BYTE_RANGE_PATTERN.search(context)
        if not match:
            return False
        second_start = int(match.group(3))
        second_length = int(match.group(4))
        return (
            abs(file_length - second_length) < self.coverage_slack
            or abs(file_length - (second_start + second_length)) < self.coverage_slack
        )

    def extract_signatures(self, content: str) -> List[DigitalSignature]:
        signatures = []
        for match in SIGNATURE_PATTERN.finditer(content):
            context = context_around(content, match.start(), match.end(), SIGNATURE_WINDOW)

            byte_range = None
            range_match = BYTE_RANGE_PATTERN.search(context)
            if range_match:
                byte_range = [int(g) for g in range_match.groups()]

            is_valid = "/Contents" in context and "/ByteRange" in context
            signatures.append(DigitalSignature(
                signer_name=extract_pdf_string("/Name", context),
                sign_date=parse_pdf_date(extract_pdf_string("/M", context)),
                reason=extract_pdf_string("/Reason", context),
                location=extract_pdf_string("/Location", context),
                filter=match.group(1),
                byte_range=byte_range,
                is_valid=is_valid,
                validation_message="Signature structure valid" if is_valid else "Incomplete signature",
                covers_whole_document=self.signature_covers_document(context, len(content)),
            ))
        return signatures

    def extract_xmp_history(self, content: str) -> List[XMPHistoryEntry]:
        history = []
        if "stEvt:" not in content:
            return history

        for match in XMP_LIST_ITEM.finditer(content):
            attributes = match.group(1) or ""
            body = match.group(2) or ""
            action = _xmp_field("action", attributes, body)
            if action is None:
                continue
            history.append(XMPHistoryEntry(
                action=action,
                when=parse_xmp_date(_xmp_field("when", attributes, body)),
                software_agent=_xmp_field("softwareAgent", attributes, body),
                parameters=_xmp_field("parameters", attributes, body),
            ))
        return history

    def count_orphaned_objects(self, content: str) -> int:
        defined = set(OBJECT_DEFINITION.findall(content))
        referenced = set(OBJECT_REFERENCE.findall(content))
        return max(0, len(defined - referenced) - UNREFERENCED_ALLOWANCE)

    def detect_tool_mismatch(
        self,
        content: str,
        creator: Optional[str] = None,
        producer: Optional[str] = None,
    ) -> Optional[str]:
        creator_match = CREATOR_PATTERN.search(content)
        producer_match = PRODUCER_PATTERN.search(content)
        if creator_match:
            creator = creator_match.group(1)
        if producer_match:
            producer = producer_match.group(1)
        if not creator or not producer:
            return None

        c = creator.lower()
        p = producer.lower()
        if "word" in c and any(tool in p for tool in ("unknown", "pdfedit", "hexedit")):
            return "Document created in Word but producer suggests manual editing"
        if "adobe" in c and "adobe" not in p and "acrobat" not in p:
            return f"Document created with Adobe but modified with different tool: {producer}"
        return None

    def detect_suspicious_elements(
        self,
        content: str,
        creator: Optional[str] = None,
        producer: Optional[str] = None,
    ) -> List[SuspiciousElement]:
        suspicious = []

        if "/JavaScript" in content or "/JS " in content or "/JS(" in content:
            suspicious.append(SuspiciousElement(
                type=SuspiciousType.JAVASCRIPT_ACTION,
                description="Document contains JavaScript code",
                severity=Severity.HIGH,
            ))

        if "/Launch" in content:
            suspicious.append(SuspiciousElement(
                type=SuspiciousType.LAUNCH_ACTION,
                description="Document contains Launch action (can execute external programs)",
                severity=Severity.CRITICAL,
            ))

        orphaned = self.count_orphaned_objects(content)
        if orphaned > 0:
            suspicious.append(SuspiciousElement(
                type=SuspiciousType.ORPHANED_OBJECT,
                description=f"{orphaned} orphaned objects detected (possible remnants of deleted content)",
                severity=Severity.MEDIUM,
            ))

        mismatch = self.detect_tool_mismatch(content, creator, producer)
        if mismatch:
            suspicious.append(SuspiciousElement(
                type=SuspiciousType.TOOL_MISMATCH,
                description=mismatch,
                severity=Severity.HIGH,
            ))

        return suspicious
