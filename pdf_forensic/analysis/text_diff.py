"""Page text comparison using an LCS word diff.

Text is split into word tokens, with each whitespace or punctuation
character kept as a token of its own. Two token sequences are aligned by a
longest-common-subsequence table; the edit script prefers insertion over
deletion when both are equally good, and adjacent operations of the same
kind are merged into runs.
"""

import logging
import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from pdf_forensic.models import (
    Finding,
    FindingCategory,
    Severity,
    TextComparisonSummary,
)

logger = logging.getLogger(__name__)


class DiffKind(str, Enum):
    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class DiffOp:
    kind: DiffKind
    text: str


class DifferenceType(str, Enum):
    INSERTION = "insertion"
    DELETION = "deletion"


@dataclass(frozen=True)
class TextDifference:
    """One inserted or deleted run with its character range."""
    type: DifferenceType
    original_range: Optional[Tuple[int, int]]
    comparison_range: Optional[Tuple[int, int]]
    original_text: str
    comparison_text: str


@dataclass
class PageTextResult:
    page_number: int
    similarity: float
    original_text: str
    comparison_text: str
    differences: List[TextDifference] = field(default_factory=list)


@dataclass
class TextComparisonResult:
    similarity: float
    page_results: List[PageTextResult] = field(default_factory=list)
    total_characters_original: int = 0
    total_characters_comparison: int = 0
    diff_operations: List[DiffOp] = field(default_factory=list)

    @property
    def pages_with_differences(self) -> int:
        return sum(1 for p in self.page_results if p.similarity < 1.0)

    @property
    def total_differences(self) -> int:
        return sum(len(p.differences) for p in self.page_results)

    def to_summary(self) -> TextComparisonSummary:
        return TextComparisonSummary(
            overall_similarity=self.similarity,
            page_count=len(self.page_results),
            pages_with_differences=self.pages_with_differences,
            total_differences=self.total_differences,
        )


def _is_separator(char: str) -> bool:
    return char.isspace() or unicodedata.category(char).startswith("P")


def tokenize(text: str) -> List[str]:
    """Split text into words, whitespace characters and punctuation characters."""
    tokens = []
    word = []
    for char in text:
        if _is_separator(char):
            if word:
                tokens.append("".join(word))
                word = []
            tokens.append(char)
        else:
            word.append(char)
    if word:
        tokens.append("".join(word))
    return tokens


def _lcs_table(a: List[str], b: List[str]) -> List[List[int]]:
    """table[i][j] is the LCS length of a[:i] and b[:j]."""
    m, n = len(a), len(b)
    table = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row, above = table[i], table[i - 1]
        ai = a[i - 1]
        for j in range(1, n + 1):
            if ai == b[j - 1]:
                row[j] = above[j - 1] + 1
            else:
                row[j] = above[j] if above[j] >= row[j - 1] else row[j - 1]
    return table


def lcs_length(a: List[str], b: List[str]) -> int:
    if not a or not b:
        return 0
    if a == b:
        return len(a)
    return _lcs_table(a, b)[len(a)][len(b)]


def _append(ops: List[DiffOp], kind: DiffKind, text: str) -> None:
    if ops and ops[-1].kind == kind:
        ops[-1] = DiffOp(kind, ops[-1].text + text)
    else:
        ops.append(DiffOp(kind, text))


def diff(original: str, modified: str) -> List[DiffOp]:
    """
    Compute the merged edit script turning original into modified.

    The table is walked back from the end of both texts. Matching tokens are
    taken first; otherwise insertion wins whenever it keeps the LCS length at
    least as long as deletion would. Within a changed block the insert run
    precedes the delete run.

    Returns:
        Ordered list of equal/insert/delete runs
    """
    a = tokenize(original)
    b = tokenize(modified)
    ops: List[DiffOp] = []

    if a == b:
        if original:
            ops.append(DiffOp(DiffKind.EQUAL, original))
        return ops

    table = _lcs_table(a, b)
    backwards: List[DiffOp] = []
    deletions: List[str] = []
    insertions: List[str] = []

    def flush() -> None:
        if deletions:
            backwards.append(DiffOp(DiffKind.DELETE, "".join(reversed(deletions))))
            deletions.clear()
        if insertions:
            backwards.append(DiffOp(DiffKind.INSERT, "".join(reversed(insertions))))
            insertions.clear()

    i, j = len(a), len(b)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and a[i - 1] == b[j - 1]:
            flush()
            backwards.append(DiffOp(DiffKind.EQUAL, a[i - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i][j - 1] >= table[i - 1][j]):
            insertions.append(b[j - 1])
            j -= 1
        else:
            deletions.append(a[i - 1])
            i -= 1
    flush()

    for op in reversed(backwards):
        _append(ops, op.kind, op.text)
    return ops


def similarity(original: str, modified: str) -> float:
    """LCS token similarity in [0, 1]; symmetric."""
    if not original and not modified:
        return 1.0
    if not original or not modified:
        return 0.0

    a = tokenize(original)
    b = tokenize(modified)
    longest = max(len(a), len(b))
    return lcs_length(a, b) / longest if longest else 1.0


def levenshtein_distance(s1: str, s2: str) -> int:
    """Classic character edit distance."""
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i] + [0] * len(s2)
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current[j] = min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            )
        previous = current
    return previous[-1]


def differences_from_ops(ops: List[DiffOp]) -> List[TextDifference]:
    """Convert an edit script into positioned insertions and deletions."""
    differences = []
    orig_pos = 0
    mod_pos = 0
    for op in ops:
        length = len(op.text)
        if op.kind == DiffKind.EQUAL:
            orig_pos += length
            mod_pos += length
        elif op.kind == DiffKind.DELETE:
            differences.append(TextDifference(
                type=DifferenceType.DELETION,
                original_range=(orig_pos, orig_pos + length),
                comparison_range=None,
                original_text=op.text,
                comparison_text="",
            ))
            orig_pos += length
        else:
            differences.append(TextDifference(
                type=DifferenceType.INSERTION,
                original_range=None,
                comparison_range=(mod_pos, mod_pos + length),
                original_text="",
                comparison_text=op.text,
            ))
            mod_pos += length
    return differences


class TextComparator:
    """Compares the page texts of two documents."""

    def __init__(self, finding_threshold: float = 0.95, page_finding_threshold: float = 0.9):
        self.finding_threshold = finding_threshold
        self.page_finding_threshold = page_finding_threshold

    def compare(self, original_pages: List[str], comparison_pages: List[str]) -> TextComparisonResult:
        """
        Compare two documents page by page.

        Pages present only in the comparison document count as fully
        inserted with similarity 0. Overall similarity weights each page by
        the longer of its two texts.
        """
        result = TextComparisonResult(similarity=1.0)
        shared = min(len(original_pages), len(comparison_pages))

        for index in range(shared):
            orig_text = original_pages[index] or ""
            comp_text = comparison_pages[index] or ""
            result.total_characters_original += len(orig_text)
            result.total_characters_comparison += len(comp_text)

            ops = diff(orig_text, comp_text)
            result.diff_operations.extend(ops)
            differences = [] if orig_text == comp_text else differences_from_ops(ops)

            result.page_results.append(PageTextResult(
                page_number=index + 1,
                similarity=similarity(orig_text, comp_text),
                original_text=orig_text,
                comparison_text=comp_text,
                differences=differences,
            ))

        for index in range(len(original_pages), len(comparison_pages)):
            comp_text = comparison_pages[index] or ""
            result.total_characters_comparison += len(comp_text)
            result.page_results.append(PageTextResult(
                page_number=index + 1,
                similarity=0.0,
                original_text="",
                comparison_text=comp_text,
                differences=[TextDifference(
                    type=DifferenceType.INSERTION,
                    original_range=None,
                    comparison_range=(0, len(comp_text)),
                    original_text="",
                    comparison_text=comp_text,
                )],
            ))

        result.similarity = self._overall_similarity(result.page_results)
        logger.debug(f"Text similarity {result.similarity:.4f} over {len(result.page_results)} pages")
        return result

    def _overall_similarity(self, pages: List[PageTextResult]) -> float:
        total_chars = 0
        weighted = 0.0
        for page in pages:
            page_chars = max(len(page.original_text), len(page.comparison_text))
            total_chars += page_chars
            weighted += page.similarity * page_chars
        return weighted / total_chars if total_chars else 1.0

    def generate_findings(self, result: TextComparisonResult) -> List[Finding]:
        findings = []

        if result.similarity < self.finding_threshold:
            if result.similarity < 0.5:
                severity = Severity.CRITICAL
            elif result.similarity < 0.8:
                severity = Severity.HIGH
            else:
                severity = Severity.MEDIUM

            findings.append(Finding(
                category=FindingCategory.TEXT,
                severity=severity,
                title="Text Content Differences",
                description=f"Overall text similarity is {result.similarity * 100:.1f}%",
                details={
                    "Original Characters": str(result.total_characters_original),
                    "Comparison Characters": str(result.total_characters_comparison),
                },
            ))

        for page in result.page_results:
            if page.similarity >= self.page_finding_threshold:
                continue
            findings.append(Finding(
                category=FindingCategory.TEXT,
                severity=Severity.HIGH if page.similarity < 0.5 else Severity.MEDIUM,
                title=f"Page {page.page_number} Text Differs",
                description=(
                    f"Page has {page.similarity * 100:.1f}% text similarity "
                    f"with {len(page.differences)} changes"
                ),
                page_number=page.page_number,
            ))

        return findings
