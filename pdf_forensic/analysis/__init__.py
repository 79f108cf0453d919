"""
PDF Forensic Tool - Analysis Module

Comparison and tampering detection:
- Text comparison (token LCS diff) and visual comparison (SSIM)
- Metadata, structure and forensic fact comparison
- Forensic fact extraction (signatures, layers, hidden content, redactions)
- Tampering indicators and risk scoring
"""

from pdf_forensic.analysis.forensic_comparator import ForensicComparator, find_character_differences
from pdf_forensic.analysis.forensic_extractor import ForensicExtractor
from pdf_forensic.analysis.metadata_comparator import MetadataComparator, MetadataComparisonResult
from pdf_forensic.analysis.risk import RiskScorer
from pdf_forensic.analysis.structure_comparator import StructureComparator, StructureComparisonResult
from pdf_forensic.analysis.tampering import TamperingAnalyzer
from pdf_forensic.analysis.text_diff import (
    TextComparator,
    TextComparisonResult,
    diff,
    levenshtein_distance,
    similarity,
    tokenize,
)
from pdf_forensic.analysis.visual import (
    VisualComparator,
    VisualComparisonResult,
    difference_image,
    pixel_difference,
    ssim,
)

__all__ = [
    # Text
    "TextComparator",
    "TextComparisonResult",
    "diff",
    "levenshtein_distance",
    "similarity",
    "tokenize",
    # Visual
    "VisualComparator",
    "VisualComparisonResult",
    "difference_image",
    "pixel_difference",
    "ssim",
    # Metadata and structure
    "MetadataComparator",
    "MetadataComparisonResult",
    "StructureComparator",
    "StructureComparisonResult",
    # Forensics
    "ForensicExtractor",
    "ForensicComparator",
    "find_character_differences",
    # Scoring
    "TamperingAnalyzer",
    "RiskScorer",
]
