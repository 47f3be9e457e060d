from .checker import COMPLIANCE_THRESHOLD, ComplianceChecker, calculate_score
from .rules import (
    ChapterVariationRule,
    ForbiddenWordsRule,
    MarkdownContaminationRule,
    RhythmCheckRule,
    split_sentences,
)

__all__ = [
    "COMPLIANCE_THRESHOLD",
    "ComplianceChecker",
    "calculate_score",
    "ChapterVariationRule",
    "ForbiddenWordsRule",
    "MarkdownContaminationRule",
    "RhythmCheckRule",
    "split_sentences",
]
