"""Duplicate address detection services."""

from .advisor import (
    ReviewAction,
    ReviewDecision,
    ReviewResult,
    attach_row_ids,
    build_canonical_map,
    review_duplicates,
    suggest_merge_actions,
)
from .detector import detect_duplicates, detect_duplicates_in_database, generate_duplicate_report
from .normalizer import normalize_address
from .similarity import calculate_similarity, classify_confidence

__all__ = [
    "normalize_address",
    "calculate_similarity",
    "classify_confidence",
    "detect_duplicates",
    "detect_duplicates_in_database",
    "generate_duplicate_report",
    "suggest_merge_actions",
    "build_canonical_map",
    "attach_row_ids",
    "review_duplicates",
    "ReviewAction",
    "ReviewDecision",
    "ReviewResult",
]
